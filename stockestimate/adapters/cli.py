# stockestimate/adapters/cli.py
"""
CLI do StockEstimate (Typer).

Comandos principais:
- migrate                          -> aplica migrações no SQLite
- dashboard                        -> resumo, alertas, compras locais e visão geral
- inventory                        -> lista de químicos (ordem do usuário ou urgência)
- timeline <químico>               -> linha do tempo de abastecimento de um químico
- chemical add/edit/delete/reorder -> cadastro de químicos
- import add/remove                -> remessas de importação
- snapshot save/list/show/delete   -> snapshots diários
- config show/set-shift            -> turnos por linha de produção
- load-sheet <xlsx>                -> aplica uma planilha de contagem de estoque
- seed <json> / export            -> carga inicial e exportação do documento
"""

from __future__ import annotations

import json
from contextlib import contextmanager
from datetime import date
from typing import Iterable, List, Optional

import typer
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from stockestimate.adapters.formatting import (
    format_days,
    format_quantity,
    format_short_date,
)
from stockestimate.config import DB_PATH
from stockestimate.domain.models import CRITICAL, GAP, IMPORT, LOW, OK, WARNING, DerivedChemical, PortfolioView
from stockestimate.domain.timeline import date_at_day, resolve_reference_date
from stockestimate.infra.migrations import apply_migrations
from stockestimate.usecases.chemicals import (
    ChemicalNotFoundError,
    InvalidChemicalError,
    add_import,
    create_chemical,
    delete_chemical,
    move_chemical,
    remove_import,
    reorder_chemicals,
    run_load_sheet,
    update_chemical,
)
from stockestimate.usecases.document import export_document, run_export_file, run_seed_file
from stockestimate.usecases.line_config import get_config, set_shift
from stockestimate.usecases.portfolio import (
    build_alerts,
    filter_chemicals,
    procurement_recommendations,
    run_dashboard,
    sort_by_urgency,
)
from stockestimate.usecases.snapshots import (
    InvalidSnapshotDateError,
    SnapshotNotFoundError,
    delete_snapshot,
    get_snapshot,
    list_snapshot_dates,
    project_snapshot,
    save_snapshot,
)


app = typer.Typer(help="StockEstimate — projeção de abastecimento de químicos")
console = Console()

DOMAIN_ERRORS = (
    InvalidChemicalError,
    ChemicalNotFoundError,
    InvalidSnapshotDateError,
    SnapshotNotFoundError,
    ValueError,
)

_STATUS_STYLE = {
    CRITICAL: "bold red",
    WARNING: "bold yellow",
    LOW: "yellow",
    OK: "bold green",
}

_SEGMENT_STYLE = {
    GAP: "red",
    IMPORT: "cyan",
}


# -----------------------
# util
# -----------------------

@contextmanager
def _domain_errors(*extra: type):
    """Mostra erros de validação (e os tipos em ``extra``) em vermelho e sai com código 1."""
    try:
        yield
    except DOMAIN_ERRORS + extra as e:
        console.print(f"[bold red]Erro:[/] {e}")
        raise typer.Exit(code=1)


def _print_json(obj) -> None:
    typer.echo(json.dumps(obj, ensure_ascii=False, indent=2))


def _status(status: str) -> str:
    return f"[{_STATUS_STYLE.get(status, 'white')}]{status}[/]"


def _chemicals_table(items: Iterable[DerivedChemical], title: str) -> Table:
    table = Table(title=title, box=box.ROUNDED)
    table.add_column("#", justify="right")
    table.add_column("id", style="dim")
    table.add_column("Chemical", no_wrap=True, min_width=12)
    table.add_column("Category")
    table.add_column("Immediate", justify="right")
    table.add_column("Imports", justify="right")
    table.add_column("Use/day", justify="right")
    table.add_column("Imm. days", justify="right")
    table.add_column("Total days", justify="right")
    table.add_column("Months", justify="right")
    table.add_column("Gap", justify="right")
    table.add_column("Status")

    for pos, c in enumerate(items, start=1):
        gap = f"{format_days(c.gap_days)} d" if c.gap_days > 0 else ""
        table.add_row(
            str(pos),
            c.id,
            c.name,
            c.category,
            f"{format_quantity(c.immediate_quantity)} {c.unit}",
            format_quantity(c.total_import_quantity),
            format_quantity(c.use_per_day),
            format_days(c.immediate_days_remaining),
            format_days(c.total_days_remaining),
            format_days(c.total_months_remaining),
            gap,
            _status(c.status),
        )
    return table


def _timeline_table(c: DerivedChemical, ref: date) -> Table:
    table = Table(title=f"Timeline — {c.name}", box=box.ROUNDED)
    table.add_column("Segment")
    table.add_column("From", no_wrap=True)
    table.add_column("To", no_wrap=True)
    table.add_column("Start", justify="right")
    table.add_column("End", justify="right")
    table.add_column("Days", justify="right")
    table.add_column("Qty", justify="right")
    for s in c.timeline:
        style = _SEGMENT_STYLE.get(s.kind, "green")
        table.add_row(
            f"[{style}]{s.label}[/]",
            date_at_day(ref, s.start_day).isoformat(),
            date_at_day(ref, s.end_day).isoformat(),
            format_days(s.start_day),
            format_days(s.end_day),
            format_days(s.duration_days),
            format_quantity(s.quantity),
        )
    return table


def _summary_panel(view: PortfolioView, title: str) -> Panel:
    s = view.summary
    lines = [
        f"Total de químicos: {s.total}",
        f"[bold red]Critical: {s.critical}[/]  [bold yellow]Warning: {s.warning}[/]  "
        f"[yellow]Low: {s.low}[/]  [bold green]OK: {s.ok}[/]",
        f"Com lacuna de abastecimento: {s.with_gaps}",
    ]
    return Panel("\n".join(lines), title=title)


def _show_alerts(view: PortfolioView) -> None:
    alerts = build_alerts(view)
    if not alerts:
        console.print(Panel("Nenhum alerta", title="Alertas", border_style="green"))
        return
    styles = {CRITICAL: "bold red", WARNING: "bold yellow", "info": "cyan"}
    for a in alerts:
        style = styles.get(a.level, "white")
        console.print(f"[{style}]{a.level.upper()}[/] {a.message}")
        if a.detail:
            console.print(f"  [dim]{a.detail}[/dim]")


def _show_procurement(view: PortfolioView, order_multiple: Optional[float]) -> None:
    recs = procurement_recommendations(view, order_multiple)
    if not recs:
        return
    table = Table(title="Compras locais recomendadas", box=box.ROUNDED)
    table.add_column("Chemical", no_wrap=True, min_width=12)
    table.add_column("Imm. days", justify="right")
    table.add_column("Gap days", justify="right")
    table.add_column("Quantity", justify="right")
    table.add_column("Arrivals")
    table.add_column("Action")
    for r in recs:
        table.add_row(
            r.name,
            format_days(r.immediate_days),
            format_days(r.gap_days),
            f"{format_quantity(r.quantity_needed)} {r.unit}",
            ", ".join(format_short_date(d) for d in r.arrival_dates),
            r.action,
        )
    console.print(table)


def _find(view: PortfolioView, key: str) -> DerivedChemical:
    k = key.strip().lower()
    for c in view.chemicals:
        if c.id == key or c.name.lower() == k:
            return c
    raise ChemicalNotFoundError(f"químico não encontrado: {key}")


def _render_view(view: PortfolioView, title: str, as_json: bool, order_multiple: Optional[float] = None) -> None:
    if as_json:
        _print_json(view.to_dict())
        return
    console.print(_summary_panel(view, title))
    _show_alerts(view)
    _show_procurement(view, order_multiple)
    if view.chemicals:
        console.print(_chemicals_table(view.chemicals, "Visão geral"))


# -----------------------
# comandos de infra
# -----------------------

@app.command("migrate")
def cmd_migrate(db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite")):
    """Aplica migrações (inclui a conversão de químicos no formato antigo)."""
    apply_migrations(db_path)
    typer.echo(f">> Migrações aplicadas em: {db_path}")


# -----------------------
# comandos de consulta
# -----------------------

@app.command("dashboard")
def cmd_dashboard(
    as_json: bool = typer.Option(False, "--json", help="Saída em JSON"),
    ref_date: Optional[str] = typer.Option(None, "--date", help="Data de referência YYYY-MM-DD (padrão: hoje)"),
    order_multiple: Optional[float] = typer.Option(None, "--multiple", help="Múltiplo de pedido para compras locais"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Resumo do portfólio, alertas e compras locais recomendadas."""
    with _domain_errors():
        view = run_dashboard(db_path=db_path, reference_date=ref_date)
    _render_view(view, "Dashboard", as_json, order_multiple)


@app.command("inventory")
def cmd_inventory(
    sort: str = typer.Option("custom", "--sort", help="custom (ordem do usuário) | urgency"),
    search: Optional[str] = typer.Option(None, "--search", help="Filtra por nome, categoria ou observações"),
    ref_date: Optional[str] = typer.Option(None, "--date", help="Data de referência YYYY-MM-DD"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Lista os químicos com as métricas projetadas."""
    if sort not in ("custom", "urgency"):
        console.print(f"[bold red]Erro:[/] ordenação inválida: {sort}")
        raise typer.Exit(code=1)
    with _domain_errors():
        view = run_dashboard(db_path=db_path, reference_date=ref_date)
    items = filter_chemicals(view.chemicals, search)
    if sort == "urgency":
        items = sort_by_urgency(items)
    if not items:
        console.print(Panel("Nenhum químico encontrado", title="Inventário", border_style="yellow"))
        return
    console.print(_chemicals_table(items, "Inventário"))


@app.command("timeline")
def cmd_timeline(
    chemical: str = typer.Argument(..., help="Id ou nome do químico"),
    as_json: bool = typer.Option(False, "--json", help="Saída em JSON"),
    ref_date: Optional[str] = typer.Option(None, "--date", help="Data de referência YYYY-MM-DD"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Linha do tempo de abastecimento de um químico."""
    with _domain_errors():
        ref = resolve_reference_date(ref_date)
        c = _find(run_dashboard(db_path=db_path, reference_date=ref), chemical)
    if as_json:
        _print_json(c.to_dict())
        return
    if not c.timeline:
        console.print(Panel(f"{c.name}: sem consumo ou sem estoque", title="Timeline", border_style="yellow"))
        return
    console.print(_timeline_table(c, ref))
    console.print(
        f"Status: {_status(c.status)}  ·  fim da cobertura: dia {format_days(c.timeline_end_day)} "
        f"({date_at_day(ref, c.timeline_end_day).isoformat()})"
    )


# -----------------------
# cadastro de químicos
# -----------------------

chem_app = typer.Typer(help="Cadastro de químicos.")
app.add_typer(chem_app, name="chemical")


@chem_app.command("add")
def cmd_chemical_add(
    name: str = typer.Argument(..., help="Nome do químico"),
    category: Optional[str] = typer.Option(None, help="Categoria"),
    unit: Optional[str] = typer.Option(None, help="Unidade (padrão: bags)"),
    factory_stock: float = typer.Option(0.0, "--factory", help="Estoque na fábrica"),
    local_purchase: float = typer.Option(0.0, "--local", help="Compra local"),
    use_per_day: float = typer.Option(0.0, "--use", help="Consumo por dia"),
    notes: str = typer.Option("", help="Observações"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Cadastra um químico no fim da lista."""
    with _domain_errors():
        chem = create_chemical(
            name, category=category, unit=unit, factory_stock=factory_stock,
            local_purchase=local_purchase, use_per_day=use_per_day, notes=notes,
            db_path=db_path,
        )
    typer.echo(f">> Químico cadastrado: {chem.id}")


@chem_app.command("edit")
def cmd_chemical_edit(
    chem_id: str = typer.Argument(..., help="Id do químico"),
    name: Optional[str] = typer.Option(None, help="Nome"),
    category: Optional[str] = typer.Option(None, help="Categoria"),
    unit: Optional[str] = typer.Option(None, help="Unidade"),
    factory_stock: Optional[float] = typer.Option(None, "--factory", help="Estoque na fábrica"),
    local_purchase: Optional[float] = typer.Option(None, "--local", help="Compra local"),
    use_per_day: Optional[float] = typer.Option(None, "--use", help="Consumo por dia"),
    notes: Optional[str] = typer.Option(None, help="Observações"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Altera campos de um químico (apenas os informados)."""
    changes = {
        k: v for k, v in {
            "name": name,
            "category": category,
            "unit": unit,
            "factory_stock": factory_stock,
            "local_purchase": local_purchase,
            "use_per_day": use_per_day,
            "notes": notes,
        }.items()
        if v is not None
    }
    if not changes:
        typer.echo("Nada a alterar. Informe pelo menos um campo.")
        raise typer.Exit(code=1)
    with _domain_errors():
        update_chemical(chem_id, changes, db_path=db_path)
    typer.echo(">> Químico atualizado.")


@chem_app.command("delete")
def cmd_chemical_delete(
    chem_id: str = typer.Argument(..., help="Id do químico"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Remove um químico do cadastro."""
    with _domain_errors():
        removed = delete_chemical(chem_id, db_path=db_path)
    typer.echo(f">> Químico removido: {removed.name}")


@chem_app.command("reorder")
def cmd_chemical_reorder(
    ids: List[str] = typer.Argument(..., help="Todos os ids, na nova ordem"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Define a ordem de exibição (prioridade) dos químicos."""
    with _domain_errors():
        reorder_chemicals(ids, db_path=db_path)
    typer.echo(">> Ordem atualizada.")


@chem_app.command("move")
def cmd_chemical_move(
    chem_id: str = typer.Argument(..., help="Id do químico"),
    position: int = typer.Argument(..., help="Nova posição (1 = primeiro)"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Move um químico para outra posição da lista."""
    with _domain_errors():
        move_chemical(chem_id, position - 1, db_path=db_path)
    typer.echo(">> Ordem atualizada.")


# -----------------------
# remessas de importação
# -----------------------

import_app = typer.Typer(help="Remessas de importação.")
app.add_typer(import_app, name="import")


@import_app.command("add")
def cmd_import_add(
    chem_id: str = typer.Argument(..., help="Id do químico"),
    quantity: float = typer.Argument(..., help="Quantidade da remessa"),
    eta: Optional[str] = typer.Option(None, help="Previsão de chegada YYYY-MM-DD"),
    label: str = typer.Option("", help="Identificação da remessa"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Acrescenta uma remessa de importação."""
    with _domain_errors():
        chem = add_import(chem_id, quantity, eta=eta, label=label, db_path=db_path)
    typer.echo(f">> Remessa registrada ({len(chem.imports)} no total).")


@import_app.command("remove")
def cmd_import_remove(
    chem_id: str = typer.Argument(..., help="Id do químico"),
    position: int = typer.Argument(..., help="Posição da remessa (1 = primeira)"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Remove uma remessa de importação."""
    with _domain_errors():
        remove_import(chem_id, position - 1, db_path=db_path)
    typer.echo(">> Remessa removida.")


# -----------------------
# snapshots
# -----------------------

snap_app = typer.Typer(help="Snapshots diários do estoque.")
app.add_typer(snap_app, name="snapshot")


@snap_app.command("save")
def cmd_snapshot_save(
    snapshot_date: Optional[str] = typer.Option(None, "--date", help="Data YYYY-MM-DD (padrão: hoje)"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Grava o estado atual como snapshot."""
    with _domain_errors():
        saved = save_snapshot(snapshot_date, db_path=db_path)
    typer.echo(f">> Snapshot salvo: {saved}")


@snap_app.command("list")
def cmd_snapshot_list(db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite")):
    """Lista as datas dos snapshots (mais recente primeiro)."""
    dates = list_snapshot_dates(db_path=db_path)
    if not dates:
        typer.echo("Nenhum snapshot.")
        return
    for d in dates:
        typer.echo(d)


@snap_app.command("show")
def cmd_snapshot_show(
    snapshot_date: str = typer.Argument(..., help="Data YYYY-MM-DD"),
    as_json: bool = typer.Option(False, "--json", help="Saída em JSON"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Projeta um snapshot usando a data dele como referência."""
    with _domain_errors():
        view = project_snapshot(get_snapshot(snapshot_date, db_path=db_path))
    _render_view(view, f"Snapshot {snapshot_date}", as_json)


@snap_app.command("delete")
def cmd_snapshot_delete(
    snapshot_date: str = typer.Argument(..., help="Data YYYY-MM-DD"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Remove um snapshot."""
    with _domain_errors():
        delete_snapshot(snapshot_date, db_path=db_path)
    typer.echo(f">> Snapshot removido: {snapshot_date}")


# -----------------------
# configuração das linhas
# -----------------------

config_app = typer.Typer(help="Turnos por linha de produção.")
app.add_typer(config_app, name="config")


@config_app.command("show")
def cmd_config_show(
    as_json: bool = typer.Option(False, "--json", help="Saída em JSON"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Exibe os turnos de cada linha."""
    config = get_config(db_path=db_path)
    if as_json:
        _print_json(config)
        return
    table = Table(title="Linhas de produção", box=box.ROUNDED)
    table.add_column("Linha")
    table.add_column("Turnos", justify="right")
    for line, shifts in config.get("shifts", {}).items():
        table.add_row(str(line), str(shifts))
    console.print(table)


@config_app.command("set-shift")
def cmd_config_set_shift(
    line: str = typer.Argument(..., help="Linha de produção (ex.: EVA)"),
    shifts: int = typer.Argument(..., help="Número de turnos"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Define o número de turnos de uma linha."""
    with _domain_errors():
        set_shift(line, shifts, db_path=db_path)
    typer.echo(f">> {line}: {shifts} turnos")


# -----------------------
# planilha
# -----------------------

@app.command("load-sheet")
def cmd_load_sheet(
    path: str = typer.Argument(..., help="Caminho do XLSX de contagem de estoque"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Aplica uma planilha de contagem: atualiza pelo nome, cria os novos."""
    with _domain_errors(OSError):
        info = run_load_sheet(path, db_path=db_path)
    panel = [
        f"Linhas lidas: {info['linhas']}",
        f"Químicos criados: {info['created']}",
        f"Químicos atualizados: {info['updated']}",
        f"Linhas sem nome ignoradas: {info['skipped']}",
    ]
    console.print(Panel("\n".join(panel), title="Planilha de estoque"))


@app.command("seed")
def cmd_seed(
    path: str = typer.Argument(..., help="JSON com o documento de estoque (chemicals, config, snapshots)"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Carga inicial de um banco vazio a partir de um JSON exportado."""
    with _domain_errors(OSError):
        info = run_seed_file(path, db_path=db_path)
    typer.echo(f">> Carga inicial: {info['chemicals']} químicos e {info['snapshots']} snapshots.")


@app.command("export")
def cmd_export(
    out: Optional[str] = typer.Option(None, "--out", help="Arquivo de saída (padrão: imprime o JSON)"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Exporta o documento inteiro (químicos, configuração e snapshots) em JSON."""
    if out is None:
        _print_json(export_document(db_path=db_path))
        return
    with _domain_errors(OSError):
        info = run_export_file(out, db_path=db_path)
    typer.echo(f">> Exportados {info['chemicals']} químicos e {info['snapshots']} snapshots em: {out}")


def main():
    app()


if __name__ == "__main__":
    main()
