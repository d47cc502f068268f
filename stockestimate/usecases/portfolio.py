# stockestimate/usecases/portfolio.py
"""
Caso de uso: projeção do portfólio de químicos (dashboard).

Fluxo:
1) Projeta cada químico com a mesma data de referência, na ordem de
   entrada (a ordem é a prioridade definida pelo usuário).
2) Conta os itens por status e com lacuna de abastecimento.
3) Separa listas de críticos, em alerta e com lacuna, sem reordenar.

Ordenação por urgência, alertas e recomendações de compra são funções de
visualização aplicadas sobre o resultado, nunca dentro do agregador.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional

from stockestimate.adapters.formatting import format_days, format_quantity
from stockestimate.config import DB_PATH
from stockestimate.domain.migration import AnyChemical
from stockestimate.domain.models import (
    CRITICAL,
    LOW,
    OK,
    WARNING,
    DerivedChemical,
    PortfolioSummary,
    PortfolioView,
)
from stockestimate.domain.policies import purchase_quantity
from stockestimate.domain.timeline import active_shipments, project_chemical, resolve_reference_date
from stockestimate.infra.logger import log_system_event
from stockestimate.infra.repositories import StockRepo


def project_all(records: Iterable[AnyChemical], reference_date: Optional[Any] = None) -> PortfolioView:
    """Projeta todos os químicos e monta o resumo do portfólio.

    Args:
        records: Químicos (registros, variantes antigas ou dicts persistidos).
        reference_date: Dia 0 comum a todas as linhas do tempo; hoje se omitido.

    Returns:
        :class:`PortfolioView` com as listas na ordem de entrada.
    """
    ref = resolve_reference_date(reference_date)
    chemicals = [project_chemical(r, ref) for r in records]

    critical = [c for c in chemicals if c.status == CRITICAL]
    warning = [c for c in chemicals if c.status == WARNING]
    with_gaps = [c for c in chemicals if c.gap_days > 0]

    summary = PortfolioSummary(
        total=len(chemicals),
        critical=len(critical),
        warning=len(warning),
        low=sum(1 for c in chemicals if c.status == LOW),
        ok=sum(1 for c in chemicals if c.status == OK),
        with_gaps=len(with_gaps),
    )
    return PortfolioView(
        chemicals=chemicals,
        summary=summary,
        critical_items=critical,
        warning_items=warning,
        gap_items=with_gaps,
    )


# ----------------------
# visões sobre o resultado
# ----------------------

def sort_by_urgency(items: Iterable[DerivedChemical]) -> List[DerivedChemical]:
    """Menos dias de estoque imediato primeiro; empates mantêm a ordem."""
    return sorted(items, key=lambda c: c.immediate_days_remaining)


def filter_chemicals(items: Iterable[DerivedChemical], search: Optional[str]) -> List[DerivedChemical]:
    """Filtra por trecho do nome, categoria ou observações (sem diferenciar maiúsculas)."""
    items = list(items)
    q = (search or "").strip().lower()
    if not q:
        return items
    return [
        c for c in items
        if q in c.name.lower() or q in c.category.lower() or q in (c.notes or "").lower()
    ]


def arrival_dates(chem: DerivedChemical) -> list:
    """Datas de chegada conhecidas, em ordem crescente."""
    return sorted(i.estimated_arrival for i in active_shipments(chem.imports) if i.estimated_arrival)


@dataclass
class Alert:
    level: str          # 'critical' | 'warning' | 'info'
    chemical: DerivedChemical
    message: str
    detail: str = ""


def _gap_text(c: DerivedChemical) -> str:
    return f"Gap of {format_days(c.gap_days)} days (need {format_quantity(purchase_quantity(c.gap_quantity))} {c.unit})"


def _stock_detail(c: DerivedChemical) -> str:
    detail = (
        f"Uses {format_quantity(c.use_per_day)} {c.unit}/day, "
        f"total stock covers {format_days(c.total_days_remaining)} days"
    )
    if c.gap_days > 0:
        detail += f"; {_gap_text(c)}"
    return detail


def build_alerts(view: PortfolioView) -> List[Alert]:
    """Alertas de compra: críticos, depois em alerta, depois lacunas restantes."""
    alerts: List[Alert] = []
    for c in view.critical_items:
        alerts.append(Alert(
            CRITICAL, c,
            f"{c.name}: only {format_days(c.immediate_days_remaining)} days of factory stock remaining "
            f"({format_quantity(c.immediate_quantity)} {c.unit})",
            _stock_detail(c),
        ))
    for c in view.warning_items:
        alerts.append(Alert(
            WARNING, c,
            f"{c.name}: {format_days(c.immediate_days_remaining)} days of factory stock "
            f"({format_quantity(c.immediate_quantity)} {c.unit})",
            _stock_detail(c),
        ))
    for c in view.gap_items:
        if c.status in (CRITICAL, WARNING):
            continue
        alerts.append(Alert(
            "info", c,
            f"{c.name}: supply gap of {format_days(c.gap_days)} days",
            f"Need {format_quantity(purchase_quantity(c.gap_quantity))} {c.unit} local purchase to bridge the gap",
        ))
    return alerts


@dataclass
class ProcurementRecommendation:
    chemical_id: str
    name: str
    unit: str
    immediate_days: float
    gap_days: float
    gap_quantity: float
    quantity_needed: float
    arrival_dates: list = field(default_factory=list)
    action: str = "Local Purchase"


def procurement_recommendations(view: PortfolioView, order_multiple: Optional[float] = None) -> List[ProcurementRecommendation]:
    """Uma recomendação de compra local por item com lacuna.

    Ordenadas pela urgência (menos dias de estoque imediato primeiro).
    ``quantity_needed`` é a lacuna arredondada para cima e, se informado,
    para o múltiplo de pedido.
    """
    return [
        ProcurementRecommendation(
            chemical_id=c.id,
            name=c.name,
            unit=c.unit,
            immediate_days=c.immediate_days_remaining,
            gap_days=c.gap_days,
            gap_quantity=c.gap_quantity,
            quantity_needed=purchase_quantity(c.gap_quantity, order_multiple),
            arrival_dates=arrival_dates(c),
        )
        for c in sort_by_urgency(view.gap_items)
    ]


def run_dashboard(db_path: str = DB_PATH, reference_date: Optional[Any] = None) -> PortfolioView:
    """Lê o documento e projeta os químicos atuais."""
    chemicals = StockRepo(db_path).chemicals()
    view = project_all(chemicals, reference_date)
    log_system_event("dashboard", {"summary": view.summary.to_dict()})
    return view
