import json
import re
from datetime import date
from io import StringIO
from pathlib import Path

from rich.console import Console
from typer.testing import CliRunner

from stockestimate.adapters.cli import _timeline_table, app
from stockestimate.domain.timeline import project_chemical
from stockestimate.usecases.chemicals import list_chemicals

runner = CliRunner()


def _add(db: str, name: str, *extra: str) -> str:
    result = runner.invoke(app, ["chemical", "add", name, "--db", db, *extra])
    assert result.exit_code == 0, result.output
    return re.search(r"chem_\w+", result.stdout).group(0)


def test_cli_migrate(tmp_path: Path):
    db = str(tmp_path / "cli.sqlite")
    result = runner.invoke(app, ["migrate", "--db", db])
    assert result.exit_code == 0, result.output
    assert "Migrações aplicadas" in result.stdout


def test_cli_dashboard_json(tmp_path: Path):
    db = str(tmp_path / "cli.sqlite")
    _add(db, "Soda", "--factory", "30", "--use", "10")
    _add(db, "Idle", "--factory", "5")

    result = runner.invoke(app, ["dashboard", "--json", "--date", "2025-03-01", "--db", db])
    assert result.exit_code == 0, result.output
    data = json.loads(result.stdout)
    assert data["summary"]["total"] == 2
    assert data["summary"]["critical"] == 1
    assert data["chemicals"][0]["immediateDays"] == 3.0
    assert data["chemicals"][1]["immediateDays"] is None


def test_cli_dashboard_tables(tmp_path: Path):
    db = str(tmp_path / "cli.sqlite")
    _add(db, "Soda", "--factory", "30", "--use", "10")
    result = runner.invoke(app, ["dashboard", "--db", db])
    assert result.exit_code == 0, result.output
    assert "CRITICAL" in result.stdout


def test_cli_import_and_timeline(tmp_path: Path):
    db = str(tmp_path / "cli.sqlite")
    chem_id = _add(db, "Soda", "--factory", "30", "--use", "10")

    result = runner.invoke(app, ["import", "add", chem_id, "100", "--eta", "2025-03-06", "--db", db])
    assert result.exit_code == 0, result.output

    result = runner.invoke(app, ["timeline", "soda", "--json", "--date", "2025-03-01", "--db", db])
    assert result.exit_code == 0, result.output
    data = json.loads(result.stdout)
    assert [s["type"] for s in data["timeline"]] == ["immediate-stock", "gap", "import"]
    assert data["gapDays"] == 2.0

    result = runner.invoke(app, ["import", "remove", chem_id, "1", "--db", db])
    assert result.exit_code == 0, result.output
    assert list_chemicals(db)[0].imports == []


def test_cli_edit_reorder_delete(tmp_path: Path):
    db = str(tmp_path / "cli.sqlite")
    a = _add(db, "A")
    b = _add(db, "B")

    result = runner.invoke(app, ["chemical", "edit", a, "--use", "4", "--db", db])
    assert result.exit_code == 0, result.output
    assert list_chemicals(db)[0].use_per_day == 4

    result = runner.invoke(app, ["chemical", "reorder", b, a, "--db", db])
    assert result.exit_code == 0, result.output
    assert [c.name for c in list_chemicals(db)] == ["B", "A"]

    result = runner.invoke(app, ["chemical", "delete", b, "--db", db])
    assert result.exit_code == 0, result.output
    assert [c.name for c in list_chemicals(db)] == ["A"]


def test_cli_domain_errors_exit_1(tmp_path: Path):
    db = str(tmp_path / "cli.sqlite")
    result = runner.invoke(app, ["chemical", "add", "  ", "--db", db])
    assert result.exit_code == 1
    assert "Erro" in result.stdout

    result = runner.invoke(app, ["chemical", "delete", "missing", "--db", db])
    assert result.exit_code == 1

    result = runner.invoke(app, ["snapshot", "save", "--date", "03/01/2025", "--db", db])
    assert result.exit_code == 1


def test_cli_snapshots(tmp_path: Path):
    db = str(tmp_path / "cli.sqlite")
    _add(db, "Soda", "--factory", "30", "--use", "10")
    for d in ("2025-03-01", "2025-03-02"):
        result = runner.invoke(app, ["snapshot", "save", "--date", d, "--db", db])
        assert result.exit_code == 0, result.output

    result = runner.invoke(app, ["snapshot", "list", "--db", db])
    assert result.stdout.split() == ["2025-03-02", "2025-03-01"]

    result = runner.invoke(app, ["snapshot", "show", "2025-03-01", "--json", "--db", db])
    assert result.exit_code == 0, result.output
    assert json.loads(result.stdout)["summary"]["critical"] == 1

    result = runner.invoke(app, ["snapshot", "delete", "2025-03-01", "--db", db])
    assert result.exit_code == 0, result.output
    result = runner.invoke(app, ["snapshot", "show", "2025-03-01", "--db", db])
    assert result.exit_code == 1


def test_cli_config(tmp_path: Path):
    db = str(tmp_path / "cli.sqlite")
    result = runner.invoke(app, ["config", "set-shift", "EVA", "3", "--db", db])
    assert result.exit_code == 0, result.output

    result = runner.invoke(app, ["config", "show", "--json", "--db", db])
    assert json.loads(result.stdout)["shifts"] == {"EVA": 3, "EVR": 2}


def test_cli_inventory_sort_and_search(tmp_path: Path):
    db = str(tmp_path / "cli.sqlite")
    _add(db, "Alpha", "--factory", "100", "--use", "1")
    _add(db, "Bravo", "--factory", "1", "--use", "1")

    result = runner.invoke(app, ["inventory", "--sort", "urgency", "--db", db])
    assert result.exit_code == 0, result.output
    assert result.stdout.index("Bravo") < result.stdout.index("Alpha")

    result = runner.invoke(app, ["inventory", "--search", "alp", "--db", db])
    assert "Alpha" in result.stdout and "Bravo" not in result.stdout

    result = runner.invoke(app, ["inventory", "--sort", "name", "--db", db])
    assert result.exit_code == 1


def test_cli_bad_reference_date_exits_1(tmp_path: Path):
    db = str(tmp_path / "cli.sqlite")
    _add(db, "Soda", "--factory", "30", "--use", "10")
    for cmd in (["timeline", "Soda"], ["dashboard"], ["dashboard", "--json"], ["inventory"]):
        result = runner.invoke(app, [*cmd, "--date", "2025-13-45", "--db", db])
        assert result.exit_code == 1, cmd
        assert "Erro" in result.stdout


def test_cli_timeline_shows_calendar_dates(tmp_path: Path):
    db = str(tmp_path / "cli.sqlite")
    chem_id = _add(db, "Soda", "--factory", "30", "--use", "10")
    runner.invoke(app, ["import", "add", chem_id, "100", "--eta", "2025-03-06", "--db", db])

    result = runner.invoke(app, ["timeline", "Soda", "--date", "2025-03-01", "--db", db])
    assert result.exit_code == 0, result.output
    assert "(2025-03-16)" in result.stdout


def test_timeline_table_has_from_and_to_dates():
    ref = date(2025, 3, 1)
    chem = project_chemical(
        {"id": "x", "name": "Soda", "factoryStock": 30, "usePerDay": 10, "imports": [{"qty": 100, "eta": "2025-03-06"}]},
        ref,
    )
    out = Console(file=StringIO(), width=200)
    out.print(_timeline_table(chem, ref))
    text = out.file.getvalue()
    assert "From" in text and "To" in text
    for d in ("2025-03-01", "2025-03-04", "2025-03-06", "2025-03-16"):
        assert d in text


def test_cli_import_with_bad_eta_exits_1(tmp_path: Path):
    db = str(tmp_path / "cli.sqlite")
    chem_id = _add(db, "Soda")
    result = runner.invoke(app, ["import", "add", chem_id, "100", "--eta", "2025-14-06", "--db", db])
    assert result.exit_code == 1
    assert list_chemicals(db)[0].imports == []


def test_cli_load_sheet_missing_file_exits_1(tmp_path: Path):
    db = str(tmp_path / "cli.sqlite")
    result = runner.invoke(app, ["load-sheet", str(tmp_path / "nope.xlsx"), "--db", db])
    assert result.exit_code == 1
    assert "Erro" in result.stdout
    assert not isinstance(result.exception, FileNotFoundError)


def test_cli_export_and_seed(tmp_path: Path):
    db = str(tmp_path / "cli.sqlite")
    _add(db, "Soda", "--factory", "30", "--use", "10")
    runner.invoke(app, ["snapshot", "save", "--date", "2025-03-01", "--db", db])

    result = runner.invoke(app, ["export", "--db", db])
    assert result.exit_code == 0, result.output
    assert [c["name"] for c in json.loads(result.stdout)["chemicals"]] == ["Soda"]

    out = tmp_path / "stock-data.json"
    result = runner.invoke(app, ["export", "--out", str(out), "--db", db])
    assert result.exit_code == 0, result.output

    other = str(tmp_path / "other.sqlite")
    result = runner.invoke(app, ["seed", str(out), "--db", other])
    assert result.exit_code == 0, result.output
    assert "1 químicos e 1 snapshots" in result.stdout
    assert [c.name for c in list_chemicals(other)] == ["Soda"]

    # a second seed onto a populated database is refused
    result = runner.invoke(app, ["seed", str(out), "--db", other])
    assert result.exit_code == 1
    assert "Erro" in result.stdout

    result = runner.invoke(app, ["seed", str(tmp_path / "missing.json"), "--db", db])
    assert result.exit_code == 1
