from pathlib import Path

import pytest

from stockestimate.infra import logger as log_mod


@pytest.fixture
def chemical_log(tmp_path: Path, monkeypatch):
    log_file = tmp_path / "chemicals.log"
    monkeypatch.setattr(log_mod, "ENABLE_LOGGING", True)
    monkeypatch.setattr(
        log_mod, "chemical_logger",
        log_mod.setup_logger("stockestimate.chemicals", str(log_file)),
    )
    monkeypatch.setitem(log_mod.LOG_FILES, "chemicals", log_file)
    yield log_file
    log_mod.setup_logger("stockestimate.chemicals", str(log_mod.LOGS_DIR / "chemicals.log"))


def test_log_chemical_writes_when_enabled(chemical_log: Path):
    log_mod.log_chemical("create", "chem_1", "Soda", use_per_day=10)
    for h in log_mod.chemical_logger.handlers:
        h.flush()
    text = chemical_log.read_text(encoding="utf-8")
    assert "CHEMICAL_CREATE" in text
    assert "Soda" in text
    assert "Soda" in log_mod.get_log_summary("chemicals")


def test_logging_disabled_by_default(tmp_path: Path):
    assert log_mod.ENABLE_LOGGING is False
    assert log_mod.get_log_summary("chemicals") is None
    log_mod.log_chemical("create", "chem_1")


def test_output_flag_also_enables_loggers(chemical_log: Path, monkeypatch):
    monkeypatch.setattr(log_mod, "ENABLE_LOGGING", False)
    monkeypatch.setattr(log_mod, "ENABLE_OUTPUT", True)
    log_mod.log_chemical("delete", "chem_2", "Acid")
    for h in log_mod.chemical_logger.handlers:
        h.flush()
    assert "CHEMICAL_DELETE" in chemical_log.read_text(encoding="utf-8")
