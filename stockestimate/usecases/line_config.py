# stockestimate/usecases/line_config.py
"""UC: turnos por linha de produção (seção ``config`` do documento)."""
from __future__ import annotations

from typing import Any, Dict

from stockestimate.config import DB_PATH
from stockestimate.infra.logger import log_transaction
from stockestimate.infra.repositories import StockRepo


def get_config(db_path: str = DB_PATH) -> Dict[str, Any]:
    return StockRepo(db_path).config()


def set_shift(line: str, shifts: int, db_path: str = DB_PATH) -> Dict[str, Any]:
    """Define o número de turnos de uma linha (cria a linha se não existir)."""
    line = (line or "").strip()
    if not line:
        raise ValueError("informe a linha de produção")
    if shifts < 0:
        raise ValueError("o número de turnos não pode ser negativo")
    with StockRepo(db_path).transaction() as doc:
        doc["config"]["shifts"][line] = int(shifts)
        config = dict(doc["config"])
    log_transaction("set_shift", {"line": line, "shifts": shifts}, result=config["shifts"])
    return config
