# stockestimate/adapters/formatting.py
"""
Formatação dos resultados da projeção para exibição na CLI.

Trata a métrica ilimitada dos químicos sem consumo, exibida como ``"—"``.
"""

from __future__ import annotations

from datetime import date
from typing import Optional

from stockestimate.domain.values import format_quantity, is_unbounded

__all__ = ["UNBOUNDED_TEXT", "format_days", "format_quantity", "format_short_date"]

UNBOUNDED_TEXT = "—"


def format_days(value: float, digits: int = 1) -> str:
    """Formata dias (ou meses) com ``digits`` casas; ilimitado vira ``"—"``."""
    if is_unbounded(value):
        return UNBOUNDED_TEXT
    return f"{value:.{digits}f}"


def format_short_date(d: Optional[date]) -> str:
    """``date(2025, 3, 5)`` → ``"Mar 5"``."""
    if d is None:
        return UNBOUNDED_TEXT
    return f"{d:%b} {d.day}"
