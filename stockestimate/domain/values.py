# stockestimate/domain/values.py
"""
Conversão tolerante de números e datas do domínio.

Documentos persistidos e planilhas trazem números e datas em vários
formatos: números reais, strings com vírgula ou ponto decimal, strings
vazias, ``None``, datas ISO, timestamps com horário ou datas digitadas
no formato dia/mês/ano. As funções abaixo convertem esses valores em
``float`` e datas de calendário sem lançar exceções, usando um valor
padrão quando necessário.
"""

from __future__ import annotations

import math
import re
from datetime import date, datetime
from typing import Any, Optional

_NUM_RE = re.compile(r"[-+]?\d+(?:[.,]\d+)?")


def to_float(val: Any, default: float = 0.0) -> float:
    """Converte um valor qualquer em ``float``.

    Aceita números e strings como ``"12"``, ``"12.5"`` ou ``"12,5"``.
    Valores ausentes, vazios, não numéricos ou ``NaN`` retornam ``default``.

    Exemplos:
        ``"30"``   → 30.0
        ``"2,5"``  → 2.5
        ``None``   → 0.0
        ``"abc"``  → 0.0
    """
    if val is None or isinstance(val, bool):
        return default
    if isinstance(val, (int, float)):
        num = float(val)
        return default if math.isnan(num) else num
    s = str(val).strip()
    if not s:
        return default
    try:
        num = float(s)
    except ValueError:
        m = _NUM_RE.fullmatch(s.replace(" ", ""))
        if not m:
            return default
        num = float(m.group(0).replace(",", "."))
    return default if math.isnan(num) else num


def parse_date(val: Any) -> Optional[date]:
    """Interpreta ``val`` como data de calendário (sem horário).

    Timestamps são truncados para o dia, então ``"2025-03-05T18:30:00"``
    e ``"2025-03-05"`` representam a mesma data. Também aceita
    ``DD/MM/YYYY``. Retorna ``None`` quando não for possível interpretar.
    """
    if val is None:
        return None
    if isinstance(val, datetime):
        return val.date()
    if isinstance(val, date):
        return val
    s = str(val).strip()
    if not s:
        return None
    try:
        return date.fromisoformat(s[:10])
    except ValueError:
        pass
    for fmt in ("%d/%m/%Y", "%d-%m-%Y", "%d/%m/%y"):
        try:
            return datetime.strptime(s, fmt).date()
        except ValueError:
            continue
    return None


def date_to_iso(d: Optional[date]) -> Optional[str]:
    return d.isoformat() if d is not None else None


def is_unbounded(value: Any) -> bool:
    """True para a métrica "sem limite" de químicos sem consumo."""
    return isinstance(value, float) and math.isinf(value) and value > 0


def format_quantity(value: float) -> str:
    """``1500`` → ``"1,500"``; ``1500.25`` → ``"1,500.25"``."""
    if float(value).is_integer():
        return f"{int(value):,}"
    return f"{value:,.2f}".rstrip("0").rstrip(".")
