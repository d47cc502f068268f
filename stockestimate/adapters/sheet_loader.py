# stockestimate/adapters/sheet_loader.py
"""
Loader para a planilha (XLSX) de contagem de estoque de químicos.

Essas funções:
- leem a planilha usando pandas;
- normalizam cabeçalhos (acentos, variações, sinônimos);
- retornam listas de dicionários no formato antigo de químico
  (``import``/``importEta``), que a migração converte para o atual.

Observações:
- Quantidades são preservadas como texto; a conversão fica com a migração.
- Datas são normalizadas para ISO (YYYY-MM-DD) quando possível.
- Células vazias viram ``None`` (não sobrescrevem o cadastro).
"""

from __future__ import annotations

import re
from typing import Any, Dict, List, Optional

import pandas as pd

from stockestimate.domain.values import date_to_iso, parse_date


# ---------------------------
# utilitários de normalização
# ---------------------------

def _slug(s: str) -> str:
    """Normaliza cabeçalhos: minúsculas, sem acentos, sem não-alfanumérico."""
    if s is None:
        return ""
    s = str(s).strip().lower()
    acentos = dict(zip("áàâãäéèêëíìîïóòôõöúùûüç", "aaaaaeeeeiiiiooooouuuuc"))
    s = "".join(acentos.get(ch, ch) for ch in s)
    s = re.sub(r"[^a-z0-9]+", " ", s)
    return re.sub(r"\s+", " ", s).strip()


def _safe_get(row, key):
    """Lê um valor da linha tratando NA e texto vazio como ``None``."""
    val = row.get(key)
    if val is None or pd.isna(val):
        return None
    if isinstance(val, str) and not val.strip():
        return None
    return val.strip() if isinstance(val, str) else val


def _to_date_iso(val: Any) -> Optional[str]:
    """Converte valor para data ISO (YYYY-MM-DD) se possível."""
    if val is None:
        return None
    if isinstance(val, pd.Timestamp):
        return val.date().isoformat()
    d = parse_date(val)
    if d is not None:
        return date_to_iso(d)
    parsed = pd.to_datetime(str(val), dayfirst=True, errors="coerce")
    if pd.isna(parsed):
        return None
    return parsed.date().isoformat()


_ALIASES = {
    "name": "name",
    "chemical": "name",
    "chemical name": "name",
    "nome": "name",
    "produto": "name",
    "quimico": "name",

    "category": "category",
    "categoria": "category",

    "unit": "unit",
    "unidade": "unit",

    "factory stock": "factoryStock",
    "factory": "factoryStock",
    "stock": "factoryStock",
    "estoque": "factoryStock",
    "estoque fabrica": "factoryStock",

    "local purchase": "localPurchase",
    "local": "localPurchase",
    "compra local": "localPurchase",

    "use per day": "usePerDay",
    "usage per day": "usePerDay",
    "use day": "usePerDay",
    "consumo": "usePerDay",
    "consumo diario": "usePerDay",

    "import": "import",
    "import qty": "import",
    "import quantity": "import",
    "importacao": "import",

    "import eta": "importEta",
    "eta": "importEta",
    "previsao": "importEta",
    "previsao chegada": "importEta",

    "notes": "notes",
    "observacoes": "notes",
    "obs": "notes",
}


def _normalize_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Renomeia colunas com base em sinônimos/variações."""
    new_cols = {}
    for col in df.columns:
        key = _slug(col)
        new_cols[col] = _ALIASES.get(key, key)
    return df.rename(columns=new_cols)


# ---------------------------
# loader público (XLSX)
# ---------------------------

def rows_from_frame(df: pd.DataFrame) -> List[Dict[str, Any]]:
    """Converte um DataFrame já lido nas linhas de químico."""
    df = _normalize_columns(df)
    out: List[Dict[str, Any]] = []
    for _, row in df.iterrows():
        out.append({
            "name": _safe_get(row, "name"),
            "category": _safe_get(row, "category"),
            "unit": _safe_get(row, "unit"),
            "factoryStock": _safe_get(row, "factoryStock"),
            "localPurchase": _safe_get(row, "localPurchase"),
            "usePerDay": _safe_get(row, "usePerDay"),
            "import": _safe_get(row, "import"),
            "importEta": _to_date_iso(_safe_get(row, "importEta")),
            "notes": _safe_get(row, "notes"),
        })
    return out


def load_stock_sheet(path: str) -> List[Dict[str, Any]]:
    """Lê o XLSX de contagem de estoque.

    Campos de saída (chaves do dict por linha):
      - name: str | None
      - category, unit, notes: str | None
      - factoryStock, localPurchase, usePerDay, import: str | None
      - importEta: ISO date | None
    """
    df = pd.read_excel(path, dtype="string")
    return rows_from_frame(df)
