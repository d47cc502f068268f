# stockestimate/domain/models.py
"""
Modelos (dataclasses) do domínio.

Observação importante:
- O documento persistido usa dicionários com chaves camelCase; as
  dataclasses são a forma tipada usada pelo motor de projeção.
- ``to_dict`` devolve o formato persistido (ou, para os derivados, o
  formato de saída JSON da CLI).
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import date
from typing import Any, Dict, List, Optional

from stockestimate.config import DEFAULTS
from stockestimate.domain.values import date_to_iso, is_unbounded


# Day metric of a chemical without consumption
UNBOUNDED = float("inf")

# Status values, most urgent first
CRITICAL = "critical"
WARNING = "warning"
LOW = "low"
OK = "ok"
STATUSES = (CRITICAL, WARNING, LOW, OK)

# Timeline segment kinds
IMMEDIATE_STOCK = "immediate-stock"
IMPORT = "import"
GAP = "gap"


def _num(x: float) -> Any:
    """Grava inteiros sem ``.0`` no JSON."""
    return int(x) if float(x).is_integer() else x


def _metric(x: float) -> Optional[float]:
    """JSON não tem infinito: a métrica ilimitada sai como ``null``."""
    return None if is_unbounded(x) else x


@dataclass
class ImportShipment:
    """Remessa de importação pendente."""
    quantity: float = 0.0
    estimated_arrival: Optional[date] = None  # None: ordem de chegada indefinida
    label: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "qty": _num(self.quantity),
            "eta": date_to_iso(self.estimated_arrival),
            "label": self.label,
        }


@dataclass
class ChemicalFields:
    id: str = ""
    name: str = ""
    category: str = DEFAULTS.category
    unit: str = DEFAULTS.unit
    factory_stock: float = 0.0
    local_purchase: float = 0.0
    use_per_day: float = 0.0              # 0 = consumo não acompanhado
    notes: str = ""
    last_updated: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)  # chaves desconhecidas, preservadas

    def _base_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = dict(self.extra)
        out.update(
            {
                "id": self.id,
                "name": self.name,
                "category": self.category,
                "factoryStock": _num(self.factory_stock),
                "localPurchase": _num(self.local_purchase),
                "usePerDay": _num(self.use_per_day),
                "unit": self.unit,
                "notes": self.notes,
            }
        )
        if self.last_updated is not None:
            out["lastUpdated"] = self.last_updated
        return out


@dataclass
class LegacyChemicalRecord(ChemicalFields):
    """Formato antigo: uma única importação escalar (``import``/``importEta``)."""
    import_quantity: float = 0.0
    import_eta: Optional[date] = None

    def to_dict(self) -> Dict[str, Any]:
        out = self._base_dict()
        out["import"] = _num(self.import_quantity)
        out["importEta"] = date_to_iso(self.import_eta)
        return out


@dataclass
class ChemicalRecord(ChemicalFields):
    """Cadastro atual de um químico, com várias importações."""
    imports: List[ImportShipment] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        out = self._base_dict()
        out["imports"] = [i.to_dict() for i in self.imports]
        return out


@dataclass
class TimelineSegment:
    """Trecho contíguo da linha do tempo, em dias a partir da data de referência."""
    kind: str
    start_day: float
    end_day: float
    quantity: float
    label: str = ""
    estimated_arrival: Optional[date] = None

    @property
    def duration_days(self) -> float:
        return self.end_day - self.start_day

    def to_dict(self) -> Dict[str, Any]:
        out = {
            "type": self.kind,
            "label": self.label,
            "startDay": self.start_day,
            "endDay": self.end_day,
            "days": self.duration_days,
            "qty": self.quantity,
        }
        if self.kind == IMPORT:
            out["eta"] = date_to_iso(self.estimated_arrival)
        return out


@dataclass
class DerivedChemical(ChemicalRecord):
    """Visão derivada de um químico; reconstruída a cada cálculo, nunca persistida."""
    total_import_quantity: float = 0.0
    total_quantity: float = 0.0
    immediate_quantity: float = 0.0
    immediate_days_remaining: float = UNBOUNDED
    total_days_remaining: float = UNBOUNDED
    total_months_remaining: float = UNBOUNDED
    status: str = OK
    gap_days: float = 0.0
    gap_quantity: float = 0.0
    timeline: List[TimelineSegment] = field(default_factory=list)
    timeline_end_day: float = 0.0

    @classmethod
    def from_record(cls, record: ChemicalRecord, **derived: Any) -> "DerivedChemical":
        base = {f.name: getattr(record, f.name) for f in fields(ChemicalRecord)}
        return cls(**base, **derived)

    def to_dict(self) -> Dict[str, Any]:
        out = super().to_dict()
        out.update(
            {
                "totalImport": self.total_import_quantity,
                "total": self.total_quantity,
                "immediateStock": self.immediate_quantity,
                "immediateDays": _metric(self.immediate_days_remaining),
                "totalDays": _metric(self.total_days_remaining),
                "totalMonths": _metric(self.total_months_remaining),
                "status": self.status,
                "gapDays": self.gap_days,
                "gapQty": self.gap_quantity,
                "timeline": [s.to_dict() for s in self.timeline],
                "timelineEndDay": self.timeline_end_day,
            }
        )
        return out


@dataclass
class PortfolioSummary:
    total: int = 0
    critical: int = 0
    warning: int = 0
    low: int = 0
    ok: int = 0
    with_gaps: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "total": self.total,
            "critical": self.critical,
            "warning": self.warning,
            "low": self.low,
            "ok": self.ok,
            "withGaps": self.with_gaps,
        }


@dataclass
class PortfolioView:
    """Resultado do agregador; listas na ordem de entrada."""
    chemicals: List[DerivedChemical] = field(default_factory=list)
    summary: PortfolioSummary = field(default_factory=PortfolioSummary)
    critical_items: List[DerivedChemical] = field(default_factory=list)
    warning_items: List[DerivedChemical] = field(default_factory=list)
    gap_items: List[DerivedChemical] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "chemicals": [c.to_dict() for c in self.chemicals],
            "summary": self.summary.to_dict(),
            "criticalItems": [c.id for c in self.critical_items],
            "warningItems": [c.id for c in self.warning_items],
            "gapItems": [c.id for c in self.gap_items],
        }
