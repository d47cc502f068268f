# stockestimate/domain/migration.py
"""
Migração de registros de químicos do formato antigo para o atual.

Formato antigo: uma única importação escalar (``import`` + ``importEta``)
e unidade ``"kg"``. Formato atual: coleção ``imports`` de remessas e
unidade ``"bags"``.

A decisão "antigo ou atual" é tomada em um único lugar
(:func:`decode_chemical`), na fronteira com o armazenamento; o restante
do sistema trabalha apenas com :class:`ChemicalRecord`.

Regras:
- Se o registro já tem ``imports`` (mesmo vazio), ele é atual: apenas a
  unidade é normalizada.
- Caso contrário, ``imports`` recebe uma remessa com a quantidade antiga,
  somente se ela for positiva; os campos antigos são removidos.
- Nunca lança exceção: campos ausentes ou malformados viram ``0``,
  ``None`` ou ``"bags"``.
"""

from __future__ import annotations

from dataclasses import fields, replace
from typing import Any, Dict, List, Mapping, Tuple, Union

from stockestimate.config import DEFAULTS
from stockestimate.domain.models import (
    ChemicalRecord,
    ImportShipment,
    LegacyChemicalRecord,
    ChemicalFields,
)
from stockestimate.domain.values import parse_date, to_float

AnyChemical = Union[ChemicalRecord, LegacyChemicalRecord, Mapping[str, Any]]

_LEGACY_UNITS = {"kg": "bags"}

_KNOWN_KEYS = {
    "id", "name", "category", "unit", "factoryStock", "localPurchase",
    "usePerDay", "notes", "lastUpdated", "imports", "import", "importEta",
}


def normalize_unit(unit: Any) -> str:
    """``"kg"`` → ``"bags"``; vazio → ``"bags"``; demais valores inalterados."""
    u = str(unit).strip() if unit is not None else ""
    if not u:
        return DEFAULTS.unit
    return _LEGACY_UNITS.get(u, u)


def _pick(raw: Mapping[str, Any], *keys: str) -> Any:
    for k in keys:
        if k in raw:
            return raw[k]
    return None


def decode_shipment(raw: Mapping[str, Any]) -> ImportShipment:
    return ImportShipment(
        quantity=to_float(_pick(raw, "qty", "quantity")),
        estimated_arrival=parse_date(_pick(raw, "eta", "estimatedArrival")),
        label=str(raw.get("label") or ""),
    )


def _decode_base(raw: Mapping[str, Any]) -> Dict[str, Any]:
    last = raw.get("lastUpdated")
    return {
        "id": str(raw.get("id") or ""),
        "name": str(raw.get("name") or ""),
        "category": str(raw.get("category") or DEFAULTS.category),
        "unit": str(raw.get("unit") or DEFAULTS.unit),
        "factory_stock": to_float(raw.get("factoryStock")),
        "local_purchase": to_float(raw.get("localPurchase")),
        "use_per_day": to_float(raw.get("usePerDay")),
        "notes": str(raw.get("notes") or ""),
        "last_updated": str(last) if last else None,
        "extra": {k: v for k, v in raw.items() if k not in _KNOWN_KEYS},
    }


def decode_chemical(raw: Mapping[str, Any]) -> Union[ChemicalRecord, LegacyChemicalRecord]:
    """Decodifica um químico persistido na variante correspondente."""
    base = _decode_base(raw)
    if "imports" in raw:
        imports = [decode_shipment(i) for i in (raw.get("imports") or []) if isinstance(i, Mapping)]
        return ChemicalRecord(**base, imports=imports)
    return LegacyChemicalRecord(
        **base,
        import_quantity=to_float(raw.get("import")),
        import_eta=parse_date(raw.get("importEta")),
    )


def migrate(record: AnyChemical) -> ChemicalRecord:
    """Converte qualquer variante em um novo :class:`ChemicalRecord`.

    Idempotente: ``migrate(migrate(x)) == migrate(x)``. O argumento não é
    modificado.
    """
    if isinstance(record, Mapping):
        record = decode_chemical(record)

    base = {f.name: getattr(record, f.name) for f in fields(ChemicalFields)}
    base["extra"] = dict(record.extra)
    base["unit"] = normalize_unit(record.unit)

    if isinstance(record, LegacyChemicalRecord):
        imports: List[ImportShipment] = []
        if record.import_quantity > 0:
            imports.append(ImportShipment(record.import_quantity, record.import_eta, ""))
        return ChemicalRecord(**base, imports=imports)

    return ChemicalRecord(**base, imports=[replace(i) for i in record.imports])


def migrate_chemicals(raw_list: Any) -> List[Dict[str, Any]]:
    """Migra uma lista persistida; entradas que não são objetos são descartadas."""
    return [migrate(c).to_dict() for c in (raw_list or []) if isinstance(c, Mapping)]


def migrate_document(data: Mapping[str, Any]) -> Tuple[Dict[str, Any], bool]:
    """Migra os químicos atuais e os de cada snapshot.

    Returns:
        ``(documento_migrado, mudou)``; ``mudou`` indica se algo precisa
        ser regravado.
    """
    out: Dict[str, Any] = dict(data)
    changed = False

    if "chemicals" in out:
        migrated = migrate_chemicals(out["chemicals"])
        changed = changed or migrated != out["chemicals"]
        out["chemicals"] = migrated

    if "snapshots" in out:
        snaps = []
        for s in out["snapshots"] or []:
            if not isinstance(s, Mapping):
                changed = True
                continue
            snap = dict(s)
            if "chemicals" in snap:
                migrated = migrate_chemicals(snap["chemicals"])
                changed = changed or migrated != snap["chemicals"]
                snap["chemicals"] = migrated
            snaps.append(snap)
        out["snapshots"] = snaps

    return out, changed
