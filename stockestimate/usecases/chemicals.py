# stockestimate/usecases/chemicals.py
"""
UC: Cadastro de químicos (criar, editar, remover, reordenar) e remessas.

Todas as operações fazem um ciclo leitura-alteração-gravação atômico no
documento de estoque (``StockRepo.transaction``) e carimbam
``lastUpdated`` no químico alterado.

Obs.:
- O nome é obrigatório e gravado sem espaços nas pontas.
- Remessas com quantidade <= 0 são descartadas ao salvar o formulário
  (o motor já as ignora; aqui elas nem chegam a ser gravadas).
- A ordem da lista é a prioridade de exibição definida pelo usuário.
"""
from __future__ import annotations

import secrets
import string
import time
from dataclasses import replace
from datetime import date
from typing import Any, Dict, List, Mapping, Optional, Sequence

from stockestimate.adapters.sheet_loader import load_stock_sheet
from stockestimate.config import DB_PATH, DEFAULTS
from stockestimate.domain.migration import decode_shipment, migrate, normalize_unit
from stockestimate.domain.models import ChemicalRecord, ImportShipment
from stockestimate.domain.values import parse_date, to_float
from stockestimate.infra.logger import (
    log_chemical, log_file_operation, log_system_event, log_transaction,
)
from stockestimate.infra.repositories import StockRepo


class InvalidChemicalError(ValueError):
    """Dados de químico inválidos (nome vazio, reordenação inconsistente...)."""


class ChemicalNotFoundError(LookupError):
    """Nenhum químico com o id informado."""


_B36 = string.digits + string.ascii_lowercase

_NUMERIC_FIELDS = {"factory_stock", "local_purchase", "use_per_day"}
_TEXT_FIELDS = {"name", "category", "unit", "notes"}


def _base36(n: int) -> str:
    out = ""
    while True:
        n, r = divmod(n, 36)
        out = _B36[r] + out
        if n == 0:
            return out


def new_chemical_id() -> str:
    """``chem_<milissegundos em base 36>_<5 caracteres aleatórios>``."""
    suffix = "".join(secrets.choice(_B36) for _ in range(5))
    return f"chem_{_base36(int(time.time() * 1000))}_{suffix}"


def _today_iso() -> str:
    return date.today().isoformat()


def empty_chemical() -> ChemicalRecord:
    """Modelo vazio para um químico novo, já com id."""
    return ChemicalRecord(
        id=new_chemical_id(),
        name="",
        category=DEFAULTS.category,
        unit=DEFAULTS.unit,
        last_updated=_today_iso(),
    )


def _parse_eta(eta: Any) -> Optional[date]:
    """Previsão em branco = sem data; valor que não é data é recusado."""
    if eta is None or (isinstance(eta, str) and not eta.strip()):
        return None
    d = parse_date(eta)
    if d is None:
        raise InvalidChemicalError(f"previsão de chegada inválida: {eta!r}")
    return d


def _as_shipment(item: Any) -> ImportShipment:
    if isinstance(item, ImportShipment):
        return replace(item)
    if isinstance(item, Mapping):
        eta = item["eta"] if "eta" in item else item.get("estimatedArrival")
        return replace(decode_shipment(item), estimated_arrival=_parse_eta(eta))
    raise InvalidChemicalError(f"remessa inválida: {item!r}")


def _clean_name(name: Any) -> str:
    n = str(name or "").strip()
    if not n:
        raise InvalidChemicalError("Chemical name is required")
    return n


def _index_of(chemicals: List[Dict[str, Any]], chem_id: str) -> int:
    for idx, c in enumerate(chemicals):
        if c.get("id") == chem_id:
            return idx
    raise ChemicalNotFoundError(f"químico não encontrado: {chem_id}")


def _finalize(chem: ChemicalRecord) -> ChemicalRecord:
    """Regras do formulário ao salvar: nome aparado, remessas vazias fora, data."""
    chem.name = _clean_name(chem.name)
    chem.unit = normalize_unit(chem.unit)
    chem.imports = [i for i in chem.imports if i.quantity > 0]
    chem.last_updated = _today_iso()
    return chem


# -----------------------
# consultas
# -----------------------

def list_chemicals(db_path: str = DB_PATH) -> List[ChemicalRecord]:
    return [migrate(c) for c in StockRepo(db_path).chemicals()]


def get_chemical(chem_id: str, db_path: str = DB_PATH) -> ChemicalRecord:
    chemicals = StockRepo(db_path).chemicals()
    return migrate(chemicals[_index_of(chemicals, chem_id)])


# -----------------------
# alterações
# -----------------------

def create_chemical(
    name: str,
    category: Optional[str] = None,
    unit: Optional[str] = None,
    factory_stock: Any = 0,
    local_purchase: Any = 0,
    use_per_day: Any = 0,
    imports: Optional[Sequence[Any]] = None,
    notes: str = "",
    db_path: str = DB_PATH,
) -> ChemicalRecord:
    """Cria um químico no fim da lista e devolve o registro gravado."""
    log_system_event("create_chemical_start", {"name": name})
    try:
        chem = empty_chemical()
        chem.name = name
        chem.category = (category or "").strip() or DEFAULTS.category
        chem.unit = unit or DEFAULTS.unit
        chem.factory_stock = to_float(factory_stock)
        chem.local_purchase = to_float(local_purchase)
        chem.use_per_day = to_float(use_per_day)
        chem.imports = [_as_shipment(i) for i in (imports or [])]
        chem.notes = notes or ""
        _finalize(chem)

        with StockRepo(db_path).transaction() as doc:
            doc["chemicals"].append(chem.to_dict())

        log_chemical("create", chem.id, chem.name, use_per_day=chem.use_per_day)
        log_transaction("create_chemical", {"name": chem.name}, result=chem.id)
        return chem
    except Exception as e:
        log_transaction("create_chemical", {"name": name}, error=str(e))
        log_system_event("create_chemical_error", {"error": str(e)}, level="error")
        raise


def update_chemical(chem_id: str, changes: Mapping[str, Any], db_path: str = DB_PATH) -> ChemicalRecord:
    """Edita campos de um químico (edição rápida ou formulário completo).

    ``changes`` usa os nomes de campo do :class:`ChemicalRecord`
    (``name``, ``category``, ``unit``, ``factory_stock``,
    ``local_purchase``, ``use_per_day``, ``notes``, ``imports``).
    """
    unknown = set(changes) - _NUMERIC_FIELDS - _TEXT_FIELDS - {"imports"}
    if unknown:
        raise InvalidChemicalError(f"campos desconhecidos: {', '.join(sorted(unknown))}")

    try:
        with StockRepo(db_path).transaction() as doc:
            idx = _index_of(doc["chemicals"], chem_id)
            chem = migrate(doc["chemicals"][idx])
            for key, val in changes.items():
                if key in _NUMERIC_FIELDS:
                    setattr(chem, key, to_float(val))
                elif key == "imports":
                    chem.imports = [_as_shipment(i) for i in (val or [])]
                else:
                    setattr(chem, key, "" if val is None else str(val))
            _finalize(chem)
            doc["chemicals"][idx] = chem.to_dict()

        log_chemical("update", chem_id, chem.name, fields=sorted(changes))
        return chem
    except Exception as e:
        log_transaction("update_chemical", {"id": chem_id, "fields": sorted(changes)}, error=str(e))
        raise


def delete_chemical(chem_id: str, db_path: str = DB_PATH) -> ChemicalRecord:
    with StockRepo(db_path).transaction() as doc:
        idx = _index_of(doc["chemicals"], chem_id)
        removed = migrate(doc["chemicals"].pop(idx))
    log_chemical("delete", chem_id, removed.name)
    return removed


def reorder_chemicals(ordered_ids: Sequence[str], db_path: str = DB_PATH) -> List[str]:
    """Reordena a lista inteira; ``ordered_ids`` deve ser uma permutação dos ids atuais."""
    with StockRepo(db_path).transaction() as doc:
        by_id = {c.get("id"): c for c in doc["chemicals"]}
        if len(ordered_ids) != len(by_id) or set(ordered_ids) != set(by_id):
            raise InvalidChemicalError("a nova ordem deve conter cada químico exatamente uma vez")
        doc["chemicals"] = [by_id[i] for i in ordered_ids]
    log_chemical("reorder", "*", count=len(ordered_ids))
    return list(ordered_ids)


def move_chemical(chem_id: str, new_index: int, db_path: str = DB_PATH) -> List[str]:
    """Move um químico para outra posição (equivalente ao arrastar e soltar)."""
    ids = [c.id for c in list_chemicals(db_path)]
    if chem_id not in ids:
        raise ChemicalNotFoundError(f"químico não encontrado: {chem_id}")
    ids.remove(chem_id)
    new_index = max(0, min(int(new_index), len(ids)))
    ids.insert(new_index, chem_id)
    return reorder_chemicals(ids, db_path)


def add_import(
    chem_id: str,
    quantity: Any,
    eta: Any = None,
    label: str = "",
    db_path: str = DB_PATH,
) -> ChemicalRecord:
    """Acrescenta uma remessa de importação ao químico."""
    qty = to_float(quantity)
    if qty <= 0:
        raise InvalidChemicalError("a quantidade da remessa deve ser positiva")
    ship = ImportShipment(quantity=qty, estimated_arrival=_parse_eta(eta), label=label or "")
    current = get_chemical(chem_id, db_path)
    chem = update_chemical(chem_id, {"imports": current.imports + [ship]}, db_path)
    log_chemical("add_import", chem_id, chem.name, qty=qty, eta=eta)
    return chem


def remove_import(chem_id: str, index: int, db_path: str = DB_PATH) -> ChemicalRecord:
    """Remove a remessa na posição ``index`` (0 = primeira)."""
    current = get_chemical(chem_id, db_path)
    if not 0 <= index < len(current.imports):
        raise InvalidChemicalError(f"remessa inexistente: {index}")
    imports = current.imports[:index] + current.imports[index + 1:]
    chem = update_chemical(chem_id, {"imports": imports}, db_path)
    log_chemical("remove_import", chem_id, chem.name, index=index)
    return chem


# -----------------------
# planilha de estoque
# -----------------------

def _merge_sheet_row(existing: ChemicalRecord, row: Mapping[str, Any]) -> ChemicalRecord:
    sheet = migrate(row)
    if row.get("factoryStock") is not None:
        existing.factory_stock = sheet.factory_stock
    if row.get("localPurchase") is not None:
        existing.local_purchase = sheet.local_purchase
    if row.get("usePerDay") is not None:
        existing.use_per_day = sheet.use_per_day
    for key, attr in (("unit", "unit"), ("category", "category"), ("notes", "notes")):
        if row.get(key):
            setattr(existing, attr, getattr(sheet, attr))
    known = {(i.quantity, i.estimated_arrival) for i in existing.imports}
    for ship in sheet.imports:
        if (ship.quantity, ship.estimated_arrival) not in known:
            existing.imports.append(ship)
    return _finalize(existing)


def apply_stock_sheet(rows: Sequence[Mapping[str, Any]], db_path: str = DB_PATH) -> Dict[str, int]:
    """Aplica linhas de uma planilha de contagem ao cadastro.

    Químicos são casados pelo nome (sem diferenciar maiúsculas). Colunas
    vazias não alteram o valor gravado. Linhas sem nome são ignoradas;
    nomes novos criam químicos no fim da lista.
    """
    created = updated = skipped = 0
    with StockRepo(db_path).transaction() as doc:
        by_name = {str(c.get("name") or "").strip().lower(): idx for idx, c in enumerate(doc["chemicals"])}
        for row in rows:
            name = str(row.get("name") or "").strip()
            if not name:
                skipped += 1
                continue
            idx = by_name.get(name.lower())
            if idx is None:
                chem = _finalize(migrate({**row, "id": new_chemical_id(), "name": name}))
                doc["chemicals"].append(chem.to_dict())
                by_name[name.lower()] = len(doc["chemicals"]) - 1
                created += 1
                log_chemical("sheet_create", chem.id, chem.name)
            else:
                chem = _merge_sheet_row(migrate(doc["chemicals"][idx]), row)
                doc["chemicals"][idx] = chem.to_dict()
                updated += 1
                log_chemical("sheet_update", chem.id, chem.name)
    return {"created": created, "updated": updated, "skipped": skipped}


def run_load_sheet(path: str, db_path: str = DB_PATH) -> Dict[str, Any]:
    """Lê um XLSX de contagem de estoque e aplica ao cadastro."""
    log_system_event("load_sheet_start", {"file_path": path})
    log_file_operation("import", path)
    try:
        rows = load_stock_sheet(path)
        log_file_operation("import", path, rows_processed=len(rows))
        result = {"arquivo": path, "linhas": len(rows), **apply_stock_sheet(rows, db_path)}
        log_transaction("load_sheet", {"file": path, "rows_count": len(rows)}, result=result)
        log_system_event("load_sheet_success", result)
        return result
    except Exception as e:
        log_transaction("load_sheet", {"file": path}, error=str(e))
        log_system_event("load_sheet_error", {"file_path": path, "error": str(e)}, level="error")
        raise
