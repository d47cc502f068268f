# stockestimate/usecases/snapshots.py
"""
UC: Snapshots diários do estoque.

Um snapshot é uma cópia profunda dos químicos e da configuração em uma
data (``YYYY-MM-DD``). Regras:
- salvar em uma data já existente substitui o snapshot daquela data;
- são mantidos apenas os ``DEFAULTS.snapshot_limit`` mais recentes, pela
  ordem de inserção;
- a projeção de um snapshot usa a data do próprio snapshot como dia 0,
  então o histórico é reproduzido como era naquele dia.
"""
from __future__ import annotations

import copy
import re
from datetime import date
from typing import Any, Dict, List, Mapping, Optional, Sequence

from stockestimate.config import DB_PATH, DEFAULTS
from stockestimate.domain.migration import migrate, migrate_chemicals
from stockestimate.domain.models import PortfolioView
from stockestimate.infra.logger import log_snapshot, log_system_event, log_transaction
from stockestimate.infra.repositories import StockRepo
from stockestimate.usecases.chemicals import ChemicalNotFoundError
from stockestimate.usecases.portfolio import project_all

DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class InvalidSnapshotDateError(ValueError):
    """Data de snapshot fora do formato YYYY-MM-DD ou inexistente no calendário."""


class SnapshotNotFoundError(LookupError):
    """Nenhum snapshot na data informada."""


def validate_snapshot_date(snapshot_date: Any) -> str:
    """Confere o formato YYYY-MM-DD e que a data exista (2025-02-30 não passa)."""
    s = str(snapshot_date or "")
    if not DATE_RE.fullmatch(s):
        raise InvalidSnapshotDateError("Invalid date format. Use YYYY-MM-DD.")
    try:
        date.fromisoformat(s)
    except ValueError:
        raise InvalidSnapshotDateError(f"Invalid calendar date: {s}") from None
    return s


def add_snapshot(snapshots: Sequence[Mapping[str, Any]], snapshot: Mapping[str, Any],
                 limit: int = DEFAULTS.snapshot_limit) -> List[Dict[str, Any]]:
    """Substitui o snapshot da mesma data, acrescenta no fim e mantém os ``limit`` últimos."""
    out = [dict(s) for s in snapshots if s.get("date") != snapshot.get("date")]
    out.append(dict(snapshot))
    if len(out) > limit:
        out = out[-limit:]
    return out


def _index_of(snapshots: List[Dict[str, Any]], snapshot_date: str) -> int:
    for idx, s in enumerate(snapshots):
        if s.get("date") == snapshot_date:
            return idx
    raise SnapshotNotFoundError(f"Snapshot not found: {snapshot_date}")


# -----------------------
# consultas
# -----------------------

def list_snapshot_dates(db_path: str = DB_PATH) -> List[str]:
    """Datas dos snapshots, da mais recente para a mais antiga."""
    return sorted((s.get("date") for s in StockRepo(db_path).snapshots() if s.get("date")), reverse=True)


def get_snapshot(snapshot_date: str, db_path: str = DB_PATH) -> Dict[str, Any]:
    snapshots = StockRepo(db_path).snapshots()
    return snapshots[_index_of(snapshots, snapshot_date)]


def project_snapshot(snapshot: Mapping[str, Any]) -> PortfolioView:
    """Projeta os químicos do snapshot tendo a data dele como referência.

    Um snapshot gravado com data inválida é recusado em vez de ser
    projetado a partir de hoje.
    """
    ref = validate_snapshot_date(snapshot.get("date"))
    return project_all(snapshot.get("chemicals") or [], ref)


def run_snapshot_view(snapshot_date: str, db_path: str = DB_PATH) -> PortfolioView:
    view = project_snapshot(get_snapshot(snapshot_date, db_path))
    log_system_event("snapshot_view", {"date": snapshot_date, "summary": view.summary.to_dict()})
    return view


# -----------------------
# alterações
# -----------------------

def save_snapshot(snapshot_date: Optional[str] = None, db_path: str = DB_PATH) -> str:
    """Grava o estado atual como snapshot da data (hoje se omitida)."""
    snapshot_date = validate_snapshot_date(snapshot_date or date.today().isoformat())
    try:
        with StockRepo(db_path).transaction() as doc:
            snap = {
                "date": snapshot_date,
                "chemicals": copy.deepcopy(doc["chemicals"]),
                "config": copy.deepcopy(doc["config"]),
            }
            doc["snapshots"] = add_snapshot(doc["snapshots"], snap, DEFAULTS.snapshot_limit)
            kept = len(doc["snapshots"])
        log_snapshot("save", snapshot_date, chemicals=len(snap["chemicals"]), kept=kept)
        return snapshot_date
    except Exception as e:
        log_transaction("save_snapshot", {"date": snapshot_date}, error=str(e))
        log_system_event("save_snapshot_error", {"error": str(e)}, level="error")
        raise


def update_snapshot(
    snapshot_date: str,
    chemicals: Optional[Sequence[Mapping[str, Any]]] = None,
    config: Optional[Mapping[str, Any]] = None,
    new_date: Optional[str] = None,
    db_path: str = DB_PATH,
) -> Dict[str, Any]:
    """Edita um snapshot; argumentos ``None`` mantêm o valor gravado.

    Trocar a data para uma já usada por outro snapshot substitui aquele.
    """
    if new_date is not None:
        new_date = validate_snapshot_date(new_date)
    with StockRepo(db_path).transaction() as doc:
        snaps = doc["snapshots"]
        idx = _index_of(snaps, snapshot_date)
        snap = dict(snaps[idx])
        if chemicals is not None:
            snap["chemicals"] = migrate_chemicals(chemicals)
        if config is not None:
            snap["config"] = copy.deepcopy(dict(config))
        if new_date is not None and new_date != snapshot_date:
            snaps = [s for s in snaps if s.get("date") != new_date]
            idx = _index_of(snaps, snapshot_date)
            snap["date"] = new_date
        snaps[idx] = snap
        doc["snapshots"] = snaps
    log_snapshot("update", snapshot_date, new_date=new_date,
                 chemicals=chemicals is not None, config=config is not None)
    return snap


def delete_snapshot(snapshot_date: str, db_path: str = DB_PATH) -> None:
    with StockRepo(db_path).transaction() as doc:
        idx = _index_of(doc["snapshots"], snapshot_date)
        doc["snapshots"].pop(idx)
    log_snapshot("delete", snapshot_date)


def replace_snapshot_chemical(snapshot_date: str, chemical: Mapping[str, Any], db_path: str = DB_PATH) -> Dict[str, Any]:
    """Substitui, dentro do snapshot, o químico com o mesmo id."""
    rec = migrate(chemical).to_dict()
    snap = get_snapshot(snapshot_date, db_path)
    chemicals = list(snap.get("chemicals") or [])
    for idx, c in enumerate(chemicals):
        if c.get("id") == rec["id"]:
            chemicals[idx] = rec
            break
    else:
        raise ChemicalNotFoundError(f"químico não encontrado no snapshot: {rec['id']}")
    return update_snapshot(snapshot_date, chemicals=chemicals, db_path=db_path)


def remove_snapshot_chemical(snapshot_date: str, chem_id: str, db_path: str = DB_PATH) -> Dict[str, Any]:
    snap = get_snapshot(snapshot_date, db_path)
    chemicals = [c for c in (snap.get("chemicals") or []) if c.get("id") != chem_id]
    if len(chemicals) == len(snap.get("chemicals") or []):
        raise ChemicalNotFoundError(f"químico não encontrado no snapshot: {chem_id}")
    return update_snapshot(snapshot_date, chemicals=chemicals, db_path=db_path)
