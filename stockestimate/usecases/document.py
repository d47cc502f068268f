# stockestimate/usecases/document.py
"""
UC: Carga inicial (seed) e exportação do documento de estoque.

- ``seed_document`` grava um documento completo (químicos, configuração
  e snapshots) num banco ainda vazio; havendo químicos cadastrados, a
  carga é recusada e nada é alterado.
- ``export_document`` devolve o documento inteiro, já migrado, no mesmo
  formato aceito pelo seed.

Os ``run_*`` leem/gravam o JSON em arquivo, com log das operações.
"""
from __future__ import annotations

import json
from typing import Any, Dict, Mapping

from stockestimate.config import DB_PATH, DEFAULTS
from stockestimate.domain.migration import migrate_document
from stockestimate.infra.logger import log_file_operation, log_system_event, log_transaction
from stockestimate.infra.repositories import StockRepo
from stockestimate.usecases.snapshots import validate_snapshot_date


class InvalidDocumentError(ValueError):
    """Documento sem a lista ``chemicals`` ou com snapshot de data inválida."""


class DocumentNotEmptyError(ValueError):
    """Já existem químicos cadastrados; o seed só roda num banco vazio."""


def _validated(data: Any) -> Dict[str, Any]:
    if not isinstance(data, Mapping) or not isinstance(data.get("chemicals"), list):
        raise InvalidDocumentError("Invalid data: expected a JSON object with a 'chemicals' list.")
    if data.get("snapshots") is not None and not isinstance(data["snapshots"], list):
        raise InvalidDocumentError("Invalid data: 'snapshots' must be a list.")
    doc, _ = migrate_document(data)
    snaps = doc.get("snapshots")
    for snap in snaps or []:
        validate_snapshot_date(snap.get("date"))
    if snaps:
        doc["snapshots"] = snaps[-DEFAULTS.snapshot_limit:]
    return doc


def seed_document(data: Any, db_path: str = DB_PATH) -> Dict[str, int]:
    """Grava ``data`` como documento de estoque de um banco vazio.

    Raises:
        InvalidDocumentError: formato inválido.
        DocumentNotEmptyError: o banco já tem químicos.
    """
    doc = _validated(data)
    with StockRepo(db_path).transaction() as current:
        existing = len(current["chemicals"])
        if existing:
            raise DocumentNotEmptyError(
                f"Data already exists ({existing} chemicals). Delete it first or edit the chemicals directly."
            )
        current.clear()
        current.update(doc)
    result = {"chemicals": len(doc["chemicals"]), "snapshots": len(doc.get("snapshots") or [])}
    log_transaction("seed_document", {"db": db_path}, result=result)
    return result


def export_document(db_path: str = DB_PATH) -> Dict[str, Any]:
    return StockRepo(db_path).read()


def run_seed_file(path: str, db_path: str = DB_PATH) -> Dict[str, int]:
    """Lê um JSON de estoque e faz o seed do banco."""
    log_system_event("seed_start", {"file_path": path})
    try:
        with open(path, encoding="utf-8") as fh:
            data = json.load(fh)
        result = seed_document(data, db_path)
        log_file_operation("import", path, rows_processed=result["chemicals"], snapshots=result["snapshots"])
        log_system_event("seed_success", result)
        return result
    except Exception as e:
        log_transaction("seed_document", {"file": path}, error=str(e))
        log_system_event("seed_error", {"file_path": path, "error": str(e)}, level="error")
        raise


def run_export_file(path: str, db_path: str = DB_PATH) -> Dict[str, int]:
    """Grava o documento inteiro em ``path`` (JSON indentado)."""
    doc = export_document(db_path)
    with open(path, "w", encoding="utf-8") as fh:
        json.dump(doc, fh, ensure_ascii=False, indent=2)
    result = {"chemicals": len(doc["chemicals"]), "snapshots": len(doc["snapshots"])}
    log_file_operation("export", path, rows_processed=result["chemicals"], snapshots=result["snapshots"])
    return result
