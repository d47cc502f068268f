# stockestimate/infra/repositories.py
"""
Repositórios para acesso ao documento de estoque no SQLite.

O estado inteiro da aplicação é um único documento JSON:

    {
      "config":    {"shifts": {"<linha>": <turnos>}},
      "chemicals": [<químico>, ...],
      "snapshots": [{"date": "YYYY-MM-DD", "chemicals": [...], "config": {...}}, ...]
    }

Classes:
- DocumentRepo: leitura/gravação crua de documentos JSON por chave
- StockRepo:    documento de estoque completo, migrado na leitura
"""

from __future__ import annotations

import json
import sqlite3
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

from .db import connect
from .logger import log_database_operation, log_system_event
from .migrations import apply_migrations
from stockestimate.config import DB_PATH, DEFAULTS, DOCUMENT_KEY
from stockestimate.domain.migration import migrate_document


def default_document() -> Dict[str, Any]:
    return {
        "config": {"shifts": dict(DEFAULTS.shifts)},
        "chemicals": [],
        "snapshots": [],
    }


def _complete(data: Any) -> Dict[str, Any]:
    """Garante as três seções do documento, com os tipos esperados."""
    if not isinstance(data, dict):
        return default_document()
    out = dict(data)
    config = out.get("config")
    if not isinstance(config, dict):
        config = {}
    if not isinstance(config.get("shifts"), dict):
        config = {**config, "shifts": dict(DEFAULTS.shifts)}
    out["config"] = config
    if not isinstance(out.get("chemicals"), list):
        out["chemicals"] = []
    if not isinstance(out.get("snapshots"), list):
        out["snapshots"] = []
    return out


# -------------------------
# Documento cru
# -------------------------

class DocumentRepo:
    def __init__(self, db_path: str):
        self.db_path = db_path

    @staticmethod
    def fetch(conn: sqlite3.Connection, key: str) -> Optional[Any]:
        row = conn.execute("SELECT body FROM document WHERE key = ?", (key,)).fetchone()
        if row is None:
            return None
        try:
            return json.loads(row["body"])
        except ValueError as e:
            log_system_event("document_corrupt", {"key": key, "error": str(e)}, level="error")
            return None

    @staticmethod
    def store(conn: sqlite3.Connection, key: str, data: Any) -> None:
        conn.execute(
            """
            INSERT INTO document (key, body, updated_at)
            VALUES (?, ?, datetime('now'))
            ON CONFLICT(key) DO UPDATE SET
                body=excluded.body,
                updated_at=excluded.updated_at
            """,
            (key, json.dumps(data, ensure_ascii=False, indent=2)),
        )

    def get(self, key: str) -> Optional[Any]:
        with connect(self.db_path) as c:
            return self.fetch(c, key)

    def put(self, key: str, data: Any) -> None:
        with connect(self.db_path) as c:
            self.store(c, key, data)


# -------------------------
# Documento de estoque
# -------------------------

class StockRepo:
    """Documento de estoque, sempre devolvido completo e migrado."""

    def __init__(self, db_path: str = DB_PATH, key: str = DOCUMENT_KEY):
        self.db_path = db_path
        self.key = key
        apply_migrations(db_path)

    def _load(self, conn: sqlite3.Connection) -> Dict[str, Any]:
        raw = DocumentRepo.fetch(conn, self.key)
        if raw is None:
            return default_document()
        data, _ = migrate_document(_complete(raw))
        log_database_operation("document", "READ", 1, chemicals=len(data["chemicals"]))
        return data

    def _save(self, conn: sqlite3.Connection, data: Dict[str, Any]) -> None:
        DocumentRepo.store(conn, self.key, _complete(data))
        log_database_operation("document", "WRITE", 1, chemicals=len(data.get("chemicals") or []))

    def read(self) -> Dict[str, Any]:
        with connect(self.db_path) as c:
            return self._load(c)

    def write(self, data: Dict[str, Any]) -> None:
        with connect(self.db_path) as c:
            self._save(c, data)

    @contextmanager
    def transaction(self) -> Iterator[Dict[str, Any]]:
        """Ciclo leitura-alteração-gravação atômico.

        O documento entregue pode ser alterado livremente; ele é gravado ao
        sair do bloco. Se o bloco lançar exceção nada é gravado.
        """
        with connect(self.db_path, immediate=True) as c:
            data = self._load(c)
            yield data
            self._save(c, data)

    def chemicals(self) -> list:
        return self.read()["chemicals"]

    def config(self) -> Dict[str, Any]:
        return self.read()["config"]

    def snapshots(self) -> list:
        return self.read()["snapshots"]
