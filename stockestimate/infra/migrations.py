# stockestimate/infra/migrations.py
"""
Migrações de schema usando PRAGMA user_version.

V1: tabela chave/valor ``document`` que guarda o documento JSON de estoque
V2: converte, uma única vez, químicos no formato antigo (``import`` /
    ``importEta`` / unidade ``kg``) já gravados para o formato atual.
    As leituras continuam aplicando a migração (idempotente), então
    documentos gravados por versões antigas depois disso também são lidos
    corretamente.
"""

from __future__ import annotations

import json
from typing import List

from .db import connect
from .logger import log_database_operation, log_system_event
from stockestimate.domain.migration import migrate_document


SCHEMA_V1: List[str] = [
    """
    CREATE TABLE IF NOT EXISTS document (
        key TEXT PRIMARY KEY,
        body TEXT NOT NULL,
        updated_at TEXT
    );
    """,
]


def _apply_v1(conn) -> None:
    for sql in SCHEMA_V1:
        conn.executescript(sql)


def _apply_v2(conn) -> None:
    rows = conn.execute("SELECT key, body FROM document;").fetchall()
    migrated_rows = 0
    for row in rows:
        try:
            data = json.loads(row["body"])
        except ValueError:
            log_system_event("document_corrupt", {"key": row["key"]}, level="warning")
            continue
        if not isinstance(data, dict):
            continue
        data, changed = migrate_document(data)
        if changed:
            conn.execute(
                "UPDATE document SET body = ?, updated_at = datetime('now') WHERE key = ?",
                (json.dumps(data, ensure_ascii=False), row["key"]),
            )
            migrated_rows += 1
    log_database_operation("document", "MIGRATE_V2", migrated_rows)


def apply_migrations(db_path: str) -> None:
    """Aplica migrações incrementais de acordo com PRAGMA user_version."""
    with connect(db_path) as conn:
        ver = conn.execute("PRAGMA user_version;").fetchone()[0] or 0

        if ver < 1:
            _apply_v1(conn)
            conn.execute("PRAGMA user_version = 1;")
            ver = 1

        if ver < 2:
            _apply_v2(conn)
            conn.execute("PRAGMA user_version = 2;")
            ver = 2
