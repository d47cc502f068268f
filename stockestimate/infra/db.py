# stockestimate/infra/db.py
"""
Utilidades de conexão SQLite para o documento de estoque.
"""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

# Segundos de espera quando outro processo segura o lock de escrita
BUSY_TIMEOUT = 10.0


@contextmanager
def connect(db_path: str, immediate: bool = False) -> Iterator[sqlite3.Connection]:
    """
    Context manager para abrir conexão SQLite com:
    - pasta do arquivo criada se necessário
    - row_factory = sqlite3.Row
    - ``immediate=True``: abre com BEGIN IMMEDIATE, serializando
      ciclos de leitura-alteração-gravação do documento
    - commit ao sair (rollback em caso de exceção)
    """
    if str(db_path) != ":memory:":
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(db_path), timeout=BUSY_TIMEOUT)
    try:
        conn.row_factory = sqlite3.Row
        if immediate:
            conn.execute("BEGIN IMMEDIATE;")
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()
