# stockestimate/infra/logger.py
"""
Sistema de logging para operações do StockEstimate.

Este módulo configura e fornece loggers para registrar as operações que
alteram o documento de estoque: cadastro e edição de químicos, snapshots,
leituras/gravações no banco e importação de planilhas.

O motor de projeção (``stockestimate.domain``) não registra nada: ele é
puro e não depende deste módulo.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional


# Flag global para habilitar/desabilitar logging
ENABLE_LOGGING = False
# Flag global de saída detalhada (também liga os loggers)
ENABLE_OUTPUT = False


def _enabled() -> bool:
    return ENABLE_LOGGING or ENABLE_OUTPUT


# Configuração base dos loggers
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def setup_logger(name: str, log_file: str, level: int = logging.INFO) -> logging.Logger:
    """
    Configura um logger específico com arquivo de saída.

    O arquivo só é criado na primeira mensagem (``delay=True``), então
    importar o módulo não cria arquivos.

    Args:
        name: Nome do logger
        log_file: Caminho do arquivo de log
        level: Nível de logging (DEBUG, INFO, WARNING, ERROR, CRITICAL)

    Returns:
        Logger configurado
    """
    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.propagate = False

    # Remove handlers existentes (reconfiguração idempotente)
    while logger.handlers:
        logger.removeHandler(logger.handlers[0])

    file_handler = logging.FileHandler(log_file, encoding='utf-8', delay=True)
    file_handler.setLevel(level)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    logger.addHandler(file_handler)

    return logger


# Diretório base para logs (na pasta do pacote)
BASE_DIR = Path(__file__).parent.parent
LOGS_DIR = BASE_DIR / "logs"

LOG_FILES = {
    "transactions": LOGS_DIR / "transactions.log",
    "chemicals": LOGS_DIR / "chemicals.log",
    "snapshots": LOGS_DIR / "snapshots.log",
    "database": LOGS_DIR / "database.log",
    "system": LOGS_DIR / "system.log",
}

transaction_logger = setup_logger('stockestimate.transactions', str(LOG_FILES["transactions"]))
chemical_logger = setup_logger('stockestimate.chemicals', str(LOG_FILES["chemicals"]))
snapshot_logger = setup_logger('stockestimate.snapshots', str(LOG_FILES["snapshots"]))
database_logger = setup_logger('stockestimate.database', str(LOG_FILES["database"]))
system_logger = setup_logger('stockestimate.system', str(LOG_FILES["system"]))


def log_transaction(operation: str, data: Dict[str, Any], result: Optional[Any] = None, error: Optional[str] = None) -> None:
    """
    Registra uma operação completa (sucesso ou falha).

    Args:
        operation: Tipo de operação (create_chemical, save_snapshot, ...)
        data: Dados de entrada da operação
        result: Resultado da operação (opcional)
        error: Mensagem de erro (opcional)
    """
    if not _enabled():
        return
    stamp = datetime.now().isoformat()
    if error:
        transaction_logger.error(f"TRANSACTION_FAILED: {operation} - {error} - Data: {data} - At: {stamp}")
    else:
        transaction_logger.info(f"TRANSACTION_SUCCESS: {operation} - Result: {result} - Data: {data}")


def log_chemical(action: str, chemical_id: str, name: Optional[str] = None, **kwargs) -> None:
    """
    Log específico para alterações no cadastro de químicos.

    Args:
        action: Ação realizada (create, update, delete, reorder, add_import...)
        chemical_id: Id do químico
        name: Nome do químico (opcional)
        **kwargs: Dados adicionais
    """
    if not _enabled():
        return
    log_data = {"action": action, "id": chemical_id, "name": name, **kwargs}
    chemical_logger.info(f"CHEMICAL_{action.upper()}: {log_data}")


def log_snapshot(action: str, snapshot_date: Optional[str], **kwargs) -> None:
    """Log específico para operações de snapshot (save, update, delete)."""
    if not _enabled():
        return
    log_data = {"action": action, "date": snapshot_date, **kwargs}
    snapshot_logger.info(f"SNAPSHOT_{action.upper()}: {log_data}")


def log_database_operation(table: str, operation: str, affected_rows: int = 0, **kwargs) -> None:
    """
    Log específico para operações no banco de dados.

    Args:
        table: Nome da tabela
        operation: Operação (READ, WRITE, MIGRATE...)
        affected_rows: Número de linhas afetadas
        **kwargs: Dados adicionais
    """
    if not _enabled():
        return
    log_data = {"table": table, "operation": operation, "affected_rows": affected_rows, **kwargs}
    database_logger.info(f"DB_{operation}: {log_data}")


def log_system_event(event: str, details: Dict[str, Any] = None, level: str = "info") -> None:
    """
    Log para eventos do sistema.

    Args:
        event: Descrição do evento
        details: Detalhes adicionais (opcional)
        level: Nível do log (info, warning, error)
    """
    if not _enabled():
        return
    log_data = {"event": event, "details": details or {}}
    log_method = getattr(system_logger, level.lower(), system_logger.info)
    log_method(f"SYSTEM_EVENT: {event} - {log_data}")


def log_file_operation(operation: str, file_path: str, rows_processed: int = 0, **kwargs) -> None:
    """Log para operações de arquivo (planilhas, seed e exportação em JSON)."""
    if not _enabled():
        return
    log_data = {"operation": operation, "file_path": file_path, "rows_processed": rows_processed, **kwargs}
    system_logger.info(f"FILE_{operation.upper()}: {log_data}")


def get_log_summary(log_type: str = "transactions", lines: int = 100) -> Optional[str]:
    """
    Obtém as últimas linhas de um log.

    Args:
        log_type: Tipo de log (transactions, chemicals, snapshots, database, system)
        lines: Número de linhas a retornar

    Returns:
        Conteúdo do log como string, ou ``None`` com o logging desligado
    """
    if not _enabled():
        return None

    log_file = LOG_FILES.get(log_type)
    if not log_file or not log_file.exists():
        return f"Log {log_type} não encontrado."

    with open(log_file, 'r', encoding='utf-8') as f:
        all_lines = f.readlines()
    return ''.join(all_lines[-lines:])
