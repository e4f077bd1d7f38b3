# devis/infra/logger.py
"""
Sistema de logging das operações do gestionnaire de devis.

Este módulo configura e fornece loggers para registrar as operações
críticas do sistema: gravações de devis, operações no banco de dados,
carga das taxas de câmbio e chamadas ao serviço de análise.
"""

import logging
import os
from pathlib import Path
from typing import Dict, Any, Optional


# Flag global para habilitar/desabilitar logging
ENABLE_LOGGING = os.getenv("DEVIS_LOGGING", "0").lower() in {"1", "true", "yes"}

# Configuração base dos loggers
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


class _LazyFileHandler(logging.FileHandler):
    """FileHandler que cria o diretório do log ao abrir o arquivo."""

    def _open(self):
        Path(self.baseFilename).parent.mkdir(parents=True, exist_ok=True)
        return super()._open()


def setup_logger(name: str, log_file: str, level: int = logging.INFO) -> logging.Logger:
    """
    Configura um logger específico com arquivo de saída.

    O arquivo (e o diretório) só é criado na primeira mensagem emitida;
    com o logging desabilitado nada é escrito em disco.

    Args:
        name: Nome do logger
        log_file: Caminho do arquivo de log
        level: Nível de logging (DEBUG, INFO, WARNING, ERROR, CRITICAL)

    Returns:
        Logger configurado
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.propagate = False

    # Remove handlers existentes (reimportação do módulo)
    while logger.handlers:
        logger.removeHandler(logger.handlers[0])

    file_handler = _LazyFileHandler(log_file, encoding='utf-8', delay=True)
    file_handler.setLevel(level)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    logger.addHandler(file_handler)

    return logger

# Diretório base para logs (na pasta do pacote, sobrescrevível por DEVIS_LOGS_DIR)
BASE_DIR = Path(__file__).parent.parent
LOGS_DIR = Path(os.getenv("DEVIS_LOGS_DIR", str(BASE_DIR / "logs")))

LOG_FILES = {
    "transactions": LOGS_DIR / "transactions.log",
    "database": LOGS_DIR / "database.log",
    "system": LOGS_DIR / "system.log",
    "rates": LOGS_DIR / "rates.log",
    "analysis": LOGS_DIR / "analysis.log",
}

# Loggers específicos para cada operação
transaction_logger = setup_logger('devis.transactions', str(LOG_FILES["transactions"]))
database_logger = setup_logger('devis.database', str(LOG_FILES["database"]))
system_logger = setup_logger('devis.system', str(LOG_FILES["system"]))
rates_logger = setup_logger('devis.rates', str(LOG_FILES["rates"]))
analysis_logger = setup_logger('devis.analysis', str(LOG_FILES["analysis"]))


def _enabled() -> bool:
    return ENABLE_LOGGING

def log_transaction(operation: str, data: Dict[str, Any], result: Optional[Any] = None, error: Optional[str] = None) -> None:
    """
    Registra uma transação completa no log.

    Args:
        operation: Tipo de operação (create_quote, update_quote, ...)
        data: Dados da transação
        result: Resultado da operação (opcional)
        error: Mensagem de erro (opcional)
    """
    if not _enabled():
        return
    if error:
        transaction_logger.error(f"TRANSACTION_FAILED: {operation} - {error} - Data: {data}")
    else:
        transaction_logger.info(f"TRANSACTION_SUCCESS: {operation} - Result: {result} - Data: {data}")

def log_database_operation(table: str, operation: str, affected_rows: int = 0, **kwargs) -> None:
    """
    Log específico para operações no banco de dados.

    Args:
        table: Nome da tabela
        operation: Operação SQL (INSERT, UPDATE, DELETE, SELECT)
        affected_rows: Número de linhas afetadas
        **kwargs: Dados adicionais
    """
    if not _enabled():
        return
    log_data = {
        "table": table,
        "operation": operation,
        "affected_rows": affected_rows,
        **kwargs
    }
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
    log_data = {
        "event": event,
        "details": details or {}
    }
    log_method = getattr(system_logger, level.lower(), system_logger.info)
    log_method(f"SYSTEM_EVENT: {event} - {log_data}")

def log_rates_event(event: str, level: str = "info", **kwargs) -> None:
    """Log da carga das taxas de câmbio (fetch, validação, fallback)."""
    if not _enabled():
        return
    log_method = getattr(rates_logger, level.lower(), rates_logger.info)
    log_method(f"RATES_{event.upper()}: {kwargs}")

def log_analysis_event(event: str, level: str = "info", **kwargs) -> None:
    """Log das chamadas ao serviço externo de análise."""
    if not _enabled():
        return
    log_method = getattr(analysis_logger, level.lower(), analysis_logger.info)
    log_method(f"ANALYSIS_{event.upper()}: {kwargs}")

def get_log_summary(log_type: str = "transactions", lines: int = 100) -> Optional[str]:
    """
    Obtém um resumo dos logs recentes.

    Args:
        log_type: Tipo de log (transactions, database, system, rates, analysis)
        lines: Número de linhas a retornar

    Returns:
        Conteúdo do log como string (None com logging desabilitado)
    """
    if not _enabled():
        return None

    log_file = LOG_FILES.get(log_type)
    if not log_file or not log_file.exists():
        return f"Log {log_type} introuvable."

    try:
        with open(log_file, 'r', encoding='utf-8') as f:
            all_lines = f.readlines()
            recent_lines = all_lines[-lines:] if len(all_lines) > lines else all_lines
            return ''.join(recent_lines)
    except OSError as e:
        return f"Erreur de lecture du log {log_type} : {e}"
