"""
Centralized Logging Configuration for the membership registry

All Python logging from the registry, ledger adapters and orchestrator goes
to one rotating file plus the console:

    logs/membership/system.log

Modules log through ``logging.getLogger(__name__)``; the application calls
``setup_logging()`` once at startup (``build_orchestrator`` does this).

Debugging:
    tail -f logs/membership/system.log
"""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

LOG_DIR = Path("logs/membership")
SYSTEM_LOG_FILE = LOG_DIR / "system.log"
MAX_LOG_SIZE = 10 * 1024 * 1024  # 10 MB per file
BACKUP_COUNT = 5

DEFAULT_LOG_LEVEL = "INFO"

FILE_FORMATTER = ("%(asctime)s | %(levelname)-5s | %(name)-30s | %(message)s", "%Y-%m-%d %H:%M:%S")
CONSOLE_FORMATTER = ("%(asctime)s | %(levelname)-5s | %(name)-20s | %(message)s", "%H:%M:%S")

# Raised to WARNING by setup_logging
QUIET_LOGGERS = ("httpx", "httpcore", "asyncio")

_logging_configured = False


def _build_handlers(log_level: int, log_to_console: bool, log_to_file: bool) -> list[logging.Handler]:
    handlers: list[logging.Handler] = []
    if log_to_file:
        LOG_DIR.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            SYSTEM_LOG_FILE,
            maxBytes=MAX_LOG_SIZE,
            backupCount=BACKUP_COUNT,
            encoding="utf-8",
        )
        file_handler.setFormatter(logging.Formatter(*FILE_FORMATTER))
        handlers.append(file_handler)
    if log_to_console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(logging.Formatter(*CONSOLE_FORMATTER))
        handlers.append(console_handler)
    for handler in handlers:
        handler.setLevel(log_level)
    return handlers


def setup_logging(
    level: Optional[str] = None,
    log_to_console: bool = True,
    log_to_file: bool = True,
    service_name: str = "membership",
) -> None:
    """
    Route the root logger to system.log and stdout.

    Only the first call has an effect; later calls return immediately.

    Args:
        level: DEBUG, INFO, WARNING or ERROR. Falls back to LOG_LEVEL, then INFO.
        log_to_console: Also write to stdout
        log_to_file: Write to SYSTEM_LOG_FILE
        service_name: Logger that records the startup line
    """
    global _logging_configured

    if _logging_configured:
        return

    level_name = (level or os.getenv("LOG_LEVEL", DEFAULT_LOG_LEVEL)).upper()
    log_level = getattr(logging, level_name, logging.INFO)

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    for handler in _build_handlers(log_level, log_to_console, log_to_file):
        root_logger.addHandler(handler)
    root_logger.setLevel(log_level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    _logging_configured = True

    destination = str(SYSTEM_LOG_FILE.absolute()) if log_to_file else "console only"
    logging.getLogger(service_name).info(
        f"[{service_name.upper()}] Logging initialized | level={level_name} | {destination}"
    )


# =============================================================================
# Operation log lines
# =============================================================================


def log_operation_start(logger: logging.Logger, operation: str, subject: str = "") -> None:
    """Log the start of a user-triggered operation with standard format."""
    suffix = f" | {subject}" if subject else ""
    logger.info(f"[{operation.upper()}] START{suffix}")


def log_operation_end(
    logger: logging.Logger,
    operation: str,
    success: bool,
    elapsed_ms: float,
    detail: str = "",
) -> None:
    """Log the end of a user-triggered operation with standard format."""
    status = "SUCCESS" if success else "FAILED"
    suffix = f" | {detail}" if detail else ""
    logger.info(f"[{operation.upper()}] END | {status} | elapsed={elapsed_ms:.0f}ms{suffix}")
