"""
Logging setup for the BoardMgmt backend.

Everything logs through the standard library. Modules take a logger from
:func:`get_logger` and :func:`setup_logging` wires the root logger from
``settings`` (``BOARDMGMT_LOG_LEVEL``, ``LOG_FORMAT``, ``LOG_FILE_DIR`` and
``LOG_FILE_ENABLED``).

Service and API code logs at DEBUG. Outbound integrations (Graph, Zoom, SMTP)
and the realtime hub stay at INFO so token refreshes and per-frame chatter do
not flood the console. Database drivers and HTTP client internals are held at
WARNING.
"""

import logging
import logging.config
from pathlib import Path
from typing import Any, Dict, Optional

from boardmgmt.server.core.config import settings

LOG_LEVEL = settings.log_level.upper()
LOG_FORMAT = settings.log_format
LOG_FILE_DIR = settings.log_file_dir
ENABLE_FILE_LOGGING = settings.log_file_enabled
LOG_FILE_NAME = "boardmgmt.log"

SIMPLE_FORMAT = "%(levelname)s - %(name)s - %(message)s"
DETAILED_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(funcName)s() - %(message)s"
JSON_FORMAT = (
    '{"timestamp": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", '
    '"module": "%(filename)s", "function": "%(funcName)s", "line": %(lineno)d, '
    '"message": "%(message)s"}'
)
_FORMATS = {"simple": SIMPLE_FORMAT, "detailed": DETAILED_FORMAT, "json": JSON_FORMAT}

_QUIET_LIBRARIES = (
    "sqlalchemy",
    "sqlalchemy.engine",
    "sqlalchemy.pool",
    "aiosqlite",
    "asyncpg",
    "httpx",
    "httpcore",
    "multipart",
    "asyncio",
)

MODULE_LOG_LEVELS: Dict[str, str] = {
    "boardmgmt.core": "INFO",
    "boardmgmt.core.database": "INFO",
    "boardmgmt.server": "INFO",
    "boardmgmt.server.api": "DEBUG",
    "boardmgmt.server.services": "DEBUG",
    # integrations and the hub
    "boardmgmt.server.services.calendars": "INFO",
    "boardmgmt.server.services.email": "INFO",
    "boardmgmt.server.services.oauth": "INFO",
    "boardmgmt.server.services.realtime": "INFO",
    "boardmgmt.server.middleware": "INFO",
    "uvicorn": "INFO",
    "uvicorn.access": "INFO",
    **{name: "WARNING" for name in _QUIET_LIBRARIES},
}


def _logging_dict(level: str, fmt: str, log_file: Optional[Path]) -> Dict[str, Any]:
    handlers: Dict[str, Any] = {
        "console": {"class": "logging.StreamHandler", "level": level, "formatter": "default"},
    }
    if log_file is not None:
        handlers["file"] = {
            "class": "logging.FileHandler",
            "level": "DEBUG",
            "formatter": "default",
            "filename": str(log_file),
            "encoding": "utf-8",
        }
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"default": {"format": _FORMATS.get(fmt, DETAILED_FORMAT), "datefmt": "%Y-%m-%d %H:%M:%S"}},
        "handlers": handlers,
        "root": {"level": "DEBUG", "handlers": list(handlers)},
        "loggers": {name: {"level": module_level} for name, module_level in MODULE_LOG_LEVELS.items()},
    }


def setup_logging(
    log_level: Optional[str] = None,
    log_format: Optional[str] = None,
    enable_file: bool = True,
) -> None:
    """
    (Re)configure the root logger. Safe to call repeatedly; handlers are replaced.

    Args:
        log_level: Console level, defaults to ``BOARDMGMT_LOG_LEVEL``
        log_format: ``simple``, ``detailed`` or ``json``; unknown names fall back to ``detailed``
        enable_file: Also write DEBUG and above to ``<LOG_FILE_DIR>/boardmgmt.log`` when file logging is on
    """
    level = (log_level or LOG_LEVEL).upper()
    fmt = log_format or LOG_FORMAT
    log_file = None
    if enable_file and ENABLE_FILE_LOGGING:
        Path(LOG_FILE_DIR).mkdir(parents=True, exist_ok=True)
        log_file = Path(LOG_FILE_DIR) / LOG_FILE_NAME

    logging.config.dictConfig(_logging_dict(level, fmt, log_file))
    logging.getLogger(__name__).info(f"Logging configured: level={level}, format={fmt}, file={log_file or '-'}")


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


setup_logging()
