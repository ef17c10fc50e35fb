"""Structured logging - structlog events routed to a log file and the terminal"""

import logging
import sys
from pathlib import Path
from typing import List, Optional

import structlog

DEFAULT_LOG_FILE = "logs/grammar_detector.log"

# Knihovny, které nechceme slyšet pod WARNING
QUIET_LOGGERS = ["asyncio"]


def _file_handler(log_file: str, level: int) -> logging.Handler:
    Path(log_file).parent.mkdir(parents=True, exist_ok=True)

    handler = logging.FileHandler(log_file, encoding='utf-8')
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(
        '%(asctime)s [%(levelname)8s] %(name)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    ))
    return handler


def _console_handler(development: bool) -> logging.Handler:
    # Terminál patří live výpisu detektoru, v produkci jen errory
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(logging.DEBUG if development else logging.ERROR)
    handler.setFormatter(logging.Formatter('%(message)s' if development else '❌ %(message)s'))
    return handler


def _shared_processors() -> List:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]


def setup_logging(
    mode: str = "production",
    file_level: str = "DEBUG",
    log_file: str = DEFAULT_LOG_FILE
):
    """
    Configure structlog on top of stdlib logging.

    - development: colored events on the terminal, everything to the file
    - production: key=value lines in the file (file_level+), ERROR+ on the terminal

    Session-wide context bound via bind_context() is merged into every event.
    """
    development = mode == "development"
    file_log_level = getattr(logging, file_level.upper(), logging.DEBUG)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.handlers.clear()
    root_logger.addHandler(_file_handler(log_file, file_log_level))
    root_logger.addHandler(_console_handler(development))

    if development:
        renderer = structlog.dev.ConsoleRenderer(colors=True)
        timestamper = structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S")
        min_level = logging.DEBUG
        # Dev: structlog tiskne přímo na terminál, soubor dostává jen stdlib záznamy
        logger_factory = structlog.PrintLoggerFactory(file=sys.stderr)
    else:
        renderer = structlog.processors.KeyValueRenderer(key_order=["timestamp", "level", "event"])
        timestamper = structlog.processors.TimeStamper(fmt="iso")
        min_level = file_log_level
        logger_factory = structlog.stdlib.LoggerFactory()

    structlog.configure(
        processors=[timestamper, *_shared_processors(), renderer],
        logger_factory=logger_factory,
        wrapper_class=structlog.make_filtering_bound_logger(min_level),
        context_class=dict,
        cache_logger_on_first_use=True,
    )

    for logger_name in QUIET_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)

    return root_logger


def setup_production_logging(log_file: str = DEFAULT_LOG_FILE):
    """Production mode - čistý terminál, jen errory"""
    return setup_logging(mode="production", file_level="INFO", log_file=log_file)


def setup_dev_logging(log_file: str = DEFAULT_LOG_FILE):
    """Development mode - verbose terminál"""
    return setup_logging(mode="development", log_file=log_file)


def bind_context(**values) -> None:
    """Attach key/values (e.g. lang, policy) to every following log event."""
    structlog.contextvars.bind_contextvars(**values)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()


def get_logger(name: Optional[str] = None):
    """Return a structlog logger, optionally bound to a module name."""
    if name:
        return structlog.get_logger(name)
    return structlog.get_logger()
