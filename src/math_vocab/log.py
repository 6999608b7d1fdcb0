"""Structured logging setup for the library and the CLI.

The library itself only calls ``structlog.get_logger()``; nothing is printed
until an application (the CLI, a test, an editor plugin host) calls
:func:`configure_logging`.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import structlog

_LEVELS = {-1: logging.WARNING, 0: logging.INFO, 1: logging.DEBUG}


def _resolve_level(verbosity: int, level_name: Optional[str]) -> int:
    if level_name:
        level = logging.getLevelName(level_name.upper())
        if isinstance(level, int):
            return level
    return _LEVELS.get(verbosity, logging.INFO)


def configure_logging(
    verbosity: int = 0,
    log_file: Optional[Path] = None,
    level_name: Optional[str] = None,
) -> None:
    """Route structlog through stdlib logging.

    Args:
        verbosity: -1=quiet (WARNING), 0=normal (INFO), 1=verbose (DEBUG)
        log_file: Optional path to write JSON log lines (always at DEBUG)
        level_name: Explicit level name such as "DEBUG"; wins over verbosity
    """
    level = _resolve_level(verbosity, level_name)

    pre_chain: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handlers: list[logging.Handler] = []

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()),
            ],
        )
    )
    handlers.append(console)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        json_handler = logging.FileHandler(log_file, encoding="utf-8")
        json_handler.setFormatter(
            structlog.stdlib.ProcessorFormatter(
                processors=[
                    structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                    structlog.processors.JSONRenderer(ensure_ascii=False),
                ],
            )
        )
        json_handler.setLevel(logging.DEBUG)
        handlers.append(json_handler)

    root = logging.getLogger()
    root.handlers.clear()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(logging.DEBUG if log_file else level)
    console.setLevel(level)
