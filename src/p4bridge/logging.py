"""Logging setup for p4bridge.

All modules log through structlog with snake_case event names and
key/value context. Records from plain :mod:`logging` loggers (asyncio,
the embedding application) run through the same processor chain, so a
single stderr handler renders both.

Environment:
    P4BRIDGE_LOG_FORMAT: ``json`` for one JSON object per line; anything
        else gives the colored console format.
    P4BRIDGE_LOG_LEVEL: Level name, ``INFO`` when unset or unknown.

Passwords never reach the output: a ``password`` key is masked, and so is
the value following ``-P`` in a logged ``argv`` list.

Usage:
    from p4bridge.logging import configure_logging, get_logger, log_context

    configure_logging()
    log = get_logger(__name__)

    with log_context(workspace="/home/me/depot"):
        log.info("p4_command_started", command="opened")
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

__all__ = [
    "MASK",
    "configure_logging",
    "get_logger",
    "log_context",
    "mask_secrets",
]

FORMAT_ENV_VAR = "P4BRIDGE_LOG_FORMAT"
LEVEL_ENV_VAR = "P4BRIDGE_LOG_LEVEL"

#: Replacement text for secrets in log output.
MASK = "********"

_SECRET_KEYS = frozenset({"password", "p4_pass", "p4passwd"})


def _level_from_env() -> int:
    name = os.environ.get(LEVEL_ENV_VAR, "INFO").upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def _json_from_env() -> bool:
    return os.environ.get(FORMAT_ENV_VAR, "").strip().lower() == "json"


def _mask_argv(argv: list[Any]) -> list[Any]:
    masked = list(argv)
    for i, arg in enumerate(masked[:-1]):
        if arg == "-P":
            masked[i + 1] = MASK
    return masked


def mask_secrets(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """structlog processor hiding passwords in the event dict."""
    for key in list(event_dict):
        if key.lower() in _SECRET_KEYS and event_dict[key]:
            event_dict[key] = MASK
    argv = event_dict.get("argv")
    if isinstance(argv, (list, tuple)):
        event_dict["argv"] = _mask_argv(list(argv))
    return event_dict


def _pre_chain() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        mask_secrets,
    ]


def _renderer(json_output: bool) -> Processor:
    if json_output:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def configure_logging(
    *,
    level: int | None = None,
    json_output: bool | None = None,
) -> None:
    """Configure structlog and attach one stderr handler to the root logger.

    Safe to call more than once; the previous handler is replaced.

    Args:
        level: Log level; defaults to ``P4BRIDGE_LOG_LEVEL``.
        json_output: Render JSON; defaults to ``P4BRIDGE_LOG_FORMAT``.
    """
    if level is None:
        level = _level_from_env()
    if json_output is None:
        json_output = _json_from_env()

    structlog.configure(
        processors=[
            *_pre_chain(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=_pre_chain(),
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(json_output),
            ],
        )
    )

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger, usually ``get_logger(__name__)``."""
    log: structlog.stdlib.BoundLogger = structlog.get_logger(name)
    return log


@contextmanager
def log_context(**context: Any) -> Iterator[None]:
    """Add *context* to every event logged inside the block.

    Backed by contextvars, so tasks created inside the block inherit it.
    The previous values are restored on exit.
    """
    with structlog.contextvars.bound_contextvars(**context):
        yield
