"""Logging for the mincompile command line.

structlog renders events from both mincompile modules and third-party
stdlib loggers (httpx) through one stderr handler, so stdout stays free
for command output. ``MINCOMPILE_LOG_LEVEL`` and ``MINCOMPILE_LOG_FORMAT``
(``console`` or ``json``) set the defaults; explicit arguments win.
"""

from __future__ import annotations

import logging
import os
import sys

import structlog

from mincompile.exceptions import ConfigurationError

LEVEL_ENV = "MINCOMPILE_LOG_LEVEL"
FORMAT_ENV = "MINCOMPILE_LOG_FORMAT"
FORMATS = ("console", "json")

# third-party loggers kept at WARNING unless mincompile itself logs below that
_QUIET_LOGGERS = ("httpx", "httpcore")


def _resolve_level(name: str) -> int:
    level = logging.getLevelName(name.upper())
    if not isinstance(level, int):
        raise ConfigurationError(f"Unknown log level {name!r}")
    return level


def _renderer(fmt: str, stream) -> structlog.types.Processor:
    if fmt == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=stream.isatty())


def setup_logging(level: str | None = None, fmt: str | None = None, stream=None) -> logging.Handler:
    """Route structlog and stdlib logging to one handler on *stream* (stderr).

    Calling it again replaces the handler installed by the previous call.
    Returns the installed handler.
    """
    numeric = _resolve_level(level or os.environ.get(LEVEL_ENV) or "INFO")
    fmt = (fmt or os.environ.get(FORMAT_ENV) or "console").lower()
    if fmt not in FORMATS:
        raise ConfigurationError(f"Unknown log format {fmt!r}; expected one of {', '.join(FORMATS)}")
    stream = stream or sys.stderr

    timestamper = structlog.processors.TimeStamper(
        fmt="iso" if fmt == "json" else "%H:%M:%S", utc=fmt == "json"
    )
    pre_chain: list[structlog.types.Processor] = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        timestamper,
    ]

    handler = logging.StreamHandler(stream)
    handler.set_name("mincompile")
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(fmt, stream),
            ],
        )
    )

    root = logging.getLogger()
    for old in [h for h in root.handlers if h.get_name() == "mincompile"]:
        root.removeHandler(old)
    root.addHandler(handler)
    root.setLevel(numeric)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric, logging.WARNING))

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            *pre_chain,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )
    return handler
