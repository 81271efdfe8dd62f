"""Structured logging for refactoring runs.

Every weave / forward-deprecated call runs inside an ``operation`` scope;
all events logged while it is active carry its ``operation_id`` and
``operation`` name, so a single run can be pulled out of a shared log file.
"""

from __future__ import annotations

import logging
import sys
from contextvars import ContextVar
from pathlib import Path
from types import TracebackType
from typing import TYPE_CHECKING, Any
from uuid import uuid4

import structlog

if TYPE_CHECKING:
    from codeweave.config.models import LoggingConfig, LogOutputConfig

_operation_id: ContextVar[str | None] = ContextVar("operation_id", default=None)
_operation: ContextVar[str | None] = ContextVar("operation", default=None)

# Loggers of libraries we drive; their debug output is not ours to show
_QUIET_LOGGERS = ("libcst",)


def get_operation_id() -> str | None:
    return _operation_id.get()


def set_operation_id(operation_id: str | None = None) -> str:
    """Set or generate the operation correlation ID."""
    oid = operation_id or uuid4().hex[:12]
    _operation_id.set(oid)
    return oid


def clear_operation_id() -> None:
    _operation_id.set(None)
    _operation.set(None)


class operation:  # noqa: N801
    """Scope one refactoring run; entering yields its correlation ID.

    Usage::

        with operation("weave") as operation_id:
            ...  # every event here carries operation_id and operation="weave"

    Exceptions pass through untouched; the frozen CodeWeaveError
    dataclasses reject the __traceback__ rewrite contextlib does.
    """

    def __init__(self, name: str) -> None:
        self._name = name

    def __enter__(self) -> str:
        oid = set_operation_id()
        _operation.set(self._name)
        return oid

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        clear_operation_id()


def _add_operation(
    _logger: structlog.types.WrappedLogger,
    _method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    if oid := _operation_id.get():
        event_dict["operation_id"] = oid
    if name := _operation.get():
        event_dict.setdefault("operation", name)
    return event_dict


def _level(name: str | None, default: int = logging.INFO) -> int:
    if not name:
        return default
    return logging.getLevelNamesMapping().get(name.upper(), default)


def configure_logging(
    *,
    config: LoggingConfig | None = None,
    level: str | None = None,
) -> None:
    """Configure structlog on top of stdlib logging.

    Args:
        config: Outputs and levels; a single stderr console output when None.
        level: Overrides the configured root level (the CLI's --verbose).
    """
    from codeweave.config.models import LoggingConfig

    if config is None:
        config = LoggingConfig(level=level or "INFO")  # type: ignore[arg-type]
    root_level = _level(level or config.level)

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S", key="timestamp"),
        _add_operation,  # type: ignore[list-item]
    ]
    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(root_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # Reconfigured per CLI invocation; cached loggers would keep stale levels
        cache_logger_on_first_use=False,
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(root_level)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    for output in config.outputs:
        handler = _create_handler(output.destination)
        # --verbose lowers every output, not only the root
        handler.setLevel(root_level if level else _level(output.level, root_level))
        handler.setFormatter(_formatter(output, shared_processors))
        root_logger.addHandler(handler)


def _create_handler(destination: str) -> logging.Handler:
    """Handler for stderr, stdout, or an absolute file path."""
    if destination == "stderr":
        return logging.StreamHandler(sys.stderr)
    if destination == "stdout":
        return logging.StreamHandler(sys.stdout)
    path = Path(destination)
    path.parent.mkdir(parents=True, exist_ok=True)
    return logging.FileHandler(path, mode="a", encoding="utf-8")


def _formatter(
    output: LogOutputConfig, shared_processors: list[structlog.types.Processor]
) -> logging.Formatter:
    renderer: structlog.types.Processor
    if output.format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        stream = sys.stdout if output.destination == "stdout" else sys.stderr
        renderer = structlog.dev.ConsoleRenderer(
            colors=output.destination in ("stderr", "stdout") and stream.isatty(),
            pad_event_to=0,
            pad_level=False,
        )
    return structlog.stdlib.ProcessorFormatter(
        processor=renderer,
        foreign_pre_chain=shared_processors,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    logger = structlog.get_logger()
    if name:
        logger = logger.bind(logger=name)
    return logger  # type: ignore[no-any-return]
