"""Core module exports."""

from codeweave.core.errors import (
    AmbiguousSuccessor,
    CodeWeaveError,
    CommitConflict,
    ConfigError,
    ErrorCode,
    InternalError,
    MalformedDeprecationMessage,
    MutationError,
    RefactorError,
)
from codeweave.core.logging import (
    clear_operation_id,
    configure_logging,
    get_logger,
    get_operation_id,
    operation,
    set_operation_id,
)
from codeweave.core.progress import pluralize, status, task

__all__ = [
    # Errors
    "AmbiguousSuccessor",
    "CodeWeaveError",
    "CommitConflict",
    "ConfigError",
    "ErrorCode",
    "InternalError",
    "MalformedDeprecationMessage",
    "MutationError",
    "RefactorError",
    # Logging
    "clear_operation_id",
    "configure_logging",
    "get_logger",
    "get_operation_id",
    "operation",
    "set_operation_id",
    # Progress
    "pluralize",
    "status",
    "task",
]
