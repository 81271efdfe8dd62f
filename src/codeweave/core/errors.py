"""CodeWeave error types with typed error codes.

Error code ranges:
- 2xxx: Config
- 4xxx: Refactor (resolution, planning)
- 5xxx: Mutation (edit batches, commits)
- 9xxx: Internal
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002

    # Refactor (4xxx)
    REFACTOR_NOT_FOUND = 4001
    REFACTOR_MALFORMED_DEPRECATION = 4002
    REFACTOR_AMBIGUOUS_SUCCESSOR = 4003
    REFACTOR_INVALID_STATEMENT = 4004

    # Mutation (5xxx)
    MUTATION_STALE_PLAN = 5001
    MUTATION_COMMIT_CONFLICT = 5002

    # Internal (9xxx)
    INTERNAL_ERROR = 9001


@dataclass(frozen=True, slots=True)
class CodeWeaveError(Exception):
    """Base error with structured context."""

    code: ErrorCode
    message: str
    retryable: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'REFACTOR_NOT_FOUND')."""
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON output."""
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "retryable": self.retryable,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(CodeWeaveError):
    """Configuration-related errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )


class RefactorError(CodeWeaveError):
    """Errors raised while resolving symbols or building a rewrite plan."""

    @classmethod
    def not_found(cls, kind: str, name: str, **details: Any) -> "RefactorError":
        return cls(
            code=ErrorCode.REFACTOR_NOT_FOUND,
            message=f"{kind.capitalize()} not found: {name}",
            details={"kind": kind, "name": name, **details},
        )

    @classmethod
    def invalid_statement(cls, source: str, reason: str) -> "RefactorError":
        return cls(
            code=ErrorCode.REFACTOR_INVALID_STATEMENT,
            message=f"Cannot parse aspect statement {source!r}: {reason}",
            details={"source": source, "reason": reason},
        )


class MalformedDeprecationMessage(RefactorError):
    """Deprecation marker whose message lacks the successor pattern."""

    @classmethod
    def for_method(
        cls, interface: str, method: str, message: str, pattern: str
    ) -> "MalformedDeprecationMessage":
        return cls(
            code=ErrorCode.REFACTOR_MALFORMED_DEPRECATION,
            message=(
                f"Deprecation message of {interface}.{method} does not contain "
                f"{pattern!r}: {message!r}"
            ),
            details={
                "interface": interface,
                "method": method,
                "deprecation_message": message,
                "pattern": pattern,
            },
        )


class AmbiguousSuccessor(RefactorError):
    """Successor name extracted from a marker that names no sibling method."""

    @classmethod
    def for_method(
        cls, interface: str, method: str, successor: str
    ) -> "AmbiguousSuccessor":
        return cls(
            code=ErrorCode.REFACTOR_AMBIGUOUS_SUCCESSOR,
            message=(
                f"Successor {successor!r} of {interface}.{method} is not a method "
                f"of {interface}"
            ),
            details={"interface": interface, "method": method, "successor": successor},
        )


class MutationError(CodeWeaveError):
    """Errors raised while applying a rewrite plan."""

    @classmethod
    def stale_plan(cls, expected: str, actual: str) -> "MutationError":
        return cls(
            code=ErrorCode.MUTATION_STALE_PLAN,
            message="Rewrite plan was computed against a different snapshot",
            details={"plan_fingerprint": expected, "snapshot_fingerprint": actual},
        )


class CommitConflict(MutationError):
    """Snapshot update rejected because storage changed underneath it."""

    @classmethod
    def for_paths(cls, paths: list[str]) -> "CommitConflict":
        return cls(
            code=ErrorCode.MUTATION_COMMIT_CONFLICT,
            message=f"Files changed on disk since the snapshot was taken: {', '.join(paths)}",
            details={"paths": paths},
        )

    @classmethod
    def write_failed(cls, path: str, reason: str) -> "CommitConflict":
        return cls(
            code=ErrorCode.MUTATION_COMMIT_CONFLICT,
            message=f"Failed to write {path}: {reason}",
            details={"paths": [path], "reason": reason},
        )


class InternalError(CodeWeaveError):
    """Internal/unexpected errors."""

    @classmethod
    def unexpected(cls, reason: str, **details: Any) -> "InternalError":
        return cls(
            code=ErrorCode.INTERNAL_ERROR,
            message=f"Internal error: {reason}",
            details=details,
        )
