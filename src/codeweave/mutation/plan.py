"""Rewrite plans: per-file edit operations applied as one batch."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field

import libcst as cst

from codeweave.core.errors import RefactorError


@dataclass(frozen=True, slots=True)
class InsertStatements:
    """Prepend statements to a method body.

    ``anchor`` is the statement to insert before. ``None`` means the body has
    no statement to anchor on (one-line suite, or a lone docstring) and must
    be rebuilt with the statements as its prologue.
    """

    method: cst.FunctionDef = field(repr=False)
    anchor: cst.BaseStatement | None = field(repr=False)
    statements: tuple[cst.BaseStatement, ...] = field(repr=False)
    label: str = ""


@dataclass(frozen=True, slots=True)
class RenameIdentifier:
    """Rename one identifier occurrence."""

    node: cst.Name = field(repr=False)
    old_name: str
    new_name: str
    line: int = 0


EditOperation = InsertStatements | RenameIdentifier


@dataclass
class RewritePlan:
    """Per-file edit operations, fully computed before any file is touched.

    A plan is valid only for the snapshot whose fingerprint it carries.
    """

    fingerprint: str
    edits: dict[str, list[EditOperation]] = field(default_factory=dict)
    rejected: list[RefactorError] = field(default_factory=list)

    def add(self, path: str, operation: EditOperation) -> None:
        self.edits.setdefault(path, []).append(operation)

    def __iter__(self) -> Iterator[tuple[str, list[EditOperation]]]:
        return iter(self.edits.items())

    def __len__(self) -> int:
        return sum(len(ops) for ops in self.edits.values())

    def __bool__(self) -> bool:
        return bool(self.edits)

    @property
    def files(self) -> list[str]:
        return list(self.edits)

    def count(self, kind: type[EditOperation]) -> int:
        return sum(1 for ops in self.edits.values() for op in ops if isinstance(op, kind))
