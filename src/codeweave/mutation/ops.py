"""Mutation operations - batch application of rewrite plans.

Every file of a plan is edited in its own session and rendered in memory
first; storage is touched once, for the whole batch, and only after every
session succeeded.
"""

from __future__ import annotations

import difflib
import io
import tokenize
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Literal

import libcst as cst
import structlog

from codeweave.core.errors import MutationError
from codeweave.frontend.libcst_frontend import is_docstring
from codeweave.frontend.models import Snapshot, hash_content
from codeweave.frontend.service import FrontendService
from codeweave.mutation.plan import (
    EditOperation,
    InsertStatements,
    RenameIdentifier,
    RewritePlan,
)

log = structlog.get_logger()

# f-strings tokenize as one STRING before 3.12
_FSTRING_START = getattr(tokenize, "FSTRING_START", None)
_FSTRING_END = getattr(tokenize, "FSTRING_END", None)


@dataclass
class FileDelta:
    """Delta for a single file."""

    path: str
    action: Literal["updated"] = "updated"
    old_hash: str | None = None
    new_hash: str | None = None
    insertions: int = 0
    deletions: int = 0
    unified_diff: str | None = None


@dataclass
class CommitResult:
    """Result of applying a rewrite plan."""

    commit_id: str
    applied: bool
    dry_run: bool
    snapshot: Snapshot
    files: list[FileDelta] = field(default_factory=list)

    @property
    def files_changed(self) -> int:
        return len(self.files)

    @property
    def insertions(self) -> int:
        return sum(f.insertions for f in self.files)

    @property
    def deletions(self) -> int:
        return sum(f.deletions for f in self.files)

    @property
    def diff(self) -> str:
        return "".join(f.unified_diff or "" for f in self.files)


def _string_rows(text: str) -> set[int] | None:
    """Rows whose line ending falls inside a string literal, or None if untokenizable."""
    rows: set[int] = set()
    fstring_starts: list[int] = []
    try:
        for token in tokenize.generate_tokens(io.StringIO(text, newline="").readline):
            if token.type == _FSTRING_START:
                fstring_starts.append(token.start[0])
            elif token.type == _FSTRING_END:
                start = fstring_starts.pop()
                if not fstring_starts:
                    rows.update(range(start, token.end[0]))
            elif token.type == tokenize.STRING:
                rows.update(range(token.start[0], token.end[0]))
    except (tokenize.TokenError, SyntaxError):
        return None
    return rows


def normalize_whitespace(text: str) -> str:
    """Strip trailing blanks from code lines and end with exactly one newline.

    Lines are split on \\n, \\r and \\r\\n only and keep their own endings.
    Trailing blanks inside multi-line string literals are content and are
    kept; so is everything when the text does not tokenize.
    """
    lines = io.StringIO(text, newline="").readlines()
    protected = _string_rows(text)
    newline = next(
        (line[len(line.rstrip("\r\n")) :] for line in lines if line.endswith(("\n", "\r"))),
        "\n",
    )
    out: list[str] = []
    for row, line in enumerate(lines, start=1):
        body = line.rstrip("\r\n")
        ending = line[len(body) :]
        if protected is not None and row not in protected:
            body = body.rstrip(" \t")
        out.append(body + ending)
    while out and not out[-1].strip("\r\n"):
        out.pop()
    if not out:
        return ""
    if not out[-1].endswith(("\n", "\r")):
        out[-1] += newline
    return "".join(out)


def _line_stats(old: str, new: str) -> tuple[int, int]:
    insertions = deletions = 0
    for line in difflib.ndiff(old.splitlines(), new.splitlines()):
        if line.startswith("+ "):
            insertions += 1
        elif line.startswith("- "):
            deletions += 1
    return insertions, deletions


def _with_prologue(
    statements: tuple[cst.BaseStatement, ...],
) -> Callable[[cst.CSTNode], cst.CSTNode]:
    """Body rebuilder for methods without an anchor statement."""

    def rebuild(body: cst.CSTNode) -> cst.CSTNode:
        if isinstance(body, cst.SimpleStatementSuite):
            # def f(self): return 1
            return cst.IndentedBlock(
                header=body.trailing_whitespace,
                body=[*statements, cst.SimpleStatementLine(body=body.body)],
            )
        if isinstance(body, cst.IndentedBlock):
            existing = list(body.body)
            if existing and is_docstring(existing[0]):
                return body.with_changes(body=[existing[0], *statements, *existing[1:]])
            return body.with_changes(body=[*statements, *existing])
        return body

    return rebuild


class BatchEditApplicator:
    """Applies a RewritePlan as one all-or-nothing commit."""

    def __init__(self, frontend: FrontendService) -> None:
        self._frontend = frontend

    def apply(self, snapshot: Snapshot, plan: RewritePlan, *, dry_run: bool = False) -> CommitResult:
        """Apply plan against snapshot.

        Args:
            snapshot: The snapshot the plan was computed from.
            plan: Per-file edit operations.
            dry_run: Compute deltas and diffs only; touch nothing.

        Returns:
            CommitResult carrying the fresh snapshot (the same snapshot for a
            dry run or an empty plan).

        Raises:
            MutationError: plan computed against another snapshot (STALE_PLAN).
            CommitConflict: storage rejected the batch.
        """
        if plan.fingerprint != snapshot.fingerprint:
            raise MutationError.stale_plan(plan.fingerprint, snapshot.fingerprint)

        commit_id = str(uuid.uuid4())[:8]
        updates: dict[str, str] = {}
        deltas: list[FileDelta] = []

        for path, operations in plan:
            old_text = snapshot.file(path).text
            new_text = normalize_whitespace(self._render(snapshot, path, operations))
            if new_text == old_text:
                continue
            insertions, deletions = _line_stats(old_text, new_text)
            diff = None
            if dry_run:
                diff = "".join(
                    difflib.unified_diff(
                        old_text.splitlines(keepends=True),
                        new_text.splitlines(keepends=True),
                        fromfile=f"a/{path}",
                        tofile=f"b/{path}",
                    )
                )
            updates[path] = new_text
            deltas.append(
                FileDelta(
                    path=path,
                    old_hash=hash_content(old_text),
                    new_hash=hash_content(new_text),
                    insertions=insertions,
                    deletions=deletions,
                    unified_diff=diff,
                )
            )

        if dry_run or not updates:
            log.info(
                "mutation.planned" if dry_run else "mutation.noop",
                commit_id=commit_id,
                files=len(updates),
            )
            return CommitResult(
                commit_id=commit_id,
                applied=False,
                dry_run=dry_run,
                snapshot=snapshot,
                files=deltas,
            )

        written = self._frontend.apply_snapshot_update(snapshot, updates)
        fresh = self._frontend.reload_codebase(snapshot)
        result = CommitResult(
            commit_id=commit_id,
            applied=True,
            dry_run=False,
            snapshot=fresh,
            files=deltas,
        )
        log.info(
            "mutation.committed",
            commit_id=commit_id,
            files=list(written),
            insertions=result.insertions,
            deletions=result.deletions,
            generation=fresh.generation,
        )
        return result

    def _render(self, snapshot: Snapshot, path: str, operations: list[EditOperation]) -> str:
        session = self._frontend.open_edit_session(snapshot, path)
        for operation in operations:
            if isinstance(operation, InsertStatements):
                if operation.anchor is not None:
                    session.insert_before(operation.anchor, operation.statements)
                else:
                    session.replace_node(operation.method.body, _with_prologue(operation.statements))
            elif isinstance(operation, RenameIdentifier):
                session.replace_node(operation.node, operation.node.with_changes(value=operation.new_name))
        log.debug("mutation.session", path=path, edits=session.pending)
        return session.commit().code
