"""Compiler frontend contract.

The refactoring core never parses, resolves or writes source itself; it
calls into an implementation of FrontendService. LibcstFrontend is the
bundled implementation for Python codebases.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping, Sequence
from pathlib import Path
from typing import Protocol

import libcst as cst

from codeweave.frontend.models import CallSite, ClassInfo, ImplementationSite, Snapshot, Symbol

Replacement = cst.CSTNode | Callable[[cst.CSTNode], cst.CSTNode]
"""A replacement node, or a function of the already-updated original node."""


class SemanticModel(Protocol):
    """Per-file resolved view of a syntax tree."""

    @property
    def path(self) -> str: ...

    @property
    def tree(self) -> cst.Module: ...

    @property
    def project(self) -> str: ...

    @property
    def classes(self) -> Sequence[ClassInfo]: ...

    @property
    def attributes(self) -> Sequence[cst.Attribute]: ...

    def parent_of(self, node: cst.CSTNode) -> cst.CSTNode | None: ...

    def position_of(self, node: cst.CSTNode) -> tuple[int, int]: ...

    def enclosing_class(self, attribute: cst.Attribute) -> str | None: ...


class EditSession(Protocol):
    """Private, single-file edit buffer. Edits are applied on commit()."""

    def insert_before(self, node: cst.CSTNode, statements: Sequence[cst.BaseStatement]) -> None: ...

    def replace_node(self, node: cst.CSTNode, new_node: Replacement) -> None: ...

    def commit(self) -> cst.Module: ...


class FrontendService(Protocol):
    """Minimal contract the refactoring pipeline consumes."""

    def open_codebase(self, path: Path) -> Snapshot: ...

    def reload_codebase(self, snapshot: Snapshot) -> Snapshot: ...

    def get_syntax_tree(self, snapshot: Snapshot, path: str) -> cst.Module: ...

    def get_semantic_model(self, snapshot: Snapshot, path: str) -> SemanticModel: ...

    def iter_semantic_models(
        self, snapshot: Snapshot, project: str | None = None
    ) -> Iterator[SemanticModel]: ...

    def resolve_declared_symbol(self, model: SemanticModel, node: cst.CSTNode) -> Symbol: ...

    def find_references(self, symbol: Symbol, snapshot: Snapshot) -> Iterator[CallSite]: ...

    def find_implementations(
        self, symbol: Symbol, snapshot: Snapshot
    ) -> Iterator[ImplementationSite]: ...

    def is_interface(self, snapshot: Snapshot, model: SemanticModel, node: cst.ClassDef) -> bool: ...

    def is_abstract(self, method: cst.FunctionDef) -> bool: ...

    def open_edit_session(self, snapshot: Snapshot, path: str) -> EditSession: ...

    def apply_snapshot_update(
        self, snapshot: Snapshot, updates: Mapping[str, str]
    ) -> tuple[str, ...]: ...
