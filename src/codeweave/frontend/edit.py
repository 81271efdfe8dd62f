"""Single-file edit sessions over libcst trees.

Edits are recorded against nodes of the session's tree and materialized
in one transformer pass on commit(). A session commits at most once.
"""

from __future__ import annotations

from collections.abc import Sequence

import libcst as cst

from codeweave.core.errors import InternalError
from codeweave.frontend.service import Replacement


class _SessionTransformer(cst.CSTTransformer):
    def __init__(
        self,
        inserts: dict[cst.CSTNode, list[cst.BaseStatement]],
        replacements: dict[cst.CSTNode, Replacement],
    ) -> None:
        super().__init__()
        self._inserts = inserts
        self._replacements = replacements

    def on_leave(
        self, original_node: cst.CSTNode, updated_node: cst.CSTNode
    ) -> cst.CSTNode | cst.FlattenSentinel[cst.CSTNode] | cst.RemovalSentinel:
        result = updated_node
        replacement = self._replacements.get(original_node)
        if replacement is not None:
            result = replacement if isinstance(replacement, cst.CSTNode) else replacement(updated_node)
        statements = self._inserts.get(original_node)
        if statements:
            return cst.FlattenSentinel([*statements, result])
        return result


class TreeEditSession:
    """EditSession implementation bound to one file's tree."""

    def __init__(self, path: str, tree: cst.Module) -> None:
        self.path = path
        self._tree = tree
        self._inserts: dict[cst.CSTNode, list[cst.BaseStatement]] = {}
        self._replacements: dict[cst.CSTNode, Replacement] = {}
        self._committed = False

    @property
    def pending(self) -> int:
        """Number of recorded edits."""
        return sum(len(s) for s in self._inserts.values()) + len(self._replacements)

    def insert_before(self, node: cst.CSTNode, statements: Sequence[cst.BaseStatement]) -> None:
        """Insert statements, in order, immediately before a statement node."""
        self._check_open()
        self._inserts.setdefault(node, []).extend(statements)

    def replace_node(self, node: cst.CSTNode, new_node: Replacement) -> None:
        """Replace a node; a callable receives the node with nested edits applied."""
        self._check_open()
        self._replacements[node] = new_node

    def commit(self) -> cst.Module:
        self._check_open()
        self._committed = True
        return self._tree.visit(_SessionTransformer(self._inserts, self._replacements))

    def _check_open(self) -> None:
        if self._committed:
            raise InternalError.unexpected("edit session already committed", path=self.path)
