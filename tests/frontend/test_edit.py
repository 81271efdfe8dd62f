"""Tests for frontend/edit.py - single-file edit sessions."""

from __future__ import annotations

import libcst as cst
import pytest

from codeweave.core.errors import InternalError
from codeweave.frontend.edit import TreeEditSession

SOURCE = """\
class Service:
    def start(self):
        self.ready = True
        self.count = 0
"""


def _method(tree: cst.Module) -> cst.FunctionDef:
    cls = tree.body[0]
    assert isinstance(cls, cst.ClassDef) and isinstance(cls.body, cst.IndentedBlock)
    method = cls.body.body[0]
    assert isinstance(method, cst.FunctionDef)
    return method


class TestTreeEditSession:
    """Edits recorded against nodes, applied on commit."""

    def test_insert_before_keeps_statement_order(self) -> None:
        tree = cst.parse_module(SOURCE)
        method = _method(tree)
        first = method.body.body[0]
        session = TreeEditSession("svc.py", tree)

        session.insert_before(first, [cst.parse_statement("a()"), cst.parse_statement("b()")])

        assert session.pending == 2
        assert session.commit().code == (
            "class Service:\n"
            "    def start(self):\n"
            "        a()\n"
            "        b()\n"
            "        self.ready = True\n"
            "        self.count = 0\n"
        )

    def test_replace_node_with_node(self) -> None:
        tree = cst.parse_module(SOURCE)
        session = TreeEditSession("svc.py", tree)

        session.replace_node(_method(tree).name, cst.Name("run"))

        assert "def run(self):" in session.commit().code

    def test_replace_node_callable_sees_nested_edits(self) -> None:
        tree = cst.parse_module(SOURCE)
        method = _method(tree)
        session = TreeEditSession("svc.py", tree)
        session.replace_node(method.name, cst.Name("run"))
        seen: list[str] = []

        def rename_and_record(node: cst.CSTNode) -> cst.CSTNode:
            assert isinstance(node, cst.FunctionDef)
            seen.append(node.name.value)
            return node

        session.replace_node(method, rename_and_record)
        session.commit()

        assert seen == ["run"]

    def test_original_tree_is_untouched(self) -> None:
        tree = cst.parse_module(SOURCE)
        session = TreeEditSession("svc.py", tree)
        session.replace_node(_method(tree).name, cst.Name("run"))

        session.commit()

        assert tree.code == SOURCE

    def test_second_commit_raises(self) -> None:
        session = TreeEditSession("svc.py", cst.parse_module(SOURCE))
        session.commit()

        with pytest.raises(InternalError):
            session.commit()

    def test_edits_after_commit_raise(self) -> None:
        tree = cst.parse_module(SOURCE)
        session = TreeEditSession("svc.py", tree)
        session.commit()

        with pytest.raises(InternalError):
            session.replace_node(_method(tree).name, cst.Name("run"))
