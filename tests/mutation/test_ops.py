"""Tests for mutation operations - batch application of rewrite plans.

Covers:
- Whitespace normalization
- Stale plan rejection
- Dry run mode (diffs, nothing written)
- Body prologue placement (docstrings, one-line suites)
- All-or-nothing commit under session failures and storage conflicts
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from unittest.mock import patch

import pytest

from codeweave.core.errors import CommitConflict, ErrorCode, MutationError
from codeweave.frontend.libcst_frontend import LibcstFrontend, parse_statements
from codeweave.frontend.models import Snapshot
from codeweave.mutation.ops import BatchEditApplicator, normalize_whitespace
from codeweave.mutation.plan import RewritePlan
from codeweave.refactor.locator import SiteLocator
from codeweave.refactor.planner import plan_aspect
from codeweave.refactor.resolver import SignatureResolver

APP = "app/app/impl.py"
PLUGIN = "plugins/plugins/extra.py"


def _aspect_plan(frontend: LibcstFrontend, snapshot: Snapshot, method: str = "start") -> RewritePlan:
    interface = SignatureResolver(frontend).resolve(snapshot, "services", "IAppService")
    sites = SiteLocator(frontend).find_implementations(snapshot, interface.method(method))
    return plan_aspect(snapshot, sites, parse_statements(["audit()"]))


def _read(root: Path, *paths: str) -> dict[str, str]:
    return {p: (root / p).read_text() for p in paths}


class TestNormalizeWhitespace:
    """Incidental whitespace cleanup."""

    def test_strips_trailing_spaces(self) -> None:
        assert normalize_whitespace("x = 1   \ny = 2\t\n") == "x = 1\ny = 2\n"

    def test_exactly_one_final_newline(self) -> None:
        assert normalize_whitespace("x = 1") == "x = 1\n"
        assert normalize_whitespace("x = 1\n\n\n") == "x = 1\n"

    def test_empty_text(self) -> None:
        assert normalize_whitespace("\n\n") == ""

    def test_trailing_spaces_inside_string_literal_kept(self) -> None:
        text = "doc = '''hello   \nworld'''   \n"

        assert normalize_whitespace(text) == "doc = '''hello   \nworld'''\n"

    def test_trailing_spaces_inside_fstring_kept(self) -> None:
        text = "msg = f\"\"\"{x}   \n{y}\"\"\"\n"

        assert normalize_whitespace(text) == text

    def test_crlf_endings_preserved(self) -> None:
        assert normalize_whitespace("x = 1  \r\ny = 2\r\n\r\n") == "x = 1\r\ny = 2\r\n"
        assert normalize_whitespace("x = 1\r\ny = 2") == "x = 1\r\ny = 2\r\n"

    def test_form_feed_and_line_separator_are_not_line_breaks(self) -> None:
        text = "x = 1\n\x0c\ny = 'a\u2028b'\n"

        assert normalize_whitespace(text) == text

    def test_untokenizable_text_only_loses_trailing_blank_lines(self) -> None:
        assert normalize_whitespace("x = (1   \n\n") == "x = (1   \n"


class TestBatchEditApplicator:
    """Applying aspect plans."""

    def test_stale_plan_is_rejected(self, codebase: Path) -> None:
        frontend = LibcstFrontend()
        snapshot = frontend.open_codebase(codebase)
        plan = RewritePlan(fingerprint="not-this-one")

        with pytest.raises(MutationError) as exc_info:
            BatchEditApplicator(frontend).apply(snapshot, plan)

        assert exc_info.value.code == ErrorCode.MUTATION_STALE_PLAN

    def test_prologue_after_docstring(self, codebase: Path) -> None:
        frontend = LibcstFrontend()
        snapshot = frontend.open_codebase(codebase)

        BatchEditApplicator(frontend).apply(snapshot, _aspect_plan(frontend, snapshot))

        assert (
            "    def start(self) -> None:\n"
            '        """Start the service."""\n'
            "        audit()\n"
            "        self.ready = True\n"
        ) in (codebase / APP).read_text()

    def test_one_line_suite_becomes_block(self, codebase: Path) -> None:
        frontend = LibcstFrontend()
        snapshot = frontend.open_codebase(codebase)

        BatchEditApplicator(frontend).apply(snapshot, _aspect_plan(frontend, snapshot))

        assert (
            "class FastService(AppService):\n"
            "    def start(self) -> None:\n"
            "        audit()\n"
            "        self.ready = True\n"
        ) in (codebase / APP).read_text()

    def test_docstring_only_body(self, make_codebase: Callable[..., Path]) -> None:
        root = make_codebase(
            {
                PLUGIN: (
                    "from services.contracts import BaseService\n\n\n"
                    "class PluginService(BaseService):\n"
                    "    def start(self) -> None:\n"
                    '        """Nothing to do."""\n'
                )
            }
        )
        frontend = LibcstFrontend()
        snapshot = frontend.open_codebase(root)

        BatchEditApplicator(frontend).apply(snapshot, _aspect_plan(frontend, snapshot))

        assert (root / PLUGIN).read_text().endswith(
            "    def start(self) -> None:\n"
            '        """Nothing to do."""\n'
            "        audit()\n"
        )

    def test_commit_returns_fresh_snapshot_and_deltas(self, codebase: Path) -> None:
        frontend = LibcstFrontend()
        snapshot = frontend.open_codebase(codebase)

        result = BatchEditApplicator(frontend).apply(snapshot, _aspect_plan(frontend, snapshot))

        assert result.applied and not result.dry_run
        assert result.snapshot.generation == snapshot.generation + 1
        assert "audit()" in result.snapshot.file(PLUGIN).text
        assert [d.path for d in result.files] == [APP, PLUGIN]
        assert result.insertions == 5  # AppService +1, FastService +3, PluginService +1
        assert result.deletions == 1  # FastService one-line def
        assert all(d.old_hash != d.new_hash for d in result.files)
        assert len(result.commit_id) == 8

    def test_dry_run_touches_nothing(self, codebase: Path) -> None:
        frontend = LibcstFrontend()
        snapshot = frontend.open_codebase(codebase)
        before = _read(codebase, APP, PLUGIN)

        result = BatchEditApplicator(frontend).apply(
            snapshot, _aspect_plan(frontend, snapshot), dry_run=True
        )

        assert _read(codebase, APP, PLUGIN) == before
        assert not result.applied and result.dry_run
        assert result.snapshot is snapshot
        assert f"--- a/{APP}" in result.diff
        assert "+        audit()" in result.diff

    def test_empty_plan_is_noop(self, codebase: Path) -> None:
        frontend = LibcstFrontend()
        snapshot = frontend.open_codebase(codebase)

        result = BatchEditApplicator(frontend).apply(snapshot, RewritePlan(snapshot.fingerprint))

        assert not result.applied
        assert result.files == []
        assert result.snapshot is snapshot


class TestAtomicity:
    """Nothing is written unless every file succeeds."""

    def test_session_failure_leaves_disk_unchanged(self, codebase: Path) -> None:
        frontend = LibcstFrontend()
        snapshot = frontend.open_codebase(codebase)
        plan = _aspect_plan(frontend, snapshot)
        before = _read(codebase, APP, PLUGIN)
        real_open = frontend.open_edit_session
        opened: list[str] = []

        def failing_second_session(snap: Snapshot, path: str):  # type: ignore[no-untyped-def]
            opened.append(path)
            if len(opened) == 2:
                raise RuntimeError("session exploded")
            return real_open(snap, path)

        with (
            patch.object(frontend, "open_edit_session", side_effect=failing_second_session),
            pytest.raises(RuntimeError, match="session exploded"),
        ):
            BatchEditApplicator(frontend).apply(snapshot, plan)

        assert opened == [APP, PLUGIN]
        assert _read(codebase, APP, PLUGIN) == before

    def test_storage_conflict_writes_nothing(self, codebase: Path) -> None:
        frontend = LibcstFrontend()
        snapshot = frontend.open_codebase(codebase)
        plan = _aspect_plan(frontend, snapshot)
        (codebase / PLUGIN).write_text("edited = True\n")
        app_before = (codebase / APP).read_text()

        with pytest.raises(CommitConflict):
            BatchEditApplicator(frontend).apply(snapshot, plan)

        assert (codebase / APP).read_text() == app_before
        assert (codebase / PLUGIN).read_text() == "edited = True\n"
