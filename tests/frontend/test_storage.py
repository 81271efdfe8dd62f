"""Tests for frontend/storage.py - atomic batch writes."""

from __future__ import annotations

import os
from pathlib import Path
from unittest.mock import patch

import pytest

from codeweave.core.errors import CommitConflict, ErrorCode
from codeweave.frontend.discovery import read_snapshot
from codeweave.frontend.storage import write_atomically

APP = "app/app/impl.py"
PLUGIN = "plugins/plugins/extra.py"


class TestWriteAtomically:
    """All-or-nothing persistence."""

    def test_writes_every_update(self, codebase: Path) -> None:
        snapshot = read_snapshot(codebase)

        written = write_atomically(snapshot, {APP: "A = 1\n", PLUGIN: "P = 1\n"})

        assert written == (APP, PLUGIN)
        assert (codebase / APP).read_text() == "A = 1\n"
        assert (codebase / PLUGIN).read_text() == "P = 1\n"

    def test_no_temporary_files_left_behind(self, codebase: Path) -> None:
        snapshot = read_snapshot(codebase)

        write_atomically(snapshot, {APP: "A = 1\n"})

        assert not list((codebase / "app/app").glob("*.codeweave"))

    def test_conflict_when_file_changed_since_snapshot(self, codebase: Path) -> None:
        snapshot = read_snapshot(codebase)
        (codebase / PLUGIN).write_text("changed = True\n")
        original_app = (codebase / APP).read_text()

        with pytest.raises(CommitConflict) as exc_info:
            write_atomically(snapshot, {APP: "A = 1\n", PLUGIN: "P = 1\n"})

        assert exc_info.value.code == ErrorCode.MUTATION_COMMIT_CONFLICT
        assert exc_info.value.details["paths"] == [PLUGIN]
        assert (codebase / APP).read_text() == original_app

    def test_conflict_when_file_deleted_since_snapshot(self, codebase: Path) -> None:
        snapshot = read_snapshot(codebase)
        (codebase / APP).unlink()

        with pytest.raises(CommitConflict):
            write_atomically(snapshot, {APP: "A = 1\n"})

    def test_failed_move_restores_already_moved_files(self, codebase: Path) -> None:
        snapshot = read_snapshot(codebase)
        originals = {p: (codebase / p).read_text() for p in (APP, PLUGIN)}
        real_replace = os.replace
        calls: list[object] = []

        def flaky_replace(src: object, dst: object) -> None:
            calls.append(dst)
            if len(calls) == 2:
                raise OSError("device busy")
            real_replace(src, dst)

        with (
            patch("codeweave.frontend.storage.os.replace", side_effect=flaky_replace),
            pytest.raises(CommitConflict, match="device busy"),
        ):
            write_atomically(snapshot, {APP: "A = 1\n", PLUGIN: "P = 1\n"})

        assert {p: (codebase / p).read_text() for p in (APP, PLUGIN)} == originals
        assert not list(codebase.rglob("*.codeweave"))

    def test_writes_in_the_file_encoding(self, codebase: Path) -> None:
        legacy = "app/app/legacy.py"
        (codebase / legacy).write_bytes("# -*- coding: latin-1 -*-\r\nNAME = 'café'\r\n".encode("latin-1"))
        snapshot = read_snapshot(codebase)

        write_atomically(snapshot, {legacy: "# -*- coding: latin-1 -*-\r\nNAME = 'thé'\r\n"})

        assert (codebase / legacy).read_bytes() == "# -*- coding: latin-1 -*-\r\nNAME = 'thé'\r\n".encode(
            "latin-1"
        )

    def test_unencodable_content_writes_nothing(self, codebase: Path) -> None:
        legacy = "app/app/legacy.py"
        (codebase / legacy).write_bytes(b"# -*- coding: latin-1 -*-\nNAME = 'x'\n")
        snapshot = read_snapshot(codebase)
        original_app = (codebase / APP).read_text()

        with pytest.raises(CommitConflict) as exc_info:
            write_atomically(snapshot, {APP: "A = 1\n", legacy: "NAME = '€'\n"})

        assert exc_info.value.details["paths"] == [legacy]
        assert (codebase / APP).read_text() == original_app
        assert not list(codebase.rglob("*.codeweave"))
