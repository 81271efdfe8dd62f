"""Tests for the codeweave CLI."""

from __future__ import annotations

import os
import subprocess
import sys
from pathlib import Path

import pytest
from click.testing import CliRunner

from codeweave.cli.main import cli

runner = CliRunner()

APP = "app/app/impl.py"
CALLERS = "client/client/callers.py"


class TestImports:
    """Each entry module imports on its own in a fresh interpreter."""

    @pytest.mark.parametrize(
        "module",
        [
            "codeweave.cli.main",
            "codeweave.mutation",
            "codeweave.mutation.ops",
            "codeweave.refactor.planner",
            "codeweave.refactor",
        ],
    )
    def test_cold_import(self, module: str) -> None:
        src = str(Path(__file__).parents[2] / "src")
        path = os.pathsep.join(filter(None, [src, os.environ.get("PYTHONPATH")]))
        env = {**os.environ, "PYTHONPATH": path}

        proc = subprocess.run(
            [sys.executable, "-c", f"import {module}"], env=env, capture_output=True, text=True, check=False
        )

        assert proc.returncode == 0, proc.stderr


class TestGroup:
    """Top-level group options."""

    def test_version(self) -> None:
        result = runner.invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert "codeweave" in result.output

    def test_help_lists_commands(self) -> None:
        result = runner.invoke(cli, ["--help"])

        assert result.exit_code == 0
        assert "weave" in result.output
        assert "forward-deprecated" in result.output


class TestWeaveCommand:
    """codeweave weave."""

    def test_weaves_statements(self, codebase: Path) -> None:
        result = runner.invoke(
            cli,
            ["weave", str(codebase), "-p", "services", "-i", "IAppService", "-s", "audit()", "-m", "start"],
        )

        assert result.exit_code == 0, result.output
        assert (codebase / APP).read_text().count("audit()") == 2

    def test_dry_run_prints_diff(self, codebase: Path) -> None:
        before = (codebase / APP).read_text()

        result = runner.invoke(
            cli,
            ["weave", str(codebase), "-p", "services", "-i", "IAppService", "-s", "audit()", "--dry-run"],
        )

        assert result.exit_code == 0, result.output
        assert "+        audit()" in result.output
        assert (codebase / APP).read_text() == before

    def test_exclude_class(self, codebase: Path) -> None:
        result = runner.invoke(
            cli,
            [
                "weave",
                str(codebase),
                "--project",
                "services",
                "--interface",
                "IAppService",
                "--statement",
                "audit()",
                "--exclude-class",
                "LegacyCaller",
            ],
        )

        assert result.exit_code == 0, result.output
        assert "    def handle(self, request):\n        return request\n" in (codebase / APP).read_text()

    def test_unknown_interface_is_click_error(self, codebase: Path) -> None:
        result = runner.invoke(
            cli, ["weave", str(codebase), "-p", "services", "-i", "IMissing", "-s", "audit()"]
        )

        assert result.exit_code == 1
        assert "REFACTOR_NOT_FOUND" in result.output

    def test_unknown_project_is_click_error(self, codebase: Path) -> None:
        result = runner.invoke(
            cli, ["weave", str(codebase), "-p", "nope", "-i", "IAppService", "-s", "audit()"]
        )

        assert result.exit_code == 1
        assert "Project not found: nope" in result.output

    def test_statement_is_required(self, codebase: Path) -> None:
        result = runner.invoke(cli, ["weave", str(codebase), "-p", "services", "-i", "IAppService"])

        assert result.exit_code == 2


class TestForwardDeprecatedCommand:
    """codeweave forward-deprecated."""

    def test_forwards_calls(self, codebase: Path) -> None:
        result = runner.invoke(
            cli, ["forward-deprecated", str(codebase), "-p", "services", "-i", "IAppService"]
        )

        assert result.exit_code == 0, result.output
        assert ".handle_old" not in (codebase / CALLERS).read_text()

    def test_resolved_rename_mode(self, codebase: Path) -> None:
        result = runner.invoke(
            cli,
            [
                "forward-deprecated",
                str(codebase),
                "-p",
                "services",
                "-i",
                "IAppService",
                "--rename-mode",
                "resolved",
            ],
        )

        assert result.exit_code == 0, result.output
        assert "legacy_registry.handle_old()" in (codebase / CALLERS).read_text()

    def test_invalid_rename_mode(self, codebase: Path) -> None:
        result = runner.invoke(
            cli,
            ["forward-deprecated", str(codebase), "-p", "services", "-i", "IAppService", "--rename-mode", "fuzzy"],
        )

        assert result.exit_code == 2
