"""Directory names that project discovery never descends into.

Tier 0 (HARDCODED_DIRS): VCS internals and CodeWeave data, always skipped.
Tier 1 (DEFAULT_PRUNABLE_DIRS): dependencies, caches and build outputs.
Users can add further names through ``discovery.extra_excludes``.
"""

from __future__ import annotations

from collections.abc import Iterable

# =============================================================================
# Tier 0: HARDCODED - Never traverse
# =============================================================================

HARDCODED_DIRS: frozenset[str] = frozenset(
    (
        # VCS internals
        ".git",
        ".svn",
        ".hg",
        ".bzr",
        # CodeWeave data
        ".codeweave",
    )
)

# =============================================================================
# Tier 1: DEFAULT_PRUNABLE - Excluded by default
# =============================================================================

DEFAULT_PRUNABLE_DIRS: frozenset[str] = frozenset(
    (
        # -------------------------------------------------------------------------
        # Python ecosystem
        # -------------------------------------------------------------------------
        "venv",
        ".venv",
        ".virtualenv",
        "virtualenv",
        "env",
        ".env",
        "__pycache__",
        ".pytest_cache",
        ".mypy_cache",
        ".ruff_cache",
        ".tox",
        ".nox",
        "eggs",
        ".eggs",
        "site-packages",
        ".ipynb_checkpoints",
        ".hypothesis",
        "htmlcov",
        # -------------------------------------------------------------------------
        # JavaScript tooling that often sits next to Python code
        # -------------------------------------------------------------------------
        "node_modules",
        # -------------------------------------------------------------------------
        # Generic build/output directories
        # -------------------------------------------------------------------------
        "dist",
        "build",
        "out",
        ".coverage",
        # -------------------------------------------------------------------------
        # IDE/Editor directories
        # -------------------------------------------------------------------------
        ".idea",
        ".vscode",
        ".vs",
        # -------------------------------------------------------------------------
        # Misc caches
        # -------------------------------------------------------------------------
        ".cache",
    )
)

PRUNABLE_DIRS: frozenset[str] = HARDCODED_DIRS | DEFAULT_PRUNABLE_DIRS


def is_pruned(dirname: str, extra: Iterable[str] = ()) -> bool:
    """Check whether discovery should skip a directory.

    Egg-info directories are matched by suffix since their prefix is the
    distribution name.
    """
    if dirname in PRUNABLE_DIRS or dirname.endswith(".egg-info"):
        return True
    return dirname in frozenset(extra)
