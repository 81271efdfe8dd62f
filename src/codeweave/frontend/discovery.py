"""Project and file discovery on disk.

Layout rules:
- every immediate subdirectory of the codebase root that contains Python
  files is a project named after the directory;
- Python files directly under the root form a project named after the root;
- a project's source root is its ``src/`` directory when one exists.
"""

from __future__ import annotations

import io
import os
import tokenize
from collections.abc import Iterable
from pathlib import Path

import structlog

from codeweave.core.excludes import is_pruned
from codeweave.frontend.models import Project, Snapshot, SourceFile, hash_content

log = structlog.get_logger()

PYTHON_SUFFIXES = (".py", ".pyi")


def _walk_python_files(directory: Path, extra_excludes: Iterable[str]) -> list[Path]:
    extra = tuple(extra_excludes)
    found: list[Path] = []
    for dirpath, dirnames, filenames in os.walk(directory):
        dirnames[:] = sorted(d for d in dirnames if not is_pruned(d, extra))
        for filename in sorted(filenames):
            if filename.endswith(PYTHON_SUFFIXES):
                found.append(Path(dirpath) / filename)
    return found


def read_source(path: Path) -> tuple[str, str]:
    """Decode a Python file the way the interpreter does; returns (text, encoding).

    Honors a BOM or PEP 263 coding cookie and keeps line endings as they are
    on disk.

    Raises:
        SyntaxError: invalid or unknown coding cookie.
        UnicodeDecodeError: bytes not valid in the declared encoding.
    """
    data = path.read_bytes()
    encoding, _ = tokenize.detect_encoding(io.BytesIO(data).readline)
    return data.decode(encoding), encoding


def _rel(root: Path, path: Path) -> str:
    return path.relative_to(root).as_posix()


def read_snapshot(
    root: Path,
    *,
    generation: int = 0,
    extra_excludes: Iterable[str] = (),
) -> Snapshot:
    """Read every project under root into a fresh Snapshot."""
    root = root.resolve()
    extra = tuple(extra_excludes)
    projects: list[Project] = []
    files: dict[str, SourceFile] = {}

    def add_project(name: str, project_dir: Path, paths: list[Path]) -> None:
        src_dir = project_dir / "src"
        source_root = src_dir if src_dir.is_dir() else project_dir
        rel_paths: list[str] = []
        for path in paths:
            rel_path = _rel(root, path)
            try:
                text, encoding = read_source(path)
            except (SyntaxError, UnicodeDecodeError) as e:
                log.warning("discovery.decode_failed", path=rel_path, error=str(e))
                continue
            files[rel_path] = SourceFile(
                path=rel_path,
                project=name,
                text=text,
                digest=hash_content(text),
                encoding=encoding,
            )
            rel_paths.append(rel_path)
        projects.append(
            Project(
                name=name,
                root=_rel(root, project_dir) if project_dir != root else ".",
                source_root=_rel(root, source_root) if source_root != root else ".",
                paths=tuple(rel_paths),
            )
        )

    top_level = sorted(
        p for p in root.iterdir() if p.is_file() and p.name.endswith(PYTHON_SUFFIXES)
    )
    if top_level:
        add_project(root.name, root, top_level)

    for child in sorted(p for p in root.iterdir() if p.is_dir()):
        if is_pruned(child.name, extra) or child.name.startswith("."):
            continue
        paths = _walk_python_files(child, extra)
        if paths:
            add_project(child.name, child, paths)

    snapshot = Snapshot.build(root, tuple(projects), files, generation=generation)
    log.debug(
        "discovery.snapshot_read",
        root=str(root),
        projects=len(projects),
        files=len(files),
        generation=generation,
        fingerprint=snapshot.fingerprint,
    )
    return snapshot
