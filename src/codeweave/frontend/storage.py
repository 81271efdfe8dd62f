"""Atomic persistence of a batch of file updates.

All-or-nothing protocol:
1. verify every target still matches the snapshot digest (else CommitConflict);
2. stage new contents in temporary siblings, in the encoding each file was read with;
3. move staged files into place, restoring originals if any move fails.
"""

from __future__ import annotations

import os
import tempfile
from collections.abc import Mapping
from pathlib import Path

import structlog

from codeweave.core.errors import CommitConflict
from codeweave.frontend.discovery import read_source
from codeweave.frontend.models import Snapshot, hash_content

log = structlog.get_logger()


def _stage(target: Path, content: str, encoding: str) -> Path:
    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{target.name}.", suffix=".codeweave", dir=target.parent
    )
    try:
        with os.fdopen(fd, "w", encoding=encoding, newline="") as f:
            f.write(content)
    except (OSError, UnicodeEncodeError):
        Path(tmp_name).unlink(missing_ok=True)
        raise
    return Path(tmp_name)


def _discard(paths: list[Path]) -> None:
    for path in paths:
        path.unlink(missing_ok=True)


def write_atomically(snapshot: Snapshot, updates: Mapping[str, str]) -> tuple[str, ...]:
    """Persist updates (relative path -> new content) against snapshot.

    Returns:
        The relative paths written, in update order.

    Raises:
        CommitConflict: a target changed on disk since the snapshot was read,
            or the batch could not be moved into place.
    """
    root = snapshot.root
    conflicts: list[str] = []
    originals: dict[str, str] = {}
    for rel_path in updates:
        target = root / rel_path
        expected = snapshot.file(rel_path).digest
        try:
            current, _ = read_source(target)
        except (FileNotFoundError, SyntaxError, UnicodeDecodeError):
            conflicts.append(rel_path)
            continue
        if hash_content(current) != expected:
            conflicts.append(rel_path)
        originals[rel_path] = current
    if conflicts:
        log.warning("storage.conflict", paths=conflicts)
        raise CommitConflict.for_paths(conflicts)

    staged: dict[str, Path] = {}
    try:
        for rel_path, content in updates.items():
            staged[rel_path] = _stage(root / rel_path, content, snapshot.file(rel_path).encoding)
    except (OSError, UnicodeEncodeError) as e:
        _discard(list(staged.values()))
        raise CommitConflict.write_failed(rel_path, str(e)) from e

    moved: list[str] = []
    try:
        for rel_path, tmp in staged.items():
            os.replace(tmp, root / rel_path)
            moved.append(rel_path)
    except OSError as e:
        failed = next(p for p in staged if p not in moved)
        log.error("storage.rollback", failed=failed, restored=moved)
        for rel_path in moved:
            (root / rel_path).write_text(
                originals[rel_path], encoding=snapshot.file(rel_path).encoding, newline=""
            )
        _discard([tmp for p, tmp in staged.items() if p not in moved])
        raise CommitConflict.write_failed(failed, str(e)) from e

    log.debug("storage.written", files=len(moved))
    return tuple(moved)
