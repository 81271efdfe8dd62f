"""Frontend data model: codebase snapshots, symbols and located sites.

A Snapshot is a point-in-time, read-only view of every project and file.
It is never edited in place; committing edits produces a new Snapshot via
FrontendService.reload_codebase().
"""

from __future__ import annotations

import hashlib
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Literal

import libcst as cst

from codeweave.config.constants import DIGEST_LENGTH
from codeweave.core.errors import RefactorError

SymbolKind = Literal["class", "method"]


def hash_content(content: str) -> str:
    """Short sha256 digest used for change detection."""
    return hashlib.sha256(content.encode()).hexdigest()[:DIGEST_LENGTH]


@dataclass(frozen=True, slots=True)
class SourceFile:
    """A single source file as captured by a snapshot."""

    path: str  # posix, relative to the codebase root
    project: str
    text: str
    digest: str
    encoding: str = "utf-8"  # written back with the encoding it was read with


@dataclass(frozen=True, slots=True)
class Project:
    """A project: an independently importable source tree inside the codebase."""

    name: str
    root: str  # posix, relative to the codebase root ("." for the root itself)
    source_root: str  # root/src when present, else root
    paths: tuple[str, ...] = ()


@dataclass(frozen=True)
class Snapshot:
    """Immutable view of all projects and files at one point in time."""

    root: Path
    projects: tuple[Project, ...]
    files: Mapping[str, SourceFile]
    generation: int = 0
    fingerprint: str = ""

    @classmethod
    def build(
        cls,
        root: Path,
        projects: tuple[Project, ...],
        files: Mapping[str, SourceFile],
        *,
        generation: int = 0,
    ) -> Snapshot:
        """Create a snapshot, freezing the file mapping and computing its fingerprint."""
        digest = hashlib.sha256()
        for path in sorted(files):
            digest.update(path.encode())
            digest.update(files[path].digest.encode())
        return cls(
            root=root,
            projects=projects,
            files=MappingProxyType(dict(files)),
            generation=generation,
            fingerprint=digest.hexdigest()[:DIGEST_LENGTH],
        )

    def project(self, name: str) -> Project:
        for project in self.projects:
            if project.name == name:
                return project
        raise RefactorError.not_found("project", name, available=[p.name for p in self.projects])

    def file(self, path: str) -> SourceFile:
        try:
            return self.files[path]
        except KeyError:
            raise RefactorError.not_found("document", path) from None

    def project_of(self, path: str) -> Project:
        return self.project(self.file(path).project)

    def iter_files(self, project: str | None = None) -> Iterator[SourceFile]:
        """Files in sorted path order, optionally restricted to one project."""
        for path in sorted(self.files):
            source = self.files[path]
            if project is None or source.project == project:
                yield source

    def __contains__(self, path: object) -> bool:
        return path in self.files


@dataclass(frozen=True, slots=True)
class Symbol:
    """Resolved identity of a class or method declaration.

    Two symbols are the same symbol iff their fully qualified names match.
    """

    fqn: str
    name: str
    kind: SymbolKind
    path: str
    project: str
    owner_fqn: str | None = None


@dataclass(frozen=True, slots=True)
class CallSite:
    """A location referencing a method symbol."""

    path: str
    project: str
    line: int
    column: int
    name: str
    node: cst.Name = field(compare=False, repr=False)
    enclosing_type: str | None = None


@dataclass(frozen=True, slots=True)
class ImplementationSite:
    """A concrete method body implementing an interface method."""

    path: str
    project: str
    type_name: str
    type_fqn: str
    symbol: Symbol
    method: cst.FunctionDef = field(compare=False, repr=False)


@dataclass(slots=True)
class ClassInfo:
    """A class declaration with its resolved bases."""

    fqn: str
    name: str
    path: str
    project: str
    node: cst.ClassDef = field(repr=False)
    bases: tuple[str, ...]
    methods: dict[str, cst.FunctionDef] = field(repr=False)
