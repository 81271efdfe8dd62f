"""Frontend module - codebase snapshots, symbol resolution, edit sessions, storage."""

from codeweave.frontend.libcst_frontend import LibcstFrontend, parse_statements
from codeweave.frontend.models import (
    CallSite,
    ImplementationSite,
    Project,
    Snapshot,
    SourceFile,
    Symbol,
)
from codeweave.frontend.service import EditSession, FrontendService, SemanticModel

__all__ = [
    "CallSite",
    "EditSession",
    "FrontendService",
    "ImplementationSite",
    "LibcstFrontend",
    "Project",
    "SemanticModel",
    "Snapshot",
    "SourceFile",
    "Symbol",
    "parse_statements",
]
