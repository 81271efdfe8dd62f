"""Signature resolution: interface name -> declaring file and method signatures."""

from __future__ import annotations

import libcst as cst
import structlog

from codeweave.core.errors import RefactorError
from codeweave.frontend.models import Snapshot
from codeweave.frontend.service import FrontendService, SemanticModel
from codeweave.refactor.models import MethodSignature, ResolvedInterface

log = structlog.get_logger()


class SignatureResolver:
    """Locates an interface declaration inside one project.

    Files are scanned in sorted path order and the first interface with a
    matching name wins; there is no namespace disambiguation.
    """

    def __init__(self, frontend: FrontendService) -> None:
        self._frontend = frontend

    def resolve(self, snapshot: Snapshot, project: str, interface_name: str) -> ResolvedInterface:
        """Resolve an interface by simple name.

        Files that do not parse are skipped with a warning.

        Raises:
            RefactorError: project or interface not found (NOT_FOUND).
        """
        target = snapshot.project(project)
        for model in self._frontend.iter_semantic_models(snapshot, target.name):
            for info in model.classes:
                if info.name != interface_name:
                    continue
                if not self._frontend.is_interface(snapshot, model, info.node):
                    continue
                interface = self._build(model, info.node, model.path)
                log.info(
                    "refactor.resolved",
                    interface=interface_name,
                    path=model.path,
                    methods=[m.method_name for m in interface.methods],
                )
                return interface
        raise RefactorError.not_found("interface", interface_name, project=project)

    def _build(self, model: SemanticModel, node: cst.ClassDef, path: str) -> ResolvedInterface:
        symbol = self._frontend.resolve_declared_symbol(model, node)
        methods: list[MethodSignature] = []
        body = node.body.body if isinstance(node.body, cst.IndentedBlock) else ()
        for stmt in body:
            if not isinstance(stmt, cst.FunctionDef):
                continue
            methods.append(
                MethodSignature(
                    interface_name=node.name.value,
                    method_name=stmt.name.value,
                    declaring_file=path,
                    symbol=self._frontend.resolve_declared_symbol(model, stmt),
                    node=stmt,
                )
            )
        return ResolvedInterface(
            name=node.name.value,
            declaring_file=path,
            symbol=symbol,
            methods=tuple(methods),
        )
