"""Refactor operations - aspect weaving and deprecated-call forwarding.

Each operation runs one sequential pipeline against the session's current
snapshot: resolve the interface, locate sites (filtering excluded methods),
plan every edit, then apply the plan as one atomic commit. A successful
commit replaces the session snapshot.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from functools import partial
from pathlib import Path

import libcst as cst
import structlog

from codeweave.config.loader import load_config
from codeweave.config.models import CodeWeaveConfig, RenameMode
from codeweave.core.errors import RefactorError
from codeweave.core.logging import operation
from codeweave.frontend.libcst_frontend import LibcstFrontend, parse_statements
from codeweave.frontend.models import ImplementationSite, Snapshot
from codeweave.frontend.service import FrontendService
from codeweave.mutation.ops import BatchEditApplicator, CommitResult
from codeweave.mutation.plan import RenameIdentifier, RewritePlan
from codeweave.refactor.exclusion import is_excluded
from codeweave.refactor.locator import SiteLocator
from codeweave.refactor.models import MethodSignature, ResolvedInterface
from codeweave.refactor.planner import plan_aspect, plan_deprecation
from codeweave.refactor.resolver import SignatureResolver

log = structlog.get_logger()


@dataclass
class WeaveResult:
    """Result of weave_aspect."""

    operation_id: str
    interface: str
    woven: list[str] = field(default_factory=list)  # method names that received the aspect
    excluded: list[str] = field(default_factory=list)  # method names filtered by call sites
    implementations: int = 0
    commit: CommitResult | None = None


@dataclass
class ForwardResult:
    """Result of forward_deprecated."""

    operation_id: str
    interface: str
    forwarded: list[tuple[str, str]] = field(default_factory=list)  # (obsolete, successor)
    renamed: int = 0
    rejected: list[RefactorError] = field(default_factory=list)
    commit: CommitResult | None = None


class RefactorOps:
    """Refactoring session over one codebase, targeting one project.

    The session owns the current snapshot; every successful commit swaps it
    for the reloaded one. Plans are never reused across calls.
    """

    def __init__(
        self,
        frontend: FrontendService,
        snapshot: Snapshot,
        project: str,
        *,
        config: CodeWeaveConfig | None = None,
    ) -> None:
        self._frontend = frontend
        self._snapshot = snapshot
        self._project = snapshot.project(project).name
        self._config = config or CodeWeaveConfig()
        self._resolver = SignatureResolver(frontend)
        self._locator = SiteLocator(frontend)
        self._applicator = BatchEditApplicator(frontend)

    @classmethod
    def open(cls, root: Path, project: str, config: CodeWeaveConfig | None = None) -> RefactorOps:
        """Open the codebase at root with the libcst frontend."""
        if config is None:
            config = load_config(root)
        frontend = LibcstFrontend(config.discovery)
        return cls(frontend, frontend.open_codebase(root), project, config=config)

    @property
    def snapshot(self) -> Snapshot:
        return self._snapshot

    @property
    def project(self) -> str:
        return self._project

    # =========================================================================
    # Aspect weaving
    # =========================================================================

    def weave_aspect(
        self,
        interface_name: str,
        statements: Sequence[str | cst.BaseStatement],
        *,
        methods: Iterable[str] | None = None,
        excluded_projects: Iterable[str] = (),
        excluded_classes: Iterable[str] = (),
        dry_run: bool = False,
    ) -> WeaveResult:
        """Prepend statements to every implementation of an interface's methods.

        Args:
            interface_name: Simple name of the interface in the session project.
            statements: Statement sources (or libcst statements), inserted in order.
            methods: Restrict to these method names; all methods when None.
            excluded_projects: Added to the configured excluded projects.
            excluded_classes: Added to the configured excluded classes.
            dry_run: Plan and diff only.

        Raises:
            RefactorError: unknown interface or method (NOT_FOUND), or an
                unparsable statement (INVALID_STATEMENT).
            MutationError: the plan could not be committed.
        """
        with operation("weave") as operation_id:
            parsed = tuple(parse_statements(statements))
            if not parsed:
                raise RefactorError.invalid_statement("", "at least one statement is required")

            snapshot = self._snapshot
            interface = self._resolver.resolve(snapshot, self._project, interface_name)
            signatures = self._select(interface, methods)

            weave = self._config.weave
            projects = {*weave.excluded_projects, *excluded_projects}
            classes = {*weave.excluded_classes, *excluded_classes}
            model_for = partial(self._frontend.get_semantic_model, snapshot)

            result = WeaveResult(operation_id=operation_id, interface=interface.name)
            sites: list[ImplementationSite] = []
            for signature in signatures:
                if is_excluded(
                    self._locator.find_call_sites(snapshot, signature),
                    projects,
                    classes,
                    model_for=model_for,
                    mode=weave.exclusion_mode,
                    max_depth=self._config.limits.ancestor_walk_max_depth,
                ):
                    log.info("weave.excluded", method=signature.qualified_name)
                    result.excluded.append(signature.method_name)
                    continue
                found = list(self._locator.find_implementations(snapshot, signature))
                if found:
                    result.woven.append(signature.method_name)
                sites.extend(found)

            plan = plan_aspect(snapshot, sites, parsed)
            result.implementations = len(plan)
            result.commit = self._commit(plan, dry_run)
            log.info(
                "weave.done",
                interface=interface.name,
                woven=result.woven,
                excluded=result.excluded,
                implementations=result.implementations,
                dry_run=dry_run,
            )
            return result

    # =========================================================================
    # Deprecation forwarding
    # =========================================================================

    def forward_deprecated(
        self,
        interface_name: str,
        marker_pattern: str | None = None,
        *,
        rename_mode: RenameMode | None = None,
        dry_run: bool = False,
    ) -> ForwardResult:
        """Rename calls to deprecated interface methods to their successors.

        Malformed markers and unknown successors are reported in
        ``rejected`` and do not block the other methods.
        """
        with operation("forward-deprecated") as operation_id:
            deprecation = self._config.deprecation
            snapshot = self._snapshot
            interface = self._resolver.resolve(snapshot, self._project, interface_name)
            plan = plan_deprecation(
                snapshot,
                interface.methods,
                marker_pattern or deprecation.marker_pattern,
                frontend=self._frontend,
                locator=self._locator,
                decorators=deprecation.decorators,
                rename_mode=rename_mode or deprecation.rename_mode,
            )
            forwarded = sorted(
                {
                    (op.old_name, op.new_name)
                    for _, operations in plan
                    for op in operations
                    if isinstance(op, RenameIdentifier)
                }
            )
            result = ForwardResult(
                operation_id=operation_id,
                interface=interface.name,
                forwarded=forwarded,
                renamed=plan.count(RenameIdentifier),
                rejected=list(plan.rejected),
            )
            result.commit = self._commit(plan, dry_run)
            log.info(
                "deprecation.done",
                interface=interface.name,
                forwarded=len(forwarded),
                renamed=result.renamed,
                rejected=len(result.rejected),
                dry_run=dry_run,
            )
            return result

    # =========================================================================
    # Helpers
    # =========================================================================

    def _select(
        self, interface: ResolvedInterface, names: Iterable[str] | None
    ) -> list[MethodSignature]:
        if names is None:
            return list(interface.methods)
        # Unknown names raise NOT_FOUND before anything is planned
        return [interface.method(name) for name in dict.fromkeys(names)]

    def _commit(self, plan: RewritePlan, dry_run: bool) -> CommitResult:
        commit = self._applicator.apply(self._snapshot, plan, dry_run=dry_run)
        self._snapshot = commit.snapshot
        return commit
