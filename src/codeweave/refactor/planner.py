"""Rewrite planners: aspect prologues and deprecated-call forwarding.

Both planners only read the snapshot. The plan they return is applied
later, in one batch, by mutation.ops.BatchEditApplicator.
"""

from __future__ import annotations

from collections.abc import Collection, Iterable, Sequence

import libcst as cst
import structlog

from codeweave.config.constants import DEFAULT_DEPRECATION_DECORATORS
from codeweave.config.models import RenameMode
from codeweave.core.errors import AmbiguousSuccessor, MalformedDeprecationMessage
from codeweave.frontend.libcst_frontend import decorator_name, is_docstring
from codeweave.frontend.models import ImplementationSite, Snapshot
from codeweave.frontend.service import FrontendService
from codeweave.mutation.plan import InsertStatements, RenameIdentifier, RewritePlan
from codeweave.refactor.locator import SiteLocator
from codeweave.refactor.models import DeprecationRecord, MethodSignature

log = structlog.get_logger()


# =============================================================================
# Aspect weaving
# =============================================================================


def prologue_anchor(method: cst.FunctionDef) -> cst.BaseStatement | None:
    """First body statement after an optional docstring, or None if there is none."""
    body = method.body
    if not isinstance(body, cst.IndentedBlock):
        return None
    statements = list(body.body)
    if statements and is_docstring(statements[0]):
        statements = statements[1:]
    return statements[0] if statements else None


def plan_aspect(
    snapshot: Snapshot,
    sites: Iterable[ImplementationSite],
    statements: Sequence[cst.BaseStatement],
) -> RewritePlan:
    """One InsertStatements per implementation, anchored at the body prologue."""
    plan = RewritePlan(fingerprint=snapshot.fingerprint)
    seen: set[int] = set()
    for site in sites:
        if id(site.method) in seen:
            continue
        seen.add(id(site.method))
        plan.add(
            site.path,
            InsertStatements(
                method=site.method,
                anchor=prologue_anchor(site.method),
                statements=tuple(statements),
                label=site.symbol.fqn,
            ),
        )
    log.debug("planner.aspect", inserts=len(plan), files=len(plan.files))
    return plan


# =============================================================================
# Deprecation forwarding
# =============================================================================


def deprecation_message(
    method: cst.FunctionDef,
    decorators: Collection[str] = DEFAULT_DEPRECATION_DECORATORS,
) -> str | None:
    """Message of method's deprecation marker.

    Returns None when the method carries no marker, and an empty string when
    the marker has no literal message.
    """
    for decorator in method.decorators:
        if decorator_name(decorator) not in decorators:
            continue
        expr = decorator.decorator
        if isinstance(expr, cst.Call):
            for arg in expr.args:
                if arg.keyword is not None:
                    continue
                if isinstance(arg.value, (cst.SimpleString, cst.ConcatenatedString)):
                    value = arg.value.evaluated_value
                    if isinstance(value, bytes):
                        value = value.decode("utf-8", errors="replace")
                    return value or ""
                break
        return ""
    return None


def extract_successor(
    message: str, pattern: str, *, interface: str = "", method: str = ""
) -> str:
    """Text after the last occurrence of pattern in message, stripped.

    Raises:
        MalformedDeprecationMessage: pattern does not occur in message.
    """
    index = message.rfind(pattern)
    if index < 0:
        raise MalformedDeprecationMessage.for_method(interface, method, message, pattern)
    return message[index + len(pattern) :].strip()


def collect_deprecations(
    methods: Sequence[MethodSignature],
    marker_pattern: str,
    plan: RewritePlan,
    *,
    decorators: Collection[str] = DEFAULT_DEPRECATION_DECORATORS,
) -> list[DeprecationRecord]:
    """Build records for well-formed markers; record the rest on the plan."""
    siblings: dict[str, set[str]] = {}
    for signature in methods:
        siblings.setdefault(signature.interface_name, set()).add(signature.method_name)

    records: list[DeprecationRecord] = []
    for signature in methods:
        message = deprecation_message(signature.node, decorators)
        if message is None:
            continue
        try:
            successor = extract_successor(
                message,
                marker_pattern,
                interface=signature.interface_name,
                method=signature.method_name,
            )
        except MalformedDeprecationMessage as e:
            log.warning("deprecation.malformed", method=signature.qualified_name, message=message)
            plan.rejected.append(e)
            continue
        if (
            successor == signature.method_name
            or successor not in siblings[signature.interface_name]
        ):
            log.warning(
                "deprecation.ambiguous_successor",
                method=signature.qualified_name,
                successor=successor,
            )
            plan.rejected.append(
                AmbiguousSuccessor.for_method(
                    signature.interface_name, signature.method_name, successor
                )
            )
            continue
        records.append(DeprecationRecord(obsolete=signature, message=message, successor=successor))
    return records


def plan_deprecation(
    snapshot: Snapshot,
    methods: Sequence[MethodSignature],
    marker_pattern: str,
    *,
    frontend: FrontendService,
    locator: SiteLocator,
    decorators: Collection[str] = DEFAULT_DEPRECATION_DECORATORS,
    rename_mode: RenameMode = RenameMode.TEXTUAL,
) -> RewritePlan:
    """Rename call sites of deprecated methods to their successors.

    In TEXTUAL mode every attribute identifier named like the obsolete method
    in a file holding a call site is renamed, whatever it resolves to. In
    RESOLVED mode only the located call-site identifiers are renamed.

    Either way only Attribute.attr identifiers are candidates; bare Name
    references (a module-level alias of a bound method, a re-exported
    function) are left untouched.
    """
    plan = RewritePlan(fingerprint=snapshot.fingerprint)
    records = collect_deprecations(methods, marker_pattern, plan, decorators=decorators)
    seen: set[int] = set()

    for record in records:
        old_name = record.obsolete.method_name
        by_file = locator.call_sites_by_file(snapshot, record.obsolete)
        for path, sites in by_file.items():
            if rename_mode == RenameMode.RESOLVED:
                occurrences = [(site.node, site.line) for site in sites]
            else:
                model = frontend.get_semantic_model(snapshot, path)
                occurrences = [
                    (attribute.attr, model.position_of(attribute.attr)[0])
                    for attribute in model.attributes
                    if attribute.attr.value == old_name
                ]
            for node, line in occurrences:
                if id(node) in seen:
                    continue
                seen.add(id(node))
                plan.add(
                    path,
                    RenameIdentifier(node=node, old_name=old_name, new_name=record.successor, line=line),
                )
        log.info(
            "deprecation.forwarding",
            method=record.obsolete.qualified_name,
            successor=record.successor,
            files=len(by_file),
        )

    log.debug(
        "planner.deprecation",
        records=len(records),
        renames=len(plan),
        rejected=len(plan.rejected),
    )
    return plan
