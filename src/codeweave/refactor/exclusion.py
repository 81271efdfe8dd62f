"""Exclusion filter for interface methods, decided from their call sites.

A call site is inside the exclusion set when it lives in an excluded
project, or when its nearest enclosing class has an excluded name.
"""

from __future__ import annotations

from collections.abc import Callable, Collection, Iterable

import libcst as cst
import structlog

from codeweave.config.constants import ANCESTOR_WALK_DEPTH_DEFAULT
from codeweave.config.models import ExclusionMode
from codeweave.frontend.models import CallSite
from codeweave.frontend.service import SemanticModel

log = structlog.get_logger()


def enclosing_type_name(
    model: SemanticModel,
    node: cst.CSTNode,
    *,
    max_depth: int = ANCESTOR_WALK_DEPTH_DEFAULT,
) -> str | None:
    """Name of the nearest enclosing class of node, or None.

    Walks parents iteratively; stops at the root, at max_depth hops, or on a
    parent cycle.
    """
    visited: set[int] = {id(node)}
    current = model.parent_of(node)
    depth = 0
    while current is not None and depth < max_depth:
        if isinstance(current, cst.ClassDef):
            return current.name.value
        if id(current) in visited:
            log.warning("exclusion.parent_cycle", path=model.path)
            return None
        visited.add(id(current))
        current = model.parent_of(current)
        depth += 1
    if current is not None:
        log.warning("exclusion.depth_exceeded", path=model.path, max_depth=max_depth)
    return None


def _site_excluded(
    site: CallSite,
    excluded_projects: Collection[str],
    excluded_classes: Collection[str],
    model_for: Callable[[str], SemanticModel],
    max_depth: int,
) -> bool:
    if site.project in excluded_projects:
        return True
    if not excluded_classes:
        return False
    owner = site.enclosing_type
    if owner is None:
        owner = enclosing_type_name(model_for(site.path), site.node, max_depth=max_depth)
    return owner is not None and owner in excluded_classes


def is_excluded(
    call_sites: Iterable[CallSite],
    excluded_projects: Collection[str] = (),
    excluded_classes: Collection[str] = (),
    *,
    model_for: Callable[[str], SemanticModel],
    mode: ExclusionMode = ExclusionMode.ALL,
    max_depth: int = ANCESTOR_WALK_DEPTH_DEFAULT,
) -> bool:
    """Decide whether an interface method is disqualified by its call sites.

    Args:
        call_sites: References to the method.
        excluded_projects: Project names; empty disables project filtering.
        excluded_classes: Class names; empty disables class filtering.
        model_for: Returns the semantic model of a file (for parent walks).
        mode: ALL excludes only when every site is excluded (and there is at
            least one); ANY excludes as soon as one site is excluded.
        max_depth: Bound on parent hops per enclosing-class lookup.
    """
    if not excluded_projects and not excluded_classes:
        return False

    seen_any = False
    for site in call_sites:
        seen_any = True
        excluded = _site_excluded(site, excluded_projects, excluded_classes, model_for, max_depth)
        if mode == ExclusionMode.ANY and excluded:
            return True
        if mode == ExclusionMode.ALL and not excluded:
            return False
    return mode == ExclusionMode.ALL and seen_any
