"""Site location: implementations and call sites of an interface method.

Results are lazy and tied to the snapshot they were computed from; any
commit invalidates them.
"""

from __future__ import annotations

from collections.abc import Iterator

import structlog

from codeweave.frontend.models import CallSite, ImplementationSite, Snapshot
from codeweave.frontend.service import FrontendService
from codeweave.refactor.models import MethodSignature

log = structlog.get_logger()


class SiteLocator:
    """Finds where an interface method is implemented and where it is used."""

    def __init__(self, frontend: FrontendService) -> None:
        self._frontend = frontend

    def find_implementations(
        self, snapshot: Snapshot, method: MethodSignature
    ) -> Iterator[ImplementationSite]:
        """Concrete definitions of method across every project.

        Abstract intermediate declarations are skipped; every concrete
        override yields one site.
        """
        for site in self._frontend.find_implementations(method.symbol, snapshot):
            log.debug(
                "locator.implementation",
                method=method.qualified_name,
                path=site.path,
                type=site.type_name,
            )
            yield site

    def find_call_sites(self, snapshot: Snapshot, method: MethodSignature) -> Iterator[CallSite]:
        """Every reference to method, grouped by file in path order."""
        yield from self._frontend.find_references(method.symbol, snapshot)

    def call_sites_by_file(
        self, snapshot: Snapshot, method: MethodSignature
    ) -> dict[str, list[CallSite]]:
        grouped: dict[str, list[CallSite]] = {}
        for site in self.find_call_sites(snapshot, method):
            grouped.setdefault(site.path, []).append(site)
        return grouped
