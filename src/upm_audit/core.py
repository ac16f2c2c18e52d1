"""Core audit entrypoints.

This module MUST NOT depend on the CLI so it can be driven from scripts, CI
wrappers or tests with stub listers and registry searchers.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterable
from typing import Any

import structlog

from .checker import UpdateChecker, build_tasks
from .errors import ListingError
from .graph import build_reverse_index
from .listers import PackageLister
from .models import PackageRecord, UpdateResult
from .parsers.manifest import ScopedRegistry
from .registry import HttpRegistrySearcher, RegistrySearcher
from .report import aggregate
from .settings import Settings

log = structlog.get_logger("upm_audit.core")


def build_searcher(
    settings: Settings, project_registries: Iterable[ScopedRegistry] = ()
) -> HttpRegistrySearcher:
    """Registry searcher honouring configured and project scoped registries.

    Configured registries are listed first, so they win ties on scope length.
    """
    return HttpRegistrySearcher(
        default_registry=settings.default_registry,
        scoped_registries=[*settings.scoped_registries, *project_registries],
        timeout=settings.timeout,
    )


def audit_packages(
    records: list[PackageRecord],
    searcher: RegistrySearcher,
    *,
    include_indirect: bool = False,
    max_workers: int = 8,
    cancel_event: threading.Event | None = None,
    on_result: Callable[[UpdateResult], None] | None = None,
) -> list[UpdateResult]:
    """Run graph → lookups for ``records`` and return every result collected.

    ``on_result`` sees each result as soon as its lookup completes.
    """
    try:
        index = build_reverse_index(records)
    except ValueError as exc:
        raise ListingError(str(exc)) from exc

    tasks = build_tasks(records, index, include_indirect=include_indirect)
    if not tasks:
        log.info("audit.nothing_to_check", packages=len(records))
        return []

    checker = UpdateChecker(searcher, max_workers=max_workers)
    results: list[UpdateResult] = []
    for result in checker.run(tasks, cancel_event=cancel_event):
        results.append(result)
        if on_result is not None:
            on_result(result)
    return results


def audit_project(
    lister: PackageLister,
    settings: Settings | None = None,
    *,
    include_indirect: bool | None = None,
    searcher: RegistrySearcher | None = None,
    cancel_event: threading.Event | None = None,
    on_result: Callable[[UpdateResult], None] | None = None,
) -> dict[str, Any]:
    """Audit the packages ``lister`` reports and return the aggregated report.

    Params:
        lister: source of installed packages; a ListingError from it aborts
            the run
        settings: registry, timeout and concurrency settings (defaults when None)
        include_indirect: overrides ``settings.include_indirect`` when given
        searcher: registry searcher; built from settings plus the lister's
            scoped registries when None

    Returns: dict report (see ``report.aggregate``)
    """
    settings = settings or Settings()
    if include_indirect is None:
        include_indirect = settings.include_indirect

    records = lister.list_packages()
    log.info("audit.listed", packages=len(records), include_indirect=include_indirect)

    if searcher is None:
        project_registries = getattr(lister, "scoped_registries", lambda: [])()
        searcher = build_searcher(settings, project_registries)

    results = audit_packages(
        records,
        searcher,
        include_indirect=include_indirect,
        max_workers=settings.max_workers,
        cancel_event=cancel_event,
        on_result=on_result,
    )
    return aggregate(results)
