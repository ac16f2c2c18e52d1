"""Concurrent latest-version lookups for installed packages.

All lookups of a run are submitted to a thread pool at once; a single polling
loop then collects them in whatever order they finish. A slow or failing lookup
never holds up the others, and every lookup ends in exactly one result.
"""

from __future__ import annotations

import threading
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from collections.abc import Iterable, Iterator, Mapping

import structlog

from .graph import parents_of
from .models import LookupTask, PackageRecord, UpdateResult, UpdateStatus
from .parsers.version import is_newer_version
from .registry import RegistrySearcher

log = structlog.get_logger("upm_audit.checker")


def build_tasks(
    records: Iterable[PackageRecord],
    index: Mapping[str, set[str]],
    *,
    include_indirect: bool = True,
) -> list[LookupTask]:
    """One task per auditable package (anything but built-in and local packages)."""
    tasks: list[LookupTask] = []
    for record in records:
        if not record.source.is_auditable:
            continue
        if not include_indirect and not record.is_direct:
            continue
        tasks.append(
            LookupTask(
                name=record.name,
                installed_version=record.version,
                is_direct=record.is_direct,
                parents=parents_of(index, record.name),
            )
        )
    return tasks


def evaluate(task: LookupTask, future: Future) -> UpdateResult:
    """Turn a finished lookup into its result; lookup errors stay with the package."""
    try:
        candidates = future.result()
    except Exception as exc:
        reason = str(exc) or exc.__class__.__name__
        log.warning("checker.lookup_failed", package=task.name, reason=reason)
        return UpdateResult.for_task(task, UpdateStatus.LOOKUP_FAILED, reason=reason)

    if not candidates:
        log.warning("checker.not_in_registry", package=task.name)
        return UpdateResult.for_task(task, UpdateStatus.NOT_IN_REGISTRY)

    latest = candidates[0]
    if is_newer_version(latest, task.installed_version):
        return UpdateResult.for_task(task, UpdateStatus.UPDATE_AVAILABLE, latest_version=latest)
    return UpdateResult.for_task(task, UpdateStatus.UP_TO_DATE, latest_version=latest)


class UpdateChecker:
    """Issue one registry lookup per task and yield results as they complete."""

    def __init__(
        self,
        searcher: RegistrySearcher,
        *,
        max_workers: int = 8,
        poll_interval: float = 0.05,
    ) -> None:
        self.searcher = searcher
        self.max_workers = max_workers
        self.poll_interval = poll_interval

    def run(
        self,
        tasks: list[LookupTask],
        cancel_event: threading.Event | None = None,
    ) -> Iterator[UpdateResult]:
        """Yield one result per task, in completion order.

        Setting ``cancel_event`` stops the loop; lookups still outstanding are
        abandoned rather than awaited.
        """
        if not tasks:
            return

        executor = ThreadPoolExecutor(
            max_workers=min(self.max_workers, len(tasks)),
            thread_name_prefix="upm-audit-lookup",
        )
        pending: dict[Future, LookupTask] = {}
        try:
            for task in tasks:
                task.handle = executor.submit(self.searcher.search, task.name)
                pending[task.handle] = task
            log.info("checker.started", lookups=len(pending))

            while pending:
                if cancel_event is not None and cancel_event.is_set():
                    log.info("checker.cancelled", abandoned=len(pending))
                    return
                done, _ = wait(pending, timeout=self.poll_interval, return_when=FIRST_COMPLETED)
                for future in done:
                    task = pending.pop(future)
                    task.mark_completed()
                    yield evaluate(task, future)

            log.info("checker.finished", lookups=len(tasks))
        finally:
            executor.shutdown(wait=False, cancel_futures=True)
