"""Tests for the concurrent update checker."""

from __future__ import annotations

import threading
import time
from concurrent.futures import Future

import pytest

from upm_audit.checker import UpdateChecker, build_tasks, evaluate
from upm_audit.errors import RegistryLookupError
from upm_audit.graph import build_reverse_index
from upm_audit.models import LookupTask, PackageSource, UpdateStatus

from helpers import FakeSearcher, record


def _done(value=None, exc: Exception | None = None) -> Future:
    future: Future = Future()
    if exc is not None:
        future.set_exception(exc)
    else:
        future.set_result(value)
    return future


# ── build_tasks ──────────────────────────────────────────────────────────


class TestBuildTasks:
    def test_skips_builtin_and_local_packages(self):
        records = [
            record("com.unity.modules.ui", source=PackageSource.BUILTIN, direct=True),
            record("com.local.tool", source=PackageSource.LOCAL, direct=True),
            record("com.embedded", source=PackageSource.EMBEDDED, direct=True),
            record("com.git", source=PackageSource.GIT, direct=True),
            record("com.registry", direct=True),
        ]
        tasks = build_tasks(records, {})
        assert [t.name for t in tasks] == ["com.embedded", "com.git", "com.registry"]

    def test_direct_only_when_indirect_excluded(self):
        records = [record("A", deps=("B",), direct=True), record("B")]
        tasks = build_tasks(records, build_reverse_index(records), include_indirect=False)
        assert [t.name for t in tasks] == ["A"]

    def test_parents_come_from_index(self):
        records = [
            record("A", deps=("B",), direct=True),
            record("B"),
            record("C", deps=("B",), direct=True),
        ]
        tasks = {t.name: t for t in build_tasks(records, build_reverse_index(records))}
        assert tasks["B"].parents == ("A", "C")
        assert tasks["B"].is_direct is False
        assert tasks["A"].parents == ()


# ── evaluate ─────────────────────────────────────────────────────────────


class TestEvaluate:
    def _task(self, version="1.0.0"):
        return LookupTask(name="pkg", installed_version=version, is_direct=True)

    def test_newer_latest_is_update(self):
        result = evaluate(self._task(), _done(["1.1.0", "1.0.0"]))
        assert result.status is UpdateStatus.UPDATE_AVAILABLE
        assert result.latest_version == "1.1.0"

    def test_same_version_is_up_to_date(self):
        result = evaluate(self._task(), _done(["1.0.0"]))
        assert result.status is UpdateStatus.UP_TO_DATE

    def test_unparseable_latest_is_up_to_date(self):
        result = evaluate(self._task(), _done(["2.0.0-preview.1"]))
        assert result.status is UpdateStatus.UP_TO_DATE

    def test_empty_candidates_is_not_in_registry(self):
        result = evaluate(self._task(), _done([]))
        assert result.status is UpdateStatus.NOT_IN_REGISTRY

    def test_lookup_error_is_recorded(self):
        result = evaluate(self._task(), _done(exc=RegistryLookupError("timeout")))
        assert result.status is UpdateStatus.LOOKUP_FAILED
        assert result.reason == "timeout"

    def test_error_without_message_uses_class_name(self):
        result = evaluate(self._task(), _done(exc=ConnectionError()))
        assert result.reason == "ConnectionError"


# ── UpdateChecker.run ────────────────────────────────────────────────────


class TestUpdateChecker:
    def test_one_result_per_task(self):
        records = [record(n, direct=True) for n in ("a", "b", "c")]
        searcher = FakeSearcher({"a": ["1.0.0"], "b": ["1.2.0"], "c": []})
        tasks = build_tasks(records, {})
        results = {r.name: r for r in UpdateChecker(searcher).run(tasks)}

        assert results["a"].status is UpdateStatus.UP_TO_DATE
        assert results["b"].status is UpdateStatus.UPDATE_AVAILABLE
        assert results["c"].status is UpdateStatus.NOT_IN_REGISTRY
        assert sorted(searcher.calls) == ["a", "b", "c"]
        assert all(t.completed for t in tasks)

    def test_failure_does_not_abort_batch(self):
        records = [record(n, direct=True) for n in ("a", "b", "c", "d", "e")]
        responses = {n: ["1.0.0"] for n in "abcd"}
        responses["e"] = RegistryLookupError("network unreachable")
        results = list(UpdateChecker(FakeSearcher(responses)).run(build_tasks(records, {})))

        assert len(results) == 5
        failed = [r for r in results if r.status is UpdateStatus.LOOKUP_FAILED]
        assert [r.name for r in failed] == ["e"]

    def test_results_arrive_in_completion_order(self):
        records = [record("slow", direct=True), record("fast", direct=True)]
        searcher = FakeSearcher({"slow": ["1.0.0"], "fast": ["1.0.0"]}, delays={"slow": 0.3})
        order = [r.name for r in UpdateChecker(searcher).run(build_tasks(records, {}))]
        assert order == ["fast", "slow"]

    def test_slow_lookup_does_not_serialise_others(self):
        names = [f"p{i}" for i in range(4)]
        records = [record(n, direct=True) for n in names]
        searcher = FakeSearcher({n: ["1.0.0"] for n in names}, delays={n: 0.2 for n in names})
        start = time.perf_counter()
        results = list(UpdateChecker(searcher, max_workers=4).run(build_tasks(records, {})))
        elapsed = time.perf_counter() - start
        assert len(results) == 4
        assert elapsed < 0.6

    def test_no_tasks_yields_nothing(self):
        assert list(UpdateChecker(FakeSearcher({})).run([])) == []

    def test_cancel_abandons_outstanding_lookups(self):
        records = [record("fast", direct=True), record("slow", direct=True)]
        searcher = FakeSearcher({"fast": ["1.0.0"], "slow": ["1.0.0"]}, delays={"slow": 0.5})
        cancel = threading.Event()
        run = UpdateChecker(searcher).run(build_tasks(records, {}), cancel_event=cancel)

        first = next(run)
        assert first.name == "fast"
        cancel.set()
        start = time.perf_counter()
        assert list(run) == []
        assert time.perf_counter() - start < 0.3


class TestLookupTask:
    def test_completes_exactly_once(self):
        task = LookupTask(name="pkg", installed_version="1.0.0", is_direct=True)
        task.mark_completed()
        with pytest.raises(RuntimeError):
            task.mark_completed()
