"""Per-package report lines and schema-friendly aggregation."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from .models import UpdateResult, UpdateStatus

# Statuses printed without --verbose.
DEFAULT_VISIBLE = frozenset(
    {
        UpdateStatus.UPDATE_AVAILABLE,
        UpdateStatus.NOT_IN_REGISTRY,
        UpdateStatus.LOOKUP_FAILED,
    }
)


def format_line(result: UpdateResult) -> str:
    """Render one result, e.g. ``"B: 1.0.0 → 1.1.0 (dependency of: A, C)"``."""
    if result.status is UpdateStatus.UPDATE_AVAILABLE:
        line = f"{result.name}: {result.installed_version} → {result.latest_version}"
    elif result.status is UpdateStatus.NOT_IN_REGISTRY:
        line = f"{result.name}: not in registry"
    elif result.status is UpdateStatus.LOOKUP_FAILED:
        line = f"{result.name}: lookup failed ({result.reason})"
    else:
        line = f"{result.name}: {result.installed_version} (up to date)"

    if result.is_transitive and result.parents:
        line += f" (dependency of: {', '.join(result.parents)})"
    return line


def is_visible(result: UpdateResult, verbose: bool = False) -> bool:
    return verbose or result.status in DEFAULT_VISIBLE


def render_lines(results: Iterable[UpdateResult], verbose: bool = False) -> list[str]:
    """Lines for the visible results, ordered by package name."""
    ordered = sorted(results, key=lambda r: r.name)
    return [format_line(r) for r in ordered if is_visible(r, verbose)]


def aggregate(results: Iterable[UpdateResult]) -> dict[str, Any]:
    """Aggregate results into a single report dict.

    Packages are ordered by name so repeated runs against the same registry
    state produce identical reports whatever order the lookups finished in.
    """
    packages = [r.to_dict() for r in sorted(results, key=lambda r: r.name)]
    totals = {status.value: 0 for status in UpdateStatus}
    for entry in packages:
        totals[str(entry["status"])] += 1

    report: dict[str, Any] = {
        "version": "1",
        "hasUpdates": totals[UpdateStatus.UPDATE_AVAILABLE.value] > 0,
        "packages": packages,
        "totals": {"packages": len(packages), **totals},
    }

    return report
