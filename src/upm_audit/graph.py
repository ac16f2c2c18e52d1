"""Reverse-dependency index over an installed package list."""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from .models import PackageRecord

ReverseDependencyIndex = dict[str, set[str]]


def index_by_name(records: Iterable[PackageRecord]) -> dict[str, PackageRecord]:
    """Map package name to record; names must be unique."""
    by_name: dict[str, PackageRecord] = {}
    for record in records:
        if record.name in by_name:
            raise ValueError(f"Duplicate package name in listing: {record.name}")
        by_name[record.name] = record
    return by_name


def build_reverse_index(records: Iterable[PackageRecord]) -> ReverseDependencyIndex:
    """Map each dependency name to the roots (direct dependencies) that reach it.

    Every root is walked depth-first with its own visited set, so cycles end the
    walk instead of looping and each (dependency, root) pair is recorded once.
    Declared dependencies missing from the installed set are skipped. Packages
    that no root reaches get no entry.
    """
    by_name = index_by_name(records)
    index: ReverseDependencyIndex = {}

    for root in by_name.values():
        if not root.is_direct:
            continue
        visited = {root.name}
        stack = [root.name]
        while stack:
            current = by_name[stack.pop()]
            for dep in current.dependencies:
                if dep not in by_name:
                    continue
                if dep != root.name:
                    index.setdefault(dep, set()).add(root.name)
                if dep not in visited:
                    visited.add(dep)
                    stack.append(dep)

    return index


def parents_of(index: Mapping[str, set[str]], name: str) -> tuple[str, ...]:
    """Sorted root names depending on ``name``; empty when nothing does."""
    return tuple(sorted(index.get(name, ())))
