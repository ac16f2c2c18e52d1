"""Lookup task and per-package result models."""

from __future__ import annotations

from concurrent.futures import Future
from dataclasses import dataclass, field
from enum import Enum


class UpdateStatus(str, Enum):
    UP_TO_DATE = "up-to-date"
    UPDATE_AVAILABLE = "update-available"
    LOOKUP_FAILED = "lookup-failed"
    NOT_IN_REGISTRY = "not-in-registry"


@dataclass
class LookupTask:
    """One outstanding registry lookup, owned by the polling loop.

    ``parents`` holds the root packages that transitively require the target;
    it is empty for packages nothing tracked depends on.
    """

    name: str
    installed_version: str
    is_direct: bool
    parents: tuple[str, ...] = ()
    handle: Future | None = field(default=None, repr=False, compare=False)
    completed: bool = False

    def mark_completed(self) -> None:
        if self.completed:
            raise RuntimeError(f"Lookup for {self.name} already completed")
        self.completed = True


@dataclass(frozen=True)
class UpdateResult:
    """Outcome of one lookup, carrying the metadata needed for reporting."""

    name: str
    installed_version: str
    status: UpdateStatus
    is_direct: bool = True
    parents: tuple[str, ...] = ()
    latest_version: str | None = None
    reason: str | None = None

    def __post_init__(self) -> None:
        if self.status is UpdateStatus.UPDATE_AVAILABLE and not self.latest_version:
            raise ValueError("update-available results require a latest version")
        if self.status is UpdateStatus.LOOKUP_FAILED and not self.reason:
            raise ValueError("lookup-failed results require a reason")

    @property
    def has_update(self) -> bool:
        return self.status is UpdateStatus.UPDATE_AVAILABLE

    @property
    def is_transitive(self) -> bool:
        return not self.is_direct

    def to_dict(self) -> dict[str, object]:
        data: dict[str, object] = {
            "package": self.name,
            "installed": self.installed_version,
            "status": self.status.value,
            "direct": self.is_direct,
            "dependencyOf": list(self.parents),
        }
        if self.latest_version is not None:
            data["latest"] = self.latest_version
        if self.reason is not None:
            data["reason"] = self.reason
        return data

    @classmethod
    def for_task(
        cls,
        task: LookupTask,
        status: UpdateStatus,
        *,
        latest_version: str | None = None,
        reason: str | None = None,
    ) -> UpdateResult:
        return cls(
            name=task.name,
            installed_version=task.installed_version,
            status=status,
            is_direct=task.is_direct,
            parents=task.parents,
            latest_version=latest_version,
            reason=reason,
        )
