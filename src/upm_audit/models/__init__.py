"""Data models for the dependency update auditor."""

from __future__ import annotations

from .lookup import LookupTask, UpdateResult, UpdateStatus
from .package_record import PackageRecord, PackageSource

__all__ = [
    "LookupTask",
    "PackageRecord",
    "PackageSource",
    "UpdateResult",
    "UpdateStatus",
]
