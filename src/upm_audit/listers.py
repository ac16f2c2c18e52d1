"""Package Listers: where the installed package list comes from.

A lister turns some on-disk description of a project into the flat list of
``PackageRecord`` objects the auditor works on. Listers are registered by id so
the CLI can pick one from its arguments.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol
from collections.abc import Callable

import structlog

from .discovery import LOCK_FILE, MANIFEST
from .errors import ListingError
from .models import PackageRecord, PackageSource
from .parsers import inventory as inventory_parser
from .parsers import manifest as manifest_parser
from .parsers import packages_lock
from .parsers.manifest import ScopedRegistry
from .validators.inventory import validate_document

log = structlog.get_logger("upm_audit.listers")


class PackageLister(Protocol):
    """Anything that can produce the installed package list."""

    def list_packages(self) -> list[PackageRecord]: ...


@dataclass(slots=True)
class UnityProjectLister:
    """List packages from a Unity project's Packages/ folder.

    packages-lock.json is authoritative. Without it, only manifest.json
    dependencies are known; they are all direct and declare no dependencies.
    """

    project_root: Path

    def list_packages(self) -> list[PackageRecord]:
        lock_path = self.project_root / LOCK_FILE
        manifest_path = self.project_root / MANIFEST
        try:
            if lock_path.is_file():
                return packages_lock.parse(lock_path, packages_dir=lock_path.parent)
            manifest = manifest_parser.parse(manifest_path)
        except (OSError, ValueError) as exc:
            raise ListingError(f"Failed to list packages in {self.project_root}: {exc}") from exc

        log.info("listers.lock_missing", project=str(self.project_root))
        return [
            PackageRecord(
                name=name,
                version=version,
                source=_source_from_manifest_value(version),
                is_direct=True,
            )
            for name, version in manifest.dependencies.items()
        ]

    def scoped_registries(self) -> list[ScopedRegistry]:
        """Scoped registries declared by the project manifest, if readable."""
        try:
            return manifest_parser.parse(self.project_root / MANIFEST).scoped_registries
        except (OSError, ValueError):
            return []


@dataclass(slots=True)
class InventoryLister:
    """List packages from a JSON or YAML inventory file."""

    path: Path

    def list_packages(self) -> list[PackageRecord]:
        try:
            document = inventory_parser.load(self.path)
            validate_document(document)
            return inventory_parser.records_from_document(document)
        except (OSError, ValueError) as exc:
            raise ListingError(f"Failed to list packages from {self.path}: {exc}") from exc

    def scoped_registries(self) -> list[ScopedRegistry]:
        return []


def _source_from_manifest_value(value: str) -> PackageSource:
    if value.startswith("file:"):
        return PackageSource.LOCAL
    if value.startswith(("git", "https://", "http://", "ssh://")) or value.endswith(".git"):
        return PackageSource.GIT
    return PackageSource.REGISTRY


# Registry of known listers, keyed by id.
LISTERS: dict[str, Callable[[Path], PackageLister]] = {
    "unity": UnityProjectLister,
    "inventory": InventoryLister,
}


def get_lister(lister_id: str, path: Path) -> PackageLister:
    factory = LISTERS.get(lister_id)
    if factory is None:
        known = ", ".join(sorted(LISTERS))
        raise ValueError(f"Unknown lister '{lister_id}'. Known listers: {known}")
    return factory(path)


def dump_inventory(records: list[PackageRecord]) -> str:
    """Serialise records in the inventory format read by ``InventoryLister``."""
    return json.dumps({"packages": [r.to_dict() for r in records]}, indent=2) + "\n"
