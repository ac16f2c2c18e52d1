"""Switch an embedded package to a registry-managed install.

A project unpacked from a release archive carries the package as a folder
under Packages/. Migration moves that folder aside, registers the same version
in the manifest (through OpenUPM where needed) and restores the folder when
registration fails so the next run can try again. Git checkouts are left
alone: there the embedded folder is the package's working copy.
"""

from __future__ import annotations

import json
import shutil
import tempfile
import uuid
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

import structlog

from .discovery import is_managed_with_git
from .errors import ManifestError, MigrationError
from .manifest_edit import register_package

log = structlog.get_logger("upm_audit.migrate")


class MigrationStatus(str, Enum):
    MIGRATED = "migrated"
    SKIPPED_GIT = "skipped-git"
    NOT_EMBEDDED = "not-embedded"
    FAILED = "failed"


@dataclass(frozen=True)
class MigrationResult:
    status: MigrationStatus
    package: str
    version: str | None = None
    message: str = ""


def find_embedded_package(project_root: Path, name: str) -> tuple[Path, str] | None:
    """Return (folder, version) of the embedded package called ``name``."""
    packages_dir = project_root / "Packages"
    for package_json in sorted(packages_dir.glob("*/package.json")):
        try:
            meta = json.loads(package_json.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            continue
        if isinstance(meta, dict) and meta.get("name") == name:
            return package_json.parent, str(meta.get("version", ""))
    return None


def move_to_temp(source: Path, temp_root: Path) -> Path:
    """Move ``source`` into a fresh directory under ``temp_root``."""
    try:
        temp_root.mkdir(parents=True, exist_ok=True)
        work_dir = Path(tempfile.mkdtemp(dir=temp_root))
        target = work_dir / f"{source.name}_{uuid.uuid4().hex}"
        shutil.move(str(source), str(target))
        return target
    except OSError as exc:
        raise MigrationError(f"Failed to move '{source}' to a temporary path: {exc}") from exc


def migrate_embedded_package(project_root: Path, name: str) -> MigrationResult:
    """Replace the embedded copy of ``name`` with a registry dependency."""
    if is_managed_with_git(project_root):
        return MigrationResult(MigrationStatus.SKIPPED_GIT, name, message="project is managed with Git")

    found = find_embedded_package(project_root, name)
    if found is None:
        return MigrationResult(MigrationStatus.NOT_EMBEDDED, name, message="no embedded copy found")
    package_dir, version = found
    if not version:
        return MigrationResult(MigrationStatus.FAILED, name, message="embedded package.json has no version")

    temp_root = project_root / "Temp"
    temp_root_existed = temp_root.exists()
    moved = move_to_temp(package_dir, temp_root)
    try:
        register_package(project_root, f"{name}@{version}")
    except ManifestError as exc:
        log.error("migrate.failed", package=name, error=str(exc))
        restore_from_temp(moved, package_dir)
        _discard_temp(moved, temp_root, temp_root_existed)
        return MigrationResult(
            MigrationStatus.FAILED,
            name,
            version,
            message=f"failed to switch to a registry install, will retry next run: {exc}",
        )

    _discard_temp(moved, temp_root, temp_root_existed)
    log.info("migrate.done", package=name, version=version)
    return MigrationResult(MigrationStatus.MIGRATED, name, version)


def restore_from_temp(moved: Path, package_dir: Path) -> None:
    """Move the package back; on failure the temp copy is left in place."""
    try:
        shutil.move(str(moved), str(package_dir))
    except OSError as exc:
        log.error("migrate.restore_failed", package_dir=str(package_dir), temp_copy=str(moved))
        raise MigrationError(
            f"Failed to restore '{package_dir}'; the package is still at '{moved}': {exc}"
        ) from exc


def _discard_temp(moved: Path, temp_root: Path, temp_root_existed: bool) -> None:
    # Only called once the package is registered or back in Packages/.
    if moved.exists():
        shutil.rmtree(moved, ignore_errors=True)
    shutil.rmtree(moved.parent, ignore_errors=True)
    if not temp_root_existed and temp_root.exists() and not any(temp_root.iterdir()):
        temp_root.rmdir()
