"""Parse Unity's Packages/packages-lock.json into installed package records."""

from __future__ import annotations

import json
from pathlib import Path

from ..models import PackageRecord, PackageSource


def parse(path: Path, packages_dir: Path | None = None) -> list[PackageRecord]:
    """Return one record per entry in the lock file's ``dependencies`` map.

    ``depth == 0`` marks a direct dependency. Embedded and local packages are
    pinned as ``file:<folder>``; when ``packages_dir`` is given, the version is
    read from that folder's package.json instead.
    """
    data = json.loads(path.read_text(encoding="utf-8"))
    deps = data.get("dependencies") if isinstance(data, dict) else None
    if not isinstance(deps, dict):
        raise ValueError(f"{path} has no 'dependencies' object")

    records: list[PackageRecord] = []
    for name, meta in deps.items():
        if not isinstance(meta, dict):
            continue
        version = str(meta.get("version", ""))
        if packages_dir is not None and version.startswith("file:"):
            version = _embedded_version(packages_dir, version[len("file:"):]) or version
        children = meta.get("dependencies") or {}
        records.append(
            PackageRecord(
                name=name,
                version=version,
                dependencies=tuple(children) if isinstance(children, dict) else (),
                source=PackageSource.parse(str(meta.get("source") or "registry")),
                is_direct=meta.get("depth") == 0,
                registry_url=meta.get("url") if isinstance(meta.get("url"), str) else None,
            )
        )

    return records


def _embedded_version(packages_dir: Path, folder: str) -> str | None:
    package_json = (packages_dir / folder / "package.json").resolve()
    try:
        meta = json.loads(package_json.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError):
        return None
    version = meta.get("version") if isinstance(meta, dict) else None
    return str(version) if version else None
