"""Test doubles shared by the auditor tests."""

from __future__ import annotations

import json
import threading
import time
from pathlib import Path

from upm_audit.models import PackageRecord, PackageSource


def record(
    name: str,
    version: str = "1.0.0",
    deps: tuple[str, ...] = (),
    *,
    direct: bool = False,
    source: PackageSource = PackageSource.REGISTRY,
) -> PackageRecord:
    return PackageRecord(
        name=name, version=version, dependencies=tuple(deps), source=source, is_direct=direct
    )


class FakeSearcher:
    """Registry searcher answering from a dict.

    Values are candidate lists (newest first) or exceptions to raise. Names
    listed in ``delays`` sleep that many seconds before answering.
    """

    def __init__(self, responses: dict, delays: dict[str, float] | None = None) -> None:
        self.responses = responses
        self.delays = delays or {}
        self.calls: list[str] = []
        self._lock = threading.Lock()

    def search(self, name: str) -> list[str]:
        with self._lock:
            self.calls.append(name)
        delay = self.delays.get(name)
        if delay:
            time.sleep(delay)
        value = self.responses.get(name, [])
        if isinstance(value, Exception):
            raise value
        return list(value)


def write_project(
    root: Path,
    *,
    dependencies: dict[str, str] | None = None,
    lock: dict[str, dict] | None = None,
    scoped_registries: list[dict] | None = None,
) -> Path:
    """Create a minimal Unity project layout under ``root``."""
    packages = root / "Packages"
    packages.mkdir(parents=True, exist_ok=True)
    manifest: dict = {"dependencies": dependencies or {}}
    if scoped_registries:
        manifest["scopedRegistries"] = scoped_registries
    (packages / "manifest.json").write_text(json.dumps(manifest, indent=2), encoding="utf-8")
    if lock is not None:
        (packages / "packages-lock.json").write_text(
            json.dumps({"dependencies": lock}, indent=2), encoding="utf-8"
        )
    return root


def lock_entry(
    version: str,
    *,
    depth: int = 0,
    source: str = "registry",
    deps: dict[str, str] | None = None,
    url: str | None = "https://packages.unity.com",
) -> dict:
    entry: dict = {
        "version": version,
        "depth": depth,
        "source": source,
        "dependencies": deps or {},
    }
    if url:
        entry["url"] = url
    return entry
