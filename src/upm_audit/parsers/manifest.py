"""Read and write Unity's Packages/manifest.json."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any


@dataclass
class ScopedRegistry:
    """A registry that serves every package whose name starts with one of ``scopes``."""

    name: str
    url: str
    scopes: list[str] = field(default_factory=list)

    def matches(self, package_name: str) -> str | None:
        """Return the longest scope covering ``package_name``, if any."""
        best: str | None = None
        for scope in self.scopes:
            if package_name == scope or package_name.startswith(scope + "."):
                if best is None or len(scope) > len(best):
                    best = scope
        return best

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "url": self.url, "scopes": list(self.scopes)}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ScopedRegistry:
        scopes = data.get("scopes") or []
        return cls(
            name=str(data.get("name", "")),
            url=str(data.get("url", "")),
            scopes=[str(s) for s in scopes],
        )


@dataclass
class Manifest:
    """In-memory manifest; unknown top-level keys are kept for round-tripping."""

    dependencies: dict[str, str] = field(default_factory=dict)
    scoped_registries: list[ScopedRegistry] = field(default_factory=list)
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = dict(self.extra)
        data["dependencies"] = dict(self.dependencies)
        if self.scoped_registries:
            data["scopedRegistries"] = [r.to_dict() for r in self.scoped_registries]
        return data


def parse(path: Path) -> Manifest:
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"{path} must contain a JSON object")

    deps = data.get("dependencies") or {}
    registries = data.get("scopedRegistries") or []
    if not isinstance(deps, dict) or not isinstance(registries, list):
        raise ValueError(f"{path} has a malformed 'dependencies' or 'scopedRegistries' entry")
    extra = {k: v for k, v in data.items() if k not in ("dependencies", "scopedRegistries")}
    return Manifest(
        dependencies={str(k): str(v) for k, v in deps.items()},
        scoped_registries=[ScopedRegistry.from_dict(r) for r in registries if isinstance(r, dict)],
        extra=extra,
    )


def dump(manifest: Manifest, path: Path) -> None:
    path.write_text(json.dumps(manifest.to_dict(), indent=2) + "\n", encoding="utf-8")
