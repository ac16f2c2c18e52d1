"""Installed package model."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from collections.abc import Iterable, Mapping


class PackageSource(str, Enum):
    """Where an installed package comes from."""

    REGISTRY = "registry"
    EMBEDDED = "embedded"
    LOCAL = "local"
    BUILTIN = "builtin"
    GIT = "git"

    @classmethod
    def parse(cls, raw: str) -> PackageSource:
        """Map a lock-file ``source`` value onto a source kind.

        ``local-tarball`` packages live on disk like ``local`` ones.
        """
        key = (raw or "").strip().lower()
        if key == "local-tarball":
            return cls.LOCAL
        try:
            return cls(key)
        except ValueError:
            raise ValueError(f"Unknown package source: {raw!r}") from None

    @property
    def is_auditable(self) -> bool:
        return self not in (PackageSource.BUILTIN, PackageSource.LOCAL)


@dataclass(frozen=True)
class PackageRecord:
    """Snapshot of one installed package for the duration of an audit run."""

    name: str
    version: str
    dependencies: tuple[str, ...] = ()
    source: PackageSource = PackageSource.REGISTRY
    is_direct: bool = False
    registry_url: str | None = None

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Package name must be non-empty")
        if not isinstance(self.source, PackageSource):
            raise ValueError(f"Invalid source for {self.name}: {self.source!r}")

    def to_dict(self) -> dict[str, object]:
        data: dict[str, object] = {
            "name": self.name,
            "version": self.version,
            "dependencies": list(self.dependencies),
            "source": self.source.value,
            "direct": self.is_direct,
        }
        if self.registry_url:
            data["registryUrl"] = self.registry_url
        return data

    @classmethod
    def from_mapping(cls, data: Mapping[str, object]) -> PackageRecord:
        deps = data.get("dependencies") or ()
        if isinstance(deps, Mapping):
            deps = deps.keys()
        registry_url = data.get("registryUrl") or data.get("url")
        return cls(
            name=str(data.get("name", "")).strip(),
            version=str(data.get("version", "")).strip(),
            dependencies=_dependency_names(deps),  # type: ignore[arg-type]
            source=PackageSource.parse(str(data.get("source") or "registry")),
            is_direct=bool(data.get("direct", False)),
            registry_url=str(registry_url) if registry_url else None,
        )


def _dependency_names(deps: Iterable[object]) -> tuple[str, ...]:
    seen: list[str] = []
    for dep in deps:
        name = str(dep).strip()
        if name and name not in seen:
            seen.append(name)
    return tuple(seen)
