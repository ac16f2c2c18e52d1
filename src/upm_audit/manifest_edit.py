"""Register packages in Packages/manifest.json.

Packages outside the ``com.unity.`` namespace are served from OpenUPM, so
registering one also adds its name as a scope of the OpenUPM scoped registry.
Unity picks up the edited manifest and performs the actual install.
"""

from __future__ import annotations

from pathlib import Path

import structlog

from .discovery import MANIFEST
from .errors import ManifestError, RegistryLookupError
from .parsers import manifest as manifest_parser
from .parsers.manifest import Manifest, ScopedRegistry
from .registry import RegistrySearcher
from .settings import OPENUPM_REGISTRY_URL

log = structlog.get_logger("upm_audit.manifest")

OPENUPM_REGISTRY_NAME = "package.openupm.com"
UNITY_NAMESPACE = "com.unity."


def split_package_spec(spec: str) -> tuple[str, str | None]:
    """Split ``name@version`` into its parts; the version is optional."""
    name, _, version = spec.strip().partition("@")
    if not name:
        raise ValueError(f"Invalid package spec: {spec!r}")
    return name, version or None


def needs_openupm(name: str) -> bool:
    return not name.startswith(UNITY_NAMESPACE)


def openupm_registry(name: str) -> ScopedRegistry:
    return ScopedRegistry(name=OPENUPM_REGISTRY_NAME, url=OPENUPM_REGISTRY_URL, scopes=[name])


def add_scoped_registry(manifest: Manifest, registry: ScopedRegistry) -> bool:
    """Merge ``registry`` into the manifest; return True when anything changed.

    A registry with the same name gains any missing scopes; otherwise the
    registry is appended.
    """
    for existing in manifest.scoped_registries:
        if existing.name == registry.name:
            missing = [s for s in registry.scopes if s not in existing.scopes]
            existing.scopes.extend(missing)
            return bool(missing)
    manifest.scoped_registries.append(
        ScopedRegistry(name=registry.name, url=registry.url, scopes=list(registry.scopes))
    )
    return True


def load_manifest(project_root: Path) -> Manifest:
    path = project_root / MANIFEST
    try:
        return manifest_parser.parse(path)
    except (OSError, ValueError) as exc:
        raise ManifestError(f"Failed to read {path}: {exc}") from exc


def save_manifest(project_root: Path, manifest: Manifest) -> None:
    path = project_root / MANIFEST
    try:
        manifest_parser.dump(manifest, path)
    except OSError as exc:
        raise ManifestError(f"Failed to write {path}: {exc}") from exc


def register_package(
    project_root: Path,
    spec: str,
    searcher: RegistrySearcher | None = None,
) -> str:
    """Add ``spec`` (``name`` or ``name@version``) to the project manifest.

    Without an explicit version the newest registry version is used, which
    requires ``searcher``. Returns the version written.
    """
    name, version = split_package_spec(spec)
    manifest = load_manifest(project_root)

    if version is None:
        if searcher is None:
            raise ManifestError(f"No version given for {name} and no registry to ask")
        try:
            candidates = searcher.search(name)
        except RegistryLookupError as exc:
            raise ManifestError(f"Could not resolve a version for {name}: {exc}") from exc
        if not candidates:
            raise ManifestError(f"Package {name} is not in the registry")
        version = candidates[0]

    if needs_openupm(name) and add_scoped_registry(manifest, openupm_registry(name)):
        log.info("manifest.scope_added", registry=OPENUPM_REGISTRY_NAME, scope=name)

    manifest.dependencies[name] = version
    save_manifest(project_root, manifest)
    log.info("manifest.package_registered", package=name, version=version)
    return version
