"""Configuration loader for the auditor.

Reads settings from an optional JSON file and validates the structure. Every
key is optional; missing keys fall back to the defaults below:

- ``default_registry``: registry used when no scoped registry matches
- ``timeout``: per-request HTTP timeout in seconds
- ``max_workers``: number of concurrent registry lookups
- ``include_indirect``: audit transitive dependencies as well as roots
- ``scoped_registries``: extra ``{"name", "url", "scopes"}`` entries, consulted
  before the project's own manifest registries
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .errors import ConfigError
from .parsers.manifest import ScopedRegistry

CONFIG_PATH_ENV_VAR = "UPM_AUDIT_CONFIG"
UNITY_REGISTRY_URL = "https://packages.unity.com"
OPENUPM_REGISTRY_URL = "https://package.openupm.com"


@dataclass(slots=True, frozen=True)
class Settings:
    """Top-level settings container."""

    default_registry: str = UNITY_REGISTRY_URL
    timeout: float = 10.0
    max_workers: int = 8
    include_indirect: bool = False
    scoped_registries: tuple[ScopedRegistry, ...] = field(default_factory=tuple)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Settings:
        """Create Settings from a dictionary, validating each field."""
        defaults = cls()

        default_registry = data.get("default_registry", defaults.default_registry)
        if not isinstance(default_registry, str) or not default_registry.startswith(
            ("http://", "https://")
        ):
            raise ConfigError("'default_registry' must be an http(s) URL")

        timeout = data.get("timeout", defaults.timeout)
        if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
            raise ConfigError("'timeout' must be a positive number")

        max_workers = data.get("max_workers", defaults.max_workers)
        if isinstance(max_workers, bool) or not isinstance(max_workers, int) or max_workers < 1:
            raise ConfigError("'max_workers' must be a positive integer")

        include_indirect = data.get("include_indirect", defaults.include_indirect)
        if not isinstance(include_indirect, bool):
            raise ConfigError("'include_indirect' must be a boolean")

        registries_data = data.get("scoped_registries", [])
        if not isinstance(registries_data, list):
            raise ConfigError("'scoped_registries' must be an array")

        registries: list[ScopedRegistry] = []
        for index, entry in enumerate(registries_data):
            if not isinstance(entry, dict):
                raise ConfigError(f"Scoped registry at index {index} must be an object")
            url = entry.get("url")
            if not url or not isinstance(url, str):
                raise ConfigError(f"Scoped registry at index {index} is missing required 'url' field")
            scopes = entry.get("scopes")
            if not isinstance(scopes, list) or not scopes or not all(
                isinstance(s, str) and s for s in scopes
            ):
                raise ConfigError(
                    f"Scoped registry at index {index} must list at least one non-empty scope"
                )
            registries.append(ScopedRegistry.from_dict(entry))

        return cls(
            default_registry=default_registry.rstrip("/"),
            timeout=float(timeout),
            max_workers=max_workers,
            include_indirect=include_indirect,
            scoped_registries=tuple(registries),
        )


def _resolve_config_path(path: Path | str | None = None) -> Path | None:
    """Resolve the configuration file path.

    Priority:
    1. Explicit path argument
    2. UPM_AUDIT_CONFIG environment variable
    3. None (built-in defaults)
    """
    if path is not None:
        return Path(path)

    env_path = os.environ.get(CONFIG_PATH_ENV_VAR)
    if env_path:
        return Path(env_path)

    return None


def load_settings(path: Path | str | None = None) -> Settings:
    """Load and validate settings.

    Raises:
        ConfigError: If an explicitly configured file cannot be read or is invalid.
    """
    config_path = _resolve_config_path(path)
    if config_path is None:
        return Settings()

    if not config_path.exists():
        raise ConfigError(f"Configuration file not found: {config_path}")

    try:
        content = config_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Failed to read configuration file: {exc}") from exc

    try:
        data = json.loads(content)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Invalid JSON in configuration file: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigError("Configuration must be a JSON object")

    return Settings.from_dict(data)
