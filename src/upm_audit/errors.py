"""Exception hierarchy shared across the auditor and manifest helpers."""

from __future__ import annotations


class UpmAuditError(RuntimeError):
    """Base error for failures raised by upm-audit."""


class ListingError(UpmAuditError):
    """Raised when the installed package list cannot be produced."""


class RegistryLookupError(UpmAuditError):
    """Raised when a registry lookup for a single package fails."""


class ConfigError(UpmAuditError):
    """Raised when the configuration file cannot be loaded or is invalid."""


class ManifestError(UpmAuditError):
    """Raised when Packages/manifest.json cannot be read or written."""


class MigrationError(UpmAuditError):
    """Raised when an embedded package cannot be moved out of the project."""
