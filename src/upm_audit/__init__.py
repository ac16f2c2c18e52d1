"""upm-audit core package.

This package provides the dependency update auditor for Unity Package Manager
projects, plus the manifest housekeeping helpers used by the ``upm-audit`` CLI.
"""

__version__ = "0.1.0"

__all__ = [
    "core",
]
