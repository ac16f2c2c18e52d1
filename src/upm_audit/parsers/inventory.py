"""Parse a package inventory file (JSON or YAML) into installed package records."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from ..models import PackageRecord


def load(path: Path) -> Any:
    """Return the raw document; ``.yaml``/``.yml`` files go through PyYAML."""
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() in (".yaml", ".yml"):
        import yaml

        try:
            return yaml.safe_load(text) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {path}: {exc}") from exc
    return json.loads(text)


def records_from_document(data: Any) -> list[PackageRecord]:
    """Return records from the document's ``packages`` array.

    Entries look like ``{"name": ..., "version": ..., "dependencies": [...],
    "source": "registry", "direct": true}``.
    """
    packages = data.get("packages") if isinstance(data, dict) else None
    if not isinstance(packages, list):
        raise ValueError("Inventory must contain a 'packages' array")

    records: list[PackageRecord] = []
    for index, entry in enumerate(packages):
        if not isinstance(entry, dict):
            raise ValueError(f"Inventory entry {index} must be an object")
        records.append(PackageRecord.from_mapping(entry))
    return records
