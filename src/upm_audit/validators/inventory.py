"""Validate package inventories against the bundled JSON Schema.

Run as ``upm-audit validate FILE``; the ``inventory`` lister applies the same
check before auditing.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

from jsonschema import Draft202012Validator

from ..parsers import inventory as inventory_parser

_DEFAULT_SCHEMA = Path(__file__).resolve().parents[1] / "schemas" / "inventory.schema.json"


def validate_document(document: Any, schema_path: Path = _DEFAULT_SCHEMA) -> None:
    """Raise ValueError with one ``- <pointer>: <message>`` line per violation."""
    schema = json.loads(schema_path.read_text(encoding="utf-8"))
    problems = [
        f"- {'/'.join(str(p) for p in error.path) or '<root>'}: {error.message}"
        for error in sorted(
            Draft202012Validator(schema).iter_errors(document), key=lambda e: list(e.path)
        )
    ]
    if problems:
        raise ValueError("\n" + "\n".join(problems))


def validate_inventory(input_path: Path, schema_path: Path = _DEFAULT_SCHEMA) -> None:
    validate_document(inventory_parser.load(input_path), schema_path)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="upm-audit validate", description="Check an inventory file")
    parser.add_argument("input", type=Path, help="JSON or YAML inventory")
    parser.add_argument("--schema", type=Path, default=_DEFAULT_SCHEMA)
    args = parser.parse_args(argv)

    try:
        validate_inventory(args.input, args.schema)
    except OSError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1
    except json.JSONDecodeError as exc:
        print(f"ERROR: {args.input} is not valid JSON: {exc}", file=sys.stderr)
        return 1
    except ValueError as exc:
        print(f"ERROR: {args.input} does not match the inventory schema:{exc}", file=sys.stderr)
        return 1

    print(f"Inventory {args.input} is valid against {args.schema}")
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
