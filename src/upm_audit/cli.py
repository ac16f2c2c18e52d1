"""Command-line entrypoint: ``upm-audit``.

Usage:
  upm-audit audit [--project DIR | --inventory FILE] [--include-indirect] [--json]
  upm-audit list [--project DIR]
  upm-audit add NAME[@VERSION] [--project DIR] [--yes]
  upm-audit migrate NAME [--project DIR]
  upm-audit validate FILE

``audit`` exits 0 once every lookup has finished, even when some of them
failed; it exits 1 only when the package list itself cannot be produced.
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from pathlib import Path

import structlog

from . import __version__
from .core import audit_project, build_searcher
from .discovery import discover_projects, find_project_root
from .errors import ConfigError, ListingError, ManifestError, MigrationError
from .listers import PackageLister, UnityProjectLister, dump_inventory, get_lister
from .logging import setup_logging
from .manifest_edit import needs_openupm, openupm_registry, register_package, split_package_spec
from .migrate import MigrationStatus, migrate_embedded_package
from .models import UpdateResult
from .report import format_line, is_visible
from .settings import load_settings
from .summary import render_summary
from .validators import inventory as inventory_validator

log = structlog.get_logger("upm_audit.cli")

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_UPDATES = 10


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="upm-audit", description="Unity package housekeeping")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--config", type=Path, default=None, help="JSON settings file")
    parser.add_argument("-v", "--verbose", action="store_true")
    sub = parser.add_subparsers(dest="command", required=True)

    audit = sub.add_parser("audit", help="report available package updates")
    source = audit.add_mutually_exclusive_group()
    source.add_argument("--project", type=Path, default=Path("."))
    source.add_argument("--inventory", type=Path, default=None)
    audit.add_argument(
        "--include-indirect",
        action="store_true",
        default=None,
        help="also look up transitive dependencies",
    )
    audit.add_argument("--json", action="store_true", help="print the JSON report")
    audit.add_argument("--summary", type=Path, default=None, help="write a Markdown summary")
    audit.add_argument("--fail-on-updates", action="store_true")

    listing = sub.add_parser("list", help="print the installed packages as an inventory")
    listing.add_argument("--project", type=Path, default=Path("."))

    add = sub.add_parser("add", help="register a package in Packages/manifest.json")
    add.add_argument("package", help="NAME or NAME@VERSION")
    add.add_argument("--project", type=Path, default=Path("."))
    add.add_argument("-y", "--yes", action="store_true", help="do not ask for confirmation")

    migrate = sub.add_parser("migrate", help="switch an embedded package to a registry install")
    migrate.add_argument("package")
    migrate.add_argument("--project", type=Path, default=Path("."))

    validate = sub.add_parser("validate", help="validate an inventory file")
    validate.add_argument("input", type=Path)

    return parser


def _resolve_projects(path: Path) -> list[Path]:
    root = find_project_root(path)
    if root is not None:
        return [root]
    return discover_projects(path)


def _fail_on_updates(args: argparse.Namespace) -> bool:
    if args.fail_on_updates:
        return True
    env = os.getenv("UPM_AUDIT_FAIL_ON_UPDATES", "").strip().lower()
    return env in {"1", "true", "yes", "y"}


def cmd_audit(args: argparse.Namespace) -> int:
    settings = load_settings(args.config)

    if args.inventory is not None:
        targets: list[tuple[str, PackageLister]] = [
            (str(args.inventory), get_lister("inventory", args.inventory))
        ]
    else:
        projects = _resolve_projects(args.project)
        if not projects:
            print(f"ERROR: no Unity project found under {args.project}", file=sys.stderr)
            return EXIT_ERROR
        targets = [(str(p), get_lister("unity", p)) for p in projects]

    def emit(result: UpdateResult) -> None:
        if is_visible(result, args.verbose):
            print(format_line(result), flush=True)

    reports: dict[str, dict] = {}
    for label, lister in targets:
        if len(targets) > 1 and not args.json:
            print(f"# {label}")
        try:
            reports[label] = audit_project(
                lister,
                settings,
                include_indirect=args.include_indirect,
                on_result=None if args.json else emit,
            )
        except ListingError as exc:
            log.error("cli.listing_failed", target=label, error=str(exc))
            print(f"ERROR: {exc}", file=sys.stderr)
            return EXIT_ERROR
        if args.json:
            continue
        if reports[label]["totals"]["packages"] == 0:
            print("No searchable packages found.")
        else:
            print("Package-update check finished.")

    if args.json:
        payload = next(iter(reports.values())) if len(reports) == 1 else reports
        print(json.dumps(payload, indent=2))

    if args.summary is not None:
        args.summary.write_text(
            "".join(render_summary(report) for report in reports.values()), encoding="utf-8"
        )

    has_updates = any(report.get("hasUpdates") for report in reports.values())
    if has_updates and _fail_on_updates(args):
        return EXIT_UPDATES
    return EXIT_OK


def cmd_list(args: argparse.Namespace) -> int:
    root = find_project_root(args.project)
    if root is None:
        print(f"ERROR: no Unity project found at {args.project}", file=sys.stderr)
        return EXIT_ERROR
    try:
        records = UnityProjectLister(root).list_packages()
    except ListingError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return EXIT_ERROR
    sys.stdout.write(dump_inventory(records))
    return EXIT_OK


def _confirm(question: str) -> bool:
    try:
        answer = input(f"{question} [y/N] ")
    except EOFError:
        return False
    return answer.strip().lower() in {"y", "yes"}


def cmd_add(args: argparse.Namespace) -> int:
    root = find_project_root(args.project)
    if root is None:
        print(f"ERROR: no Unity project found at {args.project}", file=sys.stderr)
        return EXIT_ERROR

    try:
        name, _ = split_package_spec(args.package)
    except ValueError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return EXIT_ERROR
    if not args.yes and not _confirm(f"Do you want to install {name} and its dependencies?"):
        print("Cancelled.")
        return EXIT_OK

    settings = load_settings(args.config)
    registries = [openupm_registry(name)] if needs_openupm(name) else []
    searcher = build_searcher(settings, registries)
    try:
        version = register_package(root, args.package, searcher=searcher)
    except ManifestError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return EXIT_ERROR
    print(f"Registered {name}@{version} in {root / 'Packages' / 'manifest.json'}")
    return EXIT_OK


def cmd_migrate(args: argparse.Namespace) -> int:
    root = find_project_root(args.project)
    if root is None:
        print(f"ERROR: no Unity project found at {args.project}", file=sys.stderr)
        return EXIT_ERROR
    try:
        result = migrate_embedded_package(root, args.package)
    except MigrationError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return EXIT_ERROR

    if result.status is MigrationStatus.MIGRATED:
        print(f"{result.package}: switched to registry install at {result.version}")
        return EXIT_OK
    if result.status is MigrationStatus.FAILED:
        print(f"ERROR: {result.package}: {result.message}", file=sys.stderr)
        return EXIT_ERROR
    print(f"{result.package}: nothing to do ({result.message})")
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging("INFO" if args.verbose else "WARNING")

    if args.command == "validate":
        return inventory_validator.main([str(args.input)])

    handlers = {
        "audit": cmd_audit,
        "list": cmd_list,
        "add": cmd_add,
        "migrate": cmd_migrate,
    }
    try:
        return handlers[args.command](args)
    except ConfigError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return EXIT_ERROR


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
