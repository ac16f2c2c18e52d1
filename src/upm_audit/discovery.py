"""Unity project discovery and Git detection."""

from __future__ import annotations

from pathlib import Path


EXCLUDES = {"Library", "Temp", "Logs", ".git", "node_modules"}

MANIFEST = Path("Packages") / "manifest.json"
LOCK_FILE = Path("Packages") / "packages-lock.json"


def is_unity_project(path: Path) -> bool:
    return (path / MANIFEST).is_file()


def find_project_root(start: Path) -> Path | None:
    """Return ``start`` or the nearest parent holding Packages/manifest.json."""
    start = start.resolve()
    for candidate in (start, *start.parents):
        if is_unity_project(candidate):
            return candidate
    return None


def discover_projects(root: Path) -> list[Path]:
    """Find Unity projects recursively under root (excluding build/cache dirs)."""
    root = root.resolve()
    found: list[Path] = []

    def should_skip(p: Path) -> bool:
        parts = set(p.parts)
        return any(ex in parts for ex in EXCLUDES)

    for path in root.rglob("manifest.json"):
        if path.parent.name != "Packages" or not path.is_file():
            continue
        if should_skip(path.relative_to(root)):
            continue
        found.append(path.parent.parent)

    return sorted(found)


def is_managed_with_git(project_root: Path) -> bool:
    """True when a .git directory sits at the project root or one level above it."""
    project_root = project_root.resolve()
    return (project_root / ".git").is_dir() or (project_root.parent / ".git").is_dir()
