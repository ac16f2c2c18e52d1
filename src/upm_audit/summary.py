"""Human-readable summary rendering for $GITHUB_STEP_SUMMARY."""

from __future__ import annotations

from typing import Any

_STATUS_LABELS = {
    "update-available": "Update available",
    "up-to-date": "Up to date",
    "not-in-registry": "Not in registry",
    "lookup-failed": "Lookup failed",
}


def render_summary(report: dict[str, Any]) -> str:
    """Return a Markdown string with totals and a table of audited packages."""
    totals = report.get("totals", {})
    packages = report.get("packages", [])

    lines = []
    lines.append("# upm-audit Summary")
    lines.append("")
    lines.append(
        f"Packages audited: {totals.get('packages', 0)} | "
        f"Updates available: {totals.get('update-available', 0)} | "
        f"Lookup failures: {totals.get('lookup-failed', 0)}"
    )
    lines.append("")
    lines.append("| Package | Installed | Latest | Status | Dependency of |")
    lines.append("| --- | --- | --- | --- | --- |")

    if not packages:
        lines.append("| (no packages audited) | n/a | n/a | n/a | n/a |")

    for entry in packages:
        name = entry.get("package", "")
        installed = entry.get("installed", "")
        latest = entry.get("latest") or "n/a"
        status = _STATUS_LABELS.get(entry.get("status", ""), entry.get("status", ""))
        if entry.get("reason"):
            status = f"{status}: {entry['reason']}"
        if entry.get("direct"):
            parents = "direct"
        else:
            parents = ", ".join(entry.get("dependencyOf") or []) or "n/a"
        lines.append(f"| {name} | {installed} | {latest} | {status} | {parents} |")

    return "\n".join(lines) + "\n"
