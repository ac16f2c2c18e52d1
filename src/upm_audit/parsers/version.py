"""Structured version handling built atop packaging.version.

Only plain numeric versions take part in update decisions:
- two to four dot-separated non-negative integers ("1.2", "1.2.3", "1.2.3.4")
- anything else (pre-release tags, "latest", "") is unparseable and never
  counts as newer
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from packaging.version import InvalidVersion, Version

_STRUCTURED = re.compile(r"\d+(?:\.\d+){1,3}")


def parse_structured(v: str | None) -> Version | None:
    """Return the parsed version, or None when ``v`` is not major.minor[.patch[.build]]."""
    text = (v or "").strip()
    if not _STRUCTURED.fullmatch(text):
        return None
    try:
        return Version(text)
    except InvalidVersion:  # pragma: no cover - regex already guarantees validity
        return None


def is_newer_version(latest: str | None, current: str | None) -> bool:
    """True when ``latest`` is strictly greater than ``current``.

    Components compare numerically, so "1.10.0" is newer than "1.2.0".
    """
    lv = parse_structured(latest)
    cv = parse_structured(current)
    if lv is None or cv is None:
        return False
    return lv > cv


def sort_newest_first(versions: Iterable[str]) -> list[str]:
    """Order version strings newest first.

    Strings packaging can read are ordered by version; the rest keep their
    relative order after them.
    """
    parsed: list[tuple[Version, str]] = []
    unparsed: list[str] = []
    for v in versions:
        try:
            parsed.append((Version(v), v))
        except InvalidVersion:
            unparsed.append(v)
    parsed.sort(key=lambda pair: pair[0], reverse=True)
    return [v for _, v in parsed] + unparsed
