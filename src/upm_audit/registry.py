"""Latest-version lookups against npm-compatible UPM registries."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Any, Protocol
from urllib.parse import quote

import requests
import structlog
from requests import Response
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_fixed

from . import __version__
from .errors import RegistryLookupError
from .parsers.manifest import ScopedRegistry
from .parsers.version import sort_newest_first
from .settings import UNITY_REGISTRY_URL

log = structlog.get_logger("upm_audit.registry")

USER_AGENT = f"upm-audit/{__version__}"


class RegistrySearcher(Protocol):
    """Return candidate versions for ``name``, newest first; ``[]`` when unknown."""

    def search(self, name: str) -> list[str]: ...


@retry(
    reraise=True,
    stop=stop_after_attempt(3),
    wait=wait_fixed(2),
    retry=retry_if_exception_type(requests.ConnectionError),
)
def _http_get(url: str, timeout: float) -> Response:
    return requests.get(
        url,
        headers={"User-Agent": USER_AGENT, "Accept": "application/json"},
        timeout=timeout,
    )


def candidate_versions(document: dict[str, Any]) -> list[str]:
    """Extract versions from a registry package document, newest first.

    ``dist-tags.latest`` leads when present; the remaining published versions
    follow in descending order.
    """
    versions = document.get("versions")
    published = list(versions.keys()) if isinstance(versions, dict) else []

    tags = document.get("dist-tags")
    latest = tags.get("latest") if isinstance(tags, dict) else None

    ordered = sort_newest_first(v for v in published if v != latest)
    if isinstance(latest, str) and latest:
        ordered.insert(0, latest)
    return ordered


class HttpRegistrySearcher:
    """Registry Searcher that routes names through scoped registries."""

    def __init__(
        self,
        default_registry: str = UNITY_REGISTRY_URL,
        scoped_registries: Iterable[ScopedRegistry] = (),
        timeout: float = 10.0,
    ) -> None:
        self.default_registry = default_registry.rstrip("/")
        self.scoped_registries: Sequence[ScopedRegistry] = tuple(scoped_registries)
        self.timeout = timeout

    def registry_for(self, name: str) -> str:
        """Pick the registry whose scope matches ``name`` most specifically."""
        best_url = self.default_registry
        best_len = -1
        for registry in self.scoped_registries:
            scope = registry.matches(name)
            if scope is not None and len(scope) > best_len:
                best_url, best_len = registry.url.rstrip("/"), len(scope)
        return best_url

    def search(self, name: str) -> list[str]:
        url = f"{self.registry_for(name)}/{quote(name, safe='@')}"
        log.debug("registry.search", package=name, url=url)
        try:
            response = _http_get(url, self.timeout)
        except requests.RequestException as exc:
            raise RegistryLookupError(f"Failed to query {url}: {exc}") from exc

        if response.status_code == 404:
            return []
        if response.status_code != 200:
            raise RegistryLookupError(
                f"Unexpected status code {response.status_code} from {url}"
            )

        try:
            document = response.json()
        except ValueError as exc:
            raise RegistryLookupError(f"Invalid JSON from {url}: {exc}") from exc
        if not isinstance(document, dict):
            raise RegistryLookupError(f"Unexpected payload from {url}")

        return candidate_versions(document)
