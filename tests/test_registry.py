"""Tests for registry lookups and scoped-registry routing."""

from __future__ import annotations

import pytest
import requests

from upm_audit import registry
from upm_audit.errors import RegistryLookupError
from upm_audit.parsers.manifest import ScopedRegistry
from upm_audit.registry import HttpRegistrySearcher, candidate_versions


class _FakeResponse:
    def __init__(self, status_code: int = 200, payload=None, bad_json: bool = False) -> None:
        self.status_code = status_code
        self._payload = payload
        self._bad_json = bad_json

    def json(self):
        if self._bad_json:
            raise ValueError("Expecting value")
        return self._payload


@pytest.fixture
def fake_get(monkeypatch):
    """Replace the HTTP call; returns the list of requested URLs."""
    calls: list[str] = []
    state: dict = {"response": _FakeResponse(404)}

    def _get(url, timeout):
        calls.append(url)
        outcome = state["response"]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    monkeypatch.setattr(registry, "_http_get", _get)
    return calls, state


# ── candidate_versions ───────────────────────────────────────────────────


class TestCandidateVersions:
    def test_latest_tag_leads(self):
        document = {
            "dist-tags": {"latest": "1.5.0"},
            "versions": {"1.2.0": {}, "1.10.0": {}, "1.5.0": {}},
        }
        assert candidate_versions(document) == ["1.5.0", "1.10.0", "1.2.0"]

    def test_without_tags_uses_version_order(self):
        assert candidate_versions({"versions": {"0.9.0": {}, "1.0.0": {}}}) == ["1.0.0", "0.9.0"]

    def test_empty_document(self):
        assert candidate_versions({}) == []


# ── HttpRegistrySearcher ─────────────────────────────────────────────────


class TestSearch:
    def test_returns_candidates(self, fake_get):
        calls, state = fake_get
        state["response"] = _FakeResponse(
            payload={"dist-tags": {"latest": "2.0.0"}, "versions": {"1.0.0": {}, "2.0.0": {}}}
        )
        versions = HttpRegistrySearcher().search("com.unity.ugui")
        assert versions == ["2.0.0", "1.0.0"]
        assert calls == ["https://packages.unity.com/com.unity.ugui"]

    def test_not_found_is_empty(self, fake_get):
        _, state = fake_get
        state["response"] = _FakeResponse(404)
        assert HttpRegistrySearcher().search("com.example.missing") == []

    def test_server_error_raises(self, fake_get):
        _, state = fake_get
        state["response"] = _FakeResponse(503)
        with pytest.raises(RegistryLookupError, match="503"):
            HttpRegistrySearcher().search("com.example.pkg")

    def test_transport_error_raises(self, fake_get):
        _, state = fake_get
        state["response"] = requests.Timeout("read timed out")
        with pytest.raises(RegistryLookupError, match="read timed out"):
            HttpRegistrySearcher().search("com.example.pkg")

    def test_invalid_json_raises(self, fake_get):
        _, state = fake_get
        state["response"] = _FakeResponse(bad_json=True)
        with pytest.raises(RegistryLookupError, match="Invalid JSON"):
            HttpRegistrySearcher().search("com.example.pkg")

    def test_non_object_payload_raises(self, fake_get):
        _, state = fake_get
        state["response"] = _FakeResponse(payload=["1.0.0"])
        with pytest.raises(RegistryLookupError):
            HttpRegistrySearcher().search("com.example.pkg")


class TestRouting:
    def _searcher(self) -> HttpRegistrySearcher:
        return HttpRegistrySearcher(
            default_registry="https://packages.unity.com/",
            scoped_registries=[
                ScopedRegistry("openupm", "https://package.openupm.com", ["com.example"]),
                ScopedRegistry("xr", "https://xr.example.org/", ["com.example.xr"]),
            ],
        )

    def test_unscoped_name_uses_default(self):
        assert self._searcher().registry_for("com.unity.ugui") == "https://packages.unity.com"

    def test_longest_scope_wins(self):
        searcher = self._searcher()
        assert searcher.registry_for("com.example.tools") == "https://package.openupm.com"
        assert searcher.registry_for("com.example.xr.rig") == "https://xr.example.org"

    def test_first_listed_registry_wins_ties(self):
        searcher = HttpRegistrySearcher(
            scoped_registries=[
                ScopedRegistry("a", "https://a.example", ["com.example"]),
                ScopedRegistry("b", "https://b.example", ["com.example"]),
            ]
        )
        assert searcher.registry_for("com.example.pkg") == "https://a.example"

    def test_search_hits_scoped_registry(self, fake_get):
        calls, _ = fake_get
        self._searcher().search("com.example.xr.rig")
        assert calls == ["https://xr.example.org/com.example.xr.rig"]
