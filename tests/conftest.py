"""Shared pytest fixtures for upm-audit tests."""

import pytest

from upm_audit.logging import setup_logging


@pytest.fixture(autouse=True, scope="session")
def _configure_logging():
    setup_logging("WARNING")


@pytest.fixture
def no_logging_setup(monkeypatch):
    """Keep the CLI from reconfiguring logging against pytest's capture streams."""
    monkeypatch.setattr("upm_audit.cli.setup_logging", lambda *a, **k: None)
