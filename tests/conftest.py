"""Shared test fixtures for authhook.

Provides fixtures for isolating configuration, resetting global output and
logging state, and fake token providers standing in for the external
identity services.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Any, Sequence

import pytest

from authhook.output import reset_output
from authhook.protocols import AccessToken


# ---------------------------------------------------------------------------
# Auto-reset global output and logging state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager and the ``authhook`` logger after every test.

    CLI invocations bind consoles and log handlers to CliRunner's streams,
    which are closed once the invocation returns.
    """
    yield
    reset_output()
    logger = logging.getLogger("authhook")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point XDG_CONFIG_HOME at tmp_path and clear AUTHHOOK_* variables.

    Returns:
        The tmp_path root directory.
    """
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setattr("authhook.config._is_xdg_platform", lambda: True)
    monkeypatch.delenv("AUTHHOOK_REGISTRY", raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Fake token providers
# ---------------------------------------------------------------------------


class FakeCredentialProvider:
    """Managed-identity style provider returning a fixed token."""

    def __init__(self, token: str = "service-token") -> None:
        self.token = token
        self.calls: list[tuple[str, ...]] = []

    async def get_token(self, *scopes: str) -> AccessToken:
        self.calls.append(scopes)
        return AccessToken(self.token, int(time.time()) + 3600)


class FakeTokenAcquisition:
    """On-behalf-of provider returning a fixed token."""

    def __init__(self, token: str = "user-token") -> None:
        self.token = token
        self.calls: list[tuple[list[str], Any]] = []

    async def get_access_token_for_user(self, scopes: Sequence[str], *, user: Any) -> str:
        self.calls.append((list(scopes), user))
        return self.token


@pytest.fixture
def credential_provider() -> FakeCredentialProvider:
    return FakeCredentialProvider()


@pytest.fixture
def token_acquisition() -> FakeTokenAcquisition:
    return FakeTokenAcquisition()
