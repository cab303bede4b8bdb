"""Pytest configuration and fixtures.

Provides collaborator test doubles and environment isolation. Isolation
fixtures are autouse unless noted.
"""

from __future__ import annotations

from contextlib import suppress
from dataclasses import dataclass, field
import logging
import os
from typing import Any

import pytest

from blendberry.models import ConfigMetadata, RemoteConfig, SyncResult
from blendberry.repositories import InMemoryConfigRepository

# =============================================================================
# Test Doubles
# =============================================================================


@dataclass
class FakeService:
    """RemoteConfigService test double.

    Returns ``payload`` from fetch_config() and ``sync_result`` from
    check_for_updates(); either may be an exception instance to raise.
    Captures call counts and arguments for assertions.
    """

    payload: RemoteConfig | BaseException | None = None
    sync_result: SyncResult | BaseException = SyncResult.UP_TO_DATE
    fetch_calls: int = 0
    check_calls: int = 0
    fetch_args: list[tuple[str, str | None]] = field(default_factory=list)
    last_local: ConfigMetadata | None = None

    async def fetch_config(self, env: str, version: str | None = None) -> Any:
        self.fetch_calls += 1
        self.fetch_args.append((env, version))
        if isinstance(self.payload, BaseException):
            raise self.payload
        return self.payload

    async def check_for_updates(
        self, local: ConfigMetadata, env: str, version: str | None = None
    ) -> SyncResult:
        del env, version
        self.check_calls += 1
        self.last_local = local
        if isinstance(self.sync_result, BaseException):
            raise self.sync_result
        return self.sync_result


class FailingSaveRepository(InMemoryConfigRepository):
    """Repository whose save_config() always raises ``error``."""

    def __init__(self, error: BaseException, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.error = error

    async def save_config(self, config: Any) -> None:
        del config
        self.save_calls += 1
        raise self.error


def make_payload(
    configs: dict[str, Any] | None = None, sync_identifier: str | None = "v1"
) -> RemoteConfig:
    """Build a RemoteConfig payload for tests."""
    return RemoteConfig(
        env="production",
        configs=configs if configs is not None else {"flags": {"darkMode": True}},
        sync_identifier=sync_identifier,
    )


@pytest.fixture
def payload() -> RemoteConfig:
    return make_payload()


@pytest.fixture
def service(payload: RemoteConfig) -> FakeService:
    return FakeService(payload=payload)


@pytest.fixture
def empty_repository() -> InMemoryConfigRepository:
    return InMemoryConfigRepository()


@pytest.fixture
def cached_repository() -> InMemoryConfigRepository:
    """Repository already holding ``{"flags": {"darkMode": False}}`` at v1."""
    return InMemoryConfigRepository(
        configs={"flags": {"darkMode": False}}, sync_identifier="v1"
    )


# =============================================================================
# Environment Isolation (Autouse)
# =============================================================================


@pytest.fixture(autouse=True)
def block_dotenv(request, monkeypatch):
    """Prevent python-dotenv from loading project .env files during tests.

    Opt-out: @pytest.mark.allow_dotenv
    """
    if request.node.get_closest_marker("allow_dotenv"):
        return
    with suppress(Exception):
        monkeypatch.setattr(
            "dotenv.load_dotenv", lambda *_args, **_kwargs: False, raising=False
        )


@pytest.fixture(autouse=True)
def isolate_blendberry_env(request, monkeypatch):
    """Clear BLENDBERRY_* env vars so mediator defaults are deterministic.

    Opt-out: @pytest.mark.allow_env_pollution
    """
    if request.node.get_closest_marker("allow_env_pollution"):
        return
    for key in list(os.environ.keys()):
        if key.startswith("BLENDBERRY_"):
            monkeypatch.delenv(key, raising=False)


# =============================================================================
# Logging
# =============================================================================


@pytest.fixture(scope="session", autouse=True)
def quiet_noisy_libraries():
    """Suppress noisy third-party loggers."""
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)
