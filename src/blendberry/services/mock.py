"""Mock remote service for testing and local development."""

from __future__ import annotations

from typing import TYPE_CHECKING

from blendberry.models import SyncResult

if TYPE_CHECKING:
    from blendberry.models import ConfigData, ConfigMetadata


class MockConfigService:
    """In-memory remote service without network access.

    Payloads are published per ``(env, version)``; a lookup with a version
    falls back to the env's unversioned payload. Sync checks compare sync
    identifiers for equality.
    """

    def __init__(self) -> None:
        self._payloads: dict[tuple[str, str | None], ConfigData] = {}
        self.fetch_calls = 0
        self.check_calls = 0

    def publish(self, env: str, payload: ConfigData, version: str | None = None) -> None:
        """Make *payload* the remote configuration for ``(env, version)``."""
        self._payloads[(env, version)] = payload

    def retract(self, env: str, version: str | None = None) -> None:
        """Remove the remote configuration for ``(env, version)``."""
        self._payloads.pop((env, version), None)

    def _lookup(self, env: str, version: str | None) -> ConfigData | None:
        payload = self._payloads.get((env, version))
        if payload is None and version is not None:
            payload = self._payloads.get((env, None))
        return payload

    async def fetch_config(
        self, env: str, version: str | None = None
    ) -> ConfigData | None:
        """Return the published payload, or None."""
        self.fetch_calls += 1
        return self._lookup(env, version)

    async def check_for_updates(
        self, local: ConfigMetadata, env: str, version: str | None = None
    ) -> SyncResult:
        """Compare *local* with the published payload's sync identifier."""
        self.check_calls += 1
        payload = self._lookup(env, version)
        if payload is None:
            return SyncResult.NOT_FOUND
        remote = payload.extract_metadata()
        if remote is None:
            return SyncResult.NEEDS_UPDATE
        if remote.sync_identifier == local.sync_identifier:
            return SyncResult.UP_TO_DATE
        return SyncResult.NEEDS_UPDATE
