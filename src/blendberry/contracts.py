"""Collaborator protocols: remote service, local repository, sync policy."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Mapping

    from blendberry.models import ConfigData, ConfigMetadata, SyncResult


@runtime_checkable
class RemoteConfigService(Protocol):
    """Minimal remote protocol: fetch a payload, check for updates."""

    async def fetch_config(
        self, env: str, version: str | None = None
    ) -> ConfigData | None:
        """Fetch the configuration for *env*.

        Return None when no configuration is available. Raise
        ``RemoteServiceError`` (or let a transport exception escape) for
        transport-level failures.
        """
        ...

    async def check_for_updates(
        self, local: ConfigMetadata, env: str, version: str | None = None
    ) -> SyncResult:
        """Compare *local* metadata with the remote revision.

        Must be cheap and idempotent and must not retry internally.
        """
        ...


@runtime_checkable
class LocalConfigRepository(Protocol):
    """Persistence for the last-known configuration and its metadata."""

    def has_data(self) -> bool:
        """Whether a configuration is stored. Inaccessible storage reads as False."""
        ...

    def get_metadata(self) -> ConfigMetadata | None:
        """Return stored metadata, if any."""
        ...

    def get_configs(self) -> Mapping[str, Any]:
        """Return stored configs; an empty mapping when nothing is stored."""
        ...

    async def save_config(self, config: ConfigData) -> None:
        """Persist *config* atomically: configs and metadata update together or not at all."""
        ...

    async def clear_cache(self) -> None:
        """Remove everything this repository has stored."""
        ...


@runtime_checkable
class SyncStrategy(Protocol):
    """Injectable policy deciding whether cached data is stale."""

    async def check_for_updates(
        self,
        local: ConfigMetadata,
        service: RemoteConfigService,
        env: str,
        version: str | None = None,
    ) -> SyncResult:
        """Return the sync verdict for *local* against *service*."""
        ...
