"""In-process repository keeping the last configuration in memory."""

from __future__ import annotations

from collections.abc import Mapping
import copy
from typing import TYPE_CHECKING, Any

from blendberry.errors import ConfigSerializationError
from blendberry.models import SyncMetadata

if TYPE_CHECKING:
    from blendberry.models import ConfigData, ConfigMetadata


class InMemoryConfigRepository:
    """Repository for tests, scripts, and short-lived processes.

    Configs and metadata are stored as one tuple and replaced in a single
    assignment, so a failed save never leaves a half-written pair behind.
    """

    def __init__(
        self,
        configs: Mapping[str, Any] | None = None,
        sync_identifier: str | None = None,
    ) -> None:
        self._entry: tuple[dict[str, Any], ConfigMetadata | None] | None = None
        if configs is not None:
            metadata = SyncMetadata(sync_identifier) if sync_identifier is not None else None
            self._entry = (copy.deepcopy(dict(configs)), metadata)
        self.save_calls = 0

    def has_data(self) -> bool:
        return self._entry is not None

    def get_metadata(self) -> ConfigMetadata | None:
        if self._entry is None:
            return None
        return self._entry[1]

    def get_configs(self) -> dict[str, Any]:
        if self._entry is None:
            return {}
        return copy.deepcopy(self._entry[0])

    async def save_config(self, config: ConfigData) -> None:
        self.save_calls += 1
        configs = config.extract_configs()
        if not isinstance(configs, Mapping):
            raise ConfigSerializationError(
                f"{type(config).__name__}.extract_configs() returned "
                f"{type(configs).__name__}, expected a mapping"
            )
        metadata = config.extract_metadata()
        if metadata is not None:
            metadata = SyncMetadata(str(metadata.sync_identifier))
        self._entry = (copy.deepcopy(dict(configs)), metadata)

    async def clear_cache(self) -> None:
        self._entry = None
