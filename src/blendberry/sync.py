"""Sync strategies: policies that decide whether cached configuration is stale."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
import time
from typing import TYPE_CHECKING

from blendberry.models import SyncResult

if TYPE_CHECKING:
    from collections.abc import Callable

    from blendberry.contracts import RemoteConfigService, SyncStrategy
    from blendberry.models import ConfigMetadata

logger = logging.getLogger(__name__)


class ServiceSyncStrategy:
    """Delegate straight to ``service.check_for_updates``.

    This is what the mediator does when no strategy is configured.
    """

    async def check_for_updates(
        self,
        local: ConfigMetadata,
        service: RemoteConfigService,
        env: str,
        version: str | None = None,
    ) -> SyncResult:
        return await service.check_for_updates(local, env, version)


@dataclass
class ThrottledSyncStrategy:
    """Rate-limit sync checks per key.

    An ``UP_TO_DATE`` verdict is reused for ``min_interval_s`` as long as the
    local sync identifier has not changed. Any other verdict is never reused,
    so staleness and failures are always re-checked.
    """

    min_interval_s: float
    inner: SyncStrategy = field(default_factory=ServiceSyncStrategy)
    clock: Callable[[], float] = time.monotonic
    #: (env, version) -> (sync identifier, verified at); one entry per key.
    _verified_at: dict[tuple[str, str | None], tuple[str, float]] = field(
        default_factory=dict, init=False, repr=False
    )

    def __post_init__(self) -> None:
        if self.min_interval_s < 0:
            raise ValueError("ThrottledSyncStrategy.min_interval_s must be >= 0")

    async def check_for_updates(
        self,
        local: ConfigMetadata,
        service: RemoteConfigService,
        env: str,
        version: str | None = None,
    ) -> SyncResult:
        key = (env, version)
        identifier = local.sync_identifier
        entry = self._verified_at.get(key)
        now = self.clock()
        if (
            entry is not None
            and entry[0] == identifier
            and now - entry[1] < self.min_interval_s
        ):
            logger.debug("Reusing up-to-date verdict for %s (%.2fs old)", key, now - entry[1])
            return SyncResult.UP_TO_DATE

        result = await self.inner.check_for_updates(local, service, env, version)
        if result is SyncResult.UP_TO_DATE:
            self._verified_at[key] = (identifier, self.clock())
        else:
            self._verified_at.pop(key, None)
        return result

    def reset(self) -> None:
        """Forget every remembered verdict."""
        self._verified_at.clear()
