"""Orchestration core: cache lookup, sync check, fetch, persist, dispatch.

``ConfigMediator.load_configs`` walks the load-mode decision table below and
``ConfigMediator.dispatch`` projects the last settled configuration through a
caller-supplied mapper.

    local_only   cached -> serve cache        | empty -> not found
    remote_only  fetch -> save -> serve       | nothing fetched -> not found
    hybrid       empty or no metadata -> remote_only path
                 up_to_date   -> serve cache
                 needs_update -> fetch -> save -> serve (nothing fetched -> stale cache)
                 not_found    -> not found, cache untouched
                 error        -> sync error, cache still dispatchable
"""

from __future__ import annotations

import asyncio
import copy
from dataclasses import dataclass
import logging
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, TypeVar

from blendberry._singleflight import singleflight
from blendberry.config import MediatorConfig
from blendberry.errors import (
    BlendberryError,
    ConfigNotFoundError,
    ConfigStorageError,
    ConfigSyncError,
    ConfigurationError,
    UsageError,
)
from blendberry.mapping import resolve_mapper
from blendberry.models import Environment, LoadMode, LoadResult, SyncResult
from blendberry.retry import retry_async, should_retry_fetch

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from blendberry.contracts import (
        LocalConfigRepository,
        RemoteConfigService,
        SyncStrategy,
    )
    from blendberry.mapping import ConfigMapper
    from blendberry.models import ConfigData, ConfigMetadata, LoadSource
    from blendberry.retry import RetryPolicy

logger = logging.getLogger(__name__)

T = TypeVar("T")

_LoadKey = tuple[str, "str | None"]


class ConfigMediator:
    """Coordinate a remote service and a local repository for one application.

    Concurrent ``load_configs`` calls for the same ``(env, version)`` share a
    single underlying load. ``dispatch`` never suspends and always observes
    the configuration as of the last settled load.

    Example:
        mediator = ConfigMediator.builder().with_service(svc).with_repository(repo).build()
        await mediator.load_configs("production")
        dark = mediator.dispatch(lambda configs: configs["flags"]["darkMode"])
    """

    def __init__(self, config: MediatorConfig) -> None:
        self._config = config
        self._inflight: dict[_LoadKey, asyncio.Future[LoadResult]] = {}
        self._snapshot: dict[str, Any] | None = None
        # Set once the repository has been consulted; later reads go through loads only.
        self._primed = False

    @classmethod
    def builder(cls) -> MediatorBuilder:
        """Start a fluent assembly of a mediator."""
        return MediatorBuilder()

    @property
    def config(self) -> MediatorConfig:
        return self._config

    @property
    def load_mode(self) -> LoadMode:
        return self._config.mode

    @property
    def has_configs(self) -> bool:
        """Whether ``dispatch`` currently has a configuration to project."""
        return self._prime_snapshot() is not None

    @property
    def _service(self) -> RemoteConfigService:
        return self._config.service

    @property
    def _repository(self) -> LocalConfigRepository:
        return self._config.repository

    def is_loading(self, env: str | Environment, version: str | None = None) -> bool:
        """Whether a load for ``(env, version)`` is currently in flight."""
        return (_env_key(env), version) in self._inflight

    async def load_configs(
        self, env: str | Environment, version: str | None = None
    ) -> LoadResult:
        """Load configuration for ``(env, version)`` according to the load mode.

        Args:
            env: Environment name, e.g. ``"production"`` or ``Environment.STAGING``.
            version: Optional configuration version; None means latest.

        Returns:
            LoadResult describing where the served configuration came from.

        Raises:
            ConfigNotFoundError: No configuration exists for the key.
            ConfigSyncError: The sync check or the fetch failed. Cached data
                remains available to ``dispatch``.
            ConfigStorageError: The repository failed to persist the fetch.
        """
        key = (_env_key(env), version)
        self._prime_snapshot()
        return await singleflight(
            key,
            inflight=self._inflight,
            work=lambda: self._load(*key),
        )

    def dispatch(self, mapper: ConfigMapper[T] | Callable[[Mapping[str, Any]], T]) -> T:
        """Project the current configuration through *mapper*.

        Mapper exceptions propagate unchanged.

        Raises:
            UsageError: *mapper* is None or not a mapper.
            ConfigNotFoundError: Nothing was ever loaded and the repository is empty.
        """
        project = resolve_mapper(mapper)
        snapshot = self._prime_snapshot()
        if snapshot is None:
            raise ConfigNotFoundError(
                "No configuration has been loaded",
                hint="Await load_configs() successfully before dispatching.",
            )
        # Mappers get a private copy.
        return project(MappingProxyType(copy.deepcopy(snapshot)))

    async def clear_cache(self) -> None:
        """Clear the repository and forget the current configuration."""
        try:
            await self._repository.clear_cache()
        except BlendberryError:
            raise
        except Exception as exc:
            raise ConfigStorageError(f"Clearing the config cache failed: {exc}") from exc
        self._snapshot = None
        self._log(logging.INFO, "Config cache cleared")

    # --- Load state machine ---

    async def _load(self, env: str, version: str | None) -> LoadResult:
        mode = self.load_mode
        self._log(logging.INFO, "Loading configs env=%s version=%s mode=%s", env, version, mode.value)

        if mode is LoadMode.LOCAL_ONLY:
            if self._repository.has_data():
                return self._settle_cached(env, version, "cache")
            raise ConfigNotFoundError(
                f"No cached configuration for env={env!r} version={version!r}",
                hint="local_only mode never contacts the remote service.",
                env=env,
                version=version,
            )

        if mode is LoadMode.REMOTE_ONLY or not self._repository.has_data():
            return await self._fetch_and_save(env, version)

        local = self._repository.get_metadata()
        if local is None:
            self._log(logging.INFO, "Cached configs carry no metadata; fetching env=%s", env)
            return await self._fetch_and_save(env, version)

        result = await self._check_for_updates(local, env, version)
        self._log(
            logging.INFO,
            "Sync check env=%s version=%s local=%s -> %s",
            env,
            version,
            local.sync_identifier,
            result.value,
        )

        if result is SyncResult.UP_TO_DATE:
            return self._settle_cached(env, version, "cache", result)
        if result is SyncResult.NEEDS_UPDATE:
            return await self._fetch_and_save(
                env,
                version,
                sync_result=result,
                fallback_to_cache=self._config.fallback_on_missing_fetch,
            )
        if result is SyncResult.NOT_FOUND:
            raise ConfigNotFoundError(
                f"Remote reports no configuration for env={env!r} version={version!r}",
                env=env,
                version=version,
            )
        self._log(logging.WARNING, "Sync check failed for env=%s; cached configs kept", env)
        raise ConfigSyncError(
            f"Sync check failed for env={env!r} version={version!r}",
            hint="Cached configuration remains available to dispatch().",
            env=env,
            version=version,
            phase="sync",
            sync_result=result,
        )

    async def _fetch_and_save(
        self,
        env: str,
        version: str | None,
        *,
        sync_result: SyncResult | None = None,
        fallback_to_cache: bool = False,
    ) -> LoadResult:
        data = await self._fetch(env, version)
        if data is None:
            if fallback_to_cache:
                self._log(
                    logging.WARNING,
                    "Update signaled but nothing fetched for env=%s; serving cached configs",
                    env,
                )
                return self._settle_cached(env, version, "stale", sync_result)
            raise ConfigNotFoundError(
                f"Remote returned no configuration for env={env!r} version={version!r}",
                env=env,
                version=version,
            )

        await self._save(data)
        metadata = data.extract_metadata()
        self._log(
            logging.INFO,
            "Saved configs env=%s version=%s sync_identifier=%s",
            env,
            version,
            metadata.sync_identifier if metadata is not None else None,
        )
        return self._settle(env, version, "remote", sync_result)

    async def _fetch(self, env: str, version: str | None) -> ConfigData | None:
        policy: RetryPolicy | None = self._config.retry
        try:
            if policy is None or policy.max_attempts <= 1:
                return await self._service.fetch_config(env, version)
            return await retry_async(
                lambda: self._service.fetch_config(env, version),
                policy=policy,
                should_retry=should_retry_fetch,
            )
        except ConfigNotFoundError:
            raise
        except Exception as exc:
            self._log(logging.WARNING, "Fetch failed for env=%s: %s", env, exc)
            raise ConfigSyncError(
                f"Fetching configuration failed for env={env!r} version={version!r}: {exc}",
                env=env,
                version=version,
                phase="fetch",
            ) from exc

    async def _check_for_updates(
        self, local: ConfigMetadata, env: str, version: str | None
    ) -> SyncResult:
        strategy: SyncStrategy | None = self._config.sync_strategy
        try:
            if strategy is not None:
                raw = await strategy.check_for_updates(local, self._service, env, version)
            else:
                raw = await self._service.check_for_updates(local, env, version)
            return SyncResult(raw)
        except ConfigNotFoundError:
            raise
        except Exception as exc:
            self._log(logging.WARNING, "Sync check raised for env=%s: %s", env, exc)
            raise ConfigSyncError(
                f"Sync check failed for env={env!r} version={version!r}: {exc}",
                hint="Cached configuration remains available to dispatch().",
                env=env,
                version=version,
                phase="sync",
                sync_result=SyncResult.ERROR,
            ) from exc

    async def _save(self, data: ConfigData) -> None:
        try:
            await self._repository.save_config(data)
        except BlendberryError:
            raise
        except Exception as exc:
            raise ConfigStorageError(f"Saving fetched configuration failed: {exc}") from exc

    # --- Snapshot ---

    def _settle(
        self,
        env: str,
        version: str | None,
        source: LoadSource,
        sync_result: SyncResult | None = None,
    ) -> LoadResult:
        self._snapshot = _copy_configs(self._repository.get_configs())
        self._primed = True
        return LoadResult(env=env, version=version, source=source, sync_result=sync_result)

    def _settle_cached(
        self,
        env: str,
        version: str | None,
        source: LoadSource,
        sync_result: SyncResult | None = None,
    ) -> LoadResult:
        # The cache may have been cleared while the sync check was suspended.
        if not self._repository.has_data():
            raise ConfigNotFoundError(
                f"Cached configuration for env={env!r} version={version!r} "
                "was cleared during the load",
                env=env,
                version=version,
            )
        return self._settle(env, version, source, sync_result)

    def _prime_snapshot(self) -> dict[str, Any] | None:
        if not self._primed:
            self._primed = True
            if self._repository.has_data():
                self._snapshot = _copy_configs(self._repository.get_configs())
        return self._snapshot

    def _log(self, level: int, msg: str, *args: Any) -> None:
        logger.log(level if self._config.logging_enabled else logging.DEBUG, msg, *args)


@dataclass
class MediatorBuilder:
    """Fluent assembly for ``ConfigMediator``."""

    service: RemoteConfigService | None = None
    repository: LocalConfigRepository | None = None
    sync_strategy: SyncStrategy | None = None
    load_mode: LoadMode | str | None = None
    logging_enabled: bool | None = None
    fallback_on_missing_fetch: bool = True
    retry: RetryPolicy | None = None

    def with_service(self, service: RemoteConfigService) -> MediatorBuilder:
        self.service = service
        return self

    def with_repository(self, repository: LocalConfigRepository) -> MediatorBuilder:
        self.repository = repository
        return self

    def with_sync_strategy(self, strategy: SyncStrategy) -> MediatorBuilder:
        self.sync_strategy = strategy
        return self

    def with_load_mode(self, mode: LoadMode | str) -> MediatorBuilder:
        self.load_mode = mode
        return self

    def with_logging(self, enabled: bool = True) -> MediatorBuilder:
        self.logging_enabled = enabled
        return self

    def with_retry(self, policy: RetryPolicy) -> MediatorBuilder:
        self.retry = policy
        return self

    def with_fallback_on_missing_fetch(self, enabled: bool) -> MediatorBuilder:
        self.fallback_on_missing_fetch = enabled
        return self

    def build(self) -> ConfigMediator:
        """Validate the pieces and construct the mediator.

        Raises:
            ConfigurationError: A required collaborator is missing or invalid.
        """
        if self.service is None:
            raise ConfigurationError(
                "A RemoteConfigService is required",
                hint="Call with_service(...) before build().",
            )
        if self.repository is None:
            raise ConfigurationError(
                "A LocalConfigRepository is required",
                hint="Call with_repository(...) before build().",
            )
        return ConfigMediator(
            MediatorConfig(
                service=self.service,
                repository=self.repository,
                sync_strategy=self.sync_strategy,
                load_mode=self.load_mode,
                logging_enabled=self.logging_enabled,
                fallback_on_missing_fetch=self.fallback_on_missing_fetch,
                retry=self.retry,
            )
        )


def _env_key(env: str | Environment) -> str:
    value = env.value if isinstance(env, Environment) else env
    if not isinstance(value, str) or not value.strip():
        raise UsageError(
            f"env must be a non-empty string, got {env!r}",
            hint="Use a name such as 'production' or Environment.PRODUCTION.",
        )
    return value


def _copy_configs(configs: Mapping[str, Any]) -> dict[str, Any]:
    return copy.deepcopy(dict(configs))
