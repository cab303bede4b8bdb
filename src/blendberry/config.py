"""Configuration: frozen MediatorConfig with explicit collaborators."""

from __future__ import annotations

from dataclasses import dataclass
import os

from dotenv import load_dotenv

from blendberry.contracts import (
    LocalConfigRepository,
    RemoteConfigService,
    SyncStrategy,
)
from blendberry.errors import ConfigurationError
from blendberry.models import LoadMode
from blendberry.retry import RetryPolicy

load_dotenv()

LOAD_MODE_ENV_VAR = "BLENDBERRY_LOAD_MODE"
LOGGING_ENV_VAR = "BLENDBERRY_LOGGING"

_TRUTHY = frozenset({"1", "true", "yes", "on"})


@dataclass(frozen=True)
class MediatorConfig:
    """Immutable construction-time configuration for a ConfigMediator.

    Service and repository are required. Load mode and logging fall back to
    ``BLENDBERRY_LOAD_MODE`` / ``BLENDBERRY_LOGGING`` when left as *None*.

    Example:
        config = MediatorConfig(service=MyService(), repository=InMemoryConfigRepository())
        # load_mode resolves to LoadMode.HYBRID unless BLENDBERRY_LOAD_MODE is set
    """

    service: RemoteConfigService
    repository: LocalConfigRepository
    sync_strategy: SyncStrategy | None = None
    #: Auto-resolved from ``BLENDBERRY_LOAD_MODE`` (default hybrid) when *None*.
    load_mode: LoadMode | str | None = None
    #: Auto-resolved from ``BLENDBERRY_LOGGING`` (default off) when *None*.
    logging_enabled: bool | None = None
    #: Serve the cached data when a signaled update fetches nothing.
    fallback_on_missing_fetch: bool = True
    #: Bounded retry around ``fetch_config``; the sync check is never retried.
    retry: RetryPolicy | None = None

    def __post_init__(self) -> None:
        """Resolve environment defaults and validate collaborators."""
        if not isinstance(self.service, RemoteConfigService):
            raise ConfigurationError(
                f"service does not implement RemoteConfigService: {self.service!r}",
                hint="Provide fetch_config() and check_for_updates() coroutines.",
            )
        if not isinstance(self.repository, LocalConfigRepository):
            raise ConfigurationError(
                f"repository does not implement LocalConfigRepository: {self.repository!r}",
                hint="Provide has_data(), get_metadata(), get_configs(), "
                "save_config() and clear_cache().",
            )
        if self.sync_strategy is not None and not isinstance(
            self.sync_strategy, SyncStrategy
        ):
            raise ConfigurationError(
                f"sync_strategy does not implement SyncStrategy: {self.sync_strategy!r}",
                hint="Provide an async check_for_updates(local, service, env, version).",
            )

        raw_mode = self.load_mode
        if raw_mode is None:
            raw_mode = os.environ.get(LOAD_MODE_ENV_VAR) or LoadMode.HYBRID
        try:
            mode = LoadMode.parse(raw_mode)
        except ValueError:
            raise ConfigurationError(
                f"Unknown load mode: {raw_mode!r}",
                hint="Supported modes: 'local_only', 'remote_only', 'hybrid'.",
            ) from None
        object.__setattr__(self, "load_mode", mode)

        if self.logging_enabled is None:
            raw = os.environ.get(LOGGING_ENV_VAR, "")
            object.__setattr__(self, "logging_enabled", raw.strip().lower() in _TRUTHY)

    @property
    def mode(self) -> LoadMode:
        """The resolved load mode."""
        return LoadMode.parse(self.load_mode)  # type: ignore[arg-type]
