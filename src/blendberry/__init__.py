"""Blendberry: cached, sync-checked remote configuration for Python apps.

Public API:
    - ConfigMediator: load_configs() and dispatch()
    - MediatorConfig / MediatorBuilder: construction-time assembly
    - RemoteConfigService / LocalConfigRepository / SyncStrategy: collaborator protocols
    - SyncResult / LoadMode / LoadResult: decision-table values
"""

from __future__ import annotations

import logging

from blendberry.config import MediatorConfig
from blendberry.contracts import LocalConfigRepository, RemoteConfigService, SyncStrategy
from blendberry.errors import (
    BlendberryError,
    ConfigNotFoundError,
    ConfigSerializationError,
    ConfigStorageError,
    ConfigSyncError,
    ConfigurationError,
    RemoteServiceError,
    UsageError,
)
from blendberry.mapping import ConfigMapper, ModelMapper, config_path
from blendberry.mediator import ConfigMediator, MediatorBuilder
from blendberry.models import (
    ConfigData,
    ConfigMetadata,
    Environment,
    LoadMode,
    LoadResult,
    RemoteConfig,
    SyncMetadata,
    SyncResult,
)
from blendberry.repositories import InMemoryConfigRepository
from blendberry.retry import RetryPolicy
from blendberry.services import MockConfigService
from blendberry.sync import ServiceSyncStrategy, ThrottledSyncStrategy

try:
    from importlib.metadata import PackageNotFoundError, version

    __version__ = version("blendberry")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"

# Library-level NullHandler: stay silent unless the consumer configures logging.
logging.getLogger("blendberry").addHandler(logging.NullHandler())

__all__ = [
    "BlendberryError",
    "ConfigData",
    "ConfigMapper",
    "ConfigMediator",
    "ConfigMetadata",
    "ConfigNotFoundError",
    "ConfigSerializationError",
    "ConfigStorageError",
    "ConfigSyncError",
    "ConfigurationError",
    "Environment",
    "InMemoryConfigRepository",
    "LoadMode",
    "LoadResult",
    "LocalConfigRepository",
    "MediatorBuilder",
    "MediatorConfig",
    "MockConfigService",
    "ModelMapper",
    "RemoteConfig",
    "RemoteConfigService",
    "RemoteServiceError",
    "RetryPolicy",
    "ServiceSyncStrategy",
    "SyncMetadata",
    "SyncResult",
    "SyncStrategy",
    "ThrottledSyncStrategy",
    "UsageError",
    "config_path",
]
