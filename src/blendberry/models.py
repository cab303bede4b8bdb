"""Data contracts: payload capabilities, sync outcomes, and load modes."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Literal, Protocol, runtime_checkable

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

if TYPE_CHECKING:
    from collections.abc import Mapping

LoadSource = Literal["cache", "remote", "stale"]


@runtime_checkable
class ConfigMetadata(Protocol):
    """Metadata attached to a configuration payload.

    ``sync_identifier`` is an opaque token (version, hash, timestamp, etag)
    compared for equality or ordering only. The mediator never parses it.
    """

    @property
    def sync_identifier(self) -> str:
        """Opaque token identifying this revision of the configuration."""
        ...


@runtime_checkable
class ConfigData(Protocol):
    """Capability interface for backend-specific configuration payloads."""

    def extract_configs(self) -> Mapping[str, Any]:
        """Return the configuration key/value mapping."""
        ...

    def extract_metadata(self) -> ConfigMetadata | None:
        """Return sync metadata, or None when the backend provides none."""
        ...


@dataclass(frozen=True)
class SyncMetadata:
    """Plain ``ConfigMetadata`` value."""

    sync_identifier: str


class SyncResult(str, Enum):
    """Outcome of a lightweight sync check against the remote source."""

    UP_TO_DATE = "up_to_date"
    NEEDS_UPDATE = "needs_update"
    NOT_FOUND = "not_found"
    ERROR = "error"


class LoadMode(str, Enum):
    """How the mediator combines the local cache with the remote source."""

    LOCAL_ONLY = "local_only"
    REMOTE_ONLY = "remote_only"
    HYBRID = "hybrid"

    @classmethod
    def parse(cls, value: LoadMode | str) -> LoadMode:
        """Coerce user input (``"remote-only"``, ``"HYBRID"``...) into a LoadMode.

        Raises:
            ValueError: If the value names no known mode.
        """
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().lower().replace("-", "_")
        return cls(normalized)


class Environment(str, Enum):
    """Well-known environment names. Any string is accepted as an env key."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


@dataclass(frozen=True)
class LoadResult:
    """Outcome of a settled ``load_configs`` call.

    ``source`` tells where the configuration now served by ``dispatch`` came
    from: ``"cache"`` (verified or local-only), ``"remote"`` (freshly fetched
    and saved), or ``"stale"`` (a refresh was signaled but nothing arrived).
    """

    env: str
    version: str | None
    source: LoadSource
    sync_result: SyncResult | None = None


class RemoteConfig(BaseModel):
    """Common JSON payload shape for configuration backends.

    Accepts ``syncIdentifier`` or ``lastModDate`` as aliases for the sync
    token so REST backends can be decoded without a custom model.

    Example:
        payload = RemoteConfig.from_json('{"env": "prod", "configs": {"a": 1}, "lastModDate": "v1"}')
        payload.extract_metadata().sync_identifier  # "v1"
    """

    model_config = ConfigDict(extra="ignore")

    env: str | None = None
    version: str | None = None
    configs: dict[str, Any] = Field(default_factory=dict)
    sync_identifier: str | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "sync_identifier", "syncIdentifier", "lastModDate"
        ),
    )

    @field_validator("sync_identifier", mode="before")
    @classmethod
    def stringify_identifier(cls, v: Any) -> Any:
        """Backends send numeric revisions; the token is always a string."""
        if v is None or isinstance(v, str):
            return v
        return str(v)

    @classmethod
    def from_json(cls, data: str | bytes | Mapping[str, Any]) -> RemoteConfig:
        """Decode a payload from JSON text or an already-parsed mapping."""
        if isinstance(data, (str, bytes)):
            return cls.model_validate_json(data)
        return cls.model_validate(dict(data))

    def to_json(self) -> str:
        """Encode the payload as JSON text accepted by ``from_json``."""
        return self.model_dump_json()

    def extract_configs(self) -> dict[str, Any]:
        """Return a shallow copy of the configuration mapping."""
        return dict(self.configs)

    def extract_metadata(self) -> SyncMetadata | None:
        """Return the sync metadata, or None when no token was sent."""
        if self.sync_identifier is None:
            return None
        return SyncMetadata(self.sync_identifier)
