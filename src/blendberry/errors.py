"""Exception hierarchy for Blendberry."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator

    from blendberry.models import SyncResult


class BlendberryError(Exception):
    """Base exception for all Blendberry errors."""

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint = hint


class ConfigurationError(BlendberryError):
    """Mediator configuration validation or assembly failed."""


class UsageError(BlendberryError):
    """The library was called incorrectly (a programmer error, not a runtime condition)."""


class ConfigNotFoundError(BlendberryError):
    """No configuration exists for the requested key, locally or remotely."""

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        env: str | None = None,
        version: str | None = None,
    ) -> None:
        super().__init__(message, hint=hint)
        self.env = env
        self.version = version


class ConfigSyncError(BlendberryError):
    """The sync check or the remote fetch failed.

    The underlying exception, when there is one, is chained as ``__cause__``.
    Cached data from before the failing call stays available to ``dispatch``.
    """

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        env: str | None = None,
        version: str | None = None,
        phase: str | None = None,
        sync_result: SyncResult | None = None,
    ) -> None:
        super().__init__(message, hint=hint)
        self.env = env
        self.version = version
        self.phase = phase
        self.sync_result = sync_result


class ConfigStorageError(BlendberryError):
    """The local repository failed to persist or clear configuration."""


class ConfigSerializationError(ConfigStorageError):
    """The local repository cannot serialize the given ``ConfigData`` shape."""


class RemoteServiceError(BlendberryError):
    """Transport-level failure raised by a ``RemoteConfigService``.

    Services attach retry metadata so the mediator can perform bounded
    retries without brittle substring matching.
    """

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        retryable: bool | None = None,
        status_code: int | None = None,
        retry_after_s: float | None = None,
        phase: str | None = None,
    ) -> None:
        super().__init__(message, hint=hint)
        self.retryable = retryable
        self.status_code = status_code
        self.retry_after_s = retry_after_s
        self.phase = phase


def walk_exception_chain(exc: BaseException) -> Iterator[BaseException]:
    """Yield *exc* and its ``__cause__``/``__context__`` chain, with cycle protection."""
    seen: set[int] = set()
    stack: list[BaseException] = [exc]
    while stack:
        cur = stack.pop()
        if id(cur) in seen:
            continue
        seen.add(id(cur))
        yield cur

        cause = cur.__cause__
        if isinstance(cause, BaseException):
            stack.append(cause)
        context = cur.__context__
        if isinstance(context, BaseException):
            stack.append(context)
