"""Typed views over the materialized configuration mapping.

``dispatch`` accepts either a plain callable ``(Mapping[str, Any]) -> T`` or an
object exposing ``map(configs) -> T``. Mapper failures are the caller's and
always propagate unchanged.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Generic, Protocol, TypeVar, runtime_checkable

from pydantic import BaseModel

from blendberry.errors import UsageError

if TYPE_CHECKING:
    from collections.abc import Callable

T_co = TypeVar("T_co", covariant=True)
M = TypeVar("M", bound=BaseModel)


@runtime_checkable
class ConfigMapper(Protocol[T_co]):
    """Object-style mapper from the configuration mapping to a typed value."""

    def map(self, configs: Mapping[str, Any]) -> T_co: ...  # noqa: D102


def resolve_mapper(mapper: Any) -> Callable[[Mapping[str, Any]], Any]:
    """Return the projection function behind *mapper*.

    Raises:
        UsageError: If *mapper* is None or neither callable nor a ConfigMapper.
    """
    if mapper is None:
        raise UsageError(
            "dispatch() requires a mapper",
            hint="Pass a callable taking the config mapping, or an object with .map().",
        )
    if isinstance(mapper, ConfigMapper):
        return mapper.map
    if callable(mapper):
        return mapper
    raise UsageError(
        f"Unsupported mapper type: {type(mapper).__name__}",
        hint="Pass a callable taking the config mapping, or an object with .map().",
    )


@dataclass(frozen=True)
class ModelMapper(Generic[M]):
    """Validate the configuration mapping into a pydantic model.

    Example:
        class Flags(BaseModel):
            dark_mode: bool = Field(alias="darkMode")

        class AppConfig(BaseModel):
            flags: Flags

        cfg = mediator.dispatch(ModelMapper(AppConfig))
    """

    model: type[M]
    #: Validate a sub-tree (dotted path) instead of the whole mapping.
    path: str | None = None

    def map(self, configs: Mapping[str, Any]) -> M:
        data = _resolve_path(configs, self.path) if self.path else configs
        if isinstance(data, Mapping):
            data = dict(data)
        return self.model.model_validate(data)


def config_path(path: str, default: Any = ...) -> Callable[[Mapping[str, Any]], Any]:
    """Build a mapper reading a dotted *path* such as ``"flags.darkMode"``.

    Missing keys raise ``KeyError`` unless *default* is given.
    """
    if not path:
        raise UsageError("config_path() requires a non-empty path")

    def _read(configs: Mapping[str, Any]) -> Any:
        try:
            return _resolve_path(configs, path)
        except KeyError:
            if default is ...:
                raise
            return default

    return _read


def _resolve_path(configs: Mapping[str, Any], path: str) -> Any:
    node: Any = configs
    for segment in path.split("."):
        if not isinstance(node, Mapping) or segment not in node:
            raise KeyError(path)
        node = node[segment]
    return node
