"""Reference ``LocalConfigRepository`` implementations."""

from __future__ import annotations

from blendberry.repositories.memory import InMemoryConfigRepository

__all__ = ["InMemoryConfigRepository"]
