"""Test helpers (small, reusable doubles).

Keep this file tiny and purpose-built: it exists to prevent test suites from
growing lots of one-off service subclasses as coverage expands.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any

from blendberry.models import RemoteConfig
from tests.conftest import FakeService


@dataclass
class GateService(FakeService):
    """FakeService with an explicit barrier for coalescing race tests.

    fetch_config() and check_for_updates() signal ``started`` and then block
    until ``release`` is set.
    """

    started: asyncio.Event = field(default_factory=asyncio.Event)
    release: asyncio.Event = field(default_factory=asyncio.Event)

    async def fetch_config(self, env: str, version: str | None = None) -> Any:
        self.started.set()
        await self.release.wait()
        return await super().fetch_config(env, version)

    async def check_for_updates(self, local: Any, env: str, version: str | None = None) -> Any:
        self.started.set()
        await self.release.wait()
        return await super().check_for_updates(local, env, version)


@dataclass
class ScriptedService(FakeService):
    """FakeService whose fetch_config() walks a scripted sequence.

    Each item is a payload, None, or an exception to raise. When the script
    runs out, ``payload`` is returned.
    """

    script: list[RemoteConfig | BaseException | None] = field(default_factory=list)

    async def fetch_config(self, env: str, version: str | None = None) -> Any:
        if not self.script:
            return await super().fetch_config(env, version)
        self.fetch_calls += 1
        self.fetch_args.append((env, version))
        item = self.script.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item
