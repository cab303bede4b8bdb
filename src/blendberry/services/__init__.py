"""Reference ``RemoteConfigService`` implementations."""

from __future__ import annotations

from blendberry.services.mock import MockConfigService

__all__ = ["MockConfigService"]
