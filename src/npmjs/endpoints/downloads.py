"""Download statistics from the npm stats service."""
from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional

from .packages import encode_name

if TYPE_CHECKING:
    from npmjs.registry.client import Registry


class Downloads:
    """Download counts, served by ``config.statservice`` rather than the registry."""

    def __init__(self, api: "Registry"):
        self.api = api

    def _path(self, kind: str, period: str, package: Optional[str]) -> str:
        parts = ["downloads", kind, period]
        if package:
            parts.append(encode_name(package))
        return "/".join(parts)

    async def totals(self, period: str, package: Optional[str] = None) -> Any:
        """Total downloads for ``period``; all packages when ``package`` is None."""
        return await self.api.send(
            self._path("point", period, package), api=self.api.config.statservice
        )

    async def range(self, period: str, package: Optional[str] = None) -> Any:
        """Per-day downloads for ``period``."""
        return await self.api.send(
            self._path("range", period, package), api=self.api.config.statservice
        )
