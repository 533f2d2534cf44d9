"""User endpoints: profiles, authored/starred packages and ownership sync."""
from __future__ import annotations

import asyncio
import logging
import urllib.parse
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional

from npmjs.common.logging_utils import extra_context, Timer
from npmjs.constants import Constants, RegistryViews
from npmjs.normalize import normalize_user
from npmjs.registry.views import simple

from .packages import encode_name

if TYPE_CHECKING:
    from npmjs.registry.client import Registry

logger = logging.getLogger(__name__)


class Users:
    """Account related endpoints."""

    def __init__(self, api: "Registry"):
        self.api = api

    async def get(self, name: str) -> Dict[str, Any]:
        """Fetch and normalize the profile of ``name``."""
        path = Constants.USER_PATH_PREFIX + urllib.parse.quote(name, safe="")
        data = await self.api.send(path)
        return normalize_user(data)

    async def list(self, name: str) -> List[Any]:
        """Packages maintained by ``name``."""
        rows = await self.api.view(RegistryViews.BROWSE_AUTHORS.value, key=name)
        return [simple(row) for row in rows]

    async def starred(self, name: str) -> List[Any]:
        """Packages starred by ``name``."""
        rows = await self.api.view(RegistryViews.BROWSE_STAR_USER.value, key=name)
        return [simple(row) for row in rows]

    async def add(self, name: str, package: str) -> Optional[Any]:
        """Add ``name`` as a maintainer of ``package``.

        Reads the raw package document from the primary registry for its
        revision and maintainer list, then writes the extended list back to the
        primary. Returns the registry's reply, or None when ``name`` already maintains the package.
        """
        # The revision must come from the primary the write goes to.
        doc = await self.api.send(encode_name(package), api=self.api.config.registry)
        doc = doc if isinstance(doc, dict) else {}
        maintainers = [m for m in doc.get("maintainers") or [] if isinstance(m, dict)]

        if any(m.get("name") == name for m in maintainers):
            logger.info(
                "%s already maintains %s",
                name,
                package,
                extra=extra_context(
                    event="decision", component="users", action="add",
                    outcome="already_maintainer", target=package,
                ),
            )
            return None

        profile = await self.get(name)
        maintainer = {"name": name}
        if isinstance(profile.get("email"), str) and profile["email"]:
            maintainer["email"] = profile["email"]

        body = {
            "_id": doc.get("_id") or package,
            "_rev": doc.get("_rev"),
            "maintainers": maintainers + [maintainer],
        }
        path = f"{encode_name(package)}/-rev/{urllib.parse.quote(str(doc.get('_rev') or ''), safe='')}"
        return await self.api.send(path, method="PUT", json=body)

    async def sync(
        self,
        source: str,
        target: str,
        *,
        add: bool = True,
        packages: Optional[Iterable[str]] = None,
    ) -> List[str]:
        """Give ``target`` ownership of every package ``source`` maintains.

        Useful to on-board a new account next to a shared base owner.

        Args:
            source: Account whose packages are synced.
            target: Account that receives ownership.
            add: When False, only report which packages would be synced.
            packages: Restrict the sync to these package names.

        Returns:
            Names of the packages that were (or would be) synced.
        """
        owned = [pkg for pkg in await self.list(source) if isinstance(pkg, str)]
        if packages is not None:
            allowed = set(packages)
            owned = [pkg for pkg in owned if pkg in allowed]

        if add and owned:
            with Timer() as t:
                await asyncio.gather(*(self.add(target, pkg) for pkg in owned))
            logger.info(
                "Synced %d packages from %s to %s",
                len(owned),
                source,
                target,
                extra=extra_context(
                    event="sync", component="users", action="sync",
                    outcome="success", count=len(owned), duration_ms=t.duration_ms(),
                ),
            )
        return owned
