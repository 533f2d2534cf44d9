"""Package endpoints: documents, releases and CouchDB package views."""
from __future__ import annotations

import logging
import urllib.parse
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from npmjs import semver
from npmjs.common.logging_utils import extra_context, is_debug_enabled
from npmjs.constants import RegistryViews
from npmjs.errors import LicenseResolutionError
from npmjs.licenses import resolve_licenses
from npmjs.normalize import normalize_package
from npmjs.registry.views import simple, third
from npmjs.releases import ReleaseRecord, materialize_releases

if TYPE_CHECKING:
    from npmjs.registry.client import Registry

logger = logging.getLogger(__name__)


def encode_name(name: str) -> str:
    """Encode a package name for use as a registry path.

    Scoped names keep their ``@`` but the slash is escaped, as the registry
    expects (``@scope/pkg`` -> ``@scope%2fpkg``).
    """
    if name.startswith("@"):
        return "@" + urllib.parse.quote(name[1:], safe="").replace("%2F", "%2f")
    return urllib.parse.quote(name, safe="")


class Packages:
    """Package information endpoints."""

    def __init__(self, api: "Registry"):
        self.api = api

    async def get(self, name: str) -> Dict[str, Any]:
        """Fetch and normalize the package document for ``name``."""
        data = await self.api.send(encode_name(name))
        return normalize_package(data)

    async def depended(self, name: str) -> List[Any]:
        """Packages that depend on ``name``."""
        rows = await self.api.view(RegistryViews.DEPENDED_UPON.value, key=name)
        return [simple(row) for row in rows]

    async def starred(self, name: str) -> List[Any]:
        """Users who starred ``name``."""
        rows = await self.api.view(RegistryViews.BROWSE_STAR_PACKAGE.value, key=name)
        return [third(row) for row in rows]

    async def keyword(self, name: str) -> List[Any]:
        """Packages tagged with the keyword ``name``."""
        rows = await self.api.view(RegistryViews.BY_KEYWORD.value, key=name)
        return [simple(row) for row in rows]

    async def releases(self, name: str) -> Dict[str, ReleaseRecord]:
        """All releases of ``name`` keyed by dist-tag or version."""
        data = await self.get(name)
        return materialize_releases(data, self.api.license_resolver)

    async def release(self, name: str, spec: str) -> Optional[ReleaseRecord]:
        """Return the release for an exact version/tag, else the best range match."""
        releases = await self.releases(name)
        if spec in releases:
            if is_debug_enabled(logger):
                logger.debug(
                    "Found a direct range (%s) match for %s",
                    spec,
                    name,
                    extra=extra_context(
                        event="decision", component="packages", action="release",
                        outcome="direct_match", target=name,
                    ),
                )
            return releases[spec]

        version = semver.max_satisfying(releases.keys(), spec)
        if is_debug_enabled(logger):
            logger.debug(
                "Max satisfying version for %s is %s",
                name,
                version,
                extra=extra_context(
                    event="decision", component="packages", action="release",
                    outcome="range_match" if version else "no_match", target=name,
                ),
            )
        if version is None:
            return None
        return releases[version]

    async def details(self, name: str) -> Dict[str, Any]:
        """Package document plus its resolved ``licenses`` list.

        Raises:
            LicenseResolutionError: When the license resolver fails.
        """
        data = await self.get(name)
        resolver = self.api.license_resolver or resolve_licenses
        try:
            data["licenses"] = resolver(data)
        except Exception as exc:  # pylint: disable=broad-exception-caught
            raise LicenseResolutionError(
                f"License resolution failed for {name}: {exc}"
            ) from exc
        return data
