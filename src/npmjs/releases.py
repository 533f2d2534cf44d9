"""Flatten a canonical package into one record per version and dist-tag."""
from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, Mapping, Optional

from npmjs.common.logging_utils import extra_context, is_debug_enabled
from npmjs.constants import Constants
from npmjs.errors import LicenseResolutionError
from npmjs.licenses import resolve_licenses
from npmjs.normalize import creation_date, to_date

logger = logging.getLogger(__name__)

LicenseResolver = Callable[[Mapping[str, Any]], Any]


@dataclass
class ReleaseRecord:
    """One published release, addressed by version or by dist-tag.

    ``tag`` is empty for a plain version record.
    """

    name: str = ""
    version: str = Constants.DEFAULT_VERSION
    tag: str = ""
    date: datetime = field(default_factory=creation_date)
    shasum: str = ""
    dependencies: Dict[str, Any] = field(default_factory=dict)
    dev_dependencies: Dict[str, Any] = field(default_factory=dict)
    peer_dependencies: Dict[str, Any] = field(default_factory=dict)
    license: Any = None

    @property
    def key(self) -> str:
        return self.tag or self.version

    def to_dict(self) -> Dict[str, Any]:
        """Render with the registry's field names."""
        return {
            "tag": self.tag,
            "name": self.name,
            "version": self.version,
            "date": self.date,
            "shasum": self.shasum,
            "dependencies": self.dependencies,
            "devDependencies": self.dev_dependencies,
            "peerDependencies": self.peer_dependencies,
            "license": self.license,
        }


def _mapping(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _string(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _record(
    release: Dict[str, Any],
    version_key: str,
    date: Any,
    tag: str,
    license_resolver: LicenseResolver,
) -> ReleaseRecord:
    """Build a record from a private copy of the release object."""
    release = copy.deepcopy(release)
    try:
        license_info = license_resolver(release)
    except Exception as exc:  # pylint: disable=broad-exception-caught
        raise LicenseResolutionError(
            f"License resolution failed for {version_key}: {exc}"
        ) from exc

    return ReleaseRecord(
        name=_string(release.get("name")),
        version=_string(release.get("version")) or version_key or Constants.DEFAULT_VERSION,
        tag=tag,
        date=to_date(date) or creation_date(),
        shasum=_string(_mapping(release.get("dist")).get("shasum")),
        dependencies=_mapping(release.get("dependencies")),
        dev_dependencies=_mapping(release.get("devDependencies")),
        peer_dependencies=_mapping(release.get("peerDependencies")),
        license=license_info,
    )


def materialize_releases(
    package: Mapping[str, Any],
    license_resolver: Optional[LicenseResolver] = None,
) -> Dict[str, ReleaseRecord]:
    """Derive ``{tag-or-version: ReleaseRecord}`` from a canonical package.

    Plain versions are inserted first and dist-tag aliases afterwards, so a
    tag that collides with a version string wins. Every record is built from
    its own deep copy; changing the ``latest`` record never touches the
    record of the version it points at.

    Raises:
        LicenseResolutionError: When the license resolver fails for any release.
    """
    resolver = license_resolver or resolve_licenses
    versions = _mapping(package.get("versions"))
    times = _mapping(package.get("time"))
    result: Dict[str, ReleaseRecord] = {}

    for version_key, release in versions.items():
        record = _record(_mapping(release), version_key, times.get(version_key), "", resolver)
        result[record.key] = record

    for tag, version_key in _mapping(package.get("dist-tags")).items():
        if not isinstance(version_key, str) or not isinstance(versions.get(version_key), dict):
            if is_debug_enabled(logger):
                logger.debug(
                    "Skipping dist-tag without a matching version",
                    extra=extra_context(
                        event="decision",
                        component="releases",
                        action="materialize",
                        outcome="dangling_tag",
                        target=f"{tag}->{version_key}",
                    ),
                )
            continue
        record = _record(versions[version_key], version_key, times.get(version_key), tag, resolver)
        result[record.key] = record

    return result
