"""Package document normalization.

Registry documents are untrusted: fields come and go, and the same field is a
string in one package and a list in the next. ``normalize_package`` turns any
JSON-like value into one canonical dict and never raises. The input is
deep-copied first so callers keep their raw document, and running the result
through ``normalize_package`` again yields an equal dict.
"""
from __future__ import annotations

import copy
import math
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from npmjs import semver
from npmjs.constants import Constants

# Fields copied from the latest release when the document lacks them. The
# default's type is also the only type accepted for the field.
DEFAULT_FIELDS = (
    ("bundledDependencies", list),
    ("dependencies", dict),
    ("description", str),
    ("devDependencies", dict),
    ("engines", dict),
    ("keywords", list),
    ("maintainers", list),
    ("optionalDependencies", dict),
    ("peerDependencies", dict),
    ("readme", str),
    ("readmeFilename", str),
    ("scripts", dict),
    ("time", dict),
    ("version", str),
    ("versions", dict),
)

_KEYWORD_SPLIT = re.compile(r"[\s|,]+")


def _truthy(value: Any) -> bool:
    """Registry truthiness: empty containers count as present, blanks do not."""
    if value is None or value is False:
        return False
    if isinstance(value, str):
        return value != ""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value != 0 and not (isinstance(value, float) and math.isnan(value))
    return True


def _first(*values: Any) -> Any:
    for value in values:
        if _truthy(value):
            return value
    return None


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def creation_date() -> datetime:
    return datetime.fromisoformat(Constants.CREATION_DATE)


def to_date(value: Any) -> Optional[datetime]:
    """Convert a registry timestamp to an aware ``datetime``.

    Accepts ISO-8601 strings (a trailing ``Z`` included), epoch milliseconds
    and existing ``datetime`` values. Naive timestamps are taken as UTC.
    Anything else yields None.
    """
    if isinstance(value, datetime):
        result = value
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            result = datetime.fromisoformat(text)
        except ValueError:
            return None
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    else:
        return None

    if result.tzinfo is None:
        result = result.replace(tzinfo=timezone.utc)
    return result


def _coerce_keywords(value: Any) -> Any:
    if isinstance(value, str):
        return [word for word in _KEYWORD_SPLIT.split(value) if word]
    return value


def _release_ids(data: Dict[str, Any]) -> List[str]:
    source = _as_dict(data.get("versions"))
    if not source:
        source = _as_dict(data.get("time")) or _as_dict(data.get("times"))
    return semver.sort_desc(key for key in source if isinstance(key, str))


def _latest(data: Dict[str, Any], releases: List[str]) -> Dict[str, Any]:
    tags = data.get("dist-tags")
    if not isinstance(tags, dict):
        tags = {}
        data["dist-tags"] = tags
    if "latest" not in tags:
        tags["latest"] = releases[0] if releases else None

    tag = tags["latest"]
    versions = _as_dict(data.get("versions"))
    if not isinstance(tag, str):
        return {}
    return _as_dict(versions.get(tag))


def _apply_defaults(data: Dict[str, Any], latest: Dict[str, Any]) -> None:
    for key, kind in DEFAULT_FIELDS:
        value = _first(data.get(key), latest.get(key))
        if key == "keywords":
            value = _coerce_keywords(value)
        if not isinstance(value, kind):
            value = kind()
        data[key] = value


def _resolve_name(data: Dict[str, Any], latest: Dict[str, Any]) -> str:
    for value in (data.get("name"), data.get("_id"), latest.get("name"), latest.get("_id")):
        if isinstance(value, str) and value:
            return value
    return ""


def _first_date(*values: Any) -> datetime:
    """First candidate that parses as a date, else the creation constant."""
    for value in values:
        date = to_date(value)
        if date is not None:
            return date
    return creation_date()


def _resolve_dates(data: Dict[str, Any], raw_time: Any) -> None:
    time_map = _as_dict(data.get("time"))
    generic_time = raw_time if isinstance(raw_time, (str, datetime)) else None

    data["modified"] = _first_date(data.get("modified"), data.get("mtime"), time_map.get("modified"))
    data["created"] = _first_date(data.get("created"), generic_time, time_map.get("created"))


def _normalize_time(data: Dict[str, Any]) -> None:
    data["time"] = {key: to_date(value) for key, value in _as_dict(data.get("time")).items()}


def _starred(data: Dict[str, Any], latest: Dict[str, Any]) -> List[str]:
    users = data.get("users")
    if not isinstance(users, dict) or not users:
        users = latest.get("users")
    return [name for name in _as_dict(users) if isinstance(name, str)]


def normalize_package(raw: Any) -> Dict[str, Any]:
    """Normalize a raw package document into the canonical shape.

    Args:
        raw: Parsed JSON as returned by the registry; any type is accepted.

    Returns:
        Canonical package dict with ``name``, ``versions``, ``releases``
        (valid versions, newest first), ``dist-tags`` (always holding
        ``latest``), ``latest``, ``created``/``modified`` datetimes,
        ``starred`` and every field in ``DEFAULT_FIELDS`` in its default shape.
    """
    data: Dict[str, Any] = copy.deepcopy(raw) if isinstance(raw, dict) else {}
    raw_time = data.get("time")

    releases = _release_ids(data)
    latest = _latest(data, releases)

    _apply_defaults(data, latest)

    name = _resolve_name(data, latest)
    data["_id"] = data["name"] = name
    data["releases"] = releases
    data["latest"] = latest

    if not isinstance(data.get("keywords"), list):
        data.pop("keywords", None)

    _resolve_dates(data, raw_time)
    _normalize_time(data)

    data["starred"] = _starred(data, latest)

    if not data.get("readmeFilename"):
        data.pop("readmeFilename", None)
    if not data.get("readme"):
        data.pop("readme", None)
    data.pop("_attachments", None)

    return data
