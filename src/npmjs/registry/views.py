"""CouchDB view query helpers."""
from __future__ import annotations

import json
import urllib.parse
from typing import Any, Dict

from npmjs.constants import Constants


def view_path(name: str, key: Any = None, **query: Any) -> str:
    """Build the path for a view query.

    A ``key`` expands to ``startkey=[key]``/``endkey=[key, {}]`` grouped at
    ``Constants.VIEW_GROUP_LEVEL`` so views keyed by arrays match on their
    first element. Every parameter value is JSON-encoded, as CouchDB expects.
    """
    params: Dict[str, Any] = {}
    if key is not None:
        params["startkey"] = [key]
        params["endkey"] = [key, {}]
        params["group_level"] = Constants.VIEW_GROUP_LEVEL
    params.update(query)

    path = f"{Constants.VIEW_PATH_PREFIX}{name}"
    if not params:
        return path
    encoded = urllib.parse.urlencode(
        {param: json.dumps(value, separators=(",", ":")) for param, value in params.items()}
    )
    return f"{path}?{encoded}"


def _key_at(row: Any, index: int) -> Any:
    key = row.get("key") if isinstance(row, dict) else None
    if isinstance(key, list) and len(key) > index:
        return key[index]
    return None


def simple(row: Any) -> Any:
    """Map a view row to the value following the queried key."""
    return _key_at(row, 1)


def third(row: Any) -> Any:
    """Map a view row to its third key element.

    ``browseStarPackage`` keys its rows ``[package, description, user]``.
    """
    return _key_at(row, 2)
