"""User profile normalization."""
from __future__ import annotations

import copy
import re
from typing import Any, Dict

_GITHUB_URL = re.compile(r"github\.com/([^/]+)/?", re.IGNORECASE)
_GITHUB_PREFIX = re.compile(r"^https?://(www\.)?github\.com/", re.IGNORECASE)
_TWITTER_URL = re.compile(r"twitter\.com/[#!@/]*([^/]+)/?", re.IGNORECASE)
_TWITTER_PREFIX = re.compile(r"^https?://twitter\.com/", re.IGNORECASE)


def _github(value: str) -> str:
    match = _GITHUB_URL.search(value)
    if match:
        return match.group(1)
    return _GITHUB_PREFIX.sub("", value)


def _twitter(value: str) -> str:
    if value.startswith("@"):
        return value[1:]
    match = _TWITTER_URL.search(value)
    if match:
        return match.group(1)
    return _TWITTER_PREFIX.sub("", value.lstrip("@"))


def normalize_user(raw: Any) -> Dict[str, Any]:
    """Normalize a registry user profile.

    ``github`` and ``twitter`` are reduced to bare account names, whatever
    mix of URLs and ``@handles`` people typed into their profile. Values of
    the wrong type are dropped. Non-dict input yields an empty dict.
    """
    if not isinstance(raw, dict):
        return {}
    data = copy.deepcopy(raw)

    # Only a bare account name survives.
    if "github" in data:
        if isinstance(data["github"], str):
            data["github"] = _github(data["github"])
        else:
            del data["github"]

    if "twitter" in data:
        if isinstance(data["twitter"], str):
            data["twitter"] = _twitter(data["twitter"])
        else:
            del data["twitter"]

    return data
