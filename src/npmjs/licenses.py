"""Default license resolver.

Reads the ``license``/``licenses`` fields of a package or release document.
The registry has carried several shapes over time: a plain SPDX string, a
``{"type": ..., "url": ...}`` object, or a list of either. Any callable with
the same contract (mapping in, list of identifiers out) can replace this one.
"""
from __future__ import annotations

from typing import Any, List, Mapping


def _license_name(entry: Any) -> str:
    if isinstance(entry, str):
        return entry.strip()
    if isinstance(entry, Mapping):
        for key in ("type", "name"):
            value = entry.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
    return ""


def resolve_licenses(document: Mapping[str, Any]) -> List[str]:
    """Return the distinct license identifiers declared by ``document``."""
    if not isinstance(document, Mapping):
        return []

    entries: List[Any] = []
    for field in ("license", "licenses"):
        value = document.get(field)
        if isinstance(value, list):
            entries.extend(value)
        elif value is not None:
            entries.append(value)

    found: List[str] = []
    for entry in entries:
        name = _license_name(entry)
        if name and name not in found:
            found.append(name)
    return found
