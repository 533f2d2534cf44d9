"""Semantic version helpers backed by ``semantic_version``."""
from __future__ import annotations

import re
from typing import Iterable, List, Optional

import semantic_version

_LOOSE_PREFIX = re.compile(r"^\s*[=v]*\s*")


def parse(version: object, loose: bool = True) -> Optional[semantic_version.Version]:
    """Parse ``version`` into a ``semantic_version.Version``.

    With ``loose`` a leading ``v``/``=`` and surrounding whitespace are
    tolerated, as npm does. Non-strings and invalid versions yield None.
    """
    if not isinstance(version, str):
        return None
    candidate = _LOOSE_PREFIX.sub("", version).strip() if loose else version
    try:
        return semantic_version.Version(candidate)
    except ValueError:
        return None


def valid(version: object, loose: bool = True) -> bool:
    return parse(version, loose) is not None


def sort_desc(versions: Iterable[str], loose: bool = True) -> List[str]:
    """Keep valid versions only, newest first.

    The original strings are returned, ordered by semantic comparison rather
    than lexically (``10.0.0`` sorts above ``9.0.0``).
    """
    parsed = []
    for version in versions:
        ver = parse(version, loose)
        if ver is not None:
            parsed.append((ver, version))
    parsed.sort(key=lambda item: item[0], reverse=True)
    return [version for _, version in parsed]


def max_satisfying(versions: Iterable[str], spec: str) -> Optional[str]:
    """Return the highest version in ``versions`` matching the npm range ``spec``.

    Invalid ranges and invalid versions never raise; they simply do not match.
    """
    try:
        npm_spec = semantic_version.NpmSpec(spec.strip() or "*")
    except ValueError:
        return None

    best: Optional[semantic_version.Version] = None
    best_raw: Optional[str] = None
    for version in versions:
        ver = parse(version)
        if ver is None or not npm_spec.match(ver):
            continue
        if best is None or ver > best:
            best, best_raw = ver, version
    return best_raw
