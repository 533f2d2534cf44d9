"""Normalization of raw registry documents into canonical records."""

from .packages import normalize_package, to_date, creation_date
from .users import normalize_user

__all__ = [
    "normalize_package",
    "normalize_user",
    "to_date",
    "creation_date",
]
