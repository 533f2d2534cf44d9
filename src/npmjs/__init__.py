"""Asynchronous npm registry client.

Requests rotate through the configured registry mirrors and fall back to
randomized exponential backoff; responses are normalized into stable package,
release and user records.
"""
import logging

from .config import RegistryConfig
from .errors import (
    LicenseResolutionError,
    RegistryError,
    RequestFailedError,
    ResponseParseError,
)
from .normalize import normalize_package, normalize_user
from .registry.client import Registry
from .releases import ReleaseRecord, materialize_releases

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "Registry",
    "RegistryConfig",
    "RegistryError",
    "RequestFailedError",
    "ResponseParseError",
    "LicenseResolutionError",
    "ReleaseRecord",
    "materialize_releases",
    "normalize_package",
    "normalize_user",
]
