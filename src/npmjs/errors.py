"""Error taxonomy for registry requests.

Every terminal failure raised by the client derives from ``RegistryError`` and
carries the URL that was attempted last plus the HTTP status when one was
received. Normalization never raises, so there is no error type for it.
"""
from __future__ import annotations

from typing import Optional


class RegistryError(Exception):
    """Base class for all errors raised by the registry client."""

    def __init__(
        self,
        message: str,
        *,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class RequestFailedError(RegistryError):
    """Every mirror failed and the backoff ceiling was reached."""

    def __init__(
        self,
        message: str,
        *,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
        attempts: int = 0,
        reason: Optional[str] = None,
    ):
        super().__init__(message, url=url, status_code=status_code)
        self.attempts = attempts
        self.reason = reason


class ResponseParseError(RegistryError):
    """A 200 response carried a body that is not valid JSON."""


class LicenseResolutionError(RegistryError):
    """The license collaborator failed for a release or package."""
