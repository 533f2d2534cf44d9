"""Thin asynchronous HTTP transport over aiohttp.

The transport only moves bytes: it merges default headers, issues one request
and hands back status, headers and body. Retry, mirror rotation and JSON
handling belong to the request executor in ``npmjs.registry.client``.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import aiohttp

from npmjs.common.logging_utils import extra_context, is_debug_enabled, safe_url, Timer

logger = logging.getLogger(__name__)


@dataclass
class HttpResponse:
    """Response as seen by the request executor.

    ``body`` is normally the raw bytes; fake transports may hand back an
    already structured value, which the executor passes through untouched.
    """

    status: int
    url: str
    body: Any = None
    headers: Dict[str, str] = field(default_factory=dict)


def merge_headers(
    headers: Optional[Dict[str, str]], defaults: Dict[str, str]
) -> Dict[str, str]:
    """Return ``headers`` with ``defaults`` added where the caller set none.

    Header names are compared case-insensitively so a caller supplied
    ``accept`` is never overwritten by the default ``Accept``.
    """
    merged: Dict[str, str] = dict(headers or {})
    present = {key.lower() for key in merged}
    for key, value in defaults.items():
        if value is None or key.lower() in present:
            continue
        merged[key] = value
        present.add(key.lower())
    return merged


class HttpTransport:
    """aiohttp session wrapper used by ``Registry``."""

    def __init__(self, timeout: Optional[float] = None):
        """Initialize the transport.

        Args:
            timeout: Total request timeout in seconds. ``None`` keeps the
                aiohttp default.
        """
        self._timeout = (
            aiohttp.ClientTimeout(total=timeout) if timeout is not None else None
        )
        self._session: Optional[aiohttp.ClientSession] = None

    @property
    def started(self) -> bool:
        """Whether an HTTP session is currently open."""
        return self._session is not None

    async def start(self) -> None:
        """Start the HTTP session."""
        if self._session is None:
            kwargs: Dict[str, Any] = {}
            if self._timeout is not None:
                kwargs["timeout"] = self._timeout
            self._session = aiohttp.ClientSession(**kwargs)

    async def stop(self) -> None:
        """Stop the HTTP session."""
        if self._session:
            await self._session.close()
            self._session = None

    async def request(
        self,
        method: str,
        url: str,
        *,
        headers: Optional[Dict[str, str]] = None,
        json: Any = None,
    ) -> HttpResponse:
        """Issue one request and read the full body.

        Raises:
            aiohttp.ClientError: On connection and protocol failures.
            asyncio.TimeoutError: When the configured timeout elapses.
        """
        if self._session is None:
            await self.start()
        assert self._session is not None

        safe_target = safe_url(url)
        with Timer() as t:
            if is_debug_enabled(logger):
                logger.debug(
                    "HTTP request",
                    extra=extra_context(
                        event="http_request",
                        component="http_client",
                        action=method,
                        target=safe_target,
                    ),
                )
            async with self._session.request(
                method, url, headers=headers, json=json
            ) as response:
                body = await response.read()
                result = HttpResponse(
                    status=response.status,
                    url=url,
                    body=body,
                    headers=dict(response.headers),
                )

        if is_debug_enabled(logger):
            logger.debug(
                "HTTP response",
                extra=extra_context(
                    event="http_response",
                    component="http_client",
                    action=method,
                    status_code=result.status,
                    duration_ms=t.duration_ms(),
                    target=safe_target,
                ),
            )
        return result

    async def __aenter__(self) -> "HttpTransport":
        """Async context manager entry."""
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.stop()
