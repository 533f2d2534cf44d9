"""Registry client: request execution with mirror failover and backoff."""
from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Dict, List, Optional

import aiohttp

from npmjs.common.http_client import HttpResponse, HttpTransport, merge_headers
from npmjs.common.logging_utils import extra_context, is_debug_enabled, safe_url
from npmjs.config import RegistryConfig
from npmjs.endpoints.downloads import Downloads
from npmjs.endpoints.packages import Packages
from npmjs.endpoints.users import Users
from npmjs.errors import RequestFailedError, ResponseParseError
from npmjs.registry.backoff import Backoff
from npmjs.registry.mirrors import MirrorPool, resolve
from npmjs.registry.views import view_path
from npmjs.releases import LicenseResolver

logger = logging.getLogger(__name__)


class Registry:
    """Asynchronous npm registry client.

    Each ``send`` builds its own mirror pool and backoff state from the
    read-only configuration, so concurrent requests on one client never
    share retry state.

    Example:
        async with Registry() as registry:
            pkg = await registry.packages.get("express")
    """

    def __init__(
        self,
        config: Optional[RegistryConfig] = None,
        *,
        transport: Optional[Any] = None,
        license_resolver: Optional[LicenseResolver] = None,
        rng: Optional[Any] = None,
    ):
        """Initialize the client.

        Args:
            config: Client configuration; defaults to ``RegistryConfig()``.
            transport: Object with an async ``request(method, url, headers=, json=)``
                returning ``HttpResponse``. Defaults to an aiohttp transport.
            license_resolver: Replacement for ``npmjs.licenses.resolve_licenses``.
            rng: ``random.Random`` used for backoff jitter.
        """
        self.config = config or RegistryConfig()
        self.transport = transport or HttpTransport(timeout=self.config.timeout)
        self.license_resolver = license_resolver
        self._rng = rng
        self._authorization = self.config.authorization_header()

        self.packages = Packages(self)
        self.users = Users(self)
        self.downloads = Downloads(self)

    @property
    def registry(self) -> str:
        return self.config.registry

    @property
    def mirrors(self) -> List[str]:
        return list(MirrorPool.from_registry(self.config.registry, self.config.mirrors))

    def default_headers(self) -> Dict[str, str]:
        headers = {
            "User-Agent": self.config.user_agent,
            "Accept": "application/json",
        }
        if self._authorization:
            headers["Authorization"] = self._authorization
        return headers

    def _pool(self, method: str, api: Optional[str]) -> MirrorPool:
        if api:
            return MirrorPool([api])
        if method.upper() != "GET":
            return MirrorPool([self.config.registry])
        return MirrorPool.from_registry(self.config.registry, self.config.mirrors)

    def _backoff(self) -> Backoff:
        return Backoff(
            retries=self.config.retries,
            mindelay=self.config.mindelay,
            maxdelay=self.config.maxdelay,
            factor=self.config.factor,
            rng=self._rng,
        )

    async def send(
        self,
        path: str,
        *,
        method: str = "GET",
        json: Any = None,  # pylint: disable=redefined-outer-name
        headers: Optional[Dict[str, str]] = None,
        api: Optional[str] = None,
    ) -> Any:
        """Request ``path`` and return the parsed JSON body.

        Transport errors and non-200 responses move on to the next mirror.
        When every mirror failed, the request sleeps according to the backoff
        policy and starts again from the full mirror list.

        Args:
            path: Path relative to the registry root.
            method: HTTP method.
            json: JSON body for writes.
            headers: Extra headers; they win over the defaults.
            api: Base URL to use instead of the registry and its mirrors.

        Raises:
            RequestFailedError: Retries are exhausted.
            ResponseParseError: A 200 response is not valid JSON.
        """
        pool = self._pool(method, api)
        backoff = self._backoff()
        request_headers = merge_headers(headers, self.default_headers())
        attempts = 0
        last_url: Optional[str] = None
        last_status: Optional[int] = None
        last_reason: Optional[str] = None

        while True:
            if pool.exhausted:
                if await backoff.wait():
                    pool.reset()
                    continue
                logger.error(
                    "Request failed after %d attempts: %s",
                    attempts,
                    last_reason,
                    extra=extra_context(
                        event="http_error",
                        component="registry",
                        action=method,
                        outcome="retries_exhausted",
                        target=safe_url(last_url or path),
                        status_code=last_status,
                        attempt=attempts,
                    ),
                )
                raise RequestFailedError(
                    f"Request for {path} failed after {attempts} attempts: {last_reason}",
                    url=last_url,
                    status_code=last_status,
                    attempts=attempts,
                    reason=last_reason,
                )

            url = resolve(pool.pull(), path)
            last_url = url
            attempts += 1
            try:
                response: HttpResponse = await self.transport.request(
                    method, url, headers=request_headers, json=json
                )
            except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
                last_status = None
                last_reason = f"{type(exc).__name__}: {exc}"
                self._log_retryable(method, url, last_reason, attempts)
                continue

            if response is None:
                last_status = None
                last_reason = "no response received"
                self._log_retryable(method, url, last_reason, attempts)
                continue

            if response.status != 200:
                last_status = response.status
                last_reason = f"Received an invalid status code {response.status}"
                self._log_retryable(method, url, last_reason, attempts, response.status)
                continue

            return self._parse(response.body, url)

    def _log_retryable(
        self,
        method: str,
        url: str,
        reason: str,
        attempt: int,
        status_code: Optional[int] = None,
    ) -> None:
        if is_debug_enabled(logger):
            logger.debug(
                "Retryable failure; trying next mirror",
                extra=extra_context(
                    event="http_response",
                    component="registry",
                    action=method,
                    outcome="retryable",
                    target=safe_url(url),
                    status_code=status_code,
                    attempt=attempt,
                    reason=reason,
                ),
            )

    def _parse(self, body: Any, url: str) -> Any:
        if not isinstance(body, (str, bytes, bytearray)):
            return body
        try:
            return json.loads(body)
        except ValueError as exc:
            logger.error(
                "Failed to parse the JSON response",
                extra=extra_context(
                    event="parse",
                    component="registry",
                    action="parse_json",
                    outcome="json_decode_error",
                    target=safe_url(url),
                    status_code=200,
                ),
            )
            raise ResponseParseError(
                f"Failed to parse the JSON response: {exc}", url=url, status_code=200
            ) from exc

    async def view(self, name: str, *, key: Any = None, **query: Any) -> List[Dict[str, Any]]:
        """Query a CouchDB view and return its rows.

        See ``npmjs.registry.views.view_path`` for how ``key`` and ``query``
        are encoded.
        """
        data = await self.send(view_path(name, key, **query))
        rows = data.get("rows") if isinstance(data, dict) else None
        return rows if isinstance(rows, list) else []

    async def start(self) -> None:
        if hasattr(self.transport, "start"):
            await self.transport.start()

    async def close(self) -> None:
        if hasattr(self.transport, "stop"):
            await self.transport.stop()

    async def __aenter__(self) -> "Registry":
        """Async context manager entry."""
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.close()
