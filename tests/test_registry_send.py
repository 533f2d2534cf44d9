"""Tests for request execution: mirror failover, backoff and response handling."""

import asyncio
from unittest.mock import AsyncMock, patch

import aiohttp
import pytest

from npmjs import Registry, RegistryConfig
from npmjs.errors import RequestFailedError, ResponseParseError


def _run(coro):
    return asyncio.run(coro)


class TestMirrorFailover:
    """Tests for rotating through mirrors before any backoff."""

    def test_bad_status_rotates_to_working_mirror(self, transport, registry_factory):
        """A primary answering 500 is skipped; the mirror succeeds without backoff."""
        transport.route("https://primary.test/", (500, "oops"))
        transport.route("https://mirror.test/", (200, {"name": "demo"}))
        registry = registry_factory()

        with patch("npmjs.registry.backoff.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            data = _run(registry.send("demo"))

        assert data == {"name": "demo"}
        assert transport.urls() == ["https://primary.test/demo", "https://mirror.test/demo"]
        mock_sleep.assert_not_awaited()

    def test_transport_error_rotates_to_working_mirror(self, transport, registry_factory):
        """Connection failures are retried on the next mirror without surfacing."""
        transport.route("https://primary.test/", aiohttp.ClientConnectionError("refused"))
        transport.route("https://mirror.test/", (200, {"ok": True}))
        registry = registry_factory()

        assert _run(registry.send("demo")) == {"ok": True}
        assert len(transport.calls) == 2

    def test_timeout_is_retryable(self, transport, registry_factory):
        transport.route("https://primary.test/", asyncio.TimeoutError())
        transport.route("https://mirror.test/", (200, {"ok": True}))
        registry = registry_factory()

        assert _run(registry.send("demo")) == {"ok": True}

    def test_duplicate_mirrors_are_tried_once(self, transport, registry_factory):
        """The primary listed again among the mirrors is not requested twice per cycle."""
        transport.route("https://primary.test/", (503, ""))
        transport.route("https://mirror.test/", (200, {"ok": True}))
        registry = registry_factory(
            mirrors=["https://primary.test/", "", "https://mirror.test/", "https://mirror.test/"]
        )

        _run(registry.send("demo"))

        assert transport.urls() == ["https://primary.test/demo", "https://mirror.test/demo"]


class TestBackoffOnExhaustion:
    """Tests for backoff after every mirror failed."""

    def test_all_mirrors_failing_backs_off_exactly_retries_times(self, transport, registry_factory):
        """retries=3 yields three sleeps, four full rounds, then a terminal error."""
        transport.route("https://primary.test/", aiohttp.ClientConnectionError("down"))
        transport.route("https://mirror.test/", aiohttp.ClientConnectionError("down"))
        registry = registry_factory(retries=3)

        with patch("npmjs.registry.backoff.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            with pytest.raises(RequestFailedError) as excinfo:
                _run(registry.send("demo"))

        assert mock_sleep.await_count == 3
        assert len(transport.calls) == 8
        assert excinfo.value.attempts == 8
        assert excinfo.value.url == "https://mirror.test/demo"
        assert "ClientConnectionError" in excinfo.value.reason

    def test_backoff_resumes_from_full_mirror_list(self, transport, registry_factory):
        """After sleeping, the primary is tried again before the mirror."""
        transport.route("https://primary.test/", (500, ""), (500, ""), (200, {"round": 2}))
        transport.route("https://mirror.test/", (500, ""))
        registry = registry_factory()

        with patch("npmjs.registry.backoff.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            data = _run(registry.send("demo"))

        assert data == {"round": 2}
        assert mock_sleep.await_count == 2
        assert transport.urls() == [
            "https://primary.test/demo",
            "https://mirror.test/demo",
            "https://primary.test/demo",
            "https://mirror.test/demo",
            "https://primary.test/demo",
        ]

    def test_terminal_error_carries_status(self, transport, registry_factory):
        """The last HTTP status is available on the terminal error."""
        transport.route("https://primary.test/", (404, ""))
        transport.route("https://mirror.test/", (404, ""))
        registry = registry_factory(retries=0)

        with pytest.raises(RequestFailedError) as excinfo:
            _run(registry.send("missing"))

        assert excinfo.value.status_code == 404
        assert excinfo.value.attempts == 2

    def test_none_response_is_retryable(self, registry_factory):
        class _NoResponse:
            async def request(self, method, url, *, headers=None, json=None):
                return None

        registry = Registry(
            RegistryConfig(registry="https://primary.test/", mirrors=[], retries=0),
            transport=_NoResponse(),
        )

        with pytest.raises(RequestFailedError) as excinfo:
            _run(registry.send("demo"))
        assert excinfo.value.reason == "no response received"


class TestResponseHandling:
    """Tests for body parsing."""

    def test_malformed_json_is_terminal(self, transport, registry_factory):
        """A 200 with a broken body fails immediately, without trying mirrors."""
        transport.route("https://primary.test/", (200, "{not json"))
        transport.route("https://mirror.test/", (200, {"ok": True}))
        registry = registry_factory()

        with pytest.raises(ResponseParseError) as excinfo:
            _run(registry.send("demo"))

        assert len(transport.calls) == 1
        assert excinfo.value.url == "https://primary.test/demo"
        assert excinfo.value.status_code == 200

    def test_structured_body_passes_through(self, transport, registry_factory):
        """Bodies that are already structured are returned as-is."""
        payload = {"rows": [1, 2]}
        transport.route("https://primary.test/", (200, payload), structured=True)
        registry = registry_factory()

        assert _run(registry.send("demo")) is payload


class TestRequestHeaders:
    """Tests for default, caller and auth headers."""

    def test_default_headers(self, transport, registry_factory):
        transport.route("https://primary.test/", (200, {}))
        registry = registry_factory(user_agent="tester/1.0")

        _run(registry.send("demo"))

        headers = transport.calls[0].headers
        assert headers["User-Agent"] == "tester/1.0"
        assert headers["Accept"] == "application/json"
        assert "Authorization" not in headers

    def test_caller_headers_win_case_insensitively(self, transport, registry_factory):
        """A lowercase caller header is not overwritten by the default."""
        transport.route("https://primary.test/", (200, {}))
        registry = registry_factory()

        _run(registry.send("demo", headers={"accept": "application/vnd.npm.install-v1+json"}))

        headers = transport.calls[0].headers
        assert headers["accept"] == "application/vnd.npm.install-v1+json"
        assert "Accept" not in headers

    def test_basic_auth_computed_once(self, transport, registry_factory):
        transport.route("https://primary.test/", (200, {}))
        registry = registry_factory(user="bob", password="secret")

        with patch.object(RegistryConfig, "authorization_header") as mock_auth:
            _run(registry.send("a"))
            _run(registry.send("b"))
            mock_auth.assert_not_called()

        assert transport.calls[0].headers["Authorization"] == "Basic Ym9iOnNlY3JldA=="
        assert transport.calls[1].headers["Authorization"] == "Basic Ym9iOnNlY3JldA=="

    def test_token_authorization(self, transport, registry_factory):
        transport.route("https://primary.test/", (200, {}))
        registry = registry_factory(authorization="abc123")

        _run(registry.send("demo"))

        assert transport.calls[0].headers["Authorization"] == "Bearer abc123"


class TestRequestRouting:
    """Tests for which hosts a request may use."""

    def test_writes_use_primary_only(self, transport, registry_factory):
        """PUT requests never fall back to read-only mirrors."""
        transport.route("https://primary.test/", (500, ""))
        transport.route("https://mirror.test/", (200, {"ok": True}))
        registry = registry_factory(retries=0)

        with pytest.raises(RequestFailedError):
            _run(registry.send("demo/-rev/1-a", method="PUT", json={"x": 1}))

        assert transport.urls() == ["https://primary.test/demo/-rev/1-a"]
        assert transport.calls[0].json == {"x": 1}

    def test_api_override_skips_mirrors(self, transport, registry_factory):
        transport.route("https://stats.test/", (200, {"downloads": 1}))
        registry = registry_factory()

        _run(registry.send("downloads/point/last-day", api="https://stats.test/"))

        assert transport.urls() == ["https://stats.test/downloads/point/last-day"]

    def test_concurrent_requests_keep_separate_state(self, transport, registry_factory):
        """Two concurrent sends each walk the full mirror list."""
        transport.route("https://primary.test/", (500, ""))
        transport.route("https://mirror.test/", (200, {"ok": True}))
        registry = registry_factory()

        async def _both():
            return await asyncio.gather(registry.send("a"), registry.send("b"))

        assert _run(_both()) == [{"ok": True}, {"ok": True}]
        assert sorted(transport.urls()) == [
            "https://mirror.test/a",
            "https://mirror.test/b",
            "https://primary.test/a",
            "https://primary.test/b",
        ]

    def test_mirrors_property_is_deduplicated(self, registry_factory):
        registry = registry_factory(mirrors=["https://primary.test/", "https://mirror.test/"])
        assert registry.mirrors == ["https://primary.test/", "https://mirror.test/"]


class TestViews:
    """Tests for CouchDB view queries."""

    def test_view_returns_rows(self, transport, registry_factory):
        transport.route("https://primary.test/-/_view/byKeyword", (200, {"rows": [{"key": ["x", "pkg"]}]}))
        registry = registry_factory()

        rows = _run(registry.view("byKeyword", key="x"))

        assert rows == [{"key": ["x", "pkg"]}]
        url = transport.urls()[0]
        assert "startkey=%5B%22x%22%5D" in url
        assert "endkey=%5B%22x%22%2C%7B%7D%5D" in url
        assert "group_level=3" in url

    def test_view_without_rows(self, transport, registry_factory):
        transport.route("https://primary.test/", (200, {"error": "not_found"}))
        registry = registry_factory()

        assert _run(registry.view("byKeyword", key="x")) == []


class TestLifecycle:
    def test_context_manager_starts_and_stops_transport(self, transport, registry_factory):
        registry = registry_factory()

        async def _use():
            async with registry as client:
                assert client is registry
                assert transport.started is True

        _run(_use())
        assert transport.stopped is True
