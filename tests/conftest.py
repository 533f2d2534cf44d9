"""Shared fixtures: an in-memory transport standing in for aiohttp."""

import json
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import aiohttp
import pytest

from npmjs.common.http_client import HttpResponse


@dataclass
class RecordedCall:
    method: str
    url: str
    headers: Dict[str, str]
    json: Any


class FakeTransport:
    """Route requests by URL prefix to canned outcomes.

    An outcome is ``(status, body)`` or an exception instance. Lists of
    outcomes are consumed in order; the last one repeats. Dict/list bodies
    are JSON-encoded unless ``structured`` is set.
    """

    def __init__(self):
        self.routes: Dict[str, List[Any]] = {}
        self.calls: List[RecordedCall] = []
        self.started = False
        self.stopped = False

    def route(self, prefix: str, *outcomes: Any, structured: bool = False) -> "FakeTransport":
        prepared = []
        for outcome in outcomes:
            if isinstance(outcome, tuple):
                status, body = outcome
                if isinstance(body, (dict, list)) and not structured:
                    body = json.dumps(body)
                outcome = (status, body)
            prepared.append(outcome)
        self.routes[prefix] = prepared
        return self

    async def start(self):
        self.started = True

    async def stop(self):
        self.stopped = True

    async def request(self, method, url, *, headers=None, json=None):  # pylint: disable=redefined-outer-name
        self.calls.append(RecordedCall(method, url, dict(headers or {}), json))
        for prefix in sorted(self.routes, key=len, reverse=True):
            if url.startswith(prefix):
                outcomes = self.routes[prefix]
                outcome = outcomes.pop(0) if len(outcomes) > 1 else outcomes[0]
                if isinstance(outcome, BaseException):
                    raise outcome
                status, body = outcome
                return HttpResponse(status=status, url=url, body=body)
        raise aiohttp.ClientConnectionError(f"no route for {url}")

    def urls(self) -> List[str]:
        return [call.url for call in self.calls]


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def sample_document() -> Dict[str, Any]:
    """A registry document shaped like a real (trimmed) packument."""
    return {
        "_id": "demo",
        "_rev": "12-abcdef",
        "name": "demo",
        "description": "demo package",
        "dist-tags": {"latest": "1.1.0", "beta": "2.0.0-beta.1"},
        "versions": {
            "1.0.0": {
                "name": "demo",
                "version": "1.0.0",
                "license": "MIT",
                "dist": {"shasum": "aaa"},
                "dependencies": {"left-pad": "^1.0.0"},
            },
            "1.1.0": {
                "name": "demo",
                "version": "1.1.0",
                "license": "MIT",
                "dist": {"shasum": "bbb"},
                "dependencies": {"left-pad": "^1.1.0"},
                "keywords": ["demo", "test"],
                "users": {"alice": True},
            },
            "2.0.0-beta.1": {
                "name": "demo",
                "version": "2.0.0-beta.1",
                "license": {"type": "ISC"},
                "dist": {"shasum": "ccc"},
            },
        },
        "time": {
            "created": "2019-05-01T10:00:00.000Z",
            "modified": "2021-02-01T10:00:00.000Z",
            "1.0.0": "2019-05-01T10:00:00.000Z",
            "1.1.0": "2020-06-01T10:00:00.000Z",
            "2.0.0-beta.1": "2021-02-01T10:00:00.000Z",
        },
        "users": {"bob": True, "carol": True},
        "maintainers": [{"name": "alice", "email": "alice@example.com"}],
        "readme": "",
        "_attachments": {},
    }


def make_registry(transport: FakeTransport, **overrides: Any):
    """Registry wired to ``transport`` with two hosts and fast backoff."""
    from npmjs import Registry, RegistryConfig  # pylint: disable=import-outside-toplevel

    settings: Dict[str, Any] = {
        "registry": "https://primary.test/",
        "mirrors": ["https://mirror.test/"],
        "statservice": "https://stats.test/",
        "mindelay": 1,
        "maxdelay": 5,
    }
    settings.update(overrides)
    license_resolver: Optional[Any] = settings.pop("license_resolver", None)
    return Registry(RegistryConfig(**settings), transport=transport, license_resolver=license_resolver)


@pytest.fixture
def registry_factory(transport):
    def _factory(**overrides):
        return make_registry(transport, **overrides)
    return _factory
