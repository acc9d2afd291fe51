"""Shared fixtures for jules-wrapped tests."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import httpx
import pytest

from jules_wrapped.client.events import RateLimitEvent

BASE_URL = "https://jules.test/v1alpha"


class FakeClock:
    """Monotonic clock whose ``sleep`` just advances time."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class FixedRng:
    """Stand-in for ``random`` with a constant jitter factor."""

    def __init__(self, value: float = 1.0) -> None:
        self.value = value

    def uniform(self, a: float, b: float) -> float:
        return self.value


class ScriptedTransport:
    """Serves queued responses (or raises queued exceptions) and records requests."""

    def __init__(self, script: list[Any] | None = None) -> None:
        self.script = list(script or [])
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self.script:
            raise AssertionError(f"unexpected request: {request.url}")
        item = self.script.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


def route_transport(routes: dict[str, Callable[[httpx.Request], httpx.Response]]):
    """MockTransport dispatching on the URL path."""
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        for path, respond in routes.items():
            if request.url.path.endswith(path):
                return respond(request)
        return httpx.Response(404, text=f"no route for {request.url.path}")

    return httpx.MockTransport(handler), seen


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def events() -> list[RateLimitEvent]:
    return []


@pytest.fixture
def fixed_rng() -> FixedRng:
    return FixedRng()


@pytest.fixture
def scripted() -> Callable[[list[Any]], ScriptedTransport]:
    return ScriptedTransport


@pytest.fixture
def routed():
    return route_transport
