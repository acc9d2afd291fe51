"""Request pacing shared by every call of one collection run."""

from __future__ import annotations

import asyncio
import json
import math
import time
from collections.abc import Awaitable, Callable
from typing import Any

from loguru import logger

from jules_wrapped.client.constants import (
    DEFAULT_RATE_LIMIT_PER_MINUTE,
    MIN_RATE_LIMIT_PER_MINUTE,
    RATE_LIMIT_BUFFER_RATIO,
    SLEEP_EVENT_INTERVAL,
)
from jules_wrapped.client.events import EventChannel, ResumeEvent, SleepEvent


def min_interval_for(rate_per_minute: int) -> float:
    """Minimum spacing between requests, in seconds (whole milliseconds)."""
    return math.ceil(60_000 / rate_per_minute) / 1000


def find_quota_limit_value(payload: Any) -> float | None:
    """Pull ``error.details[].metadata.quota_limit_value`` out of an error body."""
    if not isinstance(payload, dict):
        return None
    error = payload.get("error")
    details = error.get("details") if isinstance(error, dict) else None
    if not isinstance(details, list):
        return None

    for item in details:
        metadata = item.get("metadata") if isinstance(item, dict) else None
        if not isinstance(metadata, dict):
            continue
        value = metadata.get("quota_limit_value")
        if isinstance(value, bool) or not isinstance(value, (str, int, float)):
            continue
        try:
            parsed = float(value)
        except ValueError:
            continue
        if math.isfinite(parsed):
            return parsed
    return None


class RateGovernor:
    """Paces outbound requests to a requests-per-minute budget.

    ``schedule()`` is serialised through a FIFO lock, so only one
    scheduling decision is made at a time even with several workers in
    flight; the network calls that follow run concurrently.  ``adapt()``
    is synchronous and therefore atomic with respect to other tasks.

    The permitted rate only ever shrinks.
    """

    def __init__(
        self,
        rate_limit_per_minute: int = DEFAULT_RATE_LIMIT_PER_MINUTE,
        events: EventChannel | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self._rate = max(MIN_RATE_LIMIT_PER_MINUTE, int(rate_limit_per_minute))
        self._min_interval = min_interval_for(self._rate)
        self._events = events or EventChannel()
        self._clock = clock
        self._sleep = sleep
        self._lock = asyncio.Lock()
        self._last_request_at: float | None = None
        self._cooldown_until = 0.0
        self._sleep_count = 0
        self._last_sleep_event_at: float | None = None

    @property
    def rate_limit_per_minute(self) -> int:
        return self._rate

    @property
    def min_interval(self) -> float:
        return self._min_interval

    @property
    def cooldown_until(self) -> float:
        return self._cooldown_until

    @property
    def sleep_count(self) -> int:
        return self._sleep_count

    async def schedule(self) -> None:
        """Return once the caller may send its request."""
        async with self._lock:
            now = self._clock()
            wait_for_cooldown = max(0.0, self._cooldown_until - now)
            wait_for_spacing = 0.0
            if self._last_request_at is not None:
                wait_for_spacing = max(0.0, self._last_request_at + self._min_interval - now)
            wait = max(wait_for_cooldown, wait_for_spacing)

            if wait > 0:
                announce = wait_for_cooldown > 0 or (
                    self._last_sleep_event_at is None
                    or now - self._last_sleep_event_at >= SLEEP_EVENT_INTERVAL
                )
                if announce:
                    self._sleep_count += 1
                    self._events.emit(
                        SleepEvent(wait_ms=math.ceil(wait * 1000), count=self._sleep_count)
                    )
                    self._last_sleep_event_at = self._clock()
                await self._sleep(wait)
                if announce:
                    self._events.emit(ResumeEvent())

            self._last_request_at = self._clock()

    def adapt(self, body_text: str, cooldown: float = 0.0) -> None:
        """React to a 429: shrink the rate from the quota metadata and hold off.

        ``cooldown`` (seconds) pushes the "do not send before" mark forward;
        it never moves backwards.
        """
        if cooldown > 0:
            self._cooldown_until = max(self._cooldown_until, self._clock() + cooldown)

        if not body_text:
            return
        try:
            payload = json.loads(body_text)
        except json.JSONDecodeError:
            return

        quota = find_quota_limit_value(payload)
        if not quota:
            return

        safe_limit = max(MIN_RATE_LIMIT_PER_MINUTE, math.floor(quota * RATE_LIMIT_BUFFER_RATIO))
        if safe_limit < self._rate:
            logger.info(
                f"Server quota is {quota:g}/min, lowering request rate "
                f"{self._rate} -> {safe_limit}/min"
            )
            self._rate = safe_limit
            self._min_interval = min_interval_for(self._rate)
