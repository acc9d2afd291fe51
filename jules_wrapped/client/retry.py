"""Retry/backoff engine wrapping a single API call.

Every call walks the same state machine::

    SCHEDULING -> SENDING -> SUCCESS            (return decoded body)
                          -> RATE_LIMITED       (adapt rate, cool down, reschedule)
                          -> TRANSIENT_FAILURE  (back off, reschedule)
                          -> NETWORK_FAILURE    (back off, reschedule)
                          -> PERMANENT_FAILURE  (raise JulesAPIError)

Retryable outcomes are retried without an attempt cap: quota windows
eventually reset, so the run keeps going.  Callers that need a ceiling must
impose one from outside (e.g. ``asyncio.wait_for``).
"""

from __future__ import annotations

import asyncio
import json
import math
import random
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from enum import Enum
from typing import Any

import httpx
from loguru import logger

from jules_wrapped.client.constants import (
    RATE_LIMIT_NOTICE,
    RATE_LIMITED_STATUS,
    RETRY_BASE_DELAY,
    RETRY_JITTER,
    RETRY_MAX_DELAY,
    TRANSIENT_STATUS_CODES,
)
from jules_wrapped.client.errors import JulesAPIError
from jules_wrapped.client.events import EventChannel, NoticeEvent, RetryEvent
from jules_wrapped.client.governor import RateGovernor

# Exponent cap; the clamp makes anything above this irrelevant.
_MAX_BACKOFF_EXPONENT = 16


class RequestState(Enum):
    SCHEDULING = "scheduling"
    SENDING = "sending"
    SUCCESS = "success"
    RATE_LIMITED = "rate_limited"
    TRANSIENT_FAILURE = "transient_failure"
    NETWORK_FAILURE = "network_failure"
    PERMANENT_FAILURE = "permanent_failure"


def classify_status(status_code: int) -> RequestState:
    """Map an HTTP status onto the outcome states of the machine."""
    if 200 <= status_code < 300:
        return RequestState.SUCCESS
    if status_code == RATE_LIMITED_STATUS:
        return RequestState.RATE_LIMITED
    if status_code in TRANSIENT_STATUS_CODES:
        return RequestState.TRANSIENT_FAILURE
    return RequestState.PERMANENT_FAILURE


def clamp_delay(seconds: float) -> float:
    """Bound a delay to [RETRY_BASE_DELAY, RETRY_MAX_DELAY], whole milliseconds."""
    bounded = min(max(seconds, RETRY_BASE_DELAY), RETRY_MAX_DELAY)
    return round(bounded * 1000) / 1000


def backoff_delay(attempt: int, rng: random.Random | None = None) -> float:
    """Exponential backoff with +/-15% jitter, in seconds."""
    rng = rng or random
    base = RETRY_BASE_DELAY * (2 ** min(attempt, _MAX_BACKOFF_EXPONENT))
    jitter = rng.uniform(*RETRY_JITTER)
    return clamp_delay(base * jitter)


def parse_retry_after(value: str | None, now: datetime | None = None) -> float | None:
    """Parse a ``Retry-After`` header: delta-seconds or an HTTP date.

    A date in the past yields ``0.0``; unparseable values yield ``None``.
    """
    if value is None:
        return None
    trimmed = value.strip()
    if not trimmed:
        return None

    try:
        seconds = float(trimmed)
    except ValueError:
        pass
    else:
        return seconds if math.isfinite(seconds) else None

    try:
        when = parsedate_to_datetime(trimmed)
    except (TypeError, ValueError):
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    now = now or datetime.now(timezone.utc)
    return max(0.0, (when - now).total_seconds())


def retry_delay(
    response: httpx.Response, attempt: int, rng: random.Random | None = None
) -> float:
    """Server hint when present, otherwise exponential backoff."""
    hinted = parse_retry_after(response.headers.get("Retry-After"))
    if hinted is not None:
        return clamp_delay(hinted)
    return backoff_delay(attempt, rng)


def decode_body(text: str) -> dict[str, Any]:
    """Lenient JSON decode: empty, invalid or non-object bodies become ``{}``."""
    if not text:
        return {}
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        return {}
    return data if isinstance(data, dict) else {}


class RetryingFetcher:
    """Issues governed GET requests and retries them until they settle.

    One instance serves one collection run; the first-rate-limit notice is
    shown once per instance.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        governor: RateGovernor,
        events: EventChannel | None = None,
        headers: dict[str, str] | None = None,
        rng: random.Random | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self._client = client
        self._governor = governor
        self._events = events or EventChannel()
        self._headers = headers or {}
        self._rng = rng
        self._sleep = sleep
        self._notice_shown = False

    async def fetch_json(self, url: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        """GET ``url`` and return its JSON object, retrying retryable outcomes."""
        state = RequestState.SCHEDULING
        response: httpx.Response | None = None
        transient_attempts = 0
        rate_limit_hits = 0

        while True:
            if state is RequestState.SCHEDULING:
                await self._governor.schedule()
                state = RequestState.SENDING

            elif state is RequestState.SENDING:
                try:
                    logger.debug(f"GET {url} params={params}")
                    response = await self._client.get(url, params=params, headers=self._headers)
                except Exception as e:
                    logger.debug(f"Request to {url} failed before a response: {e!r}")
                    state = RequestState.NETWORK_FAILURE
                    continue
                state = classify_status(response.status_code)

            elif state is RequestState.SUCCESS:
                return decode_body(response.text)

            elif state is RequestState.RATE_LIMITED:
                rate_limit_hits += 1
                delay = retry_delay(response, rate_limit_hits - 1, self._rng)
                # The wait itself happens inside the governor's cooldown.
                self._governor.adapt(response.text, cooldown=delay)
                if not self._notice_shown:
                    self._notice_shown = True
                    self._events.emit(NoticeEvent(message=RATE_LIMIT_NOTICE))
                self._events.emit(
                    RetryEvent(
                        message=(
                            "Rate limit hit (still working). "
                            f"Retrying in {math.ceil(delay)}s"
                        )
                    )
                )
                state = RequestState.SCHEDULING

            elif state is RequestState.TRANSIENT_FAILURE:
                transient_attempts += 1
                delay = retry_delay(response, transient_attempts - 1, self._rng)
                self._events.emit(
                    RetryEvent(
                        message=(
                            f"Jules API {response.status_code} (retrying). "
                            f"Sleeping {math.ceil(delay)}s (attempt {transient_attempts})"
                        )
                    )
                )
                await self._sleep(delay)
                state = RequestState.SCHEDULING

            elif state is RequestState.NETWORK_FAILURE:
                transient_attempts += 1
                delay = backoff_delay(transient_attempts - 1, self._rng)
                self._events.emit(
                    RetryEvent(
                        message=(
                            "Jules API request failed. "
                            f"Retrying in {math.ceil(delay)}s (attempt {transient_attempts})"
                        )
                    )
                )
                await self._sleep(delay)
                state = RequestState.SCHEDULING

            else:
                raise JulesAPIError(
                    response.status_code, body=response.text, reason=response.reason_phrase
                )
