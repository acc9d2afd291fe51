"""Rate-limit observer events.

Collection runs report waiting and retrying through a single observer
callable (``ClientConfig.on_rate_limit``) that receives one of the event
types below.  Without an observer the events are written to the log.
"""

from __future__ import annotations

import math
from collections.abc import Callable
from dataclasses import asdict, dataclass
from typing import Any, Literal

from loguru import logger


@dataclass(frozen=True)
class SleepEvent:
    """Scheduling has to wait before the next request may go out."""

    wait_ms: int
    count: int
    type: Literal["sleep"] = "sleep"

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ResumeEvent:
    """A previously announced wait has finished."""

    type: Literal["resume"] = "resume"

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class NoticeEvent:
    """One-time, user-facing notice (first rate limit of a run)."""

    message: str
    type: Literal["notice"] = "notice"

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class RetryEvent:
    """A request is about to be retried."""

    message: str
    type: Literal["retry"] = "retry"

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


RateLimitEvent = SleepEvent | ResumeEvent | NoticeEvent | RetryEvent
RateLimitObserver = Callable[[RateLimitEvent], None]


def log_event(event: RateLimitEvent) -> None:
    """Fallback observer: route events to the log."""
    if isinstance(event, SleepEvent):
        logger.warning(
            f"Sleeping for rate limits #{event.count} ({math.ceil(event.wait_ms / 1000)}s)"
        )
    elif isinstance(event, (NoticeEvent, RetryEvent)):
        logger.warning(event.message)


class EventChannel:
    """Delivers events to the configured observer, or to the log."""

    def __init__(self, observer: RateLimitObserver | None = None):
        self._observer = observer

    def emit(self, event: RateLimitEvent) -> None:
        if self._observer is None:
            log_event(event)
            return
        self._observer(event)
