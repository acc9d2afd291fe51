"""Tests for the rate governor."""

from __future__ import annotations

import json
import math

import pytest

from jules_wrapped.client.events import EventChannel, ResumeEvent, SleepEvent
from jules_wrapped.client.governor import RateGovernor, find_quota_limit_value, min_interval_for


def _quota_body(value) -> str:
    return json.dumps({"error": {"details": [{"metadata": {"quota_limit_value": value}}]}})


def test_min_interval_rounds_up_to_whole_milliseconds() -> None:
    assert min_interval_for(90) == pytest.approx(0.667)
    assert min_interval_for(54) == pytest.approx(1.112)
    assert min_interval_for(1) == pytest.approx(60.0)


@pytest.mark.asyncio
async def test_successive_sends_respect_min_interval(clock) -> None:
    governor = RateGovernor(90, events=EventChannel(lambda e: None), clock=clock, sleep=clock.sleep)
    sent_at: list[float] = []
    for _ in range(6):
        await governor.schedule()
        sent_at.append(clock())

    interval = math.ceil(60_000 / 90) / 1000
    gaps = [b - a for a, b in zip(sent_at, sent_at[1:])]
    assert all(gap >= interval - 1e-9 for gap in gaps)
    # First request goes out immediately.
    assert clock.sleeps[0] == pytest.approx(interval)
    assert len(clock.sleeps) == 5


@pytest.mark.asyncio
async def test_quota_adaptation_only_shrinks_the_rate(clock) -> None:
    governor = RateGovernor(90, clock=clock, sleep=clock.sleep)

    governor.adapt(_quota_body("60"))
    assert governor.rate_limit_per_minute == 54
    assert governor.min_interval == pytest.approx(1.112)

    governor.adapt(_quota_body("600"))
    assert governor.rate_limit_per_minute == 54

    governor.adapt(_quota_body(30))
    assert governor.rate_limit_per_minute == 27


@pytest.mark.asyncio
async def test_quota_adaptation_never_goes_below_one(clock) -> None:
    governor = RateGovernor(90, clock=clock, sleep=clock.sleep)
    governor.adapt(_quota_body(0.5))
    assert governor.rate_limit_per_minute == 1


@pytest.mark.parametrize(
    "body",
    ["", "not json", json.dumps({"error": {}}), json.dumps({"error": {"details": "x"}}), "[]"],
)
def test_adapt_ignores_bodies_without_quota(clock, body) -> None:
    governor = RateGovernor(90, clock=clock, sleep=clock.sleep)
    governor.adapt(body)
    assert governor.rate_limit_per_minute == 90


def test_find_quota_limit_value_skips_unusable_entries() -> None:
    payload = {
        "error": {
            "details": [
                {"@type": "type.googleapis.com/google.rpc.ErrorInfo"},
                {"metadata": {"quota_limit_value": True}},
                {"metadata": {"quota_limit_value": "lots"}},
                {"metadata": {"quota_limit_value": "120"}},
            ]
        }
    }
    assert find_quota_limit_value(payload) == 120.0
    assert find_quota_limit_value({"error": {"details": []}}) is None
    assert find_quota_limit_value(None) is None


@pytest.mark.asyncio
async def test_cooldown_delays_next_request_and_announces_it(clock, events) -> None:
    governor = RateGovernor(90, events=EventChannel(events.append), clock=clock, sleep=clock.sleep)
    start = clock()

    governor.adapt("", cooldown=5.0)
    await governor.schedule()

    assert clock() - start == pytest.approx(5.0)
    assert events == [SleepEvent(wait_ms=5000, count=1), ResumeEvent()]


@pytest.mark.asyncio
async def test_cooldown_never_moves_backwards(clock) -> None:
    governor = RateGovernor(90, clock=clock, sleep=clock.sleep)
    governor.adapt("", cooldown=10.0)
    until = governor.cooldown_until
    governor.adapt("", cooldown=2.0)
    assert governor.cooldown_until == until


@pytest.mark.asyncio
async def test_spacing_sleep_events_are_throttled_to_one_per_second(clock, events) -> None:
    governor = RateGovernor(90, events=EventChannel(events.append), clock=clock, sleep=clock.sleep)
    for _ in range(4):
        await governor.schedule()

    sleeps = [e for e in events if isinstance(e, SleepEvent)]
    resumes = [e for e in events if isinstance(e, ResumeEvent)]
    # Three spacing waits of ~0.667s; the middle one falls inside the 1s window.
    assert [e.count for e in sleeps] == [1, 2]
    assert len(resumes) == 2
    assert governor.sleep_count == 2
