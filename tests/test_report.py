"""Tests for the stats calculator."""

from __future__ import annotations

import asyncio
import json
from datetime import date, datetime, timedelta, timezone

import httpx
import pytest

from jules_wrapped.client.models import ActivityKind
from jules_wrapped.config import ClientConfig
from jules_wrapped.usage.models import UsageSummary
from jules_wrapped.usage.report import (
    build_ranked_stats,
    build_weekday_activity,
    calculate_stats,
    calculate_streaks,
    collect,
    collect_sync,
    find_most_active_day,
    humanize_automation_mode,
    top_automation_mode,
)

UTC = timezone.utc
NOW = datetime(2025, 7, 1, 12, 0, tzinfo=UTC)


def _days(start: date, count: int) -> dict[str, int]:
    return {(start + timedelta(days=i)).isoformat(): 1 for i in range(count)}


# ---------------------------------------------------------------------------
# Streaks
# ---------------------------------------------------------------------------


def test_three_consecutive_days() -> None:
    daily = {"2025-01-01": 3, "2025-01-02": 5, "2025-01-03": 2}
    max_streak, _, days = calculate_streaks(daily, 2025, today=date(2025, 6, 1))
    assert max_streak == 3
    assert days == {"2025-01-01", "2025-01-02", "2025-01-03"}


def test_longest_run_wins_over_first_run() -> None:
    daily = {**_days(date(2025, 1, 1), 2), **_days(date(2025, 3, 10), 4)}
    max_streak, _, days = calculate_streaks(daily, 2025, today=date(2025, 6, 1))
    assert max_streak == 4
    assert days == set(_days(date(2025, 3, 10), 4))


def test_streak_ending_three_days_ago_is_not_current() -> None:
    today = date(2025, 6, 30)
    daily = _days(today - timedelta(days=20), 18)
    max_streak, current, _ = calculate_streaks(daily, 2025, today=today)
    assert max_streak == 18
    assert current == 0


def test_current_streak_counts_from_today_or_yesterday() -> None:
    today = date(2025, 6, 30)
    through_today = _days(today - timedelta(days=4), 5)
    assert calculate_streaks(through_today, 2025, today=today)[1] == 5

    through_yesterday = _days(today - timedelta(days=3), 3)
    assert calculate_streaks(through_yesterday, 2025, today=today)[1] == 3


def test_streaks_ignore_other_years_and_empty_maps() -> None:
    assert calculate_streaks({}, 2025) == (0, 0, frozenset())
    assert calculate_streaks({"2024-12-31": 1}, 2025, today=date(2025, 1, 1))[0] == 0


def test_single_day_is_a_streak_of_one() -> None:
    assert calculate_streaks({"2025-04-04": 9}, 2025, today=date(2025, 6, 1)) == (
        1,
        0,
        frozenset({"2025-04-04"}),
    )


# ---------------------------------------------------------------------------
# Rankings
# ---------------------------------------------------------------------------


def test_ranking_keeps_insertion_order_on_ties() -> None:
    ranked = build_ranked_stats({"a": 10, "b": 10, "c": 5}, 25)
    assert [r.id for r in ranked] == ["a", "b", "c"]
    assert [r.percentage for r in ranked] == [40.0, 40.0, 20.0]

    flipped = build_ranked_stats({"b": 10, "a": 10, "c": 5}, 25)
    assert [r.id for r in flipped] == ["b", "a", "c"]


def test_ranking_limits_and_filters() -> None:
    ranked = build_ranked_stats({"z": 0, "a": 1, "b": 4, "c": 3, "d": 2}, 10)
    assert [r.id for r in ranked] == ["b", "c", "d"]
    assert build_ranked_stats({"a": 0}, 0) == ()


def test_ranking_without_total_uses_shown_entries() -> None:
    ranked = build_ranked_stats({"a": 3, "b": 1}, 0)
    assert [r.percentage for r in ranked] == [75.0, 25.0]


def test_ranking_labels_activity_kinds() -> None:
    ranked = build_ranked_stats(
        {ActivityKind.USER_MESSAGED: 2},
        2,
        {ActivityKind.USER_MESSAGED: "User Messages"},
    )
    assert ranked[0].id == "userMessaged"
    assert ranked[0].name == "User Messages"


def test_automation_modes() -> None:
    assert humanize_automation_mode("AUTOMATION_MODE_UNSPECIFIED") == "Unspecified"
    assert humanize_automation_mode("AUTO_CREATE_PR") == "Auto Create Pr"
    assert top_automation_mode({}) is None
    assert top_automation_mode({"AUTO_CREATE_PR": 2, "AUTOMATION_MODE_UNSPECIFIED": 2}) == (
        "Auto Create Pr"
    )


# ---------------------------------------------------------------------------
# Day-level views
# ---------------------------------------------------------------------------


def test_most_active_day_first_maximum_wins() -> None:
    assert find_most_active_day({}) is None
    best = find_most_active_day({"2025-02-14": 7, "2025-03-01": 7, "2025-01-01": 2})
    assert best is not None
    assert (best.date, best.count, best.formatted_date) == ("2025-02-14", 7, "Feb 14")


def test_weekday_activity() -> None:
    # 2025-06-01 is a Sunday, 2025-06-06 a Friday
    weekday = build_weekday_activity({"2025-06-01": 2, "2025-06-06": 3, "2025-06-13": 4})
    assert weekday.counts == (2, 0, 0, 0, 0, 7, 0)
    assert weekday.most_active_day == 5
    assert weekday.most_active_day_name == "Friday"
    assert weekday.max_count == 7


def test_weekday_ties_favor_lowest_index() -> None:
    # Monday and Saturday equal
    weekday = build_weekday_activity({"2025-06-02": 3, "2025-06-07": 3})
    assert weekday.most_active_day_name == "Monday"

    empty = build_weekday_activity({})
    assert empty.counts == (0,) * 7
    assert (empty.most_active_day, empty.most_active_day_name, empty.max_count) == (
        0,
        "Sunday",
        0,
    )


# ---------------------------------------------------------------------------
# calculate_stats
# ---------------------------------------------------------------------------


def test_empty_summary() -> None:
    stats = calculate_stats(UsageSummary(), 2025, today=date(2025, 7, 1), now=NOW)
    assert stats.plan_approval_rate == 0.0
    assert stats.first_session_date == NOW
    assert stats.days_since_first_session == 0
    assert stats.most_active_day is None
    assert stats.top_sources == ()
    assert stats.top_automation_mode is None


def test_stats_are_deterministic() -> None:
    summary = UsageSummary(
        total_activities=4,
        total_plans_generated=4,
        total_plans_approved=1,
        first_session_date=datetime(2025, 6, 21, 18, 0, tzinfo=UTC),
        daily_activity={"2025-06-29": 1, "2025-06-30": 3},
        source_counts={"o/r": 4},
    )
    first = calculate_stats(summary, 2025, today=date(2025, 7, 1), now=NOW)
    second = calculate_stats(summary, 2025, today=date(2025, 7, 1), now=NOW)

    assert first == second
    assert first.plan_approval_rate == 25.0
    assert first.days_since_first_session == 9
    assert first.current_streak == 2
    assert first.total_sources == 1
    assert first.top_sources[0].percentage == 100.0


def test_to_dict_is_json_serialisable() -> None:
    summary = UsageSummary(
        total_activities=1,
        daily_activity={"2025-01-02": 1},
        activity_type_counts={ActivityKind.PLAN_APPROVED: 1},
    )
    stats = calculate_stats(summary, 2025, today=date(2025, 7, 1), now=NOW)
    data = json.loads(json.dumps(stats.to_dict()))

    assert data["max_streak_days"] == ["2025-01-02"]
    assert data["top_activity_types"][0]["id"] == "planApproved"
    assert data["weekday_activity"]["counts"][4] == 1
    assert data["first_session_date"] == NOW.isoformat()


@pytest.mark.asyncio
async def test_collect_sample_data() -> None:
    stats = await collect(2025, ClientConfig(use_sample_data=True), tz=UTC)

    assert stats.year == 2025
    assert stats.total_sessions == 2
    assert stats.total_activities == 13
    assert stats.total_sources == 2
    assert stats.plan_approval_rate == 50.0
    assert stats.top_automation_mode == "Auto Create Pr"
    assert stats.max_streak == 1
    assert [s.id for s in stats.top_sources] == ["stellar/jules-demo", "stellar/infra"]
    assert stats.top_activity_types[0].id == "agentMessaged"
    assert stats.most_active_day is not None
    assert stats.most_active_day.formatted_date == "Feb 14"
    assert stats.weekday_activity.most_active_day_name == "Friday"
    assert stats.weekday_activity.counts == (2, 0, 4, 0, 0, 7, 0)


@pytest.mark.asyncio
async def test_current_streak_uses_the_collection_time_zone() -> None:
    # The two zones are 26 hours apart, so at least one is on another date
    # than the local clock.
    local_today = date.today()
    tz = next(
        zone
        for zone in (timezone(timedelta(hours=14)), timezone(timedelta(hours=-12)))
        if datetime.now(zone).date() != local_today
    )
    stamp = datetime.now(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")
    year = datetime.now(tz).year

    def handler(request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path.endswith("/activities"):
            return httpx.Response(
                200, json={"activities": [{"createTime": stamp, "sessionCompleted": {}}]}
            )
        if path.endswith("/sessions"):
            return httpx.Response(
                200, json={"sessions": [{"name": "sessions/1", "createTime": stamp}]}
            )
        return httpx.Response(200, json={})

    config = ClientConfig(api_key="k", rate_limit_per_minute=60_000)
    stats = await collect(year, config, tz=tz, transport=httpx.MockTransport(handler))

    assert stats.total_activities == 1
    assert list(stats.daily_activity) == [datetime.now(tz).date().isoformat()]
    assert stats.current_streak == 1


def test_collect_sync_matches_async_collect() -> None:
    config = ClientConfig(use_sample_data=True)
    blocking = collect_sync(2025, config, tz=UTC)
    awaited = asyncio.run(collect(2025, config, tz=UTC))

    assert blocking.total_activities == awaited.total_activities == 13
    assert blocking.daily_activity == awaited.daily_activity
    assert blocking.top_sources == awaited.top_sources
    assert blocking.weekday_activity == awaited.weekday_activity
