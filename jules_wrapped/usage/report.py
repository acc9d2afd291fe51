"""Stats calculator: derives rankings, streaks and distributions.

:func:`calculate_stats` is pure - given the same summary, year and "today"
it always returns the same value.
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import TYPE_CHECKING, Any

import httpx

from jules_wrapped.client.api import JulesClient
from jules_wrapped.client.constants import AUTOMATION_MODE_PREFIX
from jules_wrapped.client.models import ACTIVITY_LABELS, ActivityKind
from jules_wrapped.usage.collector import collect_usage_summary
from jules_wrapped.usage.models import (
    MostActiveDay,
    RankedStat,
    Stats,
    UsageSummary,
    WeekdayActivity,
)

if TYPE_CHECKING:
    from jules_wrapped.config import ClientConfig

TOP_N = 3
WEEKDAY_NAMES = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")
MONTH_NAMES = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


# ---------------------------------------------------------------------------
# Rankings
# ---------------------------------------------------------------------------


def build_ranked_stats(
    counts: Mapping[Any, int],
    total: int,
    labels: Mapping[Any, str] | None = None,
) -> tuple[RankedStat, ...]:
    """Top entries by count; ties keep insertion order.

    Percentages are of ``total``, or of the shown entries when ``total`` is 0.
    """
    entries = sorted(
        ((key, count) for key, count in counts.items() if count > 0),
        key=lambda kv: -kv[1],
    )[:TOP_N]
    denominator = total if total > 0 else sum(count for _, count in entries)

    ranked: list[RankedStat] = []
    for key, count in entries:
        ident = key.value if isinstance(key, ActivityKind) else str(key)
        ranked.append(
            RankedStat(
                id=ident,
                name=(labels or {}).get(key, ident),
                count=count,
                percentage=count / denominator * 100 if denominator > 0 else 0.0,
            )
        )
    return tuple(ranked)


def humanize_automation_mode(mode: str) -> str:
    """``AUTOMATION_MODE_UNSPECIFIED`` -> ``Unspecified``, ``AUTO_CREATE_PR`` -> ``Auto Create Pr``."""
    if mode.startswith(AUTOMATION_MODE_PREFIX):
        mode = mode[len(AUTOMATION_MODE_PREFIX) :]
    words = mode.replace("_", " ").lower().split(" ")
    return " ".join(word[:1].upper() + word[1:] for word in words)


def top_automation_mode(counts: Mapping[str, int]) -> str | None:
    best: str | None = None
    best_count = 0
    for mode, count in counts.items():
        if count > best_count:
            best, best_count = mode, count
    return humanize_automation_mode(best) if best else None


# ---------------------------------------------------------------------------
# Streaks
# ---------------------------------------------------------------------------


def _date_key(day: date) -> str:
    return day.isoformat()


def count_streak_backwards(daily_activity: Mapping[str, int], start: date) -> int:
    """Consecutive active days ending at ``start`` (inclusive)."""
    streak = 1
    day = start - timedelta(days=1)
    while _date_key(day) in daily_activity:
        streak += 1
        day -= timedelta(days=1)
    return streak


def calculate_streaks(
    daily_activity: Mapping[str, int],
    year: int,
    today: date | None = None,
) -> tuple[int, int, frozenset[str]]:
    """Return ``(max_streak, current_streak, max_streak_days)``.

    The current streak only counts when today or yesterday was active; a
    run that ended two days ago gives 0.
    """
    active = sorted(key for key in daily_activity if key.startswith(str(year)))
    if not active:
        return 0, 0, frozenset()

    max_streak = 1
    run = 1
    run_start = 0
    max_start = max_end = 0

    for i in range(1, len(active)):
        gap = date.fromisoformat(active[i]) - date.fromisoformat(active[i - 1])
        if gap.days == 1:
            run += 1
            if run > max_streak:
                max_streak = run
                max_start, max_end = run_start, i
        else:
            run = 1
            run_start = i

    max_streak_days = frozenset(active[max_start : max_end + 1])

    today = today or date.today()
    yesterday = today - timedelta(days=1)
    if _date_key(today) in daily_activity:
        current = count_streak_backwards(daily_activity, today)
    elif _date_key(yesterday) in daily_activity:
        current = count_streak_backwards(daily_activity, yesterday)
    else:
        current = 0

    return max_streak, current, max_streak_days


# ---------------------------------------------------------------------------
# Day-level views
# ---------------------------------------------------------------------------


def find_most_active_day(daily_activity: Mapping[str, int]) -> MostActiveDay | None:
    best_key = ""
    best_count = 0
    for key, count in daily_activity.items():
        if count > best_count:
            best_key, best_count = key, count
    if not best_key:
        return None

    day = date.fromisoformat(best_key)
    return MostActiveDay(
        date=best_key,
        count=best_count,
        formatted_date=f"{MONTH_NAMES[day.month - 1]} {day.day}",
    )


def build_weekday_activity(daily_activity: Mapping[str, int]) -> WeekdayActivity:
    """Sum activity per weekday (0 = Sunday) and pick the busiest."""
    counts = [0] * 7
    for key, count in daily_activity.items():
        counts[date.fromisoformat(key).isoweekday() % 7] += count

    busiest = 0
    max_count = 0
    for i, count in enumerate(counts):
        if count > max_count:
            busiest, max_count = i, count

    return WeekdayActivity(
        counts=tuple(counts),  # type: ignore[arg-type]
        most_active_day=busiest,
        most_active_day_name=WEEKDAY_NAMES[busiest],
        max_count=max_count,
    )


# ---------------------------------------------------------------------------
# Final stats
# ---------------------------------------------------------------------------


def calculate_stats(
    summary: UsageSummary,
    year: int,
    today: date | None = None,
    now: datetime | None = None,
) -> Stats:
    """Derive the year-in-review statistics from a collected summary."""
    now = now or datetime.now(timezone.utc)
    daily_activity = dict(summary.daily_activity)
    total_activities = summary.total_activities

    max_streak, current_streak, max_streak_days = calculate_streaks(daily_activity, year, today)

    plan_approval_rate = (
        summary.total_plans_approved / summary.total_plans_generated * 100
        if summary.total_plans_generated > 0
        else 0.0
    )

    first_session_date = summary.first_session_date or now
    days_since_first_session = int((now - first_session_date) // timedelta(days=1))

    return Stats(
        year=year,
        first_session_date=first_session_date,
        days_since_first_session=days_since_first_session,
        total_sessions=summary.total_sessions,
        total_activities=total_activities,
        total_messages=summary.total_messages,
        total_agent_messages=summary.total_agent_messages,
        total_user_messages=summary.total_user_messages,
        total_sources=len(summary.source_counts),
        total_tokens_estimated=summary.total_tokens_estimated,
        total_plans_generated=summary.total_plans_generated,
        total_plans_approved=summary.total_plans_approved,
        total_progress_updates=summary.total_progress_updates,
        total_session_completed=summary.total_session_completed,
        total_session_failed=summary.total_session_failed,
        top_automation_mode=top_automation_mode(summary.automation_mode_counts),
        plan_approval_rate=plan_approval_rate,
        total_change_sets=summary.total_change_sets,
        total_bash_outputs=summary.total_bash_outputs,
        total_media=summary.total_media,
        total_pull_requests=summary.total_pull_requests,
        require_plan_approval_count=summary.require_plan_approval_count,
        top_sources=build_ranked_stats(summary.source_counts, total_activities),
        top_activity_types=build_ranked_stats(
            summary.activity_type_counts, total_activities, ACTIVITY_LABELS
        ),
        max_streak=max_streak,
        current_streak=current_streak,
        max_streak_days=max_streak_days,
        daily_activity=daily_activity,
        most_active_day=find_most_active_day(daily_activity),
        weekday_activity=build_weekday_activity(daily_activity),
    )


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


async def collect(
    year: int,
    config: ClientConfig,
    *,
    tz: tzinfo | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> Stats:
    """Collect a year of Jules usage and reduce it to :class:`Stats`.

    Raises :class:`~jules_wrapped.client.errors.JulesAPIError` on a
    permanent API failure; nothing partial is returned.
    """
    async with JulesClient(config, transport=transport) as client:
        summary = await collect_usage_summary(year, client, tz=tz)
    # "today" must be the same calendar the day keys were built in
    now = datetime.now(timezone.utc).astimezone(tz)
    return calculate_stats(summary, year, today=now.date(), now=now)


def collect_sync(year: int, config: ClientConfig, **kwargs: Any) -> Stats:
    """Blocking wrapper around :func:`collect`."""
    return asyncio.run(collect(year, config, **kwargs))
