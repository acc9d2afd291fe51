"""Data models for annual usage aggregation and the final statistics."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any

from jules_wrapped.client.models import ActivityKind


@dataclass
class UsageSummary:
    """Running totals for one collection run.

    Mutated only by :mod:`jules_wrapped.usage.collector`.
    ``first_session_date`` covers every session, not just the requested year.
    """

    total_sessions: int = 0
    total_activities: int = 0
    total_messages: int = 0
    total_agent_messages: int = 0
    total_user_messages: int = 0
    total_plans_generated: int = 0
    total_plans_approved: int = 0
    total_progress_updates: int = 0
    total_session_completed: int = 0
    total_session_failed: int = 0
    total_change_sets: int = 0
    total_bash_outputs: int = 0
    total_media: int = 0
    total_pull_requests: int = 0
    total_tokens_estimated: int = 0
    require_plan_approval_count: int = 0
    first_session_date: datetime | None = None
    daily_activity: dict[str, int] = field(default_factory=dict)  # "2025-01-15" -> count
    activity_type_counts: dict[ActivityKind, int] = field(default_factory=dict)
    source_counts: dict[str, int] = field(default_factory=dict)
    automation_mode_counts: dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class RankedStat:
    id: str
    name: str
    count: int
    percentage: float  # 0-100

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class MostActiveDay:
    date: str  # YYYY-MM-DD
    count: int
    formatted_date: str  # "Feb 14"

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class WeekdayActivity:
    """Activity per weekday, index 0 = Sunday."""

    counts: tuple[int, int, int, int, int, int, int]
    most_active_day: int
    most_active_day_name: str
    max_count: int

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["counts"] = list(self.counts)
        return data


@dataclass(frozen=True)
class Stats:
    """A year in review; the value handed to renderers and the CLI."""

    year: int

    # Time-based
    first_session_date: datetime
    days_since_first_session: int

    # Counts
    total_sessions: int
    total_activities: int
    total_messages: int
    total_agent_messages: int
    total_user_messages: int
    total_sources: int
    total_tokens_estimated: int

    # Activity breakdown
    total_plans_generated: int
    total_plans_approved: int
    total_progress_updates: int
    total_session_completed: int
    total_session_failed: int
    top_automation_mode: str | None
    plan_approval_rate: float  # 0-100

    # Artifacts
    total_change_sets: int
    total_bash_outputs: int
    total_media: int
    total_pull_requests: int

    # Session settings
    require_plan_approval_count: int

    # Rankings
    top_sources: tuple[RankedStat, ...]
    top_activity_types: tuple[RankedStat, ...]

    # Streaks
    max_streak: int
    current_streak: int
    max_streak_days: frozenset[str]

    # Heatmap, busiest day, weekday distribution
    daily_activity: dict[str, int]
    most_active_day: MostActiveDay | None
    weekday_activity: WeekdayActivity

    def to_dict(self) -> dict[str, Any]:
        """JSON-serialisable form."""
        return {
            "year": self.year,
            "first_session_date": self.first_session_date.isoformat(),
            "days_since_first_session": self.days_since_first_session,
            "total_sessions": self.total_sessions,
            "total_activities": self.total_activities,
            "total_messages": self.total_messages,
            "total_agent_messages": self.total_agent_messages,
            "total_user_messages": self.total_user_messages,
            "total_sources": self.total_sources,
            "total_tokens_estimated": self.total_tokens_estimated,
            "total_plans_generated": self.total_plans_generated,
            "total_plans_approved": self.total_plans_approved,
            "total_progress_updates": self.total_progress_updates,
            "total_session_completed": self.total_session_completed,
            "total_session_failed": self.total_session_failed,
            "top_automation_mode": self.top_automation_mode,
            "plan_approval_rate": self.plan_approval_rate,
            "total_change_sets": self.total_change_sets,
            "total_bash_outputs": self.total_bash_outputs,
            "total_media": self.total_media,
            "total_pull_requests": self.total_pull_requests,
            "require_plan_approval_count": self.require_plan_approval_count,
            "top_sources": [s.to_dict() for s in self.top_sources],
            "top_activity_types": [s.to_dict() for s in self.top_activity_types],
            "max_streak": self.max_streak,
            "current_streak": self.current_streak,
            "max_streak_days": sorted(self.max_streak_days),
            "daily_activity": dict(sorted(self.daily_activity.items())),
            "most_active_day": self.most_active_day.to_dict() if self.most_active_day else None,
            "weekday_activity": self.weekday_activity.to_dict(),
        }
