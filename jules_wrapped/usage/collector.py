"""Aggregation engine: folds sessions and activities into a UsageSummary.

Calendar decisions (which year a timestamp belongs to, which day key it
lands on) are made in one time zone, the local one unless ``tz`` is given.

All mutation happens in plain synchronous code between awaits, so the
activity workers never interleave inside an update.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from datetime import datetime, tzinfo
from typing import TYPE_CHECKING

from loguru import logger

from jules_wrapped.client.constants import GITHUB_SOURCE_PREFIX, SOURCE_PREFIX
from jules_wrapped.client.models import (
    ACTIVITY_KIND_ORDER,
    Activity,
    AgentMessaged,
    PlanApproved,
    PlanGenerated,
    ProgressUpdated,
    Session,
    SessionCompleted,
    SessionFailed,
    Source,
    UserMessaged,
)
from jules_wrapped.client.pool import run_with_concurrency
from jules_wrapped.usage.models import UsageSummary
from jules_wrapped.usage.tokens import estimate_image_tokens, estimate_text_tokens

if TYPE_CHECKING:
    from jules_wrapped.client.api import JulesClient


# ---------------------------------------------------------------------------
# Calendar helpers
# ---------------------------------------------------------------------------


def _localize(value: datetime, tz: tzinfo | None) -> datetime:
    return value.astimezone(tz)


def is_in_year(value: datetime | None, year: int, tz: tzinfo | None = None) -> bool:
    if value is None:
        return False
    return _localize(value, tz).year == year


def year_bounds(year: int, tz: tzinfo | None = None) -> tuple[datetime, datetime]:
    """[Jan 1 00:00:00.000, Dec 31 23:59:59.999] of ``year`` in ``tz``."""
    start = datetime(year, 1, 1, tzinfo=tz)
    end = datetime(year, 12, 31, 23, 59, 59, 999000, tzinfo=tz)
    if tz is None:
        start, end = start.astimezone(), end.astimezone()
    return start, end


def session_overlaps_year(session: Session, year: int, tz: tzinfo | None = None) -> bool:
    """True when the session's [created, updated] span touches ``year``."""
    created = session.create_time
    if created is None:
        return False
    updated = session.update_time or created
    start, end = year_bounds(year, tz)
    return created <= end and updated >= start


def format_date_key(value: datetime, tz: tzinfo | None = None) -> str:
    return _localize(value, tz).strftime("%Y-%m-%d")


# ---------------------------------------------------------------------------
# Source labels
# ---------------------------------------------------------------------------


def format_source_label(source: str | None) -> str | None:
    """``sources/github/owner/repo`` -> ``owner/repo``."""
    if not source:
        return None
    trimmed = source.strip()
    if not trimmed:
        return None
    for prefix in (GITHUB_SOURCE_PREFIX, SOURCE_PREFIX):
        if trimmed.startswith(prefix):
            return trimmed[len(prefix) :]
    return trimmed


def build_source_name_map(sources: Iterable[Source]) -> dict[str, str]:
    """Resource name -> display label, preferring the owner/repo pair."""
    labels: dict[str, str] = {}
    for source in sources:
        if not source.name:
            continue
        if source.owner and source.repo:
            labels[source.name] = f"{source.owner}/{source.repo}"
            continue
        fallback = format_source_label(source.name)
        if fallback:
            labels[source.name] = fallback
    return labels


def resolve_source_label(source_id: str | None, labels: dict[str, str]) -> str | None:
    if not source_id:
        return None
    return labels.get(source_id) or format_source_label(source_id)


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------


class UsageAggregator:
    """Accumulates one run's sessions and activities for a single year."""

    def __init__(self, year: int, sources: Iterable[Source] = (), tz: tzinfo | None = None):
        self.year = year
        self.tz = tz
        self.summary = UsageSummary()
        self._source_labels = build_source_name_map(sources)
        self._session_sources: dict[str, str] = {}

    # -- tokens --------------------------------------------------------------

    def _add_text(self, text: str | None) -> None:
        self.summary.total_tokens_estimated += estimate_text_tokens(text)

    def _add_image(self) -> None:
        self.summary.total_tokens_estimated += estimate_image_tokens()

    # -- sessions ------------------------------------------------------------

    def add_sessions(self, sessions: Iterable[Session]) -> list[Session]:
        """Tally session-level data; return the sessions whose activities to fetch."""
        s = self.summary
        sessions = list(sessions)

        for session in sessions:
            created = session.create_time
            if created is not None and (
                s.first_session_date is None or created < s.first_session_date
            ):
                s.first_session_date = created

        in_year = [x for x in sessions if is_in_year(x.create_time, self.year, self.tz)]
        overlapping = [x for x in sessions if session_overlaps_year(x, self.year, self.tz)]
        s.total_sessions = len(in_year)

        for session in in_year:
            if session.automation_mode:
                mode = session.automation_mode
                s.automation_mode_counts[mode] = s.automation_mode_counts.get(mode, 0) + 1
            if session.require_plan_approval:
                s.require_plan_approval_count += 1
            self._add_text(session.title)
            self._add_text(session.prompt)
            for pr in session.pull_requests:
                s.total_pull_requests += 1
                self._add_text(pr.title)
                self._add_text(pr.description)

        for session in overlapping:
            label = resolve_source_label(session.source, self._source_labels)
            if label and session.name:
                self._session_sources[session.name] = label

        logger.debug(
            f"{len(sessions)} sessions, {len(in_year)} created in {self.year}, "
            f"{len(overlapping)} overlapping it"
        )
        return overlapping

    # -- activities ----------------------------------------------------------

    def add_activities(self, session: Session, activities: Iterable[Activity]) -> None:
        """Tally the in-year activities of one overlapping session."""
        s = self.summary
        source_label = self._session_sources.get(session.name) if session.name else None

        for activity in activities:
            created = activity.create_time
            if not is_in_year(created, self.year, self.tz):
                continue

            s.total_activities += 1
            key = format_date_key(created, self.tz)
            s.daily_activity[key] = s.daily_activity.get(key, 0) + 1

            kind = activity.kind
            s.activity_type_counts[kind] = s.activity_type_counts.get(kind, 0) + 1

            match activity.payload:
                case AgentMessaged(agent_message=message):
                    s.total_messages += 1
                    s.total_agent_messages += 1
                    self._add_text(message)
                case UserMessaged(user_message=message):
                    s.total_messages += 1
                    s.total_user_messages += 1
                    self._add_text(message)
                case PlanGenerated():
                    s.total_plans_generated += 1
                case PlanApproved():
                    s.total_plans_approved += 1
                case ProgressUpdated(title=title, description=description):
                    s.total_progress_updates += 1
                    self._add_text(title)
                    self._add_text(description)
                case SessionCompleted():
                    s.total_session_completed += 1
                case SessionFailed(reason=reason):
                    s.total_session_failed += 1
                    self._add_text(reason)

            self._add_text(activity.description)

            for artifact in activity.artifacts:
                if artifact.change_set is not None:
                    s.total_change_sets += 1
                    self._add_text(artifact.change_set.source)
                    self._add_text(artifact.change_set.unidiff_patch)
                    self._add_text(artifact.change_set.suggested_commit_message)
                if artifact.media is not None:
                    s.total_media += 1
                    self._add_image()
                if artifact.bash_output is not None:
                    s.total_bash_outputs += 1
                    self._add_text(artifact.bash_output.command)
                    self._add_text(artifact.bash_output.output)

            if source_label:
                s.source_counts[source_label] = s.source_counts.get(source_label, 0) + 1

    def finish(self) -> UsageSummary:
        """Fill in zero counts for unseen activity kinds and return the summary."""
        for kind in ACTIVITY_KIND_ORDER:
            self.summary.activity_type_counts.setdefault(kind, 0)
        return self.summary


async def collect_usage_summary(
    year: int,
    client: JulesClient,
    concurrency: int | None = None,
    tz: tzinfo | None = None,
) -> UsageSummary:
    """Fetch everything relevant to ``year`` and fold it into a UsageSummary.

    Sessions and sources are listed concurrently; activities are then
    fetched for every session overlapping the year, ``concurrency`` sessions
    at a time.  Any permanent API failure aborts the whole run.
    """
    sessions, sources = await asyncio.gather(client.list_sessions(), client.list_sources())
    aggregator = UsageAggregator(year, sources, tz=tz)
    overlapping = aggregator.add_sessions(sessions)

    async def fetch_activities(session: Session) -> None:
        if not session.name:
            return
        activities = await client.list_activities(session.name)
        aggregator.add_activities(session, activities)

    await run_with_concurrency(
        overlapping,
        concurrency or client.config.concurrency,
        fetch_activities,
    )
    summary = aggregator.finish()
    logger.info(
        f"Collected {summary.total_activities} activities across "
        f"{summary.total_sessions} sessions for {year}"
    )
    return summary
