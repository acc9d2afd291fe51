"""Typed records decoded from Jules API responses."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import ClassVar


class ActivityKind(str, Enum):
    """Activity variants; values are the API payload field names."""

    AGENT_MESSAGED = "agentMessaged"
    USER_MESSAGED = "userMessaged"
    PLAN_GENERATED = "planGenerated"
    PLAN_APPROVED = "planApproved"
    PROGRESS_UPDATED = "progressUpdated"
    SESSION_COMPLETED = "sessionCompleted"
    SESSION_FAILED = "sessionFailed"
    UNKNOWN = "unknown"


# Detection order when a raw record carries more than one payload field.
ACTIVITY_KIND_ORDER: tuple[ActivityKind, ...] = (
    ActivityKind.AGENT_MESSAGED,
    ActivityKind.USER_MESSAGED,
    ActivityKind.PLAN_GENERATED,
    ActivityKind.PLAN_APPROVED,
    ActivityKind.PROGRESS_UPDATED,
    ActivityKind.SESSION_COMPLETED,
    ActivityKind.SESSION_FAILED,
)

ACTIVITY_LABELS: dict[ActivityKind, str] = {
    ActivityKind.AGENT_MESSAGED: "Agent Message",
    ActivityKind.USER_MESSAGED: "User Message",
    ActivityKind.PLAN_GENERATED: "Plan Generated",
    ActivityKind.PLAN_APPROVED: "Plan Approved",
    ActivityKind.PROGRESS_UPDATED: "Progress Update",
    ActivityKind.SESSION_COMPLETED: "Session Completed",
    ActivityKind.SESSION_FAILED: "Session Failed",
    ActivityKind.UNKNOWN: "Other",
}


# ── Activity payload variants ──────────────────────────────────────────


@dataclass(frozen=True)
class AgentMessaged:
    kind: ClassVar[ActivityKind] = ActivityKind.AGENT_MESSAGED
    agent_message: str | None = None


@dataclass(frozen=True)
class UserMessaged:
    kind: ClassVar[ActivityKind] = ActivityKind.USER_MESSAGED
    user_message: str | None = None


@dataclass(frozen=True)
class PlanGenerated:
    kind: ClassVar[ActivityKind] = ActivityKind.PLAN_GENERATED
    plan_id: str | None = None


@dataclass(frozen=True)
class PlanApproved:
    kind: ClassVar[ActivityKind] = ActivityKind.PLAN_APPROVED
    plan_id: str | None = None


@dataclass(frozen=True)
class ProgressUpdated:
    kind: ClassVar[ActivityKind] = ActivityKind.PROGRESS_UPDATED
    title: str | None = None
    description: str | None = None


@dataclass(frozen=True)
class SessionCompleted:
    kind: ClassVar[ActivityKind] = ActivityKind.SESSION_COMPLETED


@dataclass(frozen=True)
class SessionFailed:
    kind: ClassVar[ActivityKind] = ActivityKind.SESSION_FAILED
    reason: str | None = None


ActivityPayload = (
    AgentMessaged
    | UserMessaged
    | PlanGenerated
    | PlanApproved
    | ProgressUpdated
    | SessionCompleted
    | SessionFailed
)


# ── Artifacts ──────────────────────────────────────────────────────────


@dataclass(frozen=True)
class ChangeSet:
    source: str | None = None
    unidiff_patch: str | None = None
    base_commit_id: str | None = None
    suggested_commit_message: str | None = None


@dataclass(frozen=True)
class Media:
    data: str | None = None
    mime_type: str | None = None


@dataclass(frozen=True)
class BashOutput:
    command: str | None = None
    output: str | None = None
    exit_code: int | None = None


@dataclass(frozen=True)
class Artifact:
    """By-product of an activity; any combination of the three may be set."""

    change_set: ChangeSet | None = None
    media: Media | None = None
    bash_output: BashOutput | None = None


@dataclass(frozen=True)
class Activity:
    """A single timestamped event within a session's timeline."""

    name: str | None = None
    id: str | None = None
    create_time: datetime | None = None
    originator: str | None = None
    description: str | None = None
    payload: ActivityPayload | None = None
    artifacts: tuple[Artifact, ...] = ()

    @property
    def kind(self) -> ActivityKind:
        return self.payload.kind if self.payload is not None else ActivityKind.UNKNOWN


# ── Sessions & sources ─────────────────────────────────────────────────


@dataclass(frozen=True)
class PullRequest:
    url: str | None = None
    title: str | None = None
    description: str | None = None


@dataclass(frozen=True)
class Session:
    """One unit of agent work."""

    name: str | None = None
    id: str | None = None
    title: str | None = None
    prompt: str | None = None
    require_plan_approval: bool = False
    automation_mode: str | None = None
    create_time: datetime | None = None
    update_time: datetime | None = None
    state: str | None = None
    url: str | None = None
    source: str | None = None
    starting_branch: str | None = None
    pull_requests: tuple[PullRequest, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class Source:
    """A repository/integration sessions can act on."""

    name: str | None = None
    id: str | None = None
    owner: str | None = None
    repo: str | None = None
    is_private: bool | None = None
    default_branch: str | None = None
