"""Jules API JSON -> typed record decoding.

Raw API objects are probed exactly once, here; everything downstream works
with the dataclasses from :mod:`jules_wrapped.client.models`.
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Any

from jules_wrapped.client.models import (
    ACTIVITY_KIND_ORDER,
    Activity,
    ActivityKind,
    ActivityPayload,
    AgentMessaged,
    Artifact,
    BashOutput,
    ChangeSet,
    Media,
    PlanApproved,
    PlanGenerated,
    ProgressUpdated,
    PullRequest,
    Session,
    SessionCompleted,
    SessionFailed,
    Source,
    UserMessaged,
)

# RFC 3339 timestamps from Google APIs carry up to nanosecond precision.
_FRACTION_RE = re.compile(r"\.(\d+)")


def _str(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def _dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def parse_time(value: Any) -> datetime | None:
    """Parse an RFC 3339 timestamp into an aware datetime.

    Timestamps without an offset are taken as local time.  Anything that
    does not parse yields ``None``.
    """
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    text = _FRACTION_RE.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    return parsed if parsed.tzinfo is not None else parsed.astimezone()


# ── Sessions & sources ─────────────────────────────────────────────────


def parse_session(raw: dict[str, Any]) -> Session:
    source_context = _dict(raw.get("sourceContext"))
    repo_context = _dict(source_context.get("githubRepoContext"))

    pull_requests: list[PullRequest] = []
    for output in _list(raw.get("outputs")):
        pr = _dict(output).get("pullRequest")
        if isinstance(pr, dict):
            pull_requests.append(
                PullRequest(
                    url=_str(pr.get("url")),
                    title=_str(pr.get("title")),
                    description=_str(pr.get("description")),
                )
            )

    return Session(
        name=_str(raw.get("name")),
        id=_str(raw.get("id")),
        title=_str(raw.get("title")),
        prompt=_str(raw.get("prompt")),
        require_plan_approval=raw.get("requirePlanApproval") is True,
        automation_mode=_str(raw.get("automationMode")) or None,
        create_time=parse_time(raw.get("createTime")),
        update_time=parse_time(raw.get("updateTime")),
        state=_str(raw.get("state")),
        url=_str(raw.get("url")),
        source=_str(source_context.get("source")),
        starting_branch=_str(repo_context.get("startingBranch")),
        pull_requests=tuple(pull_requests),
    )


def parse_source(raw: dict[str, Any]) -> Source:
    repo = _dict(raw.get("githubRepo"))
    is_private = repo.get("isPrivate")
    return Source(
        name=_str(raw.get("name")),
        id=_str(raw.get("id")),
        owner=_str(repo.get("owner")),
        repo=_str(repo.get("repo")),
        is_private=is_private if isinstance(is_private, bool) else None,
        default_branch=_str(_dict(repo.get("defaultBranch")).get("displayName")),
    )


# ── Activities ─────────────────────────────────────────────────────────


def _build_payload(kind: ActivityKind, body: dict[str, Any]) -> ActivityPayload:
    match kind:
        case ActivityKind.AGENT_MESSAGED:
            return AgentMessaged(agent_message=_str(body.get("agentMessage")))
        case ActivityKind.USER_MESSAGED:
            return UserMessaged(user_message=_str(body.get("userMessage")))
        case ActivityKind.PLAN_GENERATED:
            return PlanGenerated(plan_id=_str(_dict(body.get("plan")).get("id")))
        case ActivityKind.PLAN_APPROVED:
            return PlanApproved(plan_id=_str(body.get("planId")))
        case ActivityKind.PROGRESS_UPDATED:
            return ProgressUpdated(
                title=_str(body.get("title")), description=_str(body.get("description"))
            )
        case ActivityKind.SESSION_COMPLETED:
            return SessionCompleted()
        case _:
            return SessionFailed(reason=_str(body.get("reason")))


def parse_payload(raw: dict[str, Any]) -> ActivityPayload | None:
    """Pick the first recognised payload field; ``None`` means unknown."""
    for kind in ACTIVITY_KIND_ORDER:
        if kind.value in raw:
            return _build_payload(kind, _dict(raw[kind.value]))
    return None


def parse_artifact(raw: dict[str, Any]) -> Artifact:
    change_set = media = bash_output = None

    cs = raw.get("changeSet")
    if isinstance(cs, dict):
        patch = _dict(cs.get("gitPatch"))
        change_set = ChangeSet(
            source=_str(cs.get("source")),
            unidiff_patch=_str(patch.get("unidiffPatch")),
            base_commit_id=_str(patch.get("baseCommitId")),
            suggested_commit_message=_str(patch.get("suggestedCommitMessage")),
        )

    md = raw.get("media")
    if isinstance(md, dict):
        media = Media(data=_str(md.get("data")), mime_type=_str(md.get("mimeType")))

    bo = raw.get("bashOutput")
    if isinstance(bo, dict):
        exit_code = bo.get("exitCode")
        bash_output = BashOutput(
            command=_str(bo.get("command")),
            output=_str(bo.get("output")),
            exit_code=exit_code if isinstance(exit_code, int) else None,
        )

    return Artifact(change_set=change_set, media=media, bash_output=bash_output)


def parse_activity(raw: dict[str, Any]) -> Activity:
    return Activity(
        name=_str(raw.get("name")),
        id=_str(raw.get("id")),
        create_time=parse_time(raw.get("createTime")),
        originator=_str(raw.get("originator")),
        description=_str(raw.get("description")),
        payload=parse_payload(raw),
        artifacts=tuple(
            parse_artifact(a) for a in _list(raw.get("artifacts")) if isinstance(a, dict)
        ),
    )
