"""
record-mapper integration test package.

Purpose
- Record declarations shaped after public REST API payloads, shared by the
  integration tests.
"""

from __future__ import annotations

from dataclasses import field
from datetime import UTC, datetime
from enum import IntEnum
from typing import Final

from record_mapper import PatternDateFormatter, UInt32, Url, record, string_enum

GITHUB_DATES: Final = PatternDateFormatter("%Y-%m-%dT%H:%M:%SZ", timezone=UTC)


@string_enum(strings={0: "open", 1: "closed"})
class IssueState(IntEnum):
    OPEN = 0
    CLOSED = 1


@record(key_paths={"user_type": "type"}, frozen=True)
class GHUser:
    login: str | None = None
    id: int | None = None
    html_url: Url | None = None
    user_type: str | None = None
    site_admin: bool = False


@record(frozen=True)
class GHLabel:
    name: str | None = None
    color: str | None = None
    default: bool = False


@record(date_formatter=GITHUB_DATES)
class GHMilestone:
    number: int | None = None
    title: str | None = None
    state: IssueState = IssueState.OPEN
    creator: GHUser | None = None
    open_issues: UInt32 | None = None
    created_at: datetime | None = None
    due_on: datetime | None = None


@record(
    key_paths={"milestone_creator_login": "milestone.creator.login"},
    date_formatter=GITHUB_DATES,
)
class GHIssue:
    number: int | None = None
    title: str | None = None
    state: IssueState = IssueState.OPEN
    user: GHUser | None = None
    labels: list[GHLabel] = field(default_factory=list)
    assignees: tuple[GHUser, ...] = ()
    milestone: GHMilestone | None = None
    milestone_creator_login: str | None = None
    comments: int = 0
    locked: bool = False
    created_at: datetime | None = None
    closed_at: datetime | None = None
    body: str | None = None


__all__ = ["GHIssue", "GHLabel", "GHMilestone", "GHUser", "GITHUB_DATES", "IssueState"]
