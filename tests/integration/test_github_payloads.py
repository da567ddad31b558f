"""
record-mapper integration tests over REST-API-shaped payloads

File: tests/integration/test_github_payloads.py

Purpose
- Decode realistic issue payloads end to end: nested records, record lists,
  key paths, type-level date formatters, string enums, and fields renamed
  away from reserved words.
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import Any

import pytest

from record_mapper import Mapper, StrictDecodeError, TypeRegistry, Url

from . import GHIssue, GHLabel, GHMilestone, GHUser, IssueState

_ISSUE_JSON = """
{
  "number": 1347,
  "title": "Found a bug",
  "state": "closed",
  "locked": false,
  "comments": 3,
  "body": "I'm having a problem with this.",
  "created_at": "2011-04-22T13:33:48Z",
  "closed_at": null,
  "user": {
    "login": "octocat",
    "id": 1,
    "html_url": "https://github.com/octocat",
    "type": "User",
    "site_admin": false
  },
  "labels": [
    {"id": 208045946, "name": "bug", "color": "f29513", "default": true},
    {"id": 208045947, "name": "help wanted", "color": "008672"}
  ],
  "assignees": [
    {"login": "hubot", "id": 2, "type": "Bot"},
    {"login": "monalisa", "id": 3, "type": "User", "site_admin": true}
  ],
  "milestone": {
    "number": 1,
    "title": "v1.0",
    "state": "open",
    "open_issues": 4,
    "creator": {"login": "octocat", "id": 1, "type": "User"},
    "created_at": "2011-04-10T20:09:31Z",
    "due_on": "2012-10-09T23:39:01Z"
  }
}
"""


@pytest.fixture
def mapper() -> Mapper:
    return Mapper(registry=TypeRegistry())


@pytest.fixture
def issue_payload() -> dict[str, Any]:
    payload = json.loads(_ISSUE_JSON)
    assert isinstance(payload, dict)
    return payload


def test_issue_decodes_end_to_end(mapper: Mapper, issue_payload: dict[str, Any]) -> None:
    report = mapper.decode_report(GHIssue, issue_payload)
    issue = report.record

    assert report.ok, report.issues
    assert issue.number == 1347
    assert issue.state is IssueState.CLOSED
    assert issue.created_at == datetime(2011, 4, 22, 13, 33, 48, tzinfo=UTC)
    assert issue.closed_at is None
    assert issue.user == GHUser(
        login="octocat",
        id=1,
        html_url=Url("https://github.com/octocat"),
        user_type="User",
    )
    assert issue.labels == [
        GHLabel(name="bug", color="f29513", default=True),
        GHLabel(name="help wanted", color="008672"),
    ]
    assert [user.login for user in issue.assignees] == ["hubot", "monalisa"]
    assert issue.assignees[1].site_admin is True
    assert issue.assignees[0].user_type == "Bot"
    assert issue.milestone_creator_login == "octocat"


def test_nested_record_uses_its_own_date_formatter(
    mapper: Mapper, issue_payload: dict[str, Any]
) -> None:
    milestone = mapper.decode(GHIssue, issue_payload).milestone

    assert isinstance(milestone, GHMilestone)
    assert milestone.state is IssueState.OPEN
    assert milestone.open_issues == 4
    assert milestone.creator is not None and milestone.creator.login == "octocat"
    assert milestone.due_on == datetime(2012, 10, 9, 23, 39, 1, tzinfo=UTC)


def test_issue_list_keeps_order_and_isolates_failures(
    mapper: Mapper, issue_payload: dict[str, Any]
) -> None:
    broken = dict(issue_payload, number="#12", state="reopened")
    report = mapper.decode_list_report(GHIssue, [issue_payload, broken, {"number": 9}])

    assert [issue.number for issue in report.record] == [1347, None, 9]
    assert report.record[1].state is IssueState.OPEN
    assert report.record[1].title == "Found a bug"
    assert [issue.path for issue in report.issues] == ["GHIssue[1].number", "GHIssue[1].state"]


def test_unsigned_width_and_date_failures_are_reported(
    mapper: Mapper, issue_payload: dict[str, Any]
) -> None:
    issue_payload["milestone"]["open_issues"] = -1
    issue_payload["created_at"] = "2011-04-22 13:33:48"

    with pytest.raises(StrictDecodeError) as excinfo:
        mapper.decode(GHIssue, issue_payload, strict=True)

    assert [issue.path for issue in excinfo.value.issues] == [
        "GHIssue.milestone.open_issues",
        "GHIssue.created_at",
    ]


def test_encoded_issue_round_trips_through_json(
    mapper: Mapper, issue_payload: dict[str, Any]
) -> None:
    issue = mapper.decode(GHIssue, issue_payload)

    encoded = mapper.encode(issue)
    text = json.dumps(encoded, sort_keys=True)

    assert encoded["state"] == "closed"
    assert encoded["created_at"] == "2011-04-22T13:33:48Z"
    assert encoded["user"]["user_type"] == "User"  # type: ignore[index]
    assert "closed_at" not in encoded
    assert '"type"' not in text
    # Renamed fields are emitted under their declared names, so the key path
    # no longer resolves when the encoding is decoded again.
    again = mapper.decode(GHIssue, json.loads(text))
    assert again.user is not None and again.user.user_type is None
    assert again.labels == issue.labels
    assert again.milestone is not None and issue.milestone is not None
    assert again.milestone.due_on == issue.milestone.due_on
    assert again.milestone_creator_login == "octocat"


def test_update_on_frozen_records(mapper: Mapper) -> None:
    user = GHUser(login="octocat", id=1)

    updated = mapper.update(user, {"site_admin": "yes", "type": "Organization"})

    assert updated == GHUser(login="octocat", id=1, site_admin=True, user_type="Organization")
    assert user.site_admin is False
