'''
Unit tests for the pull request and review handlers.
'''

import logging

import pytest

from conftest import FakeClient, make_event, not_found
from workflow_guard.config import DEFAULT_CLOSE_COMMENT
from workflow_guard.handlers import gate_review, reinstate_workflows, validate_commits
from workflow_guard.model import EventKind


def test_reinstate_enables_disabled_workflow_and_comments():
    client = FakeClient(workflows=[
        {"id": 1, "name": "Lint", "state": "active"},
        {"id": 2, "name": "CI", "state": "disabled_manually"},
    ])

    reinstate_workflows(client, make_event(number=42))

    assert client.calls == [
        ("list_workflows", "acme/widgets"),
        ("enable_workflow", "acme/widgets", 2),
        ("create_comment", 42, "Disabled workflow CI was enabled. Please don't disable required workflows."),
    ]


def test_reinstate_without_disabled_workflows_only_lists():
    client = FakeClient(workflows=[
        {"id": 1, "name": "Lint", "state": "active"},
        {"id": 2, "name": "Nightly", "state": "disabled_inactivity"},
    ])

    reinstate_workflows(client, make_event())

    assert client.names() == ["list_workflows"]


@pytest.mark.parametrize("disabled", [0, 1, 3, 7])
def test_reinstate_handles_every_disabled_workflow(disabled):
    workflows = [{"id": i, "name": f"wf-{i}", "state": "disabled_manually"} for i in range(disabled)]
    workflows.insert(0, {"id": 100, "name": "ok", "state": "active"})
    client = FakeClient(workflows=workflows)

    reinstate_workflows(client, make_event())

    enabled = [call[2] for call in client.calls if call[0] == "enable_workflow"]
    assert enabled == list(range(disabled))
    assert client.names().count("create_comment") == disabled
    # each enable is directly followed by its comment
    names = client.names()[1:]
    assert names == ["enable_workflow", "create_comment"] * disabled


def test_reinstate_uses_comment_template():
    client = FakeClient(workflows=[{"id": 5, "name": "Build", "state": "disabled_manually"}])

    reinstate_workflows(client, make_event(number=3), comment="{name} is back on")

    assert client.calls[-1] == ("create_comment", 3, "Build is back on")


def test_reinstate_logs_404_and_stops(caplog):
    client = FakeClient(fail_on={"list_workflows": not_found()})

    with caplog.at_level(logging.ERROR):
        reinstate_workflows(client, make_event())

    assert client.names() == ["list_workflows"]
    assert "Status: 404" in caplog.text
    assert "Not Found" in caplog.text


def test_reinstate_aborts_after_failed_enable():
    client = FakeClient(
        workflows=[
            {"id": 1, "name": "A", "state": "disabled_manually"},
            {"id": 2, "name": "B", "state": "disabled_manually"},
        ],
        fail_on={"enable_workflow": not_found()},
    )

    reinstate_workflows(client, make_event())

    assert client.names() == ["list_workflows", "enable_workflow"]


def test_reinstate_is_not_idempotent():
    client = FakeClient(workflows=[{"id": 2, "name": "CI", "state": "disabled_manually"}])

    reinstate_workflows(client, make_event())
    reinstate_workflows(client, make_event())

    assert client.names().count("enable_workflow") == 2


def test_gate_review_closes_pull_request():
    client = FakeClient(workflows=[{"id": 3, "name": "Approval", "state": "disabled_manually"}])

    gate_review(client, make_event(EventKind.PULL_REQUEST_REVIEW_SUBMITTED, number=7))

    assert client.calls == [
        ("list_workflows", "acme/widgets"),
        ("create_comment", 7, DEFAULT_CLOSE_COMMENT),
        ("update_pull_request_state", 7, "closed"),
    ]


def test_gate_review_stops_at_first_disabled_workflow():
    client = FakeClient(workflows=[
        {"id": 1, "name": "ok", "state": "active"},
        {"id": 2, "name": "first", "state": "disabled_manually"},
        {"id": 3, "name": "second", "state": "disabled_manually"},
    ])

    gate_review(client, make_event(EventKind.PULL_REQUEST_REVIEW_EDITED))

    assert client.names().count("create_comment") == 1
    assert client.names().count("update_pull_request_state") == 1
    assert "enable_workflow" not in client.names()


def test_gate_review_leaves_pull_request_open_when_nothing_disabled():
    client = FakeClient(workflows=[{"id": 1, "name": "ok", "state": "active"}])

    gate_review(client, make_event(EventKind.PULL_REQUEST_REVIEW_DISMISSED))

    assert client.names() == ["list_workflows"]


def test_gate_review_does_not_close_when_comment_fails(caplog):
    client = FakeClient(
        workflows=[{"id": 1, "name": "x", "state": "disabled_manually"}],
        fail_on={"create_comment": not_found()},
    )

    gate_review(client, make_event(EventKind.PULL_REQUEST_REVIEW_SUBMITTED))

    assert "update_pull_request_state" not in client.names()
    assert "Status: 404" in caplog.text


def test_validate_commits_fetches_commits_and_runs_checks():
    client = FakeClient(commits=[{"sha": "abc", "message": "fix"}, {"sha": "def"}])
    seen = []

    validate_commits(client, make_event(number=9), checks=[lambda event, commits: seen.append((event.pull_request.number, [c.sha for c in commits]))])

    assert client.calls == [("list_commits", 9)]
    assert seen == [(9, ["abc", "def"])]


def test_validate_commits_without_checks_only_fetches():
    client = FakeClient(commits=[{"sha": "abc"}])

    validate_commits(client, make_event())

    assert client.names() == ["list_commits"]


def test_validate_commits_logs_api_error(caplog):
    client = FakeClient(fail_on={"list_commits": not_found()})

    validate_commits(client, make_event())

    assert "Status: 404" in caplog.text


def test_unexpected_error_escapes_handler():
    client = FakeClient(fail_on={"list_workflows": RuntimeError("boom")})

    with pytest.raises(RuntimeError):
        reinstate_workflows(client, make_event())


def test_gate_review_logs_review_state(caplog):
    client = FakeClient(workflows=[{"id": 1, "name": "ok", "state": "active"}])
    event = make_event(EventKind.PULL_REQUEST_REVIEW_SUBMITTED, number=7).model_copy(
        update={"review_state": "approved"}
    )

    with caplog.at_level(logging.INFO):
        gate_review(client, event)

    assert "review state: approved" in caplog.text
