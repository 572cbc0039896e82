import json

import pytest
import requests

from pr_review_agent.errors import EventPayloadError
from pr_review_agent.models import ReviewComment
from pr_review_agent.stage_6_github_pull_request import (
    GitHubAPI,
    fetch_pull_request_context,
    pull_request_coordinates,
    read_event_payload,
    submit_review_comments,
)


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload
        self.text = text

    def json(self):
        return self._payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")


class FakeSession:
    def __init__(self, responses):
        self.responses = list(responses)
        self.requests = []

    def _record(self, method, url, **kwargs):
        self.requests.append((method, url, kwargs))
        return self.responses.pop(0)

    def get(self, url, **kwargs):
        return self._record("GET", url, **kwargs)

    def post(self, url, **kwargs):
        return self._record("POST", url, **kwargs)


def test_get_pull_request_diff_requests_diff_media_type():
    session = FakeSession([FakeResponse(text="diff --git a/x b/x\n")])
    gh = GitHubAPI("octo", "widgets", "tok", session=session)

    assert gh.get_pull_request_diff(7) == "diff --git a/x b/x\n"
    method, url, kwargs = session.requests[0]
    assert (method, url) == ("GET", "https://api.github.com/repos/octo/widgets/pulls/7")
    assert kwargs["headers"]["Accept"] == "application/vnd.github.v3.diff"
    assert kwargs["headers"]["Authorization"] == "Bearer tok"
    assert gh.headers["Accept"] == "application/vnd.github+json"


def test_create_review_sends_all_comments_in_one_event():
    session = FakeSession([FakeResponse(payload={"id": 99})])
    gh = GitHubAPI("octo", "widgets", "tok", session=session)
    comments = [
        ReviewComment(path="a.py", line=3, body="bug"),
        ReviewComment(path="b.py", line=8, body="leak"),
    ]

    assert submit_review_comments(gh, 7, comments) == {"id": 99}
    assert len(session.requests) == 1
    method, url, kwargs = session.requests[0]
    assert (method, url) == ("POST", "https://api.github.com/repos/octo/widgets/pulls/7/reviews")
    assert kwargs["json"] == {
        "event": "COMMENT",
        "comments": [
            {"path": "a.py", "line": 3, "body": "bug"},
            {"path": "b.py", "line": 8, "body": "leak"},
        ],
    }


def test_http_errors_propagate():
    session = FakeSession([FakeResponse(status_code=404)])
    gh = GitHubAPI("octo", "widgets", "tok", session=session)
    with pytest.raises(requests.HTTPError):
        gh.get_pull_request(7)


def test_fetch_pull_request_context_defaults_missing_text(pull_request_event):
    session = FakeSession([FakeResponse(payload={"title": "Fix", "body": None})])
    gh = GitHubAPI("octo", "widgets", "tok", session=session)

    context = fetch_pull_request_context(gh, pull_request_event)
    assert (context.owner, context.repo, context.number) == ("octo", "widgets", 7)
    assert context.title == "Fix"
    assert context.description == ""


def test_pull_request_coordinates_falls_back_to_pull_request_number():
    event = {
        "repository": {"name": "widgets", "owner": {"login": "octo"}},
        "pull_request": {"number": "12"},
    }
    assert pull_request_coordinates(event) == ("octo", "widgets", 12)


@pytest.mark.parametrize(
    "event",
    [
        {},
        {"number": 1, "repository": {"name": "widgets"}},
        {"number": 1, "repository": {"owner": {"login": "octo"}}},
        {"repository": {"name": "widgets", "owner": {"login": "octo"}}},
        {"number": "seven", "repository": {"name": "widgets", "owner": {"login": "octo"}}},
    ],
)
def test_pull_request_coordinates_rejects_incomplete_events(event):
    with pytest.raises(EventPayloadError):
        pull_request_coordinates(event)


def test_read_event_payload(tmp_path, pull_request_event):
    path = tmp_path / "event.json"
    path.write_text(json.dumps(pull_request_event), encoding="utf-8")
    assert read_event_payload(str(path)) == pull_request_event


def test_read_event_payload_errors(tmp_path):
    with pytest.raises(EventPayloadError):
        read_event_payload(str(tmp_path / "missing.json"))

    path = tmp_path / "list.json"
    path.write_text("[]", encoding="utf-8")
    with pytest.raises(EventPayloadError):
        read_event_payload(str(path))
