"""
Stage 6: GitHub Pull Request - PR Review Agent

PURPOSE:
    Everything the pipeline needs from GitHub, at both ends of a run:

    BEFORE the review:
      1. Read the Actions event payload (owner, repo, PR number, action)
      2. Fetch the pull request title and description
      3. Fetch the full unified diff of the pull request head

    AFTER the review:
      4. Submit every accumulated ReviewComment as ONE review event
         (event type "COMMENT")

CALLED BY:
    review_pipeline_main.py - at startup (1-3) and at the very end (4).

DEPENDS ON:
    - GitHub REST API (via requests library)
    - The GITHUB_TOKEN provided to the action (needs pull-requests:write)

DESIGN DECISIONS:
    - Failures here are fatal to the run. Every call does raise_for_status(),
      and the orchestrator lets the HTTPError abort the run before anything is
      submitted.
    - The diff is requested with the "diff" media type on the pulls endpoint,
      which always returns the full diff against the base branch, not just the
      latest push.
    - The review is submitted exactly once with all comments, never one
      request per comment, so the author gets a single notification.

COST:
    $0 - 3 GitHub API calls per run (2 reads, at most 1 write).
"""

import json
import logging
from typing import Optional

import requests

from .errors import EventPayloadError
from .models import PullRequestContext

logger = logging.getLogger(__name__)

GITHUB_API_URL = "https://api.github.com"
REVIEW_EVENT_COMMENT = "COMMENT"


# ---------------------------------------------------------------------------
# GITHUB API HELPER CLASS
# ---------------------------------------------------------------------------
# Wraps the GitHub REST API calls needed by the pipeline. The session can be
# swapped for a fake in tests; in production it is a plain requests.Session.
# ---------------------------------------------------------------------------


class GitHubAPI:
    """
    Thin wrapper around GitHub REST API for the operations we need.

    The token needs:
    - pull-requests:read (PR metadata and diff)
    - pull-requests:write (create the review)
    """

    def __init__(
        self,
        owner: str,
        repo: str,
        token: str,
        session: Optional[requests.Session] = None,
        api_url: str = GITHUB_API_URL,
    ):
        self.owner = owner
        self.repo = repo
        self.base_url = f"{api_url.rstrip('/')}/repos/{owner}/{repo}"
        self.session = session if session is not None else requests.Session()
        self.headers = {
            "Authorization": f"Bearer {token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }

    def get_pull_request(self, pull_number: int) -> dict:
        """Get the pull request JSON (title, body, head, ...)."""
        url = f"{self.base_url}/pulls/{pull_number}"
        resp = self.session.get(url, headers=self.headers, timeout=30)
        resp.raise_for_status()
        return resp.json()

    def get_pull_request_diff(self, pull_number: int) -> str:
        """Get the full unified diff of the pull request as text."""
        url = f"{self.base_url}/pulls/{pull_number}"
        headers = dict(self.headers, Accept="application/vnd.github.v3.diff")
        resp = self.session.get(url, headers=headers, timeout=30)
        resp.raise_for_status()
        return resp.text

    def create_review(self, pull_number: int, comments: list, event: str = REVIEW_EVENT_COMMENT) -> dict:
        """Create one review on the pull request holding all inline comments."""
        url = f"{self.base_url}/pulls/{pull_number}/reviews"
        data = {
            "event": event,
            "comments": [c.to_api_dict() for c in comments],
        }
        resp = self.session.post(url, headers=self.headers, json=data, timeout=30)
        resp.raise_for_status()
        return resp.json()


# ---------------------------------------------------------------------------
# PIPELINE ENTRY POINTS
# ---------------------------------------------------------------------------


def read_event_payload(event_path: str) -> dict:
    """
    Load the GitHub Actions event payload from GITHUB_EVENT_PATH.

    Raises:
        EventPayloadError: the file is missing or is not a JSON object.
    """
    try:
        with open(event_path, "r", encoding="utf-8") as f:
            payload = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise EventPayloadError(f"Cannot read event payload at {event_path}: {e}") from e

    if not isinstance(payload, dict):
        raise EventPayloadError("Event payload is not a JSON object")
    return payload


def pull_request_coordinates(event: dict) -> tuple:
    """
    Extract (owner, repo, number) from a pull_request event payload.

    Raises:
        EventPayloadError: any of the three is missing.
    """
    repository = event.get("repository") or {}
    owner = (repository.get("owner") or {}).get("login")
    repo = repository.get("name")
    number = event.get("number")
    if number is None:
        number = (event.get("pull_request") or {}).get("number")

    if not owner or not repo or number is None:
        raise EventPayloadError(
            "Event payload does not identify a pull request "
            "(need repository.owner.login, repository.name and number)"
        )
    try:
        number = int(number)
    except (TypeError, ValueError) as e:
        raise EventPayloadError(f"Invalid pull request number: {number!r}") from e
    return owner, repo, number


def fetch_pull_request_context(gh: GitHubAPI, event: dict) -> PullRequestContext:
    """Read the PR coordinates from the event and fetch its title/description."""
    owner, repo, number = pull_request_coordinates(event)
    pr = gh.get_pull_request(number)
    return PullRequestContext(
        owner=owner,
        repo=repo,
        number=number,
        title=pr.get("title") or "",
        description=pr.get("body") or "",
    )


def submit_review_comments(gh: GitHubAPI, pull_number: int, comments: list) -> dict:
    """Post all comments as a single COMMENT review. Callers skip empty lists."""
    logger.info("Posting %d review comments...", len(comments))
    result = gh.create_review(pull_number, comments, event=REVIEW_EVENT_COMMENT)
    logger.info("Review comments posted successfully")
    return result
