import pytest

from pr_review_agent.models import PullRequestContext


@pytest.fixture
def pr_context():
    return PullRequestContext(
        owner="octo",
        repo="widgets",
        number=7,
        title="Add JSON logging",
        description="Switches the app to structured output.",
    )


@pytest.fixture
def pull_request_event():
    return {
        "action": "opened",
        "number": 7,
        "repository": {"name": "widgets", "owner": {"login": "octo"}},
    }
