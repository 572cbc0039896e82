"""
Review Pipeline Main - PR Review Agent

PURPOSE:
    Drive one review run end to end inside a GitHub Actions runner:

      event payload -> PR context + diff (Stage 6)
      -> parse + exclude (Stage 1)
      -> for each file, for each hunk:
             build prompt (Stage 2) -> model call (Stage 3)
             -> interpret (Stage 4) -> map comments (Stage 5)
      -> submit all comments as one review (Stage 6)

CONCURRENCY:
    None. Hunks are processed one at a time in file order, then hunk order;
    each model call completes before the next prompt is built. The only state
    shared across hunks is the append-only comment list.

ERROR HANDLING:
    - Fatal (exit code 1, nothing submitted): bad configuration, unreadable
      event payload, PR metadata or diff retrieval failure, empty or
      unparseable diff.
    - Skip (exit code 0, nothing done): the event action is not one we review.
    - Local to one hunk (logged, zero comments, loop continues): the model
      call raised, or its answer could not be interpreted.
    - Data quality (dropped quietly): deleted files, unusable line numbers.
"""

import logging
import sys
from typing import Optional

import requests

from .config import ActionConfig, load_action_config
from .errors import DiffRetrievalError, ReviewAgentError
from .models import PullRequestContext
from .stage_1_parse_diff import filter_excluded_files, parse_unified_diff
from .stage_2_build_hunk_prompt import build_hunk_prompt
from .stage_3_request_model_review import (
    DEFAULT_MAX_OUTPUT_TOKENS,
    ModelClient,
    build_model_client,
    request_model_review,
)
from .stage_4_interpret_response import interpret_model_response
from .stage_5_map_review_comments import map_review_comments
from .stage_6_github_pull_request import (
    GitHubAPI,
    fetch_pull_request_context,
    pull_request_coordinates,
    read_event_payload,
    submit_review_comments,
)

logger = logging.getLogger(__name__)

SUPPORTED_ACTIONS = ("opened", "synchronize")

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def analyze_file_changes(
    file_changes: list,
    pr_context: PullRequestContext,
    model_client: ModelClient,
    model: str,
    max_output_tokens: int = DEFAULT_MAX_OUTPUT_TOKENS,
    restrict_to_hunk: bool = False,
) -> list:
    """
    Review every hunk of every non-deleted file and collect the comments.

    Returns:
        list[ReviewComment] in file-then-hunk encounter order.
    """
    comments = []

    for file_change in file_changes:
        if file_change.is_deleted:
            continue
        logger.info("Analyzing file: %s", file_change.path)

        for hunk in file_change.hunks:
            prompt = build_hunk_prompt(file_change.path, hunk, pr_context)

            try:
                response_text = request_model_review(
                    model_client, prompt, model, max_output_tokens
                )
            except Exception as e:
                # isolated to this hunk; the SDKs raise many unrelated types
                logger.error("Model call failed for %s: %s", file_change.path, e)
                continue

            raw_comments = interpret_model_response(response_text)
            if raw_comments is None:
                continue

            new_comments = map_review_comments(
                file_change, hunk, raw_comments, restrict_to_hunk=restrict_to_hunk
            )
            if new_comments:
                logger.info(
                    "Generated %d comments for %s", len(new_comments), file_change.path
                )
                comments.extend(new_comments)

    logger.info("Total comments generated: %d", len(comments))
    return comments


def is_supported_event(event: dict) -> bool:
    return event.get("action") in SUPPORTED_ACTIONS


def run_review(
    config: ActionConfig,
    event: dict,
    gh: GitHubAPI,
    model_client: ModelClient,
) -> dict:
    """
    Execute one review run against already-constructed collaborators.

    Returns:
        dict with keys:
            - 'status' (str): 'submitted', 'no_comments' or 'skipped'
            - 'comments' (list[ReviewComment]): what was (or would be) posted
            - 'files_total' (int): files in the diff
            - 'files_analyzed' (int): files left after exclusion

    Raises:
        ReviewAgentError, requests.RequestException: fatal conditions.
    """
    action = event.get("action")
    logger.info("Event action: %s", action)
    if not is_supported_event(event):
        logger.info("Unsupported event: %s", action)
        return {"status": "skipped", "comments": [], "files_total": 0, "files_analyzed": 0}

    pr_context = fetch_pull_request_context(gh, event)

    logger.info("Fetching full PR diff for PR #%d...", pr_context.number)
    diff_text = _fetch_diff(gh, pr_context.number)

    file_changes = parse_unified_diff(diff_text)
    filtered = filter_excluded_files(file_changes, config.exclude_patterns)
    logger.info(
        "Found %d files in diff, %d after filtering", len(file_changes), len(filtered)
    )
    logger.info("Files to analyze: %s", ", ".join(f.path or "/dev/null" for f in filtered))

    comments = analyze_file_changes(
        filtered,
        pr_context,
        model_client,
        config.model,
        max_output_tokens=config.max_output_tokens,
        restrict_to_hunk=config.restrict_to_hunk,
    )

    if comments:
        submit_review_comments(gh, pr_context.number, comments)
        status = "submitted"
    else:
        logger.info("No issues found - code looks good!")
        status = "no_comments"

    return {
        "status": status,
        "comments": comments,
        "files_total": len(file_changes),
        "files_analyzed": len(filtered),
    }


def configure_logging(level: str = "INFO") -> None:
    """Send log records to stdout (the Actions log) unless a handler is already set."""
    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))


def main(environ: Optional[dict] = None) -> int:
    """Console entry point. Returns the process exit code."""
    configure_logging()
    try:
        config = load_action_config(environ)
        configure_logging(config.log_level)

        event = read_event_payload(config.event_path)
        if not is_supported_event(event):
            logger.info("Unsupported event: %s", event.get("action"))
            return 0

        owner, repo, _ = pull_request_coordinates(event)
        gh = GitHubAPI(owner, repo, config.github_token)
        model_client = build_model_client(config.model_provider, config.api_key)

        run_review(config, event, gh, model_client)
    except (ReviewAgentError, requests.RequestException) as e:
        logger.error("Error: %s", e)
        return 1
    except Exception:
        logger.exception("Unexpected error during review run")
        return 1
    return 0


# ---------------------------------------------------------------------------
# PRIVATE HELPER FUNCTIONS
# ---------------------------------------------------------------------------


def _fetch_diff(gh: GitHubAPI, pull_number: int) -> str:
    try:
        diff_text = gh.get_pull_request_diff(pull_number)
    except requests.RequestException as e:
        raise DiffRetrievalError(f"Error fetching diff: {e}") from e
    if not diff_text or not diff_text.strip():
        raise DiffRetrievalError("No diff found")
    logger.info("Retrieved diff, size: %d characters", len(diff_text))
    return diff_text


if __name__ == "__main__":
    raise SystemExit(main())
