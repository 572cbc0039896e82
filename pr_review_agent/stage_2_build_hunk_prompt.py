"""
Stage 2: Build Hunk Prompt - PR Review Agent

PURPOSE:
    Assemble the prompt for ONE hunk of ONE file. The prompt includes:

    1. TASK + OUTPUT SHAPE: review the change and answer with a JSON object
       holding a "reviews" array of {lineNumber, reviewComment} objects
    2. RULES: no praise, no "add a comment here" suggestions, Markdown bodies
    3. PULL REQUEST CONTEXT: title and description, verbatim
    4. CODE CHANGES: the hunk exactly as it appears in the diff, followed by
       every line restated as "<lineNumber> <content>"

CALLED BY:
    review_pipeline_main.py - once per hunk of every non-deleted file.

DESIGN DECISIONS:
    - Line numbers are easy for a model to lose track of when it only reads
      diff syntax. Restating each line with its number is what lets Stage 5
      trust the lineNumber values the model sends back.
    - Added and context lines are numbered on the new side, removed lines on
      the old side (the only number a removed line has).
    - The prompt is a pure function of its arguments: no clock, no randomness,
      no global state. The same hunk always produces the same prompt.

COST:
    $0 - Pure string assembly. No API calls.
"""

from .models import Hunk, PullRequestContext

NO_DESCRIPTION = "No description provided"


def build_hunk_prompt(file_path: str, hunk: Hunk, pr_context: PullRequestContext) -> str:
    """
    Render the review prompt for a single hunk.

    Args:
        file_path: Destination path of the file the hunk belongs to
        hunk: The hunk to review
        pr_context: Title/description of the pull request under review

    Returns:
        The complete prompt string ready to send to the model.
    """
    numbered_lines = _format_numbered_changes(hunk)
    description = pr_context.description or NO_DESCRIPTION

    prompt = f"""You are a code reviewer. Review the following code changes and provide feedback.

IMPORTANT: You must respond with ONLY a valid JSON object in this exact format:
{{"reviews": [{{"lineNumber": <line_number>, "reviewComment": "<review comment>"}}]}}

Rules:
- If there are issues to address, include them in the "reviews" array
- If the code looks good, return: {{"reviews": []}}
- Do not give positive comments or compliments
- Do not suggest adding comments to the code
- Write review comments in GitHub Markdown format
- Each review must have a "lineNumber" (number) and "reviewComment" (string)

Pull Request Context:
Title: {pr_context.title}
Description: {description}

File: {file_path}

Code Changes:
```diff
{hunk.raw_content}
{numbered_lines}
```

Respond with ONLY the JSON object, no other text:"""

    return prompt


def _format_numbered_changes(hunk: Hunk) -> str:
    return "\n".join(
        f"{change.display_line} {change.content}" for change in hunk.changes
    )
