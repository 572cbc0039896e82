from dataclasses import replace

from pr_review_agent.stage_1_parse_diff import parse_unified_diff
from pr_review_agent.stage_2_build_hunk_prompt import NO_DESCRIPTION, build_hunk_prompt
from tests.fakes import APP_DIFF


def _first_hunk():
    return parse_unified_diff(APP_DIFF)[0].hunks[0]


def test_prompt_states_output_shape_and_rules(pr_context):
    prompt = build_hunk_prompt("src/app.py", _first_hunk(), pr_context)
    assert '{"reviews": [{"lineNumber": <line_number>, "reviewComment": "<review comment>"}]}' in prompt
    assert 'If the code looks good, return: {"reviews": []}' in prompt
    assert "Do not give positive comments or compliments" in prompt
    assert "Do not suggest adding comments to the code" in prompt
    assert prompt.endswith("Respond with ONLY the JSON object, no other text:")


def test_prompt_embeds_pull_request_context_verbatim(pr_context):
    prompt = build_hunk_prompt("src/app.py", _first_hunk(), pr_context)
    assert "Title: Add JSON logging" in prompt
    assert "Description: Switches the app to structured output." in prompt
    assert "File: src/app.py" in prompt


def test_missing_description_uses_marker(pr_context):
    prompt = build_hunk_prompt("src/app.py", _first_hunk(), replace(pr_context, description=""))
    assert f"Description: {NO_DESCRIPTION}" in prompt


def test_prompt_contains_raw_hunk_then_numbered_lines(pr_context):
    hunk = _first_hunk()
    prompt = build_hunk_prompt("src/app.py", hunk, pr_context)

    numbered = "\n".join([
        "1  import os",
        "2 -import sys",
        "2 +import json",
        "3 +import logging",
        "4  CONSTANT = 1",
        "5  def main():",
    ])
    expected_block = f"```diff\n{hunk.raw_content}\n{numbered}\n```"
    assert expected_block in prompt


def test_prompt_is_deterministic(pr_context):
    hunk = _first_hunk()
    assert build_hunk_prompt("src/app.py", hunk, pr_context) == build_hunk_prompt(
        "src/app.py", hunk, pr_context
    )
