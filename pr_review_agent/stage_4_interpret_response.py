"""
Stage 4: Interpret Response - PR Review Agent

PURPOSE:
    Recover the list of (lineNumber, reviewComment) pairs from the free text a
    model returned for one hunk. Models do not always answer with bare JSON:
    they wrap it in Markdown fences, add "Here you go:" preambles, or run out
    of tokens halfway through the object.

CALLED BY:
    review_pipeline_main.py - with the text returned by Stage 3.

ALGORITHM:
    1. Trim whitespace.
    2. If the trimmed text is not itself a complete JSON object, take the
       substring from the first "{" to the last "}" as the candidate.
    3. Parse the candidate as JSON.
    4. Validate the shape strictly and read "reviews" (absent means []).
    5. On any failure, log the raw and the failing text and return None.

RETURNS:
    list[RawModelComment] (possibly empty) on success, None on failure.
    None means "this hunk produced no usable answer"; it is not an error the
    caller has to handle beyond logging. This function never raises.

DESIGN DECISIONS:
    - Shape mismatches are failures, not best-effort coercions. A "reviews"
      value that is not a list, an entry that is not an object, or a
      reviewComment that is not a string rejects the whole response.
    - A lineNumber that is missing or null does not fail the response. The
      entry is kept with an empty line number and Stage 5 drops it, so one
      unanchored remark does not throw away its valid siblings.
    - Integer lineNumbers (what the prompt actually asks for) are kept as
      their decimal string, matching the untyped text the model may send.
"""

import json
import logging
from typing import Optional

from .models import RawModelComment

logger = logging.getLogger(__name__)

LOG_SNIPPET_CHARS = 500


class ResponseShapeError(ValueError):
    """The parsed JSON does not match the expected review shape."""


def interpret_model_response(raw_text: Optional[str]) -> Optional[list]:
    """
    Parse one model response into RawModelComment records.

    Args:
        raw_text: The model output for a single hunk prompt. May be None,
                  empty, prose-wrapped, or truncated.

    Returns:
        list[RawModelComment] on success (possibly empty), None on failure.
    """
    text = (raw_text or "").strip()
    candidate = text

    try:
        if not text:
            raise ValueError("empty response")

        if not _is_complete_json_object(text):
            span = _extract_brace_span(text)
            if span is None:
                raise ValueError("no JSON object found in response")
            candidate = span

        parsed = json.loads(candidate)
        comments = _read_reviews(parsed)
    except (ValueError, TypeError, RecursionError) as e:
        # JSONDecodeError and ResponseShapeError are both ValueErrors
        logger.warning("Failed to interpret model response: %s", e)
        logger.warning("Raw response text: %s", text[:LOG_SNIPPET_CHARS])
        logger.warning("Failing candidate text: %s", candidate[:LOG_SNIPPET_CHARS])
        return None

    logger.info("Parsed %d review entries from model response", len(comments))
    return comments


# ---------------------------------------------------------------------------
# PRIVATE HELPER FUNCTIONS
# ---------------------------------------------------------------------------


def _is_complete_json_object(text: str) -> bool:
    try:
        return isinstance(json.loads(text), dict)
    except ValueError:
        return False


def _extract_brace_span(text: str) -> Optional[str]:
    """Return text[first '{' : last '}'], or None when there is no such span."""
    first_brace = text.find("{")
    last_brace = text.rfind("}")
    if first_brace == -1 or last_brace == -1 or last_brace < first_brace:
        return None
    return text[first_brace:last_brace + 1]


def _read_reviews(parsed) -> list:
    if not isinstance(parsed, dict):
        raise ResponseShapeError(
            f"expected a JSON object, got {type(parsed).__name__}"
        )

    reviews = parsed.get("reviews", [])
    if not isinstance(reviews, list):
        raise ResponseShapeError(
            f'"reviews" must be an array, got {type(reviews).__name__}'
        )

    return [_read_review_entry(index, entry) for index, entry in enumerate(reviews)]


def _read_review_entry(index: int, entry) -> RawModelComment:
    if not isinstance(entry, dict):
        raise ResponseShapeError(f"reviews[{index}] must be an object")

    comment = entry.get("reviewComment")
    if not isinstance(comment, str):
        raise ResponseShapeError(f'reviews[{index}].reviewComment must be a string')

    line_number = entry.get("lineNumber")
    # bool is an int subclass; true/false is never a line number
    if isinstance(line_number, bool):
        raise ResponseShapeError(f"reviews[{index}].lineNumber must not be a boolean")
    if line_number is None:
        line_text = ""
    elif isinstance(line_number, (str, int)):
        line_text = str(line_number)
    else:
        raise ResponseShapeError(
            f"reviews[{index}].lineNumber must be a string or integer, "
            f"got {type(line_number).__name__}"
        )

    return RawModelComment(line_number=line_text, review_comment=comment)
