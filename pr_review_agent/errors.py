"""
Errors raised by the review pipeline.

Only fatal conditions are raised as exceptions. Everything that is local to a
single hunk (a bad model response, an unusable line number) degrades to "fewer
comments" inside the stage that sees it and never reaches this module.
"""


class ReviewAgentError(Exception):
    """Base class for every error that aborts a review run."""


class ConfigurationError(ReviewAgentError):
    """A required action input is missing or malformed."""


class EventPayloadError(ReviewAgentError):
    """The GitHub event payload does not describe a pull request."""


class DiffRetrievalError(ReviewAgentError):
    """The pull request diff could not be fetched or was empty."""


class DiffParseError(ReviewAgentError):
    """The diff text is not a structurally valid unified diff."""
