"""
Action Configuration - PR Review Agent

GitHub Actions hands every `with:` input to the container as an
INPUT_<NAME> environment variable (upper-cased, spaces become underscores).
This module reads those variables once at startup and resolves them into an
ActionConfig. Nothing else in the package reads the environment.

INPUTS:
    GITHUB_TOKEN          token for the GitHub REST API (falls back to the
                          plain GITHUB_TOKEN env var)
    MODEL_PROVIDER        "openai" (default) or "gemini"
    OPENAI_API_KEY        required when the provider is openai
    OPENAI_API_MODEL      default "gpt-4o-mini"
    GEMINI_API_KEY        required when the provider is gemini
    GEMINI_API_MODEL      default "gemini-2.5-flash-lite"
    MAX_OUTPUT_TOKENS     default 700
    EXCLUDE               comma-separated glob patterns
    RESTRICT_TO_HUNK      "true" drops comments on lines outside the hunk
    LOG_LEVEL             default "INFO"
"""

import os
from dataclasses import dataclass, field
from typing import Mapping, Optional

from .errors import ConfigurationError
from .stage_1_parse_diff import parse_exclude_patterns
from .stage_3_request_model_review import (
    DEFAULT_MAX_OUTPUT_TOKENS,
    PROVIDER_GEMINI,
    PROVIDER_OPENAI,
    SUPPORTED_PROVIDERS,
)

DEFAULT_MODELS = {
    PROVIDER_OPENAI: "gpt-4o-mini",
    PROVIDER_GEMINI: "gemini-2.5-flash-lite",
}

_TRUE_VALUES = ("1", "true", "yes", "on")


@dataclass(frozen=True)
class ActionConfig:
    github_token: str
    model_provider: str
    api_key: str
    model: str
    event_path: str
    max_output_tokens: int = DEFAULT_MAX_OUTPUT_TOKENS
    exclude_patterns: list = field(default_factory=list)
    restrict_to_hunk: bool = False
    log_level: str = "INFO"


def get_input(environ: Mapping[str, str], name: str, default: str = "") -> str:
    """Read an action input the way @actions/core getInput does."""
    key = "INPUT_" + name.replace(" ", "_").upper()
    return environ.get(key, default).strip() or default


def load_action_config(environ: Optional[Mapping[str, str]] = None) -> ActionConfig:
    """
    Resolve the action inputs into an ActionConfig.

    Raises:
        ConfigurationError: a required input is missing or a value is invalid.
    """
    env = os.environ if environ is None else environ

    github_token = get_input(env, "GITHUB_TOKEN") or env.get("GITHUB_TOKEN", "")
    if not github_token:
        raise ConfigurationError("Missing required input: GITHUB_TOKEN")

    provider = get_input(env, "MODEL_PROVIDER", PROVIDER_OPENAI).lower()
    if provider not in SUPPORTED_PROVIDERS:
        raise ConfigurationError(
            f"Unsupported MODEL_PROVIDER '{provider}'. "
            f"Expected one of: {', '.join(SUPPORTED_PROVIDERS)}"
        )

    prefix = provider.upper()
    api_key = get_input(env, f"{prefix}_API_KEY")
    if not api_key:
        raise ConfigurationError(f"Missing required input: {prefix}_API_KEY")
    model = get_input(env, f"{prefix}_API_MODEL", DEFAULT_MODELS[provider])

    event_path = env.get("GITHUB_EVENT_PATH", "")
    if not event_path:
        raise ConfigurationError("GITHUB_EVENT_PATH is not set; not running inside GitHub Actions?")

    return ActionConfig(
        github_token=github_token,
        model_provider=provider,
        api_key=api_key,
        model=model,
        event_path=event_path,
        max_output_tokens=_parse_positive_int(
            get_input(env, "MAX_OUTPUT_TOKENS"), DEFAULT_MAX_OUTPUT_TOKENS, "MAX_OUTPUT_TOKENS"
        ),
        exclude_patterns=parse_exclude_patterns(get_input(env, "EXCLUDE")),
        restrict_to_hunk=get_input(env, "RESTRICT_TO_HUNK").lower() in _TRUE_VALUES,
        log_level=get_input(env, "LOG_LEVEL", "INFO").upper(),
    )


def _parse_positive_int(value: str, default: int, name: str) -> int:
    if not value:
        return default
    try:
        parsed = int(value)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be an integer, got {value!r}") from e
    if parsed <= 0:
        raise ConfigurationError(f"{name} must be positive, got {parsed}")
    return parsed
