"""
Stage 3: Request Model Review - PR Review Agent

PURPOSE:
    Send one hunk prompt to a language model and return the raw text it
    answers with. Two backends are supported:
      - OpenAI chat completions (openai Python SDK), the default
      - Gemini (google-genai Python SDK)

    Both are wrapped in a small client object with a single generate() method,
    so the orchestrator only ever sees "prompt in, text out".

CALLED BY:
    review_pipeline_main.py - once per hunk, strictly one call at a time.

EXTERNAL APIS USED:
    - OpenAI Chat Completions API (OPENAI_API_KEY input)
    - Gemini generate_content API (GEMINI_API_KEY input)

DESIGN DECISIONS:
    - The client handle is built once in main() and passed in explicitly.
      There is no module-level SDK client, which keeps this stage testable
      with a fake client.
    - We do NOT retry here and we do not enforce a timeout. A failed call
      raises; the orchestrator logs it and moves on to the next hunk with zero
      comments for this one.
    - Gemini is asked for response_mime_type="application/json". OpenAI gets
      no response_format: Stage 4 copes with prose around the JSON anyway.
"""

import logging
from typing import Any, Optional, Protocol

from google import genai
from google.genai import types
from openai import OpenAI

logger = logging.getLogger(__name__)

DEFAULT_MAX_OUTPUT_TOKENS = 700

PROVIDER_OPENAI = "openai"
PROVIDER_GEMINI = "gemini"
SUPPORTED_PROVIDERS = (PROVIDER_OPENAI, PROVIDER_GEMINI)


class ModelClient(Protocol):
    def generate(self, prompt: str, model: str, max_output_tokens: int) -> str:
        ...


class OpenAIModelClient:
    """Chat-completions backend. `client` may be injected (tests, proxies)."""

    def __init__(self, api_key: Optional[str] = None, client: Any = None):
        self.client = client if client is not None else OpenAI(api_key=api_key)

    def generate(self, prompt: str, model: str, max_output_tokens: int) -> str:
        response = self.client.chat.completions.create(
            model=model,
            max_completion_tokens=max_output_tokens,
            messages=[{"role": "user", "content": prompt}],
        )
        if not response.choices:
            return ""
        message = response.choices[0].message
        return (message.content if message is not None else None) or ""


class GeminiModelClient:
    """google-genai backend. `client` may be injected (tests, proxies)."""

    def __init__(self, api_key: Optional[str] = None, client: Any = None):
        self.client = client if client is not None else genai.Client(api_key=api_key)

    def generate(self, prompt: str, model: str, max_output_tokens: int) -> str:
        config = types.GenerateContentConfig(
            max_output_tokens=max_output_tokens,
            response_mime_type="application/json",
            temperature=0.2,
        )
        response = self.client.models.generate_content(
            model=model,
            contents=prompt,
            config=config,
        )
        return response.text or ""


def build_model_client(provider: str, api_key: str) -> ModelClient:
    """Construct the client handle for the configured provider."""
    if provider == PROVIDER_OPENAI:
        return OpenAIModelClient(api_key=api_key)
    if provider == PROVIDER_GEMINI:
        return GeminiModelClient(api_key=api_key)
    raise ValueError(
        f"Unsupported model provider '{provider}'. "
        f"Expected one of: {', '.join(SUPPORTED_PROVIDERS)}"
    )


def request_model_review(
    client: ModelClient,
    prompt: str,
    model: str,
    max_output_tokens: int = DEFAULT_MAX_OUTPUT_TOKENS,
) -> str:
    """
    Ask the model to review one hunk.

    Returns:
        The trimmed response text ("" when the model returned nothing).

    Raises:
        Whatever the backend SDK raises. The caller isolates the failure.
    """
    text = client.generate(prompt, model, max_output_tokens)
    text = (text or "").strip()
    logger.info("Raw model response: %s", text[:500])
    return text
