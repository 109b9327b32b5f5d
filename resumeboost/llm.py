"""OpenRouter text-generation client (OpenAI-compatible API)."""
from __future__ import annotations

import json
import re
from typing import Any

import openai
from openai import OpenAI

from resumeboost.config import Settings
from resumeboost.errors import (
    CredentialsError,
    LLMServiceError,
    MalformedResponseError,
    TransientServiceError,
)
from resumeboost.log import get_logger
from resumeboost.retry import call_with_retry

log = get_logger(__name__)

_FENCE_RE = re.compile(r"```(?:json|JSON)?")
_APP_HEADERS = {"HTTP-Referer": "https://primoboost.ai", "X-Title": "PrimoBoost AI"}


def strip_code_fences(text: str) -> str:
    """Remove Markdown code fences the model likes to wrap JSON in."""
    return _FENCE_RE.sub("", text or "").strip()


def parse_json_reply(text: str) -> Any:
    """Parse a JSON object or array out of a model reply.

    Falls back to the outermost ``{...}`` / ``[...]`` span when the model
    adds prose around the payload. Raises MalformedResponseError otherwise.
    """
    cleaned = strip_code_fences(text)
    if not cleaned:
        raise MalformedResponseError("Empty reply", raw=text or "")
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError:
        pass

    for opener, closer in (("{", "}"), ("[", "]")):
        start, end = cleaned.find(opener), cleaned.rfind(closer)
        if start != -1 and end > start:
            try:
                return json.loads(cleaned[start : end + 1])
            except json.JSONDecodeError:
                continue
    raise MalformedResponseError("Invalid JSON in model reply", raw=cleaned)


def _is_transient(status: int) -> bool:
    return status == 429 or status >= 500


class LLMClient:
    """Single-prompt chat completion with the retry policy for transient statuses."""

    def __init__(self, settings: Settings, client: Any = None) -> None:
        self.settings = settings
        self.model = settings.llm_model
        self._client = client or OpenAI(
            api_key=settings.openrouter_api_key,
            base_url=settings.openrouter_base_url,
            default_headers=_APP_HEADERS,
            max_retries=0,
        )

    def _create(self, prompt: str, model: str) -> str:
        try:
            r = self._client.chat.completions.create(
                model=model,
                messages=[{"role": "user", "content": prompt}],
            )
        except openai.AuthenticationError as exc:
            raise CredentialsError(
                "Invalid API key. Please check your OpenRouter API key configuration."
            ) from exc
        except openai.APIStatusError as exc:
            if _is_transient(exc.status_code):
                raise TransientServiceError(
                    f"OpenRouter API error: {exc.status_code}", status_code=exc.status_code
                ) from exc
            raise LLMServiceError(f"OpenRouter API error: {exc.status_code} - {exc.message}") from exc
        except openai.APIConnectionError as exc:
            raise LLMServiceError(f"OpenRouter unreachable: {exc}") from exc

        choices = getattr(r, "choices", None) or []
        content = choices[0].message.content if choices else None
        if not content or not content.strip():
            raise LLMServiceError("No response content from OpenRouter API")
        return content.strip()

    def complete(self, prompt: str, *, model: str | None = None) -> str:
        """Return the completion text. 429/5xx are retried with doubling delays."""
        model = model or self.model
        text = call_with_retry(
            self._create,
            prompt,
            model,
            max_attempts=self.settings.llm_max_attempts,
            base_delay=self.settings.llm_base_delay,
            retryable=(TransientServiceError,),
        )
        log.debug("Completion from %s: %d chars", model, len(text))
        return text

    def complete_json(self, prompt: str, *, model: str | None = None) -> Any:
        return parse_json_reply(self.complete(prompt, model=model))
