from __future__ import annotations

from types import SimpleNamespace

import httpx
import openai
import pytest

from resumeboost import retry as retry_module
from resumeboost.errors import (
    CredentialsError,
    LLMServiceError,
    MalformedResponseError,
    TransientServiceError,
)
from resumeboost.llm import LLMClient, parse_json_reply, strip_code_fences
from tests.helpers import chat_completion

_URL = "https://openrouter.ai/api/v1/chat/completions"


def _api_error(cls, status: int):
    response = httpx.Response(status, request=httpx.Request("POST", _URL))
    return cls(f"HTTP {status}", response=response, body=None)


class _FakeCompletions:
    def __init__(self, outcomes) -> None:
        self.outcomes = list(outcomes)
        self.calls: list[dict] = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        return chat_completion(outcome)


def _client(settings, *outcomes):
    completions = _FakeCompletions(outcomes)
    fake = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    return LLMClient(settings, client=fake), completions


@pytest.fixture
def sleeps(monkeypatch):
    recorded: list[float] = []
    monkeypatch.setattr(retry_module.time, "sleep", recorded.append)
    return recorded


def test_strip_code_fences():
    assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert strip_code_fences("plain") == "plain"


def test_parse_json_reply_tolerates_surrounding_prose():
    reply = 'Here you go:\n```json\n{"projectAnalysis": []}\n```\nGood luck!'
    assert parse_json_reply(reply) == {"projectAnalysis": []}
    assert parse_json_reply('Bullets: ["a", "b"] done') == ["a", "b"]


def test_parse_json_reply_rejects_garbage():
    with pytest.raises(MalformedResponseError):
        parse_json_reply("I could not analyze these projects, sorry.")
    with pytest.raises(MalformedResponseError):
        parse_json_reply("```json\n```")


def test_complete_returns_content(settings, sleeps):
    llm, completions = _client(settings, "  hello  ")
    assert llm.complete("prompt") == "hello"
    assert completions.calls[0]["model"] == settings.llm_model
    assert completions.calls[0]["messages"] == [{"role": "user", "content": "prompt"}]
    assert sleeps == []


def test_transient_statuses_retry_with_doubling_delay(settings, sleeps):
    llm, completions = _client(
        settings,
        _api_error(openai.RateLimitError, 429),
        _api_error(openai.InternalServerError, 503),
        '{"ok": true}',
    )
    assert llm.complete_json("prompt") == {"ok": True}
    assert len(completions.calls) == 3
    assert sleeps == [1.0, 2.0]


def test_transient_errors_surface_after_three_attempts(settings, sleeps):
    llm, completions = _client(
        settings, *[_api_error(openai.InternalServerError, 500) for _ in range(3)]
    )
    with pytest.raises(TransientServiceError) as exc_info:
        llm.complete("prompt")
    assert exc_info.value.status_code == 500
    assert len(completions.calls) == 3


def test_unauthorized_fails_immediately(settings, sleeps):
    llm, completions = _client(settings, _api_error(openai.AuthenticationError, 401), "never")
    with pytest.raises(CredentialsError):
        llm.complete("prompt")
    assert len(completions.calls) == 1
    assert sleeps == []


def test_other_client_errors_are_not_retried(settings, sleeps):
    llm, completions = _client(settings, _api_error(openai.BadRequestError, 400), "never")
    with pytest.raises(LLMServiceError):
        llm.complete("prompt")
    assert len(completions.calls) == 1


def test_empty_content_is_an_error(settings, sleeps):
    llm, _ = _client(settings, "   ")
    with pytest.raises(LLMServiceError):
        llm.complete("prompt")
