from __future__ import annotations

from types import SimpleNamespace

from resumeboost.models import CandidateItem


def item(title: str, *bullets: str) -> CandidateItem:
    return CandidateItem(title=title, bullets=tuple(bullets))


class FakeLLM:
    """Stands in for LLMClient: replays scripted replies or raises scripted errors."""

    def __init__(self, *replies) -> None:
        self.replies = list(replies)
        self.prompts: list[str] = []
        self.models: list[str | None] = []

    def complete(self, prompt: str, *, model: str | None = None) -> str:
        self.prompts.append(prompt)
        self.models.append(model)
        reply = self.replies.pop(0)
        if isinstance(reply, BaseException):
            raise reply
        return reply


def chat_completion(content: str) -> SimpleNamespace:
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))]
    )
