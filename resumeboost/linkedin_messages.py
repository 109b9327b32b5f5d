"""Generate LinkedIn outreach messages."""
from __future__ import annotations

import re
from dataclasses import dataclass

from resumeboost.errors import LLMServiceError
from resumeboost.llm import LLMClient
from resumeboost.log import get_logger

log = get_logger(__name__)

MESSAGE_COUNT = 3
MESSAGE_MODEL = "deepseek/deepseek-r1:free"

# (persona, requirements, character limit)
_MESSAGE_TYPES: dict[str, tuple[str, str, int]] = {
    "connection": (
        "You are an expert LinkedIn networking specialist.",
        "connection request messages. Include one specific detail about them or their "
        "company and end with a clear value proposition",
        200,
    ),
    "cold-outreach": (
        "Act as a LinkedIn sales messaging expert.",
        "cold outreach messages. Personalize with the recipient's background, provide "
        "value upfront and include one clear call-to-action",
        300,
    ),
    "follow-up": (
        "You are a professional relationship manager.",
        "follow-up messages. Reference the previous interaction, provide a new update "
        "and include a specific next step",
        250,
    ),
    "job-inquiry": (
        "Act as a career coach and job search expert.",
        "job inquiry messages. Express genuine interest, highlight relevant skills and "
        "include a clear call-to-action",
        280,
    ),
}
_DEFAULT_TYPE = ("You are a LinkedIn messaging specialist.", "professional messages for the stated purpose", 250)

_NUMBERED = re.compile(r"^\s*\d+[.)]\s*")


@dataclass
class MessageForm:
    message_type: str
    recipient_first_name: str
    recipient_last_name: str
    recipient_company: str
    recipient_job_title: str
    sender_name: str
    sender_role: str
    message_purpose: str
    sender_company: str = ""
    tone: str = "professional"
    personalized_context: str = ""
    industry: str = ""


def build_prompt(form: MessageForm) -> str:
    persona, requirements, limit = _MESSAGE_TYPES.get(form.message_type, _DEFAULT_TYPE)
    sender = f"{form.sender_name}, {form.sender_role}"
    if form.sender_company:
        sender += f" at {form.sender_company}"
    return f"""{persona}

RECIPIENT: {form.recipient_first_name} {form.recipient_last_name}, {form.recipient_job_title} at {form.recipient_company}
SENDER: {sender}
PURPOSE: {form.message_purpose}
TONE: {form.tone}
INDUSTRY: {form.industry or 'Not specified'}
CONTEXT: {form.personalized_context or 'No additional context provided'}

Write {MESSAGE_COUNT} distinctly different {requirements}.
Use a {form.tone} tone and keep each message under {limit} characters.

Respond with exactly {MESSAGE_COUNT} messages, each on a separate line, numbered 1-{MESSAGE_COUNT}."""


def parse_messages(reply: str) -> list[str]:
    """Numbered lines first; then split on numbers; then the whole reply."""
    numbered = [
        _NUMBERED.sub("", line).strip()
        for line in reply.splitlines()
        if _NUMBERED.match(line)
    ]
    numbered = [m for m in numbered if m]
    if numbered:
        return numbered[:MESSAGE_COUNT]

    chunks = [c.strip() for c in re.split(r"\d+\.", reply) if len(c.strip()) > 10]
    if chunks:
        return chunks[:MESSAGE_COUNT]
    return [reply.strip()]


def generate_linkedin_messages(llm: LLMClient, form: MessageForm) -> list[str]:
    """Up to three messages. Credential and exhausted-retry errors propagate."""
    if not form.recipient_first_name or not form.sender_name:
        raise ValueError("Recipient first name and sender name are required")

    reply = llm.complete(build_prompt(form), model=MESSAGE_MODEL)
    messages = parse_messages(reply)
    if not messages or not messages[0]:
        raise LLMServiceError("Failed to generate LinkedIn messages")
    log.info("Generated %d %s message(s) for %s", len(messages), form.message_type, form.recipient_company)
    return messages
