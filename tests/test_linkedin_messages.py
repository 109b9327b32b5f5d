from __future__ import annotations

import pytest

from resumeboost.errors import CredentialsError
from resumeboost.linkedin_messages import (
    MESSAGE_MODEL,
    MessageForm,
    build_prompt,
    generate_linkedin_messages,
    parse_messages,
)
from tests.helpers import FakeLLM


def _form(**overrides) -> MessageForm:
    fields = dict(
        message_type="connection",
        recipient_first_name="Priya",
        recipient_last_name="Shah",
        recipient_company="Acme",
        recipient_job_title="Engineering Manager",
        sender_name="Sam Lee",
        sender_role="Backend Engineer",
        message_purpose="Learn about the platform team",
    )
    fields.update(overrides)
    return MessageForm(**fields)


def test_prompt_reflects_message_type_limits():
    assert "under 200 characters" in build_prompt(_form())
    assert "under 300 characters" in build_prompt(_form(message_type="cold-outreach"))
    assert "under 250 characters" in build_prompt(_form(message_type="something-else"))
    assert "INDUSTRY: Not specified" in build_prompt(_form())


def test_parse_numbered_lines():
    reply = "Here are your messages:\n1. Hi Priya, loved your talk.\n2) Hello Priya!\n3. Hey there\n4. extra"
    assert parse_messages(reply) == ["Hi Priya, loved your talk.", "Hello Priya!", "Hey there"]


def test_parse_falls_back_to_number_split_then_whole_reply():
    reply = "Options: 1.First message that is long enough 2.Second message also long enough"
    assert parse_messages(reply) == [
        "First message that is long enough",
        "Second message also long enough",
    ]
    assert parse_messages("short") == ["short"]


def test_generate_uses_message_model():
    llm = FakeLLM("1. One\n2. Two\n3. Three")
    assert generate_linkedin_messages(llm, _form()) == ["One", "Two", "Three"]
    assert llm.models == [MESSAGE_MODEL]


def test_generate_requires_names():
    with pytest.raises(ValueError):
        generate_linkedin_messages(FakeLLM(), _form(sender_name=""))


def test_credential_errors_propagate():
    with pytest.raises(CredentialsError):
        generate_linkedin_messages(FakeLLM(CredentialsError("bad key")), _form())
