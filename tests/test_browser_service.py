from __future__ import annotations

import pytest
import requests

from resumeboost.browser_service import BrowserServiceClient
from resumeboost.errors import BrowserServiceError, CredentialsError, SubmissionTimeoutError
from resumeboost.models import JobStatus


class _Response:
    def __init__(self, status_code: int = 200, payload=None, text: str = "") -> None:
        self.status_code = status_code
        self._payload = payload if payload is not None else {}
        self.text = text

    @property
    def ok(self) -> bool:
        return self.status_code < 400

    def json(self):
        return self._payload


class _Session:
    def __init__(self, *outcomes) -> None:
        self.outcomes = list(outcomes)
        self.calls: list[tuple[str, str, dict]] = []

    def _next(self, method: str, url: str, **kwargs):
        self.calls.append((method, url, kwargs))
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    def get(self, url, **kwargs):
        return self._next("GET", url, **kwargs)

    def post(self, url, **kwargs):
        return self._next("POST", url, **kwargs)


def test_submit_sends_bearer_token_and_timeout(settings):
    session = _Session(_Response(200, {"success": True, "applicationId": "app-1"}))
    client = BrowserServiceClient(settings, session=session)

    data = client.submit_auto_apply({"applicationUrl": "https://jobs.example.com/1"})

    method, url, kwargs = session.calls[0]
    assert data["applicationId"] == "app-1"
    assert (method, url) == ("POST", "https://browser.test/api/auto-apply")
    assert kwargs["headers"]["Authorization"] == "Bearer browser-key"
    assert kwargs["timeout"] == 180.0


def test_submit_timeout_is_distinct(settings):
    client = BrowserServiceClient(settings, session=_Session(requests.ReadTimeout("slow")))
    with pytest.raises(SubmissionTimeoutError):
        client.submit_auto_apply({"applicationUrl": "https://jobs.example.com/1"})


def test_submit_error_status(settings):
    client = BrowserServiceClient(settings, session=_Session(_Response(502, text="bad gateway")))
    with pytest.raises(BrowserServiceError) as exc_info:
        client.submit_auto_apply({})
    assert exc_info.value.status_code == 502


def test_get_status_parses_report(settings):
    payload = {"status": "processing", "progress": 140, "currentStep": "Uploading resume"}
    session = _Session(_Response(200, payload))
    report = BrowserServiceClient(settings, session=session).get_status("app-1")

    assert session.calls[0][1] == "https://browser.test/api/auto-apply/status/app-1"
    assert report.status is JobStatus.PROCESSING
    assert report.progress == 100
    assert report.current_step == "Uploading resume"


def test_get_status_rejects_unknown_status(settings):
    client = BrowserServiceClient(settings, session=_Session(_Response(200, {"status": "queued"})))
    with pytest.raises(ValueError):
        client.get_status("app-1")


def test_get_status_unauthorized(settings):
    client = BrowserServiceClient(settings, session=_Session(_Response(401)))
    with pytest.raises(CredentialsError):
        client.get_status("app-1")


def test_cancel_never_raises(settings):
    client = BrowserServiceClient(settings, session=_Session(requests.ConnectionError("down"), _Response(404)))
    assert client.cancel("app-1") is False
    assert client.cancel("app-1") is False


def test_connection_check(settings):
    client = BrowserServiceClient(settings, session=_Session(_Response(200), requests.Timeout("x")))
    assert client.test_connection() is True
    assert client.test_connection() is False


def test_analyze_form_retries_connection_errors(settings, monkeypatch):
    from resumeboost import retry as retry_module

    monkeypatch.setattr(retry_module.time, "sleep", lambda s: None)
    session = _Session(requests.ConnectionError("reset"), _Response(200, {"hasCaptcha": False}))
    client = BrowserServiceClient(settings, session=session)
    assert client.analyze_form("https://jobs.example.com/1") == {"hasCaptcha": False}
    assert len(session.calls) == 2
