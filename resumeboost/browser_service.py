"""Client for the external headless-browser auto-apply service."""
from __future__ import annotations

from typing import Any

import requests

from resumeboost.config import HEALTH_TIMEOUT_SECONDS, Settings
from resumeboost.errors import (
    BrowserServiceError,
    CredentialsError,
    SubmissionTimeoutError,
)
from resumeboost.job_tracker import StatusSource
from resumeboost.log import get_logger
from resumeboost.models import StatusReport
from resumeboost.retry import retry

log = get_logger(__name__)

STATUS_TIMEOUT_SECONDS = 15


class BrowserServiceClient(StatusSource):
    """Thin request/response wrapper; every call carries the bearer token."""

    def __init__(self, settings: Settings, session: requests.Session | None = None) -> None:
        self.base_url = settings.browser_service_url.rstrip("/")
        self.api_key = settings.browser_service_api_key
        self.submit_timeout = settings.submit_timeout_seconds
        self.session = session or requests.Session()

    def _headers(self, json_body: bool = False) -> dict[str, str]:
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "X-Origin": "primoboost-ai",
        }
        if json_body:
            headers["Content-Type"] = "application/json"
        return headers

    def _check(self, r: requests.Response, what: str) -> None:
        if r.status_code == 401:
            raise CredentialsError(f"{what}: browser service rejected the API key")
        if not r.ok:
            raise BrowserServiceError(
                f"{what} failed: {r.status_code} - {r.text[:200]}", status_code=r.status_code
            )

    def submit_auto_apply(self, request: dict[str, Any]) -> dict[str, Any]:
        """POST the application; the service may take minutes to answer."""
        log.info("Submitting auto-apply request for %s", request.get("applicationUrl", "?"))
        try:
            r = self.session.post(
                f"{self.base_url}/auto-apply",
                json=request,
                headers=self._headers(json_body=True),
                timeout=self.submit_timeout,
            )
        except requests.Timeout as exc:
            raise SubmissionTimeoutError(
                f"Auto-apply submission timed out after {self.submit_timeout:.0f}s"
            ) from exc
        except requests.RequestException as exc:
            raise BrowserServiceError(f"Auto-apply submission failed: {exc}") from exc

        self._check(r, "Auto-apply request")
        data = r.json()
        log.info("Auto-apply accepted: success=%s", data.get("success"))
        return data

    def get_status(self, job_id: str) -> StatusReport:
        """One status query. Errors propagate; the tracker decides what they mean."""
        r = self.session.get(
            f"{self.base_url}/auto-apply/status/{job_id}",
            headers=self._headers(),
            timeout=STATUS_TIMEOUT_SECONDS,
        )
        self._check(r, "Status check")
        return StatusReport.from_dict(r.json())

    def cancel(self, job_id: str) -> bool:
        try:
            r = self.session.post(
                f"{self.base_url}/auto-apply/cancel/{job_id}",
                headers=self._headers(),
                timeout=STATUS_TIMEOUT_SECONDS,
            )
            return r.ok
        except requests.RequestException as exc:
            log.error("Error cancelling auto-apply %s: %s", job_id, exc)
            return False

    @retry(max_attempts=2, base_delay=1.5, retryable=(requests.ConnectionError,))
    def analyze_form(self, application_url: str) -> dict[str, Any]:
        """Ask the service to describe the application form (fields, captcha, uploads)."""
        r = self.session.post(
            f"{self.base_url}/analyze-form",
            json={"url": application_url},
            headers=self._headers(json_body=True),
            timeout=STATUS_TIMEOUT_SECONDS,
        )
        self._check(r, "Form analysis")
        return r.json()

    def test_connection(self) -> bool:
        try:
            r = self.session.get(
                f"{self.base_url}/health",
                headers=self._headers(),
                timeout=HEALTH_TIMEOUT_SECONDS,
            )
            return r.ok
        except requests.RequestException as exc:
            log.warning("Browser service connection test failed: %s", exc)
            return False
