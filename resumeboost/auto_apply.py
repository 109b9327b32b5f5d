"""
Auto-apply flow: validate, submit to the browser service, then track.

    submit → poll (2s) → completed | failed | cancelled
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Callable

from resumeboost.browser_service import BrowserServiceClient
from resumeboost.config import Settings
from resumeboost.errors import BrowserServiceError, TrackingError
from resumeboost.history import ApplicationHistory
from resumeboost.job_tracker import JobTracker
from resumeboost.log import get_logger
from resumeboost.models import JobSubmission

log = get_logger(__name__)

REQUIRED_APPLICANT_FIELDS: tuple[str, ...] = ("fullName", "email", "phone")


def missing_fields(request: dict[str, Any]) -> list[str]:
    """Names of required fields that are empty in an auto-apply request."""
    missing: list[str] = []
    if not str(request.get("applicationUrl") or "").strip():
        missing.append("applicationUrl")
    user = request.get("userData") or {}
    for key in REQUIRED_APPLICANT_FIELDS:
        if not str(user.get(key) or "").strip():
            missing.append(key)
    if not str(request.get("resumeFileUrl") or "").strip():
        missing.append("resumeFileUrl")
    return missing


def build_request(
    application_url: str,
    user_data: dict[str, Any],
    resume_file_url: str,
    job_details: dict[str, Any],
    *,
    user_id: str = "",
    job_id: str = "",
    optimized_resume_id: str = "",
) -> dict[str, Any]:
    return {
        "applicationUrl": application_url,
        "userData": user_data,
        "resumeFileUrl": resume_file_url,
        "jobDetails": job_details,
        "metadata": {
            "userId": user_id,
            "jobId": job_id,
            "optimizedResumeId": optimized_resume_id,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    }


class AutoApplyService:
    def __init__(
        self,
        settings: Settings,
        client: BrowserServiceClient | None = None,
        history: ApplicationHistory | None = None,
    ) -> None:
        settings.require_browser_service()
        self.settings = settings
        self.client = client or BrowserServiceClient(settings)
        self.history = history or ApplicationHistory(settings.data_dir)

    def submit(self, request: dict[str, Any]) -> str:
        """Send the application; returns the service's application id."""
        missing = missing_fields(request)
        if missing:
            raise ValueError(f"Profile incomplete. Missing: {', '.join(missing)}")

        url = request["applicationUrl"]
        job = request.get("jobDetails") or {}
        try:
            response = self.client.submit_auto_apply(request)
        except BrowserServiceError as exc:
            exc.manual_url = exc.manual_url or url
            log.error("Auto-apply submission failed: %s (apply manually: %s)", exc, url)
            raise

        application_id = str(response.get("applicationId") or response.get("id") or "").strip()
        if not application_id:
            raise BrowserServiceError(
                response.get("error") or response.get("message") or "No application id returned",
                manual_url=url,
            )

        self.history.record_application(
            application_id,
            job.get("title", ""),
            job.get("company", ""),
            url,
            status=str(response.get("status") or "submitted"),
            message=str(response.get("message") or ""),
        )
        log.info("Auto-apply submitted: %s @ %s → %s", job.get("title"), job.get("company"), application_id)
        return application_id

    def track(
        self,
        application_id: str,
        on_update: Callable[[JobSubmission], None] | None = None,
    ) -> JobTracker:
        """Start background tracking; the end state is written to history."""
        tracker = self._tracker(on_update)
        tracker.start(application_id)
        return tracker

    def watch(
        self,
        application_id: str,
        on_update: Callable[[JobSubmission], None] | None = None,
    ) -> JobSubmission:
        """Track in the calling thread until done. Raises TrackingError if the status channel broke."""
        tracker = self._tracker(on_update)
        job = tracker.run(application_id)
        tracker.teardown()
        if job is None:
            raise TrackingError(f"Tracking for {application_id} never started")
        if job.tracking_error:
            raise TrackingError(f"{job.tracking_error} for {application_id}")
        return job

    def _tracker(self, on_update: Callable[[JobSubmission], None] | None) -> JobTracker:
        def _update(job: JobSubmission) -> None:
            if job.is_terminal or job.tracking_error:
                self.history.record_outcome(job)
            if on_update is not None:
                on_update(job)

        return JobTracker(
            self.client,
            poll_interval=self.settings.poll_interval_seconds,
            on_update=_update,
        )
