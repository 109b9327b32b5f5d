"""Auto-apply history in a CSV table with file locking."""
from __future__ import annotations

import csv
import fcntl
from datetime import datetime, timezone
from pathlib import Path

from resumeboost.config import DATA_DIR
from resumeboost.log import get_logger
from resumeboost.models import JobStatus, JobSubmission

log = get_logger(__name__)

HEADERS: list[str] = [
    "application_id", "job_title", "company", "application_url",
    "submitted_at", "updated_at", "status", "message",
]


def _lock(f, exclusive: bool = True) -> None:
    """Advisory file lock (Unix fcntl)."""
    try:
        op = fcntl.LOCK_EX if exclusive else fcntl.LOCK_SH
        fcntl.flock(f.fileno(), op)
    except (OSError, AttributeError):
        pass


def _unlock(f) -> None:
    try:
        fcntl.flock(f.fileno(), fcntl.LOCK_UN)
    except (OSError, AttributeError):
        pass


def _now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M")


class ApplicationHistory:
    def __init__(self, data_dir: Path = DATA_DIR) -> None:
        self.path = data_dir / "applications.csv"

    def ensure(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        if not self.path.exists():
            with open(self.path, "w", newline="", encoding="utf-8") as f:
                _lock(f)
                csv.writer(f).writerow(HEADERS)
                _unlock(f)
            log.info("Created application history → %s", self.path.name)

    def record_application(
        self,
        application_id: str,
        job_title: str,
        company: str,
        application_url: str,
        status: str = "submitted",
        message: str = "",
    ) -> None:
        self.ensure()
        now = _now()
        row = {
            "application_id": application_id,
            "job_title": job_title,
            "company": company,
            "application_url": application_url,
            "submitted_at": now,
            "updated_at": now,
            "status": status,
            "message": message[:200],
        }
        with open(self.path, "a", newline="", encoding="utf-8") as f:
            _lock(f)
            csv.DictWriter(f, fieldnames=HEADERS).writerow(row)
            _unlock(f)
        log.debug("Recorded: %s @ %s [%s]", job_title, company, status)

    def get_applications(self) -> list[dict[str, str]]:
        self.ensure()
        with open(self.path, "r", encoding="utf-8") as f:
            _lock(f, exclusive=False)
            rows = list(csv.DictReader(f))
            _unlock(f)
        return rows

    def update_status(self, application_id: str, status: str, message: str = "") -> bool:
        """Update an existing row (e.g. submitted -> completed)."""
        self.ensure()
        with open(self.path, "r+", newline="", encoding="utf-8") as f:
            _lock(f)
            try:
                rows = list(csv.DictReader(f))
                row = next((r for r in rows if r.get("application_id") == application_id), None)
                if row is None:
                    return False
                row["status"] = status
                row["updated_at"] = _now()
                if message:
                    row["message"] = message[:200]
                f.seek(0)
                f.truncate()
                w = csv.DictWriter(f, fieldnames=HEADERS)
                w.writeheader()
                w.writerows(rows)
            finally:
                _unlock(f)
        log.debug("Updated %s → %s", application_id, status)
        return True

    def record_outcome(self, job: JobSubmission) -> bool:
        """Persist the end state of a tracked job."""
        if job.tracking_error:
            return self.update_status(job.id, "unknown", job.tracking_error)
        if not job.is_terminal:
            return False
        if job.status is JobStatus.COMPLETED and job.result is not None:
            message = job.result.confirmation_text or job.result.message
        else:
            message = job.error or ""
        status = "cancelled" if job.cancelled else job.status.value
        return self.update_status(job.id, status, message)
