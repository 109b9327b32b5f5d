"""Track one delegated auto-apply job from submission to a terminal state.

Polling is a sequential loop (poll, wait, poll) on one worker thread, so at
most one status request is ever in flight. A ``threading.Event`` is both the
interval wait and the stop signal, which makes teardown take effect at once.

State machine::

    pending -> processing -> completed
                          -> failed      (remote failure, or user cancel)

Terminal states are sticky: late or stray status replies are dropped.
"""
from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import replace
from typing import Callable

from resumeboost.config import POLL_INTERVAL_SECONDS
from resumeboost.log import get_logger
from resumeboost.models import (
    CANCELLED_MESSAGE,
    JobStatus,
    JobSubmission,
    StatusReport,
)

log = get_logger(__name__)

TRACKING_ERROR_MESSAGE = "Failed to get application status"


class StatusSource(ABC):
    """Where job status comes from (normally the browser service)."""

    @abstractmethod
    def get_status(self, job_id: str) -> StatusReport:
        pass

    @abstractmethod
    def cancel(self, job_id: str) -> bool:
        pass


class JobTracker:
    def __init__(
        self,
        source: StatusSource,
        *,
        poll_interval: float = POLL_INTERVAL_SECONDS,
        on_update: Callable[[JobSubmission], None] | None = None,
    ) -> None:
        if poll_interval <= 0:
            raise ValueError("poll_interval must be positive")
        self.source = source
        self.poll_interval = poll_interval
        self.on_update = on_update
        self._lock = threading.Lock()
        self._stop = threading.Event()
        self._job: JobSubmission | None = None
        self._polling = False
        self._thread: threading.Thread | None = None
        self._cancel_pool: ThreadPoolExecutor | None = None

    # -- public API ---------------------------------------------------------

    @property
    def is_polling(self) -> bool:
        with self._lock:
            return self._polling

    def snapshot(self) -> JobSubmission | None:
        """Current state. JobSubmission is frozen, so callers cannot mutate it."""
        with self._lock:
            return self._job

    def start(self, job_id: str) -> bool:
        """Poll ``job_id`` in the background. Returns False if already polling."""
        if not self._begin(job_id):
            return False
        self._thread = threading.Thread(
            target=self._loop, name=f"job-tracker-{job_id}", daemon=True
        )
        self._thread.start()
        return True

    def run(self, job_id: str) -> JobSubmission | None:
        """Poll ``job_id`` in the calling thread until the loop ends."""
        if self._begin(job_id):
            self._loop()
        return self.snapshot()

    def poll(self) -> bool:
        """Query the source once. Returns True while further polling is useful."""
        with self._lock:
            job = self._job
        if job is None:
            raise RuntimeError("poll() called before start()")
        if job.is_terminal or job.tracking_error:
            return False

        try:
            report = self.source.get_status(job.id)
        except Exception as exc:
            # A broken status channel is fatal to this session; never retried
            log.error("Error polling auto-apply status for %s: %s", job.id, exc)
            with self._lock:
                current = self._job
                if current is None or current.is_terminal:
                    return False
                self._job = replace(current, tracking_error=TRACKING_ERROR_MESSAGE)
                self._stop.set()
                updated = self._job
            self._notify(updated)
            return False

        with self._lock:
            current = self._job
            if current is None or current.is_terminal:
                log.debug("Dropping status %s for finished job %s", report.status.value, job.id)
                return False
            updated = self._apply(current, report)
            self._job = updated
            if updated.is_terminal:
                self._stop.set()

        if updated.is_terminal:
            log.info("Auto-apply %s finished: %s", updated.id, updated.status.value)
        self._notify(updated)
        return not updated.is_terminal

    def cancel(self) -> Future | None:
        """Cancel from any state; flips local state before the remote call.

        Returns the Future of the best-effort remote cancel when one was
        sent (only from ``processing``), else None.
        """
        with self._lock:
            job = self._job
            if job is None or job.is_terminal:
                self._stop.set()
                return None
            self._stop.set()
            if job.status is not JobStatus.PROCESSING:
                log.info("Stopped tracking %s before processing began", job.id)
                return None
            self._job = replace(
                job,
                status=JobStatus.FAILED,
                current_step=CANCELLED_MESSAGE,
                error=CANCELLED_MESSAGE,
                result=None,
            )
            updated = self._job

        self._notify(updated)
        with self._lock:
            if self._cancel_pool is None:
                self._cancel_pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix="job-cancel")
            pool = self._cancel_pool
        return pool.submit(self._remote_cancel, job.id)

    def wait(self, timeout: float | None = None) -> JobSubmission | None:
        """Block until background polling ends (or ``timeout`` elapses)."""
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
        return self.snapshot()

    def teardown(self, wait: bool = False) -> None:
        """Stop polling. Call when the consumer goes away."""
        self._stop.set()
        thread = self._thread
        if wait and thread is not None and thread is not threading.current_thread():
            thread.join()
        with self._lock:
            pool, self._cancel_pool = self._cancel_pool, None
        if pool is not None:
            pool.shutdown(wait=wait)

    # -- internals ------------------------------------------------------------

    def _begin(self, job_id: str) -> bool:
        if not job_id or not job_id.strip():
            raise ValueError("job_id must be non-empty")
        with self._lock:
            if self._polling:
                log.warning("Tracker already polling %s; ignoring start(%s)",
                            self._job.id if self._job else "?", job_id)
                return False
            self._job = JobSubmission(id=job_id.strip())
            self._polling = True
            self._stop.clear()
        log.info("Tracking auto-apply job %s every %.1fs", job_id, self.poll_interval)
        return True

    def _loop(self) -> None:
        try:
            while not self._stop.is_set():
                if not self.poll():
                    break
                if self._stop.wait(self.poll_interval):
                    break
        finally:
            with self._lock:
                self._polling = False

    @staticmethod
    def _apply(current: JobSubmission, report: StatusReport) -> JobSubmission:
        progress = report.progress
        if current.status is JobStatus.PROCESSING:
            progress = max(progress, current.progress)
        status = report.status
        return replace(
            current,
            status=status,
            progress=progress,
            current_step=report.current_step or current.current_step,
            result=report.result if status is JobStatus.COMPLETED else None,
            error=(report.error or "Application failed") if status is JobStatus.FAILED else None,
        )

    def _remote_cancel(self, job_id: str) -> bool:
        try:
            ok = self.source.cancel(job_id)
        except Exception as exc:
            log.error("Error canceling auto-apply %s: %s", job_id, exc)
            return False
        if not ok:
            log.warning("Browser service did not acknowledge cancel for %s", job_id)
        return bool(ok)

    def _notify(self, job: JobSubmission) -> None:
        if self.on_update is None:
            return
        with self._lock:
            if job is not self._job:
                log.debug("Skipping stale update for %s (%s)", job.id, job.status.value)
                return
        try:
            self.on_update(job)
        except Exception:
            log.exception("on_update callback failed for %s", job.id)
