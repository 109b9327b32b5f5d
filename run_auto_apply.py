#!/usr/bin/env python3
"""Entry point to submit an auto-apply request and watch it finish.

    python run_auto_apply.py request.json
    python run_auto_apply.py --status <application_id>
"""
from __future__ import annotations

import json
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent))

from resumeboost.log import get_logger
from resumeboost.errors import BrowserServiceError, ConfigurationError, TrackingError
from resumeboost.models import JobStatus

log = get_logger(__name__)


def _usage() -> int:
    print()
    print("  Usage:")
    print("    python run_auto_apply.py request.json")
    print("    python run_auto_apply.py --status <application_id>")
    print()
    return 2


def _log_progress(job) -> None:
    if job.tracking_error:
        log.error("  ✗ %s", job.tracking_error)
    else:
        log.info("  [%3d%%] %-10s %s", job.progress, job.status.value, job.current_step)


def main(argv: list[str]) -> int:
    if not argv:
        return _usage()

    from resumeboost.auto_apply import AutoApplyService
    from resumeboost.config import ensure_dirs, load_settings

    try:
        settings = load_settings()
        ensure_dirs(settings)
        service = AutoApplyService(settings)
    except ConfigurationError as exc:
        log.error("Configuration error: %s", exc)
        return 1

    manual_url = None
    try:
        if argv[0] == "--status":
            if len(argv) < 2:
                return _usage()
            application_id = argv[1]
        else:
            request = json.loads(Path(argv[0]).read_text(encoding="utf-8"))
            manual_url = request.get("applicationUrl")
            application_id = service.submit(request)

        job = service.watch(application_id, on_update=_log_progress)
    except ValueError as exc:
        log.error("%s", exc)
        return 1
    except BrowserServiceError as exc:
        log.error("Auto-apply failed: %s", exc)
        if exc.manual_url:
            log.info("  Apply manually: %s", exc.manual_url)
        return 1
    except TrackingError as exc:
        log.error("%s; check the application status later", exc)
        if manual_url:
            log.info("  Apply manually: %s", manual_url)
        return 1
    except KeyboardInterrupt:
        log.warning("Interrupted; the remote job may still be running")
        return 130

    if job.result is not None:
        log.info("Result: %s", job.result.confirmation_text or job.result.message)
        if job.result.redirect_url:
            log.info("  Redirect: %s", job.result.redirect_url)
    elif job.error:
        log.warning("Result: %s", job.error)
    return 0 if job.status is JobStatus.COMPLETED else 1


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
