"""Resume project lists, one JSON file per resume. Last writer wins."""
from __future__ import annotations

import fcntl
import json
import os
import re
from pathlib import Path
from typing import Sequence

from resumeboost.config import DATA_DIR
from resumeboost.log import get_logger
from resumeboost.models import CandidateItem

log = get_logger(__name__)

_SAFE_ID = re.compile(r"^[A-Za-z0-9_.-]{1,128}$")


class ResumeStore:
    def __init__(self, data_dir: Path = DATA_DIR) -> None:
        self.root = data_dir / "resumes"

    def _path(self, resume_id: str) -> Path:
        if not _SAFE_ID.match(resume_id or "") or resume_id.startswith("."):
            raise ValueError(f"Invalid resume id: {resume_id!r}")
        return self.root / f"{resume_id}.json"

    def read_items(self, resume_id: str) -> list[CandidateItem]:
        path = self._path(resume_id)
        if not path.exists():
            return []
        with open(path, "r", encoding="utf-8") as f:
            fcntl.flock(f.fileno(), fcntl.LOCK_SH)
            try:
                data = json.load(f)
            finally:
                fcntl.flock(f.fileno(), fcntl.LOCK_UN)
        return [CandidateItem.from_dict(p) for p in data.get("projects", [])]

    def write_items(self, resume_id: str, items: Sequence[CandidateItem]) -> Path:
        """Replace the stored list. Written to a temp file, then renamed into place."""
        path = self._path(resume_id)
        self.root.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(".json.tmp")
        payload = {"resume_id": resume_id, "projects": [i.to_dict() for i in items]}
        with open(tmp, "w", encoding="utf-8") as f:
            fcntl.flock(f.fileno(), fcntl.LOCK_EX)
            json.dump(payload, f, indent=2, ensure_ascii=False)
            f.flush()
            os.fsync(f.fileno())
            fcntl.flock(f.fileno(), fcntl.LOCK_UN)
        os.replace(tmp, path)
        log.info("Saved %d project(s) for resume %s", len(items), resume_id)
        return path
