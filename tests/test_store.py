from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

import pytest

from resumeboost.history import ApplicationHistory
from resumeboost.models import CandidateItem
from resumeboost.store import ResumeStore


def test_store_roundtrip_and_last_writer_wins(tmp_path):
    store = ResumeStore(tmp_path)
    assert store.read_items("r1") == []

    first = [CandidateItem("Chat App", ("Built it",), "https://github.com/example/chat")]
    second = [CandidateItem("ETL Pipeline", ("Loaded data", "Tested it"))]
    store.write_items("r1", first)
    store.write_items("r1", second)

    assert store.read_items("r1") == second


@pytest.mark.parametrize("resume_id", ["", "../etc/passwd", ".hidden", "a/b"])
def test_store_rejects_unsafe_ids(tmp_path, resume_id):
    with pytest.raises(ValueError):
        ResumeStore(tmp_path).read_items(resume_id)


def test_history_update_status(tmp_path):
    history = ApplicationHistory(tmp_path)
    history.record_application("app-1", "SRE", "Acme", "https://jobs.example.com/1")
    history.record_application("app-2", "SWE", "Beta", "https://jobs.example.com/2")

    assert history.update_status("app-2", "completed", "Done") is True
    assert history.update_status("missing", "completed") is False

    rows = {r["application_id"]: r for r in history.get_applications()}
    assert rows["app-1"]["status"] == "submitted"
    assert rows["app-2"]["status"] == "completed"
    assert rows["app-2"]["message"] == "Done"


def test_history_concurrent_updates_are_not_lost(tmp_path):
    history = ApplicationHistory(tmp_path)
    ids = [f"app-{n}" for n in range(8)]
    for app_id in ids:
        history.record_application(app_id, "SWE", "Acme", "https://jobs.example.com")

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(lambda app_id: history.update_status(app_id, "completed"), ids))

    assert all(results)
    rows = history.get_applications()
    assert len(rows) == len(ids)
    assert {r["status"] for r in rows} == {"completed"}
