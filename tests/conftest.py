from __future__ import annotations

import os

os.environ.setdefault("RESUMEBOOST_NO_LOG_FILE", "1")

import pytest

from resumeboost.config import Settings


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        openrouter_api_key="test-key",
        browser_service_url="https://browser.test/api",
        browser_service_api_key="browser-key",
        poll_interval_seconds=0.001,
        data_dir=tmp_path,
    )