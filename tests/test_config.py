from __future__ import annotations

import pytest

from resumeboost.config import RECONCILE_CAP, load_policy, load_settings
from resumeboost.errors import ConfigurationError


def test_missing_api_key_fails_at_bootstrap(tmp_path):
    with pytest.raises(ConfigurationError, match="OPENROUTER_API_KEY"):
        load_settings({}, settings_path=tmp_path / "none.yaml")


def test_settings_from_env_and_defaults(tmp_path):
    settings = load_settings(
        {
            "OPENROUTER_API_KEY": " sk-test ",
            "BROWSER_SERVICE_URL": "https://browser.example.com/api/",
            "RESUMEBOOST_DATA_DIR": str(tmp_path),
        },
        settings_path=tmp_path / "none.yaml",
    )
    assert settings.openrouter_api_key == "sk-test"
    assert settings.browser_service_url == "https://browser.example.com/api"
    assert settings.reconcile_cap == RECONCILE_CAP
    assert settings.suitability_threshold == 80
    assert settings.poll_interval_seconds == 2.0
    assert settings.data_dir == tmp_path
    with pytest.raises(ConfigurationError):
        settings.require_browser_service()


def test_yaml_overrides_policy(tmp_path):
    path = tmp_path / "settings.yaml"
    path.write_text("reconcile_cap: 4\nsuitability_threshold: 70\nbogus: 1\n", encoding="utf-8")

    settings = load_settings({"OPENROUTER_API_KEY": "k"}, settings_path=path)

    assert settings.reconcile_cap == 4
    assert settings.suitability_threshold == 70


@pytest.mark.parametrize(
    "body", ["reconcile_cap: 0\n", "suitability_threshold: 120\n", "poll_interval_seconds: 0\n", "- a\n- b\n"]
)
def test_invalid_policy_rejected(tmp_path, body):
    path = tmp_path / "settings.yaml"
    path.write_text(body, encoding="utf-8")
    with pytest.raises(ConfigurationError):
        load_policy(path)
