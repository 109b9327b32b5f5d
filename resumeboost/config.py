"""Load env and policy configuration into an explicit Settings object."""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

import yaml
from dotenv import load_dotenv

from resumeboost.errors import ConfigurationError
from resumeboost.log import get_logger

log = get_logger(__name__)

ROOT_DIR: Path = Path(__file__).resolve().parent.parent
CONFIG_DIR: Path = ROOT_DIR / "config"
SETTINGS_PATH: Path = CONFIG_DIR / "settings.yaml"
DATA_DIR: Path = ROOT_DIR / "data"

OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"
DEFAULT_BROWSER_SERVICE_URL = "https://browser-service.invalid/api"

# Policy constants; overridable from config/settings.yaml
RECONCILE_CAP = 3
SUITABILITY_THRESHOLD = 80
POLL_INTERVAL_SECONDS = 2.0
SUBMIT_TIMEOUT_SECONDS = 180.0
HEALTH_TIMEOUT_SECONDS = 10.0
LLM_MAX_ATTEMPTS = 3
LLM_BASE_DELAY = 1.0
LLM_MODEL = "google/gemini-2.5-flash"

DEFAULT_POLICY: dict[str, Any] = {
    "reconcile_cap": RECONCILE_CAP,
    "suitability_threshold": SUITABILITY_THRESHOLD,
    "poll_interval_seconds": POLL_INTERVAL_SECONDS,
    "submit_timeout_seconds": SUBMIT_TIMEOUT_SECONDS,
    "llm_max_attempts": LLM_MAX_ATTEMPTS,
    "llm_base_delay": LLM_BASE_DELAY,
    "llm_model": LLM_MODEL,
}


@dataclass(frozen=True)
class Settings:
    openrouter_api_key: str
    openrouter_base_url: str = OPENROUTER_BASE_URL
    llm_model: str = LLM_MODEL
    llm_max_attempts: int = LLM_MAX_ATTEMPTS
    llm_base_delay: float = LLM_BASE_DELAY
    browser_service_url: str = DEFAULT_BROWSER_SERVICE_URL
    browser_service_api_key: str = ""
    reconcile_cap: int = RECONCILE_CAP
    suitability_threshold: int = SUITABILITY_THRESHOLD
    poll_interval_seconds: float = POLL_INTERVAL_SECONDS
    submit_timeout_seconds: float = SUBMIT_TIMEOUT_SECONDS
    data_dir: Path = DATA_DIR

    def require_browser_service(self) -> None:
        """Auto-apply is only usable once the browser service is configured."""
        if not self.browser_service_api_key:
            raise ConfigurationError(
                "Browser service API key is not configured. "
                "Set BROWSER_SERVICE_API_KEY in your environment."
            )


def get_env(key: str, default: str = "") -> str:
    return os.environ.get(key, default).strip()


def ensure_dirs(settings: Settings | None = None) -> None:
    for d in (CONFIG_DIR, settings.data_dir if settings else DATA_DIR):
        d.mkdir(parents=True, exist_ok=True)


def load_policy(path: Path | None = None) -> dict[str, Any]:
    """Defaults merged with config/settings.yaml when present. Unknown keys are ignored."""
    policy = dict(DEFAULT_POLICY)
    path = path or SETTINGS_PATH
    if not path.exists():
        return policy

    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"{path.name} must contain a mapping, got {type(data).__name__}")

    for key, value in data.items():
        if key not in DEFAULT_POLICY:
            log.warning("Ignoring unknown setting %r in %s", key, path.name)
            continue
        policy[key] = value

    if int(policy["reconcile_cap"]) < 1:
        raise ConfigurationError("reconcile_cap must be at least 1")
    if not 0 <= int(policy["suitability_threshold"]) <= 100:
        raise ConfigurationError("suitability_threshold must be between 0 and 100")
    if float(policy["poll_interval_seconds"]) <= 0:
        raise ConfigurationError("poll_interval_seconds must be positive")
    return policy


def load_settings(
    env: Mapping[str, str] | None = None,
    *,
    settings_path: Path | None = None,
    use_dotenv: bool = True,
) -> Settings:
    """Build Settings at application bootstrap; fails fast on missing keys."""
    if env is None:
        if use_dotenv:
            load_dotenv()
        env = os.environ

    def _get(key: str, default: str = "") -> str:
        return (env.get(key) or default).strip()

    api_key = _get("OPENROUTER_API_KEY")
    if not api_key:
        raise ConfigurationError(
            "OpenRouter API key is not configured. "
            "Please add OPENROUTER_API_KEY to your environment variables."
        )

    policy = load_policy(settings_path)
    data_dir = _get("RESUMEBOOST_DATA_DIR")

    settings = Settings(
        openrouter_api_key=api_key,
        llm_model=_get("OPENROUTER_MODEL", str(policy["llm_model"])),
        llm_max_attempts=int(policy["llm_max_attempts"]),
        llm_base_delay=float(policy["llm_base_delay"]),
        browser_service_url=_get("BROWSER_SERVICE_URL", DEFAULT_BROWSER_SERVICE_URL).rstrip("/"),
        browser_service_api_key=_get("BROWSER_SERVICE_API_KEY"),
        reconcile_cap=int(policy["reconcile_cap"]),
        suitability_threshold=int(policy["suitability_threshold"]),
        poll_interval_seconds=float(policy["poll_interval_seconds"]),
        submit_timeout_seconds=float(policy["submit_timeout_seconds"]),
        data_dir=Path(data_dir) if data_dir else DATA_DIR,
    )
    log.debug("Settings loaded (model=%s, cap=%d)", settings.llm_model, settings.reconcile_cap)
    return settings
