"""Settings loader: data/settings.yaml with environment overrides.

Values are read once and cached; call ``clear_settings_cache()`` after
changing the environment or the file (tests do this).
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

import yaml

from .api import DEFAULT_API_BASE_URL
from .controller import DEFAULT_SETTLE_DELAY

logger = logging.getLogger(__name__)

_PACKAGE_ROOT = Path(__file__).resolve().parent
_PROJECT_ROOT = _PACKAGE_ROOT.parent.parent
DATA_DIR = _PROJECT_ROOT / "data"
DEFAULT_SETTINGS_PATH = DATA_DIR / "settings.yaml"

CONFIG_PATH_ENV = "VOCAB_REVIEW_CONFIG"
API_URL_ENV = "VOCAB_REVIEW_API_URL"
SETTLE_DELAY_ENV = "VOCAB_REVIEW_SETTLE_DELAY_MS"
REQUEST_TIMEOUT_ENV = "VOCAB_REVIEW_REQUEST_TIMEOUT"
LOG_LEVEL_ENV = "VOCAB_REVIEW_LOG_LEVEL"

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True, slots=True)
class Settings:
    api_base_url: str = DEFAULT_API_BASE_URL
    settle_delay: float = DEFAULT_SETTLE_DELAY
    request_timeout: float | None = None
    log_level: str = "INFO"


_cache: Settings | None = None


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return {}
    try:
        data = yaml.safe_load(raw) or {}
    except yaml.YAMLError as exc:
        logger.warning("Ignoring unreadable settings file %s: %s", path, exc)
        return {}
    if not isinstance(data, dict):
        logger.warning("Ignoring settings file %s: expected a mapping", path)
        return {}
    return data


def _as_float(name: str, value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{name} must be a number, got {value!r}") from exc


def _settle_delay(value: Any, *, from_ms: bool) -> float:
    delay = _as_float("settle delay", value)
    if from_ms:
        delay /= 1000.0
    if delay < 0:
        raise ValueError("settle delay must not be negative")
    return delay


def _timeout(value: Any) -> float | None:
    if value is None or value == "" or str(value).lower() == "none":
        return None
    timeout = _as_float("request timeout", value)
    if timeout <= 0:
        raise ValueError("request timeout must be positive")
    return timeout


def _log_level(value: Any) -> str:
    level = str(value).strip().upper()
    if level not in _LOG_LEVELS:
        raise ValueError(f"Unknown log level: {value!r}")
    return level


def load_settings(path: Path | None = None, environ: Mapping[str, str] | None = None) -> Settings:
    env = os.environ if environ is None else environ
    config_path = path or Path(env.get(CONFIG_PATH_ENV) or DEFAULT_SETTINGS_PATH)
    data = _read_yaml(config_path)

    api_base_url = str(data.get("api_base_url") or DEFAULT_API_BASE_URL)
    settle_delay = DEFAULT_SETTLE_DELAY
    if "settle_delay_ms" in data:
        settle_delay = _settle_delay(data["settle_delay_ms"], from_ms=True)
    request_timeout = _timeout(data.get("request_timeout"))
    log_level = _log_level(data.get("log_level", "INFO"))

    if env.get(API_URL_ENV):
        api_base_url = env[API_URL_ENV]
    if env.get(SETTLE_DELAY_ENV):
        settle_delay = _settle_delay(env[SETTLE_DELAY_ENV], from_ms=True)
    if env.get(REQUEST_TIMEOUT_ENV):
        request_timeout = _timeout(env[REQUEST_TIMEOUT_ENV])
    if env.get(LOG_LEVEL_ENV):
        log_level = _log_level(env[LOG_LEVEL_ENV])

    return Settings(
        api_base_url=api_base_url,
        settle_delay=settle_delay,
        request_timeout=request_timeout,
        log_level=log_level,
    )


def get_settings() -> Settings:
    global _cache
    if _cache is None:
        _cache = load_settings()
    return _cache


def clear_settings_cache() -> None:
    global _cache
    _cache = None


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


__all__ = [
    "Settings",
    "clear_settings_cache",
    "configure_logging",
    "get_settings",
    "load_settings",
]
