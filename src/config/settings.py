"""Unified config: poll, fetch, page selectors, light timings, classifier threshold.

Defaults: loaded from config/config.yaml.example (single source of truth, no code-level defaults).
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional

import soupsieve
import yaml

from src.core.errors import ConfigError

_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
_EXAMPLE_PATH = _PROJECT_ROOT / "config" / "config.yaml.example"
_DEFAULT_PATH = "config/config.yaml"

# Lazy-loaded example config (single source of truth for defaults)
_EXAMPLE_CONFIG: Optional[Dict[str, Any]] = None


def read_config(config_path: Optional[str] = None) -> tuple[dict, str]:
    """Load YAML config. Returns (config, resolved_path).

    An explicit path (argument or BEACON_CONFIG) must exist. Only the default
    config/config.yaml falls back to config.yaml.example when absent.
    """
    explicit = config_path or os.environ.get("BEACON_CONFIG")
    if explicit:
        if not Path(explicit).is_file():
            raise ConfigError(f"Config file not found: {explicit}")
        config_path = explicit
    elif Path(_DEFAULT_PATH).is_file():
        config_path = _DEFAULT_PATH
    else:
        config_path = str(_EXAMPLE_PATH)
    config_path = str(Path(config_path).resolve())
    with open(config_path, "r", encoding="utf-8") as f:
        try:
            config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e
    if not isinstance(config, dict):
        raise ConfigError(f"Config root must be a mapping: {config_path}")
    return config, config_path


def _load_example_config() -> Dict[str, Any]:
    """Load config.yaml.example as defaults. No code-level defaults."""
    global _EXAMPLE_CONFIG
    if _EXAMPLE_CONFIG is None:
        with open(_EXAMPLE_PATH, encoding="utf-8") as f:
            _EXAMPLE_CONFIG = yaml.safe_load(f) or {}
    return _EXAMPLE_CONFIG


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Merge override into base. Override values take precedence."""
    out = dict(base)
    for k, v in override.items():
        if k in out and isinstance(out[k], dict) and isinstance(v, dict):
            out[k] = _deep_merge(out[k], v)
        else:
            out[k] = v
    return out


def _merged_config(cfg: Dict[str, Any]) -> Dict[str, Any]:
    """Merge config with example so missing keys come from config file."""
    return _deep_merge(_load_example_config(), cfg)


def _section(cfg: Dict[str, Any], section: str) -> Dict[str, Any]:
    sec = cfg.get(section)
    if sec is None:
        return {}
    if not isinstance(sec, dict):
        raise ConfigError(f"Config section '{section}' must be a mapping, got {type(sec).__name__}")
    return sec


def _positive(value: Any, key: str) -> float:
    try:
        out = float(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{key} must be a number, got {value!r}") from None
    if out <= 0:
        raise ConfigError(f"{key} must be > 0, got {value!r}")
    return out


def _non_empty_str(value: Any, key: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(f"{key} must be a non-empty string, got {value!r}")
    return value.strip()


def get_poll_config(config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Return poll config: url, interval_minutes, interval_sec."""
    merged = _merged_config(config or {})
    s = _section(merged, "poll")
    interval_minutes = _positive(s.get("interval_minutes"), "poll.interval_minutes")
    return {
        "url": _non_empty_str(s.get("url"), "poll.url"),
        "interval_minutes": interval_minutes,
        "interval_sec": interval_minutes * 60.0,
    }


def get_fetch_config(config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Return fetch config: timeout_sec, user_agent."""
    merged = _merged_config(config or {})
    s = _section(merged, "fetch")
    return {
        "timeout_sec": _positive(s.get("timeout_sec"), "fetch.timeout_sec"),
        "user_agent": s.get("user_agent") or None,
    }


def _css_selector(value: Any, key: str) -> str:
    selector = _non_empty_str(value, key)
    try:
        soupsieve.compile(selector)
    except soupsieve.SelectorSyntaxError as e:
        raise ConfigError(f"{key} is not a valid CSS selector: {selector!r} ({e})") from None
    return selector


def get_page_config(config: Optional[Dict[str, Any]] = None) -> Dict[str, str]:
    """Return CSS selectors used to tally builder columns. Each is compiled here so a typo fails at startup."""
    merged = _merged_config(config or {})
    s = _section(merged, "page")
    return {
        key: _css_selector(s.get(key), f"page.{key}")
        for key in (
            "column_selector",
            "success_selector",
            "failure_selector",
            "exception_selector",
        )
    }


def get_light_config(config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Return light config: fade_ms, emergency_fade_ms, fade_timeout_sec (None = longest fade + grace), serial."""
    merged = _merged_config(config or {})
    s = _section(merged, "light")
    timeout = s.get("fade_timeout_sec")
    serial = s.get("serial")
    return {
        "fade_ms": int(_positive(s.get("fade_ms"), "light.fade_ms")),
        "emergency_fade_ms": int(_positive(s.get("emergency_fade_ms"), "light.emergency_fade_ms")),
        "fade_timeout_sec": _positive(timeout, "light.fade_timeout_sec") if timeout is not None else None,
        "serial": str(serial) if serial else None,
    }


def get_classifier_config(config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Return classifier config: emergency_success_ratio in [0, 1]."""
    merged = _merged_config(config or {})
    s = _section(merged, "classifier")
    raw = s.get("emergency_success_ratio")
    try:
        ratio = float(raw)
    except (TypeError, ValueError):
        raise ConfigError(f"classifier.emergency_success_ratio must be a number, got {raw!r}") from None
    if not 0.0 <= ratio <= 1.0:
        raise ConfigError(f"classifier.emergency_success_ratio must be within [0, 1], got {raw!r}")
    return {"emergency_success_ratio": ratio}
