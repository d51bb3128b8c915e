"""Explorer configuration. YAML file merged over defaults, then env var overrides."""

import copy
import logging
import os
from dataclasses import dataclass

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config.yml"

DEFAULTS = {
    "api": {
        "url": "http://localhost:8000/api",
        "project": "default",
        "source": "edge_logs",
        "request_timeout": 10.0,
    },
    "poll": {
        "interval": 5.0,
        "enabled": True,
    },
    "time_range": {
        "live_window_minutes": 60,
    },
    "custom_query": {
        "default": "select\n  cast(timestamp as datetime) as timestamp,\n  event_message,\n  metadata\nfrom {source}\nlimit 100",
        "sandbox_window_days": 7,
    },
    "chart": {
        "bucket_seconds": 60,
    },
    "preferences": {
        "path": "~/.log-explorer/preferences.json",
    },
}


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("true", "1", "yes")


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge override dict into base dict."""
    result = copy.deepcopy(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = copy.deepcopy(value)
    return result


def load_yaml(path: str | None = None) -> dict:
    """Load the YAML config and merge it over DEFAULTS.

    The path can be overridden via the ``CONFIG_PATH`` environment variable.
    A missing file yields the defaults; invalid YAML is logged and ignored.
    """
    path = path or os.environ.get("CONFIG_PATH", DEFAULT_CONFIG_PATH)
    try:
        with open(path, "r") as f:
            user_config = yaml.safe_load(f)
    except FileNotFoundError:
        logger.debug("No config file at %s, using defaults", path)
        return copy.deepcopy(DEFAULTS)
    except yaml.YAMLError:
        logger.warning("Invalid YAML in %s, using defaults", path)
        return copy.deepcopy(DEFAULTS)

    if not isinstance(user_config, dict):
        return copy.deepcopy(DEFAULTS)
    return _deep_merge(DEFAULTS, user_config)


@dataclass(frozen=True)
class ExplorerConfig:
    api_url: str = DEFAULTS["api"]["url"]
    project: str = DEFAULTS["api"]["project"]
    source: str = DEFAULTS["api"]["source"]
    request_timeout: float = DEFAULTS["api"]["request_timeout"]
    poll_interval: float = DEFAULTS["poll"]["interval"]
    live_window_minutes: int = DEFAULTS["time_range"]["live_window_minutes"]
    default_custom_query: str = DEFAULTS["custom_query"]["default"]
    sandbox_window_days: int = DEFAULTS["custom_query"]["sandbox_window_days"]
    chart_bucket_seconds: int = DEFAULTS["chart"]["bucket_seconds"]
    preferences_path: str = DEFAULTS["preferences"]["path"]
    poll_enabled: bool = True

    @property
    def live_window_micros(self) -> int:
        return self.live_window_minutes * 60 * 1_000_000

    @property
    def custom_query_template(self) -> str:
        return self.default_custom_query.replace("{source}", self.source)

    @classmethod
    def from_dict(cls, d: dict) -> "ExplorerConfig":
        merged = _deep_merge(DEFAULTS, d)
        return cls(
            api_url=merged["api"]["url"],
            project=str(merged["api"]["project"]),
            source=merged["api"]["source"],
            request_timeout=float(merged["api"]["request_timeout"]),
            poll_interval=float(merged["poll"]["interval"]),
            poll_enabled=bool(merged["poll"]["enabled"]),
            live_window_minutes=int(merged["time_range"]["live_window_minutes"]),
            default_custom_query=merged["custom_query"]["default"],
            sandbox_window_days=int(merged["custom_query"]["sandbox_window_days"]),
            chart_bucket_seconds=int(merged["chart"]["bucket_seconds"]),
            preferences_path=merged["preferences"]["path"],
        )


def load_config(path: str | None = None) -> ExplorerConfig:
    """Build ExplorerConfig from defaults <- YAML file <- env vars (highest priority)."""
    cfg = ExplorerConfig.from_dict(load_yaml(path))
    return ExplorerConfig(
        api_url=os.environ.get("LOG_API_URL", cfg.api_url),
        project=os.environ.get("LOG_PROJECT", cfg.project),
        source=os.environ.get("LOG_SOURCE", cfg.source),
        request_timeout=float(os.environ.get("REQUEST_TIMEOUT", str(cfg.request_timeout))),
        poll_interval=float(os.environ.get("POLL_INTERVAL", str(cfg.poll_interval))),
        poll_enabled=_parse_bool(os.environ.get("POLL_ENABLED", str(cfg.poll_enabled))),
        live_window_minutes=int(
            os.environ.get("LIVE_WINDOW_MINUTES", str(cfg.live_window_minutes))
        ),
        default_custom_query=cfg.default_custom_query,
        sandbox_window_days=cfg.sandbox_window_days,
        chart_bucket_seconds=cfg.chart_bucket_seconds,
        preferences_path=os.environ.get("PREFERENCES_PATH", cfg.preferences_path),
    )
