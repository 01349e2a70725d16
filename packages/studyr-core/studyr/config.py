"""
Studyr Configuration

Loads settings from ~/.studyr/config.yaml with environment variable overrides.
Covers the store backend, study timer lengths and alert behaviour.
"""

from __future__ import annotations
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Optional
import os
import logging

logger = logging.getLogger(__name__)

try:
    import yaml
    HAS_YAML = True
except ImportError:
    HAS_YAML = False

CONFIG_DIR = Path.home() / ".studyr"
CONFIG_FILE = CONFIG_DIR / "config.yaml"


@dataclass
class StoreConfig:
    """Key-value store settings."""

    type: str = "sqlite"  # "sqlite", "postgres" or "memory"
    sqlite_path: str = "~/.studyr/studyr.db"
    postgres_url: Optional[str] = None


@dataclass
class TimerConfig:
    """Study timer lengths, in minutes."""

    focus_minutes: int = 25
    short_break_minutes: int = 5
    long_break_minutes: int = 15
    long_break_every: int = 4  # long break after every Nth focus session


@dataclass
class AlertConfig:
    """Due-date alert settings."""

    max_listed: int = 3
    auto_reset_daily: bool = True


@dataclass
class StudyrConfig:
    """
    Complete Studyr configuration.

    Loaded from ~/.studyr/config.yaml with environment variable overrides.
    """

    store: StoreConfig = field(default_factory=StoreConfig)
    timer: TimerConfig = field(default_factory=TimerConfig)
    alerts: AlertConfig = field(default_factory=AlertConfig)
    log_level: str = "INFO"

    def to_dict(self) -> dict:
        """Convert to dictionary for display (masks secrets)."""
        result = asdict(self)

        # Mask database URL
        if result.get("store", {}).get("postgres_url"):
            url = result["store"]["postgres_url"]
            result["store"]["postgres_url"] = url[:30] + "..." if len(url) > 30 else "***"

        return result


def _parse_store_config(data: dict) -> StoreConfig:
    """Parse store configuration from YAML data."""
    store_data = data.get("store", {})

    store_type = store_data.get("type", "sqlite")

    sqlite_config = store_data.get("sqlite", {})
    sqlite_path = sqlite_config.get("path", "~/.studyr/studyr.db")

    postgres_config = store_data.get("postgres", {})
    postgres_url = postgres_config.get("url")

    # Check for URL from environment variable reference
    url_env = postgres_config.get("url_env")
    if url_env and not postgres_url:
        postgres_url = os.environ.get(url_env)

    return StoreConfig(
        type=store_type,
        sqlite_path=sqlite_path,
        postgres_url=postgres_url,
    )


def _parse_timer_config(data: dict) -> TimerConfig:
    """Parse timer configuration from YAML data."""
    timer_data = data.get("timer", {})
    defaults = TimerConfig()

    return TimerConfig(
        focus_minutes=int(timer_data.get("focus_minutes", defaults.focus_minutes)),
        short_break_minutes=int(timer_data.get("short_break_minutes", defaults.short_break_minutes)),
        long_break_minutes=int(timer_data.get("long_break_minutes", defaults.long_break_minutes)),
        long_break_every=int(timer_data.get("long_break_every", defaults.long_break_every)),
    )


def _parse_alert_config(data: dict) -> AlertConfig:
    """Parse alert configuration from YAML data."""
    alert_data = data.get("alerts", {})

    return AlertConfig(
        max_listed=int(alert_data.get("max_listed", 3)),
        auto_reset_daily=bool(alert_data.get("auto_reset_daily", True)),
    )


def load_config(config_path: Optional[Path] = None) -> StudyrConfig:
    """
    Load configuration from file with environment variable overrides.

    Args:
        config_path: Optional path to config file. Defaults to ~/.studyr/config.yaml

    Returns:
        StudyrConfig instance
    """
    config_file = config_path or CONFIG_FILE
    config = StudyrConfig()

    # Load from YAML if available
    if HAS_YAML and config_file.exists():
        try:
            with open(config_file, 'r') as f:
                data = yaml.safe_load(f) or {}

            config.store = _parse_store_config(data)
            config.timer = _parse_timer_config(data)
            config.alerts = _parse_alert_config(data)
            config.log_level = str(data.get("log_level", config.log_level)).upper()

        except yaml.YAMLError as e:
            logger.warning(f"Could not parse config file at {config_file}: {e}")
        except (OSError, TypeError, ValueError) as e:
            logger.warning(f"Unexpected error loading config from {config_file}: {e}")

    # Environment variable overrides
    if os.environ.get("STUDYR_DATABASE_URL"):
        config.store.type = "postgres"
        config.store.postgres_url = os.environ["STUDYR_DATABASE_URL"]
    elif os.environ.get("STUDYR_STORE"):
        config.store.type = os.environ["STUDYR_STORE"]

    if os.environ.get("STUDYR_SQLITE_PATH"):
        config.store.sqlite_path = os.environ["STUDYR_SQLITE_PATH"]

    if os.environ.get("STUDYR_LOG_LEVEL"):
        config.log_level = os.environ["STUDYR_LOG_LEVEL"].upper()

    return config


def save_config(config: StudyrConfig, config_path: Optional[Path] = None) -> None:
    """
    Save configuration to file.

    Args:
        config: StudyrConfig instance to save
        config_path: Optional path to config file. Defaults to ~/.studyr/config.yaml
    """
    if not HAS_YAML:
        raise RuntimeError("PyYAML not installed. Run: pip install pyyaml")

    config_file = config_path or CONFIG_FILE

    # Ensure config directory exists
    config_file.parent.mkdir(parents=True, exist_ok=True)

    data = {
        "store": {
            "type": config.store.type,
        },
        "timer": asdict(config.timer),
        "alerts": asdict(config.alerts),
        "log_level": config.log_level,
    }

    if config.store.type == "sqlite":
        data["store"]["sqlite"] = {"path": config.store.sqlite_path}
    elif config.store.postgres_url:
        data["store"]["postgres"] = {"url": config.store.postgres_url}

    with open(config_file, 'w') as f:
        yaml.dump(data, f, default_flow_style=False, sort_keys=False)

    # Secure permissions (readable only by owner)
    config_file.chmod(0o600)

    logger.info(f"Configuration saved to {config_file}")


def ensure_config_dir() -> Path:
    """Ensure config directory exists and return its path."""
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    return CONFIG_DIR


# Cached config instance
_config: Optional[StudyrConfig] = None


def get_config() -> StudyrConfig:
    """Get cached config instance, loading if needed."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reload_config() -> StudyrConfig:
    """Force reload config from file."""
    global _config
    _config = load_config()
    return _config
