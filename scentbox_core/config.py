# =============================================================================
# scentbox_core/config.py
# Application configuration
# =============================================================================
"""
Configuration for the ScentBox core.

Expected scentbox.toml format (same layout as a Streamlit secrets file):

    [supabase]
    url = "https://your-project.supabase.co"
    key = "your-anon-key"

    [app]
    provider = "supabase"          # or "mock"
    db_path = "local_data/scentbox.db"
    page_size = 20

    [logging]
    level = "INFO"
    to_file = false

Environment variables SUPABASE_URL, SUPABASE_KEY, SCENTBOX_PROVIDER and
SCENTBOX_DB_PATH override the file.
"""

from __future__ import annotations
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

import toml

from scentbox_core.errors import ConfigurationError
from scentbox_core.logging import get_logger

logger = get_logger(__name__)

DEFAULT_CONFIG_FILE = Path("scentbox.toml")
DEFAULT_DATA_DIR = Path(__file__).parent.parent / "local_data"

PROVIDERS = ("supabase", "mock")


@dataclass
class AppConfig:
    """Runtime settings, constructed once at process start."""
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    provider: str = "supabase"
    db_path: Union[str, Path] = DEFAULT_DATA_DIR / "scentbox.db"
    state_path: Union[str, Path] = DEFAULT_DATA_DIR / "sync_state.json"
    page_size: int = 20
    staleness_seconds: float = 300.0
    search_debounce_seconds: float = 0.3
    toggle_interval_seconds: float = 0.5
    retry_attempts: int = 3
    retry_initial_delay: float = 1.0
    log_level: str = "INFO"
    log_to_file: bool = False

    def validate(self) -> "AppConfig":
        if self.provider not in PROVIDERS:
            raise ConfigurationError(
                f"Unknown provider: {self.provider}",
                config_key="app.provider",
                expected_type=" | ".join(PROVIDERS),
            )
        if self.provider == "supabase" and not (self.supabase_url and self.supabase_key):
            raise ConfigurationError(
                "Supabase credentials not found. Set [supabase] url/key in "
                "scentbox.toml or SUPABASE_URL/SUPABASE_KEY.",
                config_key="supabase",
            )
        if self.page_size <= 0:
            raise ConfigurationError("page_size must be positive", config_key="app.page_size", expected_type="int > 0")
        if self.retry_attempts < 1:
            raise ConfigurationError("retry_attempts must be at least 1", config_key="app.retry_attempts")
        return self


# toml section/key -> AppConfig field
_FILE_KEYS = {
    ("supabase", "url"): "supabase_url",
    ("supabase", "key"): "supabase_key",
    ("app", "provider"): "provider",
    ("app", "db_path"): "db_path",
    ("app", "state_path"): "state_path",
    ("app", "page_size"): "page_size",
    ("app", "staleness_seconds"): "staleness_seconds",
    ("app", "search_debounce_seconds"): "search_debounce_seconds",
    ("app", "toggle_interval_seconds"): "toggle_interval_seconds",
    ("app", "retry_attempts"): "retry_attempts",
    ("app", "retry_initial_delay"): "retry_initial_delay",
    ("logging", "level"): "log_level",
    ("logging", "to_file"): "log_to_file",
}

_ENV_KEYS = {
    "SUPABASE_URL": "supabase_url",
    "SUPABASE_KEY": "supabase_key",
    "SCENTBOX_PROVIDER": "provider",
    "SCENTBOX_DB_PATH": "db_path",
}


def _read_file(path: Path) -> Dict[str, Any]:
    try:
        raw = toml.load(path)
    except toml.TomlDecodeError as e:
        raise ConfigurationError(f"Invalid config file {path}: {e}", config_key=str(path))

    values = {}
    for (section, key), field_name in _FILE_KEYS.items():
        if section in raw and key in raw[section]:
            values[field_name] = raw[section][key]
    return values


def load_config(path: Optional[Union[str, Path]] = None, validate: bool = True) -> AppConfig:
    """
    Load configuration from a toml file and the environment.

    Args:
        path: Config file (default: ./scentbox.toml, skipped if missing)
        validate: Whether to validate the result

    Returns:
        AppConfig
    """
    values: Dict[str, Any] = {}

    config_path = Path(path) if path else DEFAULT_CONFIG_FILE
    if config_path.exists():
        values.update(_read_file(config_path))
        logger.debug(f"Loaded config from {config_path}")
    elif path:
        raise ConfigurationError(f"Config file not found: {config_path}", config_key=str(config_path))

    for env_key, field_name in _ENV_KEYS.items():
        env_value = os.getenv(env_key)
        if env_value:
            values[field_name] = env_value

    known = {f.name for f in fields(AppConfig)}
    config = AppConfig(**{k: v for k, v in values.items() if k in known})

    return config.validate() if validate else config
