"""
Configuration management for chilltv.

Handles loading, validation, and access to application configuration.
"""

import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field

# Global configuration instance
_config: Optional["ChillTVConfig"] = None


class ServerConfig(BaseModel):
    """Server configuration."""
    host: str = "0.0.0.0"
    port: int = 8420
    debug: bool = False
    log_level: str = "INFO"


class CatalogConfig(BaseModel):
    """Catalog (stored movies) API configuration."""
    base_url: str = "https://chillflix-indexer-movie-maker-production.up.railway.app"
    endpoint: str = "/api/movies"
    timeout: float = 30.0
    default_duration: int = 7200  # Seconds assumed when the API omits a duration


class StreamingConfig(BaseModel):
    """Stream URL construction."""
    stream_host: str = "https://p2media.fly.dev"


class SchedulingConfig(BaseModel):
    """Linear channel scheduling configuration."""
    tick_interval: float = 1.0  # Seconds between now-playing recomputations
    anchor: str = "top_of_hour"  # top_of_hour, now
    guide_size: int = 10
    refresh_interval: int = 300  # Seconds between catalog refreshes, 0 = never


class PlaybackConfigSettings(BaseModel):
    """Per-title playback state persistence."""
    debounce_seconds: float = 1.0
    max_stored_states: int = 10
    backend: str = "file"  # memory, file, sql
    storage_path: str = "data/playback_state.json"
    database_url: str = "sqlite:///./chilltv.db"


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: str = "INFO"
    file: str = "logs/chilltv.log"
    max_size: str = "10MB"
    backup_count: int = 5
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class ChillTVConfig(BaseModel):
    """Main chilltv configuration."""
    server: ServerConfig = Field(default_factory=ServerConfig)
    catalog: CatalogConfig = Field(default_factory=CatalogConfig)
    streaming: StreamingConfig = Field(default_factory=StreamingConfig)
    scheduling: SchedulingConfig = Field(default_factory=SchedulingConfig)
    playback: PlaybackConfigSettings = Field(default_factory=PlaybackConfigSettings)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def load_config(config_path: Optional[str] = None) -> ChillTVConfig:
    """
    Load configuration from file.

    Args:
        config_path: Path to config file. Defaults to config.yaml in project root.

    Returns:
        Loaded and validated configuration.
    """
    global _config

    if config_path is None:
        # Look for config.yaml in current directory or project root
        possible_paths = [
            Path("config.yaml"),
            Path(__file__).parent.parent / "config.yaml",
        ]
        for path in possible_paths:
            if path.exists():
                config_path = str(path)
                break

    config_data: dict[str, Any] = {}

    if config_path and Path(config_path).exists():
        with open(config_path) as f:
            config_data = yaml.safe_load(f) or {}

    # Apply environment variable overrides
    env_overrides = _get_env_overrides()
    _deep_merge(config_data, env_overrides)

    _config = ChillTVConfig(**config_data)
    return _config


def get_config() -> ChillTVConfig:
    """
    Get the current configuration.

    Returns:
        Current configuration (loads default if not yet loaded).
    """
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reload_config() -> ChillTVConfig:
    """
    Reload configuration from disk.

    Returns:
        Freshly loaded configuration.
    """
    global _config
    _config = None
    return load_config()


def _get_env_overrides() -> dict[str, Any]:
    """Get configuration overrides from environment variables."""
    overrides: dict[str, Any] = {}

    # Map of environment variables to config paths
    env_map = {
        "CHILLTV_HOST": ("server", "host"),
        "CHILLTV_PORT": ("server", "port"),
        "CHILLTV_DEBUG": ("server", "debug"),
        "CHILLTV_CATALOG_URL": ("catalog", "base_url"),
        "CHILLTV_STREAM_HOST": ("streaming", "stream_host"),
        "CHILLTV_PLAYBACK_BACKEND": ("playback", "backend"),
        "CHILLTV_PLAYBACK_PATH": ("playback", "storage_path"),
        "CHILLTV_DATABASE_URL": ("playback", "database_url"),
        "CHILLTV_LOG_LEVEL": ("logging", "level"),
    }

    for env_var, path in env_map.items():
        value = os.environ.get(env_var)
        if value is not None:
            _set_nested(overrides, path, _parse_env_value(value))

    return overrides


def _parse_env_value(value: str) -> Any:
    """Parse environment variable value to appropriate type."""
    # Boolean
    if value.lower() in ("true", "yes"):
        return True
    if value.lower() in ("false", "no"):
        return False

    # Integer
    try:
        return int(value)
    except ValueError:
        pass

    # Float
    try:
        return float(value)
    except ValueError:
        pass

    return value


def _set_nested(d: dict[str, Any], path: tuple[str, ...], value: Any) -> None:
    """Set a nested dictionary value from a path tuple."""
    for key in path[:-1]:
        d = d.setdefault(key, {})
    d[path[-1]] = value


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> None:
    """Deep merge override into base dictionary."""
    for key, value in override.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value


class _ConfigProxy:
    """
    Proxy object that provides lazy access to configuration.

    Allows modules to import `config` directly and access it like:
        from chilltv.config import config
        config.scheduling.tick_interval
    """

    def __getattr__(self, name: str) -> Any:
        return getattr(get_config(), name)

    def __repr__(self) -> str:
        return f"<ConfigProxy for {get_config()}>"


config = _ConfigProxy()
