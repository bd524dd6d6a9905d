"""
Configuration Management for MatchLens

Provides configuration loading from multiple sources:
- Default values
- Configuration files (YAML, TOML, JSON)
- Environment variables

Configuration precedence (highest to lowest):
1. Explicit arguments (CLI options, API callers)
2. Environment variables (MATCHLENS_*)
3. Configuration file
4. Default values
"""

import json
import logging
import logging.handlers
import os
import tomllib
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

import yaml

from matchlens.constants import (
    DOT_SIZE,
    EFFECTIVE_FLASH_DURATION,
    HEATMAP_COLORMAP,
    JPEG_QUALITY,
    OPACITY,
)
from matchlens.errors import ConfigurationError

logger = logging.getLogger(__name__)


# ============================================================================
# Configuration Dataclasses
# ============================================================================


@dataclass
class AggregationConfig:
    """Configuration for statistics aggregation."""

    # Only count flashes that blind for longer than this (seconds)
    effective_flash_seconds: float = EFFECTIVE_FLASH_DURATION

    # Apply the warm-up gate to bomb plants, defusals and flashes as well as kills
    gate_utility_events: bool = True


@dataclass
class HeatmapConfig:
    """Configuration for heatmap rendering."""

    dot_size: int = DOT_SIZE
    opacity: int = OPACITY
    jpeg_quality: int = JPEG_QUALITY
    colormap: str = HEATMAP_COLORMAP

    # Directory holding <map_name>.jpg / .png overview images
    maps_dir: str = "maps"
    output_dir: str = "."

    # Skip (instead of failing the run) series too small to render
    skip_sparse_series: bool = False


@dataclass
class ServiceConfig:
    """Configuration for the parse service and its collaborators."""

    stats_endpoint: str | None = None
    # S3-compatible host without scheme, e.g. "fra1.digitaloceanspaces.com"
    storage_endpoint: str | None = None
    storage_bucket: str | None = None
    storage_access_key: str | None = None
    storage_secret_key: str | None = None
    storage_secure: bool = True
    work_dir: str = "."
    http_timeout_seconds: float = 120.0
    host: str = "0.0.0.0"
    port: int = 9090


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file: str | None = None
    file_max_bytes: int = 10 * 1024 * 1024  # 10MB
    file_backup_count: int = 5


@dataclass
class MatchLensConfig:
    """Main configuration container."""

    aggregation: AggregationConfig = field(default_factory=AggregationConfig)
    heatmap: HeatmapConfig = field(default_factory=HeatmapConfig)
    service: ServiceConfig = field(default_factory=ServiceConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    # Version of the config format
    config_version: str = "1.0"


_SECTIONS = ("aggregation", "heatmap", "service", "logging")


# ============================================================================
# Configuration Loading
# ============================================================================


def get_default_config_paths() -> list[Path]:
    """Get the default paths to search for configuration files."""
    home = Path.home()
    xdg_config = os.environ.get("XDG_CONFIG_HOME", str(home / ".config"))

    return [
        Path.cwd() / "matchlens.yaml",
        Path.cwd() / "matchlens.toml",
        Path.cwd() / "matchlens.json",
        Path(xdg_config) / "matchlens" / "config.yaml",
        Path(xdg_config) / "matchlens" / "config.toml",
    ]


def load_config_file(path: Path) -> dict[str, Any]:
    """Load configuration from a file, detecting format from extension."""
    if not path.exists():
        return {}

    suffix = path.suffix.lower()
    if suffix in (".yaml", ".yml"):
        with open(path) as f:
            return yaml.safe_load(f) or {}
    elif suffix == ".toml":
        with open(path, "rb") as f:
            return tomllib.load(f)
    elif suffix == ".json":
        with open(path) as f:
            return json.load(f)
    else:
        raise ConfigurationError(f"Unknown config file format: {suffix}")


ENV_MAPPINGS = {
    "MATCHLENS_LOG_LEVEL": ("logging", "level"),
    "MATCHLENS_LOG_FILE": ("logging", "file"),
    "MATCHLENS_FLASH_THRESHOLD": ("aggregation", "effective_flash_seconds"),
    "MATCHLENS_GATE_UTILITY_EVENTS": ("aggregation", "gate_utility_events"),
    "MATCHLENS_MAPS_DIR": ("heatmap", "maps_dir"),
    "MATCHLENS_OUTPUT_DIR": ("heatmap", "output_dir"),
    "MATCHLENS_JPEG_QUALITY": ("heatmap", "jpeg_quality"),
    "MATCHLENS_STATS_ENDPOINT": ("service", "stats_endpoint"),
    "MATCHLENS_STORAGE_ENDPOINT": ("service", "storage_endpoint"),
    "MATCHLENS_STORAGE_BUCKET": ("service", "storage_bucket"),
    "MATCHLENS_STORAGE_ACCESS_KEY": ("service", "storage_access_key"),
    "MATCHLENS_STORAGE_SECRET_KEY": ("service", "storage_secret_key"),
    "MATCHLENS_STORAGE_SECURE": ("service", "storage_secure"),
    "MATCHLENS_WORK_DIR": ("service", "work_dir"),
    "MATCHLENS_HTTP_TIMEOUT": ("service", "http_timeout_seconds"),
    "MATCHLENS_PORT": ("service", "port"),
}


def _convert_env_value(value: str) -> Any:
    if value.lower() in ("true", "false"):
        return value.lower() == "true"
    if value.isdigit():
        return int(value)
    try:
        return float(value)
    except ValueError:
        return value


def load_env_config() -> dict[str, Any]:
    """Load configuration from environment variables."""
    config: dict[str, Any] = {}

    for env_var, (section, key) in ENV_MAPPINGS.items():
        value = os.environ.get(env_var)
        if value is not None:
            config.setdefault(section, {})[key] = _convert_env_value(value)

    return config


def merge_configs(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge two configuration dictionaries."""
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = merge_configs(result[key], value)
        else:
            result[key] = value

    return result


def dict_to_config(data: dict[str, Any]) -> MatchLensConfig:
    """Convert a dictionary to MatchLensConfig, ignoring unknown keys."""
    config = MatchLensConfig()

    for section in _SECTIONS:
        target = getattr(config, section)
        for key, value in (data.get(section) or {}).items():
            if hasattr(target, key):
                setattr(target, key, value)
            else:
                logger.warning(f"Ignoring unknown config key: {section}.{key}")

    return config


def load_config(config_file: Path | None = None, include_env: bool = True) -> MatchLensConfig:
    """
    Load configuration from all sources.

    Args:
        config_file: Explicit path to a config file (optional)
        include_env: Whether to include environment variables

    Returns:
        Merged MatchLensConfig
    """
    config_data: dict[str, Any] = {}

    if config_file:
        if not config_file.exists():
            raise ConfigurationError(f"Config file not found: {config_file}")
        config_data = load_config_file(config_file)
        logger.info(f"Loaded config from: {config_file}")
    else:
        for path in get_default_config_paths():
            if path.exists():
                config_data = load_config_file(path)
                logger.info(f"Loaded config from: {path}")
                break

    if include_env:
        config_data = merge_configs(config_data, load_env_config())

    return dict_to_config(config_data)


def config_to_dict(config: MatchLensConfig) -> dict[str, Any]:
    """Convert MatchLensConfig to a dictionary."""
    return asdict(config)


def configure_logging(config: LoggingConfig) -> None:
    """Apply logging configuration to the root logger."""
    root = logging.getLogger()
    root.setLevel(config.level.upper())

    if config.file:
        handler = logging.handlers.RotatingFileHandler(
            config.file,
            maxBytes=config.file_max_bytes,
            backupCount=config.file_backup_count,
        )
        handler.setFormatter(logging.Formatter(config.format))
        root.addHandler(handler)


# ============================================================================
# Global Configuration
# ============================================================================

_global_config: MatchLensConfig | None = None


def get_config() -> MatchLensConfig:
    """Get the global configuration, loading it if necessary."""
    global _global_config

    if _global_config is None:
        _global_config = load_config()

    return _global_config


def set_config(config: MatchLensConfig) -> None:
    """Set the global configuration."""
    global _global_config
    _global_config = config


def reset_config() -> None:
    """Reset the global configuration to defaults."""
    global _global_config
    _global_config = None
