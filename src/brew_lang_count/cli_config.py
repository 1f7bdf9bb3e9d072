"""
Configuration management for brew-lang-count.

Settings come from dataclass defaults, an optional JSON or TOML config file
and ``BREW_LANG_COUNT_*`` environment variables, in that order.
"""

import json
import math
import os
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional

import toml
from rich.console import Console

from .error_handling import ErrorCategory, get_error_handler

console = Console(stderr=True)

ENV_PREFIX = "BREW_LANG_COUNT_"


@dataclass
class CatalogConfig:
    """Catalog snapshot location and freshness."""

    cache_file: str = "core_formulas.json"
    api_url: str = "https://formulae.brew.sh/api/formula.json"
    max_age_days: float = 7

    @property
    def max_age_seconds(self) -> float:
        """Convert the staleness window to seconds."""
        return self.max_age_days * 24 * 3600


@dataclass
class QueryConfig:
    """Query defaults."""

    default_query: str = "rust"


@dataclass
class NetworkConfig:
    """HTTP client configuration."""

    user_agent: str = "brew-lang-count/0.1.0"
    connect_timeout: float = 10.0
    read_timeout: float = 60.0


@dataclass
class LoggingConfig:
    """Logging configuration."""

    log_level: str = "WARNING"


@dataclass
class ComprehensiveConfig:
    """Main configuration containing all subsections."""

    catalog: CatalogConfig = field(default_factory=CatalogConfig)
    query: QueryConfig = field(default_factory=QueryConfig)
    network: NetworkConfig = field(default_factory=NetworkConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# Global configuration instance
_global_config: Optional[ComprehensiveConfig] = None


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _type_errors(section_name: str, section: Any) -> List[str]:
    """Report fields whose value does not have the declared type."""
    errors = []
    for config_field in fields(section):
        value = getattr(section, config_field.name)
        if config_field.type is float:
            valid = isinstance(value, (int, float)) and not isinstance(value, bool)
        else:
            valid = isinstance(value, config_field.type)
        if not valid:
            errors.append(
                f"{section_name}.{config_field.name} must be of type "
                f"{config_field.type.__name__}, got {type(value).__name__}"
            )
    return errors


def validate_config_values(config: ComprehensiveConfig) -> List[str]:
    """
    Validate configuration values and return any errors.

    Values of the wrong type are reported without checking their range.

    Args:
        config: Configuration to validate

    Returns:
        List[str]: List of validation errors (empty if valid)
    """
    errors = []
    for section_name in ("catalog", "query", "network", "logging"):
        errors.extend(_type_errors(section_name, getattr(config, section_name)))
    if errors:
        return errors

    if not config.catalog.cache_file:
        errors.append("catalog.cache_file must not be empty")
    if not config.catalog.api_url.startswith(("https://", "http://")):
        errors.append("catalog.api_url must be an http(s) URL")
    if not math.isfinite(config.catalog.max_age_days) or config.catalog.max_age_days <= 0:
        errors.append("catalog.max_age_days must be a positive finite number")

    if not config.query.default_query:
        errors.append("query.default_query must not be empty")
    elif len(config.query.default_query) > 30:
        errors.append("query.default_query must be at most 30 characters")

    if not math.isfinite(config.network.connect_timeout) or config.network.connect_timeout <= 0:
        errors.append("network.connect_timeout must be a positive finite number")
    if not math.isfinite(config.network.read_timeout) or config.network.read_timeout <= 0:
        errors.append("network.read_timeout must be a positive finite number")

    if config.logging.log_level.upper() not in LOG_LEVELS:
        errors.append(f"logging.log_level is not a valid level: {config.logging.log_level}")

    return errors


def load_config_file(config_path: Path) -> Optional[Dict[str, Any]]:
    """Load config from a JSON or TOML file."""
    if not config_path.exists():
        return None

    try:
        with open(config_path, encoding="utf-8") as f:
            if config_path.suffix.lower() == ".toml":
                return toml.load(f)
            elif config_path.suffix.lower() == ".json":
                return json.load(f)
    except (OSError, ValueError, toml.TomlDecodeError) as e:
        console.print(
            f"Warning: error loading config from {config_path}: {e}", style="yellow"
        )

    return None


def find_config_file() -> Optional[Path]:
    """Find config file in standard locations."""
    locations = [
        Path.cwd() / ".brew-lang-count.json",
        Path.cwd() / ".brew-lang-count.toml",
        Path.home() / ".config" / "brew-lang-count" / "config.json",
        Path.home() / ".config" / "brew-lang-count" / "config.toml",
        Path.home() / ".brew-lang-count.json",
    ]

    for location in locations:
        if location.exists():
            return location

    return None


def load_environment_overrides(config: ComprehensiveConfig) -> None:
    """Apply ``BREW_LANG_COUNT_*`` environment variable overrides."""

    def get_env_float(key: str) -> Optional[float]:
        name = ENV_PREFIX + key
        try:
            return float(os.environ[name]) if name in os.environ else None
        except ValueError:
            console.print(f"Warning: invalid number for {name}, using default", style="yellow")
            return None

    if cache_file := os.environ.get(ENV_PREFIX + "CACHE_FILE"):
        config.catalog.cache_file = cache_file
    if api_url := os.environ.get(ENV_PREFIX + "API_URL"):
        config.catalog.api_url = api_url
    if (max_age_days := get_env_float("MAX_AGE_DAYS")) is not None:
        config.catalog.max_age_days = max_age_days

    if default_query := os.environ.get(ENV_PREFIX + "DEFAULT_QUERY"):
        config.query.default_query = default_query

    if user_agent := os.environ.get(ENV_PREFIX + "USER_AGENT"):
        config.network.user_agent = user_agent
    if (connect_timeout := get_env_float("CONNECT_TIMEOUT")) is not None:
        config.network.connect_timeout = connect_timeout
    if (read_timeout := get_env_float("READ_TIMEOUT")) is not None:
        config.network.read_timeout = read_timeout

    if log_level := os.environ.get(ENV_PREFIX + "LOG_LEVEL"):
        config.logging.log_level = log_level.upper()


def apply_config_section(
    config: Any, section_data: Dict[str, Any], section_name: str
) -> None:
    """Apply configuration from dictionary to config section."""
    for key, value in section_data.items():
        if hasattr(config, key):
            setattr(config, key, value)
        else:
            console.print(
                f"Warning: unknown config key in {section_name}: {key}", style="yellow"
            )


def apply_config_data(config: ComprehensiveConfig, file_config: Dict[str, Any]) -> None:
    """Apply every known section of a loaded config file."""
    for section_name in ("catalog", "query", "network", "logging"):
        if section_name in file_config:
            section_data = file_config[section_name]
            if not isinstance(section_data, dict):
                console.print(
                    f"Warning: config section {section_name} must be a table, ignoring it",
                    style="yellow",
                )
                continue
            apply_config_section(getattr(config, section_name), section_data, section_name)


def load_config() -> ComprehensiveConfig:
    """Load configuration from file and environment."""
    global _global_config

    if _global_config is not None:
        return _global_config

    config = ComprehensiveConfig()

    config_file = find_config_file()
    if config_file:
        file_config = load_config_file(config_file)
        if file_config:
            apply_config_data(config, file_config)

    load_environment_overrides(config)

    validation_errors = validate_config_values(config)
    if validation_errors:
        get_error_handler().warning(
            ErrorCategory.CONFIGURATION,
            "Invalid configuration, using defaults",
            "cli_config",
            "load_config",
            details={
                "config_file": str(config_file) if config_file else None,
                "errors": validation_errors,
            },
        )
        console.print("Configuration validation errors:", style="red")
        for error in validation_errors:
            console.print(f"  - {error}", style="red", markup=False)
        console.print("Using default values instead.", style="yellow")
        config = ComprehensiveConfig()

    _global_config = config
    return config


def get_config() -> ComprehensiveConfig:
    """Get the global configuration instance."""
    global _global_config
    if _global_config is None:
        _global_config = load_config()
    return _global_config


def reset_config() -> None:
    """Reset the global configuration (useful for testing)."""
    global _global_config
    _global_config = None


def create_sample_config() -> str:
    """Generate a sample JSON configuration holding the defaults."""
    return json.dumps(ComprehensiveConfig().to_dict(), indent=2)
