"""Configuration package exports."""

from .loader import ConfigError, build_config, load_config_file, read_key_list
from .models import DEFAULT_BASE_URL, DEFAULT_SEARCH_PATH, USER_AGENT, ScraperConfig

__all__ = [
    "ConfigError",
    "DEFAULT_BASE_URL",
    "DEFAULT_SEARCH_PATH",
    "ScraperConfig",
    "USER_AGENT",
    "build_config",
    "load_config_file",
    "read_key_list",
]
