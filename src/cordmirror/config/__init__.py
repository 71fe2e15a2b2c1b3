"""設定管理モジュール"""

from cordmirror.config.exceptions import (
    ConfigError,
    ConfigValidationError,
    EnvironmentVariableError,
    InvalidConfigurationError,
)
from cordmirror.config.loader import expand_env_vars, load_config, parse_config
from cordmirror.config.logging_setup import configure_logging
from cordmirror.config.models import (
    CacheConfig,
    CacheSettings,
    Config,
    EventConfig,
    LateDeltaPolicy,
    LoggingConfig,
)

__all__ = [
    "CacheConfig",
    "CacheSettings",
    "Config",
    "ConfigError",
    "ConfigValidationError",
    "EnvironmentVariableError",
    "EventConfig",
    "InvalidConfigurationError",
    "LateDeltaPolicy",
    "LoggingConfig",
    "configure_logging",
    "expand_env_vars",
    "load_config",
    "parse_config",
]
