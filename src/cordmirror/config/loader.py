"""YAML設定ファイルの読み込みと環境変数展開"""

import os
import re
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from cordmirror.config.exceptions import (
    ConfigError,
    ConfigValidationError,
    EnvironmentVariableError,
    InvalidConfigurationError,
)
from cordmirror.config.models import (
    DEFAULT_CACHE_CAPACITY,
    DEFAULT_CACHE_MAX_AGE_SECONDS,
    DEFAULT_TOMBSTONE_LIMIT,
    CacheConfig,
    CacheSettings,
    Config,
    EventConfig,
    LateDeltaPolicy,
    LoggingConfig,
)

__all__ = [
    "ConfigError",
    "ConfigValidationError",
    "EnvironmentVariableError",
    "InvalidConfigurationError",
    "expand_env_vars",
    "load_config",
    "parse_config",
]

# 環境変数パターン: ${VAR_NAME}
ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}")


def expand_env_vars(value: str) -> str:
    """文字列中の ${VAR_NAME} を環境変数の値に置換する

    Args:
        value: 置換対象の文字列

    Returns:
        環境変数が展開された文字列

    Raises:
        EnvironmentVariableError: 環境変数が未設定
    """
    if not value:
        return value

    def replace_var(match: re.Match[str]) -> str:
        var_name = match.group(1)
        env_value = os.environ.get(var_name)
        if env_value is None:
            raise EnvironmentVariableError(
                f"Environment variable '{var_name}' is not set"
            )
        return env_value

    return ENV_VAR_PATTERN.sub(replace_var, value)


def _expand_recursive(data: Any) -> Any:
    """データ構造を再帰的に走査し、文字列中の環境変数を展開する

    Args:
        data: 展開対象のデータ（dict, list, str, その他）

    Returns:
        環境変数が展開されたデータ
    """
    if isinstance(data, dict):
        return {key: _expand_recursive(value) for key, value in data.items()}
    elif isinstance(data, list):
        return [_expand_recursive(item) for item in data]
    elif isinstance(data, str):
        return expand_env_vars(data)
    else:
        return data


def _section(data: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    """任意セクションを取得する

    Args:
        data: 親のdict
        name: セクション名

    Returns:
        セクションのdict（未指定なら空dict）

    Raises:
        ConfigValidationError: セクションがdictでない
    """
    section = data.get(name)
    if section is None:
        return {}
    if not isinstance(section, Mapping):
        raise ConfigValidationError(f"Section '{name}' must be a mapping")
    return section


def _parse_channel_id(raw: Any) -> int:
    """チャンネルIDを整数に変換する"""
    try:
        return int(raw)
    except (TypeError, ValueError) as e:
        raise ConfigValidationError(
            f"Invalid channel id in cache.channels: {raw!r}"
        ) from e


def _parse_cache(data: Mapping[str, Any]) -> CacheConfig:
    """cache セクションを CacheConfig に変換する

    チャンネル個別設定で省略された項目はデフォルト設定の値を引き継ぐ。

    Args:
        data: cache セクション

    Returns:
        CacheConfig オブジェクト
    """
    default = CacheSettings(
        capacity=data.get("capacity", DEFAULT_CACHE_CAPACITY),
        max_age_seconds=data.get("max_age_seconds", DEFAULT_CACHE_MAX_AGE_SECONDS),
    )

    channels: dict[int, CacheSettings] = {}
    channels_data = data.get("channels") or {}
    if not isinstance(channels_data, Mapping):
        raise ConfigValidationError("Section 'cache.channels' must be a mapping")
    for raw_id, override in channels_data.items():
        override = override or {}
        if not isinstance(override, Mapping):
            raise ConfigValidationError(
                f"Section 'cache.channels.{raw_id}' must be a mapping"
            )
        channels[_parse_channel_id(raw_id)] = CacheSettings(
            capacity=override.get("capacity", default.capacity),
            max_age_seconds=override.get("max_age_seconds", default.max_age_seconds),
        )

    return CacheConfig(
        default=default,
        channels=channels,
        tombstone_limit=data.get("tombstone_limit", DEFAULT_TOMBSTONE_LIMIT),
    )


def _parse_events(data: Mapping[str, Any]) -> EventConfig:
    """events セクションを EventConfig に変換する"""
    raw_policy = data.get("late_reaction_policy", LateDeltaPolicy.DROP.value)
    try:
        policy = LateDeltaPolicy(str(raw_policy).lower())
    except ValueError as e:
        choices = ", ".join(p.value for p in LateDeltaPolicy)
        raise ConfigValidationError(
            f"events.late_reaction_policy must be one of: {choices}"
        ) from e
    return EventConfig(
        late_reaction_policy=policy,
        queue_size=data.get("queue_size", 0),
    )


def parse_config(data: Mapping[str, Any] | None) -> Config:
    """展開済みのdictを Config に変換する

    Args:
        data: 設定dict（None は全てデフォルト）

    Returns:
        Config オブジェクト

    Raises:
        ConfigValidationError: 設定値が不正
    """
    if data is None:
        data = {}
    if not isinstance(data, Mapping):
        raise ConfigValidationError("Config root must be a mapping")

    # self_user_id (optional)
    self_user_id: int | None = None
    raw_self_id = data.get("self_user_id")
    if raw_self_id not in (None, ""):
        try:
            self_user_id = int(raw_self_id)
        except (TypeError, ValueError) as e:
            raise ConfigValidationError(
                f"self_user_id must be an integer, got {raw_self_id!r}"
            ) from e

    # LoggingConfig (optional)
    logging_config: LoggingConfig | None = None
    logging_data = data.get("logging")
    if logging_data:
        logging_config = LoggingConfig(
            level=logging_data.get("level", "INFO"),
            format=logging_data.get(
                "format", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
            ),
            loggers=logging_data.get("loggers"),
        )

    return Config(
        cache=_parse_cache(_section(data, "cache")),
        events=_parse_events(_section(data, "events")),
        self_user_id=self_user_id,
        logging=logging_config,
    )


def load_config(path: str | Path) -> Config:
    """設定ファイルを読み込む

    Args:
        path: config.yaml のパス

    Returns:
        Config オブジェクト

    Raises:
        FileNotFoundError: ファイルが存在しない
        ConfigValidationError: 設定値が不正
        EnvironmentVariableError: 環境変数が未設定
        yaml.YAMLError: YAML構文エラー
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path, encoding="utf-8") as f:
        raw_data = yaml.safe_load(f)

    # 環境変数を展開
    data = _expand_recursive(raw_data)

    return parse_config(data)
