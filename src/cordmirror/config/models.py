"""設定データクラス"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from cordmirror.config.exceptions import InvalidConfigurationError

DEFAULT_CACHE_CAPACITY = 50
DEFAULT_CACHE_MAX_AGE_SECONDS = 43200  # 12 hours
DEFAULT_TOMBSTONE_LIMIT = 10000


def _coerce_non_negative(name: str, value: Any) -> int:
    """非負整数へ変換する

    Args:
        name: フィールド名（エラーメッセージ用）
        value: 変換対象の値（環境変数展開後の文字列も許容）

    Returns:
        変換後の整数

    Raises:
        InvalidConfigurationError: 整数に変換できない、または負の値
    """
    if isinstance(value, bool):
        raise InvalidConfigurationError(f"'{name}' must be an integer, got {value!r}")
    try:
        number = int(value)
    except (TypeError, ValueError) as e:
        raise InvalidConfigurationError(
            f"'{name}' must be an integer, got {value!r}"
        ) from e
    if isinstance(value, float) and value != number:
        raise InvalidConfigurationError(f"'{name}' must be an integer, got {value!r}")
    if number < 0:
        raise InvalidConfigurationError(f"'{name}' must be >= 0, got {number}")
    return number


@dataclass(frozen=True)
class CacheSettings:
    """チャンネル単位のメッセージキャッシュ設定

    capacity と max_age_seconds の両方が 0 より大きい場合のみキャッシュが有効になる。

    Attributes:
        capacity: 最大保持件数（0 でキャッシュ無効）
        max_age_seconds: 挿入からの最大保持秒数（0 でキャッシュ無効）
    """

    capacity: int = DEFAULT_CACHE_CAPACITY
    max_age_seconds: int = DEFAULT_CACHE_MAX_AGE_SECONDS

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "capacity", _coerce_non_negative("capacity", self.capacity)
        )
        object.__setattr__(
            self,
            "max_age_seconds",
            _coerce_non_negative("max_age_seconds", self.max_age_seconds),
        )

    @property
    def enabled(self) -> bool:
        """キャッシュが有効かどうか"""
        return self.capacity > 0 and self.max_age_seconds > 0


@dataclass
class CacheConfig:
    """キャッシュ全体の設定

    Attributes:
        default: チャンネル個別設定がない場合の設定
        channels: チャンネルIDごとの上書き設定
        tombstone_limit: 記憶しておく削除済みメッセージIDの最大数
    """

    default: CacheSettings = field(default_factory=CacheSettings)
    channels: dict[int, CacheSettings] = field(default_factory=dict)
    tombstone_limit: int = DEFAULT_TOMBSTONE_LIMIT

    def __post_init__(self) -> None:
        self.tombstone_limit = _coerce_non_negative(
            "tombstone_limit", self.tombstone_limit
        )

    def settings_for(self, channel_id: int) -> CacheSettings:
        """チャンネルに適用される設定を返す

        Args:
            channel_id: チャンネルID

        Returns:
            個別設定があればそれ、なければデフォルト設定
        """
        return self.channels.get(channel_id, self.default)


class LateDeltaPolicy(Enum):
    """削除済みメッセージへ遅れて届いたリアクション差分の扱い"""

    DROP = "drop"
    RECORD = "record"


@dataclass
class EventConfig:
    """イベント適用設定

    Attributes:
        late_reaction_policy: 削除後に届いたリアクション差分の扱い
        queue_size: 取り込みキューの最大長（0 で無制限）
    """

    late_reaction_policy: LateDeltaPolicy = LateDeltaPolicy.DROP
    queue_size: int = 0

    def __post_init__(self) -> None:
        self.queue_size = _coerce_non_negative("queue_size", self.queue_size)


@dataclass
class LoggingConfig:
    """ログ設定"""

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    loggers: dict[str, str] | None = None


@dataclass
class Config:
    """アプリケーション設定"""

    cache: CacheConfig = field(default_factory=CacheConfig)
    events: EventConfig = field(default_factory=EventConfig)
    self_user_id: int | None = None
    logging: LoggingConfig | None = None
