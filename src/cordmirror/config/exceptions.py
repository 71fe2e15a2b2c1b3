"""設定関連の例外"""


class ConfigError(Exception):
    """設定関連の基底例外"""


class ConfigValidationError(ConfigError):
    """設定値のバリデーションエラー"""


class InvalidConfigurationError(ConfigValidationError):
    """キャッシュ設定値が不正（負の値など）"""


class EnvironmentVariableError(ConfigError):
    """環境変数が見つからないエラー"""
