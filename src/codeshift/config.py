"""Configuration module for codeshift."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from codeshift.backend import CHUNK_SIZE, DEFAULT_BACKEND, MIN_CHUNK_SIZE, available_backends
from codeshift.errors import InvalidOptionError
from codeshift.options import parse_option_list

CONFIG_FILE_NAME = "codeshift.yml"
CONFIG_ENV_VAR = "CODESHIFT_CONFIG"

class ConfigError(Exception):
    """設定ファイル読み込みエラー"""

    pass

@dataclass(frozen=True)
class ConverterConfig:
    """変換設定"""

    backend: str = DEFAULT_BACKEND
    default_options: list[str] = field(default_factory=lambda: ["ignore"])
    chunk_size: int = CHUNK_SIZE

@dataclass(frozen=True)
class LoggingConfig:
    """ログ設定"""

    verbose: int = 0
    log_file: Path | None = None

@dataclass(frozen=True)
class CodeshiftConfig:
    """ルート設定"""

    converter: ConverterConfig = field(default_factory=ConverterConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

def load_config(path: Path) -> CodeshiftConfig:
    """設定ファイルを読み込む

    Args:
        path: 設定ファイルパス

    Returns:
        CodeshiftConfig: 読み込んだ設定（デフォルトとマージ済み）

    Raises:
        ConfigError: ファイル読み込み、パース、または値の検証エラー
    """
    if not path.exists():
        raise ConfigError(f"設定ファイルが見つかりません: {path}")

    try:
        with path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"YAML解析エラー: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError("設定ファイルはYAMLのマッピング形式である必要があります")

    default = get_default_config()

    return CodeshiftConfig(
        converter=_merge_converter_config(data.get("converter", {}), default.converter),
        logging=_merge_logging_config(data.get("logging", {}), default.logging),
    )

def get_default_config() -> CodeshiftConfig:
    """デフォルト設定を取得する"""
    return CodeshiftConfig()

def find_config(cwd: Path | None = None) -> Path | None:
    """設定ファイルを探す

    カレントディレクトリのcodeshift.yml、環境変数CODESHIFT_CONFIGの順に探す。

    Returns:
        見つかった設定ファイルのパス（見つからない場合はNone）
    """
    candidate = (cwd or Path.cwd()) / CONFIG_FILE_NAME
    if candidate.is_file():
        return candidate
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path)
    return None

def _merge_converter_config(data: dict[str, Any], default: ConverterConfig) -> ConverterConfig:
    """変換設定をマージする"""
    if not isinstance(data, dict):
        return default

    backend = data.get("backend", default.backend)
    if backend not in available_backends():
        raise ConfigError(
            f"未知のバックエンドです: {backend}（{', '.join(available_backends())} から選択）"
        )

    default_options = data.get("default_options", default.default_options)
    if not isinstance(default_options, list):
        raise ConfigError("default_optionsはリストである必要があります")
    try:
        parse_option_list(default_options)
    except InvalidOptionError as e:
        raise ConfigError(f"default_optionsが不正です: {e}") from e

    chunk_size = data.get("chunk_size", default.chunk_size)
    valid_int = isinstance(chunk_size, int) and not isinstance(chunk_size, bool)
    if not valid_int or chunk_size < MIN_CHUNK_SIZE:
        raise ConfigError(
            f"chunk_sizeは{MIN_CHUNK_SIZE}以上の整数である必要があります: {chunk_size}"
        )

    return ConverterConfig(
        backend=backend,
        default_options=list(default_options),
        chunk_size=chunk_size,
    )

def _merge_logging_config(data: dict[str, Any], default: LoggingConfig) -> LoggingConfig:
    """ログ設定をマージする"""
    if not isinstance(data, dict):
        return default
    log_file = data.get("log_file", default.log_file)
    return LoggingConfig(
        verbose=data.get("verbose", default.verbose),
        log_file=Path(log_file) if log_file else None,
    )
