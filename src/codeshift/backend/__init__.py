"""Backend module for codeshift.

変換バックエンドを統一されたインターフェースで扱うモジュール。
バックエンドは名前で選択し、1つのConverterの中で混在させることはない。
"""

from codeshift.backend.base import CHUNK_SIZE, MIN_CHUNK_SIZE, ChunkResult, ConversionBackend
from codeshift.backend.service import CharsetServiceBackend
from codeshift.backend.stream import StreamBackend
from codeshift.logger import NULL_LOGGER, ConversionLogger

DEFAULT_BACKEND = StreamBackend.name

BACKENDS: dict[str, type[ConversionBackend]] = {
    StreamBackend.name: StreamBackend,
    CharsetServiceBackend.name: CharsetServiceBackend,
}


def available_backends() -> tuple[str, ...]:
    """選択可能なバックエンド名を返す"""
    return tuple(BACKENDS)


def get_backend_class(name: str) -> type[ConversionBackend]:
    """バックエンド名に対応するクラスを返す

    Raises:
        ValueError: 未知のバックエンド名の場合
    """
    try:
        return BACKENDS[name]
    except KeyError:
        raise ValueError(
            f"未知のバックエンドです: {name}（{', '.join(available_backends())} から選択）"
        ) from None


def create_backend(
    name: str = DEFAULT_BACKEND,
    chunk_size: int = CHUNK_SIZE,
    logger: ConversionLogger = NULL_LOGGER,
) -> ConversionBackend:
    """バックエンドを作成する（initializeはまだ呼ばない）"""
    return get_backend_class(name)(chunk_size=chunk_size, logger=logger)


__all__ = [
    "BACKENDS",
    "CHUNK_SIZE",
    "CharsetServiceBackend",
    "ChunkResult",
    "ConversionBackend",
    "DEFAULT_BACKEND",
    "MIN_CHUNK_SIZE",
    "StreamBackend",
    "available_backends",
    "create_backend",
    "get_backend_class",
]
