"""外部呼び出し向けの操作

ハンドルやオプショントークンを受け取る呼び出し側（他言語からのバインディングなど）に
公開する操作をまとめたモジュール。

- convert_binary: 一括変換（create -> convert -> flush -> destroy）
- create_converter / destroy_converter: ハンドルの作成と破棄
- do_convert / flush_converter / reset_converter: ハンドル経由の操作
- initialize / uninitialize: サービス型バックエンドの環境初期化
"""

from __future__ import annotations

from collections.abc import Iterable

from codeshift.backend import CHUNK_SIZE
from codeshift.backend.charset_service import initialize_environment, uninitialize_environment
from codeshift.converter import StreamConverter, convert_bytes
from codeshift.errors import InvalidHandleError
from codeshift.logger import NULL_LOGGER, ConversionLogger
from codeshift.options import ConvertOption, parse_option_list
from codeshift.registry import ConverterHandleRegistry
from codeshift.types import ConversionResult

DEFAULT_REGISTRY = ConverterHandleRegistry()


def convert_binary(
    data: bytes,
    source_encoding: str,
    dest_encoding: str,
    options: Iterable[str] | None = None,
    *,
    backend: str | None = None,
    chunk_size: int = CHUNK_SIZE,
    logger: ConversionLogger = NULL_LOGGER,
) -> ConversionResult:
    """バイト列を一括変換する

    Args:
        data: 入力バイト列
        source_encoding: 変換元エンコーディング名
        dest_encoding: 変換先エンコーディング名
        options: オプショントークン列。Noneの場合は ["ignore"] と同じ
        backend: バックエンド名
        chunk_size: 1回の有界変換で生成する出力の上限
        logger: ログ出力先

    Returns:
        変換結果

    Raises:
        InvalidOptionError: 未知のオプショントークンが含まれる場合（変換は行わない）
        BackendUnavailableError: バックエンド名が未知、または実行環境が初期化されていない場合
        OutputAllocationError: chunk_sizeがMIN_CHUNK_SIZE未満の場合
        UnsupportedEncodingPairError: エンコーディングが未知、または変換できない組の場合
        IncompleteInputError: 入力を消費しきれず、ignoreが指定されていない場合
    """
    if options is None:
        flags = ConvertOption.DISCARD_ILSEQ
    else:
        flags = parse_option_list(options)
    return convert_bytes(
        data,
        source_encoding,
        dest_encoding,
        flags,
        backend=backend,
        chunk_size=chunk_size,
        logger=logger,
    )


def create_converter(
    source_encoding: str,
    dest_encoding: str,
    options: Iterable[str] = (),
    *,
    backend: str | None = None,
    chunk_size: int = CHUNK_SIZE,
    registry: ConverterHandleRegistry = DEFAULT_REGISTRY,
    logger: ConversionLogger = NULL_LOGGER,
) -> int:
    """Converterを作成してハンドルを返す

    Raises:
        InvalidOptionError: 未知のオプショントークンが含まれる場合
        BackendUnavailableError: バックエンド名が未知、または実行環境が初期化されていない場合
        OutputAllocationError: chunk_sizeがMIN_CHUNK_SIZE未満の場合
        UnsupportedEncodingPairError: エンコーディングが未知、または変換できない組の場合
    """
    flags = parse_option_list(options)
    converter = StreamConverter.create(
        source_encoding,
        dest_encoding,
        flags,
        backend=backend,
        chunk_size=chunk_size,
        logger=logger,
    )
    return registry.register(converter)


def destroy_converter(handle: int, *, registry: ConverterHandleRegistry = DEFAULT_REGISTRY) -> None:
    """ハンドルのConverterを破棄する

    Raises:
        InvalidHandleError: ハンドルが0、または登録されていない場合
    """
    if not handle:
        raise InvalidHandleError(handle)
    registry.unregister(handle)


def do_convert(
    handle: int, data: bytes, *, registry: ConverterHandleRegistry = DEFAULT_REGISTRY
) -> ConversionResult:
    """ハンドルのConverterで有界変換を1回だけ行う

    出力上限（chunk_size）に達した時点で停止するため、入力をすべて消費するとは限らない。
    bytes_consumedを確認し、未消費部分で繰り返し呼び出すのは呼び出し側の責任である。

    result.successがTrueなら出力上限に達しただけで、続きを渡せば変換を再開できる。
    Falseの場合は不正なバイト列か、入力末尾の不完全なマルチバイト列で停止している。
    後者は次の入力の先頭に未消費部分を付け直せば変換を続けられる。

    Raises:
        InvalidHandleError: ハンドルが0、または登録されていない場合
        OutputAllocationError: 出力上限に1文字分の出力も収まらない場合
    """
    return registry.resolve(handle).convert_chunk(data)


def flush_converter(handle: int, *, registry: ConverterHandleRegistry = DEFAULT_REGISTRY) -> bytes:
    """ハンドルのConverterの終端シーケンスを返す"""
    return registry.resolve(handle).flush()


def reset_converter(handle: int, *, registry: ConverterHandleRegistry = DEFAULT_REGISTRY) -> None:
    """ハンドルのConverterの変換状態を初期化する"""
    registry.resolve(handle).reset()


def initialize() -> None:
    """現在のスレッドでサービス型バックエンドの実行環境を初期化する

    ストリーム型バックエンドには影響しないため、どのバックエンドを使う場合も
    Converterを作成する前に呼び出してよい。
    """
    initialize_environment()


def uninitialize() -> None:
    """initialize()で初期化した実行環境を解放する"""
    uninitialize_environment()
