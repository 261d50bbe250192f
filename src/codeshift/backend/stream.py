"""ストリーム型変換バックエンド

変換元・変換先のエンコーディング名から変換ディスクリプタを開き、
入力カーソルを進めながら出力上限まで変換する。
オプションは変換先名の装飾（//TRANSLIT, //IGNORE）としてディスクリプタに渡す。
"""

from __future__ import annotations

from codeshift.backend.base import CHUNK_SIZE, ChunkResult, ConversionBackend
from codeshift.backend.codec import (
    TRANSLIT_HANDLER,
    TRANSLIT_IGNORE_HANDLER,
    CodecPipeline,
    StopReason,
)
from codeshift.logger import NULL_LOGGER, ConversionLogger
from codeshift.names import resolve_codec_name
from codeshift.options import ConvertOption

TRANSLIT_SUFFIX = "//TRANSLIT"
IGNORE_SUFFIX = "//IGNORE"

_KNOWN_DECORATIONS = frozenset({"TRANSLIT", "IGNORE"})


def decorate_encoding(dest: str, options: ConvertOption) -> str:
    """オプションを変換先エンコーディング名の装飾に変換する

    Args:
        dest: 変換先エンコーディング名
        options: 変換オプション

    Returns:
        装飾済みの変換先名（例: "ASCII//TRANSLIT//IGNORE"）
    """
    tocode = dest
    if options & ConvertOption.TRANSLITERATE:
        tocode += TRANSLIT_SUFFIX
    if options & ConvertOption.DISCARD_ILSEQ:
        tocode += IGNORE_SUFFIX
    return tocode


def open_descriptor(tocode: str, fromcode: str) -> CodecPipeline | None:
    """変換ディスクリプタを開く

    Args:
        tocode: 装飾付きの変換先エンコーディング名
        fromcode: 変換元エンコーディング名

    Returns:
        変換ディスクリプタ。名前や装飾が不正な場合はNone
    """
    dest, *decorations = tocode.split("//")
    flags = {decoration.strip().upper() for decoration in decorations if decoration.strip()}
    if not flags <= _KNOWN_DECORATIONS:
        return None

    source_codec = resolve_codec_name(fromcode)
    dest_codec = resolve_codec_name(dest)
    if source_codec is None or dest_codec is None:
        return None

    ignore = "IGNORE" in flags
    decode_errors = "ignore" if ignore else "strict"
    if "TRANSLIT" in flags:
        encode_errors = TRANSLIT_IGNORE_HANDLER if ignore else TRANSLIT_HANDLER
    else:
        encode_errors = decode_errors

    try:
        return CodecPipeline(source_codec, dest_codec, decode_errors, encode_errors)
    except LookupError:
        return None


class StreamBackend(ConversionBackend):
    """ストリーム型バックエンド

    不正なバイト列や変換先に存在しない文字に出会うと、その直前で停止して
    success=Falseを返す。//IGNORE装飾がある場合はディスクリプタ自身が読み飛ばす。
    flush_chunkは状態付きエンコーディング（ISO-2022-JPなど）の終端シーケンスを
    実際に出力する。
    """

    name = "stream"

    def __init__(
        self,
        chunk_size: int = CHUNK_SIZE,
        logger: ConversionLogger = NULL_LOGGER,
    ) -> None:
        super().__init__(chunk_size=chunk_size, logger=logger)
        self._descriptor: CodecPipeline | None = None

    @property
    def valid(self) -> bool:
        return self._descriptor is not None

    def initialize(self, source: str, dest: str, options: ConvertOption) -> bool:
        self._options = options
        tocode = decorate_encoding(dest, options)
        self._descriptor = open_descriptor(tocode, source)
        if self._descriptor is not None:
            self._logger.debug(
                f"stream: {source} ({self._descriptor.source_codec}) -> "
                f"{tocode} ({self._descriptor.dest_codec})"
            )
        return self.valid

    def convert_chunk(self, data: bytes, offset: int = 0) -> ChunkResult:
        descriptor = self._require_descriptor()
        result = descriptor.run(data, offset, self.chunk_size)
        success = result.reason in (StopReason.DONE, StopReason.OUTPUT_FULL)
        return ChunkResult(consumed=result.consumed, output=result.output, success=success)

    def flush_chunk(self) -> bytes:
        return self._require_descriptor().finish()

    def reset(self) -> None:
        self._require_descriptor().reset()

    def release(self) -> None:
        self._descriptor = None

    def _require_descriptor(self) -> CodecPipeline:
        if self._descriptor is None:
            raise RuntimeError("変換ディスクリプタが開かれていません")
        return self._descriptor
