"""サービス型変換バックエンド

文字セット情報サービスでエンコーディング名をコードページに解決し、
ConvertCharsetオブジェクトに変換を委譲する。
"""

from __future__ import annotations

from codeshift.backend.base import CHUNK_SIZE, ChunkResult, ConversionBackend
from codeshift.backend.charset_service import (
    CharsetInfoService,
    ConvertCharset,
    ConvertProperty,
    HResult,
    ServiceNotInitializedError,
)
from codeshift.errors import BackendUnavailableError
from codeshift.logger import NULL_LOGGER, ConversionLogger
from codeshift.names import resolve_code_page
from codeshift.options import ConvertOption


def convert_properties(options: ConvertOption) -> ConvertProperty:
    """オプションをConvertCharsetのプロパティに変換する

    TRANSLITERATEが指定されていない場合は近似文字への置き換えを禁止する。
    """
    properties = ConvertProperty.NO_BEST_FIT_CHARS
    if options & ConvertOption.TRANSLITERATE:
        properties &= ~ConvertProperty.NO_BEST_FIT_CHARS
    return properties


class CharsetServiceBackend(ConversionBackend):
    """サービス型バックエンド

    コードページが同一の場合はバイト列をそのままコピーする。
    サービスには不正なバイト列を読み飛ばすモードがないため、
    DISCARD_ILSEQはこのバックエンドが不正なバイト列を飛ばして変換を続けることで実現する。

    サービスには終端シーケンスを出力する機能がないため、flush_chunkはresetを行うだけで
    常に空のバイト列を返す。状態付きエンコーディングの終端シーケンスが必要な場合は
    StreamBackendを使うこと。
    """

    name = "service"
    requires_environment = True

    def __init__(
        self,
        chunk_size: int = CHUNK_SIZE,
        logger: ConversionLogger = NULL_LOGGER,
    ) -> None:
        super().__init__(chunk_size=chunk_size, logger=logger)
        self._service: CharsetInfoService | None = None
        self._converter: ConvertCharset | None = None
        self.src_code_page = 0
        self.dst_code_page = 0

    @property
    def valid(self) -> bool:
        return (
            self._service is not None
            and self._converter is not None
            and self.src_code_page != 0
            and self.dst_code_page != 0
        )

    @property
    def passthrough(self) -> bool:
        """変換元と変換先のコードページが同一かを返す"""
        return self.src_code_page == self.dst_code_page

    def initialize(self, source: str, dest: str, options: ConvertOption) -> bool:
        self._options = options
        try:
            self._service = CharsetInfoService()
        except ServiceNotInitializedError as e:
            raise BackendUnavailableError(
                self.name, "initialize() を呼び出してから変換してください"
            ) from e

        self.dst_code_page = resolve_code_page(dest, self._service)
        self.src_code_page = resolve_code_page(source, self._service)
        self._logger.debug(
            f"service: {source} (cp{self.src_code_page}) -> {dest} (cp{self.dst_code_page})"
        )

        hresult, self._converter = self._service.create_convert_charset(
            self.src_code_page, self.dst_code_page, convert_properties(options)
        )
        if hresult is not HResult.S_OK:
            self._logger.debug(f"service: 変換オブジェクトを作成できません ({hresult.name})")
            self._service.release()
            self._service = None
        return self.valid

    def convert_chunk(self, data: bytes, offset: int = 0) -> ChunkResult:
        if self.passthrough:
            copied = data[offset : offset + self.chunk_size]
            return ChunkResult(consumed=len(copied), output=copied)

        converter = self._require_converter()
        out = bytearray()
        pos = offset
        while True:
            result = converter.do_conversion(data, pos, self.chunk_size - len(out))
            out += result.output
            pos += result.src_size
            if result.hresult is HResult.S_OK:
                return ChunkResult(consumed=pos - offset, output=bytes(out))
            if result.hresult is HResult.E_FAIL and self._options & ConvertOption.DISCARD_ILSEQ:
                pos = min(pos + result.invalid_size, len(data))
                if pos < len(data) and len(out) < self.chunk_size:
                    continue
                return ChunkResult(consumed=pos - offset, output=bytes(out))
            return ChunkResult(consumed=pos - offset, output=bytes(out), success=False)

    def flush_chunk(self) -> bytes:
        self.reset()
        return b""

    def reset(self) -> None:
        converter = self._require_converter()
        converter.initialize(self.src_code_page, self.dst_code_page, convert_properties(self._options))

    def release(self) -> None:
        if self._converter is not None:
            self._converter.release()
            self._converter = None
        if self._service is not None:
            self._service.release()
            self._service = None

    def _require_converter(self) -> ConvertCharset:
        if self._converter is None:
            raise RuntimeError("変換オブジェクトが作成されていません")
        return self._converter
