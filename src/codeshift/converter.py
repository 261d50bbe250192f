"""StreamConverterモジュール

バックエンドの有界な変換（1回の呼び出しで出力上限までしか変換しない）を繰り返し、
任意長の入力を変換するStreamConverterと、一括変換関数convert_bytesを提供する。

StreamConverterは内部でロックを取らない。1つのStreamConverterを
複数スレッドから同時に操作してはならない（呼び出し側の責任とする）。
"""

from __future__ import annotations

from codeshift.backend import (
    CHUNK_SIZE,
    DEFAULT_BACKEND,
    MIN_CHUNK_SIZE,
    ConversionBackend,
    available_backends,
    create_backend,
)
from codeshift.errors import (
    BackendUnavailableError,
    IncompleteInputError,
    OutputAllocationError,
    UnsupportedEncodingPairError,
)
from codeshift.logger import NULL_LOGGER, ConversionLogger
from codeshift.options import ConvertOption, format_options
from codeshift.types import ConversionResult


class StreamConverter:
    """ストリーム変換器

    create()で作成し、convert()を任意回数呼び出した後、必要に応じてflush()で
    終端シーケンスを取り出し、最後にdestroy()でバックエンド資源を解放する。
    作成に成功したStreamConverterは常に有効な変換経路を持つ。

    使用例:
        >>> with StreamConverter.create("UTF-8", "ISO-2022-JP") as conv:
        ...     body = conv.convert("こんにちは".encode()).output
        ...     body += conv.flush()
    """

    def __init__(
        self,
        backend: ConversionBackend,
        source_encoding: str,
        dest_encoding: str,
        options: ConvertOption,
        logger: ConversionLogger = NULL_LOGGER,
    ) -> None:
        """StreamConverterを初期化する

        通常はcreate()を使う。backendはinitialize済みで有効である必要がある。
        """
        self._backend = backend
        self._source_encoding = source_encoding
        self._dest_encoding = dest_encoding
        self._options = options
        self._logger = logger
        self._destroyed = False

    @classmethod
    def create(
        cls,
        source_encoding: str,
        dest_encoding: str,
        options: ConvertOption = ConvertOption.NONE,
        *,
        backend: str | None = None,
        chunk_size: int = CHUNK_SIZE,
        logger: ConversionLogger = NULL_LOGGER,
    ) -> StreamConverter:
        """バックエンドを初期化してStreamConverterを作成する

        失敗した場合、確保済みのバックエンド資源は解放してから例外を送出する。

        Args:
            source_encoding: 変換元エンコーディング名
            dest_encoding: 変換先エンコーディング名
            options: 変換オプション
            backend: バックエンド名（Noneの場合はデフォルト）
            chunk_size: 1回の有界変換で生成する出力の上限
            logger: ログ出力先

        Returns:
            有効なStreamConverter

        Raises:
            BackendUnavailableError: バックエンド名が未知、または実行環境が初期化されていない場合
            UnsupportedEncodingPairError: エンコーディングが未知、または変換できない組の場合
            OutputAllocationError: chunk_sizeがMIN_CHUNK_SIZE未満の場合
        """
        backend_name = backend or DEFAULT_BACKEND
        if backend_name not in available_backends():
            raise BackendUnavailableError(
                backend_name, f"未知のバックエンドです（{', '.join(available_backends())} から選択）"
            )
        if chunk_size < MIN_CHUNK_SIZE:
            raise OutputAllocationError(
                chunk_size, f"chunk_sizeは{MIN_CHUNK_SIZE}以上である必要があります"
            )
        conversion_backend = create_backend(backend_name, chunk_size=chunk_size, logger=logger)
        try:
            valid = conversion_backend.initialize(source_encoding, dest_encoding, options)
        except BackendUnavailableError:
            conversion_backend.release()
            raise
        if not valid:
            conversion_backend.release()
            raise UnsupportedEncodingPairError(source_encoding, dest_encoding)

        logger.debug(
            f"Converter作成: {source_encoding} -> {dest_encoding} "
            f"[{backend_name}] options={format_options(options)}"
        )
        return cls(conversion_backend, source_encoding, dest_encoding, options, logger)

    def __enter__(self) -> StreamConverter:
        return self

    def __exit__(self, *args: object) -> None:
        if not self._destroyed:
            self.destroy()

    @property
    def source_encoding(self) -> str:
        """変換元エンコーディング名を返す"""
        return self._source_encoding

    @property
    def dest_encoding(self) -> str:
        """変換先エンコーディング名を返す"""
        return self._dest_encoding

    @property
    def options(self) -> ConvertOption:
        """変換オプションを返す"""
        return self._options

    @property
    def backend_name(self) -> str:
        """バックエンド名を返す"""
        return self._backend.name

    @property
    def destroyed(self) -> bool:
        """destroy()済みかを返す"""
        return self._destroyed

    def convert(self, data: bytes) -> ConversionResult:
        """入力全体を変換する

        バックエンドの有界変換を、入力をすべて消費するか変換が失敗するまで繰り返す。
        消費済みの入力に戻ることはない。失敗した場合も、それまでの出力と
        消費バイト数を返す（bytes_consumedが入力長より短くなる）。

        Args:
            data: 入力バイト列

        Returns:
            出力と消費バイト数

        Raises:
            OutputAllocationError: 出力バッファを確保できない場合、
                または出力上限に1文字分の出力も収まらない場合
        """
        out = bytearray()
        offset = 0
        total = len(data)
        success = True
        while offset < total:
            chunk = self._backend.convert_chunk(data, offset)
            self._check_progress(chunk.consumed, chunk.success, total - offset)
            self._append(out, chunk.output)
            offset += chunk.consumed
            if not chunk.success:
                success = False
                break
        return ConversionResult(
            output=self._freeze(out), bytes_consumed=offset, success=success
        )

    def convert_chunk(self, data: bytes) -> ConversionResult:
        """有界変換を1回だけ行う

        出力上限に達した時点で停止するため、入力をすべて消費するとは限らない。
        successがTrueで入力が残っている場合は、未消費部分で繰り返し呼び出せば続きを変換できる。
        successがFalseの場合は不正または不完全なバイト列で停止している。

        Raises:
            OutputAllocationError: 出力上限に1文字分の出力も収まらない場合
        """
        chunk = self._backend.convert_chunk(data, 0)
        self._check_progress(chunk.consumed, chunk.success, len(data))
        return ConversionResult(
            output=chunk.output, bytes_consumed=chunk.consumed, success=chunk.success
        )

    def flush(self) -> bytes:
        """状態付きエンコーディングの終端シーケンスを返す（不要な場合は空）"""
        return self._backend.flush_chunk()

    def reset(self) -> None:
        """変換状態を初期化する（エンコーディングとオプションは変わらない）"""
        self._backend.reset()

    def destroy(self) -> None:
        """バックエンド資源を解放する

        このメソッドの後にStreamConverterを使ってはならない。
        """
        self._backend.release()
        self._destroyed = True
        self._logger.debug(f"Converter破棄: {self._source_encoding} -> {self._dest_encoding}")

    def _check_progress(self, consumed: int, success: bool, remaining: int) -> None:
        # 成功したのに1バイトも消費できないのは、出力上限に1文字も収まらない場合だけ
        if success and consumed == 0 and remaining > 0:
            raise OutputAllocationError(
                self._backend.chunk_size, "出力上限に1文字分の出力も収まりません"
            )

    def _append(self, out: bytearray, chunk: bytes) -> None:
        try:
            out += chunk
        except MemoryError as e:
            raise OutputAllocationError(len(out) + len(chunk)) from e

    def _freeze(self, out: bytearray) -> bytes:
        try:
            return bytes(out)
        except MemoryError as e:
            raise OutputAllocationError(len(out)) from e


def convert_bytes(
    data: bytes,
    source_encoding: str,
    dest_encoding: str,
    options: ConvertOption = ConvertOption.DISCARD_ILSEQ,
    *,
    backend: str | None = None,
    chunk_size: int = CHUNK_SIZE,
    logger: ConversionLogger = NULL_LOGGER,
) -> ConversionResult:
    """バイト列を一括変換する

    create -> convert -> flush -> destroy を1回で行う。
    バックエンド資源は成功・失敗にかかわらず解放される。

    Args:
        data: 入力バイト列
        source_encoding: 変換元エンコーディング名
        dest_encoding: 変換先エンコーディング名
        options: 変換オプション
        backend: バックエンド名
        chunk_size: 1回の有界変換で生成する出力の上限
        logger: ログ出力先

    Returns:
        変換結果（flushの終端シーケンスを含む）

    Raises:
        BackendUnavailableError: バックエンド名が未知、または実行環境が初期化されていない場合
        UnsupportedEncodingPairError: エンコーディングが未知、または変換できない組の場合
        IncompleteInputError: 入力を消費しきれず、DISCARD_ILSEQが指定されていない場合
        OutputAllocationError: chunk_sizeが小さすぎる、または出力バッファを確保できない場合
    """
    converter = StreamConverter.create(
        source_encoding,
        dest_encoding,
        options,
        backend=backend,
        chunk_size=chunk_size,
        logger=logger,
    )
    try:
        result = converter.convert(data)
        trailer = converter.flush()
    finally:
        converter.destroy()

    if result.bytes_consumed < len(data) and not options & ConvertOption.DISCARD_ILSEQ:
        logger.log_conversion(
            source_encoding, dest_encoding, result.bytes_consumed, len(result.output), "incomplete"
        )
        raise IncompleteInputError(result.bytes_consumed, len(data))

    output = result.output + trailer
    logger.log_conversion(source_encoding, dest_encoding, result.bytes_consumed, len(output), "ok")
    return ConversionResult(
        output=output, bytes_consumed=result.bytes_consumed, success=result.success
    )
