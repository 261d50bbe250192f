"""文字セット変換サービス

コードページ番号で文字セットを識別するホスト側の変換サービスを提供する。
サービスはスレッドごとの環境トークンを前提とし、
initialize_environment()を呼んでいないスレッドからは利用できない。

    >>> initialize_environment()
    >>> service = CharsetInfoService()
    >>> service.get_charset_info("shift_jis").code_page
    932
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from enum import IntEnum, IntFlag

from codeshift.backend.codec import TRANSLIT_HANDLER, CodecPipeline, StopReason
from codeshift.codepages import CHARSET_CODE_PAGES, code_page_codec


class HResult(IntEnum):
    """サービス呼び出しの結果コード"""

    S_OK = 0
    S_FALSE = 1
    E_FAIL = -2147467259
    E_NOTINITIALIZED = -2147221008


class ConvertProperty(IntFlag):
    """ConvertCharsetの変換プロパティ"""

    NONE = 0
    NO_BEST_FIT_CHARS = 0x0002


class ServiceNotInitializedError(RuntimeError):
    """環境トークンを持たないスレッドからサービスを作成した"""

    def __init__(self) -> None:
        self.hresult = HResult.E_NOTINITIALIZED
        super().__init__("このスレッドでは変換サービスの環境が初期化されていません")


_environment = threading.local()


def initialize_environment() -> None:
    """現在のスレッドで環境トークンを取得する

    入れ子で呼び出した場合は同じ回数だけuninitialize_environment()を呼ぶ。
    """
    _environment.depth = getattr(_environment, "depth", 0) + 1


def uninitialize_environment() -> None:
    """現在のスレッドの環境トークンを1つ解放する"""
    depth = getattr(_environment, "depth", 0)
    if depth > 0:
        _environment.depth = depth - 1


def environment_initialized() -> bool:
    """現在のスレッドが環境トークンを持っているかを返す"""
    return getattr(_environment, "depth", 0) > 0


@dataclass(frozen=True)
class CharsetInfo:
    """文字セット情報

    Attributes:
        charset: 問い合わせた文字セット名
        code_page: Windowsコードページ
        internet_encoding: 変換に使うコードページ
    """

    charset: str
    code_page: int
    internet_encoding: int


@dataclass(frozen=True)
class DoConversionResult:
    """ConvertCharset.do_conversionの結果

    Attributes:
        hresult: 結果コード（E_FAILは不正なバイト列、S_FALSEは不完全な入力）
        src_size: 消費した入力バイト数
        output: 生成した出力
        invalid_size: E_FAILの場合、不正なバイト列の長さ
    """

    hresult: HResult
    src_size: int
    output: bytes
    invalid_size: int = 0


class ConvertCharset:
    """コードページ間の変換オブジェクト

    CharsetInfoService.create_convert_charsetで作成する。
    無効なバイト列を読み飛ばすモードは持たない。
    """

    def __init__(self) -> None:
        self._pipeline: CodecPipeline | None = None
        self.src_code_page = 0
        self.dst_code_page = 0
        self.properties = ConvertProperty.NONE

    def initialize(
        self, src_code_page: int, dst_code_page: int, properties: ConvertProperty
    ) -> HResult:
        """変換方向とプロパティを設定し、状態を初期化する

        Returns:
            S_OK、または変換がサポートされていない場合S_FALSE
        """
        self.src_code_page = src_code_page
        self.dst_code_page = dst_code_page
        self.properties = properties
        self._pipeline = None

        src_codec = code_page_codec(src_code_page)
        dst_codec = code_page_codec(dst_code_page)
        if src_codec is None or dst_codec is None:
            return HResult.S_FALSE

        encode_errors = "strict"
        if not properties & ConvertProperty.NO_BEST_FIT_CHARS:
            encode_errors = TRANSLIT_HANDLER
        self._pipeline = CodecPipeline(src_codec, dst_codec, "strict", encode_errors)
        return HResult.S_OK

    def do_conversion(self, data: bytes, offset: int, dst_size: int) -> DoConversionResult:
        """data[offset:]を最大dst_sizeバイトまで変換する"""
        if self._pipeline is None:
            return DoConversionResult(hresult=HResult.E_FAIL, src_size=0, output=b"")

        result = self._pipeline.run(data, offset, dst_size)
        if result.reason is StopReason.INVALID:
            hresult = HResult.E_FAIL
        elif result.reason is StopReason.INCOMPLETE:
            hresult = HResult.S_FALSE
        else:
            hresult = HResult.S_OK
        return DoConversionResult(
            hresult=hresult,
            src_size=result.consumed,
            output=result.output,
            invalid_size=result.invalid_length,
        )

    def release(self) -> None:
        """変換資源を解放する"""
        self._pipeline = None


class CharsetInfoService:
    """文字セット情報サービス

    文字セット名からコードページを引き、ConvertCharsetを作成する。

    Raises:
        ServiceNotInitializedError: 環境トークンを持たないスレッドで作成した場合
    """

    def __init__(self) -> None:
        if not environment_initialized():
            raise ServiceNotInitializedError()
        self._released = False

    @property
    def released(self) -> bool:
        """release済みかを返す"""
        return self._released

    def get_charset_info(self, charset: str) -> CharsetInfo | None:
        """文字セット名の情報を返す

        Args:
            charset: 文字セット名（大文字小文字は区別しない）

        Returns:
            文字セット情報。未知の名前の場合はNone
        """
        code_page = CHARSET_CODE_PAGES.get(charset.strip().lower())
        if code_page is None:
            return None
        return CharsetInfo(charset=charset, code_page=code_page, internet_encoding=code_page)

    def create_convert_charset(
        self, src_code_page: int, dst_code_page: int, properties: ConvertProperty
    ) -> tuple[HResult, ConvertCharset | None]:
        """変換オブジェクトを作成する

        Returns:
            (結果コード, 変換オブジェクト)。S_OK以外の場合、変換オブジェクトはNone
        """
        converter = ConvertCharset()
        hresult = converter.initialize(src_code_page, dst_code_page, properties)
        if hresult is not HResult.S_OK:
            converter.release()
            return hresult, None
        return hresult, converter

    def release(self) -> None:
        """サービスを解放する"""
        self._released = True
