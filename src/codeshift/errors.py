"""変換エラー定義モジュール

バックエンドやハンドル操作で発生するエラーはすべてこのモジュールの例外に変換され、
呼び出し側にはこれ以外の例外が届かないようにする。
"""

from __future__ import annotations


class CodeshiftError(Exception):
    """codeshiftの全エラーの基底クラス"""

    pass


class BackendUnavailableError(CodeshiftError):
    """バックエンドの前提となる実行環境が初期化されていない

    サービス型バックエンドで環境トークンを取得していないスレッドから
    Converterを作成しようとした場合に発生する。initialize()を呼んでから再試行できる。
    未知のバックエンド名を指定した場合にも発生する。
    """

    def __init__(self, backend: str, reason: str = "") -> None:
        self.backend = backend
        self.reason = reason
        message = f"バックエンド '{backend}' を利用できません"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class UnsupportedEncodingPairError(CodeshiftError):
    """エンコーディング名が解決できない、または変換方向がサポートされていない"""

    def __init__(self, source: str, dest: str) -> None:
        self.source = source
        self.dest = dest
        super().__init__(
            f"未知のエンコーディング、または変換がサポートされていません: {source} -> {dest}"
        )


class InvalidOptionError(CodeshiftError):
    """未知のオプショントークン"""

    def __init__(self, token: object) -> None:
        self.token = token
        super().__init__(f"未知のオプションです: {token!r}")


class IncompleteInputError(CodeshiftError):
    """入力を最後まで消費できなかった

    不正または不完全なバイト列で変換が止まり、かつDISCARD_ILSEQが指定されていない場合に
    発生する。それまでに生成された出力は返されない。

    Attributes:
        bytes_consumed: 消費できたバイト数
        total: 入力の総バイト数
    """

    def __init__(self, bytes_consumed: int, total: int) -> None:
        self.bytes_consumed = bytes_consumed
        self.total = total
        super().__init__(
            f"入力が不完全または不正です（{bytes_consumed}/{total} バイトを消費）"
        )


class InvalidHandleError(CodeshiftError):
    """ハンドルが0、または登録されていない"""

    def __init__(self, handle: object) -> None:
        self.handle = handle
        super().__init__(f"無効なハンドルです: {handle!r}")


class OutputAllocationError(CodeshiftError):
    """出力バッファを確保できなかった

    メモリ不足のほか、出力上限（chunk_size）が小さすぎて1文字分の出力も
    収まらない場合にも発生する。
    """

    def __init__(self, size: int | None = None, reason: str = "") -> None:
        self.size = size
        self.reason = reason
        message = "出力バッファを確保できません"
        if size is not None:
            message = f"{message}（{size} バイト）"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
