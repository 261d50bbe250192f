"""共通型定義"""

from dataclasses import dataclass
from enum import IntEnum


class ExitCode(IntEnum):
    """CLIの終了コード"""

    SUCCESS = 0
    ERROR = 1
    INVALID_INPUT = 2


@dataclass(frozen=True)
class ConversionResult:
    """変換結果を表す不変オブジェクト

    Attributes:
        output: 変換後のバイト列
        bytes_consumed: 消費した入力バイト数
        success: Falseの場合、不正または不完全なバイト列で停止した
            （Trueで入力が残っている場合は出力上限に達しただけで、続きを変換できる）
    """

    output: bytes
    bytes_consumed: int
    success: bool = True

    def is_complete(self, total: int) -> bool:
        """total バイトの入力をすべて消費したかを返す"""
        return self.bytes_consumed >= total
