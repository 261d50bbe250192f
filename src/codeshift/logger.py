"""進捗表示およびログ出力

このモジュールは、codeshiftの変換処理のログ出力と進捗表示を提供する。
VerboseLevel (詳細ログレベル)に応じた出力制御を行い、
ライブラリとして使う場合はNULL_LOGGERにより何も出力しない。
"""

from __future__ import annotations

import re
import sys
from dataclasses import dataclass
from datetime import datetime
from enum import IntEnum
from pathlib import Path
from typing import Protocol, TextIO


class VerboseLevel(IntEnum):
    """詳細ログレベル

    QUIET: エラーのみ出力
    NORMAL: 結果サマリを出力
    VERBOSE: 変換ごとの詳細も出力（-vオプション）
    DEBUG: バックエンドの初期化やハンドル操作も出力（-vvオプション）
    """

    QUIET = -1
    NORMAL = 0
    VERBOSE = 1
    DEBUG = 2


class ProgressDisplay(Protocol):
    """進捗表示のプロトコル"""

    def start(self, label: str, total: int) -> None:
        """処理開始を表示する

        Args:
            label: 表示する処理名（"UTF-8 -> SHIFT_JIS" など）
            total: 入力の総バイト数
        """
        ...

    def update(self, current: int, message: str = "") -> None: ...

    def finish(self, success: bool, message: str = "") -> None: ...


@dataclass
class LogConfig:
    """ログ設定

    Attributes:
        verbose_level: ログの詳細度レベル
        log_file: ログ出力先ファイルパス（Noneの場合はファイル出力なし）
        use_color: カラー出力を使用するか
    """

    verbose_level: VerboseLevel = VerboseLevel.NORMAL
    log_file: Path | None = None
    use_color: bool = True


class ConversionLogger:
    """変換ログ出力クラス

    VerboseLevelに応じてメッセージのフィルタリングを行う。
    log_fileが指定されている場合は、レベルに関係なくすべての行をファイルにも書き出す。
    info/verboseは標準出力、debug/warning/errorは変換結果と混ざらないよう標準エラー出力に出る。

    使用例:
        >>> config = LogConfig(verbose_level=VerboseLevel.VERBOSE)
        >>> with ConversionLogger(config) as logger:
        ...     logger.verbose("UTF-8 -> SHIFT_JIS を変換中")
    """

    _ANSI_ESCAPE_PATTERN = re.compile(r"\x1b\[[0-9;]*m")

    def __init__(self, config: LogConfig) -> None:
        self._config = config
        self._log_file: TextIO | None = None
        if config.log_file:
            self._log_file = open(config.log_file, "w", encoding="utf-8")  # noqa: SIM115

    def __enter__(self) -> ConversionLogger:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def close(self) -> None:
        """ログファイルを閉じる"""
        if self._log_file:
            self._log_file.close()
            self._log_file = None

    @property
    def config(self) -> LogConfig:
        return self._config

    def _emit(
        self,
        tag: str,
        message: str,
        *,
        min_level: VerboseLevel | None,
        stream: TextIO | None = None,
        prefix: str = "",
    ) -> None:
        """レベルを判定して画面に出力し、ログファイルには常に書き出す

        Args:
            tag: ログファイルに記録するレベル名
            message: メッセージ
            min_level: 画面に出す最低レベル（Noneの場合はレベルに関係なく出す）
            stream: 画面の出力先（Noneの場合は標準出力）
            prefix: 画面出力時の接頭辞
        """
        if min_level is None or self._config.verbose_level >= min_level:
            print(f"{prefix}{message}", file=stream if stream is not None else sys.stdout)
        if self._log_file:
            timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
            plain = self._ANSI_ESCAPE_PATTERN.sub("", message)
            self._log_file.write(f"[{timestamp}] {tag}: {plain}\n")
            self._log_file.flush()

    def info(self, message: str) -> None:
        """情報メッセージを出力する（NORMAL以上）"""
        self._emit("INFO", message, min_level=VerboseLevel.NORMAL)

    def verbose(self, message: str) -> None:
        """詳細メッセージを出力する（VERBOSE以上）"""
        self._emit("VERBOSE", message, min_level=VerboseLevel.VERBOSE)

    def debug(self, message: str) -> None:
        self._emit("DEBUG", message, min_level=VerboseLevel.DEBUG, stream=sys.stderr)

    def warning(self, message: str) -> None:
        """警告メッセージを出力する（QUIETでは出さない）"""
        self._emit(
            "WARNING", message, min_level=VerboseLevel.NORMAL, stream=sys.stderr, prefix="警告: "
        )

    def error(self, message: str) -> None:
        """エラーメッセージを出力する（常に出力）"""
        self._emit("ERROR", message, min_level=None, stream=sys.stderr, prefix="エラー: ")

    def create_progress(self) -> ProgressDisplay:
        """ストリーミング変換用の進捗表示を作成する"""
        return ConsoleProgressDisplay(use_color=self._config.use_color)

    def log_conversion(
        self, source: str, dest: str, bytes_in: int, bytes_out: int, status: str
    ) -> None:
        """1回の変換をログする（VERBOSE以上）

        Args:
            source: 変換元エンコーディング
            dest: 変換先エンコーディング
            bytes_in: 消費した入力バイト数
            bytes_out: 出力バイト数
            status: 変換ステータス（"ok", "incomplete" など）
        """
        self.verbose(f"変換: {source} -> {dest} ({bytes_in} -> {bytes_out} バイト) [{status}]")


class _NullLogger(ConversionLogger):
    """何も出力しないロガー"""

    def __init__(self) -> None:
        super().__init__(LogConfig(verbose_level=VerboseLevel.QUIET))

    def error(self, message: str) -> None:
        pass

    def warning(self, message: str) -> None:
        pass


NULL_LOGGER: ConversionLogger = _NullLogger()


class ConsoleProgressDisplay:
    """コンソール進捗表示

    ストリーミング変換で消費した入力バイト数をバーで表示する。
    標準出力は変換結果の書き出しに使われることがあるため、既定の出力先は標準エラー出力。
    """

    BAR_WIDTH = 40
    _MARKS = {
        (True, True): "\x1b[32m✓\x1b[0m",
        (True, False): "done",
        (False, True): "\x1b[31m✗\x1b[0m",
        (False, False): "failed",
    }

    def __init__(self, use_color: bool = True, stream: TextIO | None = None) -> None:
        self._use_color = use_color
        self._stream = stream
        self._total = 0

    @property
    def stream(self) -> TextIO:
        """出力先を返す"""
        return self._stream if self._stream is not None else sys.stderr

    def _bar(self, filled: int) -> str:
        filled = max(0, min(filled, self.BAR_WIDTH))
        return "█" * filled + "░" * (self.BAR_WIDTH - filled)

    def start(self, label: str, total: int) -> None:
        self._total = total
        print(f"{label}...", file=self.stream)

    def update(self, current: int, message: str = "") -> None:
        """消費済みバイト数で進捗を更新する（総バイト数が0なら何もしない）"""
        if self._total <= 0:
            return
        ratio = current / self._total
        line = f"\r   [{self._bar(int(self.BAR_WIDTH * ratio))}] {int(ratio * 100)}%"
        if message:
            line += f" {message}"
        print(line, end="", file=self.stream, flush=True)

    def finish(self, success: bool, message: str = "") -> None:
        mark = self._MARKS[(success, self._use_color)]
        if success:
            line = f"[{self._bar(self.BAR_WIDTH)}] 100% {mark}"
        else:
            line = f"[{self._bar(self.BAR_WIDTH)}] {mark}" + (f": {message}" if message else "")
        print(f"\r   {line}", file=self.stream)
