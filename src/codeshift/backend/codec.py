"""インクリメンタルコーデックによる有界変換

Pythonのインクリメンタルデコーダとエンコーダを連結し、
出力上限付きで変換した上で、消費した入力バイト数を正確に返す。
通常はブロック単位で変換し、エラーや出力上限にかかった場合だけ
1バイトずつの変換に切り替えて停止位置を特定する。
"""

from __future__ import annotations

import codecs
import unicodedata
from dataclasses import dataclass
from enum import Enum
from typing import Any

TRANSLIT_HANDLER = "codeshift.translit"
TRANSLIT_IGNORE_HANDLER = "codeshift.translit-ignore"

# 互換分解では得られない近似文字
_BEST_FIT_FALLBACKS: dict[str, str] = {
    " ": " ",
    "«": "<<",
    "»": ">>",
    "Æ": "AE",
    "Ø": "O",
    "ß": "ss",
    "æ": "ae",
    "ø": "o",
    "Œ": "OE",
    "œ": "oe",
    "–": "-",
    "—": "-",
    "‘": "'",
    "’": "'",
    "“": '"',
    "”": '"',
    "…": "...",
    "€": "EUR",
}


def best_fit(char: str, encoding: str) -> str | None:
    """encodingで表現できる近似文字列を返す

    Args:
        char: 変換できなかった文字
        encoding: 変換先のコーデック名

    Returns:
        近似文字列。見つからない場合はNone
    """
    decomposed = unicodedata.normalize("NFKD", char)
    stripped = "".join(c for c in decomposed if not unicodedata.combining(c))
    for candidate in (_BEST_FIT_FALLBACKS.get(char), stripped):
        if not candidate or candidate == char:
            continue
        try:
            candidate.encode(encoding)
        except (UnicodeError, LookupError):
            continue
        return candidate
    return None


def _transliterate(exc: UnicodeError, default: str) -> tuple[str, int]:
    if not isinstance(exc, UnicodeEncodeError):
        raise exc
    replacement = []
    for char in exc.object[exc.start : exc.end]:
        fitted = best_fit(char, exc.encoding)
        replacement.append(default if fitted is None else fitted)
    return "".join(replacement), exc.end


def _translit_handler(exc: UnicodeError) -> tuple[str, int]:
    return _transliterate(exc, "?")


def _translit_ignore_handler(exc: UnicodeError) -> tuple[str, int]:
    return _transliterate(exc, "")


codecs.register_error(TRANSLIT_HANDLER, _translit_handler)
codecs.register_error(TRANSLIT_IGNORE_HANDLER, _translit_ignore_handler)


class StopReason(Enum):
    """有界変換が停止した理由"""

    DONE = "done"
    OUTPUT_FULL = "output_full"
    INVALID = "invalid"
    INCOMPLETE = "incomplete"


@dataclass(frozen=True)
class PipelineResult:
    """CodecPipeline.runの結果

    Attributes:
        consumed: 消費した入力バイト数
        output: 生成した出力
        reason: 停止理由
        invalid_length: reasonがINVALIDの場合、不正なバイト列の長さ
    """

    consumed: int
    output: bytes
    reason: StopReason
    invalid_length: int = 0


class CodecPipeline:
    """デコーダとエンコーダの組

    変換途中の不完全なマルチバイト列は呼び出しごとに未消費として返し、
    デコーダ内部には持ち越さない。呼び出し側は残りの入力を次回の先頭に付け直す。
    """

    def __init__(
        self,
        source_codec: str,
        dest_codec: str,
        decode_errors: str = "strict",
        encode_errors: str = "strict",
    ) -> None:
        """パイプラインを初期化する

        Args:
            source_codec: 変換元のPythonコーデック名
            dest_codec: 変換先のPythonコーデック名
            decode_errors: デコーダのエラーハンドラ名
            encode_errors: エンコーダのエラーハンドラ名

        Raises:
            LookupError: コーデックが存在しない場合
        """
        self.source_codec = source_codec
        self.dest_codec = dest_codec
        self._decoder = codecs.getincrementaldecoder(source_codec)(decode_errors)
        self._encoder = codecs.getincrementalencoder(dest_codec)(encode_errors)

    def run(self, data: bytes, offset: int, limit: int) -> PipelineResult:
        """data[offset:]を最大limitバイトの出力まで変換する"""
        out = bytearray()
        pos = offset
        end = len(data)
        reason = StopReason.DONE
        invalid_length = 0

        while pos < end and reason is StopReason.DONE:
            block_end = min(pos + limit, end)
            snapshot = self._snapshot()
            try:
                encoded = self._encoder.encode(self._decoder.decode(data[pos:block_end]))
            except UnicodeError:
                encoded = None
            if encoded is not None and len(out) + len(encoded) <= limit:
                out += encoded
                pos = block_end
                continue
            self._restore(snapshot)
            pos, reason, invalid_length = self._run_bytewise(data, pos, block_end, out, limit)

        pending = self._pending_length()
        if pending:
            self._drop_pending()
            if reason is StopReason.DONE:
                reason = StopReason.INCOMPLETE

        return PipelineResult(
            consumed=pos - pending - offset,
            output=bytes(out),
            reason=reason,
            invalid_length=invalid_length,
        )

    def finish(self) -> bytes:
        """エンコーダの終端シーケンスを出力し、状態を初期化する"""
        trailer = self._encoder.encode("", final=True)
        self.reset()
        return trailer

    def reset(self) -> None:
        """デコーダとエンコーダの状態を初期化する"""
        self._decoder.reset()
        self._encoder.reset()

    def _run_bytewise(
        self, data: bytes, pos: int, stop: int, out: bytearray, limit: int
    ) -> tuple[int, StopReason, int]:
        while pos < stop:
            snapshot = self._snapshot()
            pending = self._pending_length()
            try:
                text = self._decoder.decode(data[pos : pos + 1])
            except UnicodeDecodeError as exc:
                self._restore(snapshot)
                return pos, StopReason.INVALID, max(exc.end - exc.start, 1)
            try:
                encoded = self._encoder.encode(text)
            except UnicodeEncodeError:
                self._restore(snapshot)
                return pos, StopReason.INVALID, pending + 1
            if len(out) + len(encoded) > limit:
                self._restore(snapshot)
                return pos, StopReason.OUTPUT_FULL, 0
            out += encoded
            pos += 1
        return pos, StopReason.DONE, 0

    def _snapshot(self) -> tuple[Any, Any]:
        return self._decoder.getstate(), self._encoder.getstate()

    def _restore(self, snapshot: tuple[Any, Any]) -> None:
        decoder_state, encoder_state = snapshot
        self._decoder.setstate(decoder_state)
        self._encoder.setstate(encoder_state)

    def _pending_length(self) -> int:
        return len(self._decoder.getstate()[0])

    def _drop_pending(self) -> None:
        _, flag = self._decoder.getstate()
        self._decoder.setstate((b"", flag))
