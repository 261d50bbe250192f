"""変換オプションフラグ

Converter作成時に指定するオプションのビットセットと、
オプショントークン列のパースを提供する。
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import IntFlag

from codeshift.errors import InvalidOptionError


class ConvertOption(IntFlag):
    """変換オプション

    NONE: オプションなし
    TRANSLITERATE: 変換先に存在しない文字を近似文字に置き換える
    DISCARD_ILSEQ: 変換できないバイト列をエラーにせず読み飛ばす
    """

    NONE = 0
    TRANSLITERATE = 1
    DISCARD_ILSEQ = 2


# トークンとフラグの対応（順序はformat_optionsの出力順）
OPTION_TOKENS: dict[str, ConvertOption] = {
    "translit": ConvertOption.TRANSLITERATE,
    "ignore": ConvertOption.DISCARD_ILSEQ,
}


def parse_option_list(tokens: Iterable[object]) -> ConvertOption:
    """オプショントークン列をConvertOptionに変換する

    トークンは完全一致で比較する（大文字小文字も区別する）。
    未知のトークンはバックエンドの処理が始まる前にエラーとする。

    Args:
        tokens: "translit" / "ignore" のトークン列

    Returns:
        ORで結合したConvertOption

    Raises:
        InvalidOptionError: 未知のトークンが含まれる場合
    """
    if isinstance(tokens, (str, bytes)):
        raise InvalidOptionError(tokens)

    options = ConvertOption.NONE
    for token in tokens:
        if not isinstance(token, str) or token not in OPTION_TOKENS:
            raise InvalidOptionError(token)
        options |= OPTION_TOKENS[token]
    return options


def format_options(options: ConvertOption) -> list[str]:
    """ConvertOptionをトークン列に戻す"""
    return [token for token, flag in OPTION_TOKENS.items() if options & flag]
