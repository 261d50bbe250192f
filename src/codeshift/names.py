"""エンコーディング名の解決

利用者が指定するエンコーディング名を、各バックエンドが必要とする識別子に変換する。
ストリーム型バックエンドはPythonのコーデック名を、
サービス型バックエンドはコードページ番号を使う。
"""

from __future__ import annotations

import codecs
from typing import TYPE_CHECKING

from codeshift.codepages import CODE_PAGE_CODECS

if TYPE_CHECKING:
    from codeshift.backend.charset_service import CharsetInfoService

# UTF-16/UCS-2の表記ゆれ
_UTF16_BIG_ENDIAN_NAMES = frozenset({"UTF-16", "UTF-16BE", "UCS-2", "UCS-2BE", "UNICODEBIG"})
_UTF16_LITTLE_ENDIAN_NAMES = frozenset({"UTF-16LE", "UCS-2LE", "UNICODELITTLE"})

# サービスに問い合わせる際の文字セット名
SERVICE_UTF16_BIG_ENDIAN = "unicodeFFFE"
SERVICE_UTF16_LITTLE_ENDIAN = "unicode"


def _normalize(name: str) -> str:
    return name.strip().upper().replace("_", "-")


def _is_code_page_alias(normalized: str) -> bool:
    return normalized.startswith("CP")


def _leading_number(text: str) -> int:
    """先頭の10進数字を整数にする（数字がない場合は0）"""
    digits = ""
    for char in text.lstrip():
        if not char.isdigit():
            break
        digits += char
    return int(digits) if digits else 0


def resolve_codec_name(name: str) -> str | None:
    """エンコーディング名をPythonのコーデック名に解決する

    Args:
        name: エンコーディング名（"Shift_JIS", "CP932", "UCS-2LE" など）

    Returns:
        コーデック名。解決できない場合、またはテキストエンコーディングでない場合はNone
    """
    normalized = _normalize(name)
    if not normalized:
        return None
    if normalized in _UTF16_BIG_ENDIAN_NAMES:
        return "utf-16-be"
    if normalized in _UTF16_LITTLE_ENDIAN_NAMES:
        return "utf-16-le"
    if _is_code_page_alias(normalized):
        code_page = _leading_number(normalized[2:])
        if code_page in CODE_PAGE_CODECS:
            return CODE_PAGE_CODECS[code_page]

    try:
        info = codecs.lookup(name.strip())
    except LookupError:
        return None
    # base64やrot13などのbytes/strを変換しないコーデックは除外する
    if not getattr(info, "_is_text_encoding", True):
        return None
    return info.name


def resolve_code_page(name: str, service: CharsetInfoService) -> int:
    """エンコーディング名をコードページに解決する

    "CP932" のような数値エイリアスはサービスに問い合わせず、数字部分をそのまま返す。

    Args:
        name: エンコーディング名
        service: 文字セット情報サービス

    Returns:
        コードページ。解決できない場合は0
    """
    normalized = _normalize(name)
    if normalized in _UTF16_BIG_ENDIAN_NAMES:
        name = SERVICE_UTF16_BIG_ENDIAN
    elif normalized in _UTF16_LITTLE_ENDIAN_NAMES:
        name = SERVICE_UTF16_LITTLE_ENDIAN
    elif _is_code_page_alias(normalized):
        return _leading_number(normalized[2:])

    info = service.get_charset_info(name)
    if info is None:
        return 0
    return info.internet_encoding
