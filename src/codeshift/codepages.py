"""コードページ表

文字セット名とWindowsコードページ番号、コードページとPythonコーデックの対応表。
"""

from __future__ import annotations

import codecs

# 文字セット名 -> コードページ
CHARSET_CODE_PAGES: dict[str, int] = {
    "unicode": 1200,
    "unicodefffe": 1201,
    "utf-16": 1200,
    "utf-32": 12000,
    "utf-32be": 12001,
    "utf-7": 65000,
    "utf-8": 65001,
    "unicode-1-1-utf-8": 65001,
    "unicode-2-0-utf-8": 65001,
    "us-ascii": 20127,
    "ascii": 20127,
    "ansi_x3.4-1968": 20127,
    "iso-8859-1": 28591,
    "latin1": 28591,
    "iso-8859-2": 28592,
    "iso-8859-3": 28593,
    "iso-8859-4": 28594,
    "iso-8859-5": 28595,
    "iso-8859-6": 28596,
    "iso-8859-7": 28597,
    "iso-8859-8": 28598,
    "iso-8859-9": 28599,
    "iso-8859-15": 28605,
    "windows-874": 874,
    "windows-1250": 1250,
    "windows-1251": 1251,
    "windows-1252": 1252,
    "windows-1253": 1253,
    "windows-1254": 1254,
    "windows-1255": 1255,
    "windows-1256": 1256,
    "windows-1257": 1257,
    "windows-1258": 1258,
    "ibm437": 437,
    "ibm850": 850,
    "cp866": 866,
    "koi8-r": 20866,
    "koi8-u": 21866,
    "macintosh": 10000,
    "shift_jis": 932,
    "shift-jis": 932,
    "sjis": 932,
    "x-sjis": 932,
    "ms_kanji": 932,
    "csshiftjis": 932,
    "euc-jp": 51932,
    "x-euc-jp": 51932,
    "iso-2022-jp": 50220,
    "csiso2022jp": 50220,
    "gb2312": 936,
    "gbk": 936,
    "gb18030": 54936,
    "big5": 950,
    "ks_c_5601-1987": 949,
    "euc-kr": 51949,
    "iso-2022-kr": 50225,
}

# コードページ -> Pythonコーデック名
CODE_PAGE_CODECS: dict[int, str] = {
    437: "cp437",
    850: "cp850",
    866: "cp866",
    874: "cp874",
    932: "cp932",
    936: "gbk",
    949: "cp949",
    950: "cp950",
    1200: "utf-16-le",
    1201: "utf-16-be",
    12000: "utf-32-le",
    12001: "utf-32-be",
    10000: "mac_roman",
    20127: "ascii",
    20866: "koi8_r",
    21866: "koi8_u",
    28591: "latin_1",
    28592: "iso8859_2",
    28593: "iso8859_3",
    28594: "iso8859_4",
    28595: "iso8859_5",
    28596: "iso8859_6",
    28597: "iso8859_7",
    28598: "iso8859_8",
    28599: "iso8859_9",
    28605: "iso8859_15",
    50220: "iso2022_jp",
    50225: "iso2022_kr",
    51932: "euc_jp",
    51949: "euc_kr",
    54936: "gb18030",
    65000: "utf-7",
    65001: "utf-8",
}


def code_page_codec(code_page: int) -> str | None:
    """コードページに対応するPythonコーデック名を返す

    表にないコードページは "cp<番号>" として探す。

    Args:
        code_page: コードページ番号

    Returns:
        コーデック名。対応するコーデックがない場合はNone
    """
    if code_page <= 0:
        return None
    if code_page in CODE_PAGE_CODECS:
        return CODE_PAGE_CODECS[code_page]
    try:
        return codecs.lookup(f"cp{code_page}").name
    except LookupError:
        return None


