"""エンコーディング名解決のテスト"""

import pytest

from codeshift.backend.charset_service import CharsetInfoService
from codeshift.names import resolve_code_page, resolve_codec_name


@pytest.fixture
def service(service_environment: None) -> CharsetInfoService:
    """環境トークンを取得した状態のCharsetInfoServiceを返すフィクスチャ"""
    return CharsetInfoService()


class TestResolveCodecName:
    """resolve_codec_nameのテスト"""

    @pytest.mark.parametrize(
        "name,expected",
        [
            pytest.param("UTF-8", "utf-8", id="正常系: UTF-8"),
            pytest.param("  utf-8 ", "utf-8", id="正常系: 前後の空白"),
            pytest.param("Shift_JIS", "shift_jis", id="正常系: Shift_JIS"),
            pytest.param("EUC-JP", "euc_jp", id="正常系: EUC-JP"),
            pytest.param("ISO-2022-JP", "iso2022_jp", id="正常系: ISO-2022-JP"),
            pytest.param("CP932", "cp932", id="正常系: CP932"),
            pytest.param("cp1252", "cp1252", id="正常系: 表にないコードページ"),
            pytest.param("CP65001", "utf-8", id="正常系: CP65001"),
            pytest.param("CP20127", "ascii", id="正常系: CP20127"),
            pytest.param("CP51932", "euc_jp", id="正常系: CP51932"),
            pytest.param("UTF-16", "utf-16-be", id="正常系: UTF-16はBE"),
            pytest.param("UCS-2", "utf-16-be", id="正常系: UCS-2はBE"),
            pytest.param("UnicodeBig", "utf-16-be", id="正常系: UnicodeBig"),
            pytest.param("utf_16le", "utf-16-le", id="正常系: utf_16le"),
            pytest.param("UCS-2LE", "utf-16-le", id="正常系: UCS-2LE"),
            pytest.param("UnicodeLittle", "utf-16-le", id="正常系: UnicodeLittle"),
        ],
    )
    def test_resolves_known_names(self, name: str, expected: str) -> None:
        assert resolve_codec_name(name) == expected

    @pytest.mark.parametrize(
        "name",
        [
            pytest.param("X-NOPE", id="異常系: 未知の名前"),
            pytest.param("", id="異常系: 空文字列"),
            pytest.param("   ", id="異常系: 空白のみ"),
            pytest.param("base64", id="異常系: bytes変換コーデック"),
            pytest.param("rot13", id="異常系: str変換コーデック"),
            pytest.param("zlib", id="異常系: 圧縮コーデック"),
        ],
    )
    def test_unresolvable_names(self, name: str) -> None:
        assert resolve_codec_name(name) is None


class TestResolveCodePage:
    """resolve_code_pageのテスト"""

    @pytest.mark.parametrize(
        "name,expected",
        [
            pytest.param("shift_jis", 932, id="正常系: shift_jis"),
            pytest.param(" Shift_JIS ", 932, id="正常系: 大文字と空白"),
            pytest.param("UTF-8", 65001, id="正常系: UTF-8"),
            pytest.param("euc-jp", 51932, id="正常系: euc-jp"),
            pytest.param("iso-2022-jp", 50220, id="正常系: iso-2022-jp"),
            pytest.param("UTF-16", 1201, id="正常系: UTF-16はunicodeFFFE"),
            pytest.param("UCS-2BE", 1201, id="正常系: UCS-2BE"),
            pytest.param("UTF-16LE", 1200, id="正常系: UTF-16LEはunicode"),
            pytest.param("CP932", 932, id="正常系: CP932"),
            pytest.param("cp65001abc", 65001, id="正常系: 数字以降は無視"),
        ],
    )
    def test_resolves_known_names(
        self, service: CharsetInfoService, name: str, expected: int
    ) -> None:
        assert resolve_code_page(name, service) == expected

    @pytest.mark.parametrize(
        "name",
        [
            pytest.param("CPx", id="異常系: 数字のないCPエイリアス"),
            pytest.param("X-NOPE", id="異常系: 未知の名前"),
            pytest.param("", id="異常系: 空文字列"),
        ],
    )
    def test_unresolvable_names_give_zero(self, service: CharsetInfoService, name: str) -> None:
        assert resolve_code_page(name, service) == 0
