"""CLIエントリポイントのテスト"""

from pathlib import Path

import pytest
from typer.testing import CliRunner

from codeshift.cli import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """カレントディレクトリや環境変数の設定ファイルを読まないようにする"""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("CODESHIFT_CONFIG", raising=False)


@pytest.fixture
def cafe_file(tmp_path: Path) -> Path:
    """UTF-8の "café" を書いた入力ファイル"""
    path = tmp_path / "cafe.txt"
    path.write_bytes("café".encode())
    return path


class TestMainCommand:
    """メインコマンドのテスト"""

    @pytest.mark.parametrize(
        "args,expected_in_output",
        [
            pytest.param(["--help"], "エンコーディング", id="正常系: ヘルプ表示"),
            pytest.param(["--version"], "0.1.0", id="正常系: バージョン表示"),
        ],
    )
    def test_main_options(self, args: list[str], expected_in_output: str) -> None:
        result = runner.invoke(app, args)
        assert result.exit_code == 0
        assert expected_in_output in result.stdout


class TestConvertCommand:
    """convertコマンドのテスト"""

    def test_convert_to_file(self, tmp_path: Path, cafe_file: Path) -> None:
        """デフォルトでは変換できない文字を読み飛ばす"""
        output = tmp_path / "out.txt"
        result = runner.invoke(
            app, ["convert", str(cafe_file), "-f", "UTF-8", "-t", "ASCII", "-o", str(output)]
        )
        assert result.exit_code == 0
        assert output.read_bytes() == b"caf"
        assert "変換完了" in result.output

    def test_convert_to_stdout(self, cafe_file: Path) -> None:
        result = runner.invoke(
            app, ["convert", str(cafe_file), "--from", "UTF-8", "--to", "UTF-16LE"]
        )
        assert result.exit_code == 0
        assert result.stdout_bytes == "café".encode("utf-16-le")

    def test_convert_from_stdin(self) -> None:
        result = runner.invoke(
            app, ["convert", "-", "-f", "UTF-8", "-t", "SHIFT_JIS"], input="日本語".encode()
        )
        assert result.exit_code == 0
        assert result.stdout_bytes == "日本語".encode("shift_jis")

    @pytest.mark.parametrize(
        "options,expected",
        [
            pytest.param(["--option", "translit"], b"cafe", id="正常系: translit"),
            pytest.param(
                ["--option", "translit", "--option", "ignore"], b"cafe", id="正常系: 複数指定"
            ),
            pytest.param(["--option", "ignore"], b"caf", id="正常系: ignore"),
        ],
    )
    def test_convert_with_options(
        self, tmp_path: Path, cafe_file: Path, options: list[str], expected: bytes
    ) -> None:
        output = tmp_path / "out.txt"
        result = runner.invoke(
            app,
            ["convert", str(cafe_file), "-f", "UTF-8", "-t", "ASCII", "-o", str(output), *options],
        )
        assert result.exit_code == 0
        assert output.read_bytes() == expected

    def test_strict_fails_on_unconvertible(self, tmp_path: Path, cafe_file: Path) -> None:
        """--strictでは変換できない文字で終了コード1になり、出力ファイルを作らない"""
        output = tmp_path / "out.txt"
        result = runner.invoke(
            app,
            ["convert", str(cafe_file), "-f", "UTF-8", "-t", "ASCII", "-o", str(output), "--strict"],
        )
        assert result.exit_code == 1
        assert "エラー" in result.output
        assert not output.exists()

    def test_service_backend(self, tmp_path: Path) -> None:
        input_file = tmp_path / "in.txt"
        input_file.write_bytes("日本語".encode())
        output = tmp_path / "out.txt"
        result = runner.invoke(
            app,
            [
                "convert",
                str(input_file),
                "-f",
                "UTF-8",
                "-t",
                "Shift_JIS",
                "-o",
                str(output),
                "--backend",
                "service",
            ],
        )
        assert result.exit_code == 0
        assert output.read_bytes() == "日本語".encode("cp932")

    @pytest.mark.parametrize(
        "args",
        [
            pytest.param(["-t", "X-NOPE"], id="異常系: 未知のエンコーディング"),
            pytest.param(["-t", "ASCII", "--option", "bogus"], id="異常系: 未知のオプション"),
            pytest.param(["-t", "ASCII", "--backend", "nope"], id="異常系: 未知のバックエンド"),
        ],
    )
    def test_invalid_input(self, cafe_file: Path, args: list[str]) -> None:
        result = runner.invoke(app, ["convert", str(cafe_file), "-f", "UTF-8", *args])
        assert result.exit_code == 2

    def test_missing_input_file(self, tmp_path: Path) -> None:
        result = runner.invoke(
            app, ["convert", str(tmp_path / "nonexistent.txt"), "-f", "UTF-8", "-t", "ASCII"]
        )
        assert result.exit_code == 2
        assert "Error" in result.output

    def test_log_file(self, tmp_path: Path, cafe_file: Path) -> None:
        log_file = tmp_path / "codeshift.log"
        output = tmp_path / "out.txt"
        result = runner.invoke(
            app,
            [
                "convert",
                str(cafe_file),
                "-f",
                "UTF-8",
                "-t",
                "ASCII",
                "-o",
                str(output),
                "--log-file",
                str(log_file),
            ],
        )
        assert result.exit_code == 0
        assert "変換: UTF-8 -> ASCII (5 -> 3 バイト) [ok]" in log_file.read_text(encoding="utf-8")


class TestConvertWithConfig:
    """設定ファイルを使ったconvertコマンドのテスト"""

    def test_config_default_options(self, tmp_path: Path, cafe_file: Path) -> None:
        """設定ファイルのdefault_optionsが使われる"""
        config_file = tmp_path / "custom.yml"
        config_file.write_text("converter:\n  default_options: [translit]\n")
        output = tmp_path / "out.txt"
        result = runner.invoke(
            app,
            [
                "convert",
                str(cafe_file),
                "-f",
                "UTF-8",
                "-t",
                "ASCII",
                "-o",
                str(output),
                "--config",
                str(config_file),
            ],
        )
        assert result.exit_code == 0
        assert output.read_bytes() == b"cafe"

    def test_config_in_current_directory(self, tmp_path: Path, cafe_file: Path) -> None:
        (tmp_path / "codeshift.yml").write_text("converter:\n  default_options: []\n")
        result = runner.invoke(app, ["convert", str(cafe_file), "-f", "UTF-8", "-t", "ASCII"])
        assert result.exit_code == 1

    def test_invalid_config(self, tmp_path: Path, cafe_file: Path) -> None:
        config_file = tmp_path / "bad.yml"
        config_file.write_text("converter:\n  backend: nope\n")
        result = runner.invoke(
            app,
            ["convert", str(cafe_file), "-f", "UTF-8", "-t", "ASCII", "--config", str(config_file)],
        )
        assert result.exit_code == 2

    @pytest.mark.parametrize(
        "chunk_size,expected_code",
        [
            pytest.param(1, 2, id="異常系: 下限未満は設定エラー"),
            pytest.param(8, 0, id="正常系: 下限ちょうど"),
        ],
    )
    def test_config_chunk_size(
        self, tmp_path: Path, cafe_file: Path, chunk_size: int, expected_code: int
    ) -> None:
        """小さすぎるchunk_sizeで空の出力を返さない"""
        config_file = tmp_path / "chunk.yml"
        config_file.write_text(f"converter:\n  chunk_size: {chunk_size}\n")
        output = tmp_path / "out.txt"
        result = runner.invoke(
            app,
            [
                "convert",
                str(cafe_file),
                "-f",
                "UTF-8",
                "-t",
                "UTF-16LE",
                "-o",
                str(output),
                "--config",
                str(config_file),
            ],
        )
        assert result.exit_code == expected_code
        if expected_code == 0:
            assert output.read_bytes() == "café".encode("utf-16-le")
        else:
            assert not output.exists()


class TestConvertStreaming:
    """convert --streamingのテスト"""

    def invoke_streaming(self, input_file: Path, output: Path, *args: str) -> int:
        result = runner.invoke(
            app,
            ["convert", str(input_file), "-o", str(output), "--streaming", *args],
        )
        return result.exit_code

    def test_large_input(self, tmp_path: Path) -> None:
        """読み込みブロックの境界をまたぐマルチバイト文字も正しく変換される"""
        text = "あいうえおかきくけこ" * 5000
        input_file = tmp_path / "in.txt"
        input_file.write_bytes(text.encode())
        output = tmp_path / "out.txt"

        assert self.invoke_streaming(input_file, output, "-f", "UTF-8", "-t", "UTF-16LE") == 0
        assert output.read_bytes() == text.encode("utf-16-le")

    def test_trailer_is_written(self, tmp_path: Path) -> None:
        input_file = tmp_path / "in.txt"
        input_file.write_bytes("こんにちは".encode())
        output = tmp_path / "out.txt"

        assert self.invoke_streaming(input_file, output, "-f", "UTF-8", "-t", "ISO-2022-JP") == 0
        assert output.read_bytes().endswith(b"\x1b(B")
        assert output.read_bytes().decode("iso2022_jp") == "こんにちは"

    @pytest.mark.parametrize(
        "extra,expected_code",
        [
            pytest.param((), 0, id="正常系: ignoreで末尾を捨てる"),
            pytest.param(("--strict",), 1, id="異常系: strictでは不完全な入力"),
        ],
    )
    def test_incomplete_tail(
        self, tmp_path: Path, extra: tuple[str, ...], expected_code: int
    ) -> None:
        input_file = tmp_path / "in.txt"
        input_file.write_bytes(b"abc\xe3")
        output = tmp_path / "out.txt"

        code = self.invoke_streaming(input_file, output, "-f", "UTF-8", "-t", "ASCII", *extra)
        assert code == expected_code
        assert output.read_bytes() == b"abc"

    def test_strict_stops_at_illegal_sequence(self, tmp_path: Path) -> None:
        input_file = tmp_path / "in.txt"
        input_file.write_bytes(b"abc" + b"\xff" + b"x" * 100)
        output = tmp_path / "out.txt"

        code = self.invoke_streaming(input_file, output, "-f", "UTF-8", "-t", "ASCII", "--strict")
        assert code == 1
        assert output.read_bytes() == b"abc"

    def test_service_backend(self, tmp_path: Path) -> None:
        input_file = tmp_path / "in.txt"
        input_file.write_bytes("日本語".encode() * 1000)
        output = tmp_path / "out.txt"

        code = self.invoke_streaming(
            input_file, output, "-f", "UTF-8", "-t", "Shift_JIS", "--backend", "service"
        )
        assert code == 0
        assert output.read_bytes() == ("日本語" * 1000).encode("cp932")


class TestEncodingsCommand:
    """encodingsコマンドのテスト"""

    def test_encodings_table(self) -> None:
        result = runner.invoke(app, ["encodings", "Shift_JIS", "X-NOPE"])
        assert result.exit_code == 0
        assert "shift_jis" in result.stdout
        assert "932" in result.stdout
        assert "unsupported" in result.stdout

    def test_encodings_single_backend(self) -> None:
        result = runner.invoke(app, ["encodings", "--backend", "stream", "UTF-16"])
        assert result.exit_code == 0
        assert "utf-16-be" in result.stdout
        assert "コードページ" not in result.stdout

    def test_encodings_unknown_backend(self) -> None:
        result = runner.invoke(app, ["encodings", "--backend", "nope", "UTF-8"])
        assert result.exit_code == 2


class TestBackendsCommand:
    """backendsコマンドのテスト"""

    def test_lists_backends(self) -> None:
        result = runner.invoke(app, ["backends"])
        assert result.exit_code == 0
        assert "stream" in result.stdout
        assert "service" in result.stdout
