"""CLI entry point for codeshift."""

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Annotated, BinaryIO

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from codeshift import __version__
from codeshift.api import (
    convert_binary,
    create_converter,
    do_convert,
    flush_converter,
    initialize,
    uninitialize,
)
from codeshift.backend import available_backends, get_backend_class
from codeshift.backend.charset_service import CharsetInfoService
from codeshift.config import (
    CodeshiftConfig,
    ConfigError,
    find_config,
    get_default_config,
    load_config,
)
from codeshift.errors import (
    CodeshiftError,
    IncompleteInputError,
    InvalidOptionError,
    UnsupportedEncodingPairError,
)
from codeshift.logger import ConversionLogger, LogConfig, VerboseLevel
from codeshift.names import resolve_code_page, resolve_codec_name
from codeshift.options import ConvertOption, parse_option_list
from codeshift.registry import ConverterHandleRegistry
from codeshift.types import ExitCode

app = typer.Typer(help="バイト列の文字エンコーディングを変換するCLIツール")
console = Console()

# --streaming時に1回に読み込むバイト数
STREAM_READ_SIZE = 16 * 1024
# 次の読み込みに持ち越す未消費バイトの上限（これを超えたら不正なバイト列とみなす）
MAX_CARRY_SIZE = 16

STDIN_PATH = "-"


def _format_size(size_bytes: int) -> str:
    """バイト数を人間が読みやすい形式に変換する"""
    if size_bytes < 1024:
        return f"{size_bytes} B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    else:
        return f"{size_bytes / (1024 * 1024):.1f} MB"


def _load_cli_config(config_path: Path | None) -> CodeshiftConfig:
    """--configまたは自動検出した設定を読み込む"""
    path = config_path or find_config()
    if path is None:
        return get_default_config()
    try:
        return load_config(path)
    except ConfigError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(ExitCode.INVALID_INPUT) from e


def _resolve_option_tokens(
    options: list[str] | None, strict: bool, config: CodeshiftConfig
) -> list[str]:
    """コマンドライン引数と設定から変換オプションのトークン列を決める

    --optionが指定されていればそれを、なければ設定のdefault_optionsを使う。
    --strictはignoreを取り除く。
    """
    tokens = list(options) if options else list(config.converter.default_options)
    if strict:
        tokens = [token for token in tokens if token != "ignore"]
    return tokens


@contextmanager
def _open_input(input_path: str) -> Iterator[tuple[BinaryIO, int]]:
    """入力を開き、(ストリーム, 総バイト数) を返す（標準入力の総バイト数は0）"""
    if input_path == STDIN_PATH:
        yield typer.get_binary_stream("stdin"), 0
        return
    path = Path(input_path)
    with path.open("rb") as f:
        yield f, path.stat().st_size


@contextmanager
def _open_output(output: Path | None) -> Iterator[BinaryIO]:
    """出力先を開く（Noneの場合は標準出力。標準出力は閉じない）"""
    if output is None:
        stdout = typer.get_binary_stream("stdout")
        yield stdout
        stdout.flush()
        return
    with output.open("wb") as f:
        yield f


def _convert_streaming(
    source: BinaryIO,
    sink: BinaryIO,
    total: int,
    from_encoding: str,
    to_encoding: str,
    tokens: list[str],
    backend: str,
    chunk_size: int,
    logger: ConversionLogger,
) -> int:
    """ハンドル経由で入力を少しずつ変換する

    読み込んだブロックを有界変換で消費し、消費しきれなかった末尾は次のブロックの先頭に
    付け直す。途中で失敗した場合も、それまでの出力はsinkに書き込まれている。

    Returns:
        書き込んだ出力バイト数

    Raises:
        IncompleteInputError: 入力を消費しきれず、ignoreが指定されていない場合
    """
    flags = parse_option_list(tokens)
    registry = ConverterHandleRegistry(logger)
    show_progress = logger.config.verbose_level >= VerboseLevel.VERBOSE and total > 0
    progress = logger.create_progress()
    written = 0
    consumed_total = 0
    carry = b""

    try:
        handle = create_converter(
            from_encoding,
            to_encoding,
            tokens,
            backend=backend,
            chunk_size=chunk_size,
            registry=registry,
            logger=logger,
        )
        if show_progress:
            progress.start(f"{from_encoding} -> {to_encoding}", total)

        while block := source.read(STREAM_READ_SIZE):
            buffer = carry + block
            pos = 0
            while pos < len(buffer):
                result = do_convert(handle, buffer[pos:], registry=registry)
                sink.write(result.output)
                written += len(result.output)
                pos += result.bytes_consumed
                if not result.success:
                    break
            carry = buffer[pos:]
            consumed_total += pos
            if show_progress:
                progress.update(consumed_total, _format_size(consumed_total))
            if len(carry) > MAX_CARRY_SIZE:
                break

        trailer = flush_converter(handle, registry=registry)
        sink.write(trailer)
        written += len(trailer)
    finally:
        registry.close_all()

    if carry and not flags & ConvertOption.DISCARD_ILSEQ:
        if show_progress:
            progress.finish(False, "不正または不完全なバイト列")
        raise IncompleteInputError(consumed_total, max(total, consumed_total + len(carry)))
    if show_progress:
        progress.finish(True)
    logger.log_conversion(from_encoding, to_encoding, consumed_total, written, "ok")
    return written


@app.command()
def convert(
    input_path: Annotated[str, typer.Argument(help="入力ファイルパス（- で標準入力）")],
    from_encoding: Annotated[str, typer.Option("-f", "--from", help="変換元エンコーディング")],
    to_encoding: Annotated[str, typer.Option("-t", "--to", help="変換先エンコーディング")],
    output: Annotated[
        Path | None, typer.Option("-o", "--output", help="出力ファイルパス（省略時は標準出力）")
    ] = None,
    option: Annotated[
        list[str] | None, typer.Option("--option", help="変換オプション（translit / ignore）")
    ] = None,
    strict: Annotated[bool, typer.Option(help="不正なバイト列を読み飛ばさない")] = False,
    backend: Annotated[str | None, typer.Option(help="変換バックエンド")] = None,
    streaming: Annotated[bool, typer.Option(help="ハンドル経由で少しずつ変換する")] = False,
    verbose: Annotated[int, typer.Option("-v", "--verbose", count=True, help="詳細ログ出力")] = 0,
    log_file: Annotated[Path | None, typer.Option(help="ログファイル出力先")] = None,
    config_path: Annotated[Path | None, typer.Option("--config", help="設定ファイル")] = None,
) -> None:
    """ファイルの文字エンコーディングを変換する"""
    config = _load_cli_config(config_path)

    backend_name = backend or config.converter.backend
    if backend_name not in available_backends():
        console.print(
            f"[red]Error: 未知のバックエンドです: {backend_name}"
            f"（{', '.join(available_backends())} から選択）[/red]"
        )
        raise typer.Exit(ExitCode.INVALID_INPUT)

    if input_path != STDIN_PATH and not Path(input_path).is_file():
        console.print(f"[red]Error: 入力ファイルが見つかりません: {input_path}[/red]")
        raise typer.Exit(ExitCode.INVALID_INPUT)

    tokens = _resolve_option_tokens(option, strict, config)
    log_config = LogConfig(
        verbose_level=VerboseLevel(min(verbose or config.logging.verbose, VerboseLevel.DEBUG)),
        log_file=log_file or config.logging.log_file,
    )
    needs_environment = get_backend_class(backend_name).requires_environment

    with ConversionLogger(log_config) as logger:
        if needs_environment:
            initialize()
        try:
            with _open_input(input_path) as (source, total):
                if streaming:
                    with _open_output(output) as sink:
                        written = _convert_streaming(
                            source,
                            sink,
                            total,
                            from_encoding,
                            to_encoding,
                            tokens,
                            backend_name,
                            config.converter.chunk_size,
                            logger,
                        )
                else:
                    result = convert_binary(
                        source.read(),
                        from_encoding,
                        to_encoding,
                        tokens,
                        backend=backend_name,
                        chunk_size=config.converter.chunk_size,
                        logger=logger,
                    )
                    with _open_output(output) as sink:
                        sink.write(result.output)
                    written = len(result.output)
        except (InvalidOptionError, UnsupportedEncodingPairError) as e:
            logger.error(str(e))
            raise typer.Exit(ExitCode.INVALID_INPUT) from e
        except CodeshiftError as e:
            logger.error(str(e))
            raise typer.Exit(ExitCode.ERROR) from e
        finally:
            if needs_environment:
                uninitialize()

        if output is not None:
            logger.info(f"変換完了: {output} ({_format_size(written)})")

    raise typer.Exit(ExitCode.SUCCESS)


@app.command()
def encodings(
    names: Annotated[list[str], typer.Argument(help="確認するエンコーディング名")],
    backend: Annotated[str | None, typer.Option(help="変換バックエンド")] = None,
) -> None:
    """エンコーディング名がバックエンドでどう解決されるかを表示する"""
    backend_names = [backend] if backend else list(available_backends())
    unknown = [name for name in backend_names if name not in available_backends()]
    if unknown:
        console.print(f"[red]Error: 未知のバックエンドです: {', '.join(unknown)}[/red]")
        raise typer.Exit(ExitCode.INVALID_INPUT)

    table = Table(title="エンコーディング名の解決結果")
    table.add_column("名前", style="cyan")
    if "stream" in backend_names:
        table.add_column("stream (コーデック)", justify="left")
    if "service" in backend_names:
        table.add_column("service (コードページ)", justify="right")

    unsupported = "[red]unsupported[/red]"
    initialize()
    try:
        service = CharsetInfoService() if "service" in backend_names else None
        for name in names:
            row = [name]
            if "stream" in backend_names:
                row.append(resolve_codec_name(name) or unsupported)
            if service is not None:
                code_page = resolve_code_page(name, service)
                row.append(str(code_page) if code_page else unsupported)
            table.add_row(*row)
        if service is not None:
            service.release()
    finally:
        uninitialize()

    console.print(table)
    raise typer.Exit(ExitCode.SUCCESS)


@app.command()
def backends() -> None:
    """利用可能な変換バックエンドを表示する"""
    table = Table(show_header=False)
    table.add_column("バックエンド", style="cyan")
    table.add_column("説明", style="white")

    for name in available_backends():
        backend_class = get_backend_class(name)
        summary = (backend_class.__doc__ or "").strip().splitlines()[0]
        if backend_class.requires_environment:
            summary += " [yellow](環境初期化が必要)[/yellow]"
        table.add_row(name, summary)

    console.print(Panel(table, title="バックエンド", border_style="blue"))
    raise typer.Exit(ExitCode.SUCCESS)


def version_callback(value: bool) -> None:
    """バージョン表示コールバック"""
    if value:
        typer.echo(f"codeshift {__version__}")
        raise typer.Exit(0)


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=version_callback,
            is_eager=True,
            help="バージョンを表示する",
        ),
    ] = False,
) -> None:
    """codeshift CLI - バイト列の文字エンコーディング変換"""
    pass
