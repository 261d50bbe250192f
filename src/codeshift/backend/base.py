"""変換バックエンド基底クラスモジュール

すべての変換バックエンドが実装する抽象基底クラスと共通データ型を定義する。
StreamConverterはこのインターフェースだけに依存するため、
新しいバックエンドを追加してもStreamConverter側の変更は不要である。
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from codeshift.logger import NULL_LOGGER, ConversionLogger
from codeshift.options import ConvertOption

# 1回の変換呼び出しで生成する出力の上限（バイト）
CHUNK_SIZE = 1024
# chunk_sizeの下限。UTF-32の1文字（BOM付き）やISO-2022-JPのエスケープ付き1文字が収まる大きさ
MIN_CHUNK_SIZE = 8


@dataclass(frozen=True)
class ChunkResult:
    """1回の有界変換の結果

    Attributes:
        consumed: 消費した入力バイト数
        output: 生成した出力（chunk_size以下）
        success: Falseの場合、不正または不完全なバイト列で停止した
    """

    consumed: int
    output: bytes
    success: bool = True

    @property
    def produced(self) -> int:
        """生成した出力バイト数を返す"""
        return len(self.output)


class ConversionBackend(ABC):
    """変換バックエンドの基底クラス

    initialize -> convert_chunk* -> flush_chunk -> release の順に呼び出される。
    内部でロックは取らないため、1つのインスタンスを複数スレッドから同時に
    操作してはならない。

    Attributes:
        name: バックエンド名（設定ファイルやCLIで指定する名前）
        requires_environment: 使用前にスレッドごとの環境初期化が必要か
        chunk_size: convert_chunkが生成する出力の上限
    """

    name: str = ""
    requires_environment: bool = False

    def __init__(
        self,
        chunk_size: int = CHUNK_SIZE,
        logger: ConversionLogger = NULL_LOGGER,
    ) -> None:
        """バックエンドを初期化する

        Args:
            chunk_size: 1回の変換で生成する出力の上限（バイト）
            logger: デバッグログの出力先

        Raises:
            ValueError: chunk_sizeがMIN_CHUNK_SIZE未満の場合。StreamConverter.createは
                バックエンドを作る前にOutputAllocationErrorとして検出する
        """
        if chunk_size < MIN_CHUNK_SIZE:
            raise ValueError(
                f"chunk_sizeは{MIN_CHUNK_SIZE}以上である必要があります: {chunk_size}"
            )
        self.chunk_size = chunk_size
        self._logger = logger
        self._options = ConvertOption.NONE

    @property
    def options(self) -> ConvertOption:
        """initializeで指定されたオプションを返す"""
        return self._options

    @property
    @abstractmethod
    def valid(self) -> bool:
        """変換経路が確立されているかを返す"""
        ...

    @abstractmethod
    def initialize(self, source: str, dest: str, options: ConvertOption) -> bool:
        """変換資源を確保する

        未知のエンコーディング名や未対応の変換方向ではFalseを返す。
        実行環境の前提が満たされていない場合はBackendUnavailableErrorを送出する。

        Args:
            source: 変換元エンコーディング名
            dest: 変換先エンコーディング名
            options: 変換オプション

        Returns:
            変換経路が確立できた場合True
        """
        ...

    @abstractmethod
    def convert_chunk(self, data: bytes, offset: int = 0) -> ChunkResult:
        """data[offset:]を出力上限まで変換する

        出力上限に達した場合はconsumedが入力より短くてもsuccess=Trueとなる。

        Args:
            data: 入力バイト列
            offset: 変換を開始する位置

        Returns:
            消費バイト数と出力を表すChunkResult
        """
        ...

    @abstractmethod
    def flush_chunk(self) -> bytes:
        """状態付きエンコーディングの終端シーケンスを出力し、状態を初期化する

        Returns:
            終端シーケンス（不要な場合は空）
        """
        ...

    @abstractmethod
    def reset(self) -> None:
        """資源を解放せずに内部状態だけを初期化する"""
        ...

    @abstractmethod
    def release(self) -> None:
        """すべての資源を解放する（呼び出しは1回まで）"""
        ...
