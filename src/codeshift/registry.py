"""Converterハンドル管理

StreamConverterを0以外の整数ハンドルとして外部に公開し、
複数回の呼び出しにまたがって同じConverterを使えるようにする。

ハンドルはプロセス内で単調増加するカウンタから払い出し、破棄後も再利用しない。
そのため破棄済みのハンドルは別のConverterを指すことがなく、常にInvalidHandleErrorになる。
ハンドルはプロセス内でのみ有効であり、永続化したりプロセス外に渡したりしてはならない。

レジストリは内部でロックを取らない。1つのハンドルは同時に1つの呼び出し系列からのみ
操作すること。
"""

from __future__ import annotations

from itertools import count

from codeshift.converter import StreamConverter
from codeshift.errors import InvalidHandleError
from codeshift.logger import NULL_LOGGER, ConversionLogger


class ConverterHandleRegistry:
    """ハンドルとStreamConverterの対応表"""

    def __init__(self, logger: ConversionLogger = NULL_LOGGER) -> None:
        self._converters: dict[int, StreamConverter] = {}
        self._handles = count(1)
        self._logger = logger

    def __len__(self) -> int:
        return len(self._converters)

    def __contains__(self, handle: object) -> bool:
        return handle in self._converters

    def register(self, converter: StreamConverter) -> int:
        """Converterを登録してハンドルを払い出す

        Args:
            converter: 作成済みのStreamConverter

        Returns:
            0以外のハンドル
        """
        handle = next(self._handles)
        self._converters[handle] = converter
        self._logger.debug(
            f"ハンドル登録: {handle} ({converter.source_encoding} -> {converter.dest_encoding})"
        )
        return handle

    def resolve(self, handle: int) -> StreamConverter:
        """ハンドルに対応するConverterを返す

        Raises:
            InvalidHandleError: ハンドルが0、または登録されていない場合
        """
        if not isinstance(handle, int) or isinstance(handle, bool) or handle == 0:
            raise InvalidHandleError(handle)
        try:
            return self._converters[handle]
        except KeyError:
            raise InvalidHandleError(handle) from None

    def unregister(self, handle: int) -> None:
        """Converterを破棄してハンドルを無効にする

        Raises:
            InvalidHandleError: ハンドルが0、または登録されていない場合
        """
        converter = self.resolve(handle)
        del self._converters[handle]
        converter.destroy()
        self._logger.debug(f"ハンドル破棄: {handle}")

    def close_all(self) -> None:
        """登録されているすべてのConverterを破棄する"""
        for handle in list(self._converters):
            self.unregister(handle)
