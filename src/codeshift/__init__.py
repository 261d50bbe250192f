"""codeshift - Incremental byte-level character encoding converter."""

from codeshift.api import (
    convert_binary,
    create_converter,
    destroy_converter,
    do_convert,
    flush_converter,
    initialize,
    reset_converter,
    uninitialize,
)
from codeshift.converter import StreamConverter, convert_bytes
from codeshift.errors import (
    BackendUnavailableError,
    CodeshiftError,
    IncompleteInputError,
    InvalidHandleError,
    InvalidOptionError,
    OutputAllocationError,
    UnsupportedEncodingPairError,
)
from codeshift.options import ConvertOption, parse_option_list
from codeshift.registry import ConverterHandleRegistry
from codeshift.types import ConversionResult

__version__ = "0.1.0"

__all__ = [
    "BackendUnavailableError",
    "CodeshiftError",
    "ConversionResult",
    "ConverterHandleRegistry",
    "ConvertOption",
    "IncompleteInputError",
    "InvalidHandleError",
    "InvalidOptionError",
    "OutputAllocationError",
    "StreamConverter",
    "UnsupportedEncodingPairError",
    "convert_binary",
    "convert_bytes",
    "create_converter",
    "destroy_converter",
    "do_convert",
    "flush_converter",
    "initialize",
    "parse_option_list",
    "reset_converter",
    "uninitialize",
]
