"""Text conversion engine: encodings, ciphers, hashes, escapes and format conversions.

Usage:
    from text_converter import ConversionRequest, execute

    result = execute(ConversionRequest("Encode-Decode", "Base64", input="hello"))
    result.output  # "aGVsbG8="
"""

from .engine.executor import execute
from .errors import ConversionError, ConverterError, ErrorKind
from .models import Category, Configuration, ConversionRequest, ConversionResult, Mode, QuickTag

__all__ = [
    "Category",
    "Configuration",
    "ConversionError",
    "ConversionRequest",
    "ConversionResult",
    "ConverterError",
    "ErrorKind",
    "Mode",
    "QuickTag",
    "execute",
]
