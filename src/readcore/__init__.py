"""
ReadCore - readable-content extraction for noisy HTML documents.
"""

from __future__ import annotations

__version__ = "0.1.0"

from .dom import Document, Element
from .exceptions import DocumentTooLarge, NotReadable, ParseDiagnostic, ReadCoreError, TooManyElements
from .extractor import ExtractionResult, Readability, extract
from .parser import ParseResult, parse_document, parse_markup
from .readerable import is_probably_readerable

__all__ = [
    "__version__",
    "Document",
    "Element",
    "DocumentTooLarge",
    "NotReadable",
    "ParseDiagnostic",
    "ReadCoreError",
    "TooManyElements",
    "ExtractionResult",
    "Readability",
    "extract",
    "ParseResult",
    "parse_document",
    "parse_markup",
    "is_probably_readerable",
]
