"""
ReadCore Markup Parser.

A self-contained, lenient markup-to-tree parser:

- Forward tokenizer emitting start/end tags, text runs, character references,
  comments and doctypes
- Tree builder with implied-close rules for p/li/dt/dd/tr/td/th/option
- Element-count ceiling raising ``DocumentTooLarge``
- Non-fatal ``ParseDiagnostic`` accumulation for malformed constructs
"""

from .builder import ParseResult, TreeBuilder, parse_document, parse_fragment, parse_markup
from .tokenizer import Token, TokenKind, Tokenizer, tokenize

__all__ = [
    "ParseResult",
    "TreeBuilder",
    "parse_markup",
    "parse_document",
    "parse_fragment",
    "Token",
    "TokenKind",
    "Tokenizer",
    "tokenize",
]
