"""
Forward-scanning markup tokenizer.

Produces a stream of start-tag, end-tag, text-run, character-reference,
comment and doctype tokens from raw markup. The scanner never raises on
malformed input: unterminated constructs and bad attribute syntax are
recorded as ``ParseDiagnostic`` entries and scanning continues.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Generator, Iterator, List, Optional, Pattern, Tuple

from ..exceptions import ParseDiagnostic
from .entities import decode_text, split_references


class TokenKind(Enum):
    """Token variants emitted by the tokenizer."""

    START_TAG = "start_tag"
    END_TAG = "end_tag"
    CHARACTERS = "characters"
    CHARACTER_REFERENCE = "character_reference"
    COMMENT = "comment"
    DOCTYPE = "doctype"


@dataclass(slots=True)
class Token:
    kind: TokenKind
    data: str = ""
    name: str = ""
    attributes: List[Tuple[str, str]] = field(default_factory=list)
    self_closing: bool = False
    position: int = 0


# Elements whose content is scanned as raw text up to the matching end tag.
RAW_TEXT = frozenset({"script", "style", "xmp", "iframe", "noembed", "noframes"})
# Like raw text, but character references are decoded.
ESCAPABLE_RAW_TEXT = frozenset({"title", "textarea"})

_WHITESPACE = re.compile(r"[\t\n\f\r ]*")
_TAG_NAME = re.compile(r"[A-Za-z][^\t\n\f\r />]*")
_END_TAG = re.compile(r"</([A-Za-z][^\t\n\f\r />]*)[^>]*(>?)")
_ATTRIBUTE = re.compile(
    r"""([^\t\n\f\r />][^\t\n\f\r /=>]*)"""
    r"""(?:[\t\n\f\r ]*=[\t\n\f\r ]*(?:"([^"]*)("?)|'([^']*)('?)|([^\t\n\f\r >]*)))?"""
)
_BAD_ATTRIBUTE_NAME = re.compile(r"""["'<=]""")


class Tokenizer:
    """Single-pass scanner over a markup string.

    Iterating a tokenizer yields ``Token`` objects in document order;
    diagnostics collected along the way are available on ``diagnostics``.
    """

    def __init__(self, markup: str) -> None:
        self.markup = markup
        self.diagnostics: List[ParseDiagnostic] = []
        self._end_patterns: Dict[str, Pattern[str]] = {}

    def _note(self, kind: str, message: str, position: int) -> None:
        self.diagnostics.append(ParseDiagnostic(kind=kind, message=message, position=position))

    def __iter__(self) -> Iterator[Token]:
        markup = self.markup
        length = len(markup)
        pos = 0
        while pos < length:
            lt = markup.find("<", pos)
            if lt == -1:
                yield from self._text(markup[pos:], pos)
                break
            if lt > pos:
                yield from self._text(markup[pos:lt], pos)
            pos = lt

            if markup.startswith("<!--", pos):
                end = markup.find("-->", pos + 2)
                if end == -1:
                    self._note("unterminated-comment", "comment runs to end of input", pos)
                    yield Token(TokenKind.COMMENT, data=markup[pos + 4 :], position=pos)
                    pos = length
                else:
                    yield Token(TokenKind.COMMENT, data=markup[pos + 4 : end] if end >= pos + 4 else "", position=pos)
                    pos = end + 3
                continue

            following = markup[pos + 1 : pos + 2]
            if following == "!":
                pos = yield from self._markup_declaration(pos)
                continue
            if following == "?":
                pos = yield from self._bogus_comment(pos, pos + 2)
                continue
            if following == "/":
                match = _END_TAG.match(markup, pos)
                if match:
                    if not match.group(2):
                        self._note("unterminated-tag", f"end tag </{match.group(1)}> runs to end of input", pos)
                    yield Token(TokenKind.END_TAG, name=match.group(1).lower(), position=pos)
                    pos = match.end()
                elif markup.startswith("</>", pos):
                    self._note("empty-end-tag", "ignoring '</>'", pos)
                    pos += 3
                else:
                    pos = yield from self._bogus_comment(pos, pos + 2)
                continue
            if _TAG_NAME.match(markup, pos + 1):
                token, pos = self._start_tag(pos)
                yield token
                if not token.self_closing:
                    if token.name in RAW_TEXT or token.name in ESCAPABLE_RAW_TEXT:
                        pos = yield from self._raw_text(token.name, pos)
                    elif token.name == "plaintext":
                        if pos < length:
                            yield Token(TokenKind.CHARACTERS, data=markup[pos:], position=pos)
                        pos = length
                continue

            # A lone "<" that does not open a tag is literal text.
            yield Token(TokenKind.CHARACTERS, data="<", position=pos)
            pos += 1

    # --- Pieces ---

    def _text(self, run: str, offset: int) -> Iterator[Token]:
        if "&" not in run:
            yield Token(TokenKind.CHARACTERS, data=run, position=offset)
            return
        for is_reference, piece, relative in split_references(run):
            kind = TokenKind.CHARACTER_REFERENCE if is_reference else TokenKind.CHARACTERS
            yield Token(kind, data=piece, position=offset + relative)

    def _markup_declaration(self, pos: int) -> Generator[Token, None, int]:
        markup = self.markup
        if markup[pos + 2 : pos + 9].lower() == "doctype":
            end = markup.find(">", pos)
            if end == -1:
                self._note("unterminated-doctype", "doctype runs to end of input", pos)
                end = len(markup)
            yield Token(TokenKind.DOCTYPE, data=markup[pos + 9 : end].strip(), position=pos)
            return end + 1
        if markup.startswith("<![CDATA[", pos):
            end = markup.find("]]>", pos)
            if end == -1:
                self._note("unterminated-cdata", "CDATA section runs to end of input", pos)
                end = len(markup)
            data = markup[pos + 9 : end]
            if data:
                yield Token(TokenKind.CHARACTERS, data=data, position=pos)
            return end + 3
        return (yield from self._bogus_comment(pos, pos + 2))

    def _bogus_comment(self, pos: int, data_start: int) -> Generator[Token, None, int]:
        end = self.markup.find(">", pos)
        self._note("bogus-comment", "markup declaration treated as a comment", pos)
        if end == -1:
            yield Token(TokenKind.COMMENT, data=self.markup[data_start:], position=pos)
            return len(self.markup)
        yield Token(TokenKind.COMMENT, data=self.markup[data_start:end], position=pos)
        return end + 1

    def _start_tag(self, pos: int) -> Tuple[Token, int]:
        markup = self.markup
        length = len(markup)
        name_match = _TAG_NAME.match(markup, pos + 1)
        assert name_match is not None
        token = Token(TokenKind.START_TAG, name=name_match.group(0).lower(), position=pos)
        cursor = name_match.end()
        seen = set()
        while True:
            cursor = _WHITESPACE.match(markup, cursor).end()  # type: ignore[union-attr]
            if cursor >= length:
                self._note("unterminated-tag", f"start tag <{token.name}> runs to end of input", pos)
                break
            char = markup[cursor]
            if char == ">":
                cursor += 1
                break
            if char == "/":
                if markup.startswith("/>", cursor):
                    token.self_closing = True
                    cursor += 2
                    break
                cursor += 1
                continue
            match = _ATTRIBUTE.match(markup, cursor)
            if match is None:  # pragma: no cover - the name class accepts any remaining character
                cursor += 1
                continue
            name = match.group(1).lower()
            if _BAD_ATTRIBUTE_NAME.search(name):
                self._note("attribute-syntax", f"unexpected character in attribute name {name!r}", cursor)
            if match.group(2) is not None:
                value: Optional[str] = match.group(2)
                if not match.group(3):
                    self._note("attribute-syntax", f"unterminated quoted value for {name!r}", cursor)
            elif match.group(4) is not None:
                value = match.group(4)
                if not match.group(5):
                    self._note("attribute-syntax", f"unterminated quoted value for {name!r}", cursor)
            else:
                value = match.group(6)
            if name in seen:
                self._note("duplicate-attribute", f"ignoring repeated attribute {name!r}", cursor)
            else:
                seen.add(name)
                token.attributes.append((name, decode_text(value) if value else ""))
            cursor = match.end()
        return token, cursor

    def _raw_text(self, name: str, pos: int) -> Generator[Token, None, int]:
        pattern = self._end_patterns.get(name)
        if pattern is None:
            pattern = re.compile(r"</" + re.escape(name) + r"(?![A-Za-z0-9:_-])", re.IGNORECASE)
            self._end_patterns[name] = pattern
        match = pattern.search(self.markup, pos)
        end = match.start() if match else len(self.markup)
        if match is None:
            self._note("unterminated-raw-text", f"<{name}> content runs to end of input", pos)
        data = self.markup[pos:end]
        if data:
            if name in ESCAPABLE_RAW_TEXT:
                yield from self._text(data, pos)
            else:
                yield Token(TokenKind.CHARACTERS, data=data, position=pos)
        return end


def tokenize(markup: str) -> Iterator[Token]:
    """Convenience generator over ``Tokenizer(markup)``."""
    return iter(Tokenizer(markup))
