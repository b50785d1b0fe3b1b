"""
Character reference decoding.

Named (``&amp;``), decimal (``&#38;``) and hexadecimal (``&#x26;``) references
are decoded with the standard library's HTML5 entity tables. References that
do not decode are left as literal text.
"""

from __future__ import annotations

import html
import re
from typing import Iterator, Tuple

CHARACTER_REFERENCE = re.compile(r"&(?:#[0-9]+;?|#[xX][0-9a-fA-F]+;?|[A-Za-z][A-Za-z0-9]{0,31};?)")


def decode_reference(reference: str) -> str:
    """Decode a single ``&...`` reference; unknown names come back unchanged."""
    return html.unescape(reference)


def split_references(text: str) -> Iterator[Tuple[bool, str, int]]:
    """Split a text run into ``(is_reference, text, offset)`` pieces.

    Reference pieces are already decoded. Literal pieces (including references
    that do not decode) are yielded verbatim.
    """
    position = 0
    for match in CHARACTER_REFERENCE.finditer(text):
        raw = match.group(0)
        decoded = decode_reference(raw)
        if decoded == raw:
            continue
        if match.start() > position:
            yield False, text[position : match.start()], position
        yield True, decoded, match.start()
        position = match.end()
    if position < len(text):
        yield False, text[position:], position


def decode_text(text: str) -> str:
    """Decode every character reference in ``text``."""
    if "&" not in text:
        return text
    return html.unescape(text)
