"""
Builds a ReadCore ``Document`` from a BeautifulSoup tree.

Lets callers use any parser bs4 supports (``html.parser``, ``lxml``,
``html5lib``) in place of the bundled one. The conversion copies the tree:
the soup is left untouched.
"""

from __future__ import annotations

from typing import Any, List, Tuple, Union

import structlog
from bs4 import BeautifulSoup
from bs4.element import CData, Comment, Declaration, Doctype, NavigableString, ProcessingInstruction, Tag

from ..dom.nodes import Comment as DomComment
from ..dom.nodes import Document, Element, Node, Text

logger = structlog.get_logger(__name__)

# Strings bs4 keeps outside of the text model.
_SKIPPED_STRINGS = (Declaration, ProcessingInstruction)


def _attribute_value(value: Any) -> str:
    if isinstance(value, (list, tuple)):
        return " ".join(str(item) for item in value)
    return "" if value is None else str(value)


def document_from_soup(soup: Union[BeautifulSoup, Tag], base_uri: str = "") -> Document:
    """Copy ``soup`` into a fresh ``Document``.

    Multi-valued attributes such as ``class`` are joined with single spaces;
    attribute names are lower-cased. Doctypes become ``Document.doctype``.
    """
    document = Document(base_uri)
    stack: List[Tuple[Any, Node]] = [(soup, document)]
    if isinstance(soup, Tag) and not isinstance(soup, BeautifulSoup):
        element = _copy_tag(soup)
        document.append_child(element)
        stack = [(soup, element)]

    skipped = 0
    while stack:
        source, target = stack.pop()
        for child in source.contents:
            if isinstance(child, Doctype):
                document.doctype = str(child)
            elif isinstance(child, Comment):
                target.append_child(DomComment(str(child)))
            elif isinstance(child, CData):
                target.append_child(Text(str(child)))
            elif isinstance(child, _SKIPPED_STRINGS):
                skipped += 1
            elif isinstance(child, NavigableString):
                target.append_child(Text(str(child)))
            elif isinstance(child, Tag):
                element = _copy_tag(child)
                target.append_child(element)
                stack.append((child, element))

    if skipped:
        logger.debug("soup_strings_skipped", count=skipped)
    return document


def _copy_tag(tag: Tag) -> Element:
    attributes = {str(name).lower(): _attribute_value(value) for name, value in tag.attrs.items()}
    return Element(tag.name, attributes)


def parse_with_soup(markup: str, base_uri: str = "", features: str = "html.parser") -> Document:
    """Parse ``markup`` with BeautifulSoup and convert the result."""
    return document_from_soup(BeautifulSoup(markup, features), base_uri=base_uri)
