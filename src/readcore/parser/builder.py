"""
Lenient tree construction.

Consumes the tokenizer's stream and incrementally builds a ``Document``
using the conventional implied-end-tag rules for paragraphs, list items,
definition terms, table parts and options, so omitted or unbalanced
closing tags do not corrupt nesting. Unknown tags become generic elements.

The builder does not synthesise ``html``/``head``/``body``: the tree
mirrors the markup it was given.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Optional, Union

import structlog

from ..dom.nodes import VOID_ELEMENTS, Comment, Document, Element, Node, NodeType, Text
from ..exceptions import DocumentTooLarge, ParseDiagnostic
from .tokenizer import Token, TokenKind, Tokenizer

logger = structlog.get_logger(__name__)

# ============================================================================
# Implied-end-tag tables
# ============================================================================

HEADINGS = frozenset({"h1", "h2", "h3", "h4", "h5", "h6"})

# Start tags that close an open <p>.
CLOSES_PARAGRAPH = frozenset(
    {
        "address",
        "article",
        "aside",
        "blockquote",
        "center",
        "dd",
        "details",
        "dialog",
        "dir",
        "div",
        "dl",
        "dt",
        "fieldset",
        "figcaption",
        "figure",
        "footer",
        "form",
        "header",
        "hgroup",
        "hr",
        "li",
        "listing",
        "main",
        "menu",
        "nav",
        "ol",
        "p",
        "plaintext",
        "pre",
        "section",
        "summary",
        "table",
        "ul",
    }
    | HEADINGS
)

# Elements that bound the search for an element to close implicitly.
SCOPE_BOUNDARY = frozenset(
    {"applet", "button", "caption", "html", "marquee", "object", "table", "td", "template", "th"}
)

# Start tag -> (tags it implicitly closes, tags that stop the search).
IMPLIED_CLOSE: Dict[str, tuple[FrozenSet[str], FrozenSet[str]]] = {
    "li": (frozenset({"li"}), SCOPE_BOUNDARY | {"ul", "ol", "menu"}),
    "dt": (frozenset({"dt", "dd"}), SCOPE_BOUNDARY | {"dl"}),
    "dd": (frozenset({"dt", "dd"}), SCOPE_BOUNDARY | {"dl"}),
    "tr": (frozenset({"tr"}), frozenset({"table", "thead", "tbody", "tfoot", "html"})),
    "td": (frozenset({"td", "th"}), frozenset({"tr", "table", "html"})),
    "th": (frozenset({"td", "th"}), frozenset({"tr", "table", "html"})),
    "thead": (frozenset({"thead", "tbody", "tfoot"}), frozenset({"table", "html"})),
    "tbody": (frozenset({"thead", "tbody", "tfoot"}), frozenset({"table", "html"})),
    "tfoot": (frozenset({"thead", "tbody", "tfoot"}), frozenset({"table", "html"})),
    "option": (frozenset({"option"}), frozenset({"select", "datalist", "optgroup", "html"})),
    "optgroup": (frozenset({"option", "optgroup"}), frozenset({"select", "html"})),
    "a": (frozenset({"a"}), SCOPE_BOUNDARY),
    "caption": (frozenset({"caption"}), frozenset({"table", "html"})),
}

# End tags whose matching search stops at a boundary.
END_TAG_BOUNDARY: Dict[str, FrozenSet[str]] = {
    "p": SCOPE_BOUNDARY,
    "li": SCOPE_BOUNDARY | {"ul", "ol"},
    "dt": SCOPE_BOUNDARY | {"dl"},
    "dd": SCOPE_BOUNDARY | {"dl"},
    "tr": frozenset({"table", "html"}),
    "td": frozenset({"table", "html"}),
    "th": frozenset({"table", "html"}),
}

# Elements whose end tag may be omitted without a diagnostic.
OPTIONAL_END = frozenset(
    {
        "body",
        "caption",
        "colgroup",
        "dd",
        "dt",
        "head",
        "html",
        "li",
        "optgroup",
        "option",
        "p",
        "rb",
        "rp",
        "rt",
        "rtc",
        "tbody",
        "td",
        "tfoot",
        "th",
        "thead",
        "tr",
    }
)

# Elements that only ever exist once; repeated start tags merge attributes.
SINGLETONS = frozenset({"html", "head", "body"})


# ============================================================================
# Result
# ============================================================================


@dataclass
class ParseResult:
    """Outcome of ``parse_markup``."""

    document: Document
    diagnostics: List[ParseDiagnostic] = field(default_factory=list)
    fatal: bool = False
    element_count: int = 0


# ============================================================================
# Builder
# ============================================================================


class TreeBuilder:
    """Builds a tree under ``root`` from a token stream."""

    def __init__(self, root: Union[Document, Element], max_elems: int = 0) -> None:
        self.root = root
        self.max_elems = max_elems
        self.element_count = 0
        self.open_elements: List[Element] = []
        self.diagnostics: List[ParseDiagnostic] = []

    @property
    def current(self) -> Node:
        return self.open_elements[-1] if self.open_elements else self.root

    def _note(self, kind: str, message: str, position: int) -> None:
        self.diagnostics.append(ParseDiagnostic(kind=kind, message=message, position=position))

    def feed(self, tokenizer: Tokenizer) -> None:
        for token in tokenizer:
            kind = token.kind
            if kind is TokenKind.CHARACTERS or kind is TokenKind.CHARACTER_REFERENCE:
                self._characters(token.data)
            elif kind is TokenKind.START_TAG:
                self._start_tag(token)
            elif kind is TokenKind.END_TAG:
                self._end_tag(token)
            elif kind is TokenKind.COMMENT:
                self.current.append_child(Comment(token.data))
            elif kind is TokenKind.DOCTYPE:
                if self.root.node_type is NodeType.DOCUMENT:
                    self.root.doctype = token.data  # type: ignore[union-attr]

    def finish(self) -> None:
        for element in self.open_elements:
            if element.tag_name not in OPTIONAL_END:
                self._note("unclosed-element", f"<{element.tag_name}> was never closed", -1)
        self.open_elements.clear()

    # --- Token handlers ---

    def _characters(self, data: str) -> None:
        if not data:
            return
        parent = self.current
        if parent.node_type is NodeType.DOCUMENT and not data.strip():
            return
        last = parent.last_child
        if last is not None and last.node_type is NodeType.TEXT:
            last.data += data  # type: ignore[attr-defined]
        else:
            parent.append_child(Text(data))

    def _start_tag(self, token: Token) -> None:
        name = token.name
        if name in SINGLETONS:
            existing = self._open_singleton(name)
            if existing is not None:
                self._note("duplicate-singleton", f"merging repeated <{name}>", token.position)
                for attr_name, value in token.attributes:
                    if not existing.has_attribute(attr_name):
                        existing.set_attribute(attr_name, value)
                return

        if name in CLOSES_PARAGRAPH:
            self._close_in_scope(frozenset({"p"}), SCOPE_BOUNDARY)
        if name in HEADINGS and self.open_elements and self.open_elements[-1].tag_name in HEADINGS:
            self._note("nested-heading", f"<{name}> closes open heading", token.position)
            self.open_elements.pop()
        implied = IMPLIED_CLOSE.get(name)
        if implied is not None:
            closes, boundary = implied
            if self._close_in_scope(closes, boundary) and name == "a":
                self._note("nested-anchor", "<a> closes an open <a>", token.position)

        element = self._create_element(name)
        for attr_name, value in token.attributes:
            element.attributes[attr_name] = value
        self.current.append_child(element)
        if name not in VOID_ELEMENTS and not token.self_closing:
            self.open_elements.append(element)

    def _end_tag(self, token: Token) -> None:
        name = token.name
        if name == "br":
            self._note("end-tag-br", "treating </br> as <br>", token.position)
            self.current.append_child(self._create_element("br"))
            return
        if name in VOID_ELEMENTS:
            self._note("stray-end-tag", f"ignoring end tag for void element </{name}>", token.position)
            return

        boundary = END_TAG_BOUNDARY.get(name, frozenset())
        for index in range(len(self.open_elements) - 1, -1, -1):
            tag = self.open_elements[index].tag_name
            if tag == name:
                for skipped in self.open_elements[index + 1 :]:
                    if skipped.tag_name not in OPTIONAL_END:
                        self._note(
                            "implicitly-closed",
                            f"</{name}> closes unclosed <{skipped.tag_name}>",
                            token.position,
                        )
                del self.open_elements[index:]
                return
            if tag in boundary:
                break
        self._note("stray-end-tag", f"no open element matches </{name}>", token.position)

    # --- Helpers ---

    def _create_element(self, name: str) -> Element:
        self.element_count += 1
        if self.max_elems > 0 and self.element_count > self.max_elems:
            raise DocumentTooLarge(self.element_count)
        return Element(name)

    def _open_singleton(self, name: str) -> Optional[Element]:
        for element in self.open_elements:
            if element.tag_name == name:
                return element
        return None

    def _close_in_scope(self, names: FrozenSet[str], boundary: FrozenSet[str]) -> bool:
        for index in range(len(self.open_elements) - 1, -1, -1):
            tag = self.open_elements[index].tag_name
            if tag in names:
                del self.open_elements[index:]
                return True
            if tag in boundary:
                return False
        return False


# ============================================================================
# Entry points
# ============================================================================


def parse_markup(
    markup: str,
    base_uri: str = "",
    max_elems: int = 0,
    *,
    raise_on_fatal: bool = False,
) -> ParseResult:
    """Parse ``markup`` into a ``Document``.

    Args:
        markup: Raw markup text.
        base_uri: Document URI recorded on the tree, used later to resolve
            relative links. The parser itself never resolves anything.
        max_elems: Element ceiling; 0 means unlimited.
        raise_on_fatal: Raise ``DocumentTooLarge`` instead of returning a
            fatal result when the ceiling is hit.

    Returns:
        ParseResult with the document, accumulated diagnostics and the fatal flag.
    """
    document = Document(base_uri)
    tokenizer = Tokenizer(markup or "")
    builder = TreeBuilder(document, max_elems=max_elems)
    try:
        builder.feed(tokenizer)
    except DocumentTooLarge as exc:
        logger.warning("Markup element ceiling exceeded", count=exc.count, max_elems=max_elems)
        if raise_on_fatal:
            raise
        diagnostics = tokenizer.diagnostics + builder.diagnostics
        diagnostics.append(ParseDiagnostic(kind="DocumentTooLarge", message=str(exc), position=-1))
        return ParseResult(document=document, diagnostics=diagnostics, fatal=True, element_count=exc.count)
    builder.finish()
    diagnostics = sorted(tokenizer.diagnostics + builder.diagnostics, key=lambda d: d.position)
    return ParseResult(document=document, diagnostics=diagnostics, fatal=False, element_count=builder.element_count)


def parse_document(markup: str, base_uri: str = "") -> Document:
    """Parse ``markup`` and return only the tree."""
    return parse_markup(markup, base_uri).document


def parse_fragment(markup: str, context: str = "div") -> List[Node]:
    """Parse ``markup`` as the content of a ``context`` element; returns detached nodes."""
    container = Element(context)
    builder = TreeBuilder(container)
    builder.feed(Tokenizer(markup or ""))
    builder.finish()
    nodes = list(container.child_nodes)
    container.remove_children()
    return nodes
