"""
Document tree model.

A small, mutable DOM used uniformly by the markup parser, the readerable
check and the extraction engine. Nodes form a closed set of variants
(``Document``, ``Element``, ``Text``, ``Comment``) distinguished by
``node_type``; consumers compare ``node_type`` rather than relying on
isinstance checks against open-ended subclasses.

Invariants kept by every mutation primitive:

- a child's ``parent`` always names the node holding it in ``child_nodes``;
- a node has at most one parent (inserting a parented node detaches it first);
- no node is its own ancestor;
- a removed node has ``parent``, ``previous_sibling`` and ``next_sibling``
  cleared, so a detached subtree never references its old owner.
"""

from __future__ import annotations

import re
from enum import IntEnum
from typing import Dict, Iterator, List, Optional, Tuple

# ============================================================================
# Node kinds and element tables
# ============================================================================


class NodeType(IntEnum):
    """Node variants. Values mirror the DOM ``nodeType`` constants."""

    ELEMENT = 1
    TEXT = 3
    COMMENT = 8
    DOCUMENT = 9


VOID_ELEMENTS = frozenset(
    {
        "area",
        "base",
        "br",
        "col",
        "command",
        "embed",
        "hr",
        "img",
        "input",
        "keygen",
        "link",
        "meta",
        "param",
        "source",
        "track",
        "wbr",
    }
)

# Elements whose text children are serialised verbatim.
RAW_TEXT_ELEMENTS = frozenset({"script", "style", "xmp", "iframe", "noembed", "noframes", "plaintext"})

_STYLE_DECLARATION = re.compile(r"\s*([-\w]+)\s*:\s*([^;]*)")


# ============================================================================
# Base node
# ============================================================================


class Node:
    """Shared structure and traversal for every node variant."""

    __slots__ = ("parent", "child_nodes", "previous_sibling", "next_sibling")

    node_type: NodeType

    def __init__(self) -> None:
        self.parent: Optional[Node] = None
        self.child_nodes: List[Node] = []
        self.previous_sibling: Optional[Node] = None
        self.next_sibling: Optional[Node] = None

    # --- Convenience predicates ---

    @property
    def is_element(self) -> bool:
        return self.node_type is NodeType.ELEMENT

    @property
    def is_text(self) -> bool:
        return self.node_type is NodeType.TEXT

    # --- Navigation ---

    @property
    def first_child(self) -> Optional[Node]:
        return self.child_nodes[0] if self.child_nodes else None

    @property
    def last_child(self) -> Optional[Node]:
        return self.child_nodes[-1] if self.child_nodes else None

    @property
    def children(self) -> List[Element]:
        """Element children, in document order."""
        return [child for child in self.child_nodes if child.node_type is NodeType.ELEMENT]  # type: ignore[misc]

    @property
    def first_element_child(self) -> Optional[Element]:
        for child in self.child_nodes:
            if child.node_type is NodeType.ELEMENT:
                return child  # type: ignore[return-value]
        return None

    @property
    def last_element_child(self) -> Optional[Element]:
        for child in reversed(self.child_nodes):
            if child.node_type is NodeType.ELEMENT:
                return child  # type: ignore[return-value]
        return None

    @property
    def next_element_sibling(self) -> Optional[Element]:
        node = self.next_sibling
        while node is not None and node.node_type is not NodeType.ELEMENT:
            node = node.next_sibling
        return node  # type: ignore[return-value]

    @property
    def previous_element_sibling(self) -> Optional[Element]:
        node = self.previous_sibling
        while node is not None and node.node_type is not NodeType.ELEMENT:
            node = node.previous_sibling
        return node  # type: ignore[return-value]

    def ancestors(self, max_depth: int = 0) -> List[Node]:
        """Return parents from nearest to furthest, up to ``max_depth`` levels (0 = all)."""
        result: List[Node] = []
        node = self.parent
        while node is not None:
            result.append(node)
            if max_depth and len(result) == max_depth:
                break
            node = node.parent
        return result

    def contains(self, other: Optional[Node]) -> bool:
        """True when ``other`` is this node or one of its descendants."""
        while other is not None:
            if other is self:
                return True
            other = other.parent
        return False

    def iter_descendants(self) -> Iterator[Node]:
        """Lazy pre-order walk over descendants, excluding this node.

        Each call returns a fresh generator. The walk follows sibling links,
        so callers that remove nodes while walking should snapshot first.
        """
        node = self.first_child
        while node is not None:
            yield node
            if node.child_nodes:
                node = node.child_nodes[0]
                continue
            while node is not None and node is not self and node.next_sibling is None:
                node = node.parent
            if node is None or node is self:
                return
            node = node.next_sibling

    def walk(self) -> Iterator[Node]:
        """Pre-order walk including this node."""
        yield self
        yield from self.iter_descendants()

    def iter_elements(self) -> Iterator[Element]:
        for node in self.iter_descendants():
            if node.node_type is NodeType.ELEMENT:
                yield node  # type: ignore[misc]

    def get_elements_by_tag_name(self, *names: str) -> List[Element]:
        """Snapshot of descendant elements whose tag is in ``names`` ("*" matches all)."""
        wanted = {name.lower() for name in names}
        if "*" in wanted:
            return list(self.iter_elements())
        return [element for element in self.iter_elements() if element.tag_name in wanted]

    # --- Mutation ---

    def append_child(self, node: Node) -> Node:
        return self.insert_before(node, None)

    def insert_before(self, node: Node, reference: Optional[Node]) -> Node:
        """Insert ``node`` before ``reference`` (or at the end when ``reference`` is None)."""
        if node.node_type is NodeType.DOCUMENT:
            raise ValueError("A document cannot be inserted into a tree")
        if node.contains(self):
            raise ValueError("Cannot insert a node into its own subtree")
        if reference is not None and reference.parent is not self:
            raise ValueError("Reference node is not a child of this node")
        if node is reference:
            return node
        if node.parent is not None:
            node.parent.remove_child(node)

        if reference is None:
            previous = self.child_nodes[-1] if self.child_nodes else None
            self.child_nodes.append(node)
            following = None
        else:
            index = self._index_of(reference)
            previous = reference.previous_sibling
            self.child_nodes.insert(index, node)
            following = reference

        node.parent = self
        node.previous_sibling = previous
        node.next_sibling = following
        if previous is not None:
            previous.next_sibling = node
        if following is not None:
            following.previous_sibling = node
        return node

    def remove_child(self, node: Node) -> Node:
        if node.parent is not self:
            raise ValueError("Node is not a child of this node")
        del self.child_nodes[self._index_of(node)]
        if node.previous_sibling is not None:
            node.previous_sibling.next_sibling = node.next_sibling
        if node.next_sibling is not None:
            node.next_sibling.previous_sibling = node.previous_sibling
        node.parent = None
        node.previous_sibling = None
        node.next_sibling = None
        return node

    def replace_child(self, new_node: Node, old_node: Node) -> Node:
        """Put ``new_node`` where ``old_node`` is and detach ``old_node``."""
        if new_node is old_node:
            return old_node
        self.insert_before(new_node, old_node)
        return self.remove_child(old_node)

    def remove(self) -> None:
        if self.parent is not None:
            self.parent.remove_child(self)

    def replace_with(self, node: Node) -> None:
        if self.parent is not None:
            self.parent.replace_child(node, self)

    def remove_children(self) -> None:
        while self.child_nodes:
            self.remove_child(self.child_nodes[-1])

    def _index_of(self, node: Node) -> int:
        for index, child in enumerate(self.child_nodes):
            if child is node:
                return index
        raise ValueError("Node is not a child of this node")

    # --- Copy and text ---

    def clone(self, deep: bool = True) -> Node:
        """Copy this node. Deep clones copy the subtree with fresh identities."""
        root = self._shallow_copy()
        if not deep:
            return root
        stack: List[Tuple[Node, Node]] = [(self, root)]
        while stack:
            source, target = stack.pop()
            for child in source.child_nodes:
                copy = child._shallow_copy()
                target.append_child(copy)
                if child.child_nodes:
                    stack.append((child, copy))
        return root

    def _shallow_copy(self) -> Node:
        raise NotImplementedError

    @property
    def text_content(self) -> str:
        return "".join(
            node.data  # type: ignore[attr-defined]
            for node in self.iter_descendants()
            if node.node_type is NodeType.TEXT
        )

    @text_content.setter
    def text_content(self, value: str) -> None:
        self.remove_children()
        if value:
            self.append_child(Text(value))


# ============================================================================
# Character data
# ============================================================================


class Text(Node):
    """A run of character data."""

    __slots__ = ("data",)

    node_type = NodeType.TEXT

    def __init__(self, data: str = "") -> None:
        super().__init__()
        self.data = data

    @property  # type: ignore[override]
    def text_content(self) -> str:
        return self.data

    @text_content.setter
    def text_content(self, value: str) -> None:
        self.data = value

    def _shallow_copy(self) -> Text:
        return Text(self.data)

    def __repr__(self) -> str:
        return f"<Text {self.data[:20]!r}>"


class Comment(Node):
    """A markup comment. Normally stripped before extraction."""

    __slots__ = ("data",)

    node_type = NodeType.COMMENT

    def __init__(self, data: str = "") -> None:
        super().__init__()
        self.data = data

    @property  # type: ignore[override]
    def text_content(self) -> str:
        return self.data

    @text_content.setter
    def text_content(self, value: str) -> None:
        self.data = value

    def _shallow_copy(self) -> Comment:
        return Comment(self.data)

    def __repr__(self) -> str:
        return f"<Comment {self.data[:20]!r}>"


# ============================================================================
# Elements
# ============================================================================


class Element(Node):
    """An element with a lower-cased tag name and case-insensitive attributes."""

    __slots__ = ("_tag_name", "attributes")

    node_type = NodeType.ELEMENT

    def __init__(self, tag_name: str, attributes: Optional[Dict[str, str]] = None) -> None:
        super().__init__()
        self._tag_name = tag_name.lower()
        self.attributes: Dict[str, str] = {}
        if attributes:
            for name, value in attributes.items():
                self.attributes[name.lower()] = value

    @property
    def tag_name(self) -> str:
        return self._tag_name

    @tag_name.setter
    def tag_name(self, value: str) -> None:
        # Renaming in place keeps node identity, so attempt-scoped score maps stay valid.
        self._tag_name = value.lower()

    # --- Attributes ---

    def get_attribute(self, name: str) -> Optional[str]:
        return self.attributes.get(name.lower())

    def set_attribute(self, name: str, value: str) -> None:
        self.attributes[name.lower()] = value

    def has_attribute(self, name: str) -> bool:
        return name.lower() in self.attributes

    def remove_attribute(self, name: str) -> None:
        self.attributes.pop(name.lower(), None)

    @property
    def id(self) -> str:
        return self.attributes.get("id", "")

    @id.setter
    def id(self, value: str) -> None:
        self.attributes["id"] = value

    @property
    def class_name(self) -> str:
        return self.attributes.get("class", "")

    @class_name.setter
    def class_name(self, value: str) -> None:
        self.attributes["class"] = value

    @property
    def class_list(self) -> frozenset[str]:
        """Class attribute as a token set."""
        return frozenset(self.class_name.split())

    def style_property(self, name: str) -> Optional[str]:
        """Value of one declaration in the inline ``style`` attribute, if present."""
        style = self.attributes.get("style")
        if not style:
            return None
        wanted = name.lower()
        found = None
        for match in _STYLE_DECLARATION.finditer(style):
            if match.group(1).lower() == wanted:
                found = match.group(2).strip()
        return found

    # --- Markup ---

    @property
    def inner_html(self) -> str:
        from .serializer import serialize_children

        return serialize_children(self)

    @inner_html.setter
    def inner_html(self, markup: str) -> None:
        from ..parser.builder import parse_fragment

        self.remove_children()
        for child in parse_fragment(markup, context=self.tag_name):
            self.append_child(child)

    @property
    def outer_html(self) -> str:
        from .serializer import serialize

        return serialize(self)

    def _shallow_copy(self) -> Element:
        return Element(self._tag_name, dict(self.attributes))

    def __repr__(self) -> str:
        label = self._tag_name
        if self.id:
            label += f"#{self.id}"
        if self.class_name:
            label += "." + ".".join(self.class_name.split())
        return f"<Element {label}>"


# ============================================================================
# Document
# ============================================================================


class Document(Node):
    """Root of a tree. Holds the document URI used to resolve relative links."""

    __slots__ = ("document_uri", "doctype")

    node_type = NodeType.DOCUMENT

    def __init__(self, document_uri: str = "") -> None:
        super().__init__()
        self.document_uri = document_uri
        self.doctype: Optional[str] = None

    @property
    def document_element(self) -> Optional[Element]:
        return self.first_element_child

    def _first_tag(self, tag_name: str) -> Optional[Element]:
        for element in self.iter_elements():
            if element.tag_name == tag_name:
                return element
        return None

    @property
    def head(self) -> Optional[Element]:
        return self._first_tag("head")

    @property
    def body(self) -> Optional[Element]:
        return self._first_tag("body")

    @property
    def title(self) -> str:
        element = self._first_tag("title")
        return element.text_content if element is not None else ""

    @property
    def base_uri(self) -> str:
        """Document URI adjusted by the first ``<base href>``, as a browser would."""
        from urllib.parse import urljoin

        base = self._first_tag("base")
        href = base.get_attribute("href") if base is not None else None
        if href:
            try:
                return urljoin(self.document_uri, href.strip()) if self.document_uri else href.strip()
            except ValueError:
                return self.document_uri
        return self.document_uri

    def create_element(self, tag_name: str) -> Element:
        return Element(tag_name)

    def create_text_node(self, data: str) -> Text:
        return Text(data)

    def create_comment(self, data: str) -> Comment:
        return Comment(data)

    def _shallow_copy(self) -> Document:
        copy = Document(self.document_uri)
        copy.doctype = self.doctype
        return copy

    def __repr__(self) -> str:
        return f"<Document {self.document_uri!r}>"
