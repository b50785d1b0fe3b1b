"""
Markup serialisation for the document tree.
"""

from __future__ import annotations

import html
from typing import List, Tuple

from .nodes import RAW_TEXT_ELEMENTS, VOID_ELEMENTS, Element, Node, NodeType


def escape_text(data: str) -> str:
    return html.escape(data, quote=False)


def escape_attribute(value: str) -> str:
    return value.replace("&", "&amp;").replace('"', "&quot;").replace("<", "&lt;").replace(">", "&gt;")


def _start_tag(element: Element) -> str:
    parts = [element.tag_name]
    for name, value in element.attributes.items():
        parts.append(f'{name}="{escape_attribute(value)}"')
    return "<" + " ".join(parts) + ">"


def _serialize_into(node: Node, out: List[str]) -> bool:
    """Append the markup of ``node`` to ``out``; True once a ``plaintext`` element ended the output."""
    # Iterative so deeply nested markup does not hit the recursion limit.
    stack: List[Tuple[Node, bool]] = [(node, False)]
    while stack:
        current, closing = stack.pop()
        kind = current.node_type
        if closing:
            if current.tag_name == "plaintext":  # type: ignore[attr-defined]
                # Nothing can follow <plaintext>: a parser reads the rest of the input as its text.
                return True
            out.append(f"</{current.tag_name}>")  # type: ignore[attr-defined]
            continue
        if kind is NodeType.TEXT:
            parent = current.parent
            if parent is not None and parent.node_type is NodeType.ELEMENT and parent.tag_name in RAW_TEXT_ELEMENTS:  # type: ignore[attr-defined]
                out.append(current.data)  # type: ignore[attr-defined]
            else:
                out.append(escape_text(current.data))  # type: ignore[attr-defined]
        elif kind is NodeType.COMMENT:
            out.append(f"<!--{current.data}-->")  # type: ignore[attr-defined]
        elif kind is NodeType.ELEMENT:
            out.append(_start_tag(current))  # type: ignore[arg-type]
            if current.tag_name in VOID_ELEMENTS:  # type: ignore[attr-defined]
                continue
            stack.append((current, True))
            for child in reversed(current.child_nodes):
                stack.append((child, False))
        elif kind is NodeType.DOCUMENT:
            doctype = current.doctype  # type: ignore[attr-defined]
            if doctype:
                out.append(f"<!DOCTYPE {doctype}>")
            for child in reversed(current.child_nodes):
                stack.append((child, False))
    return False


def serialize(node: Node) -> str:
    """Outer markup of ``node`` (the whole document for a ``Document``)."""
    out: List[str] = []
    _serialize_into(node, out)
    return "".join(out)


def serialize_children(node: Node) -> str:
    """Inner markup of ``node``."""
    out: List[str] = []
    for child in node.child_nodes:
        if _serialize_into(child, out):
            break
    return "".join(out)
