"""
ReadCore Document Tree Model.

Node variants (Document, Element, Text, Comment), the mutation and traversal
primitives every higher layer uses, and markup serialisation.
"""

from .nodes import RAW_TEXT_ELEMENTS, VOID_ELEMENTS, Comment, Document, Element, Node, NodeType, Text
from .serializer import serialize, serialize_children

__all__ = [
    "Node",
    "NodeType",
    "Document",
    "Element",
    "Text",
    "Comment",
    "VOID_ELEMENTS",
    "RAW_TEXT_ELEMENTS",
    "serialize",
    "serialize_children",
]
