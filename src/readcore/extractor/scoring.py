"""
Candidate scoring vocabulary shared by the extractor and the readerable check.

Text helpers, link/text density, class weighting, tree-walk helpers and the
attempt-scoped ``CandidateScores`` map. Scores never live on the tree: each
extraction attempt owns one ``CandidateScores`` keyed by element identity.
"""

from __future__ import annotations

from typing import Callable, Dict, Iterable, Iterator, List, Optional, Sequence

from ..dom.nodes import Element, Node, NodeType
from . import patterns

# ============================================================================
# Text helpers
# ============================================================================


def get_inner_text(node: Node, normalize_spaces: bool = True) -> str:
    """Trimmed text content, with whitespace runs collapsed by default."""
    text = node.text_content.strip()
    if normalize_spaces:
        return patterns.NORMALIZE.sub(" ", text)
    return text


def get_char_count(node: Node, separator: str = ",") -> int:
    return len(get_inner_text(node).split(separator)) - 1


def count_commas(text: str) -> int:
    """Number of comma-separated segments, counting locale comma variants."""
    return len(patterns.COMMAS.split(text))


def text_similarity(text_a: str, text_b: str) -> float:
    """Share of ``text_b``'s tokens (by length) that also appear in ``text_a``."""
    tokens_a = [token for token in patterns.TOKENIZE.split(text_a.lower()) if token]
    tokens_b = [token for token in patterns.TOKENIZE.split(text_b.lower()) if token]
    if not tokens_a or not tokens_b:
        return 0.0
    unique_b = [token for token in tokens_b if token not in tokens_a]
    distance_b = len(" ".join(unique_b)) / len(" ".join(tokens_b))
    return 1 - distance_b


def word_count(text: str) -> int:
    return len(text.split()) if text.strip() else 1


# ============================================================================
# Node predicates
# ============================================================================


def is_whitespace(node: Node) -> bool:
    if node.node_type is NodeType.TEXT:
        return not node.text_content.strip()
    return node.node_type is NodeType.ELEMENT and node.tag_name == "br"  # type: ignore[attr-defined]


def is_phrasing_content(node: Node) -> bool:
    if node.node_type is NodeType.TEXT:
        return True
    if node.node_type is not NodeType.ELEMENT:
        return False
    tag = node.tag_name  # type: ignore[attr-defined]
    if tag in patterns.PHRASING_ELEMS:
        return True
    return tag in ("a", "del", "ins") and all(is_phrasing_content(child) for child in node.child_nodes)


def is_single_image(node: Element) -> bool:
    current: Optional[Element] = node
    while current is not None:
        if current.tag_name == "img":
            return True
        children = current.children
        if len(children) != 1 or current.text_content.strip():
            return False
        current = children[0]
    return False


def is_element_without_content(node: Element) -> bool:
    if node.text_content.strip():
        return False
    children = node.children
    if not children:
        return True
    return len(children) == len(node.get_elements_by_tag_name("br")) + len(node.get_elements_by_tag_name("hr"))


def has_single_tag_inside_element(element: Element, tag: str) -> bool:
    children = element.children
    if len(children) != 1 or children[0].tag_name != tag:
        return False
    return not any(
        child.node_type is NodeType.TEXT and patterns.HAS_CONTENT.search(child.text_content)
        for child in element.child_nodes
    )


def has_child_block_element(element: Node) -> bool:
    stack: List[Node] = list(element.child_nodes)
    while stack:
        node = stack.pop()
        if node.node_type is NodeType.ELEMENT and node.tag_name in patterns.DIV_TO_P_ELEMS:  # type: ignore[attr-defined]
            return True
        stack.extend(node.child_nodes)
    return False


def has_ancestor_tag(
    node: Node,
    tag: str,
    max_depth: int = 3,
    predicate: Optional[Callable[[Element], bool]] = None,
) -> bool:
    """True when an ancestor within ``max_depth`` levels has ``tag`` (``max_depth <= 0`` = unlimited)."""
    depth = 0
    current = node
    while current.parent is not None:
        if max_depth > 0 and depth > max_depth:
            return False
        parent = current.parent
        if parent.node_type is NodeType.ELEMENT and parent.tag_name == tag:  # type: ignore[attr-defined]
            if predicate is None or predicate(parent):  # type: ignore[arg-type]
                return True
        current = parent
        depth += 1
    return False


def is_probably_visible(node: Element) -> bool:
    """Visibility judged from presentation attributes only."""
    if node.style_property("display") == "none":
        return False
    if node.style_property("visibility") == "hidden":
        return False
    if node.has_attribute("hidden"):
        return False
    if node.get_attribute("aria-hidden") == "true":
        return "fallback-image" in node.class_name
    return True


def match_string(node: Element) -> str:
    return f"{node.class_name} {node.id}"


# ============================================================================
# Density metrics
# ============================================================================


def get_link_density(element: Element) -> float:
    """Anchor text length over total text length; hash links count for 30%."""
    text_length = len(get_inner_text(element))
    if text_length == 0:
        return 0.0
    link_length = 0.0
    for link in element.get_elements_by_tag_name("a"):
        href = link.get_attribute("href")
        coefficient = 0.3 if href and patterns.HASH_URL.match(href) else 1.0
        link_length += len(get_inner_text(link)) * coefficient
    return link_length / text_length


def get_text_density(element: Element, tags: Iterable[str]) -> float:
    text_length = len(get_inner_text(element))
    if text_length == 0:
        return 0.0
    children_length = sum(len(get_inner_text(child)) for child in element.get_elements_by_tag_name(*tags))
    return children_length / text_length


def get_class_weight(element: Element, weight_classes: bool = True) -> int:
    """+/-25 per positive/negative match on class and id."""
    if not weight_classes:
        return 0
    weight = 0
    for value in (element.class_name, element.id):
        if not value:
            continue
        if patterns.NEGATIVE.search(value):
            weight -= 25
        if patterns.POSITIVE.search(value):
            weight += 25
    return weight


def get_row_and_column_count(table: Element) -> tuple[int, int]:
    rows = 0
    columns = 0
    for tr in table.get_elements_by_tag_name("tr"):
        rows += _span(tr.get_attribute("rowspan"))
        columns_in_row = sum(_span(cell.get_attribute("colspan")) for cell in tr.get_elements_by_tag_name("td"))
        columns = max(columns, columns_in_row)
    return rows, columns


def _span(value: Optional[str]) -> int:
    if not value:
        return 1
    digits = ""
    for char in value.strip():
        if not char.isdigit():
            break
        digits += char
    return int(digits) if digits and int(digits) > 0 else 1


# ============================================================================
# Tree walking
# ============================================================================


def next_significant_node(node: Optional[Node]) -> Optional[Node]:
    """Skip whitespace-only text (and comments) starting at ``node``."""
    current = node
    while current is not None and current.node_type is not NodeType.ELEMENT and not current.text_content.strip():
        current = current.next_sibling
    return current


def get_next_node(node: Node, ignore_self_and_kids: bool = False) -> Optional[Element]:
    """Next element in a depth-first walk of elements."""
    if not ignore_self_and_kids:
        first = node.first_element_child
        if first is not None:
            return first
    sibling = node.next_element_sibling
    if sibling is not None:
        return sibling
    current: Optional[Node] = node.parent
    while current is not None:
        sibling = current.next_element_sibling
        if sibling is not None:
            return sibling
        current = current.parent
    return None


def remove_and_get_next(node: Node) -> Optional[Element]:
    following = get_next_node(node, ignore_self_and_kids=True)
    node.remove()
    return following


def element_ancestors(node: Node, max_depth: int = 0) -> List[Element]:
    """Element ancestors nearest first; the document root is excluded."""
    return [ancestor for ancestor in node.ancestors(max_depth) if ancestor.node_type is NodeType.ELEMENT]  # type: ignore[misc]


def iter_nodes_reversed(nodes: Sequence[Element]) -> Iterator[Element]:
    for index in range(len(nodes) - 1, -1, -1):
        yield nodes[index]


# ============================================================================
# Candidate scores
# ============================================================================

_TAG_BASE_SCORES: Dict[str, int] = {
    "div": 5,
    "pre": 3,
    "td": 3,
    "blockquote": 3,
    "address": -3,
    "ol": -3,
    "ul": -3,
    "dl": -3,
    "dd": -3,
    "dt": -3,
    "li": -3,
    "form": -3,
    "h1": -5,
    "h2": -5,
    "h3": -5,
    "h4": -5,
    "h5": -5,
    "h6": -5,
    "th": -5,
}


class CandidateScores:
    """Content scores for one extraction attempt, keyed by element identity."""

    def __init__(self, weight_classes: bool = True) -> None:
        self.weight_classes = weight_classes
        self._scores: Dict[Element, float] = {}
        self.order: List[Element] = []

    def __contains__(self, element: object) -> bool:
        return element in self._scores

    def __len__(self) -> int:
        return len(self._scores)

    def initialize(self, element: Element) -> float:
        """Seed an element's score from its tag and class weight."""
        score = float(_TAG_BASE_SCORES.get(element.tag_name, 0))
        score += get_class_weight(element, self.weight_classes)
        if element not in self._scores:
            self.order.append(element)
        self._scores[element] = score
        return score

    def get(self, element: Element) -> float:
        return self._scores.get(element, 0.0)

    def add(self, element: Element, amount: float) -> None:
        self._scores[element] = self._scores.get(element, 0.0) + amount

    def set(self, element: Element, value: float) -> None:
        self._scores[element] = value
