"""
Cheap pre-check that predicts whether extraction is worth running.

The scan is read-only: it inspects ``p``, ``pre`` and ``article`` elements plus
every ``div`` holding a ``br`` child, and sums ``sqrt(len - min_content_length)``
over the visible, likely-looking ones until the total crosses ``min_score``.
"""

from __future__ import annotations

import math
import re
from typing import Callable, Iterable, List, Optional, Pattern, Sequence, Union

import structlog

from .config.config import ReaderableSettings
from .dom.nodes import Document, Element, NodeType
from .extractor import patterns
from .extractor.scoring import has_ancestor_tag, match_string

logger = structlog.get_logger(__name__)

PatternLike = Union[str, Pattern[str]]
VisibilityChecker = Callable[[Element], bool]

DEFAULT_MIN_CONTENT_LENGTH = 140
DEFAULT_MIN_SCORE = 20


def is_node_visible(node: Element) -> bool:
    """Visibility from ``style="display:none"``, ``hidden`` and ``aria-hidden`` only."""
    if node.style_property("display") == "none":
        return False
    if node.has_attribute("hidden"):
        return False
    if node.get_attribute("aria-hidden") == "true":
        return "fallback-image" in node.class_name
    return True


def _compile(extra: Iterable[PatternLike]) -> List[Pattern[str]]:
    return [item if isinstance(item, re.Pattern) else re.compile(item, re.IGNORECASE) for item in extra]


def _candidate_nodes(document: Document) -> List[Element]:
    """``p``/``pre``/``article`` elements, then parents of ``div > br``, in document order, deduplicated."""
    nodes: List[Element] = []
    seen = set()
    for element in document.iter_elements():
        if element.tag_name in patterns.READERABLE_NODE_TAGS:
            nodes.append(element)
            seen.add(element)
    for element in document.get_elements_by_tag_name("br"):
        parent = element.parent
        if parent is None or parent.node_type is not NodeType.ELEMENT or parent.tag_name != "div":  # type: ignore[attr-defined]
            continue
        if parent not in seen:
            nodes.append(parent)  # type: ignore[arg-type]
            seen.add(parent)
    return nodes


class _NameFilter:
    """Unlikely/likely class-and-id matching for a node and its ancestors below ``body``."""

    def __init__(self, unlikely: Sequence[Pattern[str]], likely: Sequence[Pattern[str]]) -> None:
        self.unlikely = [patterns.UNLIKELY_CANDIDATES, *unlikely]
        self.likely = [patterns.MAYBE_CANDIDATE, *likely]

    def is_unlikely(self, element: Element) -> bool:
        matched = match_string(element)
        if not any(pattern.search(matched) for pattern in self.unlikely):
            return False
        return not any(pattern.search(matched) for pattern in self.likely)

    def excludes(self, node: Element) -> bool:
        current: Optional[Element] = node
        while current is not None and current.tag_name not in ("body", "html"):
            if self.is_unlikely(current):
                return True
            parent = current.parent
            current = parent if parent is not None and parent.node_type is NodeType.ELEMENT else None  # type: ignore[assignment]
        return False


def is_probably_readerable(
    document: Optional[Document],
    settings: Optional[ReaderableSettings] = None,
    *,
    min_content_length: Optional[int] = None,
    min_score: Optional[float] = None,
    visibility_checker: Optional[VisibilityChecker] = None,
    unlikely_patterns: Iterable[PatternLike] = (),
    likely_patterns: Iterable[PatternLike] = (),
) -> bool:
    """Decide whether ``document`` probably holds an extractable article.

    Explicit keyword arguments override values from ``settings``. The tree is
    never modified.

    Example:
        >>> is_probably_readerable(parse_document(markup))
        True
    """
    if document is None:
        return False

    unlikely = list(unlikely_patterns)
    likely = list(likely_patterns)
    if settings is not None:
        if min_content_length is None:
            min_content_length = settings.min_content_length
        if min_score is None:
            min_score = settings.min_score
        unlikely = list(settings.unlikely_patterns) + unlikely
        likely = list(settings.likely_patterns) + likely
    if min_content_length is None:
        min_content_length = DEFAULT_MIN_CONTENT_LENGTH
    if min_score is None:
        min_score = DEFAULT_MIN_SCORE
    checker = visibility_checker or is_node_visible
    names = _NameFilter(_compile(unlikely), _compile(likely))

    score = 0.0
    for node in _candidate_nodes(document):
        if not checker(node):
            continue
        if names.excludes(node):
            continue
        if node.tag_name == "p" and has_ancestor_tag(node, "li", max_depth=0):
            continue
        text_length = len(node.text_content.strip())
        if text_length < min_content_length:
            continue
        score += math.sqrt(text_length - min_content_length)
        if score > min_score:
            logger.debug("readerable", score=round(score, 2), node=repr(node))
            return True
    return False
