"""
Data models for extraction results and attempts.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntFlag
from typing import Any, Dict, Optional, Tuple

from ..dom.nodes import Element


class ExtractionFlags(IntFlag):
    """Behaviour switches relaxed one by one on the fallback ladder."""

    NONE = 0
    STRIP_UNLIKELYS = 0x1
    WEIGHT_CLASSES = 0x2
    CLEAN_CONDITIONALLY = 0x4
    ALL = STRIP_UNLIKELYS | WEIGHT_CLASSES | CLEAN_CONDITIONALLY


# Ordered overlays tried in sequence; each attempt runs on a fresh copy of the tree.
FALLBACK_LADDER: Tuple[ExtractionFlags, ...] = (
    ExtractionFlags.ALL,
    ExtractionFlags.WEIGHT_CLASSES | ExtractionFlags.CLEAN_CONDITIONALLY,
    ExtractionFlags.CLEAN_CONDITIONALLY,
    ExtractionFlags.NONE,
)


@dataclass(slots=True, frozen=True)
class ExtractionResult:
    """Result of a successful extraction. Immutable after return."""

    title: str
    content: str
    text_content: str
    length: int
    excerpt: Optional[str]
    byline: Optional[str] = None
    dir: Optional[str] = None
    site_name: Optional[str] = None
    lang: Optional[str] = None
    published_time: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate the result."""
        if self.length != len(self.text_content):
            raise ValueError("length must equal the character count of text_content")

    def to_dict(self) -> Dict[str, Any]:
        """Mapping with the conventional camelCase keys."""
        return {
            "title": self.title,
            "content": self.content,
            "textContent": self.text_content,
            "length": self.length,
            "excerpt": self.excerpt,
            "byline": self.byline,
            "dir": self.dir,
            "siteName": self.site_name,
            "lang": self.lang,
            "publishedTime": self.published_time,
        }


@dataclass(slots=True)
class Attempt:
    """One pass of candidate selection under a given set of flags."""

    flags: ExtractionFlags
    article: Element
    text_length: int
    direction: Optional[str] = None
