"""
Document-level metadata extraction - JSON-LD, meta tags and the title heuristic.

Runs before the tree is mutated, because cleanup passes may remove the very
elements metadata is read from. Field precedence:

- title: JSON-LD > dc > dcterm > og > weibo > generic > twitter > parsely > <title> heuristic
- byline: JSON-LD > dc > dcterm > generic author > parsely > article:author (non-URL)
- excerpt: JSON-LD > dc > dcterm > og > weibo > generic > twitter
- site name: JSON-LD publisher > og:site_name
- published time: JSON-LD > article:published_time > parsely-pub-date
"""

from __future__ import annotations

import html
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

from ..dom.nodes import Document
from . import patterns
from .scoring import get_inner_text, text_similarity, word_count

logger = logging.getLogger(__name__)


@dataclass
class ArticleMetadata:
    """Metadata read from the document head before extraction."""

    title: str = ""
    byline: Optional[str] = None
    excerpt: Optional[str] = None
    site_name: Optional[str] = None
    published_time: Optional[str] = None


def unescape_entities(value: Optional[str]) -> Optional[str]:
    if not value:
        return value
    return html.unescape(value)


def is_url(value: str) -> bool:
    try:
        parsed = urlparse(value)
    except ValueError:
        return False
    return bool(parsed.scheme and parsed.netloc)


# ============================================================================
# Title heuristic
# ============================================================================


def get_article_title(document: Document) -> str:
    """Derive a clean article title from ``<title>``, trimming site-name decorations."""
    original = document.title.strip()
    current = original
    had_hierarchical_separators = False

    if patterns.TITLE_SEPARATORS.search(current):
        had_hierarchical_separators = bool(patterns.TITLE_HIERARCHICAL_SEPARATORS.search(current))
        current = patterns.TITLE_BEFORE_LAST_SEPARATOR.sub(r"\1", original)
        if word_count(current) < 3:
            current = patterns.TITLE_AFTER_FIRST_SEPARATOR.sub(r"\1", original)
    elif ": " in current:
        headings = document.get_elements_by_tag_name("h1", "h2")
        trimmed = current.strip()
        if not any(heading.text_content.strip() == trimmed for heading in headings):
            current = original[original.rfind(":") + 1 :]
            if word_count(current) < 3:
                current = original[original.find(":") + 1 :]
            elif word_count(original[: original.find(":")]) > 5:
                current = original
    elif len(current) > 150 or len(current) < 15:
        h_ones = document.get_elements_by_tag_name("h1")
        if len(h_ones) == 1:
            current = get_inner_text(h_ones[0])

    current = patterns.NORMALIZE.sub(" ", current.strip())
    current_word_count = word_count(current)
    if current_word_count <= 4 and (
        not had_hierarchical_separators
        or current_word_count != word_count(patterns.TITLE_SEPARATOR_RUN.sub("", original)) - 1
    ):
        current = original
    return current


# ============================================================================
# Parsers
# ============================================================================


class JsonLdParser:
    """Parser for schema.org article data in ``application/ld+json`` scripts."""

    @staticmethod
    def _is_article_type(value: Any) -> bool:
        return isinstance(value, str) and bool(patterns.JSON_LD_ARTICLE_TYPES.search(value))

    @staticmethod
    def _has_schema_context(parsed: Dict[str, Any]) -> bool:
        context = parsed.get("@context")
        if isinstance(context, str):
            return bool(patterns.SCHEMA_DOT_ORG.match(context))
        if isinstance(context, dict):
            vocab = context.get("@vocab")
            return isinstance(vocab, str) and bool(patterns.SCHEMA_DOT_ORG.match(vocab))
        return False

    @classmethod
    def parse(cls, document: Document) -> Dict[str, str]:
        """Return title/byline/excerpt/site_name/date_published from the first article block."""
        for script in document.get_elements_by_tag_name("script"):
            if script.get_attribute("type") != "application/ld+json":
                continue
            content = patterns.CDATA_WRAPPER.sub("", script.text_content)
            try:
                parsed: Any = json.loads(content)
            except (json.JSONDecodeError, ValueError) as e:
                logger.debug(f"Invalid JSON-LD: {e}")
                continue

            if isinstance(parsed, list):
                parsed = next(
                    (item for item in parsed if isinstance(item, dict) and cls._is_article_type(item.get("@type"))),
                    None,
                )
                if parsed is None:
                    continue
            if not isinstance(parsed, dict) or not cls._has_schema_context(parsed):
                continue
            if not parsed.get("@type") and isinstance(parsed.get("@graph"), list):
                parsed = next(
                    (
                        item
                        for item in parsed["@graph"]
                        if isinstance(item, dict) and cls._is_article_type(item.get("@type") or "")
                    ),
                    None,
                )
            if not isinstance(parsed, dict) or not cls._is_article_type(parsed.get("@type")):
                continue
            return cls._fields(parsed, document)
        return {}

    @staticmethod
    def _fields(parsed: Dict[str, Any], document: Document) -> Dict[str, str]:
        metadata: Dict[str, str] = {}
        name = parsed.get("name")
        headline = parsed.get("headline")
        if isinstance(name, str) and isinstance(headline, str) and name != headline:
            # Both present and different: prefer whichever resembles the page title.
            title = get_article_title(document)
            name_matches = text_similarity(name, title) > 0.75
            headline_matches = text_similarity(headline, title) > 0.75
            metadata["title"] = headline if headline_matches and not name_matches else name
        elif isinstance(name, str):
            metadata["title"] = name.strip()
        elif isinstance(headline, str):
            metadata["title"] = headline.strip()

        author = parsed.get("author")
        if isinstance(author, dict) and isinstance(author.get("name"), str):
            metadata["byline"] = author["name"].strip()
        elif isinstance(author, list) and author and isinstance(author[0], dict) and isinstance(author[0].get("name"), str):
            names: List[str] = [
                entry["name"].strip() for entry in author if isinstance(entry, dict) and isinstance(entry.get("name"), str)
            ]
            metadata["byline"] = ", ".join(names)

        description = parsed.get("description")
        if isinstance(description, str):
            metadata["excerpt"] = description.strip()
        publisher = parsed.get("publisher")
        if isinstance(publisher, dict) and isinstance(publisher.get("name"), str):
            metadata["site_name"] = publisher["name"].strip()
        date_published = parsed.get("datePublished")
        if isinstance(date_published, str):
            metadata["date_published"] = date_published.strip()
        return metadata


class MetaTagParser:
    """Parser for ``<meta>`` name/property variants (dc, dcterm, og, twitter, parsely, weibo)."""

    @staticmethod
    def parse(document: Document) -> Dict[str, str]:
        values: Dict[str, str] = {}
        for element in document.get_elements_by_tag_name("meta"):
            content = element.get_attribute("content")
            if not content:
                continue
            element_name = element.get_attribute("name")
            element_property = element.get_attribute("property")

            matched = None
            if element_property:
                matched = patterns.META_PROPERTY.search(element_property)
                if matched:
                    key = "".join(matched.group(0).lower().split())
                    values[key] = content.strip()
            if not matched and element_name and patterns.META_NAME.search(element_name):
                key = "".join(element_name.lower().split()).replace(".", ":")
                values[key] = content.strip()
        return values


# ============================================================================
# Coordinator
# ============================================================================


class MetadataExtractor:
    """Combines JSON-LD and meta tags into one ``ArticleMetadata``."""

    def __init__(self, disable_json_ld: bool = False) -> None:
        self.disable_json_ld = disable_json_ld

    def json_ld(self, document: Document) -> Dict[str, str]:
        if self.disable_json_ld:
            return {}
        return JsonLdParser.parse(document)

    def extract(self, document: Document, json_ld: Optional[Dict[str, str]] = None) -> ArticleMetadata:
        if json_ld is None:
            json_ld = self.json_ld(document)
        values = MetaTagParser.parse(document)

        def first(*keys: str) -> Optional[str]:
            for key in keys:
                value = json_ld.get(key[5:]) if key.startswith("json:") else values.get(key)
                if value:
                    return value
            return None

        title = first(
            "json:title",
            "dc:title",
            "dcterm:title",
            "og:title",
            "weibo:article:title",
            "weibo:webpage:title",
            "title",
            "twitter:title",
            "parsely-title",
        )
        if not title:
            title = get_article_title(document)

        article_author = values.get("article:author")
        if article_author and is_url(article_author):
            article_author = None

        byline = first("json:byline", "dc:creator", "dcterm:creator", "author", "parsely-author") or article_author
        excerpt = first(
            "json:excerpt",
            "dc:description",
            "dcterm:description",
            "og:description",
            "weibo:article:description",
            "weibo:webpage:description",
            "description",
            "twitter:description",
        )
        site_name = first("json:site_name", "og:site_name")
        published_time = first("json:date_published", "article:published_time", "parsely-pub-date")

        return ArticleMetadata(
            title=unescape_entities(title) or "",
            byline=unescape_entities(byline),
            excerpt=unescape_entities(excerpt),
            site_name=unescape_entities(site_name),
            published_time=unescape_entities(published_time),
        )
