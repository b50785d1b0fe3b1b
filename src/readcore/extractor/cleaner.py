"""
Tree cleanup passes for the extractor.

Three groups:

- document preprocessing, run once before any candidate search;
- ``ArticleCleaner``, the per-attempt cleanup of a merged article container;
- post-processing of the accepted article (absolute URIs, nested wrapper
  simplification, class stripping).
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable, Optional, Pattern, Sequence, Set
from urllib.parse import urljoin

from ..dom.nodes import Document, Element, NodeType, Text
from . import patterns
from .models import ExtractionFlags
from .scoring import (
    get_char_count,
    get_class_weight,
    get_inner_text,
    get_link_density,
    get_next_node,
    get_row_and_column_count,
    get_text_density,
    has_ancestor_tag,
    has_single_tag_inside_element,
    is_element_without_content,
    is_phrasing_content,
    is_single_image,
    is_whitespace,
    iter_nodes_reversed,
    match_string,
    next_significant_node,
    remove_and_get_next,
)

logger = logging.getLogger(__name__)


def remove_nodes(nodes: Sequence[Element], predicate: Optional[Callable[[Element], bool]] = None) -> None:
    """Remove ``nodes`` (last to first) that are still attached and satisfy ``predicate``."""
    for node in iter_nodes_reversed(nodes):
        if node.parent is not None and (predicate is None or predicate(node)):
            node.remove()


def rename_nodes(nodes: Iterable[Element], tag: str) -> None:
    for node in nodes:
        node.tag_name = tag


# ============================================================================
# Document preprocessing
# ============================================================================


def unwrap_noscript_images(document: Document) -> None:
    """Drop placeholder images and surface the real image kept in a sibling ``<noscript>``."""
    for img in document.get_elements_by_tag_name("img"):
        keep = False
        for name, value in img.attributes.items():
            if name in ("src", "srcset", "data-src", "data-srcset") or patterns.IMAGE_EXTENSION.search(value):
                keep = True
                break
        if not keep:
            img.remove()

    for noscript in document.get_elements_by_tag_name("noscript"):
        if noscript.parent is None:
            continue
        holder = Element("div")
        holder.inner_html = noscript.inner_html
        if not is_single_image(holder):
            continue
        previous = noscript.previous_element_sibling
        if previous is None or not is_single_image(previous):
            continue

        previous_img = previous if previous.tag_name == "img" else previous.get_elements_by_tag_name("img")[0]
        new_img = holder.get_elements_by_tag_name("img")[0]
        for name, value in list(previous_img.attributes.items()):
            if value == "":
                continue
            if name in ("src", "srcset") or patterns.IMAGE_EXTENSION.search(value):
                if new_img.get_attribute(name) == value:
                    continue
                target = f"data-old-{name}" if new_img.has_attribute(name) else name
                new_img.set_attribute(target, value)

        replacement = holder.first_element_child
        if replacement is not None and previous.parent is not None:
            previous.parent.replace_child(replacement, previous)


def remove_scripts(document: Document) -> None:
    remove_nodes(document.get_elements_by_tag_name("script", "noscript"))


def remove_comments(document: Document) -> None:
    comments = [node for node in document.iter_descendants() if node.node_type is NodeType.COMMENT]
    for comment in comments:
        comment.remove()


def replace_brs(root: Element) -> None:
    """Turn runs of two or more ``<br>`` into paragraph breaks."""
    for br in root.get_elements_by_tag_name("br"):
        if br.parent is None:
            continue
        following = br.next_sibling
        replaced = False
        following = next_significant_node(following)
        while following is not None and following.node_type is NodeType.ELEMENT and following.tag_name == "br":  # type: ignore[attr-defined]
            replaced = True
            sibling = following.next_sibling
            following.remove()
            following = next_significant_node(sibling)
        if not replaced:
            continue

        paragraph = Element("p")
        parent = br.parent
        parent.replace_child(paragraph, br)
        following = paragraph.next_sibling
        while following is not None:
            if following.node_type is NodeType.ELEMENT and following.tag_name == "br":  # type: ignore[attr-defined]
                after = next_significant_node(following.next_sibling)
                if after is not None and after.node_type is NodeType.ELEMENT and after.tag_name == "br":  # type: ignore[attr-defined]
                    break
            if not is_phrasing_content(following):
                break
            sibling = following.next_sibling
            paragraph.append_child(following)
            following = sibling

        while paragraph.last_child is not None and is_whitespace(paragraph.last_child):
            paragraph.last_child.remove()
        if paragraph.parent is not None and paragraph.parent.node_type is NodeType.ELEMENT and paragraph.parent.tag_name == "p":  # type: ignore[attr-defined]
            paragraph.parent.tag_name = "div"  # type: ignore[attr-defined]


def prep_document(document: Document) -> None:
    """Remove styles, collapse ``<br>`` chains and replace ``<font>`` with ``<span>``."""
    remove_nodes(document.get_elements_by_tag_name("style"))
    body = document.body
    if body is not None:
        replace_brs(body)
    rename_nodes(document.get_elements_by_tag_name("font"), "span")


# ============================================================================
# Article cleanup
# ============================================================================


class ArticleCleaner:
    """Cleans one merged article container under an attempt's flags."""

    def __init__(
        self,
        flags: ExtractionFlags,
        allowed_video_regex: Pattern[str] = patterns.VIDEOS,
        link_density_modifier: float = 0.0,
        share_element_threshold: int = 500,
    ) -> None:
        self.flags = flags
        self.allowed_video_regex = allowed_video_regex
        self.link_density_modifier = link_density_modifier
        self.share_element_threshold = share_element_threshold
        self.data_tables: Set[Element] = set()

    @property
    def weight_classes(self) -> bool:
        return bool(self.flags & ExtractionFlags.WEIGHT_CLASSES)

    def prep_article(self, article: Element) -> None:
        self.clean_styles(article)
        self.mark_data_tables(article)
        self.fix_lazy_images(article)

        self.clean_conditionally(article, "form")
        self.clean_conditionally(article, "fieldset")
        for tag in ("object", "embed", "footer", "link", "aside"):
            self.clean(article, tag)

        for child in article.children:
            self.clean_matched_nodes(
                child,
                lambda node, matched: bool(patterns.SHARE_ELEMENTS.search(matched))
                and len(node.text_content) < self.share_element_threshold,
            )

        for tag in ("iframe", "input", "textarea", "select", "button"):
            self.clean(article, tag)
        self.clean_headers(article)

        for tag in ("table", "ul", "div"):
            self.clean_conditionally(article, tag)

        rename_nodes(article.get_elements_by_tag_name("h1"), "h2")

        remove_nodes(article.get_elements_by_tag_name("p"), self._is_empty_paragraph)

        for br in article.get_elements_by_tag_name("br"):
            following = next_significant_node(br.next_sibling)
            if following is not None and following.node_type is NodeType.ELEMENT and following.tag_name == "p":  # type: ignore[attr-defined]
                br.remove()

        for table in article.get_elements_by_tag_name("table"):
            self._unwrap_single_cell_table(table)

    # --- Individual passes ---

    def clean_styles(self, root: Element) -> None:
        """Strip presentational attributes (SVG subtrees are left alone)."""
        stack = [root]
        while stack:
            element = stack.pop()
            if element.tag_name == "svg":
                continue
            for name in patterns.PRESENTATIONAL_ATTRIBUTES:
                element.remove_attribute(name)
            if element.tag_name in patterns.DEPRECATED_SIZE_ATTRIBUTE_ELEMS:
                element.remove_attribute("width")
                element.remove_attribute("height")
            stack.extend(element.children)

    def mark_data_tables(self, root: Element) -> None:
        for table in root.get_elements_by_tag_name("table"):
            if self._is_data_table(table):
                self.data_tables.add(table)

    def _is_data_table(self, table: Element) -> bool:
        if table.get_attribute("role") == "presentation":
            return False
        if table.get_attribute("datatable") == "0":
            return False
        if table.get_attribute("summary"):
            return True
        captions = table.get_elements_by_tag_name("caption")
        if captions and captions[0].child_nodes:
            return True
        if any(table.get_elements_by_tag_name(tag) for tag in patterns.DATA_TABLE_DESCENDANTS):
            return True
        if table.get_elements_by_tag_name("table"):
            return False
        rows, columns = get_row_and_column_count(table)
        if rows == 1 or columns == 1:
            return False
        if rows >= 10 or columns > 4:
            return True
        return rows * columns > 10

    def fix_lazy_images(self, root: Element) -> None:
        """Promote lazy-load attributes to ``src``/``srcset`` where the real source is missing."""
        for element in root.get_elements_by_tag_name("img", "picture", "figure"):
            src = element.get_attribute("src")
            if src and patterns.B64_DATA_URL.search(src):
                parts = patterns.B64_DATA_URL.search(src)
                if parts is not None and parts.group(1) == "image/svg+xml":
                    continue
                src_could_be_removed = any(
                    name != "src" and patterns.IMAGE_EXTENSION.search(value)
                    for name, value in element.attributes.items()
                )
                if src_could_be_removed:
                    # Tiny base64 payloads are placeholders rather than real images.
                    if len(src) - len(parts.group(0)) < 133:
                        element.remove_attribute("src")

            src = element.get_attribute("src")
            srcset = element.get_attribute("srcset")
            if (src or (srcset and srcset != "null")) and "lazy" not in element.class_name.lower():
                continue

            for name, value in list(element.attributes.items()):
                if name in ("src", "srcset", "alt"):
                    continue
                copy_to = None
                if patterns.SRCSET_CANDIDATE.search(value):
                    copy_to = "srcset"
                elif patterns.SRC_CANDIDATE.search(value):
                    copy_to = "src"
                if copy_to is None:
                    continue
                if element.tag_name in ("img", "picture"):
                    element.set_attribute(copy_to, value)
                elif element.tag_name == "figure" and not element.get_elements_by_tag_name("img", "picture"):
                    img = Element("img")
                    img.set_attribute(copy_to, value)
                    element.append_child(img)

    def _allows_embed(self, element: Element) -> bool:
        for value in element.attributes.values():
            if self.allowed_video_regex.search(value):
                return True
        return element.tag_name == "object" and bool(self.allowed_video_regex.search(element.inner_html))

    def clean(self, root: Element, tag: str) -> None:
        """Remove every ``tag`` element, sparing allow-listed video embeds."""
        is_embed = tag in patterns.EMBED_TAGS
        remove_nodes(
            root.get_elements_by_tag_name(tag),
            lambda element: not (is_embed and self._allows_embed(element)),
        )

    def clean_matched_nodes(self, root: Element, predicate: Callable[[Element, str], bool]) -> None:
        end_marker = get_next_node(root, ignore_self_and_kids=True)
        current = get_next_node(root)
        while current is not None and current is not end_marker:
            if predicate(current, match_string(current)):
                current = remove_and_get_next(current)
            else:
                current = get_next_node(current)

    def clean_headers(self, root: Element) -> None:
        remove_nodes(
            root.get_elements_by_tag_name("h1", "h2"),
            lambda heading: get_class_weight(heading, self.weight_classes) < 0,
        )

    def clean_conditionally(self, root: Element, tag: str) -> None:
        """Remove ``tag`` elements that look like boilerplate (link farms, ads, empty shells)."""
        if not self.flags & ExtractionFlags.CLEAN_CONDITIONALLY:
            return
        remove_nodes(root.get_elements_by_tag_name(tag), lambda node: self._should_clean(node, tag))

    def _should_clean(self, node: Element, tag: str) -> bool:
        is_list = tag in ("ul", "ol")
        if not is_list:
            list_length = sum(len(get_inner_text(lst)) for lst in node.get_elements_by_tag_name("ul", "ol"))
            text_length = len(get_inner_text(node))
            is_list = text_length > 0 and list_length / text_length > 0.9

        if tag == "table" and node in self.data_tables:
            return False
        if has_ancestor_tag(node, "table", -1, lambda table: table in self.data_tables):
            return False
        if has_ancestor_tag(node, "code"):
            return False
        if any(table in self.data_tables for table in node.get_elements_by_tag_name("table")):
            return False

        weight = get_class_weight(node, self.weight_classes)
        if weight < 0:
            return True
        if get_char_count(node, ",") >= 10:
            return False

        paragraphs = len(node.get_elements_by_tag_name("p"))
        images = len(node.get_elements_by_tag_name("img"))
        list_items = len(node.get_elements_by_tag_name("li")) - 100
        inputs = len(node.get_elements_by_tag_name("input"))
        heading_density = get_text_density(node, patterns.HEADING_TAGS)

        embed_count = 0
        for embed in node.get_elements_by_tag_name(*patterns.EMBED_TAGS):
            if self._allows_embed(embed):
                return False
            embed_count += 1

        inner_text = get_inner_text(node)
        if patterns.AD_WORDS.search(inner_text) or patterns.LOADING_WORDS.search(inner_text):
            return True

        content_length = len(inner_text)
        link_density = get_link_density(node)
        textish_tags = ("span", "li", "td", *patterns.DIV_TO_P_ELEMS)
        text_density = get_text_density(node, textish_tags)
        is_figure_child = has_ancestor_tag(node, "figure")

        reasons = []
        if not is_figure_child and images > 1 and paragraphs / images < 0.5:
            reasons.append("bad p to img ratio")
        if not is_list and list_items > paragraphs:
            reasons.append("too many li's outside of a list")
        if inputs > paragraphs // 3:
            reasons.append("too many inputs per p")
        if (
            not is_list
            and not is_figure_child
            and heading_density < 0.9
            and content_length < 25
            and (images == 0 or images > 2)
            and link_density > 0
        ):
            reasons.append("suspiciously short")
        if not is_list and weight < 25 and link_density > 0.2 + self.link_density_modifier:
            reasons.append("low weight and a little linky")
        if weight >= 25 and link_density > 0.5 + self.link_density_modifier:
            reasons.append("high weight and mostly links")
        if (embed_count == 1 and content_length < 75) or embed_count > 1:
            reasons.append("suspicious embed")
        if images == 0 and text_density == 0:
            reasons.append("no useful content")

        should_remove = bool(reasons)
        if should_remove:
            logger.debug("Cleaning conditionally %r: %s", node, ", ".join(reasons))

        if is_list and should_remove:
            # Image galleries laid out as lists survive.
            for child in node.children:
                if len(child.children) > 1:
                    return should_remove
            if images == len(node.get_elements_by_tag_name("li")):
                return False
        return should_remove

    @staticmethod
    def _is_empty_paragraph(paragraph: Element) -> bool:
        media = len(paragraph.get_elements_by_tag_name("img", "embed", "object", "iframe"))
        return media == 0 and not get_inner_text(paragraph, normalize_spaces=False)

    @staticmethod
    def _unwrap_single_cell_table(table: Element) -> None:
        if table.parent is None:
            return
        tbody = table.first_element_child if has_single_tag_inside_element(table, "tbody") else table
        if tbody is None or not has_single_tag_inside_element(tbody, "tr"):
            return
        row = tbody.first_element_child
        if row is None or not has_single_tag_inside_element(row, "td"):
            return
        cell = row.first_element_child
        if cell is None:
            return
        cell.tag_name = "p" if all(is_phrasing_content(child) for child in cell.child_nodes) else "div"
        table.parent.replace_child(cell, table)


# ============================================================================
# Post-processing
# ============================================================================


def to_absolute_uri(uri: str, base_uri: str, document_uri: str) -> str:
    """Resolve ``uri`` against ``base_uri``; in-page anchors stay relative."""
    if base_uri == document_uri and uri.startswith("#"):
        return uri
    if not base_uri:
        return uri
    try:
        return urljoin(base_uri, uri)
    except ValueError:
        return uri


def fix_relative_uris(article: Element, base_uri: str, document_uri: str) -> None:
    for link in article.get_elements_by_tag_name("a"):
        href = link.get_attribute("href")
        if not href:
            continue
        if href.startswith("javascript:"):
            parent = link.parent
            if parent is None:
                continue
            if len(link.child_nodes) == 1 and link.child_nodes[0].node_type is NodeType.TEXT:
                parent.replace_child(Text(link.text_content), link)
            else:
                container = Element("span")
                while link.first_child is not None:
                    container.append_child(link.first_child)
                parent.replace_child(container, link)
        else:
            link.set_attribute("href", to_absolute_uri(href, base_uri, document_uri))

    for media in article.get_elements_by_tag_name("img", "picture", "figure", "video", "audio", "source"):
        src = media.get_attribute("src")
        poster = media.get_attribute("poster")
        srcset = media.get_attribute("srcset")
        if src:
            media.set_attribute("src", to_absolute_uri(src, base_uri, document_uri))
        if poster:
            media.set_attribute("poster", to_absolute_uri(poster, base_uri, document_uri))
        if srcset:
            rewritten = patterns.SRCSET_URL.sub(
                lambda m: to_absolute_uri(m.group(1), base_uri, document_uri) + (m.group(2) or "") + m.group(3),
                srcset,
            )
            media.set_attribute("srcset", rewritten)


def simplify_nested_elements(article: Element) -> None:
    """Collapse ``div``/``section`` wrappers that hold nothing but one more wrapper."""
    node: Optional[Element] = article
    while node is not None:
        if (
            node.parent is not None
            and node.tag_name in ("div", "section")
            and not node.id.startswith("readability")
        ):
            if is_element_without_content(node):
                node = remove_and_get_next(node)
                continue
            if has_single_tag_inside_element(node, "div") or has_single_tag_inside_element(node, "section"):
                child = node.children[0]
                for name, value in node.attributes.items():
                    child.set_attribute(name, value)
                node.parent.replace_child(child, node)
                node = child
                continue
        node = get_next_node(node)


def clean_classes(root: Element, preserve: Iterable[str]) -> None:
    """Drop every class token not in ``preserve``; empty class attributes are removed."""
    keep = set(preserve)
    stack = [root]
    while stack:
        element = stack.pop()
        tokens = [token for token in element.class_name.split() if token in keep]
        if tokens:
            element.set_attribute("class", " ".join(tokens))
        else:
            element.remove_attribute("class")
        stack.extend(element.children)


__all__ = [
    "ArticleCleaner",
    "clean_classes",
    "fix_relative_uris",
    "prep_document",
    "remove_comments",
    "remove_nodes",
    "remove_scripts",
    "rename_nodes",
    "replace_brs",
    "simplify_nested_elements",
    "to_absolute_uri",
    "unwrap_noscript_images",
]
