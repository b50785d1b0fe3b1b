"""
The extraction pipeline.

``Readability`` takes ownership of a parsed ``Document`` and runs:

1. the element ceiling check;
2. metadata collection (JSON-LD before scripts are stripped, then meta tags);
3. document preprocessing;
4. candidate search, repeated down the fallback ladder until an attempt yields
   at least ``char_threshold`` characters;
5. post-processing and result assembly.

Every ladder rung works on a fresh clone of the preprocessed document, so a
failed attempt never leaks mutations into the next one.
"""

from __future__ import annotations

from typing import Any, Callable, Iterable, List, Optional, Pattern

import structlog
from structlog.contextvars import bound_contextvars

from ..dom.nodes import Document, Element, NodeType
from ..dom.serializer import serialize_children
from ..exceptions import NotReadable, TooManyElements
from . import patterns
from .cleaner import (
    ArticleCleaner,
    clean_classes,
    fix_relative_uris,
    prep_document,
    remove_comments,
    remove_scripts,
    simplify_nested_elements,
    unwrap_noscript_images,
)
from .metadata import MetadataExtractor
from .models import FALLBACK_LADDER, Attempt, ExtractionFlags, ExtractionResult
from .scoring import (
    CandidateScores,
    count_commas,
    element_ancestors,
    get_inner_text,
    get_link_density,
    get_next_node,
    has_ancestor_tag,
    has_child_block_element,
    has_single_tag_inside_element,
    is_element_without_content,
    is_phrasing_content,
    is_probably_visible,
    is_whitespace,
    match_string,
    remove_and_get_next,
    text_similarity,
)

logger = structlog.get_logger(__name__)

DEFAULT_MAX_ELEMS_TO_PARSE = 0
DEFAULT_N_TOP_CANDIDATES = 5
DEFAULT_CHAR_THRESHOLD = 500

# Top candidates sharing an ancestor before that ancestor is promoted.
MINIMUM_TOPCANDIDATES = 3

Serializer = Callable[[Element], str]


class Readability:
    """Single-use extractor bound to one document.

    Example:
        >>> result = Readability(parse_document(markup, base_uri=url)).parse()
        >>> result.title, result.length
    """

    def __init__(
        self,
        document: Document,
        *,
        debug: bool = False,
        max_elems_to_parse: int = DEFAULT_MAX_ELEMS_TO_PARSE,
        nb_top_candidates: int = DEFAULT_N_TOP_CANDIDATES,
        char_threshold: int = DEFAULT_CHAR_THRESHOLD,
        classes_to_preserve: Iterable[str] = (),
        keep_classes: bool = False,
        disable_json_ld: bool = False,
        allowed_video_regex: Pattern[str] = patterns.VIDEOS,
        link_density_modifier: float = 0.0,
        serializer: Optional[Serializer] = None,
    ) -> None:
        if document is None or document.node_type is not NodeType.DOCUMENT:
            raise TypeError("Readability expects a Document as its first argument")

        self._document = document
        self._debug = debug
        self.max_elems_to_parse = max_elems_to_parse
        self.nb_top_candidates = nb_top_candidates
        self.char_threshold = char_threshold
        self.classes_to_preserve = tuple(patterns.CLASSES_TO_PRESERVE) + tuple(classes_to_preserve)
        self.keep_classes = keep_classes
        self.allowed_video_regex = allowed_video_regex
        self.link_density_modifier = link_density_modifier
        self.serializer: Serializer = serializer or serialize_children
        self._metadata_extractor = MetadataExtractor(disable_json_ld=disable_json_ld)

        self._consumed = False
        self._article_title = ""
        self._article_byline: Optional[str] = None
        self._article_lang: Optional[str] = None
        self._attempts: List[Attempt] = []
        self._log = logger.bind(document_uri=document.document_uri) if debug else None

    def _trace(self, event: str, **kwargs: Any) -> None:
        if self._log is not None:
            self._log.debug(event, **kwargs)

    # ========================================================================
    # Public API
    # ========================================================================

    def parse(self) -> ExtractionResult:
        """Run the full pipeline.

        Raises:
            TooManyElements: the document exceeds ``max_elems_to_parse``.
            NotReadable: no ladder rung produced ``char_threshold`` characters.
            RuntimeError: ``parse`` was already called on this instance.
        """
        if self._consumed:
            raise RuntimeError("Readability.parse() may only be called once per instance")
        self._consumed = True

        with bound_contextvars(document_uri=self._document.document_uri):
            return self._run()

    def _run(self) -> ExtractionResult:
        document = self._document
        if self.max_elems_to_parse > 0:
            count = len(document.get_elements_by_tag_name("*"))
            if count > self.max_elems_to_parse:
                raise TooManyElements(count)

        unwrap_noscript_images(document)
        json_ld = self._metadata_extractor.json_ld(document)
        remove_scripts(document)
        remove_comments(document)
        prep_document(document)

        metadata = self._metadata_extractor.extract(document, json_ld=json_ld)
        self._article_title = metadata.title
        self._trace("metadata_collected", title=metadata.title, byline=metadata.byline)

        attempt = self._grab_article()
        article = attempt.article
        self._post_process(article, document)

        excerpt = metadata.excerpt
        if not excerpt:
            paragraphs = article.get_elements_by_tag_name("p")
            if paragraphs:
                excerpt = paragraphs[0].text_content.strip()

        text_content = article.text_content
        return ExtractionResult(
            title=self._article_title,
            content=self.serializer(article),
            text_content=text_content,
            length=len(text_content),
            excerpt=excerpt,
            byline=metadata.byline or self._article_byline,
            dir=attempt.direction,
            site_name=metadata.site_name,
            lang=self._article_lang,
            published_time=metadata.published_time,
        )

    @property
    def attempts(self) -> List[Attempt]:
        return list(self._attempts)

    # ========================================================================
    # Candidate search
    # ========================================================================

    def _grab_article(self) -> Attempt:
        for flags in FALLBACK_LADDER:
            working = self._document.clone()
            attempt = self._attempt(working, flags)  # type: ignore[arg-type]
            self._attempts.append(attempt)
            self._trace("attempt_finished", flags=str(flags), text_length=attempt.text_length)
            if attempt.text_length >= self.char_threshold:
                return attempt

        raise NotReadable(
            attempts=tuple(attempt.text_length for attempt in self._attempts),
            char_threshold=self.char_threshold,
        )

    def _attempt(self, document: Document, flags: ExtractionFlags) -> Attempt:
        scores = CandidateScores(weight_classes=bool(flags & ExtractionFlags.WEIGHT_CLASSES))
        elements_to_score = self._collect_elements_to_score(document, flags)
        page = document.body or document.document_element
        if page is None:
            return Attempt(flags=flags, article=Element("div"), text_length=0)
        self._score_elements(elements_to_score, scores)

        top_candidates = self._rank_candidates(scores)
        top_candidate, created = self._select_top_candidate(top_candidates, scores, page)
        parent_of_top = top_candidate.parent

        article = self._merge_siblings(top_candidate, scores)
        self._trace("article_pre_prep", html=article.inner_html)

        ArticleCleaner(
            flags,
            allowed_video_regex=self.allowed_video_regex,
            link_density_modifier=self.link_density_modifier,
            share_element_threshold=DEFAULT_CHAR_THRESHOLD,
        ).prep_article(article)

        if created:
            top_candidate.id = "readability-page-1"
            top_candidate.class_name = "page"
        else:
            wrapper = Element("div")
            wrapper.id = "readability-page-1"
            wrapper.class_name = "page"
            while article.first_child is not None:
                wrapper.append_child(article.first_child)
            article.append_child(wrapper)

        text_length = len(get_inner_text(article))
        direction = self._article_direction(top_candidate, parent_of_top)
        return Attempt(flags=flags, article=article, text_length=text_length, direction=direction)

    def _collect_elements_to_score(self, document: Document, flags: ExtractionFlags) -> List[Element]:
        """Walk the tree once, dropping noise and turning text-only divs into paragraphs."""
        strip_unlikelys = bool(flags & ExtractionFlags.STRIP_UNLIKELYS)
        should_remove_title_header = True
        elements_to_score: List[Element] = []

        node = document.document_element
        while node is not None:
            if node.tag_name == "html":
                self._article_lang = node.get_attribute("lang")

            matched = match_string(node)

            if not is_probably_visible(node):
                self._trace("removing_hidden_node", node=repr(node))
                node = remove_and_get_next(node)
                continue

            if node.get_attribute("aria-modal") == "true" and node.get_attribute("role") == "dialog":
                node = remove_and_get_next(node)
                continue

            if self._check_byline(node, matched):
                node = remove_and_get_next(node)
                continue

            if should_remove_title_header and self._header_duplicates_title(node):
                self._trace("removing_title_header", text=node.text_content.strip())
                should_remove_title_header = False
                node = remove_and_get_next(node)
                continue

            if strip_unlikelys:
                if (
                    patterns.UNLIKELY_CANDIDATES.search(matched)
                    and not patterns.MAYBE_CANDIDATE.search(matched)
                    and not has_ancestor_tag(node, "table")
                    and not has_ancestor_tag(node, "code")
                    and node.tag_name not in ("body", "a")
                ):
                    self._trace("removing_unlikely_candidate", match=matched)
                    node = remove_and_get_next(node)
                    continue
                if node.get_attribute("role") in patterns.UNLIKELY_ROLES:
                    self._trace("removing_unlikely_role", role=node.get_attribute("role"))
                    node = remove_and_get_next(node)
                    continue

            if (
                node.tag_name in ("div", "section", "header") or node.tag_name in patterns.HEADING_TAGS
            ) and is_element_without_content(node):
                node = remove_and_get_next(node)
                continue

            if node.tag_name in patterns.DEFAULT_TAGS_TO_SCORE:
                elements_to_score.append(node)

            if node.tag_name == "div":
                self._wrap_phrasing_runs(node)
                if has_single_tag_inside_element(node, "p") and get_link_density(node) < 0.25:
                    paragraph = node.children[0]
                    if node.parent is not None:
                        node.parent.replace_child(paragraph, node)
                    node = paragraph
                    elements_to_score.append(node)
                elif not has_child_block_element(node):
                    node.tag_name = "p"
                    elements_to_score.append(node)

            node = get_next_node(node)
        return elements_to_score

    @staticmethod
    def _wrap_phrasing_runs(div: Element) -> None:
        """Group runs of phrasing content directly under ``div`` into ``<p>`` elements."""
        paragraph: Optional[Element] = None
        child = div.first_child
        while child is not None:
            following = child.next_sibling
            if is_phrasing_content(child):
                if paragraph is not None:
                    paragraph.append_child(child)
                elif not is_whitespace(child):
                    paragraph = Element("p")
                    div.replace_child(paragraph, child)
                    paragraph.append_child(child)
            elif paragraph is not None:
                while paragraph.last_child is not None and is_whitespace(paragraph.last_child):
                    paragraph.last_child.remove()
                paragraph = None
            child = following

    def _check_byline(self, node: Element, matched: str) -> bool:
        if self._article_byline:
            return False
        rel = node.get_attribute("rel")
        itemprop = node.get_attribute("itemprop") or ""
        if rel == "author" or "author" in itemprop or patterns.BYLINE.search(matched):
            byline = node.text_content.strip()
            if 0 < len(byline) < 100:
                self._article_byline = byline
                return True
        return False

    def _header_duplicates_title(self, node: Element) -> bool:
        if node.tag_name not in ("h1", "h2"):
            return False
        heading = get_inner_text(node, normalize_spaces=False)
        return text_similarity(self._article_title, heading) > 0.75

    @staticmethod
    def _score_elements(elements: List[Element], scores: CandidateScores) -> None:
        for element in elements:
            parent = element.parent
            if parent is None or parent.node_type is not NodeType.ELEMENT:
                continue
            inner_text = get_inner_text(element)
            if len(inner_text) < 25:
                continue
            ancestors = element_ancestors(element, max_depth=5)
            if not ancestors:
                continue

            content_score = 1.0
            content_score += count_commas(inner_text)
            content_score += min(len(inner_text) // 100, 3)

            for level, ancestor in enumerate(ancestors):
                if ancestor.parent is None or ancestor.parent.node_type is not NodeType.ELEMENT:
                    continue
                if ancestor not in scores:
                    scores.initialize(ancestor)
                if level == 0:
                    divider = 1
                elif level == 1:
                    divider = 2
                else:
                    divider = level * 3
                scores.add(ancestor, content_score / divider)

    def _rank_candidates(self, scores: CandidateScores) -> List[Element]:
        top_candidates: List[Element] = []
        for candidate in scores.order:
            adjusted = scores.get(candidate) * (1 - get_link_density(candidate))
            scores.set(candidate, adjusted)
            for index in range(self.nb_top_candidates):
                if index >= len(top_candidates) or adjusted > scores.get(top_candidates[index]):
                    top_candidates.insert(index, candidate)
                    if len(top_candidates) > self.nb_top_candidates:
                        top_candidates.pop()
                    break
        return top_candidates

    def _select_top_candidate(
        self, top_candidates: List[Element], scores: CandidateScores, page: Element
    ) -> tuple[Element, bool]:
        """Pick the article root; the bool is True when one had to be created from ``page``."""
        top_candidate = top_candidates[0] if top_candidates else None

        if top_candidate is None or top_candidate.tag_name == "body":
            created = Element("div")
            while page.first_child is not None:
                created.append_child(page.first_child)
            page.append_child(created)
            scores.initialize(created)
            self._trace("top_candidate_created")
            return created, True

        top_score = scores.get(top_candidate)
        alternative_ancestors = [
            element_ancestors(candidate)
            for candidate in top_candidates[1:]
            if top_score and scores.get(candidate) / top_score >= 0.75
        ]
        if len(alternative_ancestors) >= MINIMUM_TOPCANDIDATES:
            parent = top_candidate.parent
            while parent is not None and parent.node_type is NodeType.ELEMENT and parent.tag_name != "body":
                containing = sum(1 for ancestors in alternative_ancestors if parent in ancestors)
                if containing >= MINIMUM_TOPCANDIDATES:
                    top_candidate = parent
                    break
                parent = parent.parent

        if top_candidate not in scores:
            scores.initialize(top_candidate)

        parent = top_candidate.parent
        last_score = scores.get(top_candidate)
        score_threshold = last_score / 3
        while parent is not None and parent.node_type is NodeType.ELEMENT and parent.tag_name != "body":
            if parent not in scores:
                parent = parent.parent
                continue
            parent_score = scores.get(parent)
            if parent_score < score_threshold:
                break
            if parent_score > last_score:
                top_candidate = parent
                break
            last_score = parent_score
            parent = parent.parent

        parent = top_candidate.parent
        while (
            parent is not None
            and parent.node_type is NodeType.ELEMENT
            and parent.tag_name != "body"
            and len(parent.children) == 1
        ):
            top_candidate = parent
            parent = top_candidate.parent

        if top_candidate not in scores:
            scores.initialize(top_candidate)
        self._trace("top_candidate_selected", candidate=repr(top_candidate), score=scores.get(top_candidate))
        return top_candidate, False

    def _merge_siblings(self, top_candidate: Element, scores: CandidateScores) -> Element:
        """Move the top candidate and its qualifying siblings into a fresh container."""
        article = Element("div")
        parent = top_candidate.parent
        if parent is None:
            article.append_child(top_candidate)
            return article

        top_score = scores.get(top_candidate)
        threshold = max(10.0, top_score * 0.2)
        top_class = top_candidate.class_name

        for sibling in parent.children:
            append = sibling is top_candidate
            if not append:
                bonus = 0.0
                if top_class and sibling.class_name == top_class:
                    bonus += top_score * 0.2
                if sibling in scores and scores.get(sibling) + bonus >= threshold:
                    append = True
                elif sibling.tag_name == "p":
                    link_density = get_link_density(sibling)
                    content = get_inner_text(sibling)
                    if len(content) > 80 and link_density < 0.25:
                        append = True
                    elif 0 < len(content) < 80 and link_density == 0 and patterns.SENTENCE_END.search(content):
                        append = True

            if append:
                self._trace("appending_sibling", node=repr(sibling))
                if sibling.tag_name not in patterns.ALTER_TO_DIV_EXCEPTIONS:
                    sibling.tag_name = "div"
                article.append_child(sibling)
        return article

    @staticmethod
    def _article_direction(top_candidate: Element, parent_of_top: Optional[Any]) -> Optional[str]:
        chain: List[Any] = []
        if parent_of_top is not None:
            chain.append(parent_of_top)
        chain.append(top_candidate)
        if parent_of_top is not None:
            chain.extend(parent_of_top.ancestors())
        for ancestor in chain:
            if ancestor.node_type is not NodeType.ELEMENT:
                continue
            direction = ancestor.get_attribute("dir")
            if direction:
                return direction
        return None

    # ========================================================================
    # Post-processing
    # ========================================================================

    def _post_process(self, article: Element, document: Document) -> None:
        fix_relative_uris(article, document.base_uri, document.document_uri)
        simplify_nested_elements(article)
        if not self.keep_classes:
            clean_classes(article, self.classes_to_preserve)


def extract(document: Document, *, settings: Optional[Any] = None, **options: Any) -> ExtractionResult:
    """Functional form of ``Readability(document, **options).parse()``.

    ``settings`` may be an ``ExtractionSettings``; explicit keyword options win
    over it.
    """
    if settings is not None:
        merged = settings.engine_options()
        merged.update(options)
        options = merged
    return Readability(document, **options).parse()


__all__ = [
    "DEFAULT_CHAR_THRESHOLD",
    "DEFAULT_MAX_ELEMS_TO_PARSE",
    "DEFAULT_N_TOP_CANDIDATES",
    "Readability",
    "extract",
]
