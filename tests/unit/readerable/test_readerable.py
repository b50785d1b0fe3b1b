"""
Unit tests for the readerable pre-check.
"""

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from readcore.config import ReaderableSettings
from readcore.dom import serialize
from readcore.parser import parse_document
from readcore.readerable import is_node_visible, is_probably_readerable

LONG = "This sentence is long enough to count as real content for the readerable heuristic. " * 3


def page(body):
    return parse_document(f"<html><body>{body}</body></html>")


@pytest.mark.unit
class TestIsProbablyReaderable:
    """Scoring and exclusion rules."""

    def test_empty_and_missing_documents(self):
        assert is_probably_readerable(None) is False
        assert is_probably_readerable(parse_document("")) is False

    def test_article_page_is_readerable(self, article_document):
        assert is_probably_readerable(article_document) is True

    def test_short_paragraphs_are_not_enough(self):
        assert is_probably_readerable(page("<p>short</p>" * 50)) is False

    def test_score_must_exceed_min_score(self):
        document = page(f"<p>{LONG}</p>")
        assert is_probably_readerable(document) is False
        assert is_probably_readerable(document, min_score=1) is True

    def test_min_content_length_option(self):
        document = page("<p>" + "x" * 100 + "</p>")
        assert is_probably_readerable(document) is False
        assert is_probably_readerable(document, min_content_length=50, min_score=5) is True

    def test_hidden_nodes_are_skipped(self):
        body = "".join(
            [
                f'<p style="display:none">{LONG}</p>',
                f"<p hidden>{LONG}</p>",
                f'<p aria-hidden="true">{LONG}</p>',
            ]
        )
        assert is_probably_readerable(page(body * 3)) is False

    def test_fallback_image_class_counts_as_visible(self):
        body = f'<p aria-hidden="true" class="fallback-image">{LONG}</p>' * 4
        assert is_probably_readerable(page(body)) is True

    def test_unlikely_names_are_skipped(self):
        body = f'<p class="sidebar">{LONG}</p>' * 4
        assert is_probably_readerable(page(body)) is False

    def test_unlikely_ancestor_excludes_descendants(self):
        body = f'<div id="comments">{f"<p>{LONG}</p>" * 4}</div>'
        assert is_probably_readerable(page(body)) is False

    def test_likely_names_override(self):
        body = f'<p class="sidebar-content">{LONG}</p>' * 4
        assert is_probably_readerable(page(body)) is True

    def test_list_paragraphs_are_skipped(self):
        body = "<ul>" + f"<li><p>{LONG}</p></li>" * 4 + "</ul>"
        assert is_probably_readerable(page(body)) is False

    def test_div_with_br_counts(self):
        body = f"<div>{LONG}<br>{LONG}</div>" * 3
        assert is_probably_readerable(page(body)) is True

    def test_extra_patterns(self):
        body = f'<p class="teaser">{LONG}</p>' * 4
        document = page(body)
        assert is_probably_readerable(document) is True
        assert is_probably_readerable(document, unlikely_patterns=["teaser"]) is False
        assert is_probably_readerable(document, unlikely_patterns=["teaser"], likely_patterns=["teas"]) is True

    def test_settings_object(self):
        document = page(f"<p>{LONG}</p>")
        assert is_probably_readerable(document, ReaderableSettings(min_score=1)) is True
        assert is_probably_readerable(document, ReaderableSettings(min_score=1, unlikely_patterns=[r"^\s*$"])) is False
        assert is_probably_readerable(document, ReaderableSettings(), min_score=1) is True

    def test_custom_visibility_checker(self):
        document = page(f"<p>{LONG}</p>" * 4)
        assert is_probably_readerable(document, visibility_checker=lambda node: False) is False

    def test_is_node_visible(self):
        document = page('<p style="color:red">a</p><p style="display: none">b</p>')
        visible, hidden = document.get_elements_by_tag_name("p")
        assert is_node_visible(visible)
        assert not is_node_visible(hidden)


@pytest.mark.property
class TestReaderableIsReadOnly:
    """The check never mutates its input."""

    @given(
        st.lists(
            st.tuples(
                st.sampled_from(["p", "div", "pre", "article", "li"]),
                st.sampled_from(["", "sidebar", "content", "comment"]),
                st.integers(min_value=0, max_value=400),
                st.booleans(),
            ),
            max_size=8,
        )
    )
    @settings(max_examples=75, deadline=None)
    def test_tree_unchanged(self, blocks):
        body = "".join(
            f'<{tag} class="{cls}">{"w" * length}{"<br>" if br else ""}</{tag}>' for tag, cls, length, br in blocks
        )
        document = page(body)
        before = serialize(document)
        is_probably_readerable(document)
        assert serialize(document) == before

    def test_article_unchanged(self, article_document):
        before = serialize(article_document)
        is_probably_readerable(article_document)
        assert serialize(article_document) == before
