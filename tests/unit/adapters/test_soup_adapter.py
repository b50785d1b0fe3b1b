"""
Tests for building ReadCore trees from BeautifulSoup.
"""

import pytest
from bs4 import BeautifulSoup
from conftest import ARTICLE_HTML, ARTICLE_URL, PARAGRAPHS

from readcore import extract
from readcore.adapters import document_from_soup, parse_with_soup
from readcore.dom import Element, serialize_children
from readcore.dom.nodes import NodeType


@pytest.mark.unit
class TestDocumentFromSoup:
    """Tree conversion."""

    def test_structure_preserved(self):
        document = parse_with_soup("<html><body><div><p>one</p><p>two <b>three</b></p></div></body></html>")
        assert document.body is not None
        assert serialize_children(document.body) == "<div><p>one</p><p>two <b>three</b></p></div>"

    def test_multi_valued_attributes_joined(self):
        document = parse_with_soup('<div class="post  main" rel="a b" id="x"></div>')
        div = document.get_elements_by_tag_name("div")[0]
        assert div.class_name == "post main"
        assert div.get_attribute("rel") == "a b"
        assert div.id == "x"

    def test_comments_and_doctype(self):
        document = parse_with_soup("<!DOCTYPE html><html><body><!-- note --><p>x</p></body></html>")
        assert document.doctype == "html"
        first = document.body.first_child
        assert first.node_type is NodeType.COMMENT
        assert first.text_content == " note "

    def test_processing_instruction_skipped(self):
        document = parse_with_soup("<?xml version='1.0'?><div>x</div>")
        assert [node.node_type for node in document.walk() if node is not document] == [
            NodeType.ELEMENT,
            NodeType.TEXT,
        ]

    def test_tag_converted_as_root(self):
        soup = BeautifulSoup("<section><p>inside</p></section><p>outside</p>", "html.parser")
        document = document_from_soup(soup.section)
        root = document.document_element
        assert isinstance(root, Element)
        assert root.tag_name == "section"
        assert root.text_content == "inside"

    def test_soup_left_untouched(self):
        soup = BeautifulSoup("<div><p>x</p></div>", "html.parser")
        before = str(soup)
        document = document_from_soup(soup)
        document.get_elements_by_tag_name("p")[0].remove()
        assert str(soup) == before

    def test_base_uri_kept(self):
        document = parse_with_soup("<p>x</p>", base_uri=ARTICLE_URL)
        assert document.document_uri == ARTICLE_URL


@pytest.mark.integration
class TestExtractionFromSoup:
    """The engine runs unchanged on converted trees."""

    def test_article_extracted(self):
        result = extract(parse_with_soup(ARTICLE_HTML, base_uri=ARTICLE_URL))
        assert result.title == "Growing Tomatoes on a Balcony"
        assert result.byline == "Ada Gardener"
        for paragraph in PARAGRAPHS:
            assert paragraph in result.text_content
        assert "Copyright" not in result.text_content
        assert 'href="https://example.com/guides/soil"' in result.content
