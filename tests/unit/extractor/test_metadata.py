"""
Unit tests for metadata extraction: the title heuristic, JSON-LD and meta tags.
"""

import json

import pytest

from readcore.extractor.metadata import (
    JsonLdParser,
    MetadataExtractor,
    MetaTagParser,
    get_article_title,
    is_url,
)
from readcore.parser import parse_document


def page(title="", head="", body="<p>Body</p>"):
    return parse_document(f"<html><head><title>{title}</title>{head}</head><body>{body}</body></html>")


def ld(payload):
    return f'<script type="application/ld+json">{json.dumps(payload)}</script>'


@pytest.mark.unit
class TestArticleTitle:
    """Tests for the ``<title>`` clean-up heuristic."""

    def test_site_suffix_removed(self):
        """A trailing ``| Site`` decoration is dropped."""
        document = page("Growing Tomatoes on a Balcony | Garden Notes")
        assert get_article_title(document) == "Growing Tomatoes on a Balcony"

    def test_short_remainder_keeps_original(self):
        """Too few words after trimming restores the full title."""
        document = page("Foo Bar | Short")
        assert get_article_title(document) == "Foo Bar | Short"

    def test_colon_prefix_removed(self):
        document = page("Garden Notes: Growing tomatoes in small containers")
        assert get_article_title(document) == "Growing tomatoes in small containers"

    def test_colon_kept_when_heading_matches(self):
        """A heading carrying the exact title means the colon is part of it."""
        title = "Tomatoes: a guide to growing them"
        document = page(title, body=f"<h1>{title}</h1><p>Body</p>")
        assert get_article_title(document) == title

    def test_short_title_uses_single_h1(self):
        document = page("Tomatoes", body="<h1>Growing tomatoes in pots at home</h1><p>Body</p>")
        assert get_article_title(document) == "Growing tomatoes in pots at home"

    def test_missing_title(self):
        document = parse_document("<html><body><p>x</p></body></html>")
        assert get_article_title(document) == ""


@pytest.mark.unit
class TestJsonLdParser:
    """Tests for schema.org JSON-LD parsing."""

    def test_article_fields(self):
        document = page(
            head=ld(
                {
                    "@context": "https://schema.org",
                    "@type": "NewsArticle",
                    "headline": "JSON headline",
                    "author": {"name": "Jane Doe"},
                    "description": "JSON description",
                    "publisher": {"name": "JSON Times"},
                    "datePublished": "2024-01-02",
                }
            )
        )
        assert JsonLdParser.parse(document) == {
            "title": "JSON headline",
            "byline": "Jane Doe",
            "excerpt": "JSON description",
            "site_name": "JSON Times",
            "date_published": "2024-01-02",
        }

    def test_graph_lookup(self):
        """An untyped block searches its ``@graph`` for an article."""
        document = page(
            head=ld(
                {
                    "@context": "http://schema.org",
                    "@graph": [{"@type": "WebSite", "name": "Site"}, {"@type": "Article", "name": "Graph title"}],
                }
            )
        )
        assert JsonLdParser.parse(document)["title"] == "Graph title"

    def test_author_list_joined(self):
        document = page(
            head=ld(
                {
                    "@context": "https://schema.org",
                    "@type": "BlogPosting",
                    "author": [{"name": "Ann"}, {"name": "Bob"}],
                }
            )
        )
        assert JsonLdParser.parse(document)["byline"] == "Ann, Bob"

    def test_headline_preferred_when_closer_to_title(self):
        document = page(
            "Growing tomatoes | Site",
            head=ld(
                {
                    "@context": "https://schema.org",
                    "@type": "Article",
                    "name": "Site",
                    "headline": "Growing tomatoes",
                }
            ),
        )
        assert JsonLdParser.parse(document)["title"] == "Growing tomatoes"

    def test_invalid_and_foreign_blocks_skipped(self):
        """Malformed JSON, foreign contexts and non-article types are ignored."""
        head = (
            '<script type="application/ld+json">{not json</script>'
            + ld({"@context": "https://example.org", "@type": "Article", "name": "Foreign"})
            + ld({"@context": "https://schema.org", "@type": "Recipe", "name": "Soup"})
            + ld({"@context": "https://schema.org", "@type": "Article", "name": "Real"})
        )
        assert JsonLdParser.parse(page(head=head)) == {"title": "Real"}

    def test_list_payload(self):
        document = page(
            head=ld([{"@context": "https://schema.org", "@type": "ReportageNewsArticle", "name": "From list"}])
        )
        assert JsonLdParser.parse(document)["title"] == "From list"


@pytest.mark.unit
class TestMetaTagParser:
    """Tests for ``<meta>`` collection."""

    def test_property_and_name_keys(self):
        document = page(
            head=(
                '<meta property="og:title" content=" OG title ">'
                '<meta name="dc.creator" content="DC Author">'
                '<meta name="twitter:description" content="Tweet">'
                '<meta name="parsely-pub-date" content="2024-05-05">'
                '<meta name="viewport" content="width=device-width">'
            )
        )
        values = MetaTagParser.parse(document)
        assert values["og:title"] == "OG title"
        assert values["dc:creator"] == "DC Author"
        assert values["twitter:description"] == "Tweet"
        assert values["parsely-pub-date"] == "2024-05-05"
        assert "viewport" not in values

    def test_empty_content_ignored(self):
        document = page(head='<meta property="og:title" content="">')
        assert MetaTagParser.parse(document) == {}


@pytest.mark.unit
class TestMetadataExtractor:
    """Tests for field precedence across sources."""

    def test_dc_beats_og_beats_twitter(self):
        document = page(
            "Page title for the document",
            head=(
                '<meta name="twitter:title" content="Twitter">'
                '<meta property="og:title" content="Open Graph">'
                '<meta name="dc.title" content="Dublin Core">'
            ),
        )
        assert MetadataExtractor().extract(document).title == "Dublin Core"

    def test_json_ld_wins(self):
        document = page(
            head=ld({"@context": "https://schema.org", "@type": "Article", "name": "JSON"})
            + '<meta property="og:title" content="Open Graph">'
        )
        assert MetadataExtractor().extract(document).title == "JSON"

    def test_json_ld_can_be_disabled(self):
        document = page(
            head=ld({"@context": "https://schema.org", "@type": "Article", "name": "JSON"})
            + '<meta property="og:title" content="Open Graph">'
        )
        assert MetadataExtractor(disable_json_ld=True).extract(document).title == "Open Graph"

    def test_title_falls_back_to_heuristic(self):
        document = page("Growing Tomatoes on a Balcony | Garden Notes")
        assert MetadataExtractor().extract(document).title == "Growing Tomatoes on a Balcony"

    def test_article_author_url_rejected(self):
        """``article:author`` pointing at a profile URL is not a byline."""
        document = page(head='<meta property="article:author" content="https://facebook.com/someone">')
        assert MetadataExtractor().extract(document).byline is None

    def test_article_author_name_used(self):
        document = page(head='<meta property="article:author" content="Sam Writer">')
        assert MetadataExtractor().extract(document).byline == "Sam Writer"

    def test_entities_unescaped(self):
        document = page(head='<meta property="og:description" content="Salt &amp;amp; pepper">')
        assert MetadataExtractor().extract(document).excerpt == "Salt & pepper"

    def test_site_name_and_published_time(self):
        document = page(
            head=(
                '<meta property="og:site_name" content="Garden Notes">'
                '<meta property="article:published_time" content="2024-03-01T09:00:00Z">'
            )
        )
        metadata = MetadataExtractor().extract(document)
        assert metadata.site_name == "Garden Notes"
        assert metadata.published_time == "2024-03-01T09:00:00Z"


@pytest.mark.unit
@pytest.mark.parametrize(
    "value,expected",
    [("https://example.com/me", True), ("Jane Doe", False), ("example.com/me", False)],
)
def test_is_url(value, expected):
    assert is_url(value) is expected
