"""
Unit tests for the document tree model.
"""

import pytest

from readcore.dom import Comment, Document, Element, NodeType, Text, serialize, serialize_children
from readcore.parser import parse_document


def build_list():
    root = Element("ul")
    items = []
    for label in ("one", "two", "three"):
        item = Element("li")
        item.append_child(Text(label))
        root.append_child(item)
        items.append(item)
    return root, items


@pytest.mark.unit
class TestMutation:
    """Parent/child/sibling consistency under mutation."""

    def test_append_links_siblings(self):
        root, (first, second, third) = build_list()
        assert first.next_sibling is second
        assert second.previous_sibling is first
        assert third.next_sibling is None
        assert all(item.parent is root for item in (first, second, third))

    def test_remove_clears_links(self):
        root, (first, second, third) = build_list()
        second.remove()
        assert second.parent is None
        assert second.previous_sibling is None
        assert second.next_sibling is None
        assert first.next_sibling is third
        assert third.previous_sibling is first
        assert root.children == [first, third]

    def test_append_parented_node_detaches_first(self):
        root, (first, _, _) = build_list()
        other = Element("ol")
        other.append_child(first)
        assert first.parent is other
        assert first not in root.child_nodes
        assert len(root.children) == 2

    def test_cycle_is_rejected(self):
        root, (first, _, _) = build_list()
        with pytest.raises(ValueError):
            first.append_child(root)
        with pytest.raises(ValueError):
            root.append_child(root)

    def test_document_cannot_be_inserted(self):
        with pytest.raises(ValueError):
            Element("div").append_child(Document())

    def test_insert_before_requires_child_reference(self):
        root, _ = build_list()
        with pytest.raises(ValueError):
            root.insert_before(Element("li"), Element("li"))

    def test_insert_before_and_replace(self):
        root, (first, second, _) = build_list()
        new = Element("li")
        root.insert_before(new, second)
        assert root.children.index(new) == 1
        assert new.previous_sibling is first

        replacement = Element("li")
        root.replace_child(replacement, new)
        assert new.parent is None
        assert replacement.next_sibling is second

    def test_remove_children(self):
        root, items = build_list()
        root.remove_children()
        assert root.child_nodes == []
        assert all(item.parent is None for item in items)

    def test_rename_keeps_identity(self):
        div = Element("DIV")
        assert div.tag_name == "div"
        div.tag_name = "P"
        assert div.tag_name == "p"


@pytest.mark.unit
class TestTraversal:
    """Navigation and lookup helpers."""

    def test_element_navigation_skips_text(self):
        document = parse_document("<div><span>a</span> text <em>b</em></div>")
        div = document.document_element
        span, em = div.children
        assert span.next_element_sibling is em
        assert em.previous_element_sibling is span
        assert div.first_element_child is span
        assert div.last_element_child is em

    def test_descendant_walk_is_restartable(self):
        document = parse_document("<div><p>one</p><p>two <b>three</b></p></div>")
        first = [node.node_type for node in document.iter_descendants()]
        second = [node.node_type for node in document.iter_descendants()]
        assert first == second
        assert first.count(NodeType.ELEMENT) == 4

    def test_get_elements_by_tag_name(self):
        document = parse_document("<div><p>one</p><section><p>two</p><span>x</span></section></div>")
        assert [p.text_content for p in document.get_elements_by_tag_name("p")] == ["one", "two"]
        assert len(document.get_elements_by_tag_name("p", "span")) == 3
        assert len(document.get_elements_by_tag_name("*")) == 5

    def test_ancestors_nearest_first(self):
        document = parse_document("<div><section><p>x</p></section></div>")
        paragraph = document.get_elements_by_tag_name("p")[0]
        names = [getattr(node, "tag_name", "#document") for node in paragraph.ancestors()]
        assert names == ["section", "div", "#document"]
        assert len(paragraph.ancestors(max_depth=1)) == 1

    def test_contains(self):
        document = parse_document("<div><p>x</p></div><span></span>")
        div, span = document.children
        assert div.contains(div.first_child)
        assert not div.contains(span)


@pytest.mark.unit
class TestAttributesAndText:
    """Attribute access, class views, style lookups and text content."""

    def test_attributes_are_case_insensitive(self):
        element = Element("a", {"HREF": "/x"})
        assert element.get_attribute("href") == "/x"
        element.set_attribute("Data-Id", "7")
        assert element.has_attribute("data-id")
        element.remove_attribute("DATA-ID")
        assert element.get_attribute("data-id") is None

    def test_absent_distinct_from_empty(self):
        element = Element("input", {"disabled": ""})
        assert element.get_attribute("disabled") == ""
        assert element.get_attribute("checked") is None

    def test_class_list_and_id(self):
        element = Element("div", {"class": "  post  hentry ", "id": "main"})
        assert element.class_list == frozenset({"post", "hentry"})
        assert element.id == "main"

    def test_style_property(self):
        element = Element("div", {"style": "color: red; DISPLAY : none"})
        assert element.style_property("display") == "none"
        assert element.style_property("visibility") is None

    def test_text_content_get_and_set(self):
        document = parse_document("<p>Hello <b>big</b> world<!-- note --></p>")
        paragraph = document.document_element
        assert paragraph.text_content == "Hello big world"
        paragraph.text_content = "replaced"
        assert serialize(paragraph) == "<p>replaced</p>"

    def test_inner_html_round_trip(self):
        div = Element("div")
        div.inner_html = '<p class="x">one &amp; two</p><br>'
        assert [child.tag_name for child in div.children] == ["p", "br"]
        assert div.inner_html == '<p class="x">one &amp; two</p><br>'
        assert div.outer_html == '<div><p class="x">one &amp; two</p><br></div>'


@pytest.mark.unit
class TestCloneAndDocument:
    """Cloning and document conveniences."""

    def test_deep_clone_has_fresh_identities(self):
        document = parse_document('<html><body><div id="a"><p>x</p></div></body></html>', "https://e.com/")
        copy = document.clone()
        assert serialize(copy) == serialize(document)
        assert copy.document_uri == "https://e.com/"
        originals = set(map(id, document.walk()))
        assert not any(id(node) in originals for node in copy.walk())

    def test_shallow_clone(self):
        element = Element("div", {"id": "a"})
        element.append_child(Text("x"))
        copy = element.clone(deep=False)
        assert copy.attributes == {"id": "a"}
        assert copy.child_nodes == []

    def test_head_body_title(self):
        document = parse_document("<html><head><title> Hi </title></head><body><p>x</p></body></html>")
        assert document.head.tag_name == "head"
        assert document.body.tag_name == "body"
        assert document.title == " Hi "

    def test_base_uri_honours_base_element(self):
        document = parse_document('<html><head><base href="/docs/"></head></html>', "https://e.com/a/b.html")
        assert document.base_uri == "https://e.com/docs/"
        assert parse_document("<p>x</p>", "https://e.com/a").base_uri == "https://e.com/a"

    def test_factories(self):
        document = Document()
        assert document.create_element("DIV").tag_name == "div"
        assert document.create_text_node("x").data == "x"
        assert isinstance(document.create_comment("c"), Comment)

    def test_serialize_children_escapes_text(self):
        div = Element("div")
        div.append_child(Text("a < b & c"))
        assert serialize_children(div) == "a &lt; b &amp; c"
