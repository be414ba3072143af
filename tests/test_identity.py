import pytest

from django_assembly.errors import ComponentIdError
from django_assembly.identity import resolve_duplicate_ids, scan_component_ids
from django_assembly.testing import assembly_test
from django_assembly.util.html import find_components, parse_html, replace_in_subtree, serialize_html

from .testutils import id_generator, setup_test_config

setup_test_config()


@assembly_test
class TestScanComponentIds:
    def test_collects_found_and_duplicate_ids(self):
        soup = parse_html(
            """
            <div class="c-mark" component-id="a"></div>
            <div class="c-mark" component-id="b">
                <div class="c-mark" component-id="a"></div>
            </div>
            <div class="c-mark" component-id="b"></div>
            <div class="c-mark" component-id="a"></div>
            """
        )
        scan = scan_component_ids(soup, "c-mark")

        assert [tag["component-id"] for tag in scan.components] == ["a", "b", "a", "b", "a"]
        assert scan.found == {"a", "b"}
        assert scan.duplicates == ["a", "b"]

    def test_marker_class_is_a_prefix(self):
        soup = parse_html(
            """
            <div class="c-mark-card" component-id="a"></div>
            <div class="other c-mark" component-id="b"></div>
            <div class="not-c-mark" component-id="c"></div>
            """
        )
        scan = scan_component_ids(soup, "c-mark")

        assert scan.found == {"a", "b"}
        assert scan.duplicates == []

    def test_ignores_elements_without_marker(self):
        soup = parse_html('<div component-id="a"></div><div component-id="a"></div>')
        scan = scan_component_ids(soup, "c-mark")

        assert scan.components == []
        assert scan.duplicates == []

    def test_raises_on_missing_id(self):
        soup = parse_html('<div class="c-mark" component-id="a"></div><span class="c-mark"></span>')

        with pytest.raises(ComponentIdError, match="Component element must have an ID"):
            scan_component_ids(soup, "c-mark")

    def test_raises_on_empty_id(self):
        soup = parse_html('<div class="c-mark" component-id=""></div>')

        with pytest.raises(ComponentIdError):
            scan_component_ids(soup, "c-mark")

    def test_does_not_modify_tree(self):
        html = '<div class="c-mark" component-id="a"></div><div class="c-mark" component-id="a"></div>'
        soup = parse_html(html)
        scan_component_ids(soup, "c-mark")

        assert serialize_html(soup) == html


@assembly_test
class TestResolveDuplicateIds:
    def test_no_duplicates_is_noop(self):
        html = '<div class="c-mark" component-id="a"></div>'
        soup = parse_html(html)

        assert resolve_duplicate_ids(soup, [], id_generator()) == {}
        assert serialize_html(soup) == html

    def test_reassigns_every_occurrence(self):
        soup = parse_html(
            """
            <div class="c-mark" component-id="abc"></div>
            <div class="c-mark" component-id="unique"></div>
            <div class="c-mark" component-id="abc"></div>
            """
        )
        resolved = resolve_duplicate_ids(soup, ["abc"], id_generator())

        # Also the first occurrence gets a new ID
        assert resolved == {"abc": ["id-1", "id-2"]}
        divs = soup.find_all("div")
        assert [div["component-id"] for div in divs] == ["id-1", "unique", "id-2"]
        assert divs[0]["component-data-id"] == "id-1"
        assert divs[2]["component-data-id"] == "id-2"
        assert not divs[1].has_attr("component-data-id")

    def test_rewrites_references_within_the_component(self):
        soup = parse_html(
            """
            <div class="c-mark" component-id="abc">
                <script component-data-id="abc">mount("abc")</script>
                <span data-for="abc">ABC</span>
            </div>
            <div class="c-mark" component-id="abc"></div>
            <p>abc</p>
            """
        )
        resolve_duplicate_ids(soup, ["abc"], id_generator())

        first = soup.find("div")
        assert first.script["component-data-id"] == "id-1"
        assert first.script.string == 'mount("id-1")'
        assert first.span["data-for"] == "id-1"
        # Only the exact ID is replaced
        assert first.span.string == "ABC"
        # Content outside of the component is left alone
        assert soup.p.string == "abc"

    def test_nested_components_with_same_id(self):
        soup = parse_html(
            """
            <div class="c-mark outer" component-id="x1">
                <div class="c-mark inner" component-id="x1">
                    <script>init("x1")</script>
                </div>
            </div>
            """
        )
        resolved = resolve_duplicate_ids(soup, ["x1"], id_generator())

        assert resolved == {"x1": ["id-1", "id-2"]}
        outer = soup.find("div", class_="outer")
        inner = soup.find("div", class_="inner")
        assert outer["component-id"] == "id-1"
        # The inner component keeps its own new ID, not the outer one
        assert inner["component-id"] == "id-2"
        assert inner["component-data-id"] == "id-2"
        assert inner.script.string == 'init("id-2")'

    def test_nested_component_with_similar_id(self):
        soup = parse_html(
            """
            <div class="c-mark" component-id="abc">
                <div class="c-mark upper" component-id="ABC"></div>
                <div class="c-mark suffix" component-id="abc-2"></div>
            </div>
            <div class="c-mark" component-id="abc"></div>
            """
        )
        resolve_duplicate_ids(soup, ["abc"], id_generator())

        ids = [tag["component-id"] for tag in find_components(soup, "c-mark")]
        assert ids == ["id-1", "ABC", "abc-2", "id-2"]

    def test_multiple_duplicated_ids(self):
        soup = parse_html(
            """
            <div class="c-mark" component-id="a"></div>
            <div class="c-mark" component-id="b"></div>
            <div class="c-mark" component-id="a"></div>
            <div class="c-mark" component-id="b"></div>
            """
        )
        resolved = resolve_duplicate_ids(soup, ["a", "b"], id_generator())

        assert resolved == {"a": ["id-1", "id-3"], "b": ["id-2", "id-4"]}
        ids = [div["component-id"] for div in soup.find_all("div")]
        assert ids == ["id-1", "id-2", "id-3", "id-4"]


class TestReplaceInSubtree:
    def test_replaces_in_attributes_and_text(self):
        soup = parse_html(
            '<div id="root" data-x="abc"><span data-abc-id="abc" class="abc other">abc and ABC</span>'
            "<!-- abc --></div>"
        )
        count = replace_in_subtree(soup.div, "abc", "new")

        assert count == 5
        assert serialize_html(soup) == (
            '<div id="root" data-x="abc"><span data-new-id="new" class="new other">new and ABC</span>'
            "<!-- new --></div>"
        )

    def test_escapes_pattern(self):
        soup = parse_html("<div><span>a.c abc</span></div>")
        replace_in_subtree(soup.div, "a.c", "x")

        assert soup.span.string == "x abc"

    def test_exact_attrs(self):
        soup = parse_html(
            '<div><span component-id="abc" data-x="abc-1"></span><span component-id="abc-1"></span></div>'
        )
        count = replace_in_subtree(soup.div, "abc", "new", exact_attrs=("component-id",))

        assert count == 2
        first, second = soup.find_all("span")
        assert first["component-id"] == "new"
        assert first["data-x"] == "new-1"
        assert second["component-id"] == "abc-1"
