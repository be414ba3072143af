import json

import pytest
from django.utils.safestring import SafeString
from pytest_django.asserts import assertHTMLEqual

from django_assembly import (
    DocumentContext,
    add_to_hydration,
    arender_view,
    compose_document,
    render_data_loader,
    render_view,
    wrap_component,
)
from django_assembly.testing import assembly_test
from django_assembly.util.html import parse_html

from .testutils import id_generator, setup_test_config

setup_test_config()


def _context(**kwargs):
    return DocumentContext(**{"id": "abc", "component_name": "card", "view_name": "default", **kwargs})


def _loaded_data(html: str, component_id: str):
    script = parse_html(html).find("script", id=f"__ASSEMBLY_DATA__{component_id}")
    return json.loads(script.string)


class TestRenderDataLoader:
    def test_render(self):
        context = _context(data={"user": {"name": "<John>"}})
        rendered = render_data_loader(context)

        assert isinstance(rendered, SafeString)
        assert rendered.startswith('<script id="__ASSEMBLY_DATA__abc" type="application/json">')
        # Escaped, so the data can't close the script tag
        assert "<John>" not in rendered
        assert _loaded_data(rendered, "abc") == {
            "id": "abc",
            "componentName": "card",
            "viewName": "default",
            "serverUrl": None,
            "data": {"user": {"name": "<John>"}},
        }


@assembly_test
class TestWrapComponent:
    def test_wrap(self):
        rendered = wrap_component("<p>Card</p>", _context())

        assertHTMLEqual(
            rendered,
            """
            <section
                class="c-mark card default"
                component-id="abc"
                component-data-id="abc"
                component-name="card"
                component-view-name="default"
                component-nest-level="0"
            >
                <p>Card</p>
                <script id="__ASSEMBLY_DATA__abc" type="application/json">
                    {"id": "abc", "componentName": "card", "viewName": "default", "serverUrl": null, "data": {}}
                </script>
            </section>
            """,
        )

    def test_wrap_with_options(self):
        rendered = wrap_component(
            "<p>Card</p>",
            _context(),
            path="shop/card",
            url="https://cdn.example.com/card/",
            nest_level=2,
            class_names=["featured"],
            attrs={"data-x": '"quoted"'},
        )
        section = parse_html(rendered).section

        assert section["class"] == ["c-mark", "shop/card", "default", "featured"]
        assert section["component-name"] == "shop/card"
        assert section["component-url"] == "https://cdn.example.com/card/"
        assert section["component-nest-level"] == "2"
        assert section["data-x"] == '"quoted"'
        assert 'data-x="&quot;quoted&quot;"' in rendered

    def test_as_document(self):
        rendered = wrap_component("<p>Page</p>", _context(), as_document=True)
        soup = parse_html(rendered)

        assert soup.section is None
        assert soup.p.string == "Page"
        assert soup.script["id"] == "__ASSEMBLY_DATA__abc"

    def test_wrapped_components_compose(self):
        card = wrap_component("<p>Card</p><script>mount('abc')</script>", _context())
        page = f"<html><head></head><body>{card}{card}</body></html>"
        rendered = compose_document(page, DocumentContext(id="root1"), id_generator())
        soup = parse_html(rendered)

        first, second = soup.find_all("section")
        assert first["component-id"] == "id-1"
        assert second["component-id"] == "id-2"

        # The hydration data follows the new IDs
        assert _loaded_data(rendered, "id-1")["id"] == "id-1"
        assert _loaded_data(rendered, "id-2")["id"] == "id-2"
        assert [script.string for script in soup.body.find_all("script") if not script.has_attr("id")] == [
            "mount('id-1')",
            "mount('id-2')",
        ]


@assembly_test
class TestRenderView:
    def test_render_component(self):
        context = _context()
        add_to_hydration(context, "count", 3)
        rendered = render_view(lambda ctx: f"<p>{ctx.component_name}</p>", context, nest_level=1)
        section = parse_html(rendered).section

        assert section["component-id"] == "abc"
        assert section["component-nest-level"] == "1"
        assert section.p.string == "card"
        assert _loaded_data(rendered, "abc")["data"] == {"count": 3}

    def test_render_document(self):
        rendered = render_view(
            lambda ctx: "<main>Home</main>",
            _context(id="root1", title="Home"),
            as_document=True,
        )
        soup = parse_html(rendered)

        assert soup.title.string == "Home"
        assert soup.body["component-id"] == "root1"
        assert soup.body.main.string == "Home"
        assert soup.head.contents[0]["src"] == "/bundles/assembly.client.bundle.js"
        assert soup.find("script", id="__ASSEMBLY_DATA__root1") is not None

    def test_render_failure(self):
        def fail(context):
            raise RuntimeError("Boom")

        rendered = render_view(fail, _context(), fallback_template="<p>Unavailable</p>", debug=False)
        section = parse_html(rendered).section

        assert section["component-id"] == "abc"
        assert section.p.string == "Unavailable"

    @assembly_test(assembly_settings={"component_class": "c-mark", "debug": True})
    def test_render_failure_debug_from_settings(self):
        def fail(context):
            raise RuntimeError("Boom")

        rendered = render_view(fail, _context(), fallback_template="<p>Unavailable</p>")

        assert "Rendering Error in card/default" in rendered

    @assembly_test(assembly_settings={"component_class": "c-mark", "cache_enabled": True})
    def test_cache(self):
        calls = []

        def render(context):
            calls.append(context.id)
            return "<p>Card</p>"

        first = render_view(render, _context(), cache_key="card:abc")
        second = render_view(render, _context(), cache_key="card:abc")

        assert calls == ["abc"]
        assert first == second
        assert isinstance(second, SafeString)

    @assembly_test(assembly_settings={"component_class": "c-mark", "cache_enabled": True})
    def test_no_cache_in_debug(self):
        calls = []

        def render(context):
            calls.append(context.id)
            return "<p>Card</p>"

        render_view(render, _context(), cache_key="card:abc", debug=True)
        render_view(render, _context(), cache_key="card:abc", debug=True)

        assert calls == ["abc", "abc"]

    @pytest.mark.asyncio
    async def test_async(self):
        async def render(context):
            return "<p>Async</p>"

        rendered = await arender_view(render, _context())
        section = parse_html(rendered).section

        assert section["component-id"] == "abc"
        assert section.p.string == "Async"
