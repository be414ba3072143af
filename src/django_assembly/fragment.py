"""
Producer side of the composition: wrapping a component's rendered HTML so that
`compose_document()` can later recognize it, and serializing its hydration data.
"""

from collections.abc import Awaitable, Callable, Sequence
from typing import Any

from django.forms.utils import flatatt
from django.utils.html import format_html, json_script
from django.utils.safestring import SafeString, mark_safe

from django_assembly.app_settings import app_settings
from django_assembly.cache import cache_rendered_component, get_cached_rendered_component
from django_assembly.composition import compose_document
from django_assembly.constants import (
    COMPONENT_DATA_ID_ATTR,
    COMPONENT_ID_ATTR,
    COMPONENT_NAME_ATTR,
    COMPONENT_NEST_ATTR,
    COMPONENT_URL_ATTR,
    COMPONENT_VIEW_ATTR,
    DATA_ID_PREFIX,
    HTML_WRAPPER_TAG,
)
from django_assembly.context import DocumentContext
from django_assembly.safety import asafe_render, safe_render
from django_assembly.util.misc import default


def render_data_loader(context: DocumentContext) -> SafeString:
    """
    Render the context's client-safe data as
    `<script id="__ASSEMBLY_DATA__{id}" type="application/json">...</script>`.
    """
    return json_script(context.to_client_dict(), f"{DATA_ID_PREFIX}{context.id}")


def wrap_component(
    html: str,
    context: DocumentContext,
    *,
    path: str | None = None,
    url: str | None = None,
    nest_level: int = 0,
    class_names: Sequence[str] = (),
    attrs: dict[str, Any] | None = None,
    as_document: bool = False,
) -> SafeString:
    """
    Append the hydration data to the rendered HTML, and, unless rendering a whole document,
    wrap it in an element that marks it as a component:

    ```html
    <section
        class="assembly-component {path} {view_name} {class_names}"
        component-id="{id}"
        component-data-id="{id}"
        component-name="{path}"
        component-view-name="{view_name}"
        component-nest-level="{nest_level}"
        component-url="{url}"
    >
        {html}
        <script id="__ASSEMBLY_DATA__{id}" type="application/json">{...}</script>
    </section>
    ```

    `path` defaults to the context's component name. All values are escaped, `html` is not.
    """
    content = mark_safe(html) + render_data_loader(context)
    if as_document:
        return content

    path = default(path, context.component_name)
    all_attrs: dict[str, Any] = {
        "class": " ".join(
            class_name
            for class_name in (app_settings.COMPONENT_CLASS, path, context.view_name, *class_names)
            if class_name
        ),
        COMPONENT_ID_ATTR: context.id,
        COMPONENT_DATA_ID_ATTR: context.id,
        COMPONENT_NAME_ATTR: path,
        COMPONENT_VIEW_ATTR: context.view_name,
        COMPONENT_NEST_ATTR: str(nest_level),
    }
    if url:
        all_attrs[COMPONENT_URL_ATTR] = url
    if attrs:
        all_attrs.update(attrs)

    return format_html(
        "<{tag}{attrs}>{content}</{tag}>",
        tag=HTML_WRAPPER_TAG,
        attrs=flatatt(all_attrs),
        content=content,
    )


def _finalize_view(
    html: str,
    context: DocumentContext,
    as_document: bool,
    gen_id: Callable[[], str] | None,
    wrapper_kwargs: dict[str, Any],
) -> SafeString:
    output = wrap_component(html, context, as_document=as_document, **wrapper_kwargs)
    if as_document:
        output = compose_document(output, context, gen_id)
    return output


def render_view(
    render_fn: Callable[[DocumentContext], str],
    context: DocumentContext,
    *,
    as_document: bool = False,
    fallback_template: str | None = None,
    debug: bool | None = None,
    cache_key: str | None = None,
    gen_id: Callable[[], str] | None = None,
    **wrapper_kwargs: Any,
) -> SafeString:
    """
    Render a component (or a whole document) with the given renderer:

    1. If `cache_key` is given and caching is enabled, return the cached HTML if any.
    2. Call the renderer with `safe_render()`, so a failure renders an error fragment instead.
    3. Wrap the result with `wrap_component()`.
    4. If `as_document=True`, compose the final document with `compose_document()`.

    `debug` defaults to the `debug` setting. Extra kwargs are passed to `wrap_component()`.

    NOTE: Nothing is cached in debug mode.
    """
    debug = default(debug, app_settings.DEBUG)
    use_cache = cache_key is not None and not debug

    if use_cache:
        cached = get_cached_rendered_component(cache_key)
        if cached is not None:
            return mark_safe(cached)

    html = safe_render(render_fn, context, fallback_template, debug=debug)
    output = _finalize_view(html, context, as_document, gen_id, wrapper_kwargs)

    if use_cache:
        cache_rendered_component(cache_key, output)
    return output


async def arender_view(
    render_fn: Callable[[DocumentContext], Awaitable[str]],
    context: DocumentContext,
    *,
    as_document: bool = False,
    fallback_template: str | None = None,
    debug: bool | None = None,
    cache_key: str | None = None,
    gen_id: Callable[[], str] | None = None,
    **wrapper_kwargs: Any,
) -> SafeString:
    """Same as `render_view()`, but for async renderers."""
    debug = default(debug, app_settings.DEBUG)
    use_cache = cache_key is not None and not debug

    if use_cache:
        cached = get_cached_rendered_component(cache_key)
        if cached is not None:
            return mark_safe(cached)

    html = await asafe_render(render_fn, context, fallback_template, debug=debug)
    output = _finalize_view(html, context, as_document, gen_id, wrapper_kwargs)

    if use_cache:
        cache_rendered_component(cache_key, output)
    return output
