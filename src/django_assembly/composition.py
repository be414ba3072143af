"""Compose the rendered HTML of many components into a single hydration-ready document."""

from collections.abc import Callable
from typing import TypeVar, cast

from django.utils.safestring import SafeString, mark_safe

from django_assembly.app_settings import app_settings
from django_assembly.assets import relocate_assets, tag_component_assets, tag_document_assets
from django_assembly.context import DocumentContext
from django_assembly.document import (
    build_runtime_bundle_url,
    ensure_document_shell,
    inject_root_identity,
    inject_runtime,
)
from django_assembly.identity import resolve_duplicate_ids, scan_component_ids
from django_assembly.util.html import parse_html, serialize_html
from django_assembly.util.logger import trace_document_msg
from django_assembly.util.misc import gen_id as default_gen_id

TContent = TypeVar("TContent", bound=bytes | str)


def compose_document(
    content: TContent,
    context: DocumentContext,
    gen_id: Callable[[], str] | None = None,
) -> TContent:
    """
    Given an HTML string (str or bytes) that contains parts rendered by components,
    return a copy of the HTML transformed into a single document that's ready
    to be hydrated in the browser:

    - Components that share the same `component-id` get new unique IDs.
    - Components' scripts and links point to the components' mount paths, and are moved
      into `<head>` (external scripts, stylesheets) or the end of `<body>` (inline scripts).
    - If the HTML is only a fragment, it's wrapped in `<html>`, `<head>` and `<body>`.
    - `<body>` is marked as the root component, with the ID and names from the context.
    - The client runtime script is inserted as the first child of `<head>`.

    Raises `ComponentIdError` if a component element has no `component-id`.
    Nothing is returned in that case.

    **Args:**

    - `content` (str | bytes): The rendered HTML. Returns the same type.
    - `context` (DocumentContext): Data about the root component of the document.
    - `gen_id` (Callable[[], str], optional): Generator of new component IDs.
        Defaults to random UUIDs.

    **Example:**

    ```python
    def my_view(request):
        context = DocumentContext(id="a1b2c3", component_name="shop", view_name="cart")
        html = render_to_string("shop/cart.html", {"items": items})
        return HttpResponse(compose_document(html, context))
    ```
    """
    is_safestring = isinstance(content, SafeString)
    text = content.decode() if isinstance(content, bytes) else str(content)

    component_class = app_settings.COMPONENT_CLASS
    soup = parse_html(text)

    tag_document_assets(soup, context.id)

    scan = scan_component_ids(soup, component_class)
    trace_document_msg(
        "IDS_SCANNED",
        context.id,
        f"components={len(scan.components)} duplicates={len(scan.duplicates)}",
    )

    tagged_count = tag_component_assets(soup, component_class)
    trace_document_msg("ASSETS_TAGGED", context.id, f"assets={tagged_count}")

    resolved = resolve_duplicate_ids(soup, scan.duplicates, gen_id or default_gen_id)
    if resolved:
        trace_document_msg("IDS_RESOLVED", context.id, f"ids={','.join(resolved)}")

    head, body, skip_relocation = ensure_document_shell(
        soup,
        context,
        component_class=component_class,
        default_title=app_settings.DEFAULT_TITLE,
        html_lang=app_settings.HTML_LANG,
    )

    if skip_relocation:
        trace_document_msg("RELOCATION_SKIPPED", context.id, "body=synthesized")
    else:
        relocated = relocate_assets(head, body, context.id)
        trace_document_msg(
            "ASSETS_RELOCATED",
            context.id,
            f"root_scripts={len(relocated.root_scripts)} scripts={len(relocated.head_scripts)}"
            f" inline_scripts={len(relocated.inline_scripts)} links={len(relocated.links)}",
        )

    inject_root_identity(body, context, component_class)

    bundle_url = build_runtime_bundle_url(context.server_url, app_settings.RUNTIME_BUNDLE_PATH)
    inject_runtime(soup, head, bundle_url)

    output: str | bytes = serialize_html(soup)

    # Return the same type as we were given
    if isinstance(content, bytes):
        output = output.encode()
    elif is_safestring:
        output = mark_safe(output)
    return cast("TContent", output)
