from urllib.parse import urlsplit

from bs4 import BeautifulSoup, Doctype, Tag

from django_assembly.constants import COMPONENT_ID_ATTR
from django_assembly.context import DocumentContext
from django_assembly.util.html import add_classes, closest_component


def _merge_into(target: Tag, sections: list[Tag]) -> None:
    for section in sections:
        if section is target:
            continue
        for child in list(section.contents):
            target.append(child.extract())
        section.decompose()


def _merge_bodies(soup: BeautifulSoup, component_class: str) -> Tag | None:
    """
    Find the `<body>` of the document, the first one that's not inside a component.

    If a component rendered a whole document, its `<body>` is unwrapped in place, so that its
    content stays within the component. Content of other top-level `<body>`s is moved into
    the document's `<body>`.
    """
    bodies = soup.find_all("body")
    body = next((section for section in bodies if closest_component(section, component_class) is None), None)
    for section in bodies:
        if section is body:
            continue
        if body is None or closest_component(section, component_class) is not None:
            section.unwrap()
        else:
            _merge_into(body, [section])
    return body


def _is_document_level(section: Tag, component_class: str) -> bool:
    # A `<head>` or `<html>` rendered by a component ends up inside the component's subtree
    return section.find_parent("body") is None and closest_component(section, component_class) is None


def _find_html(soup: BeautifulSoup, component_class: str) -> Tag | None:
    """Find the `<html>` of the document. `<html>` elements rendered by components are unwrapped."""
    html = None
    for section in soup.find_all("html"):
        if html is None and _is_document_level(section, component_class):
            html = section
        elif section is not html:
            section.unwrap()
    return html


def _merge_heads(soup: BeautifulSoup, component_class: str) -> tuple[Tag, bool]:
    """
    Find the `<head>` of the document, and move into it the content of all other `<head>`s.
    Only a `<head>` that is neither inside `<body>` nor inside a component can be the document's.

    Returns `(head, created)`. If there is no such `<head>`, a new one is created
    (but not yet inserted into the tree).
    """
    heads = soup.find_all("head")
    head = next((section for section in heads if _is_document_level(section, component_class)), None)
    created = head is None
    if head is None:
        head = soup.new_tag("head")
    _merge_into(head, heads)
    return head, created


def ensure_document_shell(
    soup: BeautifulSoup,
    context: DocumentContext,
    component_class: str,
    default_title: str,
    html_lang: str,
) -> tuple[Tag, Tag, bool]:
    """
    Make sure the document has exactly one `<head>` and one `<body>`.

    If there's no `<body>`, all content (except the doctype and `<head>`) is wrapped in
    `<body id="{id}" class="{component_class} {view_name} {component_name}">`.

    If there's no `<html>`, the whole document (except the doctype) is wrapped in it.
    If there's no `<head>`, a `<head>` with `<title>` is inserted as the first child of `<html>`.

    `<html>`, `<head>` and `<body>` elements rendered inside a component (e.g. a component that
    rendered a whole document) are not the document's. Their `<head>` content is moved to
    the document's `<head>`, the `<html>` and `<body>` tags are unwrapped in place.

    Returns `(head, body, skip_relocation)`. Relocation of component assets is skipped
    when `<body>` had to be created, because then the wrapper itself is the only
    boundary of the content, and assets may sit at the top level of the fragment.
    """
    skip_relocation = False

    html = _find_html(soup, component_class)
    head, created_head = _merge_heads(soup, component_class)
    body = _merge_bodies(soup, component_class)

    if body is None:
        skip_relocation = True
        body = soup.new_tag("body", attrs={"id": context.id})
        add_classes(body, component_class, context.view_name, context.component_name)

        container = html or soup
        for node in list(container.contents):
            if node is head or isinstance(node, Doctype):
                continue
            body.append(node.extract())
        container.append(body)

    if html is None:
        html = soup.new_tag("html", attrs={"lang": html_lang})
        for node in list(soup.contents):
            if isinstance(node, Doctype):
                continue
            html.append(node.extract())
        soup.append(html)

    if created_head:
        if head.title is None:
            title = soup.new_tag("title")
            title.string = context.title or default_title
            head.insert(0, title)
        html.insert(0, head)

    return head, body, skip_relocation


def inject_root_identity(body: Tag, context: DocumentContext, component_class: str) -> None:
    """Mark `<body>` as the root component of the document."""
    body[COMPONENT_ID_ATTR] = context.id
    add_classes(body, component_class, context.view_name, context.component_name)


def build_runtime_bundle_url(server_url: str | None, bundle_path: str) -> str:
    """
    Build the absolute URL of the client runtime bundle, e.g.
    `https://example.com:8000/bundles/assembly.client.bundle.js`.

    Without a server URL, only the bundle path is returned.
    """
    if not server_url:
        return bundle_path

    parts = urlsplit(server_url)
    if parts.scheme not in ("http", "https") or not parts.hostname:
        raise ValueError(f"Invalid server URL '{server_url}', expected an absolute http(s) URL")

    # `hostname` strips the brackets from IPv6 addresses
    host = f"[{parts.hostname}]" if ":" in parts.hostname else parts.hostname
    port = f":{parts.port}" if parts.port is not None else ""
    return f"{parts.scheme}://{host}{port}{bundle_path}"


def inject_runtime(soup: BeautifulSoup, head: Tag, bundle_url: str) -> Tag:
    """
    Insert `<script defer src="{bundle_url}">` as the very first child of `<head>`.

    Since all component scripts are deferred too, and deferred scripts run in document
    order, the runtime is guaranteed to run before any component script.
    """
    # If the document was already composed once, drop the previous runtime script
    for script in head.find_all("script", src=bundle_url):
        script.decompose()

    script = soup.new_tag("script", attrs={"defer": "", "src": bundle_url})
    head.insert(0, script)
    return script
