"""
All code related to the `<script>` and `<link>` tags that components render.

The assets are handled in three steps:

1. All scripts and links in the document are marked as belonging to the document.
2. Assets inside a component are re-pathed to the component's mount path, and marked
   as belonging to their nearest component, via the `component-data-id` attribute.
3. Once the document has its final shape, the marked assets are moved out of `<body>`,
   into `<head>` (external scripts and stylesheets) or to the end of `<body>` (inline scripts).
"""

from typing import NamedTuple

from bs4 import BeautifulSoup, Tag

from django_assembly.constants import (
    ASSET_TAGS,
    COMPONENT_DATA_ID_ATTR,
    COMPONENT_ID_ATTR,
    COMPONENT_NAME_ATTR,
    COMPONENT_URL_ATTR,
    COMPONENT_VIEW_ATTR,
)
from django_assembly.util.html import closest_component, find_assets


class EnclosingComponent(NamedTuple):
    element: Tag
    name: str | None
    view: str | None
    path_prefix: str | None
    """
    Prefix for relative asset URLs. `component-url` if set, else `/{name}/{view}/`.
    `None` if neither is known.
    """


def get_enclosing_component(element: Tag, component_class: str) -> EnclosingComponent | None:
    """Resolve the nearest component that contains the given element."""
    component = closest_component(element, component_class)
    if component is None:
        return None

    name = component.get(COMPONENT_NAME_ATTR)
    view = component.get(COMPONENT_VIEW_ATTR)
    url = component.get(COMPONENT_URL_ATTR)

    if url:
        path_prefix: str | None = url
    elif name and view:
        path_prefix = f"/{name}/{view}/"
    else:
        path_prefix = None

    return EnclosingComponent(element=component, name=name, view=view, path_prefix=path_prefix)


def tag_document_assets(soup: BeautifulSoup | Tag, document_id: str) -> None:
    """
    Mark all scripts and links as belonging to the document. External scripts are set
    to `defer`, so they are fetched in the background and run once the DOM is ready.
    """
    for asset in find_assets(soup, ASSET_TAGS):
        if asset.name == "script" and asset.has_attr("src"):
            asset["defer"] = ""
        asset[COMPONENT_DATA_ID_ATTR] = document_id


def tag_component_assets(soup: BeautifulSoup | Tag, component_class: str) -> int:
    """
    For each script and link inside a component:

    - Point relative `src` / `href` to the nearest component's mount path
    - Set `component-data-id` to the nearest component's ID

    Inline scripts are only marked, not re-pathed.

    Returns the number of tagged assets.
    """
    count = 0
    for asset in find_assets(soup, ASSET_TAGS):
        enclosing = get_enclosing_component(asset, component_class)
        if enclosing is None:
            continue

        prefix = enclosing.path_prefix
        url_attr = "src" if asset.name == "script" else "href"
        url = asset.get(url_attr)
        if url is not None and prefix and not url.startswith(prefix):
            asset[url_attr] = f"{prefix}{url}"
            if asset.name == "script":
                asset["defer"] = ""

        asset[COMPONENT_DATA_ID_ATTR] = enclosing.element[COMPONENT_ID_ATTR]
        count += 1

    return count


class RelocationResult(NamedTuple):
    root_scripts: list[Tag]
    head_scripts: list[Tag]
    inline_scripts: list[Tag]
    links: list[Tag]


def relocate_assets(head: Tag, body: Tag, document_id: str) -> RelocationResult:
    """
    Move the marked scripts and links out of the component subtrees:

    - Inline scripts go to the end of `<body>`, so they run once the DOM is populated.
    - External scripts of the document itself go to the start of `<head>`,
      in the order they appear in the document.
    - External scripts of other components are appended to `<head>`.
    - Links are appended to `<head>`.

    NOTE: There is no explicit priority for stylesheets, the order in which the links are
    appended to `<head>` is the order of the CSS cascade.
    """
    # Collect first, then move. Moving the elements while searching would
    # visit the inline scripts again once they are appended to `<body>`.
    scripts = [script for script in body.find_all("script") if script.has_attr(COMPONENT_DATA_ID_ATTR)]
    links = [link for link in body.find_all("link") if link.has_attr(COMPONENT_DATA_ID_ATTR)]

    result = RelocationResult(root_scripts=[], head_scripts=[], inline_scripts=[], links=[])

    for script in scripts:
        owner_id = script[COMPONENT_DATA_ID_ATTR]
        script.extract()

        if not script.has_attr("src"):
            del script[COMPONENT_DATA_ID_ATTR]
            body.append(script)
            result.inline_scripts.append(script)
        elif owner_id == document_id:
            head.insert(len(result.root_scripts), script)
            result.root_scripts.append(script)
        else:
            head.append(script)
            result.head_scripts.append(script)

    for link in links:
        del link[COMPONENT_DATA_ID_ATTR]
        link.extract()
        head.append(link)
        result.links.append(link)

    return result
