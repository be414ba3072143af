"""
Component identity within a composed document.

Each component is rendered independently, so the same component may appear on a page
multiple times with the same `component-id` (e.g. when rendered from cache). Before
the document is sent to the browser, the IDs must be made unique again.
"""

from collections.abc import Callable
from typing import NamedTuple

from bs4 import BeautifulSoup, Tag

from django_assembly.constants import COMPONENT_DATA_ID_ATTR, COMPONENT_ID_ATTR
from django_assembly.errors import ComponentIdError
from django_assembly.util.html import find_components, replace_in_subtree
from django_assembly.util.misc import gen_id as default_gen_id


class IdentityScan(NamedTuple):
    components: list[Tag]
    """All component root elements, in document order."""
    found: set[str]
    """IDs that were seen at least once."""
    duplicates: list[str]
    """IDs that were seen more than once, in order of their first duplicate."""


def scan_component_ids(soup: BeautifulSoup | Tag, component_class: str) -> IdentityScan:
    """
    Walk all component root elements and sort their IDs into seen-once and duplicate IDs.

    Raises `ComponentIdError` if a component root has no `component-id`. This aborts
    the whole composition.

    The tree is NOT modified.
    """
    components = find_components(soup, component_class)
    found: set[str] = set()
    duplicates: dict[str, None] = {}

    for component in components:
        component_id = component.get(COMPONENT_ID_ATTR)
        # Every component and document gets an ID when rendered, this is a safety guard
        if not component_id:
            raise ComponentIdError(
                f"Component element must have an ID! Element <{component.name}> with classes "
                f"'{' '.join(component.get('class') or [])}' has no '{COMPONENT_ID_ATTR}' attribute.",
            )

        if component_id in found:
            duplicates[component_id] = None
        else:
            found.add(component_id)

    return IdentityScan(components=components, found=found, duplicates=list(duplicates))


def resolve_duplicate_ids(
    soup: BeautifulSoup | Tag,
    duplicates: list[str],
    gen_id: Callable[[], str] = default_gen_id,
) -> dict[str, list[str]]:
    """
    Give a fresh ID to EVERY element whose `component-id` is one of `duplicates`,
    including the first element that used the ID.

    The new ID is set as both `component-id` and `component-data-id`, and all occurrences
    of the old ID inside the element (e.g. in inline scripts, or `component-data-id` of
    the component's assets) are replaced with the new ID. Nested components keep their
    `component-id` unless it is exactly the old ID.

    Returns a mapping of `{old_id: [new_id, ...]}`, new IDs in document order.
    """
    if not duplicates:
        return {}

    duplicate_set = set(duplicates)

    # 1. Collect all affected elements before modifying anything.
    pending: list[Tag] = [
        tag for tag in soup.find_all(attrs={COMPONENT_ID_ATTR: True}) if tag[COMPONENT_ID_ATTR] in duplicate_set
    ]

    # 2. Apply, deepest elements first. If a component with a duplicate ID contains another
    #    component with the same ID, then the outer component's text replacement would otherwise
    #    also assign the OUTER element's new ID to the INNER element.
    new_ids = [gen_id() for _ in pending]
    resolved: dict[str, list[str]] = {old_id: [] for old_id in duplicates}
    for tag, new_id in zip(pending, new_ids):
        resolved[tag[COMPONENT_ID_ATTR]].append(new_id)

    for tag, new_id in reversed(list(zip(pending, new_ids))):
        old_id = tag[COMPONENT_ID_ATTR]
        tag[COMPONENT_ID_ATTR] = new_id
        tag[COMPONENT_DATA_ID_ATTR] = new_id
        replace_in_subtree(tag, old_id, new_id, exact_attrs=(COMPONENT_ID_ATTR,))

    return resolved
