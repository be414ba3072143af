"""
Thin layer over BeautifulSoup, so the rest of the library only depends on a small
set of tree operations: parse / serialize, finding component markers, class lists,
and rewriting text within a subtree.
"""

from collections.abc import Collection, Iterable

from bs4 import BeautifulSoup, NavigableString, Tag

# NOTE: We use the stdlib `html.parser` builder on purpose. Unlike `lxml` or `html5lib`,
# it does NOT insert missing `<html>`, `<head>` or `<body>` tags, so we can tell
# whether the rendered markup was a full document or only a fragment.
HTML_PARSER = "html.parser"

# `html5` formatter renders empty attributes as booleans (`<script defer src="...">`)
# and void elements without the closing slash (`<link href="...">`)
HTML_FORMATTER = "html5"


def parse_html(content: str) -> BeautifulSoup:
    return BeautifulSoup(content, HTML_PARSER)


def serialize_html(soup: BeautifulSoup | Tag) -> str:
    return soup.decode(formatter=HTML_FORMATTER)


def get_classes(tag: Tag) -> list[str]:
    classes = tag.get("class")
    if classes is None:
        return []
    if isinstance(classes, str):
        return classes.split()
    return list(classes)


def add_classes(tag: Tag, *class_names: str | None) -> None:
    """Append the given classes to the element's class list, skipping empty and already present ones."""
    classes = get_classes(tag)
    for class_name in class_names:
        if class_name and class_name not in classes:
            classes.append(class_name)
    tag["class"] = classes


def is_component(tag: Tag, component_class: str) -> bool:
    """An element is a component root if any of its classes starts with the component class prefix."""
    return any(class_name.startswith(component_class) for class_name in get_classes(tag))


def find_components(soup: BeautifulSoup | Tag, component_class: str) -> list[Tag]:
    """Find all component root elements, in document order."""
    return soup.find_all(lambda tag: is_component(tag, component_class))


def closest_component(tag: Tag, component_class: str) -> Tag | None:
    """Find the nearest ancestor of the given element that is a component root."""
    return tag.find_parent(lambda parent: is_component(parent, component_class))


def find_assets(soup: BeautifulSoup | Tag, names: Iterable[str]) -> list[Tag]:
    return soup.find_all(list(names))


def replace_in_subtree(tag: Tag, old: str, new: str, exact_attrs: Collection[str] = ()) -> int:
    """
    Replace all literal occurrences of `old` with `new` in the CONTENT of the given
    element, that is in all its descendants' attribute names, attribute values, and text
    (incl. `<script>` bodies and comments). The element's own attributes are left untouched.

    Values of the attributes named in `exact_attrs` are replaced only if they are equal
    to `old` as a whole. E.g. the `component-id` of a nested component with ID `abc-2`
    must not change when replacing `abc`.

    This is the tree equivalent of `element.innerHTML = element.innerHTML.replace(old, new)`,
    but keeps the existing nodes, so references to them remain valid.

    Returns the number of replaced occurrences.
    """
    count = 0

    def sub(value: str) -> str:
        nonlocal count
        n = value.count(old)
        count += n
        return value.replace(old, new) if n else value

    def sub_attr(name: str, value: str | list[str]) -> str | list[str]:
        if name in exact_attrs:
            if value != old:
                return value
            return sub(value)
        if isinstance(value, list):
            return [sub(v) for v in value]
        return sub(value)

    # NOTE: Collect first, then mutate. Replacing a string node while iterating
    # over `descendants` would break the iteration.
    for node in list(tag.descendants):
        if isinstance(node, Tag):
            node.attrs = {sub(name): sub_attr(name, value) for name, value in node.attrs.items()}
        elif isinstance(node, NavigableString) and old in node:
            # Keep the string subclass (`Script`, `Comment`, ...), as it affects how it's serialized
            node.replace_with(type(node)(sub(str(node))))

    return count
