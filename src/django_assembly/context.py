from dataclasses import dataclass, field
from typing import Any

from django_assembly.errors import DuplicateHydrationKeyError


@dataclass
class DocumentContext:
    """
    Per-render data about the document (or component) being rendered.

    A new context is created for each render. It's passed by reference through the
    composition pipeline and the renderers, and thrown away once the HTML is sent.
    Do NOT share one instance between renders.

    **Example:**

    ```python
    from django_assembly import DocumentContext, compose_document

    context = DocumentContext(
        id="a1b2c3",
        component_name="dashboard",
        view_name="desktop",
        title="Dashboard",
        server_url="https://example.com:8000",
    )
    html = compose_document(rendered, context)
    ```
    """

    id: str
    """ID of the root component. Set as `component-id` on `<body>`."""
    component_name: str = ""
    """Name of the root component. Added as a class to `<body>`."""
    view_name: str = ""
    """Name of the root component's view. Added as a class to `<body>`."""
    title: str | None = None
    """Title of a synthesized `<head>`. Falls back to the `default_title` setting."""
    server_url: str | None = None
    """Public URL of the server, used to build the URL of the client runtime bundle."""
    data: dict[str, Any] = field(default_factory=dict)
    """Hydration data, serialized into the document for the client to pick up."""

    def to_client_dict(self) -> dict[str, Any]:
        """The subset of the context that is safe to expose to the browser."""
        return {
            "id": self.id,
            "componentName": self.component_name,
            "viewName": self.view_name,
            "serverUrl": self.server_url,
            "data": self.data,
        }


def add_to_hydration(
    context: DocumentContext,
    key: str,
    value: Any,
    overwrite: bool = False,
) -> dict[str, Any]:
    """
    Add an entry to the hydration data of the given context, so that it's available
    to the component in the browser.

    Raises `DuplicateHydrationKeyError` if the key is already set and `overwrite` is `False`.

    Returns the updated hydration data.

    **Example:**

    ```python
    add_to_hydration(context, "user", {"name": "John"})
    add_to_hydration(context, "user", {"name": "Jane"}, overwrite=True)
    ```
    """
    if key in context.data and not overwrite:
        raise DuplicateHydrationKeyError(f"{key} is already set in the context.data.")

    context.data[key] = value
    return context.data
