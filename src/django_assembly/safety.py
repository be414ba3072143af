"""
Wrappers that limit the damage a single failing component or upstream request can do.

A page is composed of many components. If one of them fails to render, the rest of the page
should still be sent. And if fetching data fails, the caller should get one kind of error,
with an HTTP status code, no matter which HTTP library raised it.
"""

import traceback
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from django.utils.html import format_html
from django.utils.safestring import SafeString, mark_safe
from requests import RequestException

from django_assembly.constants import ERROR_MARKER_ATTR
from django_assembly.context import DocumentContext
from django_assembly.errors import HttpError
from django_assembly.util.logger import logger

T = TypeVar("T")

DEFAULT_FETCH_ERROR_MESSAGE = "Failed to fetch data"
NO_RESPONSE_ERROR_MESSAGE = "Request timed out or no response received"


#########################################################
# Render
#########################################################


def render_error_fragment(
    error: BaseException,
    context: DocumentContext,
    fallback_template: str | None = None,
    debug: bool = False,
) -> SafeString:
    """
    Render the HTML that replaces a component that failed to render.

    - With `debug=True`, returns a box with the error message and traceback.
    - Otherwise returns `fallback_template` if given, or a minimal error message.
    """
    if debug:
        return format_html(
            '<div style="border: 2px solid #ff5757; background: #fff0f0; padding: 20px; margin: 20px 0;'
            ' border-radius: 4px; font-family: sans-serif;">'
            '<h2 style="color: #d32f2f; margin-top: 0;">Rendering Error in {}/{}</h2>'
            '<p style="font-weight: bold;">{}</p>'
            '<pre style="background: #f5f5f5; padding: 15px; overflow: auto; border-radius: 4px;">{}</pre>'
            "</div>",
            context.component_name,
            context.view_name,
            str(error) or "Unknown error",
            "".join(traceback.format_exception(type(error), error, error.__traceback__)),
        )

    if fallback_template:
        return mark_safe(fallback_template)

    return mark_safe(f'<div {ERROR_MARKER_ATTR}="true" style="padding: 10px;"><p>Error rendering component</p></div>')


def _log_render_error(context: DocumentContext) -> None:
    logger.exception(f"Render error for {context.component_name}/{context.view_name} (ID {context.id})")


def safe_render(
    render_fn: Callable[[DocumentContext], T],
    context: DocumentContext,
    fallback_template: str | None = None,
    *,
    debug: bool = False,
) -> T | SafeString:
    """
    Call `render_fn(context)`. If it raises, log the error and return an error fragment
    instead (see `render_error_fragment()`), so only the failing component is affected.

    Never raises (for `Exception` subclasses).

    **Example:**

    ```python
    html = safe_render(render_sidebar, context, fallback_template="<aside></aside>")
    ```
    """
    try:
        return render_fn(context)
    except Exception as err:
        _log_render_error(context)
        return render_error_fragment(err, context, fallback_template, debug)


async def asafe_render(
    render_fn: Callable[[DocumentContext], Awaitable[T]],
    context: DocumentContext,
    fallback_template: str | None = None,
    *,
    debug: bool = False,
) -> T | SafeString:
    """Same as `safe_render()`, but awaits the result of `render_fn`."""
    try:
        return await render_fn(context)
    except Exception as err:
        _log_render_error(context)
        return render_error_fragment(err, context, fallback_template, debug)


#########################################################
# Fetch
#########################################################


def _get_request_and_response(err: BaseException) -> tuple[Any, Any]:
    if isinstance(err, RequestException):
        return err.request, err.response
    # Other HTTP clients' errors that follow the same shape
    return getattr(err, "request", None), getattr(err, "response", None)


def _get_url(request: Any, response: Any) -> str | None:
    for source in (response, request):
        url = getattr(source, "url", None)
        if url:
            return url
    return None


def _get_response_body(response: Any) -> Any:
    # `requests.Response`, and any response-like object with `.json()` / `.text`
    json_fn = getattr(response, "json", None)
    if not callable(json_fn):
        return getattr(response, "text", None)
    try:
        return json_fn()
    except ValueError:
        # Body is not JSON
        return getattr(response, "text", None)


def to_http_error(
    err: BaseException,
    error_message: str = DEFAULT_FETCH_ERROR_MESSAGE,
    debug: bool = False,
) -> HttpError:
    """
    Convert an error raised while fetching data into `HttpError`.

    The error is classified as one of:

    - The server responded with an error status (`err.response` is set):
        `HttpError` with the response's status code, and the response body and URL as details.
    - The request was sent, but no response was received (`err.request` is set),
        e.g. on timeouts or connection errors: `HttpError` with status 408.
    - The request could not be set up: `HttpError` with status 500 and the original message.
        The traceback is included only when `debug=True`.

    This follows how `requests.RequestException` (and its subclasses) expose
    the request and response.
    """
    if isinstance(err, HttpError):
        return err

    request, response = _get_request_and_response(err)
    if response is not None:
        return HttpError(
            error_message,
            getattr(response, "status_code", None) or 500,
            {
                "details": _get_response_body(response),
                "url": _get_url(request, response),
            },
        )

    if request is not None:
        return HttpError(NO_RESPONSE_ERROR_MESSAGE, 408, {"url": _get_url(request, response)})

    return HttpError(
        error_message,
        500,
        {
            "message": str(err),
            "stack": "".join(traceback.format_exception(type(err), err, err.__traceback__)) if debug else None,
        },
    )


def safe_fetch(
    fetch_fn: Callable[[], T],
    error_message: str = DEFAULT_FETCH_ERROR_MESSAGE,
    *,
    debug: bool = False,
) -> T:
    """
    Call `fetch_fn()` and return its result. If it raises, re-raise the error as `HttpError`
    (see `to_http_error()`), chained to the original error.

    `HttpError` raised by `fetch_fn` is re-raised as is.

    **Example:**

    ```python
    import requests

    def fetch_profile():
        response = requests.get(url, timeout=5)
        response.raise_for_status()
        return response.json()

    profile = safe_fetch(fetch_profile, "Failed to load profile")
    ```
    """
    try:
        return fetch_fn()
    except HttpError:
        raise
    except Exception as err:
        raise to_http_error(err, error_message, debug) from err


async def asafe_fetch(
    fetch_fn: Callable[[], Awaitable[T]],
    error_message: str = DEFAULT_FETCH_ERROR_MESSAGE,
    *,
    debug: bool = False,
) -> T:
    """Same as `safe_fetch()`, but awaits the result of `fetch_fn`."""
    try:
        return await fetch_fn()
    except HttpError:
        raise
    except Exception as err:
        raise to_http_error(err, error_message, debug) from err
