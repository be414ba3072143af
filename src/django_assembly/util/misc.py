import uuid
from typing import TypeVar
from urllib.parse import urlsplit

from django_assembly.constants import STATIC_ASSET_EXTENSIONS

T = TypeVar("T")


def gen_id() -> str:
    """Generate a globally unique component ID."""
    return str(uuid.uuid4())


def default(val: T | None, default: T) -> T:
    return val if val is not None else default


def is_static_asset(url: str) -> bool:
    """
    Check if a URL points to a static asset (script, stylesheet, image or font).

    Only the exact ending of the URL is checked, so query strings or fragments
    make the URL a non-asset.
    """
    return url.endswith(STATIC_ASSET_EXTENSIONS)


def is_valid_http_url(url: str) -> bool:
    try:
        parts = urlsplit(url)
    except ValueError:
        return False
    return parts.scheme in ("http", "https") and bool(parts.netloc)
