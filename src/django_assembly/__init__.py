# flake8: noqa F401
"""Compose independently rendered components into a single hydration-ready HTML document."""

from django_assembly.app_settings import AssemblySettings
from django_assembly.cache import (
    MemoryCache,
    NamespacedCache,
    cache_rendered_component,
    get_cache,
    get_cached_rendered_component,
    get_component_cache,
    get_render_cache_key,
)
from django_assembly.composition import compose_document
from django_assembly.context import DocumentContext, add_to_hydration
from django_assembly.errors import ComponentIdError, DuplicateHydrationKeyError, HttpError
from django_assembly.fragment import arender_view, render_data_loader, render_view, wrap_component
from django_assembly.safety import asafe_fetch, asafe_render, safe_fetch, safe_render
from django_assembly.util.misc import gen_id, is_static_asset, is_valid_http_url

__all__ = [
    "AssemblySettings",
    "ComponentIdError",
    "DocumentContext",
    "DuplicateHydrationKeyError",
    "HttpError",
    "MemoryCache",
    "NamespacedCache",
    "add_to_hydration",
    "arender_view",
    "asafe_fetch",
    "asafe_render",
    "cache_rendered_component",
    "compose_document",
    "gen_id",
    "get_cache",
    "get_cached_rendered_component",
    "get_component_cache",
    "get_render_cache_key",
    "is_static_asset",
    "is_valid_http_url",
    "render_data_loader",
    "render_view",
    "safe_fetch",
    "safe_render",
    "wrap_component",
]
