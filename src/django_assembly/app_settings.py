from typing import Any, NamedTuple

from django.conf import settings


class AssemblySettings(NamedTuple):
    """
    Settings available for django-assembly.

    Set them in your Django settings under the `ASSEMBLY` key, either as a dict
    or as an instance of this class:

    ```python
    ASSEMBLY = AssemblySettings(
        component_class="my-component",
        cache_enabled=True,
    )
    ```
    """

    component_class: str | None = None
    """
    Class name prefix that marks an element as the root of a rendered component.

    Defaults to `"assembly-component"`.
    """

    runtime_bundle_path: str | None = None
    """
    Path of the client runtime bundle, appended to the document's server URL.

    Defaults to `"/bundles/assembly.client.bundle.js"`.
    """

    default_title: str | None = None
    """`<title>` used when a `<head>` has to be synthesized and the context has no title."""

    html_lang: str | None = None
    """`lang` attribute of a synthesized `<html>` element. Defaults to `"en"`."""

    debug: bool | None = None
    """
    Whether component render failures are rendered as verbose error boxes.

    Defaults to Django's `DEBUG` setting.
    """

    cache_enabled: bool | None = None
    """Whether rendered components are cached. Defaults to `False`."""

    cache_name: str | None = None
    """Name of the Django cache (see `CACHES`) used for rendered components."""

    cache_ttl: int | None = None
    """
    Time-to-live in seconds of cached rendered components. Defaults to 5 minutes.

    `None` in the cache means "use the default", `-1` caches indefinitely.
    """


defaults = AssemblySettings(
    component_class="assembly-component",
    runtime_bundle_path="/bundles/assembly.client.bundle.js",
    default_title="Assembly",
    html_lang="en",
    debug=None,
    cache_enabled=False,
    cache_name="default",
    cache_ttl=300,
)


# NOTE: Settings are read on each access, so that `override_settings()` in tests
# and settings changed at runtime are picked up.
class InternalSettings:
    @property
    def _settings(self) -> AssemblySettings:
        data: dict | AssemblySettings | None = getattr(settings, "ASSEMBLY", None)
        if data is None:
            return AssemblySettings()
        if isinstance(data, AssemblySettings):
            return data
        if isinstance(data, dict):
            unknown = set(data) - set(AssemblySettings._fields)
            if unknown:
                raise ValueError(f"Unknown ASSEMBLY settings: {', '.join(sorted(unknown))}")
            return AssemblySettings(**data)
        raise TypeError(f"ASSEMBLY setting must be a dict or AssemblySettings, got {type(data).__name__}")

    def _get(self, name: str) -> Any:
        value = getattr(self._settings, name)
        return getattr(defaults, name) if value is None else value

    @property
    def COMPONENT_CLASS(self) -> str:
        return self._get("component_class")

    @property
    def RUNTIME_BUNDLE_PATH(self) -> str:
        return self._get("runtime_bundle_path")

    @property
    def DEFAULT_TITLE(self) -> str:
        return self._get("default_title")

    @property
    def HTML_LANG(self) -> str:
        return self._get("html_lang")

    @property
    def DEBUG(self) -> bool:
        value = self._settings.debug
        return bool(settings.DEBUG) if value is None else value

    @property
    def CACHE_ENABLED(self) -> bool:
        return self._get("cache_enabled")

    @property
    def CACHE_NAME(self) -> str:
        return self._get("cache_name")

    @property
    def CACHE_TTL(self) -> int:
        return self._get("cache_ttl")


app_settings = InternalSettings()
