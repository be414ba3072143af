import itertools
from collections.abc import Callable
from typing import Any

import django
from django.conf import settings

# Settings used by most tests. Individual tests override them with `@assembly_test(...)`.
TEST_ASSEMBLY_SETTINGS = {
    "component_class": "c-mark",
}


def setup_test_config(
    assembly_settings: dict[str, Any] | None = None,
    extra_settings: dict[str, Any] | None = None,
) -> None:
    if settings.configured:
        return

    default_settings = {
        "DEBUG": False,
        "SECRET_KEY": "secret",
        "INSTALLED_APPS": [],
        "CACHES": {
            "default": {
                "BACKEND": "django_assembly.cache.MemoryCache",
                "LOCATION": "assembly-tests",
                "OPTIONS": {
                    "AUTOCLEAN": False,
                },
            },
        },
        "ASSEMBLY": {
            **TEST_ASSEMBLY_SETTINGS,
            **(assembly_settings or {}),
        },
    }

    settings.configure(
        **{
            **default_settings,
            **(extra_settings or {}),
        },
    )

    django.setup()


def id_generator(prefix: str = "id-") -> Callable[[], str]:
    """Deterministic replacement for `gen_id()`: `id-1`, `id-2`, ..."""
    counter = itertools.count(1)
    return lambda: f"{prefix}{next(counter)}"
