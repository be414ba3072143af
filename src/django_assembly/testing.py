import functools
import inspect
from collections.abc import Callable
from typing import Any, TypeVar, overload

from django.test import override_settings

from django_assembly.app_settings import AssemblySettings

T = TypeVar("T", bound=Callable | type)


def _wrap_test(func: Callable, overrides: dict[str, Any]) -> Callable:
    if inspect.iscoroutinefunction(func):

        @functools.wraps(func)
        async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
            with override_settings(**overrides):
                return await func(*args, **kwargs)

        return async_wrapper

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        with override_settings(**overrides):
            return func(*args, **kwargs)

    return wrapper


@overload
def assembly_test(_fn: T) -> T: ...


@overload
def assembly_test(
    *,
    assembly_settings: dict[str, Any] | AssemblySettings | None = None,
    django_settings: dict[str, Any] | None = None,
) -> Callable[[T], T]: ...


def assembly_test(
    _fn: T | None = None,
    *,
    assembly_settings: dict[str, Any] | AssemblySettings | None = None,
    django_settings: dict[str, Any] | None = None,
) -> T | Callable[[T], T]:
    """
    Decorator for tests (functions, or classes with `test_*` methods) that run with
    the given django-assembly and Django settings.

    Unlike Django's `override_settings`, it can decorate plain pytest test classes.

    **Example:**

    ```python
    @assembly_test(assembly_settings={"component_class": "c-mark"})
    class TestMyComposition:
        def test_something(self):
            ...
    ```
    """
    overrides: dict[str, Any] = dict(django_settings or {})
    if assembly_settings is not None:
        overrides["ASSEMBLY"] = assembly_settings

    def decorator(target: T) -> T:
        if isinstance(target, type):
            for name, member in list(vars(target).items()):
                if name.startswith("test") and callable(member):
                    setattr(target, name, _wrap_test(member, overrides))
            return target
        return _wrap_test(target, overrides)  # type: ignore[return-value]

    if _fn is not None:
        return decorator(_fn)
    return decorator
