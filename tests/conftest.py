import pytest

from .testutils import setup_test_config

# Configure Django before any test module imports it
setup_test_config()


@pytest.fixture(autouse=True)
def clear_default_cache():
    yield
    from django_assembly.cache import get_cache

    get_cache().clear()
