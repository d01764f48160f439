import pytest

from singleton_registry import DEFAULT_REGISTRY, InstanceRegistry, UniqueInstanceRegistry


@pytest.fixture(autouse=True)
def clean_default_registry():
    """Singleton classes defined in tests share the default registry."""
    yield
    DEFAULT_REGISTRY.clear_all()


@pytest.fixture
def registry():
    with InstanceRegistry() as registry:
        yield registry


@pytest.fixture
def unique_registry():
    registry = UniqueInstanceRegistry()
    registry.add_family("Unique", {
        "One": {"one": lambda instance, *args: ("one", args)},
        "Two": {"two": lambda instance, *args: ("two", args)},
    })
    return registry
