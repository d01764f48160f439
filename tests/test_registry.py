import sys
import types

import pytest

from singleton_registry import (
    DEFAULT_REGISTRY,
    Instance,
    InstanceRegistry,
    RegistrationError,
    normalize_arguments,
    resolve_factory,
)


def test_same_instance_on_repeated_access(registry):
    first = registry.get_instance("Base")
    second = registry.get_instance("Base")

    assert first is not None
    assert first is second


def test_distinct_identities_get_distinct_instances(registry):
    base = registry.get_instance("Base")
    derived_a = registry.get_instance("DerivedA")
    derived_b = registry.get_instance("DerivedB")

    assert base is not derived_a
    assert base is not derived_b
    assert derived_a is not derived_b


def test_default_instance_carries_arguments(registry):
    config = registry.get_instance("Config", foo=10, bar=20)

    assert isinstance(config, Instance)
    assert config.identity == "Config"
    assert config.foo == 10
    assert config.bar == 20
    assert config.fields() == {"foo": 10, "bar": 20}


@pytest.mark.parametrize("args, kwargs", [
    (({"foo": 10, "bar": 20},), {}),
    (("foo", 10, "bar", 20), {}),
    ((), {"foo": 10, "bar": 20}),
    (({"foo": 10},), {"bar": 20}),
])
def test_argument_forms_are_equivalent(registry, args, kwargs):
    config = registry.get_instance("Config", *args, **kwargs)

    assert config.fields() == {"foo": 10, "bar": 20}


def test_keyword_arguments_take_precedence():
    assert normalize_arguments(("foo", 1), {"foo": 2}) == {"foo": 2}


def test_odd_argument_count_is_rejected(registry):
    with pytest.raises(TypeError):
        registry.get_instance("Config", "foo", 10, "bar")
    assert registry.has_instance("Config") is None


def test_non_string_argument_names_are_rejected():
    with pytest.raises(TypeError):
        normalize_arguments((1, 2), {})


def test_arguments_are_ignored_once_constructed(registry):
    registry.get_instance("Config", foo=10)
    config = registry.get_instance("Config", foo=99, bar=1)

    assert config.foo == 10
    assert not hasattr(config, "bar")


def test_has_instance_does_not_construct(registry):
    assert registry.has_instance("Base") is None
    assert registry.has_instance("Base") is None

    base = registry.get_instance("Base")
    assert registry.has_instance("Base") is base


def test_clear_then_recreate(registry):
    first = registry.get_instance("Base")
    registry.clear_instance("Base")

    assert registry.has_instance("Base") is None
    second = registry.get_instance("Base")
    assert second is not None
    assert second is not first


def test_clear_is_idempotent_and_isolated(registry):
    other = registry.get_instance("Other")
    registry.clear_instance("Base")
    registry.clear_instance("Base")

    assert registry.has_instance("Other") is other


def test_failed_construction_is_retried(registry):
    calls = []

    def flaky(identity, **arguments):
        calls.append(identity)
        if len(calls) == 1:
            return None
        return Instance(identity, **arguments)

    registry.register("Flaky", flaky)

    assert registry.get_instance("Flaky") is None
    assert registry.has_instance("Flaky") is None
    instance = registry.get_instance("Flaky")
    assert instance is not None
    assert registry.get_instance("Flaky") is instance
    assert calls == ["Flaky", "Flaky"]


def test_factory_errors_propagate_and_are_not_cached(registry):
    @registry.register("Broken")
    def broken(identity, **arguments):
        raise RuntimeError("Cannot connect")

    with pytest.raises(RuntimeError):
        registry.get_instance("Broken")
    assert registry.has_instance("Broken") is None


def test_registered_factory_receives_identity_and_arguments(registry):
    received = {}

    def factory(identity, **arguments):
        received.update(arguments, identity=identity)
        return object()

    registry.register("Database", factory)
    registry.get_instance("Database", {"db": "myappdb", "host": "localhost"})

    assert received == {"identity": "Database", "db": "myappdb", "host": "localhost"}


def test_duplicate_registration(registry):
    registry.register("Base", Instance)

    with pytest.raises(RegistrationError):
        registry.register("Base", Instance)
    registry.register("Base", lambda identity: "replaced", replace=True)

    assert registry.get_instance("Base") == "replaced"


def test_lazy_factory_is_resolved_once(registry, monkeypatch):
    module = types.ModuleType("lazy_factories")
    module.calls = 0

    def connect(identity, **arguments):
        module.calls += 1
        return Instance(identity, **arguments)

    module.connect = connect
    monkeypatch.setitem(sys.modules, "lazy_factories", module)

    registry.register("Database", "lazy_factories.connect")
    assert registry.is_registered("Database")

    database = registry.get_instance("Database", host="localhost")
    assert database.host == "localhost"
    assert registry.factory_for("Database") is connect
    registry.clear_instance("Database")
    registry.get_instance("Database")
    assert module.calls == 2


@pytest.mark.parametrize("path", [
    "nodots",
    "no_such_module_for_registry_tests.factory",
    "builtins.no_such_factory",
    "math.pi",
])
def test_unresolvable_factory_paths(path):
    with pytest.raises(RegistrationError):
        resolve_factory(path)


def test_from_config():
    registry = InstanceRegistry.from_config({
        "Registry": {"factories": {"Name": "builtins.str"}}
    })

    assert registry.is_registered("Name")
    assert registry.get_instance("Name") == "Name"


def test_from_config_without_factories():
    registry = InstanceRegistry.from_config({})

    assert isinstance(registry.get_instance("Base"), Instance)


def test_context_manager_releases_instances():
    with InstanceRegistry() as registry:
        registry.get_instance("Base")
    assert registry.has_instance("Base") is None


def test_registries_are_independent(registry):
    assert registry.get_instance("Base") is not DEFAULT_REGISTRY.get_instance("Base")


def test_instance_repr():
    assert repr(Instance("Config", foo=1)) == "Instance('Config', foo=1)"
    assert repr(Instance("Empty")) == "Instance('Empty')"


def test_invalid_arguments_are_ignored_once_constructed(registry):
    config = registry.get_instance("Config", foo=1)

    assert registry.get_instance("Config", "leftover") is config
    assert registry.get_instance("Config", 1, 2) is config
    assert config.fields() == {"foo": 1}


@pytest.mark.parametrize("name", ["fields", "identity", "_identity"])
def test_reserved_field_names_are_rejected(registry, name):
    with pytest.raises(TypeError):
        registry.get_instance("Config", **{name: 1})
    assert registry.has_instance("Config") is None
