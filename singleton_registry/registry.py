"""
Provides the InstanceRegistry, a cache holding at most one instance per identity.
Instances are constructed lazily on first access through a factory registered
for the identity (or the registry's default factory) and are kept until they
are cleared.

A process-wide registry is available as DEFAULT_REGISTRY. It is cleared at
interpreter exit so that held instances are released before module teardown.
"""
import atexit
import importlib
import logging
from collections.abc import Callable, Hashable, Mapping
from typing import Any, Self

from .errors import RegistrationError

__all__ = (
    "Factory",
    "Instance",
    "InstanceRegistry",
    "DEFAULT_REGISTRY",
    "normalize_arguments",
    "resolve_factory",
)

LOGGER = logging.getLogger("singleton_registry.registry")

Factory = Callable[..., Any]


class Instance:
    """
    Default object created by the registry.
    Carries the constructor arguments as attributes and remembers
    the identity it was created for.
    """
    def __init__(self, identity: Hashable, /, **fields: Any):
        reserved = [
            key for key in fields
            if key == "_identity" or hasattr(type(self), key)
        ]
        if reserved:
            raise TypeError(f"Field names {reserved!r} are reserved by Instance")
        self.__dict__.update(fields)
        self._identity = identity

    @property
    def identity(self) -> Hashable:
        """The identity this instance was constructed for."""
        return self._identity

    def fields(self) -> dict[str, Any]:
        """Returns a copy of the named fields of this instance."""
        return {
            key: value
            for key, value in self.__dict__.items()
            if key != "_identity"
        }

    def __repr__(self) -> str:
        fields = ", ".join(
            f"{key}={value!r}"
            for key, value in self.fields().items()
        )
        return f"Instance({self._identity!r}{', ' if fields else ''}{fields})"


def normalize_arguments(
        args: tuple[Any, ...],
        kwargs: Mapping[str, Any]
) -> dict[str, Any]:
    """
    Folds constructor arguments into a single dictionary.
    Accepts either one mapping or a flat sequence of key/value pairs,
    optionally followed by keyword arguments which take precedence.
    """
    if len(args) == 1 and isinstance(args[0], Mapping):
        arguments = dict(args[0])
    elif len(args) % 2:
        raise TypeError(
            "Expected a mapping or key/value pairs, "
            f"got {len(args)} positional arguments"
        )
    else:
        arguments = dict(zip(args[::2], args[1::2]))

    for key in arguments:
        if not isinstance(key, str):
            raise TypeError(f"Argument names must be strings, got {key!r}")
    arguments.update(kwargs)
    return arguments


def resolve_factory(path: str) -> Factory:
    """
    Imports the object named by a dotted path (e.g. "package.module.function").
    Raises RegistrationError if the path does not lead to a callable.
    """
    module_path, _, attribute = path.rpartition(".")
    if not module_path:
        raise RegistrationError(f"Factory path {path!r} has no module part")
    try:
        factory = getattr(importlib.import_module(module_path), attribute)
    except (ImportError, AttributeError) as e:
        raise RegistrationError(f"Cannot resolve factory {path!r}") from e
    if not callable(factory):
        raise RegistrationError(f"Factory {path!r} is not callable")
    return factory


class InstanceRegistry:
    """
    Mapping from identities to at most one instance each.

    Factories are called as `factory(identity, **arguments)` and may return
    None to signal that construction failed. Failed constructions are never
    cached, so the next lookup retries.

    NOTE: There is no locking. Two threads requesting the same identity for
    the first time may both construct an instance.
    """
    def __init__(self, default_factory: Factory=Instance):
        self._instances: dict[Hashable, Any] = {}
        self._factories: dict[Hashable, Factory|str] = {}
        self._default_factory = default_factory

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> Self:
        """
        Creates a registry with the lazy factories listed under
        the [Registry.factories] table of a configuration.
        """
        registry = cls()
        factories = config.get("Registry", {}).get("factories", {})
        for identity, path in factories.items():
            registry.register(identity, path)
        LOGGER.debug("Registered %d factories from config", len(factories))
        return registry

    def register(
            self,
            identity: Hashable,
            factory: Factory|str|None=None,
            /, *,
            replace: bool=False
    ):
        """
        Registers the factory used to construct the instance of (identity).
        The factory may be given as a dotted import path, which is only
        resolved the first time it is needed.
        When called without a factory this returns a decorator.
        """
        if factory is None:
            def decorator(func: Factory) -> Factory:
                self.register(identity, func, replace=replace)
                return func
            return decorator

        if identity in self._factories and not replace:
            raise RegistrationError(
                f"A factory for {identity!r} is already registered"
            )
        self._factories[identity] = factory
        LOGGER.debug("Registered factory %r for %r", factory, identity)
        return factory

    def is_registered(self, identity: Hashable) -> bool:
        """Returns whether a factory was registered for (identity)."""
        return identity in self._factories

    def factory_for(self, identity: Hashable) -> Factory:
        """
        Returns the factory for (identity), importing lazy factories
        and falling back on the default factory.
        """
        factory = self._factories.get(identity, self._default_factory)
        if isinstance(factory, str):
            factory = resolve_factory(factory)
            self._factories[identity] = factory
        return factory

    def construct(self, identity: Hashable, arguments: Mapping[str, Any]) -> Any:
        """
        Builds a new instance for (identity).
        This does not consult or modify the cache.
        """
        return self.factory_for(identity)(identity, **arguments)

    def get_instance(self, identity: Hashable, /, *args: Any, **kwargs: Any) -> Any:
        """
        Returns the instance of (identity), constructing it on first access.

        NOTE: Arguments are only used when the instance is constructed.
        They are silently ignored if an instance already exists.
        Use has_instance to find out beforehand.

        Returns None if the factory failed to produce an instance.
        """
        return self.get_or_create(
            identity,
            lambda: self.construct(identity, normalize_arguments(args, kwargs))
        )

    def get_or_create(self, identity: Hashable, create: Callable[[], Any]) -> Any:
        """
        Returns the instance of (identity), calling (create) to build it
        if there is none. A None result is not cached.
        """
        instance = self._instances.get(identity)
        if instance is not None:
            return instance

        instance = create()
        if instance is None:
            LOGGER.warning("Construction for %r failed, nothing was cached", identity)
            return None
        self._instances[identity] = instance
        LOGGER.debug("Created instance for %r", identity)
        return instance

    def has_instance(self, identity: Hashable) -> Any|None:
        """Returns the current instance of (identity) or None if there is none."""
        return self._instances.get(identity)

    def clear_instance(self, identity: Hashable) -> None:
        """
        Releases the instance of (identity).
        The next lookup will construct a new one.
        """
        if self._instances.pop(identity, None) is not None:
            LOGGER.debug("Cleared instance for %r", identity)

    def clear_all(self) -> None:
        """Releases every instance held by this registry."""
        count = len(self._instances)
        self._instances.clear()
        if count:
            LOGGER.debug("Released %d instances", count)

    def __enter__(self) -> Self:
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.clear_all()


DEFAULT_REGISTRY = InstanceRegistry()
atexit.register(DEFAULT_REGISTRY.clear_all)
