"""
This module provides a Singleton base class that allows subclassing.
Every subclass gets its own instance, cached in an InstanceRegistry
under the class itself.
"""
import logging
from functools import partial, update_wrapper
from types import MethodType
from typing import Any, ClassVar, TypeVar

from .registry import DEFAULT_REGISTRY, InstanceRegistry, normalize_arguments

__all__ = (
    "SingletonMeta",
    "Singleton",
    "UniqueSingleton",
)

LOGGER = logging.getLogger("singleton_registry.singleton")

T = TypeVar('T')


class _hybridmethod:
    """
    Like classmethod, but binds to the instance when looked up on one.
    The method can tell both cases apart with isinstance(receiver, type).
    """
    def __init__(self, func):
        self.__func__ = func
        update_wrapper(self, func)

    def __get__(self, obj, owner=None):
        return MethodType(self.__func__, owner if obj is None else obj)


class SingletonMeta(type):
    """
    Metaclass for singletons.
    Calling a class routes through its instance() method, so direct
    construction also returns the cached instance.
    Typically the Singleton class should be used in favour of this.
    """
    def __call__(cls: type[T], *args, **kwargs) -> T:
        return cls.instance(*args, **kwargs)


class Singleton(metaclass=SingletonMeta):
    """
    Superclass for singletons.
    Allows for patterns where a class only allows one instance of
    itself. Attempting to construct a second instance will fail,
    returning the old one.

    Each subclass has its own instance. Set `registry` on a subclass
    to keep its instance in a different InstanceRegistry.

    NOTE: This can always be circumvented
    """
    registry: ClassVar[InstanceRegistry] = DEFAULT_REGISTRY

    def __init__(self, *args: Any, **fields: Any):
        """Stores a dictionary or key/value pairs as attributes."""
        self.__dict__.update(normalize_arguments(args, fields))

    @_hybridmethod
    def instance(cls, *args, **kwargs):
        """
        Returns the instance of this class, creating it if necessary.
        Arguments are passed on to _new_instance and are ignored if the
        instance already exists. Called on an instance, returns that instance.
        """
        if not isinstance(cls, type):
            # Already got an object
            return cls
        return cls.registry.get_or_create(
            cls,
            partial(cls._new_instance, *args, **kwargs)
        )

    @classmethod
    def has_instance(cls):
        """Returns the instance of this class or None if none exists."""
        return cls.registry.has_instance(cls)

    @classmethod
    def clear_instance(cls) -> None:
        """Drops the instance so that the next instance() call creates a new one."""
        cls.registry.clear_instance(cls)

    @classmethod
    def _new_instance(cls, *args: Any, **kwargs: Any):
        """
        Creates a new object of this class.
        Only called the first time instance() is called.
        Subclasses may override this for custom initialisation;
        returning None marks the construction as failed.
        """
        return type.__call__(cls, *args, **kwargs)


class UniqueSingleton(Singleton):
    """
    Singleton whose subclasses all share one instance.

    The instance is cached under the family root and its class is switched
    to whichever subclass requested it last. Methods of sibling classes are
    therefore unavailable until the sibling requests the instance again.
    Pass `family_root=True` in the class statement to start a new family.

    NOTE: Subclasses must not change the instance layout (e.g. __slots__)
    as the class of the shared instance is reassigned.
    """
    _family_root: ClassVar[type["UniqueSingleton"]]

    def __init_subclass__(cls, family_root: bool=False, **kwargs):
        super().__init_subclass__(**kwargs)
        if family_root:
            cls._family_root = cls

    @_hybridmethod
    def instance(cls, *args, **kwargs):
        if not isinstance(cls, type):
            return cls
        root = cls._family_root
        # Look the instance up as if the root had asked for it...
        instance = root.registry.get_or_create(
            root,
            partial(root._new_instance, *args, **kwargs)
        )
        if instance is None:
            return None
        # ...and hand it out as an instance of the requesting class.
        if instance.__class__ is not cls:
            LOGGER.debug(
                "Retagging %s instance as %s",
                instance.__class__.__name__, cls.__name__
            )
            instance.__class__ = cls
        return instance

    @classmethod
    def has_instance(cls):
        return cls.registry.has_instance(cls._family_root)

    @classmethod
    def clear_instance(cls) -> None:
        cls.registry.clear_instance(cls._family_root)


UniqueSingleton._family_root = UniqueSingleton
