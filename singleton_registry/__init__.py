"""
Per-identity instance registry.
Constructs one instance per identity on first access and hands out the same
instance until it is cleared. Includes a class-based Singleton front end and
a variant in which a family of identities shares one instance.
"""
from .errors import RegistryError, RegistrationError, CapabilityError
from .registry import (
    Instance,
    InstanceRegistry,
    DEFAULT_REGISTRY,
    normalize_arguments,
    resolve_factory,
)
from .roles import RoleHandle, UniqueInstanceRegistry
from .singleton import Singleton, SingletonMeta, UniqueSingleton
