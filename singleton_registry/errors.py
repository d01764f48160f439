"""
Exceptions raised by the instance registry.
Construction failure is not an exception, see InstanceRegistry.get_instance.
"""

__all__ = (
    "RegistryError",
    "RegistrationError",
    "CapabilityError",
)


class RegistryError(Exception):
    """Base class for all registry errors."""


class RegistrationError(RegistryError, ValueError):
    """
    Raised when a factory cannot be registered or resolved.
    This covers duplicate registrations and lazy import paths
    that do not point to a callable.
    """


class CapabilityError(RegistryError, AttributeError):
    """
    Raised when calling a capability that the current role of a
    RoleHandle does not provide.
    """
    def __init__(self, role, capability: str):
        super().__init__(
            f"Role {role!r} does not provide capability {capability!r}"
        )
        self.role = role
        self.capability = capability
