"""
Implements the identity-forcing variant of the registry.

Identities grouped into a family share a single instance that is cached
under the family root. Lookups hand out a RoleHandle around that instance
whose current role is switched to the requesting identity. The handle is
shared, so the most recent lookup decides which capabilities every holder
of the handle can call.
"""
import logging
from collections.abc import Callable, Hashable, Mapping
from functools import partial
from typing import Any, Self

from .errors import CapabilityError, RegistrationError
from .registry import Factory, Instance, InstanceRegistry

__all__ = (
    "Capability",
    "RoleHandle",
    "UniqueInstanceRegistry",
)

LOGGER = logging.getLogger("singleton_registry.roles")

Capability = Callable[..., Any]
"""Callable receiving the shared instance as its first argument."""


class RoleHandle:
    """
    Wraps a shared instance together with a single current role.
    Attribute access resolves capabilities of the current role first
    and falls back on the wrapped instance.

    Capabilities of other roles are hidden and raise CapabilityError.
    """
    def __init__(
            self,
            instance: Any,
            roles: Mapping[Hashable, Mapping[str, Capability]],
            role: Hashable
    ):
        self._instance = instance
        self._roles = roles
        self._role = role

    @property
    def instance(self) -> Any:
        """The shared instance behind this handle."""
        return self._instance

    @property
    def role(self) -> Hashable:
        """The role this handle was most recently switched to."""
        return self._role

    def capabilities(self) -> frozenset[str]:
        """Names of the capabilities callable under the current role."""
        return frozenset(self._roles[self._role])

    def assume(self, role: Hashable) -> Self:
        """
        Switches the handle to (role).
        This affects every holder of this handle.
        """
        if role not in self._roles:
            raise ValueError(f"Unknown role {role!r}")
        if role != self._role:
            LOGGER.debug("Handle switched from %r to %r", self._role, role)
        self._role = role
        return self

    def __getattr__(self, name: str) -> Any:
        # Private names never dispatch. This also keeps lookups safe
        # before __init__ has run.
        if name.startswith("_"):
            raise AttributeError(name)
        capabilities = self._roles[self._role]
        if name in capabilities:
            return partial(capabilities[name], self._instance)
        if any(name in other for other in self._roles.values()):
            raise CapabilityError(self._role, name)
        return getattr(self._instance, name)

    def __repr__(self) -> str:
        return f"RoleHandle(role={self._role!r}, instance={self._instance!r})"


class UniqueInstanceRegistry(InstanceRegistry):
    """
    Registry where families of identities alias one shared instance.
    Identities outside of any family behave as in InstanceRegistry.
    """
    def __init__(self, default_factory: Factory=Instance):
        super().__init__(default_factory)
        self._families: dict[Hashable, Hashable] = {}
        self._roles: dict[Hashable, dict[Hashable, dict[str, Capability]]] = {}

    def add_family(
            self,
            root: Hashable,
            members: Mapping[Hashable, Mapping[str, Capability]],
            /, *,
            capabilities: Mapping[str, Capability]|None=None
    ) -> None:
        """
        Declares (members) as a family sharing the instance of (root).
        Every member may call the capabilities of the root in addition
        to its own. May be called again to add further members.
        """
        if self._families.get(root, root) != root:
            raise RegistrationError(f"{root!r} is already a member of another family")
        roles = self._roles.setdefault(root, {root: {}})
        roles[root].update(capabilities or {})
        self._families[root] = root

        for member, member_capabilities in members.items():
            if self._families.get(member, root) != root:
                raise RegistrationError(
                    f"{member!r} is already a member of another family"
                )
            self._families[member] = root
            roles[member] = {**roles[root], **member_capabilities}
        LOGGER.debug("Family %r now has members %r", root, list(roles))

    def family_of(self, identity: Hashable) -> Hashable|None:
        """Returns the root of the family of (identity) or None."""
        return self._families.get(identity)

    def construct(self, identity: Hashable, arguments: Mapping[str, Any]) -> Any:
        instance = super().construct(identity, arguments)
        if instance is None or identity not in self._roles:
            return instance
        return RoleHandle(instance, self._roles[identity], identity)

    def get_instance(self, identity: Hashable, /, *args: Any, **kwargs: Any) -> Any:
        """
        Returns the shared handle of the family of (identity), switched
        to the role of (identity). See InstanceRegistry.get_instance.
        """
        root = self._families.get(identity)
        if root is None:
            return super().get_instance(identity, *args, **kwargs)
        handle = super().get_instance(root, *args, **kwargs)
        if handle is None:
            return None
        return handle.assume(identity)

    def has_instance(self, identity: Hashable) -> Any|None:
        """
        Returns the shared handle of the family of (identity) without
        switching its role.
        """
        return super().has_instance(self._families.get(identity, identity))

    def clear_instance(self, identity: Hashable) -> None:
        """Clears the shared instance of the whole family of (identity)."""
        super().clear_instance(self._families.get(identity, identity))
