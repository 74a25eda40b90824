"""
signoff_kernel.domain.permissions -- Capability lookups for signers.

Responsibility:
    Define the ``PermissionOracle`` protocol the state machine consults to
    decide whether a user holds a named capability, and a reference
    implementation backed by a role -> capability map.

Architecture position:
    Kernel domain layer, zero I/O.  Real deployments plug their own
    identity/permission store in behind the protocol; the kernel stays
    actor-agnostic and never stores permission strings itself.

Invariants:
    - Lookups are pure: the same user and name always give the same answer
      for the lifetime of an oracle instance.
    - Unknown users and unknown roles hold no capabilities (fail-closed).
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Protocol
from uuid import UUID


class PermissionOracle(Protocol):
    """Pluggable interface for capability checks."""

    def has_capability(self, user_id: UUID, name: str) -> bool:
        ...

    def has_any_capability(self, user_id: UUID, names: Iterable[str]) -> bool:
        ...

    def has_all_capabilities(self, user_id: UUID, names: Iterable[str]) -> bool:
        ...


class RolePermissionOracle:
    """Capability oracle over a user -> roles and role -> capabilities map."""

    def __init__(
        self,
        user_roles: Mapping[UUID, Iterable[str]],
        role_capabilities: Mapping[str, Iterable[str]],
    ):
        role_map: dict[str, frozenset[str]] = {
            role: frozenset(caps) for role, caps in role_capabilities.items()
        }
        self._capabilities: dict[UUID, frozenset[str]] = {}
        for user_id, roles in user_roles.items():
            granted: set[str] = set()
            for role in roles:
                granted |= role_map.get(role, frozenset())
            self._capabilities[user_id] = frozenset(granted)

    def capabilities_for(self, user_id: UUID) -> frozenset[str]:
        return self._capabilities.get(user_id, frozenset())

    def has_capability(self, user_id: UUID, name: str) -> bool:
        return name in self.capabilities_for(user_id)

    def has_any_capability(self, user_id: UUID, names: Iterable[str]) -> bool:
        granted = self.capabilities_for(user_id)
        return any(name in granted for name in names)

    def has_all_capabilities(self, user_id: UUID, names: Iterable[str]) -> bool:
        granted = self.capabilities_for(user_id)
        return all(name in granted for name in names)
