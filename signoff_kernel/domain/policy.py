"""
Compiled signature policy types (``signoff_kernel.domain.policy``).

Responsibility
--------------
Frozen runtime form of the signature configuration.  ``signoff_config``
compiles YAML into ``SignatureSettings``; engines and services only ever
see these types, never raw configuration.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects, ZERO I/O.

Invariants enforced
-------------------
* ``transition_capabilities`` has exactly one entry per slot after the
  first: ``len(canonical_roles) - 1``.
* ``default_roles`` is a subset of ``canonical_roles``.
* Every named template is a non-empty subset of ``canonical_roles``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from signoff_kernel.domain.signature import DocumentKind, RoleTag


@dataclass(frozen=True)
class SignaturePolicy:
    """Signature rules for one document kind."""

    document_kind: DocumentKind
    canonical_roles: tuple[RoleTag, ...]
    default_roles: tuple[RoleTag, ...]
    transition_capabilities: tuple[str, ...]
    senior_role: RoleTag | None = None
    amount_threshold: Decimal | None = None
    threshold_inclusive: bool = False
    templates: dict[str, tuple[RoleTag, ...]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if len(self.transition_capabilities) != len(self.canonical_roles) - 1:
            raise ValueError(
                f"{self.document_kind.value}: expected "
                f"{len(self.canonical_roles) - 1} transition capabilities, "
                f"got {len(self.transition_capabilities)}"
            )
        unknown = set(self.default_roles) - set(self.canonical_roles)
        if unknown:
            raise ValueError(
                f"{self.document_kind.value}: default roles not canonical: "
                f"{sorted(r.value for r in unknown)}"
            )
        for name, roles in self.templates.items():
            if not roles or not set(roles) <= set(self.canonical_roles):
                raise ValueError(
                    f"{self.document_kind.value}: template {name!r} must be a "
                    f"non-empty subset of the canonical roles"
                )

    def capability_for_slot(self, index: int) -> str | None:
        """Capability gating slot ``index``; slot 0 has none."""
        if index == 0:
            return None
        return self.transition_capabilities[index - 1]


@dataclass(frozen=True)
class SignatureSettings:
    """All signature policies, keyed by document kind."""

    version: str
    policies: dict[DocumentKind, SignaturePolicy] = field(default_factory=dict)
    checksum: str = ""

    def policy_for(self, document_kind: DocumentKind) -> SignaturePolicy:
        try:
            return self.policies[document_kind]
        except KeyError:
            raise KeyError(
                f"No signature policy configured for {document_kind.value}"
            ) from None
