"""
Signature domain types (``signoff_kernel.domain.signature``).

Responsibility
--------------
Pure value objects for the sequential signature workflow: document kinds,
role tags, the derived chain status, signature slots, rejections and the
approval chain itself.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.  No imports
from ``db/``, ``models/``, ``services/``, ``selectors/``, or outer layers.

Invariants enforced
-------------------
* A slot's ``signed_by`` and ``signed_at`` are both set or both absent.
* Filled slots form a prefix of the chain: slot *i* filled implies slots
  ``0..i-1`` are filled.
* A chain has between 1 and ``MAX_SLOTS`` slots.
* Status is never stored on the chain; ``derive_status`` computes it from
  slot fulfillment and the optional rejection.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from uuid import UUID

MAX_SLOTS = 4


class DocumentKind(str, Enum):
    """Document types that carry a signature chain."""

    REQUIREMENT = "requirement"
    QUOTATION = "quotation"


class RoleTag(str, Enum):
    """Business role a signature slot stands for."""

    REQUESTER = "REQUESTER"
    LOGISTICS = "LOGISTICS"
    TECHNICAL_OFFICE = "TECHNICAL_OFFICE"
    ADMINISTRATION = "ADMINISTRATION"
    MANAGEMENT = "MANAGEMENT"


ROLE_LABELS: dict[RoleTag, str] = {
    RoleTag.REQUESTER: "Requester",
    RoleTag.LOGISTICS: "Logistics",
    RoleTag.TECHNICAL_OFFICE: "Technical Office",
    RoleTag.ADMINISTRATION: "Administration",
    RoleTag.MANAGEMENT: "Management",
}


# =========================================================================
# Chain Status
# =========================================================================


class ChainStatus(str, Enum):
    """Status of a signature chain, derived from its slots."""

    DRAFT = "draft"
    SIGNED_1 = "signed_1"
    SIGNED_2 = "signed_2"
    SIGNED_3 = "signed_3"
    APPROVED = "approved"
    REJECTED = "rejected"


TERMINAL_CHAIN_STATUSES: frozenset[ChainStatus] = frozenset({
    ChainStatus.APPROVED,
    ChainStatus.REJECTED,
})

_SIGNED_STATUSES: tuple[ChainStatus, ...] = (
    ChainStatus.SIGNED_1,
    ChainStatus.SIGNED_2,
    ChainStatus.SIGNED_3,
)


# =========================================================================
# Slot, Rejection, Signer
# =========================================================================


@dataclass(frozen=True)
class SignatureSlot:
    """One position in a signature chain.

    ``required_capability`` is ``None`` for slot 0, which is authorized by
    the chain initiator's identity rather than by a capability.
    """

    role: RoleTag
    required_capability: str | None = None
    signed_by: UUID | None = None
    signed_at: datetime | None = None
    signature: str | None = None

    def __post_init__(self) -> None:
        if (self.signed_by is None) != (self.signed_at is None):
            raise ValueError(
                f"Slot {self.role.value}: signed_by and signed_at must be set together"
            )

    @property
    def is_signed(self) -> bool:
        return self.signed_by is not None

    def signed(
        self,
        signer_id: UUID,
        signed_at: datetime,
        signature: str | None = None,
    ) -> SignatureSlot:
        """Return a filled copy of this slot."""
        if self.is_signed:
            raise ValueError(f"Slot {self.role.value} is already signed")
        return replace(
            self,
            signed_by=signer_id,
            signed_at=signed_at,
            signature=signature,
        )


@dataclass(frozen=True)
class Rejection:
    """Record of a chain being rejected. Terminal."""

    rejected_by: UUID
    rejected_at: datetime
    reason: str


@dataclass(frozen=True)
class Signer:
    """The user attempting to sign, with their registered signature image."""

    user_id: UUID
    display_name: str = ""
    signature: str | None = None


# =========================================================================
# Status derivation
# =========================================================================


def filled_count(slots: tuple[SignatureSlot, ...]) -> int:
    """Number of signed slots."""
    return sum(1 for slot in slots if slot.is_signed)


def derive_status(
    slots: tuple[SignatureSlot, ...],
    rejection: Rejection | None = None,
) -> ChainStatus:
    """Compute the chain status from slot fulfillment.

    A chain of length *n* moves DRAFT -> SIGNED_1 .. SIGNED_{n-1} -> APPROVED.
    A recorded rejection overrides everything.
    """
    return status_for_fill(filled_count(slots), len(slots), rejection is not None)


def status_for_fill(filled: int, length: int, rejected: bool = False) -> ChainStatus:
    """Chain status for ``filled`` of ``length`` slots (see ``derive_status``)."""
    if rejected:
        return ChainStatus.REJECTED
    if filled == 0:
        return ChainStatus.DRAFT
    if filled >= length:
        return ChainStatus.APPROVED
    return _SIGNED_STATUSES[filled - 1]


# =========================================================================
# Approval Chain
# =========================================================================


@dataclass(frozen=True)
class ApprovalChain:
    """Immutable snapshot of a document's signature chain.

    ``version`` is the optimistic-concurrency token of the stored record;
    the engine never changes it, the persistence layer bumps it on write.
    """

    document_kind: DocumentKind
    document_id: UUID
    initiator_id: UUID
    slots: tuple[SignatureSlot, ...]
    special_condition: bool = False
    version: int = 0
    rejection: Rejection | None = None

    def __post_init__(self) -> None:
        if not 1 <= len(self.slots) <= MAX_SLOTS:
            raise ValueError(
                f"A signature chain has 1 to {MAX_SLOTS} slots, got {len(self.slots)}"
            )
        seen_unsigned = False
        for index, slot in enumerate(self.slots):
            if slot.is_signed and seen_unsigned:
                raise ValueError(
                    f"Slot {index} is signed while an earlier slot is empty"
                )
            if not slot.is_signed:
                seen_unsigned = True

    @property
    def roles(self) -> tuple[RoleTag, ...]:
        return tuple(slot.role for slot in self.slots)

    @property
    def filled_count(self) -> int:
        return filled_count(self.slots)

    @property
    def status(self) -> ChainStatus:
        return derive_status(self.slots, self.rejection)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_CHAIN_STATUSES

    @property
    def next_index(self) -> int | None:
        """Index of the next unfilled slot, or None when terminal."""
        if self.is_terminal:
            return None
        return self.filled_count

    @property
    def last_signed_slot(self) -> SignatureSlot | None:
        filled = self.filled_count
        return self.slots[filled - 1] if filled else None
