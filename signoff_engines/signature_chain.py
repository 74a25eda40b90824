"""
signoff_engines.signature_chain -- Pure signature chain state machine.

Responsibility:
    Decide whether a signer may fill the next slot of a chain, produce the
    chain that results from a signature or a rejection, and derive the
    display text the UI shows for a chain.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import signoff_kernel/domain/ types and signoff_kernel.exceptions.

Invariants enforced:
    - Sequential fill: only the next unfilled slot can be signed; a filled
      slot is never overwritten.
    - Terminal states (APPROVED, REJECTED) have no outgoing transitions.
    - Slot 0 is authorized by initiator identity; slot i >= 1 by the
      capability recorded on the slot when the chain was built.
    - Purity: no clock access, no I/O, no database.  Timestamps are passed in.

Failure modes:
    - NotAuthorizedError: no signer, or signer fails the identity/capability check.
    - AlreadyTerminalError: chain is APPROVED or REJECTED.
    - OutOfOrderError: caller targeted a slot that is not the next unfilled one.
    - RejectionReasonRequiredError: rejection with a blank reason.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal

from signoff_kernel.domain.permissions import PermissionOracle
from signoff_kernel.domain.signature import (
    ROLE_LABELS,
    ApprovalChain,
    ChainStatus,
    Rejection,
    Signer,
)
from signoff_kernel.exceptions import (
    AlreadyTerminalError,
    NotAuthorizedError,
    OutOfOrderError,
    RejectionReasonRequiredError,
)

_ORDINALS = ("1st", "2nd", "3rd", "4th")


def next_slot_index(chain: ApprovalChain) -> int | None:
    """Index of the slot that would be filled next, or None when terminal."""
    return chain.next_index


def required_capability(chain: ApprovalChain) -> str | None:
    """Capability gating the next slot (None for slot 0 or a terminal chain)."""
    index = chain.next_index
    if index is None:
        return None
    return chain.slots[index].required_capability


def can_advance(
    signer: Signer | None,
    chain: ApprovalChain,
    oracle: PermissionOracle,
) -> bool:
    """True iff ``signer`` may fill the next unfilled slot of ``chain``."""
    if signer is None:
        return False
    index = chain.next_index
    if index is None:
        return False
    if index == 0:
        return signer.user_id == chain.initiator_id
    capability = chain.slots[index].required_capability
    if capability is None:
        return False
    return oracle.has_capability(signer.user_id, capability)


def _gate(
    signer: Signer | None,
    chain: ApprovalChain,
    oracle: PermissionOracle,
    target_index: int | None,
) -> int:
    """Run the ordered precondition checks and return the next slot index."""
    if signer is None:
        raise NotAuthorizedError(
            None, chain.next_index, required_capability(chain), reason="no signer"
        )
    if chain.is_terminal:
        raise AlreadyTerminalError(
            chain.document_kind.value, str(chain.document_id), chain.status.value
        )

    index = chain.filled_count
    if target_index is not None and target_index != index:
        raise OutOfOrderError(str(chain.document_id), target_index, index)

    if not can_advance(signer, chain, oracle):
        capability = chain.slots[index].required_capability
        reason = (
            "only the document creator can sign first"
            if index == 0
            else f"missing capability {capability}"
        )
        raise NotAuthorizedError(str(signer.user_id), index, capability, reason=reason)

    return index


def record_signature(
    signer: Signer | None,
    chain: ApprovalChain,
    oracle: PermissionOracle,
    *,
    signed_at: datetime,
    target_index: int | None = None,
    signature: str | None = None,
) -> ApprovalChain:
    """Fill the next slot of ``chain`` with ``signer``.

    Args:
        signer: The user signing.
        chain: Current chain snapshot.
        oracle: Capability lookups.
        signed_at: Timestamp for the slot (from an injected clock).
        target_index: Slot the caller believes is next; mismatch is an error.
        signature: Signature image reference; defaults to the signer's own.

    Returns:
        A new chain with the slot filled.  ``version`` is unchanged.
    """
    index = _gate(signer, chain, oracle, target_index)

    slots = list(chain.slots)
    slots[index] = slots[index].signed(
        signer.user_id,
        signed_at,
        signature if signature is not None else signer.signature,
    )
    return replace(chain, slots=tuple(slots))


def record_rejection(
    signer: Signer | None,
    chain: ApprovalChain,
    oracle: PermissionOracle,
    *,
    rejected_at: datetime,
    reason: str,
    target_index: int | None = None,
) -> ApprovalChain:
    """Reject ``chain`` on behalf of the signer eligible for the next slot.

    Gated exactly like ``record_signature``.  The returned chain is REJECTED
    and terminal; already-filled slots are kept as they were.
    """
    _gate(signer, chain, oracle, target_index)

    if reason is None or not reason.strip():
        raise RejectionReasonRequiredError(str(chain.document_id))

    return replace(
        chain,
        rejection=Rejection(
            rejected_by=signer.user_id,
            rejected_at=rejected_at,
            reason=reason.strip(),
        ),
    )


# =========================================================================
# Display helpers
# =========================================================================


def sign_label(chain: ApprovalChain) -> str:
    """Text of the sign button for the chain's current state."""
    status = chain.status
    if status == ChainStatus.APPROVED:
        return "Approved"
    if status == ChainStatus.REJECTED:
        return "Rejected"
    return f"Sign ({_ORDINALS[chain.filled_count]} Signature)"


def status_label(chain: ApprovalChain) -> str:
    """Human-readable status of the chain."""
    status = chain.status
    if status == ChainStatus.DRAFT:
        return "Pending"
    if status == ChainStatus.APPROVED:
        return "Approved"
    if status == ChainStatus.REJECTED:
        return "Rejected"
    return f"Signed by {ROLE_LABELS[chain.last_signed_slot.role]}"


def approval_progress(
    chain: ApprovalChain,
    base: int = 80,
    maximum: int = 100,
) -> int:
    """Progress percentage: ``base`` with no signatures, ``maximum`` when all are in.

    Intermediate values are linear in the number of filled slots, rounded
    half up.
    """
    filled = chain.filled_count
    steps = len(chain.slots)
    if filled == 0:
        return base
    if filled >= steps:
        return maximum
    progress = Decimal(base) + Decimal(filled) / Decimal(steps) * Decimal(maximum - base)
    return int(progress.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
