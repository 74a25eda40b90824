"""
Tests for signature domain value objects.

Tests cover:
- SignatureSlot: signed_by/signed_at pairing, signed() copy semantics
- ApprovalChain: slot count bounds, filled-prefix invariant, derived status
- derive_status: every chain length and fill level, rejection override
- SignaturePolicy: capability count and default-role validation
- RolePermissionOracle: capability lookups, fail-closed for unknown users
"""

from datetime import datetime, timezone
from decimal import Decimal
from uuid import uuid4

import pytest

from signoff_kernel.domain.permissions import RolePermissionOracle
from signoff_kernel.domain.policy import SignaturePolicy, SignatureSettings
from signoff_kernel.domain.signature import (
    ApprovalChain,
    ChainStatus,
    DocumentKind,
    Rejection,
    RoleTag,
    SignatureSlot,
    derive_status,
)

NOW = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

ROLES = (
    RoleTag.REQUESTER,
    RoleTag.TECHNICAL_OFFICE,
    RoleTag.ADMINISTRATION,
    RoleTag.MANAGEMENT,
)


def make_slots(length: int, filled: int) -> tuple[SignatureSlot, ...]:
    slots = []
    for index in range(length):
        slot = SignatureSlot(
            role=ROLES[index],
            required_capability=None if index == 0 else f"cap-{index}",
        )
        if index < filled:
            slot = slot.signed(uuid4(), NOW, "sig.png")
        slots.append(slot)
    return tuple(slots)


def make_chain(length: int = 4, filled: int = 0, rejection=None) -> ApprovalChain:
    return ApprovalChain(
        document_kind=DocumentKind.REQUIREMENT,
        document_id=uuid4(),
        initiator_id=uuid4(),
        slots=make_slots(length, filled),
        rejection=rejection,
    )


# =========================================================================
# SignatureSlot
# =========================================================================


class TestSignatureSlot:

    def test_unsigned_slot(self):
        slot = SignatureSlot(role=RoleTag.REQUESTER)
        assert not slot.is_signed
        assert slot.required_capability is None

    def test_signed_by_without_signed_at_rejected(self):
        with pytest.raises(ValueError, match="set together"):
            SignatureSlot(role=RoleTag.REQUESTER, signed_by=uuid4())

    def test_signed_at_without_signed_by_rejected(self):
        with pytest.raises(ValueError, match="set together"):
            SignatureSlot(role=RoleTag.REQUESTER, signed_at=NOW)

    def test_signed_returns_new_slot(self):
        slot = SignatureSlot(role=RoleTag.ADMINISTRATION, required_capability="cap")
        user = uuid4()
        filled = slot.signed(user, NOW, "sig.png")

        assert filled.is_signed
        assert filled.signed_by == user
        assert filled.signed_at == NOW
        assert filled.signature == "sig.png"
        assert filled.required_capability == "cap"
        assert not slot.is_signed

    def test_cannot_sign_twice(self):
        filled = SignatureSlot(role=RoleTag.REQUESTER).signed(uuid4(), NOW)
        with pytest.raises(ValueError, match="already signed"):
            filled.signed(uuid4(), NOW)


# =========================================================================
# ApprovalChain
# =========================================================================


class TestApprovalChain:

    def test_empty_chain_rejected(self):
        with pytest.raises(ValueError, match="1 to 4 slots"):
            ApprovalChain(
                document_kind=DocumentKind.REQUIREMENT,
                document_id=uuid4(),
                initiator_id=uuid4(),
                slots=(),
            )

    def test_five_slots_rejected(self):
        slots = make_slots(4, 0) + (SignatureSlot(role=RoleTag.LOGISTICS),)
        with pytest.raises(ValueError, match="1 to 4 slots"):
            ApprovalChain(
                document_kind=DocumentKind.REQUIREMENT,
                document_id=uuid4(),
                initiator_id=uuid4(),
                slots=slots,
            )

    def test_gap_in_filled_slots_rejected(self):
        slots = list(make_slots(3, 0))
        slots[1] = slots[1].signed(uuid4(), NOW)
        with pytest.raises(ValueError, match="earlier slot is empty"):
            ApprovalChain(
                document_kind=DocumentKind.REQUIREMENT,
                document_id=uuid4(),
                initiator_id=uuid4(),
                slots=tuple(slots),
            )

    def test_next_index_follows_fill(self):
        assert make_chain(4, 0).next_index == 0
        assert make_chain(4, 2).next_index == 2
        assert make_chain(4, 4).next_index is None

    def test_rejected_chain_has_no_next_index(self):
        rejection = Rejection(rejected_by=uuid4(), rejected_at=NOW, reason="no budget")
        chain = make_chain(4, 1, rejection=rejection)
        assert chain.is_terminal
        assert chain.next_index is None

    def test_last_signed_slot(self):
        assert make_chain(3, 0).last_signed_slot is None
        assert make_chain(3, 2).last_signed_slot.role == RoleTag.TECHNICAL_OFFICE

    def test_roles(self):
        assert make_chain(2, 0).roles == (RoleTag.REQUESTER, RoleTag.TECHNICAL_OFFICE)


# =========================================================================
# derive_status
# =========================================================================


class TestDeriveStatus:

    @pytest.mark.parametrize(
        "length,filled,expected",
        [
            (1, 0, ChainStatus.DRAFT),
            (1, 1, ChainStatus.APPROVED),
            (2, 1, ChainStatus.SIGNED_1),
            (2, 2, ChainStatus.APPROVED),
            (3, 2, ChainStatus.SIGNED_2),
            (3, 3, ChainStatus.APPROVED),
            (4, 0, ChainStatus.DRAFT),
            (4, 1, ChainStatus.SIGNED_1),
            (4, 3, ChainStatus.SIGNED_3),
            (4, 4, ChainStatus.APPROVED),
        ],
    )
    def test_status_from_fill(self, length, filled, expected):
        assert derive_status(make_slots(length, filled)) == expected

    def test_rejection_overrides(self):
        rejection = Rejection(rejected_by=uuid4(), rejected_at=NOW, reason="x")
        assert derive_status(make_slots(4, 2), rejection) == ChainStatus.REJECTED

    def test_chain_status_property_matches(self):
        chain = make_chain(3, 1)
        assert chain.status == derive_status(chain.slots)


# =========================================================================
# SignaturePolicy / SignatureSettings
# =========================================================================


class TestSignaturePolicy:

    def test_capability_count_must_match(self):
        with pytest.raises(ValueError, match="transition capabilities"):
            SignaturePolicy(
                document_kind=DocumentKind.QUOTATION,
                canonical_roles=ROLES,
                default_roles=ROLES,
                transition_capabilities=("a", "b"),
            )

    def test_default_roles_must_be_canonical(self):
        with pytest.raises(ValueError, match="not canonical"):
            SignaturePolicy(
                document_kind=DocumentKind.QUOTATION,
                canonical_roles=ROLES[1:],
                default_roles=(RoleTag.REQUESTER,),
                transition_capabilities=("a", "b"),
            )

    def test_capability_for_slot(self):
        policy = SignaturePolicy(
            document_kind=DocumentKind.REQUIREMENT,
            canonical_roles=ROLES,
            default_roles=ROLES,
            transition_capabilities=("c1", "c2", "c3"),
            amount_threshold=Decimal("10000"),
        )
        assert policy.capability_for_slot(0) is None
        assert policy.capability_for_slot(1) == "c1"
        assert policy.capability_for_slot(3) == "c3"

    def test_settings_missing_kind(self):
        settings = SignatureSettings(version="1")
        with pytest.raises(KeyError, match="quotation"):
            settings.policy_for(DocumentKind.QUOTATION)


# =========================================================================
# RolePermissionOracle
# =========================================================================


class TestRolePermissionOracle:

    def test_capabilities_from_roles(self):
        user = uuid4()
        oracle = RolePermissionOracle(
            user_roles={user: ["a", "b"]},
            role_capabilities={"a": ["x"], "b": ["y", "z"]},
        )
        assert oracle.has_capability(user, "x")
        assert oracle.has_capability(user, "z")
        assert not oracle.has_capability(user, "w")

    def test_any_and_all(self):
        user = uuid4()
        oracle = RolePermissionOracle(
            user_roles={user: ["a"]},
            role_capabilities={"a": ["x", "y"]},
        )
        assert oracle.has_any_capability(user, ["w", "y"])
        assert not oracle.has_any_capability(user, ["w"])
        assert oracle.has_all_capabilities(user, ["x", "y"])
        assert not oracle.has_all_capabilities(user, ["x", "w"])

    def test_unknown_user_and_role_hold_nothing(self):
        user = uuid4()
        oracle = RolePermissionOracle(
            user_roles={user: ["ghost"]},
            role_capabilities={"a": ["x"]},
        )
        assert oracle.capabilities_for(user) == frozenset()
        assert not oracle.has_capability(uuid4(), "x")
