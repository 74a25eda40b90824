"""
Hypothesis-based fuzzing of the signature chain engine.

Random signer sequences (right people, wrong people, repeats, stale slot
targets) are thrown at a chain.  Whatever is accepted or refused, these
must hold after every step:

- filled_count never decreases and grows by at most one per accepted call
- filled slots always form a prefix; no slot is ever skipped
- a filled slot is never overwritten
- once terminal, the chain never changes again
- derived status always agrees with the fill level
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from uuid import uuid4

from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from signoff_engines.signature_chain import record_rejection, record_signature
from signoff_engines.signature_policy import build_chain
from signoff_kernel.domain.signature import (
    ChainStatus,
    DocumentKind,
    RoleTag,
    Signer,
    derive_status,
)
from signoff_kernel.exceptions import SignoffError

T0 = datetime(2024, 6, 1, 10, 0, tzinfo=timezone.utc)

USER_KEYS = ["creator", "technical", "administration", "management", "outsider"]

ROLE_SUBSETS = st.lists(
    st.sampled_from([
        RoleTag.REQUESTER,
        RoleTag.TECHNICAL_OFFICE,
        RoleTag.ADMINISTRATION,
        RoleTag.MANAGEMENT,
    ]),
    min_size=1,
    max_size=4,
)

ATTEMPTS = st.lists(
    st.tuples(
        st.sampled_from(USER_KEYS),
        st.one_of(st.none(), st.integers(min_value=0, max_value=3)),
        st.booleans(),
    ),
    max_size=20,
)

AMOUNTS = st.one_of(
    st.none(),
    st.decimals(min_value=0, max_value=100000, places=2, allow_nan=False),
)


def _assert_well_formed(chain):
    filled = [slot.is_signed for slot in chain.slots]
    assert filled == sorted(filled, reverse=True), "filled slots must be a prefix"
    assert chain.status == derive_status(chain.slots, chain.rejection)


@settings(max_examples=200, suppress_health_check=[HealthCheck.function_scoped_fixture])
@given(roles=ROLE_SUBSETS, amount=AMOUNTS, attempts=ATTEMPTS)
def test_random_signers_never_skip_a_slot(
    signature_settings, oracle, users, creator_id, roles, amount, attempts,
):
    chain = build_chain(
        signature_settings, DocumentKind.REQUIREMENT, roles, amount,
        document_id=uuid4(), initiator_id=creator_id,
    )
    _assert_well_formed(chain)

    for step, (user_key, target, reject) in enumerate(attempts):
        signer = Signer(user_id=users[user_key], signature="sig.png")
        at = T0 + timedelta(minutes=step)
        before = chain
        try:
            if reject:
                chain = record_rejection(
                    signer, chain, oracle, rejected_at=at, reason="fuzz",
                    target_index=target,
                )
            else:
                chain = record_signature(
                    signer, chain, oracle, signed_at=at, target_index=target,
                )
        except SignoffError:
            continue

        assert not before.is_terminal
        _assert_well_formed(chain)
        if reject:
            assert chain.status == ChainStatus.REJECTED
            assert chain.slots == before.slots
        else:
            assert chain.filled_count == before.filled_count + 1
            for old, new in zip(before.slots, chain.slots):
                if old.is_signed:
                    assert new == old

    assert chain.filled_count <= len(chain.slots)


@settings(max_examples=100, suppress_health_check=[HealthCheck.function_scoped_fixture])
@given(roles=ROLE_SUBSETS, amount=AMOUNTS)
def test_rightful_signers_always_reach_approval(
    signature_settings, oracle, users, creator_id, roles, amount,
):
    chain = build_chain(
        signature_settings, DocumentKind.REQUIREMENT, roles, amount,
        document_id=uuid4(), initiator_id=creator_id,
    )

    # The capability for slot i belongs to whoever holds signed{i}, which
    # is keyed by position, not by the role printed on the slot.
    by_position = ["creator", "technical", "administration", "management"]
    for index in range(len(chain.slots)):
        signer = Signer(user_id=users[by_position[index]], signature="sig.png")
        chain = record_signature(signer, chain, oracle, signed_at=T0, target_index=index)

    assert chain.status == ChainStatus.APPROVED
    if amount is not None and amount > Decimal("10000"):
        assert chain.roles[-1] == RoleTag.MANAGEMENT
