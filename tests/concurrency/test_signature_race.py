"""
Concurrent signing of the same chain.

Two shapes of the same race:

1. Deterministic interleaving: session A reads the chain, session B signs
   and commits, then A tries to write its (now stale) decision.  The
   compare-and-write must refuse A with OutOfOrderError and keep B's slot.

2. Real threads: several sessions hit the same next slot at once behind a
   Barrier.  Exactly one wins; every loser gets OutOfOrderError; the slot
   holds the winner's signature and the version moves by exactly one.

Both run against the file-backed SQLite database from conftest, one
connection per session.
"""

from concurrent.futures import ThreadPoolExecutor
from threading import Barrier

import pytest

from signoff_engines.signature_chain import record_signature
from signoff_kernel.domain.signature import ChainStatus, DocumentKind
from signoff_kernel.exceptions import OutOfOrderError
from signoff_kernel.models import RequirementModel
from signoff_kernel.services.signature_service import SignatureService

REQ = DocumentKind.REQUIREMENT

THREADS = 6


@pytest.fixture
def make_service(session_factory, signature_settings, oracle, deterministic_clock):
    """Factory for a service bound to its own fresh session."""
    opened = []

    def _make():
        sess = session_factory()
        opened.append(sess)
        return sess, SignatureService(
            sess, signature_settings, oracle, clock=deterministic_clock,
        )

    yield _make

    for sess in opened:
        sess.close()


class TestInterleavedWriters:

    def test_stale_decision_loses(
        self, create_requirement, make_service, oracle, users, make_signer,
        deterministic_clock,
    ):
        record = create_requirement()
        session_a, service_a = make_service()
        session_b, service_b = make_service()

        # A decides on version 0.
        stale = service_a.get_chain(REQ, record.id)
        decision = record_signature(
            make_signer(users["creator"], "a.png"), stale, oracle,
            signed_at=deterministic_clock.now(),
        )
        session_a.rollback()

        # B signs and commits first.
        service_b.sign(REQ, record.id, make_signer(users["creator"], "b.png"))
        session_b.commit()

        with pytest.raises(OutOfOrderError) as exc_info:
            service_a.persist(REQ, stale, decision, actor_id=users["creator"])
        session_a.rollback()

        assert exc_info.value.expected_index == 0
        assert exc_info.value.actual_index == 1
        assert "concurrently" in str(exc_info.value)

        chain = service_a.get_chain(REQ, record.id)
        assert chain.slots[0].signature == "b.png"
        assert chain.version == 1

    def test_conflict_is_logged(
        self, create_requirement, make_service, oracle, users, make_signer,
        deterministic_clock, captured_logs,
    ):
        record = create_requirement()
        session_a, service_a = make_service()
        session_b, service_b = make_service()

        stale = service_a.get_chain(REQ, record.id)
        decision = record_signature(
            make_signer(users["creator"]), stale, oracle,
            signed_at=deterministic_clock.now(),
        )
        session_a.rollback()
        service_b.sign(REQ, record.id, make_signer(users["creator"]))
        session_b.commit()

        with pytest.raises(OutOfOrderError):
            service_a.persist(REQ, stale, decision)
        session_a.rollback()

        conflicts = [r for r in captured_logs() if r["message"] == "signature_conflict"]
        assert len(conflicts) == 1
        assert conflicts[0]["expected_version"] == 0
        assert conflicts[0]["stored_version"] == 1


class TestThreadedWriters:

    def test_exactly_one_signer_wins(
        self, create_requirement, make_service, users, make_signer,
    ):
        """Scenario D: simultaneous signers on the same slot."""
        record = create_requirement()
        session, service = make_service()
        service.sign(REQ, record.id, make_signer(users["creator"]))
        session.commit()

        barrier = Barrier(THREADS)

        def attempt(n: int) -> str:
            sess, svc = make_service()
            barrier.wait()
            try:
                svc.sign(
                    REQ, record.id,
                    make_signer(users["technical"], signature=f"t{n}.png"),
                    expected_slot=1,
                )
                sess.commit()
                return f"t{n}.png"
            except OutOfOrderError:
                sess.rollback()
                return "lost"

        with ThreadPoolExecutor(max_workers=THREADS) as pool:
            outcomes = list(pool.map(attempt, range(THREADS)))

        winners = [o for o in outcomes if o != "lost"]
        assert len(winners) == 1

        check_session, check_service = make_service()
        chain = check_service.get_chain(REQ, record.id)
        assert chain.status == ChainStatus.SIGNED_2
        assert chain.version == 2
        assert chain.slots[1].signature == winners[0]
        assert chain.slots[2].signed_by is None

        stored = check_session.get(RequirementModel, record.id)
        assert stored.status == "signed_2"
