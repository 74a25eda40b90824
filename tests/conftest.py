"""
Pytest fixtures for the signoff kernel test suite.

Provides:
- SQLite database sessions (a fresh file database per test)
- Compiled signature settings from the default YAML
- A permission oracle with one user per signing role
- Document factories that create records with an initialized chain

The database lives under ``tmp_path`` so that the concurrency tests can
open several real connections against it.
"""

import json
import logging
from decimal import Decimal
from io import StringIO
from typing import Generator
from uuid import UUID, uuid4

import pytest
from sqlalchemy.orm import Session

from signoff_config import get_active_config
from signoff_kernel.db.engine import (
    create_tables,
    get_session,
    get_session_factory,
    init_engine_from_url,
    reset_engine,
)
from signoff_kernel.domain.clock import DeterministicClock
from signoff_kernel.domain.permissions import RolePermissionOracle
from signoff_kernel.domain.policy import SignatureSettings
from signoff_kernel.domain.signature import Signer
from signoff_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from signoff_kernel.models import QuotationRequestModel, RequirementModel
from signoff_kernel.services.signature_service import SignatureService


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture signoff_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, signature_service):
            signature_service.sign(...)
            logs = captured_logs()
            assert any(r["message"] == "signature_recorded" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("signoff_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Configuration and identities
# =============================================================================


@pytest.fixture(scope="session")
def signature_settings() -> SignatureSettings:
    return get_active_config()


@pytest.fixture
def deterministic_clock():
    return DeterministicClock()


@pytest.fixture
def creator_id() -> UUID:
    return uuid4()


@pytest.fixture
def users(creator_id) -> dict[str, UUID]:
    """One user per signing role, plus the document creator."""
    return {
        "creator": creator_id,
        "technical": uuid4(),
        "administration": uuid4(),
        "management": uuid4(),
        "outsider": uuid4(),
    }


@pytest.fixture
def oracle(users) -> RolePermissionOracle:
    """Role map mirroring the default YAML capabilities."""
    return RolePermissionOracle(
        user_roles={
            users["creator"]: ["requester"],
            users["technical"]: ["technical_office"],
            users["administration"]: ["administration"],
            users["management"]: ["management"],
            users["outsider"]: [],
        },
        role_capabilities={
            "requester": [],
            "technical_office": [
                "requirement-view-signed1",
                "quotation-view-signed1",
            ],
            "administration": [
                "requirement-view-signed2",
                "quotation-view-signed2",
            ],
            "management": [
                "requirement-view-signed3",
                "quotation-view-signed3",
            ],
        },
    )


@pytest.fixture
def make_signer():
    """Factory for signers with a registered signature image."""

    def _make(user_id: UUID, signature: str | None = "sig.png") -> Signer:
        return Signer(user_id=user_id, display_name=str(user_id)[:8], signature=signature)

    return _make


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture
def database_url(tmp_path) -> str:
    return f"sqlite:///{tmp_path / 'signoff.db'}"


@pytest.fixture
def db_engine(database_url):
    engine = init_engine_from_url(database_url)
    create_tables()
    yield engine
    reset_engine()


@pytest.fixture
def session(db_engine) -> Generator[Session, None, None]:
    """Session for a single test; rolled back and closed afterwards."""
    sess = get_session()
    yield sess
    sess.rollback()
    sess.close()


@pytest.fixture
def session_factory(db_engine):
    """Session factory for tests that need several independent sessions."""
    return get_session_factory()


@pytest.fixture
def signature_service(session, signature_settings, oracle, deterministic_clock):
    return SignatureService(session, signature_settings, oracle, clock=deterministic_clock)


@pytest.fixture
def create_requirement(session, signature_service, creator_id):
    """Factory fixture: a committed requirement with an initialized chain."""

    def _create(amount="500.00", roles=None, created_by=None) -> RequirementModel:
        record = RequirementModel(
            code=f"REQ-{uuid4().hex[:6]}",
            amount=Decimal(amount) if amount is not None else None,
            created_by_id=created_by or creator_id,
        )
        signature_service.initialize_chain(record, roles)
        session.commit()
        return record

    return _create


@pytest.fixture
def create_quotation(session, signature_service, creator_id):
    """Factory fixture: a committed quotation request with an initialized chain."""

    def _create(roles=None, created_by=None) -> QuotationRequestModel:
        record = QuotationRequestModel(
            code=f"QR-{uuid4().hex[:6]}",
            created_by_id=created_by or creator_id,
        )
        signature_service.initialize_chain(record, roles)
        session.commit()
        return record

    return _create
