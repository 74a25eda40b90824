"""
BaseService -- abstract base for all kernel services.

Responsibility:
    Provides the common constructor and session-handling contract for
    every service in the kernel layer.  Services receive a SQLAlchemy
    ``Session`` that they use via ``session.flush()`` -- never
    ``session.commit()``.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.

Invariants enforced:
    Transaction boundaries: services flush within the caller's transaction
    and never commit or rollback themselves.  The caller (``session_scope``,
    an API handler, or a test) owns commit/rollback.

Failure modes:
    - A subclass that commits on its own breaks the caller's ability to
      roll back a signature together with the rest of its unit of work.
"""

from abc import ABC

from sqlalchemy.orm import Session


class BaseService(ABC):
    """
    Abstract base class for all kernel services.

    Non-goals:
        - Does NOT manage transaction lifecycle (commit/rollback).
        - Does NOT provide query-only (read) methods -- those belong
          in ``signoff_kernel/selectors/``.
    """

    def __init__(self, session: Session):
        self.session = session
