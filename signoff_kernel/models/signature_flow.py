"""
Module: signoff_kernel.models.signature_flow
Responsibility: Column layout shared by every document that carries a
    signature chain, plus the ORM-level guards that keep a stored chain
    consistent: recorded signatures are never changed or cleared, the chain
    composition is fixed once set, and the status column always matches the
    filled slots.

Architecture position: Kernel > Models.  May import from db/base.py,
    domain/, exceptions and logging_config only.

Invariants enforced:
    - Four named slot column groups (first_/second_/third_/fourth_) hold
      signer, timestamp and signature image of each slot.
    - A filled ``*_signed_by``, ``*_signed_at`` or ``*_signature`` column
      may never change or be cleared through an ORM flush.
    - Rejection columns are write-once.
    - Once ``signature_roles`` is stored non-empty, neither it nor
      ``management_required`` may change.
    - Filled slots form a prefix of ``signature_roles``, and ``status`` is
      the document status derived from them (or a lifecycle status the
      workflow never produces, such as ``cancelled``).  An insert without
      a status gets the derived one.

Failure modes:
    - ImmutabilityViolationError from the before_update listener.
    - ChainIntegrityError from the before_insert / before_update listeners.

Audit relevance:
    The slot columns are the only record of who signed a document and when.
    Conditional writes by SignatureService go through Core UPDATE statements
    whose WHERE clause pins the version, so they never race this listener.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from sqlalchemy import Boolean, Integer, String, Text, event
from sqlalchemy import inspect as sa_inspect
from sqlalchemy.orm import Mapped, mapped_column

from signoff_kernel.db.base import UTCDateTime, UUIDString
from signoff_kernel.domain.signature import MAX_SLOTS, status_for_fill
from signoff_kernel.exceptions import ChainIntegrityError, ImmutabilityViolationError
from signoff_kernel.logging_config import get_logger

logger = get_logger("models.signature_flow")

SLOT_COLUMN_PREFIXES: tuple[str, ...] = ("first", "second", "third", "fourth")

SLOT_COLUMN_SUFFIXES: tuple[str, ...] = ("signed_by", "signed_at", "signature")

ROLE_SEPARATOR = ","

WRITE_ONCE_COLUMNS: tuple[str, ...] = tuple(
    f"{prefix}_{suffix}"
    for prefix in SLOT_COLUMN_PREFIXES
    for suffix in SLOT_COLUMN_SUFFIXES
) + ("rejected_by", "rejected_at", "rejected_reason")

COMPOSITION_COLUMNS: tuple[str, ...] = ("signature_roles", "management_required")


def _write_once(type_: Any) -> Any:
    # active_history loads the stored value even when the attribute was
    # expired before it was assigned, so the guard always sees it.
    return mapped_column(type_, nullable=True, active_history=True)


class SignatureFlowMixin:
    """Signature chain columns for a document table.

    ``signature_roles`` fixes the chain composition at creation time as a
    comma-joined list of role tags; ``management_required`` records that the
    amount threshold forced the trailing senior slot.

    Subclasses set ``chain_status_map`` to the ChainStatus -> document
    status translation used for their ``status`` column.
    """

    first_signed_by: Mapped[UUID | None] = _write_once(UUIDString())
    first_signed_at: Mapped[datetime | None] = _write_once(UTCDateTime())
    first_signature: Mapped[str | None] = _write_once(Text)

    second_signed_by: Mapped[UUID | None] = _write_once(UUIDString())
    second_signed_at: Mapped[datetime | None] = _write_once(UTCDateTime())
    second_signature: Mapped[str | None] = _write_once(Text)

    third_signed_by: Mapped[UUID | None] = _write_once(UUIDString())
    third_signed_at: Mapped[datetime | None] = _write_once(UTCDateTime())
    third_signature: Mapped[str | None] = _write_once(Text)

    fourth_signed_by: Mapped[UUID | None] = _write_once(UUIDString())
    fourth_signed_at: Mapped[datetime | None] = _write_once(UTCDateTime())
    fourth_signature: Mapped[str | None] = _write_once(Text)

    rejected_by: Mapped[UUID | None] = _write_once(UUIDString())
    rejected_at: Mapped[datetime | None] = _write_once(UTCDateTime())
    rejected_reason: Mapped[str | None] = _write_once(Text)

    signature_roles: Mapped[str] = mapped_column(
        String(200), nullable=False, default="", active_history=True,
    )
    management_required: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, active_history=True,
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


# =============================================================================
# ORM-Level Immutability for Recorded Signatures
# =============================================================================


def _stored_value(insp, key: str) -> Any:
    """Value the database holds for ``key`` before this flush."""
    hist = insp.attrs[key].history
    if hist.deleted:
        return hist.deleted[0]
    if hist.unchanged:
        return hist.unchanged[0]
    return None


def _refuse(target, operation: str, field: str, reason: str) -> None:
    entity_type = type(target).__name__
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": entity_type,
            "entity_id": str(target.id),
            "operation": operation,
            "field": field,
        },
    )
    raise ImmutabilityViolationError(
        entity_type=entity_type,
        entity_id=str(target.id),
        reason=reason,
    )


def _check_signature_immutability(mapper, connection, target):
    """Refuse a flush that changes a recorded signature or the chain composition."""
    insp = sa_inspect(target)
    for key in WRITE_ONCE_COLUMNS:
        hist = insp.attrs[key].history
        if not hist.has_changes():
            continue
        previous = [value for value in hist.deleted if value is not None]
        if previous:
            _refuse(target, "UPDATE", key, f"Cannot modify recorded field '{key}'")

    if _stored_value(insp, "signature_roles"):
        for key in COMPOSITION_COLUMNS:
            if insp.attrs[key].history.has_changes():
                _refuse(
                    target,
                    "UPDATE",
                    key,
                    f"Cannot modify '{key}' of an initialized signature chain",
                )

    _check_chain_integrity(target, inserting=False)


# =============================================================================
# Chain Shape and Status
# =============================================================================


def _integrity_error(target, reason: str) -> ChainIntegrityError:
    entity_type = type(target).__name__
    logger.error(
        "chain_integrity_violation_blocked",
        extra={
            "entity_type": entity_type,
            "entity_id": str(target.id),
            "reason": reason,
        },
    )
    return ChainIntegrityError(entity_type, str(target.id), reason)


def _check_chain_integrity(target, inserting: bool) -> None:
    filled = [
        getattr(target, f"{prefix}_signed_by") is not None
        for prefix in SLOT_COLUMN_PREFIXES
    ]
    roles = target.signature_roles
    if not roles:
        if any(filled):
            raise _integrity_error(target, "signature slots filled without a chain")
        return

    length = len(roles.split(ROLE_SEPARATOR))
    if length > MAX_SLOTS:
        raise _integrity_error(
            target, f"{length} roles exceed the {MAX_SLOTS} slot columns"
        )
    if any(filled[length:]):
        raise _integrity_error(target, f"slot filled beyond the {length} roles")
    filled_count = sum(filled)
    if any(filled[filled_count:]):
        raise _integrity_error(target, "filled slots do not form a prefix")

    chain_status = status_for_fill(
        filled_count, length, rejected=target.rejected_by is not None,
    )
    expected = target.chain_status_map[chain_status].value

    stored = target.status
    if stored is None and inserting:
        target.status = expected
        return
    if isinstance(stored, Enum):
        stored = stored.value
    workflow_values = {status.value for status in target.chain_status_map.values()}
    if stored in workflow_values and stored != expected:
        raise _integrity_error(
            target,
            f"status {stored!r} does not match the chain ({expected!r})",
        )


def _check_new_chain(mapper, connection, target):
    """Derive a missing status on insert and refuse inconsistent chains."""
    _check_chain_integrity(target, inserting=True)


event.listen(
    SignatureFlowMixin,
    "before_update",
    _check_signature_immutability,
    propagate=True,
)

event.listen(
    SignatureFlowMixin,
    "before_insert",
    _check_new_chain,
    propagate=True,
)
