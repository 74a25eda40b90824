"""
signoff_kernel.services.signature_service -- Signature workflow over stored documents.

Responsibility:
    Load a document's chain, let the pure engine decide, and persist the
    result with a compare-and-write keyed on the chain version.  Also builds
    the chain for freshly created documents and answers "may this user sign
    now?" for the UI.

Architecture position:
    Kernel > Services.  May import from domain/, models/, adapters/,
    selectors/, db/ and signoff_engines.

Invariants enforced:
    - Decisions are made on a chain re-read from the database in the same
      call, never on a cached copy.
    - Slot columns, status and version are written by one UPDATE whose
      WHERE clause pins the version that was read.  Zero rows updated means
      another writer got there first: OutOfOrderError, nothing written.
    - Flush only; the caller owns commit/rollback.  No retries.

Failure modes:
    - DocumentNotFoundError: unknown document.
    - SignatureImageMissingError: signer has no registered signature image.
    - NotAuthorizedError / AlreadyTerminalError / OutOfOrderError from the
      engine, and OutOfOrderError for a lost compare-and-write.
    - RejectionReasonRequiredError: reject with a blank reason.
    - InvalidConfigurationError: bad role subset at chain initialization.
    - ChainAlreadyInitializedError: initialize_chain on a record that
      already has a chain; the stored chain is left untouched.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from uuid import UUID, uuid4

from sqlalchemy import update
from sqlalchemy.orm import Session

from signoff_engines.signature_chain import (
    can_advance,
    record_rejection,
    record_signature,
    sign_label,
)
from signoff_engines.signature_policy import build_chain
from signoff_kernel.adapters import DocumentAdapter, build_adapters
from signoff_kernel.domain.clock import Clock, SystemClock
from signoff_kernel.domain.permissions import PermissionOracle
from signoff_kernel.domain.policy import SignatureSettings
from signoff_kernel.domain.signature import (
    ApprovalChain,
    ChainStatus,
    DocumentKind,
    RoleTag,
    Signer,
)
from signoff_kernel.exceptions import (
    ChainAlreadyInitializedError,
    OutOfOrderError,
    SignatureImageMissingError,
)
from signoff_kernel.logging_config import LogContext, get_logger
from signoff_kernel.selectors.chain_selector import ChainSelector
from signoff_kernel.services.base import BaseService

logger = get_logger("services.signature")


@dataclass(frozen=True)
class SignAction:
    """What the sign button should show for a user."""

    label: str
    enabled: bool


class SignatureService(BaseService):
    """Sequential signature workflow for requirements and quotation requests."""

    def __init__(
        self,
        session: Session,
        settings: SignatureSettings,
        oracle: PermissionOracle,
        clock: Clock | None = None,
    ):
        super().__init__(session)
        self._settings = settings
        self._oracle = oracle
        self._clock = clock or SystemClock()
        self._adapters = build_adapters(settings)
        self._selector = ChainSelector(session, self._adapters)

    def adapter(self, kind: DocumentKind) -> DocumentAdapter:
        return self._adapters[kind]

    # ------------------------------------------------------------------
    # Chain creation
    # ------------------------------------------------------------------

    def initialize_chain(
        self,
        record,
        configured_roles: Iterable[RoleTag | str] | None = None,
        template: str | None = None,
    ) -> ApprovalChain:
        """Build the chain for a new document record and add it to the session.

        Args:
            record: A RequirementModel or QuotationRequestModel with
                ``created_by_id`` (and ``amount`` for requirements) set.
            configured_roles: Role subset to sign, or None for all roles.
            template: Name of a configured role template instead of a subset.

        Raises:
            ChainAlreadyInitializedError: The record already has a chain.
        """
        kind = self._kind_for(record)
        if record.signature_roles:
            raise ChainAlreadyInitializedError(kind.value, str(record.id))
        if record.id is None:
            record.id = uuid4()

        chain = build_chain(
            self._settings,
            kind,
            configured_roles,
            record.amount,
            document_id=record.id,
            initiator_id=record.created_by_id,
            template=template,
        )
        self._adapters[kind].from_chain(chain, record)
        self.session.add(record)
        self.session.flush()

        logger.info(
            "signature_chain_initialized",
            extra={
                "document_kind": kind.value,
                "document_id": str(record.id),
                "roles": [role.value for role in chain.roles],
                "template": template,
                "special_condition": chain.special_condition,
            },
        )
        return chain

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_chain(self, kind: DocumentKind, document_id: UUID) -> ApprovalChain:
        return self._selector.get_chain(kind, document_id)

    def can_sign(
        self,
        kind: DocumentKind,
        document_id: UUID,
        signer: Signer | None,
    ) -> bool:
        chain = self._selector.get_chain(kind, document_id)
        return can_advance(signer, chain, self._oracle)

    def sign_action(
        self,
        kind: DocumentKind,
        document_id: UUID,
        signer: Signer | None,
    ) -> SignAction:
        chain = self._selector.get_chain(kind, document_id)
        return SignAction(
            label=sign_label(chain),
            enabled=can_advance(signer, chain, self._oracle),
        )

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def sign(
        self,
        kind: DocumentKind,
        document_id: UUID,
        signer: Signer | None,
        expected_slot: int | None = None,
    ) -> ApprovalChain:
        """Fill the next slot of the document's chain with ``signer``.

        Args:
            kind: Document kind.
            document_id: Document to sign.
            signer: The signing user; must have a registered signature image.
            expected_slot: Slot index the caller saw as next, if any.

        Returns:
            The persisted chain (version bumped).
        """
        actor = str(signer.user_id) if signer is not None else None
        with LogContext.bind(
            actor_id=actor, document_kind=kind.value, document_id=str(document_id),
        ):
            if signer is not None and not signer.signature:
                raise SignatureImageMissingError(actor)

            chain = self._selector.get_chain(kind, document_id)
            updated = record_signature(
                signer,
                chain,
                self._oracle,
                signed_at=self._clock.now(),
                target_index=expected_slot,
            )
            persisted = self.persist(kind, chain, updated, actor_id=signer.user_id)

            slot_index = chain.filled_count
            logger.info(
                "signature_recorded",
                extra={
                    "slot_index": slot_index,
                    "role": persisted.slots[slot_index].role.value,
                    "status": persisted.status.value,
                    "version": persisted.version,
                },
            )
            if persisted.status == ChainStatus.APPROVED:
                logger.info(
                    "document_approved",
                    extra={
                        "slots": len(persisted.slots),
                        "special_condition": persisted.special_condition,
                    },
                )
            return persisted

    def reject(
        self,
        kind: DocumentKind,
        document_id: UUID,
        signer: Signer | None,
        reason: str,
        expected_slot: int | None = None,
    ) -> ApprovalChain:
        """Reject the document on behalf of the user eligible for the next slot."""
        actor = str(signer.user_id) if signer is not None else None
        with LogContext.bind(
            actor_id=actor, document_kind=kind.value, document_id=str(document_id),
        ):
            chain = self._selector.get_chain(kind, document_id)
            updated = record_rejection(
                signer,
                chain,
                self._oracle,
                rejected_at=self._clock.now(),
                reason=reason,
                target_index=expected_slot,
            )
            persisted = self.persist(kind, chain, updated, actor_id=signer.user_id)

            logger.warning(
                "signature_rejected",
                extra={
                    "slot_index": chain.filled_count,
                    "reason": persisted.rejection.reason,
                    "version": persisted.version,
                },
            )
            return persisted

    def persist(
        self,
        kind: DocumentKind,
        expected: ApprovalChain,
        updated: ApprovalChain,
        actor_id: UUID | None = None,
    ) -> ApprovalChain:
        """Compare-and-write ``updated`` over the stored chain.

        The write only lands if the stored version still equals
        ``expected.version``.

        Raises:
            OutOfOrderError: The stored chain moved on since ``expected`` was read.
        """
        adapter = self._adapters[kind]
        model = adapter.model

        values = adapter.column_values(updated)
        values["version"] = expected.version + 1
        if actor_id is not None:
            values["updated_by_id"] = actor_id

        result = self.session.execute(
            update(model)
            .where(model.id == expected.document_id, model.version == expected.version)
            .values(**values)
            .execution_options(synchronize_session=False)
        )

        if result.rowcount != 1:
            current = self._selector.get_chain(kind, expected.document_id)
            logger.warning(
                "signature_conflict",
                extra={
                    "expected_version": expected.version,
                    "stored_version": current.version,
                    "expected_index": expected.filled_count,
                    "stored_index": current.next_index,
                },
            )
            raise OutOfOrderError(
                str(expected.document_id),
                expected.filled_count,
                current.next_index,
                reason="chain changed concurrently",
            )

        return self._selector.get_chain(kind, expected.document_id)

    def _kind_for(self, record) -> DocumentKind:
        for kind, adapter in self._adapters.items():
            if isinstance(record, adapter.model):
                return kind
        raise TypeError(f"No signature adapter for {type(record).__name__}")
