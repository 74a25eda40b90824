"""
DocumentAdapter -- translate between document records and signature chains.

Responsibility:
    Each document type stores its chain in four named slot column groups
    plus a handful of chain columns (see ``models.signature_flow``).  An
    adapter reads those columns into an ``ApprovalChain``, writes a chain
    back, and maps the derived ``ChainStatus`` onto the document's own
    status enum.

Architecture position:
    Kernel > Adapters.  May import from domain/ and models/.  Used by
    selectors and services; engines never see records.

Invariants enforced:
    - Round trip: ``to_chain(from_chain(chain)) == chain`` for any chain
      built with the same settings.
    - Status translation is a bijection between ChainStatus and the
      signature-driven members of the document enum.
    - Capabilities are not stored per record; they are re-derived from the
      compiled policy by slot index.

Failure modes:
    - ValueError when translating a document status that the signature
      workflow never produces (e.g. CANCELLED).
    - InvalidConfigurationError when a stored role tag is not recognized,
      when more roles are stored than there are slot columns, or when a
      slot column beyond the stored roles is signed.
"""

from __future__ import annotations

from abc import ABC
from enum import Enum
from typing import Any, ClassVar

from signoff_kernel.domain.policy import SignatureSettings
from signoff_kernel.domain.signature import (
    MAX_SLOTS,
    ApprovalChain,
    ChainStatus,
    DocumentKind,
    Rejection,
    RoleTag,
    SignatureSlot,
)
from signoff_kernel.exceptions import InvalidConfigurationError
from signoff_kernel.models.signature_flow import ROLE_SEPARATOR, SLOT_COLUMN_PREFIXES


class DocumentAdapter(ABC):
    """Base adapter; subclasses bind a document kind, model and status enum."""

    document_kind: ClassVar[DocumentKind]
    model: ClassVar[type]
    status_map: ClassVar[dict[ChainStatus, Enum]]

    def __init__(self, settings: SignatureSettings):
        self.settings = settings
        self._reverse_status = {doc: chain for chain, doc in self.status_map.items()}

    # ------------------------------------------------------------------
    # Status translation
    # ------------------------------------------------------------------

    def document_status(self, chain_status: ChainStatus) -> Enum:
        return self.status_map[chain_status]

    def chain_status(self, document_status: Enum | str) -> ChainStatus:
        status_enum = type(next(iter(self.status_map.values())))
        member = status_enum(document_status)
        try:
            return self._reverse_status[member]
        except KeyError:
            raise ValueError(
                f"{self.document_kind.value} status {member.value!r} "
                f"is not produced by the signature workflow"
            ) from None

    # ------------------------------------------------------------------
    # Record <-> chain
    # ------------------------------------------------------------------

    def to_chain(self, record: Any) -> ApprovalChain:
        """Read the chain stored on ``record``."""
        policy = self.settings.policy_for(self.document_kind)
        roles = self._parse_roles(record.signature_roles)
        if len(roles) > MAX_SLOTS:
            raise InvalidConfigurationError(
                self.document_kind.value,
                f"record stores {len(roles)} roles, only {MAX_SLOTS} slots exist",
            )
        for prefix in SLOT_COLUMN_PREFIXES[len(roles):]:
            if getattr(record, f"{prefix}_signed_by") is not None:
                raise InvalidConfigurationError(
                    self.document_kind.value,
                    f"slot '{prefix}' is signed but the chain has {len(roles)} roles",
                )

        slots = []
        for index, role in enumerate(roles):
            prefix = SLOT_COLUMN_PREFIXES[index]
            slots.append(
                SignatureSlot(
                    role=role,
                    required_capability=policy.capability_for_slot(index),
                    signed_by=getattr(record, f"{prefix}_signed_by"),
                    signed_at=getattr(record, f"{prefix}_signed_at"),
                    signature=getattr(record, f"{prefix}_signature"),
                )
            )

        rejection = None
        if record.rejected_by is not None:
            rejection = Rejection(
                rejected_by=record.rejected_by,
                rejected_at=record.rejected_at,
                reason=record.rejected_reason or "",
            )

        return ApprovalChain(
            document_kind=self.document_kind,
            document_id=record.id,
            initiator_id=record.created_by_id,
            slots=tuple(slots),
            special_condition=bool(record.management_required),
            version=record.version or 0,
            rejection=rejection,
        )

    def from_chain(self, chain: ApprovalChain, record: Any | None = None) -> Any:
        """Write ``chain`` onto ``record`` (a new transient record if None)."""
        if record is None:
            record = self.model(id=chain.document_id, created_by_id=chain.initiator_id)
        for column, value in self.column_values(chain).items():
            setattr(record, column, value)
        record.version = chain.version
        return record

    def column_values(self, chain: ApprovalChain) -> dict[str, Any]:
        """Column -> value mapping for the chain, including the document status."""
        values: dict[str, Any] = {
            "signature_roles": ROLE_SEPARATOR.join(role.value for role in chain.roles),
            "management_required": chain.special_condition,
            "status": self.document_status(chain.status).value,
            "rejected_by": chain.rejection.rejected_by if chain.rejection else None,
            "rejected_at": chain.rejection.rejected_at if chain.rejection else None,
            "rejected_reason": chain.rejection.reason if chain.rejection else None,
        }
        for index, prefix in enumerate(SLOT_COLUMN_PREFIXES):
            slot = chain.slots[index] if index < len(chain.slots) else None
            values[f"{prefix}_signed_by"] = slot.signed_by if slot else None
            values[f"{prefix}_signed_at"] = slot.signed_at if slot else None
            values[f"{prefix}_signature"] = slot.signature if slot else None
        return values

    def _parse_roles(self, stored: str | None) -> tuple[RoleTag, ...]:
        if not stored:
            raise InvalidConfigurationError(
                self.document_kind.value, "record has no signature roles"
            )
        roles = []
        for raw in stored.split(ROLE_SEPARATOR):
            try:
                roles.append(RoleTag(raw.strip()))
            except ValueError:
                raise InvalidConfigurationError(
                    self.document_kind.value, f"unknown stored role {raw!r}"
                ) from None
        return tuple(roles)
