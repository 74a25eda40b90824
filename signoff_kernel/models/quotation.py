"""
Module: signoff_kernel.models.quotation
Responsibility: ORM persistence for quotation requests.

Architecture position: Kernel > Models.  May import from db/base.py, domain/
    enums and models/signature_flow.py only.

Invariants enforced:
    - ``status`` always holds a QuotationStatus value and is written in the
      same statement as the slot columns it is derived from.
    - Recorded signatures are immutable (see signature_flow).
"""

from __future__ import annotations

from decimal import Decimal
from uuid import UUID

from sqlalchemy import CheckConstraint, ForeignKey, Index, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from signoff_kernel.db.base import TrackedBase, UUIDString
from signoff_kernel.domain.documents import QUOTATION_STATUS_FOR_CHAIN, QuotationStatus
from signoff_kernel.models.signature_flow import SignatureFlowMixin


class QuotationRequestModel(SignatureFlowMixin, TrackedBase):
    """Persistent quotation request with its signature chain columns."""

    __tablename__ = "quotation_requests"
    chain_status_map = QUOTATION_STATUS_FOR_CHAIN

    __table_args__ = (
        CheckConstraint(
            "status IN ('draft', 'pending', 'signed_1', 'signed_2', 'signed_3', "
            "'approved', 'rejected', 'cancelled')",
            name="ck_quotation_requests_valid_status",
        ),
        Index("ix_quotation_requests_status", "status"),
    )

    code: Mapped[str] = mapped_column(String(50), nullable=False, default="")
    requirement_id: Mapped[UUID | None] = mapped_column(
        UUIDString(), ForeignKey("requirements.id"), nullable=True,
    )
    amount: Mapped[Decimal | None] = mapped_column(Numeric(18, 2), nullable=True)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="USD")
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=QuotationStatus.PENDING.value,
    )

    def __repr__(self) -> str:
        return (
            f"<QuotationRequest {self.id} {self.code} "
            f"status={self.status} v{self.version}>"
        )
