"""
Module: signoff_kernel.models.requirement
Responsibility: ORM persistence for purchase/expense requirements.

Architecture position: Kernel > Models.  May import from db/base.py, domain/
    enums and models/signature_flow.py only.

Invariants enforced:
    - ``status`` always holds a RequirementStatus value and is written in
      the same statement as the slot columns it is derived from.
    - Recorded signatures are immutable (see signature_flow).
"""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import CheckConstraint, Index, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from signoff_kernel.db.base import TrackedBase
from signoff_kernel.domain.documents import REQUIREMENT_STATUS_FOR_CHAIN, RequirementStatus
from signoff_kernel.models.signature_flow import SignatureFlowMixin


class RequirementModel(SignatureFlowMixin, TrackedBase):
    """Persistent requirement with its signature chain columns."""

    __tablename__ = "requirements"
    chain_status_map = REQUIREMENT_STATUS_FOR_CHAIN

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'signed_1', 'signed_2', 'signed_3', "
            "'approved', 'rejected', 'cancelled')",
            name="ck_requirements_valid_status",
        ),
        Index("ix_requirements_status", "status"),
    )

    code: Mapped[str] = mapped_column(String(50), nullable=False, default="")
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    amount: Mapped[Decimal | None] = mapped_column(Numeric(18, 2), nullable=True)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="USD")
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=RequirementStatus.PENDING.value,
    )

    def __repr__(self) -> str:
        return f"<Requirement {self.id} {self.code} status={self.status} v{self.version}>"
