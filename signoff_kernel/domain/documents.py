"""
Document status enums.

Each document type keeps its own status column.  Only the signature-driven
members are reachable through the signature workflow; the others
(``CANCELLED``, and ``DRAFT`` on quotations) belong to document lifecycle
operations outside this kernel.

The ``*_STATUS_FOR_CHAIN`` maps are the single translation from a derived
``ChainStatus`` to the stored document status.  Adapters use them to write
the status column and the ORM guard uses them to check it.
"""

from enum import Enum

from signoff_kernel.domain.signature import ChainStatus


class RequirementStatus(str, Enum):
    """Lifecycle status of a purchase/expense requirement."""

    PENDING = "pending"
    SIGNED_1 = "signed_1"
    SIGNED_2 = "signed_2"
    SIGNED_3 = "signed_3"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


class QuotationStatus(str, Enum):
    """Lifecycle status of a quotation request."""

    DRAFT = "draft"
    PENDING = "pending"
    SIGNED_1 = "signed_1"
    SIGNED_2 = "signed_2"
    SIGNED_3 = "signed_3"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


REQUIREMENT_STATUS_FOR_CHAIN: dict[ChainStatus, RequirementStatus] = {
    ChainStatus.DRAFT: RequirementStatus.PENDING,
    ChainStatus.SIGNED_1: RequirementStatus.SIGNED_1,
    ChainStatus.SIGNED_2: RequirementStatus.SIGNED_2,
    ChainStatus.SIGNED_3: RequirementStatus.SIGNED_3,
    ChainStatus.APPROVED: RequirementStatus.APPROVED,
    ChainStatus.REJECTED: RequirementStatus.REJECTED,
}

QUOTATION_STATUS_FOR_CHAIN: dict[ChainStatus, QuotationStatus] = {
    ChainStatus.DRAFT: QuotationStatus.PENDING,
    ChainStatus.SIGNED_1: QuotationStatus.SIGNED_1,
    ChainStatus.SIGNED_2: QuotationStatus.SIGNED_2,
    ChainStatus.SIGNED_3: QuotationStatus.SIGNED_3,
    ChainStatus.APPROVED: QuotationStatus.APPROVED,
    ChainStatus.REJECTED: QuotationStatus.REJECTED,
}
