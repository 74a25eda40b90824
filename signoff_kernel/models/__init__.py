"""SQLAlchemy ORM models for documents that carry a signature chain."""

from signoff_kernel.models.quotation import QuotationRequestModel
from signoff_kernel.models.requirement import RequirementModel
from signoff_kernel.models.signature_flow import (
    SLOT_COLUMN_PREFIXES,
    SignatureFlowMixin,
)

__all__ = [
    "SLOT_COLUMN_PREFIXES",
    "QuotationRequestModel",
    "RequirementModel",
    "SignatureFlowMixin",
]
