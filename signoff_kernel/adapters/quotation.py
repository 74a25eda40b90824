"""Adapter for quotation request records."""

from signoff_kernel.adapters.base import DocumentAdapter
from signoff_kernel.domain.documents import QUOTATION_STATUS_FOR_CHAIN
from signoff_kernel.domain.signature import DocumentKind
from signoff_kernel.models.quotation import QuotationRequestModel


class QuotationAdapter(DocumentAdapter):
    """Quotation request chains.  No amount threshold applies."""

    document_kind = DocumentKind.QUOTATION
    model = QuotationRequestModel
    status_map = QUOTATION_STATUS_FOR_CHAIN
