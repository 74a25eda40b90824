"""Adapter for requirement records."""

from signoff_kernel.adapters.base import DocumentAdapter
from signoff_kernel.domain.documents import REQUIREMENT_STATUS_FOR_CHAIN
from signoff_kernel.domain.signature import DocumentKind
from signoff_kernel.models.requirement import RequirementModel


class RequirementAdapter(DocumentAdapter):
    """Requirement chains: up to four signatures, amount-driven senior slot."""

    document_kind = DocumentKind.REQUIREMENT
    model = RequirementModel
    status_map = REQUIREMENT_STATUS_FOR_CHAIN
