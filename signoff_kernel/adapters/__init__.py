"""Record <-> ApprovalChain adapters, one per document kind."""

from signoff_kernel.adapters.base import DocumentAdapter
from signoff_kernel.adapters.quotation import QuotationAdapter
from signoff_kernel.adapters.requirement import RequirementAdapter
from signoff_kernel.domain.policy import SignatureSettings
from signoff_kernel.domain.signature import DocumentKind

ADAPTER_CLASSES: dict[DocumentKind, type[DocumentAdapter]] = {
    DocumentKind.REQUIREMENT: RequirementAdapter,
    DocumentKind.QUOTATION: QuotationAdapter,
}


def build_adapters(settings: SignatureSettings) -> dict[DocumentKind, DocumentAdapter]:
    """Instantiate one adapter per document kind."""
    return {kind: cls(settings) for kind, cls in ADAPTER_CLASSES.items()}


__all__ = [
    "ADAPTER_CLASSES",
    "DocumentAdapter",
    "QuotationAdapter",
    "RequirementAdapter",
    "build_adapters",
]
