"""
Signoff kernel domain layer.

Pure value objects and protocols, zero I/O.
"""

from signoff_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from signoff_kernel.domain.documents import (
    QUOTATION_STATUS_FOR_CHAIN,
    REQUIREMENT_STATUS_FOR_CHAIN,
    QuotationStatus,
    RequirementStatus,
)
from signoff_kernel.domain.permissions import PermissionOracle, RolePermissionOracle
from signoff_kernel.domain.policy import SignaturePolicy, SignatureSettings
from signoff_kernel.domain.signature import (
    MAX_SLOTS,
    ROLE_LABELS,
    TERMINAL_CHAIN_STATUSES,
    ApprovalChain,
    ChainStatus,
    DocumentKind,
    Rejection,
    RoleTag,
    SignatureSlot,
    Signer,
    derive_status,
    status_for_fill,
)

__all__ = [
    "MAX_SLOTS",
    "QUOTATION_STATUS_FOR_CHAIN",
    "REQUIREMENT_STATUS_FOR_CHAIN",
    "ROLE_LABELS",
    "TERMINAL_CHAIN_STATUSES",
    "ApprovalChain",
    "ChainStatus",
    "Clock",
    "DeterministicClock",
    "DocumentKind",
    "PermissionOracle",
    "QuotationStatus",
    "Rejection",
    "RequirementStatus",
    "RoleTag",
    "RolePermissionOracle",
    "SignaturePolicy",
    "SignatureSettings",
    "SignatureSlot",
    "Signer",
    "SystemClock",
    "derive_status",
    "status_for_fill",
]
