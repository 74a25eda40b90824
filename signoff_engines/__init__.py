"""
Signoff Engines - Pure calculation over signature chains.

Engines hold no state, read no clock and touch no database.  They consume
``signoff_kernel.domain`` values and return new ones.

- signature_policy: build the chain a new document will carry
- signature_chain: decide and apply signatures and rejections
"""

from signoff_engines.signature_chain import (
    approval_progress,
    can_advance,
    next_slot_index,
    record_rejection,
    record_signature,
    required_capability,
    sign_label,
    status_label,
)
from signoff_engines.signature_policy import (
    build_chain,
    requires_senior_approval,
    resolve_roles,
)

__all__ = [
    "approval_progress",
    "build_chain",
    "can_advance",
    "next_slot_index",
    "record_rejection",
    "record_signature",
    "required_capability",
    "requires_senior_approval",
    "resolve_roles",
    "sign_label",
    "status_label",
]
