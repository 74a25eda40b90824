"""
Signoff Kernel

Sequential, role-gated signature workflow for procurement documents:
- Ordered signature chains per document (Requirement, Quotation Request)
- Status derived from slot fulfillment, never stored independently
- Creator-identity first signature, capability-gated later signatures
- Compare-and-write persistence that rejects racing signers
"""

__version__ = "0.1.0"
