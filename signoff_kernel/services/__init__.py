"""Kernel services (imperative shell over the pure engines)."""

from signoff_kernel.services.base import BaseService
from signoff_kernel.services.signature_service import SignAction, SignatureService

__all__ = ["BaseService", "SignAction", "SignatureService"]
