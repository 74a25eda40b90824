"""
Module: signoff_kernel.selectors.chain_selector
Responsibility: Read signature chains of stored documents.
Architecture position: Kernel > Selectors.  Read-only.

Invariants enforced:
    - Every load re-reads the row (populate_existing), so a chain is never
      decided on from an identity-map copy that another session has since
      overwritten.

Failure modes:
    - DocumentNotFoundError if no record matches kind and id.
"""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from signoff_kernel.adapters import DocumentAdapter
from signoff_kernel.domain.signature import ApprovalChain, DocumentKind
from signoff_kernel.exceptions import DocumentNotFoundError
from signoff_kernel.selectors.base import BaseSelector


class ChainSelector(BaseSelector):
    """Load document records and their chains."""

    def __init__(
        self,
        session: Session,
        adapters: dict[DocumentKind, DocumentAdapter],
    ):
        super().__init__(session)
        self._adapters = adapters

    def adapter(self, kind: DocumentKind) -> DocumentAdapter:
        return self._adapters[kind]

    def get_record(self, kind: DocumentKind, document_id: UUID):
        """Fresh ORM record for the document.  Raises DocumentNotFoundError."""
        model = self._adapters[kind].model
        record = self.session.execute(
            select(model)
            .where(model.id == document_id)
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if record is None:
            raise DocumentNotFoundError(kind.value, str(document_id))
        return record

    def get_chain(self, kind: DocumentKind, document_id: UUID) -> ApprovalChain:
        return self._adapters[kind].to_chain(self.get_record(kind, document_id))
