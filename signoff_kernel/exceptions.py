"""
Typed Exception Hierarchy for the Signoff Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers of the signature workflow (UI actions, API handlers) have to turn
every refusal into a precise user-facing message: "you may not sign this",
"someone else already signed", "this document is fully approved".  Parsing
message strings for that is fragile, so:

  1. Every error has a TYPED exception class (catch by type, not message)
  2. Every exception has a CODE attribute (machine-readable, API-safe)
  3. Exceptions carry structured DATA (not just a message string)

Example:
    try:
        service.sign(DocumentKind.REQUIREMENT, document_id, signer)
    except OutOfOrderError as e:
        # Lost a race: reload and re-evaluate can_sign()
        api_response(code=e.code, expected=e.expected_index)
    except NotAuthorizedError as e:
        api_response(code=e.code, capability=e.required_capability)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    SignoffError (base)
    |
    +-- SignatureError
    |   +-- NotAuthorizedError
    |   +-- AlreadyTerminalError
    |   +-- OutOfOrderError
    |   +-- SignatureImageMissingError
    |   +-- RejectionReasonRequiredError
    |   +-- ChainAlreadyInitializedError
    |
    +-- ConfigurationError
    |   +-- InvalidConfigurationError
    |
    +-- DocumentError
    |   +-- DocumentNotFoundError
    |
    +-- ImmutabilityError
        +-- ImmutabilityViolationError
        +-- ChainIntegrityError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Signature       | NOT_AUTHORIZED              | Identity/capability check failed
                | ALREADY_TERMINAL            | Chain fully signed or rejected
                | OUT_OF_ORDER                | Stale slot target / lost write race
                | SIGNATURE_IMAGE_MISSING     | Signer has no registered signature
                | REJECTION_REASON_REQUIRED   | Reject called with a blank reason
                | CHAIN_ALREADY_INITIALIZED   | initialize_chain on a record with a chain
----------------|-----------------------------|-----------------------------------------
Configuration   | INVALID_CONFIGURATION       | Empty or unknown role subset, unknown
                |                             | template, unreadable stored chain
----------------|-----------------------------|-----------------------------------------
Document        | DOCUMENT_NOT_FOUND          | No record for kind/id
----------------|-----------------------------|-----------------------------------------
Immutability    | IMMUTABILITY_VIOLATION      | Flush would change a filled signature or
                |                             | the composition of an existing chain
                | CHAIN_INTEGRITY_VIOLATION   | Flush would store slots that are not a
                |                             | prefix, or a status they do not produce

None of these are retried by the kernel.  OUT_OF_ORDER is the one code a
caller is expected to retry: reload fresh state, re-check, try again.
"""


class SignoffError(Exception):
    """
    Base exception for all signoff kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "SIGNOFF_ERROR"


# Signature-related exceptions


class SignatureError(SignoffError):
    """Base exception for signature workflow errors."""

    code: str = "SIGNATURE_ERROR"


class NotAuthorizedError(SignatureError):
    """The actor may not sign the next slot of this chain."""

    code: str = "NOT_AUTHORIZED"

    def __init__(
        self,
        actor_id: str | None,
        slot_index: int | None,
        required_capability: str | None = None,
        reason: str = "",
    ):
        self.actor_id = actor_id
        self.slot_index = slot_index
        self.required_capability = required_capability
        self.reason = reason
        detail = f": {reason}" if reason else ""
        super().__init__(
            f"Actor {actor_id} is not authorized to sign slot {slot_index}{detail}"
        )


class AlreadyTerminalError(SignatureError):
    """The chain has no next slot: every slot is signed, or it was rejected."""

    code: str = "ALREADY_TERMINAL"

    def __init__(self, document_kind: str, document_id: str, status: str):
        self.document_kind = document_kind
        self.document_id = document_id
        self.status = status
        super().__init__(
            f"{document_kind} {document_id} is already terminal ({status})"
        )


class OutOfOrderError(SignatureError):
    """
    The targeted slot is not the next unfilled one.

    Raised for a stale client target and for the loser of a concurrent
    compare-and-write on the same chain version.
    """

    code: str = "OUT_OF_ORDER"

    def __init__(
        self,
        document_id: str,
        expected_index: int | None,
        actual_index: int | None,
        reason: str = "",
    ):
        self.document_id = document_id
        self.expected_index = expected_index
        self.actual_index = actual_index
        self.reason = reason
        detail = f": {reason}" if reason else ""
        super().__init__(
            f"Out-of-order signature on {document_id}: targeted slot "
            f"{expected_index}, next unfilled slot is {actual_index}{detail}"
        )


class SignatureImageMissingError(SignatureError):
    """The signer has no registered signature image."""

    code: str = "SIGNATURE_IMAGE_MISSING"

    def __init__(self, actor_id: str):
        self.actor_id = actor_id
        super().__init__(f"Actor {actor_id} has no registered signature")


class RejectionReasonRequiredError(SignatureError):
    """A rejection must carry a non-blank reason."""

    code: str = "REJECTION_REASON_REQUIRED"

    def __init__(self, document_id: str):
        self.document_id = document_id
        super().__init__(f"Rejecting {document_id} requires a reason")


class ChainAlreadyInitializedError(SignatureError):
    """The record already carries a signature chain; its composition is fixed."""

    code: str = "CHAIN_ALREADY_INITIALIZED"

    def __init__(self, document_kind: str, document_id: str):
        self.document_kind = document_kind
        self.document_id = document_id
        super().__init__(
            f"{document_kind} {document_id} already has a signature chain"
        )


# Configuration-related exceptions


class ConfigurationError(SignoffError):
    """Base exception for signature configuration errors."""

    code: str = "CONFIGURATION_ERROR"


class InvalidConfigurationError(ConfigurationError):
    """A role subset or template is invalid, or a stored chain cannot be read."""

    code: str = "INVALID_CONFIGURATION"

    def __init__(self, document_kind: str, reason: str):
        self.document_kind = document_kind
        self.reason = reason
        super().__init__(
            f"Invalid signature configuration for {document_kind}: {reason}"
        )


# Document-related exceptions


class DocumentError(SignoffError):
    """Base exception for document lookup errors."""

    code: str = "DOCUMENT_ERROR"


class DocumentNotFoundError(DocumentError):
    """Document with given kind and ID was not found."""

    code: str = "DOCUMENT_NOT_FOUND"

    def __init__(self, document_kind: str, document_id: str):
        self.document_kind = document_kind
        self.document_id = document_id
        super().__init__(f"{document_kind} not found: {document_id}")


# Immutability-related exceptions


class ImmutabilityError(SignoffError):
    """Base exception for immutability-related errors."""

    code: str = "IMMUTABILITY_ERROR"


class ImmutabilityViolationError(ImmutabilityError):
    """
    Attempted to modify or clear a recorded signature.

    Signatures are never revoked through the kernel; a filled slot column
    may not change once written.
    """

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Immutability violation on {entity_type} {entity_id}: {reason}"
        )


class ChainIntegrityError(ImmutabilityError):
    """
    A flush would store a chain that the workflow can never produce.

    Filled slots must form a prefix of ``signature_roles`` and the stored
    document status must be the one derived from them.
    """

    code: str = "CHAIN_INTEGRITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Chain integrity violation on {entity_type} {entity_id}: {reason}"
        )
