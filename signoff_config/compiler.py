"""
Configuration Compiler -- SignatureConfigurationSet -> SignatureSettings.

The compiler validates the configuration set and produces the frozen
runtime artifact the kernel consumes.  ``SignatureSettings`` is the ONLY
configuration object services and engines accept.

Compilation validates:
  - Every document kind is known, and every known kind is configured
  - Role tags are known, unique, and at most four per kind
  - Default roles are a non-empty subset of the canonical roles
  - Exactly one transition capability per slot after the first
  - The senior role is canonical
  - The amount threshold is a non-negative decimal, on requirements only
  - Every named template lists at least one canonical role
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from signoff_config.schema import DocumentSignatureDef, SignatureConfigurationSet
from signoff_kernel.domain.policy import SignaturePolicy, SignatureSettings
from signoff_kernel.domain.signature import MAX_SLOTS, DocumentKind, RoleTag
from signoff_kernel.exceptions import ConfigurationError


# ---------------------------------------------------------------------------
# Compilation errors
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CompilationError:
    """An error found during compilation."""

    category: str  # e.g., "document", "role", "capability", "threshold"
    message: str
    document_kind: str = ""


class CompilationFailedError(ConfigurationError):
    """Compilation produced errors that prevent creating valid settings."""

    code: str = "COMPILATION_FAILED"

    def __init__(self, errors: list[CompilationError]):
        self.errors = errors
        messages = [f"  [{e.category}] {e.message}" for e in errors]
        super().__init__(
            f"Compilation failed with {len(messages)} error(s):\n"
            + "\n".join(messages)
        )


# ---------------------------------------------------------------------------
# Compiler
# ---------------------------------------------------------------------------


def compile_settings(config: SignatureConfigurationSet) -> SignatureSettings:
    """Compile a SignatureConfigurationSet into SignatureSettings.

    Raises:
        CompilationFailedError: If validation produces errors.
    """
    errors: list[CompilationError] = []
    policies: dict[DocumentKind, SignaturePolicy] = {}

    for doc in config.documents:
        try:
            kind = DocumentKind(doc.document_kind)
        except ValueError:
            errors.append(CompilationError(
                "document", f"Unknown document kind '{doc.document_kind}'",
                doc.document_kind,
            ))
            continue
        policy = _compile_document(kind, doc, errors)
        if policy is not None:
            policies[kind] = policy

    configured = {doc.document_kind for doc in config.documents}
    for kind in DocumentKind:
        if kind.value not in configured:
            errors.append(CompilationError(
                "document", f"No signature rules for '{kind.value}'", kind.value,
            ))

    if errors:
        raise CompilationFailedError(errors)

    return SignatureSettings(
        version=str(config.version),
        policies=policies,
        checksum=config.checksum,
    )


def _compile_document(
    kind: DocumentKind,
    doc: DocumentSignatureDef,
    errors: list[CompilationError],
) -> SignaturePolicy | None:
    start = len(errors)

    def fail(category: str, message: str) -> None:
        errors.append(CompilationError(category, f"{kind.value}: {message}", kind.value))

    canonical = _compile_roles(doc.canonical_roles, fail)
    if not canonical:
        fail("role", "canonical_roles must not be empty")
    if len(set(canonical)) != len(canonical):
        fail("role", "canonical_roles contains duplicates")
    if len(canonical) > MAX_SLOTS:
        fail("role", f"at most {MAX_SLOTS} canonical roles, got {len(canonical)}")

    if doc.default_roles is None:
        defaults = canonical
    else:
        defaults = _compile_roles(doc.default_roles, fail)
        if not defaults:
            fail("role", "default_roles must not be empty")
        stray = [r.value for r in defaults if r not in canonical]
        if stray:
            fail("role", f"default_roles not in canonical_roles: {stray}")

    capabilities = tuple(doc.transition_capabilities)
    if canonical and len(capabilities) != len(canonical) - 1:
        fail(
            "capability",
            f"expected {len(canonical) - 1} transition_capabilities, "
            f"got {len(capabilities)}",
        )
    if any(not c.strip() for c in capabilities):
        fail("capability", "transition_capabilities must not be blank")

    senior = None
    if doc.senior_role is not None:
        senior = _compile_roles((doc.senior_role,), fail)
        senior = senior[0] if senior else None
        if senior is not None and senior not in canonical:
            fail("role", f"senior_role {senior.value} is not a canonical role")

    templates: dict[str, tuple[RoleTag, ...]] = {}
    for name, raw_roles in doc.templates:
        if not name.strip():
            fail("template", "template names must not be blank")
            continue
        if not raw_roles:
            fail("template", f"template '{name}' lists no roles")
        roles = _compile_roles(raw_roles, fail)
        stray = [r.value for r in roles if r not in canonical]
        if stray:
            fail("template", f"template '{name}' roles not in canonical_roles: {stray}")
        templates[name] = tuple(r for r in canonical if r in roles)

    threshold = None
    if doc.amount_threshold is not None:
        if kind != DocumentKind.REQUIREMENT:
            fail("threshold", "amount_threshold only applies to requirements")
        try:
            threshold = Decimal(doc.amount_threshold)
        except InvalidOperation:
            fail("threshold", f"amount_threshold '{doc.amount_threshold}' is not a number")
        else:
            if not threshold.is_finite() or threshold < 0:
                fail("threshold", f"amount_threshold must be non-negative, got {threshold}")

    if len(errors) > start:
        return None

    return SignaturePolicy(
        document_kind=kind,
        canonical_roles=canonical,
        default_roles=tuple(r for r in canonical if r in defaults),
        transition_capabilities=capabilities,
        senior_role=senior,
        amount_threshold=threshold,
        threshold_inclusive=doc.threshold_inclusive,
        templates=templates,
    )


def _compile_roles(raw_roles, fail) -> tuple[RoleTag, ...]:
    roles = []
    for raw in raw_roles:
        try:
            roles.append(RoleTag(raw))
        except ValueError:
            fail("role", f"unknown role '{raw}'")
    return tuple(roles)
