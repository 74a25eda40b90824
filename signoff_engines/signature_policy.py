"""
signoff_engines.signature_policy -- Build the signature chain for a new document.

Responsibility:
    Turn a document kind, the configured signature roles and the document
    amount into the ordered, capability-annotated chain the document will
    carry for its whole life.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import signoff_kernel/domain/ types and signoff_kernel.exceptions.

Invariants enforced:
    - Canonical order: slots follow the policy's canonical role order, never
      the order the caller listed them in.  Duplicates collapse.
    - Senior approval: a Requirement whose amount passes the configured
      threshold always ends with the senior role, added at most once.
    - Slot i >= 1 carries ``transition_capabilities[i - 1]``.
    - A named template is just a stored role subset; it goes through the
      same validation and the same senior-approval rule.

Failure modes:
    - InvalidConfigurationError on an empty role subset, an unknown role,
      an unknown template, or a template combined with an explicit subset.
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal
from uuid import UUID

from signoff_kernel.domain.policy import SignaturePolicy, SignatureSettings
from signoff_kernel.domain.signature import (
    ApprovalChain,
    DocumentKind,
    RoleTag,
    SignatureSlot,
)
from signoff_kernel.exceptions import InvalidConfigurationError


def requires_senior_approval(
    policy: SignaturePolicy,
    amount: Decimal | None,
) -> bool:
    """True when ``amount`` passes the policy's threshold.

    Strictly greater than the threshold unless the policy is configured
    ``threshold_inclusive``.  No threshold or no amount means False.
    """
    if policy.amount_threshold is None or amount is None:
        return False
    value = Decimal(str(amount))
    if policy.threshold_inclusive:
        return value >= policy.amount_threshold
    return value > policy.amount_threshold


def resolve_roles(
    policy: SignaturePolicy,
    configured_roles: Iterable[RoleTag | str] | None,
    template: str | None = None,
) -> tuple[RoleTag, ...]:
    """Validate a role subset (or a named template's) and return it in canonical order."""
    kind = policy.document_kind.value
    if template is not None:
        if configured_roles is not None:
            raise InvalidConfigurationError(
                kind, "give either a role subset or a template, not both"
            )
        try:
            configured_roles = policy.templates[template]
        except KeyError:
            raise InvalidConfigurationError(kind, f"unknown template {template!r}") from None
    if configured_roles is None:
        requested = set(policy.default_roles)
    else:
        requested = set()
        for raw in configured_roles:
            try:
                role = RoleTag(raw)
            except ValueError:
                raise InvalidConfigurationError(kind, f"unknown role {raw!r}") from None
            if role not in policy.canonical_roles:
                raise InvalidConfigurationError(
                    kind, f"role {role.value} does not sign {kind} documents"
                )
            requested.add(role)

    if not requested:
        raise InvalidConfigurationError(kind, "no signature roles configured")

    return tuple(role for role in policy.canonical_roles if role in requested)


def build_chain(
    settings: SignatureSettings,
    document_kind: DocumentKind,
    configured_roles: Iterable[RoleTag | str] | None,
    amount: Decimal | None,
    *,
    document_id: UUID,
    initiator_id: UUID,
    template: str | None = None,
) -> ApprovalChain:
    """Build the empty signature chain for a document.

    Args:
        settings: Compiled signature configuration.
        document_kind: REQUIREMENT or QUOTATION.
        configured_roles: Role subset to sign, or None for the kind's defaults.
        amount: Document amount (only consulted for Requirements).
        document_id: The document the chain belongs to.
        initiator_id: Document creator; the only user who may sign slot 0.
        template: Name of a configured role template, used instead of
            ``configured_roles``.

    Returns:
        ApprovalChain with every slot unsigned and ``version`` 0.
    """
    policy = settings.policy_for(document_kind)
    roles = list(resolve_roles(policy, configured_roles, template))

    special_condition = False
    if (
        document_kind == DocumentKind.REQUIREMENT
        and policy.senior_role is not None
        and policy.senior_role not in roles
        and requires_senior_approval(policy, amount)
    ):
        roles.append(policy.senior_role)
        special_condition = True

    slots = tuple(
        SignatureSlot(role=role, required_capability=policy.capability_for_slot(index))
        for index, role in enumerate(roles)
    )

    return ApprovalChain(
        document_kind=document_kind,
        document_id=document_id,
        initiator_id=initiator_id,
        slots=slots,
        special_condition=special_condition,
    )
