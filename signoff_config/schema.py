"""
SignatureConfigurationSet schema.

Defines the human-authored, reviewable source artifact for signature
configuration.  YAML is parsed into these types by the loader and compiled
into kernel ``SignatureSettings`` by the compiler.

Key distinction:
  SignatureConfigurationSet = source artifact (human-authored, versioned)
  SignatureSettings         = runtime artifact (validated, typed, frozen)

Values stay as plain strings here; the compiler turns them into role tags,
document kinds and decimals and reports everything it cannot.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class DocumentSignatureDef:
    """Signature rules for one document kind, as written in YAML."""

    document_kind: str
    canonical_roles: tuple[str, ...]
    transition_capabilities: tuple[str, ...]
    default_roles: tuple[str, ...] | None = None
    senior_role: str | None = None
    amount_threshold: str | None = None
    threshold_inclusive: bool = False
    description: str = ""
    templates: tuple[tuple[str, tuple[str, ...]], ...] = ()


@dataclass(frozen=True)
class SignatureConfigurationSet:
    """Root configuration artifact."""

    config_id: str
    version: int
    documents: tuple[DocumentSignatureDef, ...] = ()
    checksum: str = ""
