"""
Configuration Loader (``signoff_config.loader``).

Responsibility
--------------
Loads the signature YAML file and parses it into typed
``signoff_config.schema`` dataclass instances.  Runtime callers go through
``signoff_config.get_active_config()`` instead of calling this directly.

Architecture position
---------------------
**Config layer** -- infrastructure tooling.  No dependency on kernel
services, models, or engines.

Invariants enforced
-------------------
* No silent defaults for required fields: a missing key raises ``KeyError``.
* Every parsed object is a frozen dataclass from ``schema.py``.
* ``compute_checksum`` produces a deterministic SHA-256 hash of the raw
  document for configuration identity and change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys  -> ``KeyError`` propagates.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

from signoff_config.schema import DocumentSignatureDef, SignatureConfigurationSet


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def _as_tuple(value: Any) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    return tuple(str(v) for v in value)


def parse_document(document_kind: str, data: dict[str, Any]) -> DocumentSignatureDef:
    """Parse the signature rules of one document kind."""
    threshold = data.get("amount_threshold")
    default_roles = data.get("default_roles")
    templates = data.get("templates") or {}
    return DocumentSignatureDef(
        document_kind=document_kind,
        canonical_roles=_as_tuple(data["canonical_roles"]),
        transition_capabilities=_as_tuple(data["transition_capabilities"]),
        default_roles=_as_tuple(default_roles) if default_roles is not None else None,
        senior_role=data.get("senior_role"),
        amount_threshold=str(threshold) if threshold is not None else None,
        threshold_inclusive=bool(data.get("threshold_inclusive", False)),
        description=data.get("description", ""),
        templates=tuple(
            (str(name), _as_tuple(roles)) for name, roles in templates.items()
        ),
    )


def parse_configuration(data: dict[str, Any]) -> SignatureConfigurationSet:
    """Parse a full configuration document into a SignatureConfigurationSet."""
    documents = tuple(
        parse_document(str(kind), body or {})
        for kind, body in sorted((data.get("documents") or {}).items())
    )
    return SignatureConfigurationSet(
        config_id=data["config_id"],
        version=int(data["version"]),
        documents=documents,
        checksum=compute_checksum(data),
    )


def load_configuration(path: Path) -> SignatureConfigurationSet:
    """Load and parse a signature configuration file."""
    return parse_configuration(load_yaml_file(path))


def compute_checksum(data: dict[str, Any]) -> str:
    """
    Compute SHA-256 checksum of canonical JSON serialization.

    Identical ``data`` always produces identical checksums.
    """
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
