"""
signoff_config -- single public entrypoint for signature configuration.

Responsibility:
    Provides the ONLY way to obtain signature configuration at runtime
    through ``get_active_config()``.  Returns ``SignatureSettings`` -- the
    sole runtime artifact.  YAML loading is internal tooling.

Architecture position:
    Configuration -- YAML-driven, validated at load time.  Sits above
    ``signoff_kernel`` domain types; the kernel never imports from here.

Invariants enforced:
    - Single entrypoint: runtime config flows through ``get_active_config()``.
    - Threshold values and capability names live in YAML, never in code.
    - Deterministic: the same YAML always yields the same checksum.

Failure modes:
    - ``FileNotFoundError`` -- configuration file missing.
    - ``yaml.YAMLError`` -- malformed YAML.
    - ``KeyError`` -- required key missing.
    - ``CompilationFailedError`` -- content fails validation.

Audit relevance:
    Every successful ``get_active_config()`` call emits a
    ``SIGNOFF_CONFIG_TRACE`` log entry with config id, version and checksum,
    tying each signature decision to the configuration that governed it.
"""

from __future__ import annotations

from pathlib import Path

from signoff_config.compiler import CompilationFailedError, compile_settings
from signoff_config.loader import load_configuration
from signoff_kernel.domain.policy import SignatureSettings
from signoff_kernel.logging_config import get_logger

_logger = get_logger("config")

DEFAULT_CONFIG_PATH = Path(__file__).parent / "defaults" / "signatures.yaml"


def get_active_config(path: Path | None = None) -> SignatureSettings:
    """The ONLY public configuration entrypoint.

    Args:
        path: Override path to a signature YAML file.  Defaults to
            ``signoff_config/defaults/signatures.yaml``.

    Returns:
        SignatureSettings -- compiled, frozen settings.

    Raises:
        FileNotFoundError: If the file does not exist.
        CompilationFailedError: If the configuration is invalid.
    """
    config_path = Path(path) if path is not None else DEFAULT_CONFIG_PATH
    config_set = load_configuration(config_path)
    settings = compile_settings(config_set)

    _logger.info(
        "SIGNOFF_CONFIG_TRACE",
        extra={
            "trace_type": "SIGNOFF_CONFIG_TRACE",
            "config_id": config_set.config_id,
            "config_version": config_set.version,
            "checksum": settings.checksum,
            "config_path": str(config_path),
            "document_kinds": sorted(kind.value for kind in settings.policies),
        },
    )

    return settings


__all__ = [
    "DEFAULT_CONFIG_PATH",
    "CompilationFailedError",
    "get_active_config",
]
