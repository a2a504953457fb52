"""
journal_config -- single public entrypoint for engine configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``. Returns an ``EngineConfiguration`` that has
    passed validation and (when pinned) integrity verification.

Architecture position:
    Configuration -- YAML-driven, load-time validation. This package sits
    above ``journal_kernel``. The kernel MUST NEVER import from
    ``journal_config``; ``bridges`` translates configuration into kernel
    inputs.

Failure modes:
    - ``FileNotFoundError`` -- the directory or its engine.yaml is missing.
    - ``KeyError`` / ``ValueError`` -- malformed configuration files.
    - ``ConfigValidationError`` -- structural or formula errors.
    - ``ConfigIntegrityError`` -- checksum mismatch against an approved pin.

Audit relevance:
    Every successful ``get_active_config()`` call emits a ``config_loaded``
    log entry with the config_id, version, checksum and pattern count.
"""

from __future__ import annotations

from pathlib import Path

from journal_config.integrity import ConfigIntegrityError, verify_fingerprint_pin
from journal_config.loader import load_config_set
from journal_config.schema import EngineConfiguration
from journal_config.validator import ConfigValidationError, validate_configuration
from journal_kernel.logging_config import get_logger

_logger = get_logger("config")

# Default configuration set directory
_DEFAULT_CONFIG_DIR = Path(__file__).parent / "sets" / "default"

__all__ = [
    "ConfigIntegrityError",
    "ConfigValidationError",
    "EngineConfiguration",
    "get_active_config",
]


def get_active_config(config_dir: Path | str | None = None) -> EngineConfiguration:
    """The ONLY public configuration entrypoint.

    Guarantees:
        - The returned configuration has passed validation and, when an
          APPROVED_FINGERPRINT file exists, checksum-pin verification.
        - A ``config_loaded`` log entry is emitted on every successful call.

    Non-goals:
        - No caching across calls; callers hold the returned value.

    Args:
        config_dir: Configuration set directory. Defaults to
            journal_config/sets/default/.

    Raises:
        FileNotFoundError: If the directory has no engine.yaml.
        ConfigValidationError: If validation reports errors.
        ConfigIntegrityError: If the pin exists and does not match.
    """
    set_dir = Path(config_dir) if config_dir is not None else _DEFAULT_CONFIG_DIR

    config = load_config_set(set_dir)

    validation = validate_configuration(config)
    for warning in validation.warnings:
        _logger.warning(
            "config_warning", extra={"config_id": config.config_id, "warning": warning}
        )
    if not validation.is_valid:
        raise ConfigValidationError(config.config_id, validation.errors)

    verify_fingerprint_pin(
        config_id=config.config_id,
        checksum=config.checksum,
        config_dir=set_dir,
    )

    _logger.info(
        "config_loaded",
        extra={
            "config_id": config.config_id,
            "config_version": config.version,
            "checksum": config.checksum,
            "pattern_count": len(config.patterns),
            "balance_tolerance": str(config.settings.balance_tolerance),
            "strict_placeholders": config.settings.strict_placeholders,
        },
    )
    return config
