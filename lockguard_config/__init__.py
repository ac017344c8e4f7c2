"""
lockguard_config -- single public entrypoint for lock guard configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  Returns a frozen ``LockGuardConfig``.  YAML
    loading is internal and never exposed to callers.

Architecture position:
    Configuration -- sits above ``lockguard_kernel``.  The kernel MUST NEVER
    import from ``lockguard_config``; callers read values off the returned
    config and pass them to kernel constructors.

Invariants enforced:
    - Single entrypoint: all runtime config flows through ``get_active_config()``.
    - A config that fails validation is never returned.
    - Deterministic checksum: the same YAML content always yields the same
      checksum.

Failure modes:
    - ``FileNotFoundError`` -- the config file does not exist.
    - ``ConfigValidationError`` -- malformed values or failed validation.

Audit relevance:
    Every successful ``get_active_config()`` call emits a
    ``LOCKGUARD_CONFIG_TRACE`` log entry with the config_id, version,
    checksum, and the effective gate settings.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml

from lockguard_config.loader import load_yaml_file, parse_config
from lockguard_config.schema import (
    AdvisoryConfig,
    DatabaseConfig,
    EnforcementConfig,
    LockGuardConfig,
    LoggingConfig,
    SyncConfig,
)
from lockguard_config.validator import validate_configuration
from lockguard_kernel.exceptions import ConfigValidationError

_logger = logging.getLogger("lockguard.config")

DEFAULT_CONFIG_PATH = Path(__file__).parent / "sets" / "default.yaml"


def get_active_config(config_path: Path | str | None = None) -> LockGuardConfig:
    """The ONLY public configuration entrypoint.

    Args:
        config_path: YAML file to load.  Defaults to
            lockguard_config/sets/default.yaml.

    Returns:
        A validated LockGuardConfig.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigValidationError: If the file cannot be parsed into a valid
            configuration.
    """
    path = Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH

    try:
        config = parse_config(load_yaml_file(path))
    except (ValueError, TypeError, yaml.YAMLError) as exc:
        raise ConfigValidationError([f"{path}: {exc}"]) from exc

    validation = validate_configuration(config)
    if not validation.is_valid:
        raise ConfigValidationError(validation.errors)

    _logger.info(
        "LOCKGUARD_CONFIG_TRACE",
        extra={
            "trace_type": "LOCKGUARD_CONFIG_TRACE",
            "config_id": config.config_id,
            "config_version": config.version,
            "checksum": config.checksum,
            "config_path": str(path),
            "advisory_cache_ttl_seconds": config.advisory.cache_ttl_seconds,
            "enforcement_source": config.enforcement.source,
            "sync_max_workers": config.sync.max_workers,
        },
    )
    return config


__all__ = [
    "AdvisoryConfig",
    "DatabaseConfig",
    "EnforcementConfig",
    "LockGuardConfig",
    "LoggingConfig",
    "SyncConfig",
    "get_active_config",
]
