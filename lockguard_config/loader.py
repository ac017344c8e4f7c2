"""
Configuration loader (``lockguard_config.loader``).

Responsibility
--------------
Reads a YAML configuration file and parses it into the frozen
``lockguard_config.schema`` dataclasses.  Runtime callers go through
``lockguard_config.get_active_config()`` instead of calling this directly.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Wrong section shape or value type  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

from lockguard_config.schema import (
    AdvisoryConfig,
    DatabaseConfig,
    EnforcementConfig,
    LockGuardConfig,
    LoggingConfig,
    SyncConfig,
)


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ValueError: if the top level is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: top level must be a mapping")
    return data


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    value = data.get(name) or {}
    if not isinstance(value, dict):
        raise ValueError(f"Section {name!r} must be a mapping")
    return value


def parse_config(data: dict[str, Any]) -> LockGuardConfig:
    """Parse a LockGuardConfig from a dict, stamping its checksum."""
    database = _section(data, "database")
    advisory = _section(data, "advisory")
    enforcement = _section(data, "enforcement")
    sync = _section(data, "sync")
    log = _section(data, "logging")

    defaults_db = DatabaseConfig()
    defaults_sync = SyncConfig()

    return LockGuardConfig(
        config_id=str(data.get("config_id", "default")),
        version=int(data.get("version", 1)),
        database=DatabaseConfig(
            url=str(database.get("url", defaults_db.url)),
            echo=bool(database.get("echo", defaults_db.echo)),
            pool_size=int(database.get("pool_size", defaults_db.pool_size)),
            max_overflow=int(database.get("max_overflow", defaults_db.max_overflow)),
            pool_timeout=int(database.get("pool_timeout", defaults_db.pool_timeout)),
            connect_timeout=int(
                database.get("connect_timeout", defaults_db.connect_timeout)
            ),
        ),
        advisory=AdvisoryConfig(
            cache_ttl_seconds=float(
                advisory.get("cache_ttl_seconds", AdvisoryConfig().cache_ttl_seconds)
            ),
        ),
        enforcement=EnforcementConfig(
            source=str(enforcement.get("source", EnforcementConfig().source)),
        ),
        sync=SyncConfig(
            source=str(sync.get("source", defaults_sync.source)),
            max_workers=int(sync.get("max_workers", defaults_sync.max_workers)),
        ),
        logging=LoggingConfig(level=str(log.get("level", LoggingConfig().level))),
        checksum=compute_checksum(data),
    )


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON serialization.  Deterministic."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
