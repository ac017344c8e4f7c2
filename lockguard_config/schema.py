"""
LockGuardConfig schema.

Typed, frozen view of a lockguard configuration set.  YAML is parsed into
these types by the loader and checked by the validator before
``get_active_config()`` hands them out.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class DatabaseConfig:
    """Connection settings for the Period Store database."""

    url: str = "sqlite:///lockguard.db"
    echo: bool = False
    pool_size: int = 10
    max_overflow: int = 5
    pool_timeout: int = 10
    connect_timeout: int = 5


@dataclass(frozen=True)
class AdvisoryConfig:
    """Form-side (fail-open) gate settings."""

    cache_ttl_seconds: float = 15


@dataclass(frozen=True)
class EnforcementConfig:
    """Mutation-path (fail-closed) gate settings."""

    source: str = "server_gate"


@dataclass(frozen=True)
class SyncConfig:
    """Outbound accounting sync guard settings."""

    source: str = "accounting_sync"
    max_workers: int = 4


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"


@dataclass(frozen=True)
class LockGuardConfig:
    """A complete, validated configuration set."""

    config_id: str
    version: int
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    advisory: AdvisoryConfig = field(default_factory=AdvisoryConfig)
    enforcement: EnforcementConfig = field(default_factory=EnforcementConfig)
    sync: SyncConfig = field(default_factory=SyncConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    checksum: str = ""
