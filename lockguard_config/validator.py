"""Structural validation of a parsed LockGuardConfig."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from lockguard_config.schema import LockGuardConfig

# Same ceiling as AdvisoryGate.MAX_CACHE_TTL_SECONDS
MAX_ADVISORY_TTL_SECONDS = 30


@dataclass
class ConfigValidationResult:
    """``is_valid`` is True only when ``errors`` is empty."""

    errors: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0

    def add_error(self, msg: str) -> None:
        self.errors.append(msg)


def validate_configuration(config: LockGuardConfig) -> ConfigValidationResult:
    """
    Validate a configuration set.

    Postconditions:
        - A configuration with errors MUST NOT be handed to callers.
    """
    result = ConfigValidationResult()

    _validate_database(config, result)
    _validate_gates(config, result)
    _validate_logging(config, result)

    return result


def _validate_database(config: LockGuardConfig, result: ConfigValidationResult) -> None:
    db = config.database
    if not db.url.strip():
        result.add_error("database.url must not be empty")
    if db.pool_size < 1:
        result.add_error(f"database.pool_size must be >= 1, got {db.pool_size}")
    if db.max_overflow < 0:
        result.add_error(f"database.max_overflow must be >= 0, got {db.max_overflow}")
    if db.pool_timeout < 1:
        result.add_error(f"database.pool_timeout must be >= 1, got {db.pool_timeout}")
    if db.connect_timeout < 1:
        result.add_error(
            f"database.connect_timeout must be >= 1, got {db.connect_timeout}"
        )


def _validate_gates(config: LockGuardConfig, result: ConfigValidationResult) -> None:
    ttl = config.advisory.cache_ttl_seconds
    if not 0 <= ttl <= MAX_ADVISORY_TTL_SECONDS:
        result.add_error(
            f"advisory.cache_ttl_seconds must be within 0..{MAX_ADVISORY_TTL_SECONDS}, "
            f"got {ttl}"
        )
    if not config.enforcement.source.strip():
        result.add_error("enforcement.source must not be empty")
    if not config.sync.source.strip():
        result.add_error("sync.source must not be empty")
    if config.sync.max_workers < 1:
        result.add_error(f"sync.max_workers must be >= 1, got {config.sync.max_workers}")


def _validate_logging(config: LockGuardConfig, result: ConfigValidationResult) -> None:
    if not isinstance(logging.getLevelName(config.logging.level.upper()), int):
        result.add_error(f"logging.level {config.logging.level!r} is not a log level")
