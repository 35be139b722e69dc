"""
SaltDao Configuration

Settings come from environment variables prefixed with ``SALTDAO_``,
optionally layered on top of a YAML file. Environment always wins.

Recognised keys:
- SALTDAO_PROPOSALS_MAX_COUNT: number of proposal slots (default 3)
- SALTDAO_VOTING_DURATION_SECONDS: proposal TTL (default 259200, 3 days)
- SALTDAO_LOG_LEVEL: DEBUG, INFO, WARNING, ERROR or CRITICAL
- SALTDAO_LOG_FILE: optional JSON log file path
- SALTDAO_ENVIRONMENT: environment tag added to log records
- SALTDAO_CONFIG_FILE: YAML file read by ``load_config()`` when no path is given
"""

from __future__ import annotations

import logging
import os
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Mapping

import yaml

from saltdao.core.constants import PROPOSALS_MAX_COUNT, VOTING_DURATION_SECONDS

logger = logging.getLogger(__name__)

ENV_PREFIX = "SALTDAO_"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ConfigurationError(Exception):
    """Raised when required configuration is missing or invalid."""
    pass


def _parse_int(name: str, raw: Any, minimum: int) -> int:
    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from None
    if value < minimum:
        raise ConfigurationError(f"{name} must be >= {minimum}, got {value}")
    return value


@dataclass(frozen=True)
class DaoConfig:
    """Effective engine configuration."""

    proposals_max_count: int = PROPOSALS_MAX_COUNT
    voting_duration_seconds: int = VOTING_DURATION_SECONDS
    log_level: str = "INFO"
    log_file: str | None = None
    environment: str = "development"

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "DaoConfig":
        """Build a config from lowercase keys, validating every field."""
        level = str(values.get("log_level", "INFO")).upper()
        if level not in LOG_LEVELS:
            raise ConfigurationError(f"log_level must be one of {LOG_LEVELS}, got {level!r}")

        log_file = values.get("log_file") or None
        return cls(
            proposals_max_count=_parse_int(
                "proposals_max_count", values.get("proposals_max_count", PROPOSALS_MAX_COUNT), 1
            ),
            voting_duration_seconds=_parse_int(
                "voting_duration_seconds",
                values.get("voting_duration_seconds", VOTING_DURATION_SECONDS),
                1,
            ),
            log_level=level,
            log_file=str(log_file) if log_file else None,
            environment=str(values.get("environment", "development")),
        )

    @classmethod
    def from_env(cls, base: Mapping[str, Any] | None = None) -> "DaoConfig":
        """Read ``SALTDAO_*`` variables over ``base`` values."""
        values: dict[str, Any] = dict(base or {})
        for field_name in cls.__dataclass_fields__:
            raw = os.getenv(ENV_PREFIX + field_name.upper())
            if raw is not None and raw.strip() != "":
                values[field_name] = raw.strip()
        return cls.from_mapping(values)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "DaoConfig":
        """Load a YAML mapping and apply environment overrides on top."""
        with open(path, "r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
        if not isinstance(data, dict):
            raise ConfigurationError(f"Config file {path} must contain a mapping")
        logger.debug(
            "Loaded configuration file",
            extra={"event": "config.file_loaded", "path": str(path), "keys": sorted(data)},
        )
        return cls.from_env(base={str(k).lower(): v for k, v in data.items()})

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def load_config(path: str | Path | None = None) -> DaoConfig:
    """Return the effective configuration from ``path`` (if given) and env."""
    if path is None:
        path = os.getenv(ENV_PREFIX + "CONFIG_FILE") or None
    if path:
        return DaoConfig.from_yaml(path)
    return DaoConfig.from_env()
