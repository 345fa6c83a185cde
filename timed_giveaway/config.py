from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import os
import yaml


class ConfigError(RuntimeError):
    """Raised when the configuration file is invalid."""


@dataclass(slots=True)
class LoggingConfig:
    level: str = "INFO"


@dataclass(slots=True)
class ScannerConfig:
    interval_seconds: float = 60


@dataclass(slots=True)
class LimitsConfig:
    prize_max_length: int = 100
    description_max_length: int = 500


@dataclass(slots=True)
class PermissionsConfig:
    admin_roles: List[int] = field(default_factory=list)
    development_guild_id: Optional[int] = None


@dataclass(slots=True)
class Config:
    token: str
    application_id: int
    timezone: str
    giveaway_channel_id: Optional[int]
    logging: LoggingConfig
    scanner: ScannerConfig
    limits: LimitsConfig
    permissions: PermissionsConfig


def _require(data: Dict[str, Any], key: str) -> Any:
    if key not in data:
        raise ConfigError(f"Missing required config key: {key}")
    return data[key]

def _resolve_env_value(value: str, key: str) -> str:
    trimmed = value.strip()
    if trimmed.startswith("${") and trimmed.endswith("}"):
        env_name = trimmed[2:-1].strip()
        if not env_name:
            raise ConfigError(f"Environment reference for '{key}' is empty.")
        env_value = os.getenv(env_name)
        if env_value is None:
            raise ConfigError(
                f"Environment variable '{env_name}' referenced by '{key}' is not set."
            )
        return env_value
    return value

def _optional_id(value: Any, key: str) -> Optional[int]:
    if value in (None, "", 0):
        return None
    try:
        parsed = int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{key} must be an integer ID or null.") from exc
    if parsed <= 0:
        raise ConfigError(f"{key} must be a positive integer.")
    return parsed


def _positive_int(data: Dict[str, Any], key: str, default: int, section: str) -> int:
    value = data.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ConfigError(f"{section}.{key} must be a positive integer.")
    return value


def _parse_timezone(value: Any) -> str:
    name = str(value).strip()
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ConfigError(f"Invalid timezone configured: {name!r}") from exc
    return name


def _parse_logging(data: Dict[str, Any]) -> LoggingConfig:
    level = str(data.get("level", "INFO")).upper()
    return LoggingConfig(level=level)


def _parse_scanner(data: Dict[str, Any]) -> ScannerConfig:
    interval = data.get("interval_seconds", 60)
    if isinstance(interval, bool) or not isinstance(interval, (int, float)) or interval <= 0:
        raise ConfigError("scanner.interval_seconds must be a positive number.")
    return ScannerConfig(interval_seconds=interval)


def _parse_limits(data: Dict[str, Any]) -> LimitsConfig:
    return LimitsConfig(
        prize_max_length=_positive_int(data, "prize_max_length", 100, "limits"),
        description_max_length=_positive_int(
            data, "description_max_length", 500, "limits"
        ),
    )


def _parse_permissions(data: Dict[str, Any]) -> PermissionsConfig:
    admin_roles_raw = data.get("admin_roles", [])
    if not isinstance(admin_roles_raw, list):
        raise ConfigError("permissions.admin_roles must be a list of role IDs.")
    admin_roles: List[int] = []
    for role_id in admin_roles_raw:
        try:
            admin_roles.append(int(role_id))
        except (TypeError, ValueError) as exc:
            raise ConfigError(
                f"permissions.admin_roles contains invalid role id: {role_id!r}"
            ) from exc
    return PermissionsConfig(
        admin_roles=admin_roles,
        development_guild_id=_optional_id(
            data.get("development_guild_id"), "permissions.development_guild_id"
        ),
    )


def _section(data: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = data.get(key) or {}
    if not isinstance(value, dict):
        raise ConfigError(f"{key} must be a mapping.")
    return value


def load_config(path: Path) -> Config:
    if not path.exists():
        raise ConfigError(f"Config file {path} does not exist.")

    data = yaml.safe_load(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ConfigError("Configuration file must contain a mapping at the root.")

    token_raw = str(_require(data, "token"))
    token = _resolve_env_value(token_raw, "token").strip()
    if not token:
        raise ConfigError("token must not be empty.")
    try:
        application_id = int(_require(data, "application_id"))
    except (TypeError, ValueError) as exc:
        raise ConfigError("application_id must be an integer.") from exc

    return Config(
        token=token,
        application_id=application_id,
        timezone=_parse_timezone(data.get("timezone", "UTC")),
        giveaway_channel_id=_optional_id(
            data.get("giveaway_channel_id"), "giveaway_channel_id"
        ),
        logging=_parse_logging(_section(data, "logging")),
        scanner=_parse_scanner(_section(data, "scanner")),
        limits=_parse_limits(_section(data, "limits")),
        permissions=_parse_permissions(_section(data, "permissions")),
    )
