"""
Configuration Module

Architectural Intent:
- Centralized configuration loading from a JSON file
- Provides typed access to all ticketsync settings
- Falls back to sensible defaults when config file is absent
- Environment variables override file-based config

Design Decisions:
- Config is a frozen dataclass for immutability after load
- Nested config sections map to sub-dataclasses
- Secrets (API keys, webhook secrets) are normally supplied via environment
"""

from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional
import dataclasses
import json
import logging
import os

from ticketsync.domain.value_objects.service_route import ServiceRoute
from ticketsync.domain.value_objects.sync_policy import (
    ALERTS,
    DEFAULT_BOARDS,
    DEFAULT_KEYWORDS,
    SECURITY_OPERATIONS,
    TECHNICAL_SUPPORT,
    SyncPolicy,
)

logger = logging.getLogger(__name__)

_TOP_LEVEL_KEYS = ("log_level", "log_json")


@dataclass(frozen=True)
class ConnectWiseConfig:
    """ConnectWise Manage API configuration."""
    site_url: str = "https://na.myconnectwise.net"
    api_version: str = "v2025_1"
    company_id: str = ""
    public_key: str = ""
    private_key: str = field(default="", repr=False)
    client_id: str = ""
    timeout: float = 30.0


@dataclass(frozen=True)
class PagerDutyConfig:
    """PagerDuty API, service and priority configuration."""
    api_url: str = "https://api.pagerduty.com"
    api_key: str = field(default="", repr=False)
    user_email: str = ""
    timeout: float = 30.0
    service_ts: str = ""
    service_noc: str = ""
    service_soc: str = ""
    secret_ts: str = field(default="", repr=False)
    secret_noc: str = field(default="", repr=False)
    secret_soc: str = field(default="", repr=False)
    priority_p1: str = ""
    priority_p2: str = ""
    priority_p3: str = ""
    priority_p4: str = ""
    priority_p5: str = ""

    def routes(self) -> tuple[ServiceRoute, ...]:
        """Board <-> service <-> secret routes, in secret resolution order."""
        return (
            ServiceRoute(TECHNICAL_SUPPORT, self.service_ts, self.secret_ts),
            ServiceRoute(ALERTS, self.service_noc, self.secret_noc),
            ServiceRoute(SECURITY_OPERATIONS, self.service_soc, self.secret_soc),
        )

    def priority_ids(self) -> dict[str, str]:
        return {
            "P1": self.priority_p1,
            "P2": self.priority_p2,
            "P3": self.priority_p3,
            "P4": self.priority_p4,
            "P5": self.priority_p5,
        }


@dataclass(frozen=True)
class SyncConfig:
    """Synchronization policy and timing."""
    allowed_boards: tuple[str, ...] = DEFAULT_BOARDS
    keyword_gate: bool = True
    keywords: tuple[str, ...] = DEFAULT_KEYWORDS
    strict_priority: bool = False
    recheck_delay: float = 2.0
    contention_delay: float = 3.0

    def policy(self) -> SyncPolicy:
        return SyncPolicy(
            allowed_boards=self.allowed_boards,
            keyword_gate=self.keyword_gate,
            keywords=self.keywords,
            strict_priority=self.strict_priority,
        )


@dataclass(frozen=True)
class WebConfig:
    """Webhook server configuration."""
    host: str = "0.0.0.0"
    port: int = 3000


@dataclass(frozen=True)
class TelemetryConfig:
    """OpenTelemetry configuration."""
    endpoint: str = ""
    insecure: bool = False


@dataclass(frozen=True)
class TicketSyncConfig:
    """Root configuration for the ticketsync application."""
    connectwise: ConnectWiseConfig = field(default_factory=ConnectWiseConfig)
    pagerduty: PagerDutyConfig = field(default_factory=PagerDutyConfig)
    sync: SyncConfig = field(default_factory=SyncConfig)
    web: WebConfig = field(default_factory=WebConfig)
    telemetry: TelemetryConfig = field(default_factory=TelemetryConfig)
    log_level: str = "INFO"
    log_json: bool = False


def _env_override(data: dict, prefix: str = "TICKETSYNC") -> dict:
    """Override config values with environment variables.

    Environment variables follow the pattern TICKETSYNC_SECTION_KEY.
    For example: TICKETSYNC_WEB_PORT=8080, TICKETSYNC_PAGERDUTY_SECRET_TS=...,
    TICKETSYNC_SYNC_ALLOWED_BOARDS=Alerts,Technical Support.
    Top-level keys use TICKETSYNC_LOG_LEVEL and TICKETSYNC_LOG_JSON.
    """
    for key, value in os.environ.items():
        if not key.startswith(f"{prefix}_"):
            continue
        name = key[len(prefix) + 1:].lower()
        if name in _TOP_LEVEL_KEYS:
            data[name] = value
            continue
        parts = name.split("_", 1)
        if len(parts) == 2:
            section, field_name = parts
            if not isinstance(data.get(section), dict):
                data[section] = {}
            data[section][field_name] = value
        elif len(parts) == 1:
            data[parts[0]] = value
    return data


def _parse_config_file(path: Path) -> dict:
    """Parse a JSON config file. Returns empty dict on failure."""
    try:
        with open(path) as f:
            return json.load(f)
    except FileNotFoundError:
        logger.debug("Config file not found: %s", path)
        return {}
    except json.JSONDecodeError as e:
        logger.warning("Invalid config file %s: %s", path, e)
        return {}


def _to_bool(value: object) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes")
    return bool(value)


def _build_sub_config(cls, data: dict):
    """Build a sub-config dataclass from a dict, ignoring unknown keys."""
    valid_fields = {f.name for f in dataclasses.fields(cls)}
    filtered = {k: v for k, v in data.items() if k in valid_fields}

    for f in dataclasses.fields(cls):
        if f.name not in filtered:
            continue
        val = filtered[f.name]

        # Comma-separated strings become tuples for tuple fields
        if f.type == "tuple[str, ...]":
            if isinstance(val, str):
                filtered[f.name] = tuple(v.strip() for v in val.split(",") if v.strip())
            elif isinstance(val, list):
                filtered[f.name] = tuple(val)
        elif f.type == "int" and isinstance(val, str):
            filtered[f.name] = int(val)
        elif f.type == "float" and isinstance(val, (str, int)):
            filtered[f.name] = float(val)
        elif f.type == "bool":
            filtered[f.name] = _to_bool(val)

    return cls(**filtered)


def load_config(
    path: Optional[str] = None,
    env_prefix: str = "TICKETSYNC",
) -> TicketSyncConfig:
    """Load configuration from file and environment variables.

    Priority (highest to lowest):
    1. Environment variables (TICKETSYNC_SECTION_KEY)
    2. Config file values
    3. Defaults

    Args:
        path: Path to config file (JSON). Defaults to ticketsync.json in CWD.
        env_prefix: Environment variable prefix. Defaults to TICKETSYNC.
    """
    config_path = Path(path) if path else Path("ticketsync.json")
    data = _parse_config_file(config_path)
    data = _env_override(data, env_prefix)

    return TicketSyncConfig(
        connectwise=_build_sub_config(ConnectWiseConfig, data.get("connectwise", {})),
        pagerduty=_build_sub_config(PagerDutyConfig, data.get("pagerduty", {})),
        sync=_build_sub_config(SyncConfig, data.get("sync", {})),
        web=_build_sub_config(WebConfig, data.get("web", {})),
        telemetry=_build_sub_config(TelemetryConfig, data.get("telemetry", {})),
        log_level=str(data.get("log_level", "INFO")).upper(),
        log_json=_to_bool(data.get("log_json", False)),
    )
