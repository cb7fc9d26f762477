"""
config.py

Responsibility: Loads and validates runtime settings from environment
variables (optionally seeded from a .env file).
Does NOT: configure logging, open connections, or run any DNS logic.
"""

from __future__ import annotations

import os
import re
from collections.abc import Mapping
from dataclasses import dataclass, field

import httpx
from dotenv import load_dotenv

from db.database import DEFAULT_DB_PATH
from exceptions import ConfigError
from services.ip_service import DEFAULT_IP_SOURCES

_DOMAIN_SEPARATORS = re.compile(r"[,;]")

_REQUIRED_VARS = (
    "CLOUDFLARE_API_TOKEN",
    "CLOUDFLARE_ZONE_ID",
    "DOMAIN_NAME",
    "UPDATE_INTERVAL",
)

_MAX_PORT = 65535


def parse_domain_names(raw: str) -> list[str]:
    """
    Splits a comma/semicolon-delimited domain list.

    Entries are trimmed and empty ones dropped; order is preserved.

    Raises:
        ConfigError: If no domain remains.
    """
    names = [part.strip() for part in _DOMAIN_SEPARATORS.split(raw)]
    names = [name for name in names if name]
    if not names:
        raise ConfigError("DOMAIN_NAME must contain at least one domain")
    return names


def _parse_positive_int(name: str, raw: str, minimum: int = 1, maximum: int | None = None) -> int:
    try:
        value = int(raw.strip())
    except ValueError as exc:
        raise ConfigError(f"{name} must be a whole number, got {raw!r}") from exc
    if value < minimum:
        raise ConfigError(f"{name} must be at least {minimum}, got {value}")
    if maximum is not None and value > maximum:
        raise ConfigError(f"{name} must be at most {maximum}, got {value}")
    return value


def parse_ip_sources(raw: str) -> tuple[str, ...]:
    """
    Splits and validates a comma-delimited list of IP echo URLs.

    Every entry must be an absolute http(s) URL, and no service may be
    listed twice: each entry is one vote in the quorum.

    Raises:
        ConfigError: On a malformed or non-http(s) URL, a duplicate, or fewer
                     than three entries.
    """
    sources = tuple(part.strip() for part in raw.split(",") if part.strip())
    seen: dict[tuple, str] = {}
    for source in sources:
        try:
            url = httpx.URL(source)
        except httpx.InvalidURL as exc:
            raise ConfigError(f"IP_SOURCES entry {source!r} is not a valid URL: {exc}") from exc
        if url.scheme not in ("http", "https") or not url.host:
            raise ConfigError(f"IP_SOURCES entry {source!r} must be an http(s) URL with a host")

        # httpx lower-cases scheme and host and drops default ports
        key = (url.scheme, url.host, url.port, url.path.rstrip("/"), url.query)
        if key in seen:
            raise ConfigError(f"IP_SOURCES lists the same endpoint twice: {seen[key]!r} and {source!r}")
        seen[key] = source

    if len(sources) < 3:
        raise ConfigError("IP_SOURCES must list at least 3 endpoints")
    return sources


@dataclass(frozen=True)
class Settings:
    """
    Immutable application settings.

    Built once at startup by from_env(); a ConfigError there is fatal.
    """

    api_token: str
    zone_id: str
    domain_names: tuple[str, ...]
    update_interval_minutes: int
    backup_dir: str = "backups"
    log_dir: str = "logs"
    log_level: str = "INFO"
    ip_sources: tuple[str, ...] = field(default=DEFAULT_IP_SOURCES)
    host: str = "0.0.0.0"
    port: int = 8080
    db_path: str = DEFAULT_DB_PATH

    @property
    def update_interval_seconds(self) -> int:
        return self.update_interval_minutes * 60

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        env_file: str | os.PathLike[str] | None = ".env",
    ) -> Settings:
        """
        Reads settings from the process environment.

        Args:
            environ: Mapping to read instead of os.environ (tests).
            env_file: .env file loaded into os.environ first, relative to the
                      working directory; None skips it. Existing variables win.

        Returns:
            A validated Settings instance.

        Raises:
            ConfigError: If a required variable is missing or any value is invalid.
        """
        if environ is None:
            if env_file is not None:
                load_dotenv(env_file)
            environ = os.environ

        missing = [name for name in _REQUIRED_VARS if not environ.get(name, "").strip()]
        if missing:
            raise ConfigError(f"Environment variable(s) not set: {', '.join(missing)}")

        ip_sources = DEFAULT_IP_SOURCES
        raw_sources = environ.get("IP_SOURCES", "").strip()
        if raw_sources:
            ip_sources = parse_ip_sources(raw_sources)

        log_level = environ.get("LOG_LEVEL", "INFO").strip().upper() or "INFO"
        if log_level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ConfigError(f"LOG_LEVEL must be a standard level name, got {log_level!r}")

        return cls(
            api_token=environ["CLOUDFLARE_API_TOKEN"].strip(),
            zone_id=environ["CLOUDFLARE_ZONE_ID"].strip(),
            domain_names=tuple(parse_domain_names(environ["DOMAIN_NAME"])),
            update_interval_minutes=_parse_positive_int("UPDATE_INTERVAL", environ["UPDATE_INTERVAL"]),
            backup_dir=environ.get("BACKUP_DIR", "").strip() or "backups",
            log_dir=environ.get("LOG_DIR", "").strip() or "logs",
            log_level=log_level,
            ip_sources=ip_sources,
            host=environ.get("HOST", "").strip() or "0.0.0.0",
            port=_parse_positive_int("PORT", environ.get("PORT", "8080"), maximum=_MAX_PORT),
            db_path=environ.get("DB_PATH", "").strip() or DEFAULT_DB_PATH,
        )
