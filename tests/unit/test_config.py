"""
tests/unit/test_config.py

Unit tests for config.py. Settings are mostly read from plain dicts; the
.env test runs in a temporary directory with a patched environment.
"""

from __future__ import annotations

import pytest

from config import Settings, parse_domain_names, parse_ip_sources
from db.database import DEFAULT_DB_PATH
from exceptions import ConfigError
from services.ip_service import DEFAULT_IP_SOURCES


def _env(**overrides):
    env = {
        "CLOUDFLARE_API_TOKEN": "test_token",
        "CLOUDFLARE_ZONE_ID": "test_zone_id",
        "DOMAIN_NAME": "example.com;another.com",
        "UPDATE_INTERVAL": "15",
    }
    env.update(overrides)
    return {k: v for k, v in env.items() if v is not None}


def test_from_env_success():
    settings = Settings.from_env(_env())

    assert settings.api_token == "test_token"
    assert settings.zone_id == "test_zone_id"
    assert settings.domain_names == ("example.com", "another.com")
    assert settings.update_interval_minutes == 15
    assert settings.update_interval_seconds == 900
    assert settings.ip_sources == DEFAULT_IP_SOURCES
    assert settings.backup_dir == "backups"
    assert settings.port == 8080
    assert settings.db_path == DEFAULT_DB_PATH


@pytest.mark.parametrize(
    "missing", ["CLOUDFLARE_API_TOKEN", "CLOUDFLARE_ZONE_ID", "DOMAIN_NAME", "UPDATE_INTERVAL"]
)
def test_from_env_missing_variable(missing):
    with pytest.raises(ConfigError, match=missing):
        Settings.from_env(_env(**{missing: None}))


@pytest.mark.parametrize("interval", ["0", "-5", "abc", "1.5"])
def test_from_env_invalid_interval(interval):
    with pytest.raises(ConfigError, match="UPDATE_INTERVAL"):
        Settings.from_env(_env(UPDATE_INTERVAL=interval))


def test_from_env_optional_overrides():
    settings = Settings.from_env(
        _env(
            BACKUP_DIR="/var/backups/flaresync",
            LOG_LEVEL="debug",
            IP_SOURCES="https://a.test, https://b.test,https://c.test",
            PORT="9000",
        )
    )

    assert settings.backup_dir == "/var/backups/flaresync"
    assert settings.log_level == "DEBUG"
    assert settings.ip_sources == ("https://a.test", "https://b.test", "https://c.test")
    assert settings.port == 9000


def test_from_env_rejects_too_few_ip_sources():
    with pytest.raises(ConfigError, match="IP_SOURCES"):
        Settings.from_env(_env(IP_SOURCES="https://a.test,https://b.test"))


def test_from_env_rejects_unknown_log_level():
    with pytest.raises(ConfigError, match="LOG_LEVEL"):
        Settings.from_env(_env(LOG_LEVEL="chatty"))


def test_parse_domain_names_trims_and_drops_empty():
    assert parse_domain_names(" a.example.com ,, b.example.com; ;c.example.com ") == [
        "a.example.com",
        "b.example.com",
        "c.example.com",
    ]


@pytest.mark.parametrize("raw", ["", "  ", ",;,", " ; "])
def test_parse_domain_names_requires_one(raw):
    with pytest.raises(ConfigError):
        parse_domain_names(raw)


def test_blank_domain_list_is_rejected_by_from_env():
    with pytest.raises(ConfigError):
        Settings.from_env(_env(DOMAIN_NAME=" , ; "))


@pytest.mark.parametrize(
    "sources",
    [
        "https://evil.test,https://evil.test,https://good.test",
        "https://evil.test,HTTPS://Evil.test:443/,https://good.test",
        "https://a.test/ip,https://a.test/ip/,https://b.test",
    ],
)
def test_ip_sources_listed_twice_are_rejected(sources):
    with pytest.raises(ConfigError, match="twice"):
        Settings.from_env(_env(IP_SOURCES=sources))


def test_ip_sources_on_different_paths_are_distinct():
    sources = parse_ip_sources("https://a.test/v4,https://a.test/ip,https://b.test")
    assert sources == ("https://a.test/v4", "https://a.test/ip", "https://b.test")


@pytest.mark.parametrize("bad", ["not-a-url", "ftp://x.test", "https://", "/relative/path"])
def test_ip_sources_must_be_http_urls(bad):
    with pytest.raises(ConfigError, match="IP_SOURCES"):
        Settings.from_env(_env(IP_SOURCES=f"{bad},https://a.test,https://b.test"))


@pytest.mark.parametrize("port", ["0", "65536", "70000"])
def test_from_env_rejects_out_of_range_port(port):
    with pytest.raises(ConfigError, match="PORT"):
        Settings.from_env(_env(PORT=port))


def test_from_env_accepts_highest_port():
    assert Settings.from_env(_env(PORT="65535")).port == 65535


def test_db_path_override():
    assert Settings.from_env(_env(DB_PATH="/srv/flaresync/run.db")).db_path == "/srv/flaresync/run.db"


def test_env_file_in_working_directory_is_loaded(tmp_path, monkeypatch):
    (tmp_path / ".env").write_text(
        "CLOUDFLARE_API_TOKEN=file_token\n"
        "CLOUDFLARE_ZONE_ID=file_zone\n"
        "DOMAIN_NAME=home.example.com\n"
        "UPDATE_INTERVAL=10\n"
        "DB_PATH=custom/run.db\n",
        encoding="utf-8",
    )
    monkeypatch.chdir(tmp_path)
    for name in ("CLOUDFLARE_API_TOKEN", "CLOUDFLARE_ZONE_ID", "DOMAIN_NAME", "UPDATE_INTERVAL", "DB_PATH"):
        # setenv first so the undo also removes whatever the .env file adds
        monkeypatch.setenv(name, "unset")
        monkeypatch.delenv(name)
    monkeypatch.setenv("CLOUDFLARE_ZONE_ID", "process_zone")

    settings = Settings.from_env()

    assert settings.api_token == "file_token"
    assert settings.zone_id == "process_zone"
    assert settings.domain_names == ("home.example.com",)
    assert settings.db_path == "custom/run.db"
