"""
services/backup_service.py

Responsibility: Writes a JSON snapshot of a DNS record to the backup
directory before the record is overwritten.
Does NOT: read backups back, prune old files, or talk to any DNS API.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

from exceptions import BackupError
from provider.dns_provider import DnsRecord

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 128
EMPTY_NAME_PLACEHOLDER = "record"

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]")


def sanitize_record_name(name: str) -> str:
    """
    Turns a record name into a safe file-name component.

    Every character outside ASCII letters, digits, ".", "_" and "-" becomes
    "_", so path separators can never escape the backup directory. The result
    is capped at 128 characters; an empty name maps to "record".

    Examples:
        >>> sanitize_record_name("../weird/name")
        '.._weird_name'
        >>> sanitize_record_name("")
        'record'
    """
    cleaned = _UNSAFE_CHARS.sub("_", name)[:MAX_NAME_LENGTH]
    return cleaned or EMPTY_NAME_PLACEHOLDER


class BackupService:
    """
    Persists pre-update snapshots of DNS records as an audit trail.

    Files are named ``{YYYYMMDD_HHMMSS}_{sanitized-name}_backup.json``. Two
    backups of the same name within one second overwrite each other.

    Collaborators:
        - clock: returns the current local time; injected for tests
    """

    def __init__(
        self,
        backup_dir: str | Path = "backups",
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._backup_dir = Path(backup_dir)
        self._clock = clock

    @property
    def backup_dir(self) -> Path:
        return self._backup_dir

    def backup(self, record: DnsRecord) -> Path:
        """
        Writes ``record`` as pretty-printed JSON.

        Args:
            record: The record about to be overwritten.

        Returns:
            Path of the written file.

        Raises:
            BackupError: If the directory cannot be created or the file
                         cannot be written.
        """
        timestamp = self._clock().strftime("%Y%m%d_%H%M%S")
        path = self._backup_dir / f"{timestamp}_{sanitize_record_name(record.name)}_backup.json"

        try:
            self._backup_dir.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(record.to_dict(), indent=2), encoding="utf-8")
        except OSError as exc:
            raise BackupError(f"Could not write backup for {record.name} to {path}: {exc}") from exc

        logger.info("DNS record backup created for %s at %s", record.name, path)
        return path
