"""
Persistence collaborators for the last check time and skipped version.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional

from .time_utils import ensure_utc, parse_timestamp


logger = logging.getLogger(__name__)

LAST_CHECK_KEY = "last_check_timestamp"
SKIPPED_VERSION_KEY = "skipped_version"


@dataclass
class InMemoryStateStore:
    """State held in process memory; lost on exit."""

    last_check: Optional[datetime] = None
    skipped_version: Optional[str] = None

    def get_last_check_timestamp(self) -> Optional[datetime]:
        return self.last_check

    def set_last_check_timestamp(self, value: datetime) -> None:
        self.last_check = ensure_utc(value)

    def get_skipped_version(self) -> Optional[str]:
        return self.skipped_version

    def set_skipped_version(self, value: Optional[str]) -> None:
        self.skipped_version = value


class JsonFileStateStore:
    """State kept in a small JSON document on disk.

    Every accessor reads or rewrites the file, so nothing is cached between
    check cycles.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def _read(self) -> Dict[str, Optional[str]]:
        if not self.path.is_file():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Failed to read state file %s: %s", self.path, e)
            return {}
        if not isinstance(data, dict):
            logger.warning("Ignoring state file %s: not a JSON object", self.path)
            return {}
        return data

    def _write(self, key: str, value: Optional[str]) -> None:
        data = self._read()
        if value is None:
            data.pop(key, None)
        else:
            data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
        logger.debug("Saved %s to %s", key, self.path)

    def get_last_check_timestamp(self) -> Optional[datetime]:
        raw = self._read().get(LAST_CHECK_KEY)
        return parse_timestamp(raw) if isinstance(raw, str) else None

    def set_last_check_timestamp(self, value: datetime) -> None:
        self._write(LAST_CHECK_KEY, ensure_utc(value).isoformat())

    def get_skipped_version(self) -> Optional[str]:
        raw = self._read().get(SKIPPED_VERSION_KEY)
        return raw if isinstance(raw, str) else None

    def set_skipped_version(self, value: Optional[str]) -> None:
        self._write(SKIPPED_VERSION_KEY, value)
