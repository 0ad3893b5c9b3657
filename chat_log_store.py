"""Append-only JSON audit trail of chat requests."""

from __future__ import annotations

import json
import logging
import os
import threading
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

STATUS_SUCCESS = "success"
STATUS_FAILURE = "failure"


class ChatLogStore:
    """Stores one entry per chat request in a JSON array file.

    Entries are never rewritten or removed. The file is read back only by the
    log listing endpoint; analytics counters do not depend on it.
    """

    def __init__(self, log_file: str) -> None:
        self.log_file = os.path.abspath(log_file)
        self._lock = threading.Lock()

    def _ensure_directory(self) -> None:
        directory = os.path.dirname(self.log_file)
        if directory and not os.path.exists(directory):
            os.makedirs(directory, exist_ok=True)

    def _load_entries_unlocked(self, strict: bool = False) -> List[Dict[str, Any]]:
        try:
            with open(self.log_file, "r", encoding="utf-8") as fh:
                data = json.load(fh)
        except FileNotFoundError:
            return []
        except json.JSONDecodeError as exc:
            logger.warning("Chat log %s is not valid JSON: %s", self.log_file, exc)
            if strict:
                raise
            return []
        if isinstance(data, list):
            return data
        logger.warning("Chat log %s does not hold a JSON array", self.log_file)
        if strict:
            raise ValueError(f"Chat log {self.log_file} does not hold a JSON array")
        return []

    def _write_entries_unlocked(self, entries: List[Dict[str, Any]]) -> None:
        self._ensure_directory()
        temp_file = f"{self.log_file}.tmp"
        with open(temp_file, "w", encoding="utf-8") as fh:
            json.dump(entries, fh, indent=2)
        os.replace(temp_file, self.log_file)

    def append(self, entry: Dict[str, Any]) -> Dict[str, Any]:
        """Append one entry; an unreadable existing log is left untouched and the error raised."""
        # Drop unset optional fields for cleaner storage
        record = {key: value for key, value in entry.items() if value is not None}
        with self._lock:
            entries = self._load_entries_unlocked(strict=True)
            entries.append(record)
            self._write_entries_unlocked(entries)
        return record

    def list_entries(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        with self._lock:
            entries = self._load_entries_unlocked()
        if limit is not None and limit > 0:
            return entries[-limit:]
        return entries


__all__ = ["ChatLogStore", "STATUS_FAILURE", "STATUS_SUCCESS"]
