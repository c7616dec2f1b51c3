"""
Checksum store for i18n sync.

Persists the run record: one checksum entry per (project, locale) plus the
time of the last run. The record is read once at process start and written
once at the end.

File format:
    {
        "lst": [
            {"crc32": 1234, "etag": "\"abc\"", "project": "Backend", "locale": "de"}
        ],
        "last_run_time": 1700000000000000000
    }
"""

import json
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from ..core.constants import INVALID_CRC32
from ..core.paths import get_run_info_path
from ..errors import StateError


@dataclass
class ChecksumRecord:
    """Checksum and cache token for one (project, locale) pair."""
    project: str
    locale: str
    crc32: int = INVALID_CRC32
    etag: str = ""

    def to_dict(self) -> dict:
        return {
            "crc32": self.crc32,
            "etag": self.etag,
            "project": self.project,
            "locale": self.locale,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ChecksumRecord":
        crc32 = data.get("crc32", INVALID_CRC32)
        if not isinstance(crc32, int) or isinstance(crc32, bool) or not 0 <= crc32 <= 0xFFFFFFFF:
            raise ValueError(f"Invalid crc32: {crc32!r}")
        project = data["project"]
        locale = data["locale"]
        etag = data.get("etag", "")
        if not isinstance(project, str) or not isinstance(locale, str) or not isinstance(etag, str):
            raise ValueError("project, locale and etag must be strings")
        return cls(project=project, locale=locale, crc32=crc32, etag=etag)


@dataclass
class RunInfo:
    """The persisted run record."""
    records: List[ChecksumRecord] = field(default_factory=list)
    last_run_time: int = 0  # nanoseconds since epoch

    def to_dict(self) -> dict:
        return {
            "lst": [r.to_dict() for r in self.records],
            "last_run_time": self.last_run_time,
        }


class ChecksumStore:
    """
    Owner of the run record.

    Passed to the orchestrator explicitly; there is no module-level instance.
    All mutations go through upsert() so a pair never has two records.
    """

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path else get_run_info_path()
        self._info = RunInfo()
        self._lock = threading.Lock()

    @property
    def last_run_time(self) -> int:
        return self._info.last_run_time

    @property
    def records(self) -> List[ChecksumRecord]:
        """Snapshot of all records (copies, safe to inspect)."""
        with self._lock:
            return [ChecksumRecord(**vars(r)) for r in self._info.records]

    def load(self) -> RunInfo:
        """
        Load the run record from disk.

        A missing file gives an empty record. An unreadable or corrupt file
        is removed and also gives an empty record; a bad cache must never
        block synchronization.
        """
        self._info = RunInfo()
        if not self.path.exists():
            return self._info

        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
            if not isinstance(data, dict):
                raise ValueError("run info must be an object")
            last_run_time = data.get("last_run_time", 0)
            if not isinstance(last_run_time, int) or isinstance(last_run_time, bool):
                raise ValueError(f"Invalid last_run_time: {last_run_time!r}")
            entries = data.get("lst") or []
            if not isinstance(entries, list):
                raise ValueError("lst must be a list")
        except (json.JSONDecodeError, OSError, UnicodeDecodeError, ValueError) as e:
            print(f"Warning: Could not load run info ({e}), starting fresh")
            try:
                self.path.unlink()
            except OSError:
                pass
            return self._info

        self._info.last_run_time = last_run_time
        for entry in entries:
            try:
                record = ChecksumRecord.from_dict(entry)
            except (KeyError, TypeError, ValueError, AttributeError):
                continue
            # Later duplicates win, same as a replay of upserts
            self.upsert(record.project, record.locale, record.etag, record.crc32)

        return self._info

    def save(self):
        """
        Write the run record to disk, replacing the previous one.

        Raises:
            StateError: file could not be written
        """
        with self._lock:
            payload = self._info.to_dict()
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(payload, f)
        except OSError as e:
            raise StateError(f"Unable to write run info to {self.path}: {e}") from e

    def _find(self, project: str, locale: str) -> Optional[ChecksumRecord]:
        for record in self._info.records:
            if record.project == project and record.locale == locale:
                return record
        return None

    def get_etag(self, project: str, locale: str) -> Optional[str]:
        """Stored cache token for a pair, or None."""
        with self._lock:
            record = self._find(project, locale)
            if record is None or not record.etag:
                return None
            return record.etag

    def get_crc32(self, project: str, locale: str) -> int:
        """Stored crc32 for a pair, or INVALID_CRC32."""
        with self._lock:
            record = self._find(project, locale)
            return record.crc32 if record else INVALID_CRC32

    def upsert(self, project: str, locale: str, etag: str, crc32: int):
        """Replace the record for a pair, or append one."""
        with self._lock:
            record = self._find(project, locale)
            if record:
                record.etag = etag
                record.crc32 = crc32
            else:
                self._info.records.append(
                    ChecksumRecord(project=project, locale=locale, crc32=crc32, etag=etag)
                )

    def mark_run(self, now_ns: int):
        """Record the time of the current run."""
        with self._lock:
            self._info.last_run_time = now_ns
