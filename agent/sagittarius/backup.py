"""
Backup file — durable record of counts not yet confirmed delivered.

Presence of the file means "undelivered data exists". It is written when a
delivery cycle fails and on shutdown, merged into the counters at startup,
and deleted after a successful delivery.

Writes go to a temp file in the same directory, are fsync'ed, then renamed
over the real path, so a crash mid-write never leaves a partial backup.
"""

import json
import os
import tempfile
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from .config import log
from .counters import CounterSnapshot
from .errors import CorruptBackup


def utc_now_iso():
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass(frozen=True)
class BackupRecord:
    """A snapshot stamped with host and time. Same shape as the POST body."""

    snapshot: CounterSnapshot
    hostname: str
    timestamp: str

    @classmethod
    def create(cls, snapshot, hostname):
        return cls(snapshot=snapshot, hostname=hostname, timestamp=utc_now_iso())

    def to_dict(self):
        data = self.snapshot.to_dict()
        data["timestamp"] = self.timestamp
        data["hostname"] = self.hostname
        return data

    @classmethod
    def from_dict(cls, data):
        snapshot = CounterSnapshot.from_dict(data)
        return cls(
            snapshot=snapshot,
            hostname=str(data.get("hostname") or ""),
            timestamp=str(data.get("timestamp") or ""),
        )


class BackupStore:
    """Owns the backup file. All writers go through one lock."""

    def __init__(self, path, hostname=""):
        self.path = Path(path)
        self.hostname = hostname
        self._lock = threading.RLock()

    @contextmanager
    def _exclusive(self):
        with self._lock:
            yield

    def exists(self):
        return self.path.exists()

    def save(self, record):
        """Atomically replace the backup with record."""
        data = json.dumps(record.to_dict(), separators=(",", ":"))
        with self._exclusive():
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                prefix=self.path.name + ".", suffix=".tmp", dir=str(self.path.parent),
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(data)
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(tmp_path, self.path)
            except BaseException:
                try:
                    os.unlink(tmp_path)
                except OSError:
                    pass
                raise
        log.info(
            "Stats saved to %s (%d keys, %d clicks, %d wheels)",
            self.path, record.snapshot.total_keys,
            record.snapshot.total_clicks, record.snapshot.total_wheels,
        )

    def load(self):
        """Return the BackupRecord on disk, or None if there is none."""
        with self._exclusive():
            try:
                raw = self.path.read_text(encoding="utf-8")
            except FileNotFoundError:
                return None
            try:
                data = json.loads(raw)
            except ValueError as e:
                raise CorruptBackup(f"{self.path}: {e}") from e
            return BackupRecord.from_dict(data)

    def delete(self):
        """Remove the backup. No error if it is already gone."""
        with self._exclusive():
            try:
                self.path.unlink()
            except FileNotFoundError:
                return False
        log.info("Backup deleted (%s)", self.path)
        return True

    def load_or_discard(self):
        """
        Like load(), but a corrupt file is logged and removed instead of
        raised. This is the only path where counts are dropped.
        """
        with self._exclusive():
            try:
                return self.load()
            except CorruptBackup as e:
                log.warning("Backup file is unreadable, discarding it: %s", e)
                self.delete()
                return None

    def merge_and_save(self, snapshot):
        """Add snapshot to whatever is already backed up and write it back."""
        with self._exclusive():
            existing = self.load_or_discard()
            combined = snapshot.merged(existing.snapshot) if existing else snapshot
            record = BackupRecord.create(combined, self.hostname)
            self.save(record)
            return record

    def recover_into(self, store):
        """
        Startup recovery: merge the backup into the live counters, then
        remove the file. Returns the recovered snapshot or None.
        """
        with self._exclusive():
            record = self.load_or_discard()
            if record is None:
                log.info("No backup found, starting from zero")
                return None
            store.merge_from(record.snapshot)
            self.delete()
        snap = record.snapshot
        log.info(
            "Stats restored from backup: %d keys, %d clicks, %d wheels",
            snap.total_keys, snap.total_clicks, snap.total_wheels,
        )
        return snap
