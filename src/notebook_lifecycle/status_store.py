"""
Setup status record shared between the create and start phases.

The create phase writes the record as it runs, and the ``status`` command
marks a record failed when its worker has died. The start phase only reads.
A record is replaced atomically on every save so a reader racing the
background worker sees either the previous record or the new one. Writers
serialise on a lock file next to the record, so a read-modify-write through
``update`` never overwrites a record saved concurrently by another process.
"""

import json
import logging
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Callable, ContextManager, List, Optional

from filelock import FileLock
from pydantic import BaseModel, Field, ValidationError

from .constants import NAMESPACE


class SetupStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETE = "complete"
    FAILED = "failed"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SetupStatusRecord(BaseModel):
    """Progress of the create phase."""

    status: SetupStatus
    updated_at: datetime = Field(default_factory=_utcnow)
    pid: Optional[int] = None
    pid_identity: Optional[str] = None
    current_step: Optional[str] = None
    completed_steps: List[str] = Field(default_factory=list)
    error: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.status in (SetupStatus.PENDING, SetupStatus.RUNNING)

    def transition(self, status: SetupStatus, **changes) -> "SetupStatusRecord":
        """Copy of this record in a new status with a fresh timestamp."""
        return self.model_copy(
            update={"status": status, "updated_at": _utcnow(), **changes}
        )


class StatusStore(ABC):
    """Abstract persistence for the setup status record."""

    @abstractmethod
    def load(self) -> Optional[SetupStatusRecord]:
        """
        Read the current record.

        Returns:
            The record, or None if setup was never started
        """
        pass

    @abstractmethod
    def save(self, record: SetupStatusRecord) -> None:
        """Replace the current record."""
        pass

    @abstractmethod
    def clear(self) -> None:
        """Forget any recorded progress."""
        pass

    @abstractmethod
    def locked(self) -> ContextManager:
        """Hold the writer lock shared with other processes using this store."""
        pass

    def update(
        self,
        change: Callable[[Optional[SetupStatusRecord]], Optional[SetupStatusRecord]],
    ) -> Optional[SetupStatusRecord]:
        """
        Read, change and save the record under the writer lock.

        Args:
            change: Receives the current record and returns the record to
                save. Returning the current record (or None) saves nothing.

        Returns:
            The record held by the store afterwards
        """
        with self.locked():
            current = self.load()
            record = change(current)
            if record is None or record is current:
                return current
            self.save(record)
            return record

    def is_ready(self) -> bool:
        record = self.load()
        return record is not None and record.status == SetupStatus.COMPLETE


class MemoryStatusStore(StatusStore):
    """In-process store for tests and dry runs."""

    def __init__(self, record: Optional[SetupStatusRecord] = None):
        self.record = record
        self.history: List[SetupStatusRecord] = []
        self._lock = threading.RLock()

    def load(self) -> Optional[SetupStatusRecord]:
        return self.record

    def save(self, record: SetupStatusRecord) -> None:
        self.history.append(record)
        self.record = record

    def clear(self) -> None:
        self.record = None

    def locked(self) -> ContextManager:
        return self._lock


class FileStatusStore(StatusStore):
    """
    JSON file store with atomic replacement.

    When no record exists but the zero-byte marker left by the older shell
    lifecycle scripts does, setup is reported complete so previously
    bootstrapped instances keep registering their kernels.
    """

    def __init__(self, path: Path, legacy_marker: Optional[Path] = None):
        self.path = Path(path)
        self.legacy_marker = Path(legacy_marker) if legacy_marker else None
        self.lock_path = self.path.with_name(f"{self.path.name}.lock")
        self._file_lock = FileLock(str(self.lock_path))
        self.logger = logging.getLogger(f"{NAMESPACE}.{__name__.split('.')[-1]}")

    def load(self) -> Optional[SetupStatusRecord]:
        try:
            raw = self.path.read_text()
        except FileNotFoundError:
            return self._load_legacy_marker()

        try:
            return SetupStatusRecord.model_validate(json.loads(raw))
        except (json.JSONDecodeError, ValidationError) as e:
            # Unreadable record: treat as a failed run so it is re-attempted
            self.logger.warning(f"Ignoring unreadable status record {self.path}: {e}")
            return SetupStatusRecord(
                status=SetupStatus.FAILED,
                updated_at=datetime.fromtimestamp(
                    self.path.stat().st_mtime, tz=timezone.utc
                ),
                error=f"unreadable status record: {e}",
            )

    def _load_legacy_marker(self) -> Optional[SetupStatusRecord]:
        if self.legacy_marker is not None and self.legacy_marker.exists():
            self.logger.debug(f"Using legacy completion marker {self.legacy_marker}")
            mtime = datetime.fromtimestamp(
                self.legacy_marker.stat().st_mtime, tz=timezone.utc
            )
            return SetupStatusRecord(status=SetupStatus.COMPLETE, updated_at=mtime)
        return None

    def locked(self) -> ContextManager:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        return self._file_lock

    def save(self, record: SetupStatusRecord) -> None:
        with self.locked():
            self._write(record)
        self.logger.debug(f"Saved setup status '{record.status.value}' to {self.path}")

    def _write(self, record: SetupStatusRecord) -> None:
        fd, tmp_name = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w") as tmp:
                tmp.write(record.model_dump_json(indent=2))
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_name, self.path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    def clear(self) -> None:
        with self.locked():
            self.path.unlink(missing_ok=True)
            if self.legacy_marker is not None:
                self.legacy_marker.unlink(missing_ok=True)
