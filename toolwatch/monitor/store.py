"""Status store — latest record per target.

Single writer (the scheduler), many readers (API handlers in the threadpool).
Records are immutable and replaced whole under a coarse lock, so a reader
sees either the previous or the new record, never a mix.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable
from datetime import datetime

from .models import StatusRecord, Target, Verdict, utcnow


class StatusStore:
    def __init__(self, targets: Iterable[Target], started_at: datetime | None = None) -> None:
        started_at = started_at or utcnow()
        self._lock = threading.Lock()
        self._records: dict[str, StatusRecord] = {
            t.id: StatusRecord(target_id=t.id, name=t.name, last_checked=started_at)
            for t in targets
        }

    def replace(self, record: StatusRecord) -> StatusRecord:
        """Swap in a new record and return the one it replaced."""
        with self._lock:
            previous = self._records[record.target_id]
            self._records[record.target_id] = record
        return previous

    def get(self, target_id: str) -> StatusRecord | None:
        with self._lock:
            return self._records.get(target_id)

    def snapshot(self) -> list[StatusRecord]:
        """All records, in registry order."""
        with self._lock:
            return list(self._records.values())

    def counts(self) -> dict[str, int]:
        counts = {v.value: 0 for v in Verdict}
        for record in self.snapshot():
            counts[record.verdict.value] += 1
        return counts

    def __len__(self) -> int:
        return len(self._records)
