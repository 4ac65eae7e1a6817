"""
history_log.py - Per-student point history.
Entries store cycle-local progress (total % threshold), not the running
total, so a progress chart never has to rescale when a reward is earned.
"""

import time
from typing import Any, Dict, Iterable, List, NamedTuple, Optional

from config import REWARD_THRESHOLD, HISTORY_LIMIT, DEFAULT_REASON, CREATED_REASON


class HistoryEntry(NamedTuple):
    t: int
    points: int
    reason: str

    def to_dict(self) -> Dict[str, Any]:
        return {"t": self.t, "points": self.points, "reason": self.reason}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HistoryEntry":
        return cls(int(data.get("t") or 0), int(data.get("points") or 0), data.get("reason") or DEFAULT_REASON)


def now_ms() -> int:
    return int(time.time() * 1000)


def normalize_reason(reason: Optional[str]) -> str:
    if reason is None:
        return DEFAULT_REASON
    reason = str(reason).strip()
    return reason or DEFAULT_REASON


def seed_entry(t: Optional[int] = None) -> HistoryEntry:
    """The first entry of every student; always 0 points."""
    return HistoryEntry(now_ms() if t is None else t, 0, CREATED_REASON)


def adjustment_entry(total_points: int, reason: Optional[str], threshold: int = REWARD_THRESHOLD,
                     t: Optional[int] = None) -> HistoryEntry:
    return HistoryEntry(now_ms() if t is None else t, total_points % threshold, normalize_reason(reason))


def compute_changes(entries: Iterable[HistoryEntry]) -> List[int]:
    """Per-entry change against the previous entry; the first is diffed against 0."""
    changes = []
    previous = 0
    for entry in entries:
        changes.append(entry.points - previous)
        previous = entry.points
    return changes


class HistoryLog:
    """Append-only, insertion-ordered log. Retrieval is capped, storage is not."""

    def __init__(self, entries: Optional[Iterable[HistoryEntry]] = None):
        self._entries: List[HistoryEntry] = list(entries or [])

    def append(self, entry: HistoryEntry) -> None:
        self._entries.append(entry)

    def recent(self, limit: int = HISTORY_LIMIT) -> List[HistoryEntry]:
        if limit <= 0:
            return []
        return self._entries[-limit:]

    def latest(self) -> Optional[HistoryEntry]:
        return self._entries[-1] if self._entries else None

    def with_changes(self, limit: int = HISTORY_LIMIT) -> List[Dict[str, Any]]:
        entries = self.recent(limit)
        return [dict(entry.to_dict(), change=change)
                for entry, change in zip(entries, compute_changes(entries))]

    def to_list(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        entries = self._entries if limit is None else self.recent(limit)
        return [entry.to_dict() for entry in entries]

    def __iter__(self):
        return iter(self._entries)

    def __len__(self):
        return len(self._entries)

    def __bool__(self):
        return bool(self._entries)
