"""
student_record.py - The student aggregate: identity, totals and history.
Both backends hand these out; the dict form is the same in every mode.
"""

from typing import Any, Dict, Optional

from config import REWARD_THRESHOLD, HISTORY_LIMIT
from history_log import HistoryEntry, HistoryLog, seed_entry
from reward_accounting import PointState


class StudentRecord:
    def __init__(self, id, name: str, points: int = 0, rewards: int = 0,
                 history: Optional[HistoryLog] = None, owner_id: Optional[int] = None):
        self.id = id
        self.name = name
        self.points = points
        self.rewards = rewards
        self.history = history if history is not None else HistoryLog()
        self.owner_id = owner_id

    @classmethod
    def new(cls, id, name: str, owner_id: Optional[int] = None, t: Optional[int] = None) -> "StudentRecord":
        """A fresh student: zero points, zero rewards, one seed history entry."""
        return cls(id, name, 0, 0, HistoryLog([seed_entry(t)]), owner_id)

    @property
    def state(self) -> PointState:
        return PointState(self.points, self.rewards)

    def apply_state(self, state: PointState) -> None:
        self.points, self.rewards = state.points, state.rewards

    def cycle_points(self, threshold: int = REWARD_THRESHOLD) -> int:
        return self.points % threshold

    def to_dict(self, history_limit: Optional[int] = HISTORY_LIMIT, threshold: int = REWARD_THRESHOLD) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "points": self.points,
            "rewards": self.rewards,
            "cycle_points": self.cycle_points(threshold),
            "history": self.history.to_list(history_limit),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StudentRecord":
        history = HistoryLog(HistoryEntry.from_dict(e) for e in data.get("history") or [])
        return cls(
            data["id"],
            data.get("name", ""),
            int(data.get("points") or 0),
            int(data.get("rewards") or 0),
            history,
            data.get("owner_id"),
        )

    def __repr__(self):
        return f"StudentRecord(id={self.id!r}, name={self.name!r}, points={self.points}, rewards={self.rewards})"
