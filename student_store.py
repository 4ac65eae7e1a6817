"""
student_store.py - Student CRUD and point adjustments.

The store applies the accounting rules exactly once per adjustment and is
indifferent to which backend it runs on: the SQL store for a logged-in
account, or the offline cache when nobody is logged in.
"""

import logging
import random
import threading
from contextlib import contextmanager
from typing import Callable, List, NamedTuple, Optional

import reward_accounting
from config import REWARD_THRESHOLD, HISTORY_LIMIT, MAX_DELTA, MAX_NAME_LENGTH
from errors import NotFound, ValidationFailure
from history_log import HistoryEntry, adjustment_entry
from local_cache import LocalStudentBackend
from sql_backend import SqlStudentBackend
from storage import StudentBackend
from student_record import StudentRecord

logger = logging.getLogger(__name__)


class RecordLocks:
    """
    One lock per (scope, student id); adjustments on a record run one at a
    time. An entry lives only while someone holds or waits on it, so ids that
    never resolve to a record leave nothing behind.
    """

    def __init__(self):
        self._guard = threading.Lock()
        # key -> [lock, holders and waiters]
        self._locks = {}

    def __len__(self):
        with self._guard:
            return len(self._locks)

    @contextmanager
    def hold(self, key):
        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = self._locks[key] = [threading.Lock(), 0]
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[key]


# Shared by every store in the process; stores are built per request.
RECORD_LOCKS = RecordLocks()


class AdjustmentOutcome(NamedTuple):
    student: StudentRecord
    rewards_earned: int

    @property
    def reward_fired(self) -> bool:
        return self.rewards_earned > 0


class PendingAdjustment(NamedTuple):
    """A validated delta waiting for its reason; confirmed via confirm_adjustment()."""
    student_id: object
    delta: int


class StudentStore:
    def __init__(self, backend: StudentBackend, threshold: int = REWARD_THRESHOLD,
                 history_limit: int = HISTORY_LIMIT, max_delta: int = MAX_DELTA,
                 locks: Optional[RecordLocks] = None,
                 on_reward: Optional[Callable[[StudentRecord, int], None]] = None,
                 rng: Optional[random.Random] = None):
        self.backend = backend
        self.threshold = threshold
        self.history_limit = history_limit
        self.max_delta = max_delta
        self.locks = RECORD_LOCKS if locks is None else locks
        self.on_reward = on_reward
        self._rng = rng or random.Random()

    def _canonical(self, student_id):
        canonical = self.backend.canonical_id(student_id)
        if canonical is None:
            raise NotFound()
        return canonical

    def _lock_key(self, canonical):
        return (self.backend.scope, canonical)

    # --- Queries ---
    def list(self) -> List[StudentRecord]:
        with self.backend.transaction():
            return self.backend.list_records()

    def get(self, student_id) -> StudentRecord:
        with self.backend.transaction():
            record = self.backend.get_record(student_id)
        if record is None:
            raise NotFound()
        return record

    def history(self, student_id, limit: Optional[int] = None) -> List[HistoryEntry]:
        limit = self.history_limit if limit is None else limit
        with self.backend.transaction():
            if self.backend.get_record(student_id) is None:
                raise NotFound()
            return self.backend.history(student_id, limit)

    # --- Creation ---
    def _clean_name(self, name) -> str:
        if not isinstance(name, str) or not name.strip():
            raise ValidationFailure("Name required")
        name = name.strip()
        if len(name) > MAX_NAME_LENGTH:
            raise ValidationFailure(f"Name must be at most {MAX_NAME_LENGTH} characters")
        return name

    def _unique_name(self, name: str, existing) -> str:
        taken = {n.lower() for n in existing}
        if name.lower() not in taken:
            return name
        candidates = [f"{name} {n}" for n in range(10, 100)]
        free = [c for c in candidates if c.lower() not in taken]
        if not free:
            # All 90 suffixes are in use; the duplicate is still accepted.
            return self._rng.choice(candidates)
        return self._rng.choice(free)

    def create(self, name) -> StudentRecord:
        name = self._clean_name(name)
        with self.backend.transaction():
            if self.backend.rename_duplicates:
                renamed = self._unique_name(name, [r.name for r in self.backend.list_records()])
                if renamed != name:
                    logger.info(f"Offline duplicate name '{name}' stored as '{renamed}'")
                name = renamed
            record = self.backend.insert_record(StudentRecord.new(None, name))
        logger.info(f"Student created: {record.name} (id {record.id})")
        return record

    # --- Adjustment ---
    def propose_adjustment(self, student_id, delta) -> PendingAdjustment:
        return PendingAdjustment(student_id, reward_accounting.validate_delta(delta, self.max_delta))

    def confirm_adjustment(self, pending: PendingAdjustment, reason: Optional[str] = None) -> AdjustmentOutcome:
        return self.adjust(pending.student_id, pending.delta, reason)

    def adjust(self, student_id, delta, reason: Optional[str] = None) -> AdjustmentOutcome:
        """
        Applies delta to one student: read, compute, write totals and append
        history as a single unit under the record's lock. Raises InvalidDelta
        before touching storage, NotFound if the student is not visible.
        """
        delta = reward_accounting.validate_delta(delta, self.max_delta)
        student_id = self._canonical(student_id)

        with self.locks.hold(self._lock_key(student_id)):
            with self.backend.transaction():
                record = self.backend.get_record(student_id, for_update=True)
                if record is None:
                    raise NotFound()

                result = reward_accounting.apply(record.state, delta, self.threshold, self.max_delta)
                entry = adjustment_entry(result.after.points, reason, self.threshold)

                record.apply_state(result.after)
                self.backend.put_record(record)
                self.backend.append_history(record.id, entry)

                updated = self.backend.get_record(record.id)

        if result.reward_fired:
            logger.info(f"Reward earned: {updated.name} now has {updated.rewards} "
                        f"(+{result.rewards_earned}) at {updated.points} points")
            if self.on_reward is not None:
                self.on_reward(updated, updated.rewards)

        return AdjustmentOutcome(updated, result.rewards_earned)

    # --- Removal ---
    def remove(self, student_id) -> None:
        canonical = self.backend.canonical_id(student_id)
        if canonical is None:
            if self.backend.missing_delete_is_error:
                raise NotFound()
            return
        with self.locks.hold(self._lock_key(canonical)):
            with self.backend.transaction():
                deleted = self.backend.delete_record(canonical)
                if not deleted and self.backend.missing_delete_is_error:
                    raise NotFound()
        if deleted:
            logger.info(f"Student removed: id {canonical}")


def store_for_owner(owner_id, session_factory, cache, **kwargs) -> StudentStore:
    """
    The store for one request: the owner's SQL records when someone is
    logged in, the offline cache otherwise. Accounting is the same either way.
    """
    history_limit = kwargs.get("history_limit", HISTORY_LIMIT)
    if owner_id is None:
        backend = LocalStudentBackend(cache, history_limit=history_limit)
    else:
        backend = SqlStudentBackend(session_factory, owner_id, history_limit=history_limit)
    return StudentStore(backend, **kwargs)
