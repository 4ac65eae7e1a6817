"""
local_cache.py - Offline student storage.
A JSON file standing in for the browser's local storage when nobody is
logged in. Same record and history shape as the SQL store.
"""

import copy
import json
import logging
import os
import random
import string
import threading
from contextlib import contextmanager
from typing import List, Optional

from config import HISTORY_LIMIT
from errors import NotFound, StorageFailure
from history_log import HistoryEntry, HistoryLog
from storage import StudentBackend
from student_record import StudentRecord

logger = logging.getLogger(__name__)

ID_ALPHABET = string.ascii_lowercase + string.digits


class LocalCache:
    """
    Holds the offline roster in memory and mirrors it to `path`.
    With path=None nothing touches the disk (used by tests and previews).
    """

    def __init__(self, path: Optional[str] = None):
        self.path = path
        self.lock = threading.RLock()
        self._records: Optional[List[StudentRecord]] = None
        self.is_new = path is None or not os.path.exists(path)

    def records(self) -> List[StudentRecord]:
        if self._records is None:
            self._records = self._load()
        return self._records

    def replace(self, records: List[StudentRecord]) -> None:
        self._records = records

    def _load(self) -> List[StudentRecord]:
        if self.path is None or not os.path.exists(self.path):
            return []
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to load offline students from {self.path}: {e}")
            raise StorageFailure() from e
        if not isinstance(data, list):
            logger.error(f"Offline student file {self.path} does not hold a list.")
            raise StorageFailure()
        try:
            return [StudentRecord.from_dict(item) for item in data]
        except (KeyError, TypeError, ValueError) as e:
            logger.error(f"Malformed offline student in {self.path}: {e}")
            raise StorageFailure() from e

    def save(self) -> None:
        if self.path is None:
            self.is_new = False
            return
        payload = [record.to_dict(history_limit=None) for record in self.records()]
        tmp = self.path + ".tmp"
        try:
            directory = os.path.dirname(self.path)
            if directory:
                os.makedirs(directory, exist_ok=True)
            with open(tmp, "w", encoding="utf-8") as f:
                json.dump(payload, f, ensure_ascii=False, indent=2)
            os.replace(tmp, self.path)
        except OSError as e:
            logger.error(f"Failed to save offline students to {self.path}: {e}")
            raise StorageFailure() from e
        self.is_new = False


class LocalStudentBackend(StudentBackend):
    rename_duplicates = True
    missing_delete_is_error = False

    def __init__(self, cache: LocalCache, history_limit: int = HISTORY_LIMIT, rng=None):
        self.cache = cache
        self.history_limit = history_limit
        self._rng = rng or random.Random()
        self._depth = 0

    @property
    def scope(self):
        return ("local", self.cache.path or id(self.cache))

    def canonical_id(self, student_id) -> str:
        return str(student_id)

    @contextmanager
    def transaction(self):
        with self.cache.lock:
            if self._depth:
                yield
                return
            snapshot = copy.deepcopy(self.cache.records())
            self._depth += 1
            try:
                yield
                self.cache.save()
            except Exception:
                self.cache.replace(snapshot)
                raise
            finally:
                self._depth -= 1

    def _find(self, student_id) -> Optional[StudentRecord]:
        key = str(student_id)
        for record in self.cache.records():
            if str(record.id) == key:
                return record
        return None

    def _bounded_copy(self, record: StudentRecord) -> StudentRecord:
        history = HistoryLog(record.history.recent(self.history_limit))
        return StudentRecord(record.id, record.name, record.points, record.rewards, history, record.owner_id)

    def _new_id(self) -> str:
        taken = {str(record.id) for record in self.cache.records()}
        while True:
            candidate = "".join(self._rng.choice(ID_ALPHABET) for _ in range(8))
            if candidate not in taken:
                return candidate

    def get_record(self, student_id, for_update: bool = False) -> Optional[StudentRecord]:
        record = self._find(student_id)
        return self._bounded_copy(record) if record is not None else None

    def list_records(self) -> List[StudentRecord]:
        return [self._bounded_copy(record) for record in self.cache.records()]

    def history(self, student_id, limit: int) -> List[HistoryEntry]:
        record = self._find(student_id)
        if record is None:
            return []
        return record.history.recent(limit)

    def insert_record(self, record: StudentRecord) -> StudentRecord:
        record.id = self._new_id()
        self.cache.records().append(copy.deepcopy(record))
        return record

    def put_record(self, record: StudentRecord) -> None:
        stored = self._find(record.id)
        if stored is None:
            raise NotFound()
        stored.name, stored.points, stored.rewards = record.name, record.points, record.rewards

    def append_history(self, student_id, entry: HistoryEntry) -> None:
        stored = self._find(student_id)
        if stored is None:
            raise NotFound()
        stored.history.append(entry)

    def delete_record(self, student_id) -> bool:
        records = self.cache.records()
        remaining = [record for record in records if str(record.id) != str(student_id)]
        if len(remaining) == len(records):
            return False
        self.cache.replace(remaining)
        return True
