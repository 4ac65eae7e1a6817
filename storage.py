"""
storage.py - The capability set every student backend provides.
StudentStore only talks to this interface, so accounting never depends on
which backend is underneath.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from history_log import HistoryEntry
from student_record import StudentRecord


class StudentBackend(ABC):
    # Offline creation renames case-insensitive duplicates instead of keeping them.
    rename_duplicates = False
    # Authenticated deletes of unknown ids are NotFound; offline they are no-ops.
    missing_delete_is_error = True

    @property
    @abstractmethod
    def scope(self):
        """Key that separates this backend's records from other owners' in lock tables."""

    @abstractmethod
    def canonical_id(self, student_id):
        """
        The one spelling of student_id this backend stores, or None when no
        record could ever have it. Every spelling of an id maps to the same value.
        """

    @abstractmethod
    def transaction(self):
        """
        Context manager around one unit of work. Commits on success; on any
        error nothing is kept and storage errors surface as StorageFailure.
        """

    @abstractmethod
    def get_record(self, student_id, for_update: bool = False) -> Optional[StudentRecord]:
        """Record with bounded history, or None when missing or not owned."""

    @abstractmethod
    def insert_record(self, record: StudentRecord) -> StudentRecord:
        """Stores a new record and its history; assigns the id."""

    @abstractmethod
    def put_record(self, record: StudentRecord) -> None:
        """Writes name, points and rewards of an existing record."""

    @abstractmethod
    def append_history(self, student_id, entry: HistoryEntry) -> None:
        pass

    @abstractmethod
    def list_records(self) -> List[StudentRecord]:
        """All visible records in creation order."""

    @abstractmethod
    def delete_record(self, student_id) -> bool:
        """Deletes the record and all of its history; False if it did not exist."""

    @abstractmethod
    def history(self, student_id, limit: int) -> List[HistoryEntry]:
        pass
