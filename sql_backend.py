"""
sql_backend.py - Authenticated student storage on SQLAlchemy.
Every query is scoped to the owning account; a record owned by someone else
is indistinguishable from a missing one.
"""

import logging
from contextlib import contextmanager
from typing import List, Optional

from sqlalchemy import select, update, delete
from sqlalchemy.exc import SQLAlchemyError

from config import HISTORY_LIMIT
from errors import NotFound, StorageFailure
from history_log import HistoryEntry, HistoryLog, normalize_reason
from models import Student, History
from storage import StudentBackend
from student_record import StudentRecord

logger = logging.getLogger(__name__)


def _coerce_id(student_id) -> Optional[int]:
    """Route parameters arrive as strings; anything non-numeric cannot exist here."""
    if isinstance(student_id, bool):
        return None
    if isinstance(student_id, int):
        return student_id
    try:
        return int(str(student_id).strip())
    except ValueError:
        return None


class SqlStudentBackend(StudentBackend):
    rename_duplicates = False
    missing_delete_is_error = True

    def __init__(self, session_factory, owner_id: int, history_limit: int = HISTORY_LIMIT):
        self._session_factory = session_factory
        self.owner_id = owner_id
        self.history_limit = history_limit
        self._current = None

    @property
    def scope(self):
        return ("sql", self.owner_id)

    def canonical_id(self, student_id) -> Optional[int]:
        return _coerce_id(student_id)

    @property
    def _session(self):
        if self._current is None:
            raise RuntimeError("SqlStudentBackend used outside of a transaction")
        return self._current

    @contextmanager
    def transaction(self):
        if self._current is not None:
            # Already inside a unit of work; join it.
            yield
            return

        session = self._session_factory()
        self._current = session
        try:
            yield
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Database error for owner {self.owner_id}: {e}")
            raise StorageFailure() from e
        except Exception:
            session.rollback()
            raise
        finally:
            self._current = None
            session.close()

    # --- Reads ---
    def _owned_student(self, student_id, for_update=False):
        sid = _coerce_id(student_id)
        if sid is None:
            return None
        query = select(Student).where(Student.id == sid, Student.owner_id == self.owner_id)
        if for_update:
            query = query.with_for_update()
        return self._session.execute(query).scalar_one_or_none()

    def _to_record(self, row) -> StudentRecord:
        history = HistoryLog(self.history(row.id, self.history_limit))
        return StudentRecord(row.id, row.name, row.points, row.rewards, history, row.owner_id)

    def get_record(self, student_id, for_update: bool = False) -> Optional[StudentRecord]:
        row = self._owned_student(student_id, for_update)
        return self._to_record(row) if row is not None else None

    def list_records(self) -> List[StudentRecord]:
        rows = self._session.execute(
            select(Student).where(Student.owner_id == self.owner_id).order_by(Student.id.asc())
        ).scalars().all()
        return [self._to_record(row) for row in rows]

    def history(self, student_id, limit: int) -> List[HistoryEntry]:
        sid = _coerce_id(student_id)
        if sid is None or limit <= 0:
            return []
        # Newest `limit` rows by insertion id, handed back oldest first.
        rows = self._session.execute(
            select(History).where(History.student_id == sid).order_by(History.id.desc()).limit(limit)
        ).scalars().all()
        return [HistoryEntry(r.t, r.points, normalize_reason(r.reason)) for r in reversed(rows)]

    # --- Writes ---
    def insert_record(self, record: StudentRecord) -> StudentRecord:
        row = Student(owner_id=self.owner_id, name=record.name, points=record.points, rewards=record.rewards)
        self._session.add(row)
        self._session.flush()

        record.id = row.id
        record.owner_id = self.owner_id
        for entry in record.history:
            self._session.add(History(student_id=row.id, t=entry.t, points=entry.points, reason=entry.reason))
        self._session.flush()
        return record

    def put_record(self, record: StudentRecord) -> None:
        result = self._session.execute(
            update(Student)
            .where(Student.id == _coerce_id(record.id), Student.owner_id == self.owner_id)
            .values(name=record.name, points=record.points, rewards=record.rewards)
        )
        if result.rowcount == 0:
            raise NotFound()

    def append_history(self, student_id, entry: HistoryEntry) -> None:
        self._session.add(History(student_id=_coerce_id(student_id), t=entry.t, points=entry.points,
                                  reason=entry.reason))
        self._session.flush()

    def delete_record(self, student_id) -> bool:
        row = self._owned_student(student_id)
        if row is None:
            return False
        self._session.execute(delete(History).where(History.student_id == row.id))
        self._session.delete(row)
        self._session.flush()
        return True
