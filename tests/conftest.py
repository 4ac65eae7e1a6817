"""
Shared test fixtures.
Settings are read at import time, so the environment is pointed at
throwaway locations before any project module is imported.
"""
import os
import random
import tempfile

_TMP = tempfile.mkdtemp(prefix="classroom-rewards-")
os.environ["LOG_DIR"] = os.path.join(_TMP, "logs")
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["LOCAL_CACHE_PATH"] = os.path.join(_TMP, "students.json")
os.environ["REWARD_THRESHOLD"] = "10"
os.environ["HISTORY_LIMIT"] = "64"
os.environ["MAX_DELTA"] = "100000"
for _key in ("MAIL_USERNAME", "MAIL_PASSWORD", "ADMIN_EMAIL"):
    os.environ[_key] = ""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import auth
from local_cache import LocalCache, LocalStudentBackend
from models import Base
from sql_backend import SqlStudentBackend
from student_store import RecordLocks, StudentStore


@pytest.fixture
def engine():
    """In-memory SQLite shared by every session of one test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def _make_account(session_factory, email):
    db = session_factory()
    try:
        return auth.register_account(db, email, "correct horse")
    finally:
        db.close()


@pytest.fixture
def account(session_factory):
    return _make_account(session_factory, "teacher@example.com")


@pytest.fixture
def other_account(session_factory):
    return _make_account(session_factory, "other@example.com")


@pytest.fixture
def sql_store(session_factory, account):
    backend = SqlStudentBackend(session_factory, account.id)
    return StudentStore(backend, threshold=10, locks=RecordLocks())


@pytest.fixture
def local_cache():
    return LocalCache()


@pytest.fixture
def local_store(local_cache):
    backend = LocalStudentBackend(local_cache, rng=random.Random(3))
    return StudentStore(backend, threshold=10, locks=RecordLocks(), rng=random.Random(7))


@pytest.fixture(params=["sql", "local"])
def store(request):
    """Runs a test once against each backend."""
    return request.getfixturevalue(f"{request.param}_store")


@pytest.fixture
def client(session_factory):
    import app as app_module

    flask_app = app_module.app
    flask_app.config.update(
        TESTING=True,
        SESSION_FACTORY=session_factory,
        LOCAL_CACHE=LocalCache(),
    )
    with flask_app.test_client() as c:
        yield c
