# db_session.py
import logging
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from config import DATABASE_URL
from models import Base

logger = logging.getLogger(__name__)

# Postgres URLs go through psycopg2; the SQLite default needs no server
engine = create_engine(DATABASE_URL, echo=False, future=True)

# Create session factory
SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def init_db(bind=None):
    """Creates all tables that do not exist yet."""
    bind = bind or engine
    Base.metadata.create_all(bind)
    logger.info("Database tables checked/initialized successfully.")
