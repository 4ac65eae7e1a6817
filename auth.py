"""
auth.py - Teacher accounts.
An account owns its students in the SQL store. Passwords are kept as
werkzeug hashes only.
"""

import logging
from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from werkzeug.security import generate_password_hash, check_password_hash

from errors import AuthenticationFailure, StorageFailure, ValidationFailure
from models import Account

logger = logging.getLogger(__name__)


def _clean_credentials(email, password):
    email = (email or "").strip().lower() if isinstance(email, str) else ""
    if not email or not password or not isinstance(password, str):
        raise ValidationFailure("Email and password required")
    return email, password


def register_account(session, email, password):
    """Creates an account. Duplicate e-mails are rejected."""
    email, password = _clean_credentials(email, password)
    try:
        exists = session.execute(select(Account.id).where(Account.email == email)).first()
        if exists:
            raise ValidationFailure("Email already registered")

        account = Account(email=email, password_hash=generate_password_hash(password))
        session.add(account)
        session.commit()
    except IntegrityError as e:
        session.rollback()
        raise ValidationFailure("Email already registered") from e
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Account registration failed for {email}: {e}")
        raise StorageFailure() from e

    logger.info(f"Account created: {email}")
    return account


def bootstrap_register(session, email, password):
    """First-run registration; refused once any account exists."""
    _clean_credentials(email, password)
    try:
        count = session.execute(select(func.count(Account.id))).scalar_one()
    except SQLAlchemyError as e:
        logger.error(f"Bootstrap check failed: {e}")
        raise StorageFailure() from e
    if count > 0:
        raise ValidationFailure("Already initialized")
    return register_account(session, email, password)


def authenticate(session, email, password):
    email, password = _clean_credentials(email, password)
    try:
        account = session.execute(select(Account).where(Account.email == email)).scalar_one_or_none()
    except SQLAlchemyError as e:
        logger.error(f"Login lookup failed for {email}: {e}")
        raise StorageFailure() from e

    if account is None or not check_password_hash(account.password_hash, password):
        logger.warning(f"Failed login for {email}")
        raise AuthenticationFailure()
    return account
