"""Teacher accounts."""
import pytest

import auth
from errors import AuthenticationFailure, ValidationFailure


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


class TestRegister:
    def test_email_is_normalised(self, db):
        account = auth.register_account(db, "  Teacher@Example.COM ", "pw")
        assert account.email == "teacher@example.com"
        assert account.password_hash != "pw"

    def test_duplicate_email(self, db):
        auth.register_account(db, "a@example.com", "pw")
        with pytest.raises(ValidationFailure):
            auth.register_account(db, "A@example.com", "other")

    @pytest.mark.parametrize("email,password", [("", "pw"), ("a@example.com", ""), (None, None)])
    def test_missing_fields(self, db, email, password):
        with pytest.raises(ValidationFailure):
            auth.register_account(db, email, password)


class TestBootstrap:
    def test_first_account_only(self, db):
        auth.bootstrap_register(db, "first@example.com", "pw")
        with pytest.raises(ValidationFailure, match="Already initialized"):
            auth.bootstrap_register(db, "second@example.com", "pw")


class TestAuthenticate:
    def test_good_credentials(self, db):
        created = auth.register_account(db, "a@example.com", "pw")
        assert auth.authenticate(db, "A@example.com", "pw").id == created.id

    def test_wrong_password(self, db):
        auth.register_account(db, "a@example.com", "pw")
        with pytest.raises(AuthenticationFailure):
            auth.authenticate(db, "a@example.com", "nope")

    def test_unknown_email(self, db):
        with pytest.raises(AuthenticationFailure):
            auth.authenticate(db, "ghost@example.com", "pw")
