"""Unit tests for DB retry, engine options, logging, helpers, security and the seed commands."""

import logging
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import jwt
import pytest
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.pool import StaticPool

from app.core.config import settings
from app.core.logger import configure_logging
from app.core.security import (
    create_access_token,
    decode_access_token,
    get_password_hash,
    verify_password,
)
from app.db.database import _engine_kwargs
from app.db.models import ParticipantRole, User
from app.db.retry import is_transient_db_error, with_retry
from app.db.seed import main as seed_main
from app.db.seed import seed_user, set_password
from app.utils.helpers import (
    humanize_enum,
    parse_optional_datetime,
    participant_label,
    to_camel_case,
    to_naive_utc,
)


class TestWithRetry:
    """Tests for retrying transient database errors."""

    def test_retries_connection_errors(self):
        attempts = []

        def flaky():
            attempts.append(1)
            if len(attempts) < 3:
                raise OperationalError("SELECT 1", {}, Exception("server closed the connection"))
            return "ok"

        assert with_retry(flaky, max_attempts=3, base_delay=0) == "ok"
        assert len(attempts) == 3

    def test_linear_backoff_and_rollback(self, monkeypatch):
        """Waits base_delay * attempt and rolls the session back before each retry."""
        delays = []
        monkeypatch.setattr("app.db.retry.time.sleep", lambda s: delays.append(s))
        session = MagicMock()
        attempts = []

        def flaky():
            attempts.append(1)
            if len(attempts) < 3:
                raise OperationalError("SELECT 1", {}, Exception("server closed the connection"))
            return "ok"

        assert with_retry(flaky, session, max_attempts=3, base_delay=1.0) == "ok"
        assert delays == [1.0, 2.0]
        assert session.rollback.call_count == 2

    def test_gives_up_after_max_attempts(self):
        def always_down():
            raise OperationalError("SELECT 1", {}, Exception("connection refused"))

        with pytest.raises(OperationalError):
            with_retry(always_down, max_attempts=2, base_delay=0)

    def test_other_errors_are_not_retried(self):
        attempts = []

        def duplicate():
            attempts.append(1)
            raise IntegrityError("INSERT", {}, Exception("duplicate key"))

        with pytest.raises(IntegrityError):
            with_retry(duplicate, max_attempts=3, base_delay=0)
        assert len(attempts) == 1

    def test_is_transient(self):
        assert is_transient_db_error(OperationalError("x", {}, Exception("timeout expired")))
        assert not is_transient_db_error(IntegrityError("x", {}, Exception("duplicate key")))
        assert not is_transient_db_error(ValueError("nope"))


class TestEngineOptions:
    """Tests for per-backend engine settings."""

    @pytest.mark.parametrize("url", ["sqlite://", "sqlite:///:memory:"])
    def test_in_memory_sqlite_shares_one_connection(self, url):
        kwargs = _engine_kwargs(url)

        assert kwargs["poolclass"] is StaticPool
        assert kwargs["connect_args"] == {"check_same_thread": False}

    def test_file_sqlite_uses_default_pool(self):
        kwargs = _engine_kwargs("sqlite:///./rehab.db")

        assert "poolclass" not in kwargs
        assert kwargs["connect_args"] == {"check_same_thread": False}

    def test_postgres_pool_settings(self):
        kwargs = _engine_kwargs("postgresql://user:pw@localhost/rehab")

        assert kwargs["pool_pre_ping"] is True
        assert "poolclass" not in kwargs


class TestLogger:
    """Tests for logger configuration."""

    def test_level_comes_from_argument(self):
        configure_logging("debug")
        assert logging.getLogger().level == logging.DEBUG

        configure_logging(settings.LOG_LEVEL)
        assert logging.getLogger().level == getattr(logging, settings.LOG_LEVEL.upper())

    def test_handler_is_installed_once(self):
        configure_logging("info")
        configure_logging("info")

        ours = [h for h in logging.getLogger().handlers if getattr(h, "_rehab_handler", False)]
        assert len(ours) == 1


class TestHelpers:
    """Tests for the small formatting helpers."""

    def test_to_camel_case(self):
        assert to_camel_case("Psychosocial Factors") == "psychosocialFactors"
        assert to_camel_case("  Workplace   visit notes ") == "workplaceVisitNotes"
        assert to_camel_case("   ") == ""

    def test_participant_label_replaces_first_underscore(self):
        assert participant_label(ParticipantRole.insurer_cm, "Sam") == "INSURER CM: Sam"
        assert participant_label("A_B_C", "X") == "A B_C: X"

    def test_humanize_enum(self):
        assert humanize_enum("INITIAL_NEEDS_ASSESSMENT") == "INITIAL NEEDS ASSESSMENT"

    def test_to_naive_utc(self):
        aware = datetime(2030, 1, 1, 10, 0, tzinfo=timezone(timedelta(hours=10)))

        assert to_naive_utc(aware) == datetime(2030, 1, 1, 0, 0)
        assert to_naive_utc(datetime(2030, 1, 1)) == datetime(2030, 1, 1)
        assert to_naive_utc(None) is None

    def test_parse_optional_datetime(self):
        assert parse_optional_datetime("2030-01-15") == datetime(2030, 1, 15)
        assert parse_optional_datetime("2030-01-15T10:00:00Z") == datetime(2030, 1, 15, 10, 0)
        assert parse_optional_datetime("next Tuesday") is None
        assert parse_optional_datetime(None) is None


class TestSecurity:
    """Tests for password hashing and session tokens."""

    def test_password_round_trip(self):
        hashed = get_password_hash("s3cret")

        assert hashed != "s3cret"
        assert verify_password("s3cret", hashed)
        assert not verify_password("wrong", hashed)

    def test_non_bcrypt_hash_is_rejected(self):
        assert not verify_password("s3cret", "plaintext")
        assert not verify_password("", "plaintext")

    def test_token_carries_subject(self):
        token = create_access_token({"sub": "user-1"})

        assert decode_access_token(token)["sub"] == "user-1"

    def test_tampered_token(self):
        token = create_access_token({"sub": "user-1"})

        with pytest.raises(jwt.PyJWTError):
            decode_access_token(token + "x")


class TestSeedCommands:
    """Tests for the admin user commands."""

    def test_seed_user_once(self, db):
        created = seed_user(db, "consultant", "first-pass")
        again = seed_user(db, "consultant", "other-pass")

        assert created is not None
        assert again is None
        assert db.query(User).count() == 1
        assert verify_password("first-pass", created.password_hash)

    def test_set_password(self, db, user):
        assert set_password(db, "consultant", "new-pass") is True
        db.refresh(user)
        assert verify_password("new-pass", user.password_hash)

    def test_set_password_unknown_user(self, db):
        assert set_password(db, "nobody", "x") is False

    def test_cli_seed_user(self, db, monkeypatch):
        monkeypatch.setenv("SEED_USERNAME", "cli-user")
        monkeypatch.setenv("SEED_PASSWORD", "cli-pass")

        assert seed_main(["seed-user"]) == 0
        db.expire_all()
        assert db.query(User).filter(User.username == "cli-user").count() == 1

    def test_cli_missing_env(self, db, monkeypatch):
        monkeypatch.delenv("UPDATE_USERNAME", raising=False)
        monkeypatch.delenv("NEW_PASSWORD", raising=False)

        with pytest.raises(SystemExit):
            seed_main(["set-password"])
