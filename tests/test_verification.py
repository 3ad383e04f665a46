"""Verification code issuing, checking and cleanup."""

from datetime import timedelta

import pytest

from conftest import PASSWORD, current_code, make_user, wrong_code
from ghost_league.errors import InvalidOrExpiredCodeError, TooManyAttemptsError, ValidationError
from ghost_league.models.email_verification import EmailVerificationCode
from ghost_league.services import verification, verification_cleanup
from ghost_league.services.clock import as_utc, utcnow
from ghost_league.services.session_manager import AuthSessionManager, RequiresVerification, SessionGrant


class TestCodes:
    def test_generated_codes_are_four_digits(self):
        for _ in range(200):
            code = verification.generate_verification_code()
            assert len(code) == 4
            assert code.isdigit()

    def test_normalize_code(self):
        assert verification.normalize_code(" 0420 ") == "0420"
        with pytest.raises(ValidationError):
            verification.normalize_code("42")

    def test_issue_code_replaces_previous(self, db_session):
        verification.issue_code(db_session, "A@Example.com")
        db_session.commit()
        second = verification.issue_code(db_session, "a@example.com")
        db_session.commit()
        rows = db_session.query(EmailVerificationCode).all()
        assert len(rows) == 1
        assert rows[0].id == second.id
        assert rows[0].email == "a@example.com"

    def test_code_expires_in_five_minutes(self, db_session):
        row = verification.issue_code(db_session, "a@example.com")
        db_session.commit()
        delta = as_utc(row.expires_at) - utcnow()
        assert timedelta(minutes=4) < delta <= timedelta(minutes=5)

    def test_wrong_attempts_are_counted(self, db_session):
        row = verification.issue_code(db_session, "a@example.com")
        db_session.commit()
        code = row.code
        for attempt in range(1, 4):
            with pytest.raises(InvalidOrExpiredCodeError):
                verification.verify_code(db_session, "a@example.com", wrong_code(code))
            assert current_code(db_session, "a@example.com").attempts == attempt
        with pytest.raises(TooManyAttemptsError) as exc:
            verification.verify_code(db_session, "a@example.com", code)
        assert exc.value.retry_after

    def test_successful_verify_consumes_code(self, db_session):
        row = verification.issue_code(db_session, "a@example.com")
        db_session.commit()
        verification.verify_code(db_session, "a@example.com", row.code)
        db_session.commit()
        assert current_code(db_session, "a@example.com") is None
        with pytest.raises(InvalidOrExpiredCodeError):
            verification.verify_code(db_session, "a@example.com", "1234")


class TestCleanup:
    def _seed(self, db_session):
        verification.issue_code(db_session, "fresh@example.com")
        stale = verification.issue_code(db_session, "stale@example.com")
        stale.expires_at = utcnow() - timedelta(minutes=10)
        db_session.commit()

    def test_cleanup_expired(self, db_session):
        self._seed(db_session)
        assert verification.cleanup_expired(db_session) == 1
        emails = [r.email for r in db_session.query(EmailVerificationCode).all()]
        assert emails == ["fresh@example.com"]

    def test_cleanup_job_uses_its_own_session(self, db_session, session_factory, monkeypatch):
        self._seed(db_session)
        monkeypatch.setattr(verification_cleanup, "SessionLocal", session_factory)
        assert verification_cleanup.run_verification_cleanup_job() == 1
        assert verification_cleanup.run_verification_cleanup_job() == 0


class TestAuthSessionManager:
    def test_register_result(self, db_session):
        result = AuthSessionManager(db_session, ip_address="10.0.0.1").register("Player123", "p1@example.com", "secret1")
        assert result.account_created is True
        assert result.requires_verification is True
        assert result.code_sent is True
        assert result.user.email_verified is False
        row = current_code(db_session, "p1@example.com")
        assert row.ip_address == "10.0.0.1"

    def test_short_password_rejected(self, db_session):
        with pytest.raises(ValidationError) as exc:
            AuthSessionManager(db_session).register("Player123", "p1@example.com", "five5")
        assert exc.value.errors == ["Password must be at least 6 characters."]

    def test_login_never_issues_session_when_unverified(self, db_session):
        make_user(db_session, "Unverified", "new@example.com", verified=False)
        outcome = AuthSessionManager(db_session).login("new@example.com", PASSWORD)
        assert isinstance(outcome, RequiresVerification)
        assert outcome.email == "new@example.com"
        assert current_code(db_session, "new@example.com") is not None

    def test_login_suspended_issues_session(self, db_session, suspended_player):
        outcome = AuthSessionManager(db_session).login(suspended_player.email, PASSWORD)
        assert isinstance(outcome, SessionGrant)
        assert outcome.user.id == suspended_player.id

    def test_verify_email_issues_session(self, db_session):
        manager = AuthSessionManager(db_session)
        manager.register("Player123", "p1@example.com", "secret1")
        code = current_code(db_session, "p1@example.com").code
        grant = manager.verify_email("P1@example.com", code)
        assert grant.token
        assert grant.user.email_verified is True
