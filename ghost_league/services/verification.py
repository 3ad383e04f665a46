"""Verification code issuer: 4-digit email codes, 5-minute expiry, one outstanding code per email."""
from __future__ import annotations

import logging
import re
import secrets
from dataclasses import dataclass
from datetime import timedelta

from sqlalchemy.orm import Session

from ghost_league.errors import EmailDeliveryError, InvalidOrExpiredCodeError, TooManyAttemptsError, ValidationError
from ghost_league.models.email_verification import EmailVerificationCode
from ghost_league.services.clock import as_utc, utcnow
from ghost_league.services.email import send_verification_email
from ghost_league.validation import normalize_email

logger = logging.getLogger("auth")

CODE_LENGTH = 4
CODE_EXPIRE_MINUTES = 5
MAX_VERIFICATION_ATTEMPTS = 3

_CODE_RE = re.compile(r"^\d{4}$")


@dataclass
class IssuedCode:
    email: str
    expires_in: int
    preview_url: str | None = None


def generate_verification_code() -> str:
    """Uniform over 0000-9999."""
    return f"{secrets.randbelow(10 ** CODE_LENGTH):0{CODE_LENGTH}d}"


def normalize_code(raw: str | None) -> str:
    code = (raw or "").strip()
    if not _CODE_RE.match(code):
        raise ValidationError(f"The code must be exactly {CODE_LENGTH} digits.")
    return code


def get_outstanding_code(db: Session, email: str) -> EmailVerificationCode | None:
    return db.query(EmailVerificationCode).filter(EmailVerificationCode.email == normalize_email(email)).first()


def issue_code(
    db: Session,
    email: str,
    *,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> EmailVerificationCode:
    """Replace any outstanding code for ``email`` with a fresh one. Caller commits."""
    email = normalize_email(email)
    previous = get_outstanding_code(db, email)
    if previous is not None:
        db.delete(previous)
        db.flush()
    row = EmailVerificationCode(
        email=email,
        code=generate_verification_code(),
        expires_at=utcnow() + timedelta(minutes=CODE_EXPIRE_MINUTES),
        attempts=0,
        ip_address=(ip_address or "")[:64] or None,
        user_agent=(user_agent or "")[:500] or None,
    )
    db.add(row)
    db.flush()
    return row


def send_code(
    db: Session,
    email: str,
    *,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> IssuedCode:
    """Issue a new code, commit it and email it. Raises EmailDeliveryError if the mail is not accepted."""
    row = issue_code(db, email, ip_address=ip_address, user_agent=user_agent)
    db.commit()
    logger.info("Verification code issued for %s (expires %s)", row.email, row.expires_at.isoformat())
    result = send_verification_email(row.email, row.code, CODE_EXPIRE_MINUTES)
    if not result.sent:
        db.delete(row)
        db.commit()
        logger.error("Verification email not sent to %s: %s", row.email, result.error)
        raise EmailDeliveryError()
    return IssuedCode(email=row.email, expires_in=CODE_EXPIRE_MINUTES, preview_url=result.preview_url)


def verify_code(db: Session, email: str, code: str) -> None:
    """Check ``code`` against the outstanding code for ``email`` and consume it.

    Wrong attempts are committed before the error is raised; on success the row is
    deleted and the caller commits together with its own changes.
    """
    email = normalize_email(email)
    code = normalize_code(code)
    row = get_outstanding_code(db, email)
    if row is None:
        logger.info("Verification failed for %s: no outstanding code", email)
        raise InvalidOrExpiredCodeError()
    if as_utc(row.expires_at) <= utcnow():
        db.delete(row)
        db.commit()
        logger.info("Verification failed for %s: code expired", email)
        raise InvalidOrExpiredCodeError("Verification code has expired. Please request a new one.")
    if row.attempts >= MAX_VERIFICATION_ATTEMPTS:
        logger.warning("Verification locked for %s after %d wrong attempts", email, row.attempts)
        raise TooManyAttemptsError()
    if not secrets.compare_digest(row.code, code):
        row.attempts += 1
        db.commit()
        logger.info("Verification failed for %s: wrong code (attempt %d/%d)", email, row.attempts, MAX_VERIFICATION_ATTEMPTS)
        raise InvalidOrExpiredCodeError()
    db.delete(row)
    db.flush()


def cleanup_expired(db: Session) -> int:
    deleted = (
        db.query(EmailVerificationCode)
        .filter(EmailVerificationCode.expires_at < utcnow())
        .delete(synchronize_session="fetch")
    )
    db.commit()
    return deleted
