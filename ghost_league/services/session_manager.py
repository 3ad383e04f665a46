"""Auth session manager: register, login, verify email, resend code, issue sessions.

Routers are thin adapters around ``AuthSessionManager``; every failure is one of the
``ghost_league.errors`` exceptions.
"""
from __future__ import annotations

import logging
import secrets
import string
from dataclasses import dataclass

from sqlalchemy.orm import Session

from ghost_league.errors import EmailDeliveryError, AlreadyVerifiedError, AuthError, NotFoundError, ValidationError
from ghost_league.models.user import AccountStatus, User, UserRole
from ghost_league.services import verification
from ghost_league.services.auth import create_access_token, get_password_hash, verify_password
from ghost_league.services.clock import utcnow
from ghost_league.services.email import send_welcome_email
from ghost_league.services.notifications import notify
from ghost_league.validation import EMAIL_RE, USERNAME_MIN_LENGTH, validate_registration

logger = logging.getLogger("auth")

PLAYER_ID_ALPHABET = string.ascii_uppercase + string.digits
PLAYER_ID_LENGTH = 7


@dataclass
class SessionGrant:
    token: str
    user: User


@dataclass
class RequiresVerification:
    email: str
    preview_url: str | None = None


@dataclass
class RegistrationResult:
    account_created: bool
    requires_verification: bool
    email: str
    user: User
    code_sent: bool = True
    preview_url: str | None = None


@dataclass
class ResendResult:
    sent: bool
    email: str
    expires_in: int
    preview_url: str | None = None


def generate_player_id(db: Session) -> str:
    while True:
        candidate = "#" + "".join(secrets.choice(PLAYER_ID_ALPHABET) for _ in range(PLAYER_ID_LENGTH))
        if not db.query(User.id).filter(User.player_id == candidate).first():
            return candidate


class AuthSessionManager:
    def __init__(self, db: Session, *, ip_address: str | None = None, user_agent: str | None = None):
        self.db = db
        self.ip_address = ip_address
        self.user_agent = user_agent

    def _send_code(self, email: str) -> verification.IssuedCode:
        return verification.send_code(self.db, email, ip_address=self.ip_address, user_agent=self.user_agent)

    def issue_session(self, user: User) -> SessionGrant:
        return SessionGrant(token=create_access_token(user.id, user.role), user=user)

    def register(self, username: str, email: str, password: str) -> RegistrationResult:
        username = (username or "").strip()
        email = verification.normalize_email(email)
        password = password or ""

        errors = validate_registration(username, email, password)
        if email and EMAIL_RE.match(email) and self.db.query(User.id).filter(User.email == email).first():
            errors.append("This email is already registered.")
        if username and len(username) >= USERNAME_MIN_LENGTH and self.db.query(User.id).filter(User.username == username).first():
            errors.append("This username is already taken.")
        if errors:
            logger.info("Registration rejected for %r: %s", email, errors)
            raise ValidationError(errors)

        user = User(
            username=username,
            player_id=generate_player_id(self.db),
            email=email,
            hashed_password=get_password_hash(password),
            role=UserRole.user,
            email_verified=False,
            status=AccountStatus.active,
        )
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        logger.info("New account registered: %s (ID: %s) from IP: %s", user.email, user.id, self.ip_address)

        try:
            issued = self._send_code(email)
        except EmailDeliveryError:
            # Account stays; the player can ask for a new code or log in to trigger one
            return RegistrationResult(account_created=True, requires_verification=True, email=email, user=user, code_sent=False)
        return RegistrationResult(
            account_created=True,
            requires_verification=True,
            email=email,
            user=user,
            preview_url=issued.preview_url,
        )

    def login(self, email: str, password: str) -> SessionGrant | RequiresVerification:
        email = verification.normalize_email(email)
        user = self.db.query(User).filter(User.email == email).first() if email else None
        if not user or not verify_password(password or "", user.hashed_password):
            logger.warning("Failed login attempt for email: %s from IP: %s", email, self.ip_address)
            raise AuthError()

        if not user.email_verified:
            logger.info("Login for unverified account %s; issuing a new code", email)
            try:
                issued = self._send_code(email)
            except EmailDeliveryError:
                return RequiresVerification(email=email)
            return RequiresVerification(email=email, preview_url=issued.preview_url)

        if user.status != AccountStatus.active:
            logger.info("Login for %s account %s (ID: %s); client will gate the session", user.status.value, email, user.id)
        logger.info("Successful login: %s (ID: %s, role: %s) from IP: %s", email, user.id, user.role.value, self.ip_address)
        return self.issue_session(user)

    def verify_email(self, email: str, code: str) -> SessionGrant:
        email = verification.normalize_email(email)
        if not email or not EMAIL_RE.match(email):
            raise ValidationError("Email format is invalid.")
        verification.verify_code(self.db, email, code)

        user = self.db.query(User).filter(User.email == email).first()
        if not user:
            self.db.rollback()
            raise NotFoundError("Account not found.")
        user.email_verified = True
        user.email_verified_at = utcnow()
        notify(
            self.db,
            user.id,
            "welcome",
            "Welcome to Ghost League!",
            "Your email is verified. Join a tournament to start climbing the ranking.",
            link="/tournaments",
        )
        self.db.commit()
        self.db.refresh(user)
        logger.info("Email verified for %s (ID: %s)", email, user.id)

        send_welcome_email(user.email, user.username)
        return self.issue_session(user)

    def resend_verification_code(self, email: str) -> ResendResult:
        email = verification.normalize_email(email)
        if not email:
            raise ValidationError("Email is required.")
        if not EMAIL_RE.match(email):
            raise ValidationError("Email format is invalid.")
        user = self.db.query(User).filter(User.email == email).first()
        if not user:
            raise NotFoundError("Account not found.")
        if user.email_verified:
            raise AlreadyVerifiedError()
        issued = self._send_code(email)
        return ResendResult(sent=True, email=issued.email, expires_in=issued.expires_in, preview_url=issued.preview_url)
