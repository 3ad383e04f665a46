"""Pytest configuration and fixtures."""

import os

# Settings are read at import time; point them at test values first
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["EMAIL_BACKEND"] = "console"
os.environ["APP_ENV"] = "test"
os.environ["DEBUG"] = "false"
os.environ["VERIFICATION_CLEANUP_ENABLED"] = "false"
os.environ["JWT_SECRET_KEY"] = "test-secret-key"

from datetime import timedelta
from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ghost_league.database import Base, get_db
from ghost_league.main import app
# Import all models to ensure they're registered with Base.metadata
from ghost_league.models import *  # noqa: F401,F403
from ghost_league.models.email_verification import EmailVerificationCode
from ghost_league.models.user import AccountStatus, User, UserRole
from ghost_league.rate_limit import limiter
from ghost_league.services.auth import create_access_token, get_password_hash
from ghost_league.services.clock import utcnow

# Use in-memory SQLite for tests
TEST_DATABASE_URL = "sqlite:///:memory:"
PASSWORD = "secret123"


@pytest.fixture(scope="function")
def db_engine():
    """Create a test database engine."""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def session_factory(db_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)


@pytest.fixture(scope="function")
def db_session(session_factory) -> Generator[Session, None, None]:
    """Create a test database session."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def client(db_session: Session) -> Generator[TestClient, None, None]:
    """Create a test client with database override."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    # Disable the rate limiter; the rate-limit tests turn it back on
    limiter.enabled = False
    # Don't raise server exceptions so we can test error status codes
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
    limiter.enabled = True
    app.dependency_overrides.clear()


def make_user(
    db: Session,
    username: str,
    email: str,
    *,
    role: UserRole = UserRole.user,
    status: AccountStatus = AccountStatus.active,
    verified: bool = True,
    password: str = PASSWORD,
) -> User:
    user = User(
        username=username,
        player_id=f"#{username.upper()[:7]:0<7}",
        email=email,
        hashed_password=get_password_hash(password),
        role=role,
        email_verified=verified,
        email_verified_at=utcnow() if verified else None,
        status=status,
    )
    if status == AccountStatus.suspended:
        user.suspension_reason = "Toxic chat"
        user.suspension_date = utcnow()
        user.suspension_duration_days = 7
    if status == AccountStatus.banned:
        user.ban_reason = "Cheating"
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def auth_headers_for(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user.id, user.role)}"}


def current_code(db: Session, email: str) -> EmailVerificationCode | None:
    """The outstanding verification row for ``email``, read fresh from the database."""
    db.expire_all()
    return db.query(EmailVerificationCode).filter(EmailVerificationCode.email == email).first()


def wrong_code(code: str) -> str:
    return "0000" if code != "0000" else "1111"


def backdate_code(db: Session, email: str, minutes: int) -> None:
    row = current_code(db, email)
    row.expires_at = utcnow() - timedelta(minutes=minutes)
    db.commit()


@pytest.fixture
def player(db_session: Session) -> User:
    return make_user(db_session, "PlayerOne", "player@example.com")


@pytest.fixture
def player_headers(player: User) -> dict:
    return auth_headers_for(player)


@pytest.fixture
def suspended_player(db_session: Session) -> User:
    return make_user(db_session, "Suspended1", "suspended@example.com", status=AccountStatus.suspended)


@pytest.fixture
def banned_player(db_session: Session) -> User:
    return make_user(db_session, "Banned1", "banned@example.com", status=AccountStatus.banned)


@pytest.fixture
def admin(db_session: Session) -> User:
    return make_user(db_session, "AdminOne", "admin@example.com", role=UserRole.admin)


@pytest.fixture
def owner(db_session: Session) -> User:
    return make_user(db_session, "OwnerOne", "owner@example.com", role=UserRole.owner)
