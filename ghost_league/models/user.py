"""Accounts: credentials, role, email verification and moderation status."""
from sqlalchemy import Column, Integer, String, Enum as SQLEnum, DateTime, Boolean
from sqlalchemy.sql import func
from ghost_league.database import Base
import enum


class UserRole(str, enum.Enum):
    user = "user"
    creator = "creator"
    admin = "admin"
    owner = "owner"


MODERATOR_ROLES = (UserRole.creator, UserRole.admin, UserRole.owner)


class AccountStatus(str, enum.Enum):
    active = "active"
    suspended = "suspended"
    banned = "banned"


DEFAULT_SUSPENSION_DAYS = 7


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(50), unique=True, index=True, nullable=False)
    player_id = Column(String(16), unique=True, index=True, nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    role = Column(SQLEnum(UserRole), nullable=False, default=UserRole.user)

    email_verified = Column(Boolean, default=False, nullable=False)
    email_verified_at = Column(DateTime(timezone=True), nullable=True)

    # Moderation: only admin actions (or an expired suspension) change these
    status = Column(SQLEnum(AccountStatus), nullable=False, default=AccountStatus.active)
    suspension_reason = Column(String(500), nullable=True)
    suspension_date = Column(DateTime(timezone=True), nullable=True)
    suspension_duration_days = Column(Integer, nullable=False, default=DEFAULT_SUSPENSION_DAYS)
    ban_reason = Column(String(500), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    @property
    def is_moderator(self) -> bool:
        return self.role in MODERATOR_ROLES

    def __repr__(self) -> str:
        return f"<User {self.username} ({self.email})>"
