"""
All SQLAlchemy models. Schema is the source of truth for new DBs.
Base.metadata.create_all() creates every table.
"""
from ghost_league.models.user import User
from ghost_league.models.email_verification import EmailVerificationCode
from ghost_league.models.appeal import Appeal, AppealMessage
from ghost_league.models.notification import Notification

__all__ = [
    "User",
    "EmailVerificationCode",
    "Appeal",
    "AppealMessage",
    "Notification",
]
