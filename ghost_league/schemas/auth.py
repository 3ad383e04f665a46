"""Auth schemas. Fields are plain strings so the session manager can report every violation at once."""
from datetime import datetime

from pydantic import BaseModel

from ghost_league.models.user import User
from ghost_league.services.clock import as_utc


class RegisterRequest(BaseModel):
    username: str = ""
    email: str = ""
    password: str = ""


class LoginRequest(BaseModel):
    email: str = ""
    password: str = ""


class VerifyAndLoginRequest(BaseModel):
    email: str = ""
    code: str = ""


class ResendCodeRequest(BaseModel):
    email: str = ""


def iso(value: datetime | None) -> str | None:
    return as_utc(value).isoformat() if value else None


def user_to_dict(user: User) -> dict:
    """Public view of an account. Never includes the password hash."""
    return {
        "id": user.id,
        "username": user.username,
        "playerId": user.player_id,
        "email": user.email,
        "role": user.role.value,
        "emailVerified": bool(user.email_verified),
        "status": user.status.value,
        "createdAt": iso(user.created_at),
    }
