"""Shared dependencies: DB session, current user, role and status gates."""
from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from ghost_league.database import get_db
from ghost_league.errors import AccountStatusError, AuthError, ForbiddenError
from ghost_league.models.user import AccountStatus, User
from ghost_league.services.auth import decode_token_with_error
from ghost_league.services.moderation import ensure_active, refresh_status

security = HTTPBearer(auto_error=False)

_TOKEN_MESSAGES = {
    "JWT_MISSING": "Not authenticated.",
    "JWT_EXPIRED": "Session expired. Please log in again.",
    "JWT_MALFORMED": "Invalid token.",
    "JWT_INVALID": "Invalid token.",
}


def get_client_ip(request: Request) -> str | None:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


def get_current_user(
    db: Session = Depends(get_db),
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> User:
    token_str = (credentials.credentials or "").strip() if credentials else ""
    payload, error_code = decode_token_with_error(token_str)
    if not payload:
        raise AuthError(_TOKEN_MESSAGES.get(error_code, "Invalid token."), tokenError=error_code)
    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise AuthError("Invalid token.", tokenError="JWT_INVALID")
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise AuthError("User not found.", tokenError="JWT_INVALID")
    return user


def require_active_user(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> User:
    return ensure_active(db, current_user)


def require_suspended(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> User:
    refresh_status(db, current_user)
    if current_user.status != AccountStatus.suspended:
        raise AccountStatusError(current_user.status.value, "Only suspended accounts can use this.")
    return current_user


def require_moderator(current_user: User = Depends(require_active_user)) -> User:
    if not current_user.is_moderator:
        raise ForbiddenError("Moderator role required.")
    return current_user
