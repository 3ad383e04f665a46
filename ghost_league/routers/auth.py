"""Registration, login and the current session."""
import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from ghost_league.config import get_settings
from ghost_league.database import get_db
from ghost_league.dependencies import get_client_ip, get_current_user
from ghost_league.errors import RequiresVerificationError
from ghost_league.models.user import User
from ghost_league.rate_limit import limiter
from ghost_league.schemas.auth import LoginRequest, RegisterRequest, user_to_dict
from ghost_league.services.session_manager import AuthSessionManager, RequiresVerification

logger = logging.getLogger("auth")
settings = get_settings()

router = APIRouter(prefix="/auth", tags=["auth"])


def _manager(request: Request, db: Session) -> AuthSessionManager:
    return AuthSessionManager(db, ip_address=get_client_ip(request), user_agent=request.headers.get("user-agent"))


@router.post("/register", status_code=201)
@limiter.limit(settings.register_rate_limit)
def register(request: Request, data: RegisterRequest, db: Session = Depends(get_db)):
    result = _manager(request, db).register(data.username, data.email, data.password)
    body = {
        "requiresEmailVerification": result.requires_verification,
        "email": result.email,
        "codeSent": result.code_sent,
        "user": user_to_dict(result.user),
    }
    if result.code_sent:
        body["message"] = "Account created. Check your email for the verification code."
    else:
        body["message"] = "Account created, but we could not send the verification code. Request a new one."
    if result.preview_url:
        body["previewUrl"] = result.preview_url
    return body


@router.post("/login")
@limiter.limit(settings.login_rate_limit)
def login(request: Request, data: LoginRequest, db: Session = Depends(get_db)):
    outcome = _manager(request, db).login(data.email, data.password)
    if isinstance(outcome, RequiresVerification):
        raise RequiresVerificationError(outcome.email, preview_url=outcome.preview_url)
    return {"token": outcome.token, "user": user_to_dict(outcome.user)}


@router.get("/me")
def me(current_user: User = Depends(get_current_user)):
    return {"user": user_to_dict(current_user)}


@router.post("/logout")
def logout(current_user: User = Depends(get_current_user)):
    # Tokens are stateless; the client drops its copy
    logger.info("Logout: %s (ID: %s)", current_user.email, current_user.id)
    return {"message": "Logged out."}
