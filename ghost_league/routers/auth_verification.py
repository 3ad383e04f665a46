"""Email verification: exchange a code for a session, or ask for a new code."""
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from ghost_league.config import get_settings
from ghost_league.database import get_db
from ghost_league.dependencies import get_client_ip
from ghost_league.rate_limit import limiter
from ghost_league.schemas.auth import ResendCodeRequest, VerifyAndLoginRequest, user_to_dict
from ghost_league.services.session_manager import AuthSessionManager

settings = get_settings()

router = APIRouter(prefix="/auth-verification", tags=["auth-verification"])


@router.post("/verify-and-login")
@limiter.limit(settings.verify_rate_limit)
def verify_and_login(request: Request, data: VerifyAndLoginRequest, db: Session = Depends(get_db)):
    manager = AuthSessionManager(db, ip_address=get_client_ip(request), user_agent=request.headers.get("user-agent"))
    grant = manager.verify_email(data.email, data.code)
    return {"message": "Email verified.", "token": grant.token, "user": user_to_dict(grant.user)}


@router.post("/resend-code")
@limiter.limit(settings.resend_rate_limit)
def resend_code(request: Request, data: ResendCodeRequest, db: Session = Depends(get_db)):
    manager = AuthSessionManager(db, ip_address=get_client_ip(request), user_agent=request.headers.get("user-agent"))
    result = manager.resend_verification_code(data.email)
    body = {"message": "A new code has been sent.", "email": result.email, "expiresIn": result.expires_in}
    if result.preview_url:
        body["previewUrl"] = result.preview_url
    return body
