"""Ghost League accounts API: FastAPI application."""
# Load .env before any app code that might read config
from dotenv import load_dotenv
from pathlib import Path
load_dotenv(Path(__file__).resolve().parent.parent / ".env")

import json
import logging
import sys

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded

from ghost_league.config import get_settings
from ghost_league.database import Base, engine
from ghost_league.errors import GhostLeagueError, RateLimitError, ServerError, ValidationError
# Import models so Base.metadata has all tables before create_all
from ghost_league.models import User, EmailVerificationCode, Appeal, AppealMessage, Notification  # noqa: F401
from ghost_league.rate_limit import limiter
from ghost_league.routers import auth, auth_verification, users

settings = get_settings()


class JSONFormatter(logging.Formatter):
    def format(self, record):
        return json.dumps({
            "ts": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            "module": record.module,
            "line": record.lineno,
        })


def configure_logging() -> None:
    """Human-readable lines in development, one JSON object per line in production."""
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))
    root_logger.handlers.clear()
    if settings.is_production:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JSONFormatter())
    else:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
    root_logger.addHandler(handler)


configure_logging()
logger = logging.getLogger(__name__)
auth_logger = logging.getLogger("auth")

app = FastAPI(title=settings.app_name, debug=settings.debug)
app.state.limiter = limiter

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list or ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(GhostLeagueError)
async def ghost_league_error_handler(request: Request, exc: GhostLeagueError):
    return JSONResponse(status_code=exc.status_code or 500, content=exc.to_dict())


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    client = request.client.host if request.client else "unknown"
    auth_logger.warning("Rate limit hit: %s %s from IP: %s (%s)", request.method, request.url.path, client, exc.detail)
    err = RateLimitError(retry_after=str(exc.detail))
    return JSONResponse(status_code=err.status_code, content=err.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    messages = []
    for item in exc.errors():
        field = ".".join(str(p) for p in item.get("loc", ()) if p != "body")
        messages.append(f"{field}: {item.get('msg')}" if field else str(item.get("msg")))
    err = ValidationError(messages or ["Invalid request body."])
    return JSONResponse(status_code=err.status_code, content=err.to_dict())


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    err = ServerError()
    return JSONResponse(status_code=err.status_code, content=err.to_dict())


app.include_router(auth.router)
app.include_router(auth_verification.router)
app.include_router(users.router)


@app.on_event("startup")
def startup():
    if settings.email_backend == "mailgun":
        if settings.mailgun_api_key and settings.mailgun_domain:
            logger.info("Mailgun: domain=%s from=%s", settings.mailgun_domain, settings.mailgun_from_email)
        else:
            logger.warning("Mailgun selected but not configured; set MAILGUN_API_KEY and MAILGUN_DOMAIN in .env and restart")
    else:
        logger.info("Email backend: %s (messages are only logged)", settings.email_backend)
    try:
        Base.metadata.create_all(bind=engine)
    except Exception as e:
        logger.warning("Database startup failed (tables not created). Check DATABASE_URL. Error: %s", e)

    if settings.verification_cleanup_enabled:
        from apscheduler.schedulers.background import BackgroundScheduler
        from ghost_league.services.verification_cleanup import run_verification_cleanup_job

        scheduler = BackgroundScheduler()
        scheduler.add_job(
            run_verification_cleanup_job,
            "interval",
            minutes=settings.verification_cleanup_interval_minutes,
            id="verification_cleanup",
        )
        scheduler.start()
        app.state.scheduler = scheduler


@app.on_event("shutdown")
def shutdown():
    scheduler = getattr(app.state, "scheduler", None)
    if scheduler is not None:
        scheduler.shutdown(wait=False)


@app.get("/")
def root():
    return {"app": settings.app_name, "status": "ok"}


@app.get("/health")
def health():
    return {"status": "healthy"}
