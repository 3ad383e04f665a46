"""Error taxonomy shared by the API and the Python client.

Services raise these; ``ghost_league.main`` renders them as JSON and
``ghost_league.client.http`` rebuilds them from JSON responses.
"""
from __future__ import annotations

from typing import Any


class GhostLeagueError(Exception):
    status_code = 500
    code = "server_error"
    default_message = "Unexpected server error."

    def __init__(self, message: str | None = None, *, retry_after: str | None = None, **extra: Any):
        self.message = message or self.default_message
        self.retry_after = retry_after
        self.extra = extra
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"message": self.message, "code": self.code}
        if self.retry_after:
            body["retryAfter"] = self.retry_after
        body.update(self.extra)
        return body


class ValidationError(GhostLeagueError):
    """Input was rejected before any state changed. ``errors`` lists every violation."""

    status_code = 400
    code = "validation_error"
    default_message = "Invalid input."

    def __init__(self, errors: list[str] | str | None = None, message: str | None = None, **extra: Any):
        if isinstance(errors, str):
            errors = [errors]
        self.errors = list(errors or [])
        if message is None:
            message = "; ".join(self.errors) if self.errors else None
        super().__init__(message, **extra)

    def to_dict(self) -> dict[str, Any]:
        body = super().to_dict()
        if self.errors:
            body["errors"] = self.errors
        return body


class AlreadyVerifiedError(ValidationError):
    code = "already_verified"
    default_message = "This email is already verified."

    def __init__(self, message: str | None = None):
        super().__init__(message=message or self.default_message, alreadyVerified=True)


class AppealCooldownError(ValidationError):
    code = "appeal_cooldown"
    default_message = (
        "You already have an appeal waiting for a reply. You can send another one when a moderator "
        "answers or 5 hours after your last appeal."
    )

    def __init__(self, message: str | None = None, *, retry_after: str | None = None, seconds_remaining: int | None = None):
        self.seconds_remaining = seconds_remaining
        extra = {"secondsRemaining": seconds_remaining} if seconds_remaining is not None else {}
        super().__init__(message=message or self.default_message, retry_after=retry_after, **extra)


class AuthError(GhostLeagueError):
    status_code = 401
    code = "auth_error"
    default_message = "Invalid credentials."


class ForbiddenError(GhostLeagueError):
    status_code = 403
    code = "forbidden"
    default_message = "You do not have permission to do this."


class AccountStatusError(ForbiddenError):
    """Account is suspended or banned and the action is not allowed in that state."""

    code = "account_status"
    default_message = "Your account is not active."

    def __init__(self, status: str, message: str | None = None):
        self.account_status = status
        super().__init__(message, accountStatus=status)


class NotFoundError(GhostLeagueError):
    status_code = 404
    code = "not_found"
    default_message = "Not found."


class RequiresVerificationError(GhostLeagueError):
    """Not a failure: the credentials were right but the email still has to be verified."""

    status_code = 403
    code = "requires_email_verification"
    default_message = "Please verify your email. We sent you a new code."

    def __init__(self, email: str, message: str | None = None, preview_url: str | None = None):
        self.email = email
        self.preview_url = preview_url
        extra: dict[str, Any] = {"requiresEmailVerification": True, "email": email}
        if preview_url:
            extra["previewUrl"] = preview_url
        super().__init__(message, **extra)


class InvalidOrExpiredCodeError(GhostLeagueError):
    status_code = 400
    code = "invalid_or_expired_code"
    default_message = "Invalid or expired verification code."


class TooManyAttemptsError(GhostLeagueError):
    status_code = 429
    code = "too_many_attempts"
    default_message = "Too many wrong attempts. Request a new code."

    def __init__(self, message: str | None = None, retry_after: str | None = "request a new code"):
        super().__init__(message, retry_after=retry_after)


class RateLimitError(GhostLeagueError):
    status_code = 429
    code = "rate_limited"
    default_message = "Too many attempts. Please wait a few minutes."


class EmailDeliveryError(GhostLeagueError):
    status_code = 503
    code = "email_delivery_failed"
    default_message = "We could not send the verification email. Please try again later."


class ServerError(GhostLeagueError):
    status_code = 500
    code = "server_error"
    default_message = "Server error. Please try again later."


class NetworkError(GhostLeagueError):
    """No response was received (connection refused, DNS, timeout)."""

    status_code = 0
    code = "network_error"
    default_message = "Could not reach the server. Check your connection and try again."


class RequestInFlightError(GhostLeagueError):
    status_code = 0
    code = "request_in_flight"
    default_message = "Another request is already in progress."


class ResendCooldownError(GhostLeagueError):
    status_code = 0
    code = "resend_cooldown"
    default_message = "Please wait before requesting another code."

    def __init__(self, seconds_remaining: int):
        self.seconds_remaining = seconds_remaining
        super().__init__(
            f"Please wait {seconds_remaining}s before requesting another code.",
            retry_after=f"{seconds_remaining} seconds",
        )


# Error codes the client maps back onto exception classes
ERRORS_BY_CODE: dict[str, type[GhostLeagueError]] = {
    cls.code: cls
    for cls in (
        ValidationError,
        AlreadyVerifiedError,
        AppealCooldownError,
        AuthError,
        ForbiddenError,
        AccountStatusError,
        NotFoundError,
        InvalidOrExpiredCodeError,
        TooManyAttemptsError,
        RateLimitError,
        EmailDeliveryError,
        ServerError,
    )
}
