"""HTTP client for the accounts API. Maps responses onto ``ghost_league.errors``."""
from __future__ import annotations

import logging
from typing import Any

import httpx

from ghost_league.errors import (
    AccountStatusError,
    AlreadyVerifiedError,
    AppealCooldownError,
    AuthError,
    ForbiddenError,
    GhostLeagueError,
    InvalidOrExpiredCodeError,
    NetworkError,
    NotFoundError,
    RateLimitError,
    RequiresVerificationError,
    ServerError,
    TooManyAttemptsError,
    ValidationError,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0


def error_from_response(status: int, body: dict[str, Any]) -> GhostLeagueError:
    """Rebuild the server's error from its status and JSON body."""
    code = body.get("code")
    message = body.get("message")
    retry_after = body.get("retryAfter")

    if status == 429:
        if code == TooManyAttemptsError.code:
            return TooManyAttemptsError(message, retry_after=retry_after or "request a new code")
        return RateLimitError(message, retry_after=retry_after)
    if status == 403 and body.get("requiresEmailVerification"):
        return RequiresVerificationError(body.get("email") or "", message, preview_url=body.get("previewUrl"))
    if status == 400:
        if code == InvalidOrExpiredCodeError.code:
            return InvalidOrExpiredCodeError(message)
        if code == AlreadyVerifiedError.code:
            return AlreadyVerifiedError(message)
        if code == AppealCooldownError.code:
            return AppealCooldownError(message, retry_after=retry_after, seconds_remaining=body.get("secondsRemaining"))
        return ValidationError(body.get("errors"), message=message)
    if status == 401:
        return AuthError(message, tokenError=body["tokenError"]) if body.get("tokenError") else AuthError(message)
    if status == 403:
        if code == AccountStatusError.code:
            return AccountStatusError(body.get("accountStatus") or "", message)
        return ForbiddenError(message)
    if status == 404:
        return NotFoundError(message)
    if status >= 500:
        return ServerError(message)
    err = GhostLeagueError(message)
    err.status_code = status
    return err


class ApiClient:
    """Wraps one ``httpx.Client``, built once with the base URL and timeout.

    Any ``httpx.Client`` works as ``http``, including FastAPI's ``TestClient``.
    """

    def __init__(self, base_url: str = "", *, timeout: float = DEFAULT_TIMEOUT, http: httpx.Client | None = None):
        self.http = http if http is not None else httpx.Client(base_url=base_url, timeout=timeout)

    @property
    def authorization(self) -> str | None:
        return self.http.headers.get("Authorization")

    def set_token(self, token: str | None) -> None:
        if token:
            self.http.headers["Authorization"] = f"Bearer {token}"
        else:
            self.http.headers.pop("Authorization", None)

    def request(self, method: str, path: str, *, json: dict | None = None, params: dict | None = None) -> dict:
        try:
            r = self.http.request(method, path, json=json, params=params)
        except httpx.TransportError as e:
            logger.warning("%s %s failed: %s: %s", method, path, type(e).__name__, e)
            raise NetworkError() from e

        try:
            body = r.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {"data": body}
        if r.status_code >= 400:
            raise error_from_response(r.status_code, body)
        return body

    def get(self, path: str, **params: Any) -> dict:
        return self.request("GET", path, params=params or None)

    def post(self, path: str, json: dict | None = None) -> dict:
        return self.request("POST", path, json=json or {})

    def put(self, path: str, json: dict | None = None) -> dict:
        return self.request("PUT", path, json=json or {})

    def close(self) -> None:
        self.http.close()
