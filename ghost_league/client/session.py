"""Client session manager: the single owner of the session token."""
from __future__ import annotations

import logging
import time
from typing import Callable

from ghost_league.client.http import ApiClient
from ghost_league.client.state import (
    AuthEvent,
    AuthFail,
    AuthPendingVerification,
    AuthStart,
    AuthState,
    AuthSuccess,
    ClearError,
    EmailVerified,
    Logout,
    RequestDone,
    reduce,
)
from ghost_league.client.storage import TokenStore
from ghost_league.errors import GhostLeagueError, RequestInFlightError, RequiresVerificationError, ResendCooldownError, ValidationError
from ghost_league.validation import is_valid_email, normalize_email, validate_registration

logger = logging.getLogger(__name__)

RESEND_COOLDOWN_SECONDS = 60

Listener = Callable[[AuthState], None]


class SessionManager:
    """Runs the auth actions against the API and keeps the token, the store and the
    ``Authorization`` header in step with the current ``AuthState``.

    Every network action dispatches ``AuthStart`` followed by exactly one success or
    ``AuthFail`` event. Errors are re-raised to the caller after the state is updated;
    nothing is retried.
    """

    def __init__(self, api: ApiClient, store: TokenStore, *, clock: Callable[[], float] = time.monotonic):
        self.api = api
        self.store = store
        self._clock = clock
        self._state = AuthState()
        self._listeners: list[Listener] = []
        self._last_resend_at: float | None = None

    @property
    def state(self) -> AuthState:
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _dispatch(self, event: AuthEvent) -> AuthState:
        previous = self._state
        self._state = reduce(previous, event)
        if self._state is previous:
            return previous
        if self._state.token != previous.token:
            self._sync_token(self._state.token)
        for listener in list(self._listeners):
            listener(self._state)
        return self._state

    def _sync_token(self, token: str | None) -> None:
        if token:
            self.store.set_token(token)
        else:
            self.store.clear_token()
        self.api.set_token(token)

    def _begin(self) -> None:
        if self._state.is_loading:
            raise RequestInFlightError()
        self._dispatch(AuthStart())

    def _fail(self, error: GhostLeagueError) -> None:
        self._dispatch(AuthFail(error))

    def register(self, username: str, email: str, password: str) -> dict:
        self._begin()
        try:
            username = (username or "").strip()
            email = normalize_email(email)
            errors = validate_registration(username, email, password or "")
            if errors:
                raise ValidationError(errors)
            body = self.api.post("/auth/register", {"username": username, "email": email, "password": password})
        except GhostLeagueError as e:
            self._fail(e)
            raise
        self._dispatch(AuthPendingVerification(email=body.get("email") or email, user=body.get("user")))
        return body

    def login(self, email: str, password: str) -> AuthState:
        """Returns the new state; ``phase`` tells whether a session or a verification step followed."""
        self._begin()
        try:
            body = self.api.post("/auth/login", {"email": normalize_email(email), "password": password or ""})
        except RequiresVerificationError as e:
            logger.info("Login needs email verification for %s", e.email)
            return self._dispatch(AuthPendingVerification(email=e.email))
        except GhostLeagueError as e:
            self._fail(e)
            raise
        return self._dispatch(AuthSuccess(token=body["token"], user=body["user"]))

    def verify_email(self, code: str, email: str | None = None) -> AuthState:
        self._begin()
        try:
            email = normalize_email(email or self._state.pending_email)
            if not is_valid_email(email):
                raise ValidationError("Email format is invalid.")
            body = self.api.post("/auth-verification/verify-and-login", {"email": email, "code": (code or "").strip()})
        except GhostLeagueError as e:
            self._fail(e)
            raise
        self._last_resend_at = None
        return self._dispatch(EmailVerified(token=body["token"], user=body["user"]))

    def resend_cooldown_remaining(self) -> int:
        if self._last_resend_at is None:
            return 0
        remaining = RESEND_COOLDOWN_SECONDS - (self._clock() - self._last_resend_at)
        return max(0, int(remaining + 0.999))

    def resend_code(self, email: str | None = None) -> dict:
        remaining = self.resend_cooldown_remaining()
        if remaining > 0:
            raise ResendCooldownError(remaining)
        self._begin()
        try:
            email = normalize_email(email or self._state.pending_email)
            if not is_valid_email(email):
                raise ValidationError("Email format is invalid.")
            body = self.api.post("/auth-verification/resend-code", {"email": email})
        except GhostLeagueError as e:
            self._fail(e)
            raise
        self._last_resend_at = self._clock()
        self._dispatch(RequestDone())
        return body

    def restore(self) -> AuthState:
        """Load a persisted token and confirm it with ``GET /auth/me``."""
        token = self.store.get_token()
        if not token:
            return self._state
        self._begin()
        self.api.set_token(token)
        try:
            body = self.api.get("/auth/me")
        except GhostLeagueError as e:
            logger.info("Stored session rejected: %s", e.code)
            self.store.clear_token()
            self.api.set_token(None)
            self._fail(e)
            raise
        return self._dispatch(AuthSuccess(token=token, user=body["user"]))

    def logout(self) -> AuthState:
        self._last_resend_at = None
        state = self._dispatch(Logout())
        # Logout from an anonymous state still drops any stray credential
        self.store.clear_token()
        self.api.set_token(None)
        return state

    def clear_error(self) -> AuthState:
        return self._dispatch(ClearError())
