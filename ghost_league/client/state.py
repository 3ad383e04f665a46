"""Client auth state: an immutable snapshot, the events that move it, and the reducer."""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Union

from ghost_league.errors import AuthError, GhostLeagueError

ANONYMOUS = "anonymous"
PENDING_VERIFICATION = "pending_verification"
AUTHENTICATED = "authenticated"
ERROR = "error"


@dataclass(frozen=True)
class AuthState:
    user: dict[str, Any] | None = None
    token: str | None = None
    is_loading: bool = False
    error: GhostLeagueError | None = None
    requires_email_verification: bool = False
    pending_email: str | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.token is not None

    @property
    def phase(self) -> str:
        if self.is_authenticated:
            return AUTHENTICATED
        if self.requires_email_verification:
            return PENDING_VERIFICATION
        if self.error is not None:
            return ERROR
        return ANONYMOUS


@dataclass(frozen=True)
class AuthStart:
    pass


@dataclass(frozen=True)
class AuthSuccess:
    token: str
    user: dict[str, Any]


@dataclass(frozen=True)
class AuthPendingVerification:
    email: str
    user: dict[str, Any] | None = None


@dataclass(frozen=True)
class AuthFail:
    error: GhostLeagueError


@dataclass(frozen=True)
class EmailVerified:
    token: str
    user: dict[str, Any]


@dataclass(frozen=True)
class Logout:
    pass


@dataclass(frozen=True)
class ClearError:
    pass


@dataclass(frozen=True)
class RequestDone:
    """A request finished without changing the session (e.g. a code was resent)."""


AuthEvent = Union[AuthStart, AuthSuccess, AuthPendingVerification, AuthFail, EmailVerified, Logout, ClearError, RequestDone]


def reduce(state: AuthState, event: AuthEvent) -> AuthState:
    """Return the state after ``event``. Pure; returns ``state`` itself when nothing changes."""
    if isinstance(event, AuthStart):
        return replace(state, is_loading=True, error=None)

    if isinstance(event, (AuthSuccess, EmailVerified)):
        return AuthState(user=event.user, token=event.token)

    if isinstance(event, AuthPendingVerification):
        return AuthState(user=event.user, requires_email_verification=True, pending_email=event.email)

    if isinstance(event, AuthFail):
        if isinstance(event.error, AuthError) or not state.requires_email_verification:
            return AuthState(error=event.error)
        # Wrong or expired code, rate limit, network: stay on the verification step
        return replace(state, token=None, is_loading=False, error=event.error)

    if isinstance(event, Logout):
        return AuthState()

    if isinstance(event, ClearError):
        if state.error is None:
            return state
        return replace(state, error=None)

    if isinstance(event, RequestDone):
        if not state.is_loading:
            return state
        return replace(state, is_loading=False)

    raise TypeError(f"Unknown auth event: {event!r}")
