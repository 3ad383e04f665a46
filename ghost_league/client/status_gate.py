"""Account status gate for suspended and banned players."""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable

from ghost_league.client.session import SessionManager
from ghost_league.errors import AccountStatusError, AppealCooldownError, NotFoundError

logger = logging.getLogger(__name__)

APPEAL_COOLDOWN_SECONDS = 5 * 60 * 60


@dataclass(frozen=True)
class GateDecision:
    status: str
    blocked: bool
    can_appeal: bool
    contact_only: bool
    reason: str = ""
    seconds_until_next_appeal: int = 0
    suspension_ends_at: str | None = None


def _format_wait(seconds: int) -> str:
    hours, rest = divmod(seconds, 3600)
    return f"{hours}h {rest // 60}m" if hours else f"{max(1, rest // 60)}m"


class StatusGate:
    """Asks the server for the account status and decides what the player may do.

    The time of the last appeal is kept in the session's token store, per username,
    so the 5-hour wait survives restarts.
    """

    def __init__(self, session: SessionManager, *, clock: Callable[[], float] = time.time):
        self.session = session
        self._clock = clock

    def _appeal_key(self) -> str | None:
        user = self.session.state.user or {}
        username = user.get("username")
        return f"lastAppealAt:{username}" if username else None

    def seconds_until_next_appeal(self) -> int:
        key = self._appeal_key()
        last = self.session.store.get(key) if key else None
        if last is None:
            return 0
        remaining = APPEAL_COOLDOWN_SECONDS - (self._clock() - float(last))
        return max(0, int(remaining))

    def check(self) -> GateDecision:
        body = self.session.api.get("/users/status")
        status = body.get("status", "active")
        return GateDecision(
            status=status,
            blocked=status != "active",
            can_appeal=status == "suspended",
            contact_only=status == "banned",
            reason=body.get("reason") or "",
            seconds_until_next_appeal=self.seconds_until_next_appeal() if status == "suspended" else 0,
            suspension_ends_at=body.get("suspensionEndsAt"),
        )

    def submit_appeal(self, message: str) -> dict:
        """Reply to the open appeal if there is one, otherwise open a new one."""
        decision = self.check()
        if not decision.can_appeal:
            raise AccountStatusError(decision.status, "Only suspended accounts can send an appeal.")
        remaining = self.seconds_until_next_appeal()
        if remaining > 0:
            raise AppealCooldownError(retry_after=_format_wait(remaining), seconds_remaining=remaining)

        try:
            current = self.session.api.get("/users/support/appeal").get("appeal")
        except NotFoundError:
            current = None

        if current and current.get("caseStatus") == "open":
            body = self.session.api.put(f"/users/support/appeal/{current['id']}/reply", {"message": message})
        else:
            body = self.session.api.put("/users/support/appeal", {"message": message})

        key = self._appeal_key()
        if key:
            self.session.store.set(key, self._clock())
        logger.info("Appeal sent for %s", key)
        return body["appeal"]

    def logout(self):
        key = self._appeal_key()
        if key:
            self.session.store.delete(key)
        return self.session.logout()
