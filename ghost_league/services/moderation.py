"""Account status and suspension appeals.

Status is changed only by moderator actions here, or when a suspension runs out
(lifted lazily the next time the status is read).
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from ghost_league.errors import AccountStatusError, AppealCooldownError, ForbiddenError, NotFoundError, ValidationError
from ghost_league.models.appeal import Appeal, AppealCaseStatus, AppealMessage, MessageAuthor
from ghost_league.models.user import DEFAULT_SUSPENSION_DAYS, AccountStatus, User, UserRole
from ghost_league.services.clock import as_utc, utcnow
from ghost_league.services.notifications import notify

logger = logging.getLogger(__name__)

APPEAL_COOLDOWN = timedelta(hours=5)
MAX_SUSPENSION_DAYS = 365
MAX_APPEAL_MESSAGE_LENGTH = 2000

DEFAULT_SUSPENSION_REASON = "Breach of the community rules"
DEFAULT_BAN_REASON = "Serious breach of the community rules"
BANNED_CONTACT_MESSAGE = (
    "Your account is permanently banned. Appeals cannot be sent from the platform; "
    "please contact support through our Discord server."
)


@dataclass
class AccountStatusView:
    status: AccountStatus
    username: str
    reason: str
    suspension_date: datetime | None
    suspension_duration_days: int
    suspension_ends_at: datetime | None


def format_wait(seconds: int) -> str:
    hours, rest = divmod(max(0, seconds), 3600)
    minutes = rest // 60
    if hours:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


def suspension_ends_at(user: User) -> datetime | None:
    if user.status != AccountStatus.suspended or not user.suspension_date:
        return None
    days = user.suspension_duration_days if (user.suspension_duration_days or 0) > 0 else DEFAULT_SUSPENSION_DAYS
    return as_utc(user.suspension_date) + timedelta(days=days)


def _close_open_appeals(db: Session, user_id: int) -> int:
    return (
        db.query(Appeal)
        .filter(Appeal.user_id == user_id, Appeal.case_status == AppealCaseStatus.open)
        .update({Appeal.case_status: AppealCaseStatus.closed, Appeal.closed_at: utcnow()}, synchronize_session=False)
    )


def refresh_status(db: Session, user: User) -> User:
    """Lift a suspension whose duration has run out and close its appeals."""
    ends = suspension_ends_at(user)
    if ends is not None and utcnow() >= ends:
        user.status = AccountStatus.active
        user.suspension_reason = None
        user.suspension_date = None
        closed = _close_open_appeals(db, user.id)
        db.commit()
        db.refresh(user)
        logger.info("Suspension expired for %s (ID: %s); account reactivated, %d appeal(s) closed", user.username, user.id, closed)
    return user


def get_status(db: Session, user: User) -> AccountStatusView:
    refresh_status(db, user)
    if user.status == AccountStatus.banned:
        reason = user.ban_reason or "Violation of the terms of service"
    elif user.status == AccountStatus.suspended:
        reason = user.suspension_reason or DEFAULT_SUSPENSION_REASON
    else:
        reason = ""
    return AccountStatusView(
        status=user.status,
        username=user.username,
        reason=reason,
        suspension_date=as_utc(user.suspension_date) if user.status == AccountStatus.suspended else None,
        suspension_duration_days=user.suspension_duration_days or DEFAULT_SUSPENSION_DAYS,
        suspension_ends_at=suspension_ends_at(user),
    )


def _clean_message(message: str | None) -> str:
    text = (message or "").strip()
    if not text:
        raise ValidationError("A message is required.")
    if len(text) > MAX_APPEAL_MESSAGE_LENGTH:
        raise ValidationError(f"The message cannot exceed {MAX_APPEAL_MESSAGE_LENGTH} characters.")
    return text


def latest_appeal(db: Session, user_id: int) -> Appeal | None:
    return db.query(Appeal).filter(Appeal.user_id == user_id).order_by(Appeal.created_at.desc(), Appeal.id.desc()).first()


def latest_open_appeal(db: Session, user_id: int) -> Appeal | None:
    return (
        db.query(Appeal)
        .filter(Appeal.user_id == user_id, Appeal.case_status == AppealCaseStatus.open)
        .order_by(Appeal.created_at.desc(), Appeal.id.desc())
        .first()
    )


def _require_suspended(db: Session, user: User) -> None:
    refresh_status(db, user)
    if user.status == AccountStatus.banned:
        raise ValidationError(message=BANNED_CONTACT_MESSAGE)
    if user.status != AccountStatus.suspended:
        raise ValidationError(message="You cannot send an appeal while your account is not suspended.")


def submit_appeal(db: Session, user: User, message: str) -> Appeal:
    """Open a new appeal. Refused while the last open appeal is unanswered and younger than 5 hours."""
    text = _clean_message(message)
    _require_suspended(db, user)

    last = latest_open_appeal(db, user.id)
    if last is not None and not last.has_moderator_reply:
        elapsed = utcnow() - as_utc(last.created_at)
        if elapsed < APPEAL_COOLDOWN:
            remaining = int((APPEAL_COOLDOWN - elapsed).total_seconds())
            raise AppealCooldownError(retry_after=format_wait(remaining), seconds_remaining=remaining)

    # The new appeal supersedes any earlier open case
    _close_open_appeals(db, user.id)
    now = utcnow()
    appeal = Appeal(
        user_id=user.id,
        username=user.username,
        email=user.email,
        status_at_submission=user.status.value,
        reason=user.suspension_reason,
        case_status=AppealCaseStatus.open,
        read=False,
        created_at=now,
    )
    appeal.conversation.append(AppealMessage(from_role=MessageAuthor.user, message=text, created_at=now))
    db.add(appeal)
    db.commit()
    db.refresh(appeal)
    logger.info("Appeal %s received from %s (ID: %s)", appeal.id, user.username, user.id)
    return appeal


def _get_appeal(db: Session, appeal_id: int) -> Appeal:
    appeal = db.query(Appeal).filter(Appeal.id == appeal_id).first()
    if not appeal:
        raise NotFoundError("Appeal not found.")
    return appeal


def reply_to_appeal(db: Session, user: User, appeal_id: int, message: str) -> Appeal:
    text = _clean_message(message)
    appeal = _get_appeal(db, appeal_id)
    if appeal.user_id != user.id:
        raise ForbiddenError("You cannot reply to this appeal.")
    _require_suspended(db, user)
    if appeal.case_status != AppealCaseStatus.open:
        raise ValidationError(message="This appeal is closed.")
    appeal.conversation.append(AppealMessage(from_role=MessageAuthor.user, message=text, created_at=utcnow()))
    appeal.read = False
    db.commit()
    db.refresh(appeal)
    return appeal


def list_appeals(
    db: Session,
    *,
    case_status: AppealCaseStatus | None = AppealCaseStatus.open,
    assigned_to_id: int | None = None,
    limit: int = 20,
    skip: int = 0,
) -> list[Appeal]:
    q = db.query(Appeal)
    if case_status is not None:
        q = q.filter(Appeal.case_status == case_status)
    if assigned_to_id is not None:
        q = q.filter(Appeal.assigned_to_id == assigned_to_id)
    return q.order_by(Appeal.created_at.desc(), Appeal.id.desc()).offset(max(0, skip)).limit(min(100, max(1, limit))).all()


def moderator_reply(db: Session, moderator: User, appeal_id: int, message: str) -> Appeal:
    """Answer an appeal and take the case if nobody has it yet. Only owners answer cases assigned to others."""
    text = _clean_message(message)
    appeal = _get_appeal(db, appeal_id)
    if appeal.assigned_to_id and appeal.assigned_to_id != moderator.id and moderator.role != UserRole.owner:
        raise ForbiddenError("This case is assigned to another moderator.")
    now = utcnow()
    appeal.conversation.append(AppealMessage(from_role=MessageAuthor.moderator, message=text, created_at=now))
    appeal.read = True
    if not appeal.assigned_to_id:
        appeal.assigned_to_id = moderator.id
        appeal.assigned_at = now
    notify(db, appeal.user_id, "appeal_reply", "A moderator answered your appeal", text[:200], link="/support")
    db.commit()
    db.refresh(appeal)
    logger.info("Moderator %s replied to appeal %s", moderator.username, appeal.id)
    return appeal


def _get_target(db: Session, moderator: User, user_id: int) -> User:
    target = db.query(User).filter(User.id == user_id).first()
    if not target:
        raise NotFoundError("Account not found.")
    if target.role == UserRole.owner and moderator.role != UserRole.owner:
        raise ForbiddenError("Only an owner can moderate an owner account.")
    return target


def suspend_account(db: Session, moderator: User, user_id: int, reason: str | None, duration_days: int | None) -> User:
    target = _get_target(db, moderator, user_id)
    if not isinstance(duration_days, int) or duration_days <= 0 or duration_days > MAX_SUSPENSION_DAYS:
        duration_days = DEFAULT_SUSPENSION_DAYS
    target.status = AccountStatus.suspended
    target.suspension_reason = (reason or "").strip() or DEFAULT_SUSPENSION_REASON
    target.suspension_date = utcnow()
    target.suspension_duration_days = duration_days
    target.ban_reason = None
    notify(
        db,
        target.id,
        "account_suspended",
        f"Your account has been suspended for {duration_days} day(s)",
        target.suspension_reason,
    )
    db.commit()
    db.refresh(target)
    logger.info("Account %s (ID: %s) suspended by %s for %d day(s)", target.username, target.id, moderator.username, duration_days)
    return target


def ban_account(db: Session, moderator: User, user_id: int, reason: str | None) -> User:
    target = _get_target(db, moderator, user_id)
    target.status = AccountStatus.banned
    target.ban_reason = (reason or "").strip() or DEFAULT_BAN_REASON
    target.suspension_date = None
    target.suspension_reason = None
    _close_open_appeals(db, target.id)
    notify(db, target.id, "account_banned", "Your account has been banned", target.ban_reason)
    db.commit()
    db.refresh(target)
    logger.info("Account %s (ID: %s) banned by %s", target.username, target.id, moderator.username)
    return target


def ensure_active(db: Session, user: User) -> User:
    """Gate for protected functionality."""
    refresh_status(db, user)
    if user.status != AccountStatus.active:
        raise AccountStatusError(user.status.value)
    return user
