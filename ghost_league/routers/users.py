"""Account status, suspension appeals, in-app notifications and moderator actions."""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ghost_league.database import get_db
from ghost_league.dependencies import get_current_user, require_active_user, require_moderator, require_suspended
from ghost_league.errors import NotFoundError, ValidationError
from ghost_league.models.appeal import AppealCaseStatus
from ghost_league.models.user import User
from ghost_league.schemas.auth import user_to_dict
from ghost_league.schemas.users import (
    AppealReplyRequest,
    AppealRequest,
    BanRequest,
    SuspendRequest,
    appeal_to_dict,
    notification_to_dict,
    status_to_dict,
)
from ghost_league.services import moderation, notifications

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/status")
def account_status(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return status_to_dict(moderation.get_status(db, current_user))


# --- Appeals (suspended players) ---

@router.put("/support/appeal")
def submit_appeal(data: AppealRequest, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    appeal = moderation.submit_appeal(db, current_user, data.message)
    return {"message": "Appeal sent. A moderator will review it.", "appeal": appeal_to_dict(appeal)}


@router.get("/support/appeal")
def latest_appeal(db: Session = Depends(get_db), current_user: User = Depends(require_suspended)):
    appeal = moderation.latest_appeal(db, current_user.id)
    if not appeal:
        raise NotFoundError("No appeal found.")
    return {"appeal": appeal_to_dict(appeal)}


@router.put("/support/appeal/{appeal_id}/reply")
def reply_to_appeal(
    appeal_id: int,
    data: AppealReplyRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    appeal = moderation.reply_to_appeal(db, current_user, appeal_id, data.message)
    return {"appeal": appeal_to_dict(appeal)}


# --- Notifications ---

@router.get("/notifications")
def list_notifications(
    limit: int = Query(30),
    skip: int = Query(0),
    unreadOnly: bool = Query(False),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_active_user),
):
    entries = notifications.list_notifications(db, current_user.id, limit=limit, skip=skip, unread_only=unreadOnly)
    return {
        "notifications": [notification_to_dict(n) for n in entries],
        "unreadCount": notifications.unread_count(db, current_user.id),
    }


@router.get("/notifications/unread-count")
def unread_count(db: Session = Depends(get_db), current_user: User = Depends(require_active_user)):
    return {"unreadCount": notifications.unread_count(db, current_user.id)}


@router.post("/notifications/mark-all-read")
@router.put("/notifications/read-all")
def mark_all_read(db: Session = Depends(get_db), current_user: User = Depends(require_active_user)):
    updated = notifications.mark_all_read(db, current_user.id)
    return {"updated": updated, "unreadCount": 0}


@router.put("/notifications/{notification_id}/read")
def mark_read(notification_id: int, db: Session = Depends(get_db), current_user: User = Depends(require_active_user)):
    entry = notifications.mark_read(db, current_user.id, notification_id)
    return {"notification": notification_to_dict(entry)}


# --- Moderation ---

@router.get("/admin/appeals")
def admin_list_appeals(
    status: str = Query("open"),
    mine: bool = Query(False),
    limit: int = Query(20),
    skip: int = Query(0),
    db: Session = Depends(get_db),
    moderator: User = Depends(require_moderator),
):
    if status == "all":
        case_status = None
    else:
        try:
            case_status = AppealCaseStatus(status)
        except ValueError:
            raise ValidationError("status must be one of: open, closed, all.")
    appeals = moderation.list_appeals(
        db,
        case_status=case_status,
        assigned_to_id=moderator.id if mine else None,
        limit=limit,
        skip=skip,
    )
    return {"appeals": [appeal_to_dict(a) for a in appeals]}


@router.put("/admin/appeals/{appeal_id}/reply")
def admin_reply_to_appeal(
    appeal_id: int,
    data: AppealReplyRequest,
    db: Session = Depends(get_db),
    moderator: User = Depends(require_moderator),
):
    appeal = moderation.moderator_reply(db, moderator, appeal_id, data.message)
    return {"appeal": appeal_to_dict(appeal)}


@router.put("/admin/users/{user_id}/suspend")
def admin_suspend(
    user_id: int,
    data: SuspendRequest,
    db: Session = Depends(get_db),
    moderator: User = Depends(require_moderator),
):
    target = moderation.suspend_account(db, moderator, user_id, data.reason, data.durationDays)
    return {"message": f"{target.username} suspended for {target.suspension_duration_days} day(s).", "user": user_to_dict(target)}


@router.put("/admin/users/{user_id}/ban")
def admin_ban(
    user_id: int,
    data: BanRequest,
    db: Session = Depends(get_db),
    moderator: User = Depends(require_moderator),
):
    target = moderation.ban_account(db, moderator, user_id, data.reason)
    return {"message": f"{target.username} banned.", "user": user_to_dict(target)}
