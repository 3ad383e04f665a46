"""Account status, appeals, notifications and moderation payloads."""
from pydantic import BaseModel

from ghost_league.models.appeal import Appeal
from ghost_league.models.notification import Notification
from ghost_league.schemas.auth import iso
from ghost_league.services.moderation import AccountStatusView


class AppealRequest(BaseModel):
    message: str = ""


class AppealReplyRequest(BaseModel):
    message: str = ""


class SuspendRequest(BaseModel):
    reason: str | None = None
    durationDays: int | None = None


class BanRequest(BaseModel):
    reason: str | None = None


def status_to_dict(view: AccountStatusView) -> dict:
    return {
        "status": view.status.value,
        "username": view.username,
        "reason": view.reason,
        "suspensionDate": iso(view.suspension_date),
        "suspensionDurationDays": view.suspension_duration_days,
        "suspensionEndsAt": iso(view.suspension_ends_at),
    }


def appeal_to_dict(appeal: Appeal) -> dict:
    return {
        "id": appeal.id,
        "userId": appeal.user_id,
        "username": appeal.username,
        "email": appeal.email,
        "status": appeal.status_at_submission,
        "reason": appeal.reason,
        "caseStatus": appeal.case_status.value,
        "read": bool(appeal.read),
        "assignedTo": appeal.assigned_to_id,
        "assignedAt": iso(appeal.assigned_at),
        "closedAt": iso(appeal.closed_at),
        "createdAt": iso(appeal.created_at),
        "conversation": [
            {"from": m.from_role.value, "message": m.message, "createdAt": iso(m.created_at)}
            for m in appeal.conversation
        ],
    }


def notification_to_dict(entry: Notification) -> dict:
    return {
        "id": entry.id,
        "type": entry.type,
        "title": entry.title,
        "message": entry.message,
        "link": entry.link,
        "read": bool(entry.read),
        "createdAt": iso(entry.created_at),
    }
