"""In-app notifications: create, list, count unread, mark read."""
from __future__ import annotations

from sqlalchemy.orm import Session

from ghost_league.errors import ForbiddenError, NotFoundError
from ghost_league.models.notification import Notification

DEFAULT_PAGE_SIZE = 30
MAX_PAGE_SIZE = 100


def notify(
    db: Session,
    user_id: int,
    type_: str,
    title: str,
    message: str | None = None,
    *,
    link: str | None = None,
) -> Notification:
    """Queue a notification for ``user_id``. Commit remains with caller."""
    entry = Notification(user_id=user_id, type=type_[:32], title=title[:255], message=message, link=link, read=False)
    db.add(entry)
    db.flush()
    return entry


def list_notifications(
    db: Session,
    user_id: int,
    *,
    limit: int | None = None,
    skip: int | None = None,
    unread_only: bool = False,
) -> list[Notification]:
    limit = min(MAX_PAGE_SIZE, max(1, limit or DEFAULT_PAGE_SIZE))
    skip = max(0, skip or 0)
    q = db.query(Notification).filter(Notification.user_id == user_id)
    if unread_only:
        q = q.filter(Notification.read.is_(False))
    return q.order_by(Notification.created_at.desc(), Notification.id.desc()).offset(skip).limit(limit).all()


def unread_count(db: Session, user_id: int) -> int:
    return db.query(Notification).filter(Notification.user_id == user_id, Notification.read.is_(False)).count()


def mark_read(db: Session, user_id: int, notification_id: int) -> Notification:
    entry = db.query(Notification).filter(Notification.id == notification_id).first()
    if not entry:
        raise NotFoundError("Notification not found.")
    if entry.user_id != user_id:
        raise ForbiddenError("You cannot modify this notification.")
    entry.read = True
    db.commit()
    db.refresh(entry)
    return entry


def mark_all_read(db: Session, user_id: int) -> int:
    updated = (
        db.query(Notification)
        .filter(Notification.user_id == user_id, Notification.read.is_(False))
        .update({Notification.read: True}, synchronize_session=False)
    )
    db.commit()
    return updated
