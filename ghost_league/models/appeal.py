"""Suspension appeals, threaded as a conversation between the player and moderators."""
import enum

from sqlalchemy import Boolean, Column, DateTime, Enum as SQLEnum, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ghost_league.database import Base


class AppealCaseStatus(str, enum.Enum):
    open = "open"
    closed = "closed"


class MessageAuthor(str, enum.Enum):
    user = "user"
    moderator = "moderator"


class Appeal(Base):
    __tablename__ = "appeals"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    username = Column(String(50), nullable=False)
    email = Column(String(255), nullable=False)
    # Account status and reason when the appeal was opened
    status_at_submission = Column(String(16), nullable=False, default="suspended")
    reason = Column(String(500), nullable=True)

    case_status = Column(SQLEnum(AppealCaseStatus), nullable=False, default=AppealCaseStatus.open)
    closed_at = Column(DateTime(timezone=True), nullable=True)
    # Moderator inbox flag: false whenever the player wrote last
    read = Column(Boolean, nullable=False, default=False)
    assigned_to_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    assigned_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    conversation = relationship(
        "AppealMessage",
        back_populates="appeal",
        order_by="AppealMessage.id",
        cascade="all, delete-orphan",
    )

    @property
    def has_moderator_reply(self) -> bool:
        return any(m.from_role == MessageAuthor.moderator for m in self.conversation)


class AppealMessage(Base):
    __tablename__ = "appeal_messages"

    id = Column(Integer, primary_key=True, index=True)
    appeal_id = Column(Integer, ForeignKey("appeals.id", ondelete="CASCADE"), nullable=False, index=True)
    from_role = Column(SQLEnum(MessageAuthor), nullable=False)
    message = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    appeal = relationship("Appeal", back_populates="conversation")
