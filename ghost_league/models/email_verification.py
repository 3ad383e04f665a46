"""Outstanding email verification codes. One row per email; a new code replaces the old one."""
from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func

from ghost_league.database import Base


class EmailVerificationCode(Base):
    __tablename__ = "email_verification_codes"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    code = Column(String(4), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)
    attempts = Column(Integer, nullable=False, default=0)

    # Request context of whoever asked for the code
    ip_address = Column(String(64), nullable=True)
    user_agent = Column(String(500), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
