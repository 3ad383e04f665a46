"""Delete verification codes that expired without being used."""
import logging

from sqlalchemy.orm import Session

from ghost_league.database import SessionLocal
from ghost_league.services.verification import cleanup_expired

logger = logging.getLogger(__name__)


def run_verification_cleanup_job() -> int:
    """Delete all expired verification codes. Scheduled from ``ghost_league.main``."""
    db: Session = SessionLocal()
    try:
        deleted = cleanup_expired(db)
        if deleted:
            logger.info("Verification cleanup: deleted %d expired code(s).", deleted)
        return deleted
    finally:
        db.close()
