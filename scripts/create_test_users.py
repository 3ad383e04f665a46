"""
Create test accounts for local testing (already verified, no email needed):
an active player, a suspended player and an owner (moderator).

Run from project root:
  python scripts/create_test_users.py

Credentials are printed at the end.
"""
import os
import sys

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from ghost_league.database import Base, SessionLocal, engine
from ghost_league.models import User  # noqa: F401  (registers every table)
from ghost_league.models.user import AccountStatus, UserRole
from ghost_league.services.auth import get_password_hash
from ghost_league.services.clock import utcnow
from ghost_league.services.session_manager import generate_player_id

PASSWORD = "secret123"

TEST_USERS = [
    {"username": "PlayerOne", "email": "player@ghostleague.test", "role": UserRole.user, "status": AccountStatus.active},
    {
        "username": "Suspended1",
        "email": "suspended@ghostleague.test",
        "role": UserRole.user,
        "status": AccountStatus.suspended,
        "suspension_reason": "Test suspension",
    },
    {"username": "LeagueOwner", "email": "owner@ghostleague.test", "role": UserRole.owner, "status": AccountStatus.active},
]


def main():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        for entry in TEST_USERS:
            if db.query(User).filter(User.email == entry["email"]).first():
                print(f"Already exists: {entry['email']}")
                continue
            user = User(
                username=entry["username"],
                player_id=generate_player_id(db),
                email=entry["email"],
                hashed_password=get_password_hash(PASSWORD),
                role=entry["role"],
                email_verified=True,
                email_verified_at=utcnow(),
                status=entry["status"],
            )
            if entry["status"] == AccountStatus.suspended:
                user.suspension_reason = entry["suspension_reason"]
                user.suspension_date = utcnow()
            db.add(user)
            db.flush()
            print(f"Created {entry['role'].value} ({entry['status'].value}): {entry['email']}")
        db.commit()

        print("\n--- Test users ---")
        for entry in TEST_USERS:
            print(f"  {entry['username']:<12} {entry['email']:<28} password: {PASSWORD}")
        print("\nDone.")
    finally:
        db.close()


if __name__ == "__main__":
    main()
