"""
Delete expired email verification codes once (the server also does this on a schedule).

Run from project root:
  python scripts/cleanup_verification_codes.py
"""
import os
import sys

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from ghost_league.services.verification_cleanup import run_verification_cleanup_job


def main():
    deleted = run_verification_cleanup_job()
    print(f"Deleted {deleted} expired verification code(s).")


if __name__ == "__main__":
    main()
