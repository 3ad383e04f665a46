#!/usr/bin/env python3
"""Send a test verification email and print the result. Use to debug Mailgun delivery.
Usage: from project root, run:
  python scripts/test_verification_email.py you@example.com
"""
import os
import sys

# Project root
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


def main():
    if len(sys.argv) < 2:
        print("Usage: python scripts/test_verification_email.py you@example.com")
        return 2
    to_email = sys.argv[1].strip()
    from pathlib import Path
    from ghost_league.config import _env_path, get_settings
    from ghost_league.services.email import send_verification_email
    from ghost_league.services.verification import CODE_EXPIRE_MINUTES, generate_verification_code

    s = get_settings()
    print("Ghost League verification email test")
    print(f"  .env path: {_env_path} (exists: {Path(_env_path).exists()})")
    print(f"  EMAIL_BACKEND={s.email_backend}")
    print(f"    MAILGUN_DOMAIN={repr(s.mailgun_domain) or '(empty)'}")
    print(f"    MAILGUN_FROM_EMAIL={repr(s.mailgun_from_email) or '(default)'}")
    print(f"    MAILGUN_API_KEY={'set (hidden)' if s.mailgun_api_key else '(empty)'}")
    print(f"  Sending verification code to: {to_email}")
    print("-" * 50)

    result = send_verification_email(to_email, generate_verification_code(), CODE_EXPIRE_MINUTES)
    print("-" * 50)
    if result.sent:
        print(f"Result: SUCCESS - accepted (id={result.message_id}).")
        print("  If you do not receive it: check spam; with a sandbox domain, add this address as an authorized recipient.")
    else:
        print(f"Result: FAILED - {result.error}")
        print("  Fix .env (EMAIL_BACKEND, MAILGUN_API_KEY, MAILGUN_DOMAIN) and run this script again.")
    return 0 if result.sent else 1


if __name__ == "__main__":
    sys.exit(main())
