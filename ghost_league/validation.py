"""Registration input rules shared by the API and the Python client."""
import re

USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 50
PASSWORD_MIN_LENGTH = 6
EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def normalize_email(raw: str | None) -> str:
    return (raw or "").strip().lower()


def is_valid_email(email: str) -> bool:
    return bool(email) and EMAIL_RE.match(email) is not None


def validate_registration(username: str, email: str, password: str) -> list[str]:
    """Return every violation, not only the first."""
    errors: list[str] = []
    if not username:
        errors.append("Username is required.")
    elif len(username) < USERNAME_MIN_LENGTH:
        errors.append(f"Username must be at least {USERNAME_MIN_LENGTH} characters.")
    elif len(username) > USERNAME_MAX_LENGTH:
        errors.append(f"Username cannot exceed {USERNAME_MAX_LENGTH} characters.")
    if not email:
        errors.append("Email is required.")
    elif not EMAIL_RE.match(email):
        errors.append("Email format is invalid.")
    if not password:
        errors.append("Password is required.")
    elif len(password) < PASSWORD_MIN_LENGTH:
        errors.append(f"Password must be at least {PASSWORD_MIN_LENGTH} characters.")
    return errors
