"""Password hashing and session tokens (JWT)."""
from datetime import datetime, timedelta, timezone
import bcrypt
import jwt
from ghost_league.config import get_settings
from ghost_league.models.user import UserRole


def _pwd_bytes(password: str, max_len: int = 72) -> bytes:
    return password.encode("utf-8")[:max_len]


def verify_password(plain: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(_pwd_bytes(plain), hashed.encode("utf-8"))
    except ValueError:
        return False


def get_password_hash(password: str) -> str:
    return bcrypt.hashpw(_pwd_bytes(password), bcrypt.gensalt()).decode("utf-8")


def create_access_token(user_id: int, role: UserRole, expires_delta: timedelta | None = None) -> str:
    settings = get_settings()
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.jwt_access_token_expire_minutes)
    now = datetime.now(timezone.utc)
    # PyJWT expects "sub" to be a string
    payload = {"sub": str(user_id), "role": role.value, "iat": now, "exp": now + expires_delta}
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> dict | None:
    payload, _ = decode_token_with_error(token)
    return payload


def decode_token_with_error(token: str) -> tuple[dict | None, str | None]:
    """Decode JWT; returns (payload, error_code)."""
    if not token or not isinstance(token, str):
        return None, "JWT_MISSING"
    settings = get_settings()
    try:
        payload = jwt.decode(
            token.strip(),
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
        )
        return payload, None
    except jwt.ExpiredSignatureError:
        return None, "JWT_EXPIRED"
    except jwt.DecodeError:
        return None, "JWT_MALFORMED"
    except jwt.PyJWTError:
        return None, "JWT_INVALID"
