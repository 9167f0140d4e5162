"""Password hashing and signed access tokens."""

import bcrypt
from itsdangerous import URLSafeTimedSerializer, BadSignature, SignatureExpired

from inspection_engine.common.exceptions import ValidationError

MIN_PASSWORD_LENGTH = 6
MAX_PASSWORD_LENGTH = 72
# bcrypt only reads the first 72 bytes of its input.
MAX_PASSWORD_BYTES = 72


def validate_password(password: str) -> None:
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must have at least {MIN_PASSWORD_LENGTH} characters"
        )
    if len(password) > MAX_PASSWORD_LENGTH or len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValidationError("Password is too long")


def hash_password(password: str) -> str:
    """bcrypt hash with a fresh salt."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, stored: str) -> bool:
    encoded = password.encode("utf-8")
    if len(encoded) > MAX_PASSWORD_BYTES:
        return False
    try:
        return bcrypt.checkpw(encoded, stored.encode("utf-8"))
    except (ValueError, AttributeError):
        return False


def _get_serializer(secret_key: str) -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(secret_key, salt="access-token")


def create_access_token(user_id: str, secret_key: str) -> str:
    """Sign a token carrying the user id."""
    return _get_serializer(secret_key).dumps({"sub": user_id})


def verify_access_token(token: str, secret_key: str, max_age: int) -> str | None:
    """Return the user id from a valid token, or None."""
    try:
        payload = _get_serializer(secret_key).loads(token, max_age=max_age)
    except (BadSignature, SignatureExpired):
        return None
    if not isinstance(payload, dict):
        return None
    return payload.get("sub")
