"""Security utilities: password hashing and JWT token handling."""
from datetime import datetime, timedelta, timezone
from uuid import UUID

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from biubiustar.core.config import settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


class JWTConfigError(RuntimeError):
    """JWT_SECRET is not configured."""


class InvalidTokenError(Exception):
    pass


class TokenExpiredError(InvalidTokenError):
    pass


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def _secret() -> str:
    if not settings.JWT_SECRET:
        raise JWTConfigError("JWT_SECRET not configured")
    return settings.JWT_SECRET


def create_access_token(user_id: str | UUID) -> str:
    expire = datetime.now(timezone.utc) + timedelta(days=settings.ACCESS_TOKEN_EXPIRE_DAYS)
    to_encode = {"userId": str(user_id), "exp": expire}
    return jwt.encode(to_encode, _secret(), algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> dict:
    """Verify a bearer token and return its payload.

    Raises JWTConfigError when no secret is configured, TokenExpiredError for
    expired tokens and InvalidTokenError for anything else that fails to verify.
    """
    secret = _secret()
    try:
        payload = jwt.decode(token, secret, algorithms=[settings.JWT_ALGORITHM])
    except ExpiredSignatureError as exc:
        raise TokenExpiredError("Token expired") from exc
    except JWTError as exc:
        raise InvalidTokenError(str(exc)) from exc
    if not payload.get("userId"):
        raise InvalidTokenError("Token has no userId")
    return payload
