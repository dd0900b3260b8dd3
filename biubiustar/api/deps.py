"""API dependencies: auth, role gates, db session, redis."""
import logging
from uuid import UUID

import redis.asyncio as redis
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from biubiustar.core.cache import Cache
from biubiustar.core.config import settings
from biubiustar.core.rate_limit import SlidingWindowRateLimiter
from biubiustar.core.security import InvalidTokenError, JWTConfigError, TokenExpiredError, decode_access_token
from biubiustar.db.session import get_db
from biubiustar.models.user import User

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> User:
    if not credentials or not credentials.credentials:
        raise _unauthorized("No authentication token provided")
    try:
        payload = decode_access_token(credentials.credentials)
    except JWTConfigError:
        logger.error("JWT_SECRET is not configured")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Server configuration error",
        )
    except TokenExpiredError:
        raise _unauthorized("Authentication token expired")
    except InvalidTokenError:
        raise _unauthorized("Invalid authentication token")
    try:
        user_id = UUID(str(payload["userId"]))
    except ValueError:
        raise _unauthorized("Invalid authentication token")
    user = await db.get(User, user_id)
    if user is None:
        raise _unauthorized("User does not exist or has been deleted")
    return user


async def get_current_user_optional(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> User | None:
    """Like get_current_user but never blocks: bad or missing tokens give None."""
    if not credentials:
        return None
    try:
        return await get_current_user(credentials, db)
    except HTTPException:
        return None


def require_role(*roles: str):
    async def checker(user: User = Depends(get_current_user)) -> User:
        if user.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return user

    return checker


require_admin = require_role("admin", "super_admin")
require_super_admin = require_role("super_admin")


def get_redis(request: Request) -> redis.Redis:
    return request.app.state.redis


def get_cache(client: redis.Redis = Depends(get_redis)) -> Cache:
    return Cache(client)


contact_limiter = SlidingWindowRateLimiter(
    limit=settings.CONTACT_RATE_LIMIT,
    window_seconds=settings.CONTACT_RATE_WINDOW_SECONDS,
    prefix="rl:contact",
)


async def limit_contact_submissions(
    request: Request,
    client: redis.Redis = Depends(get_redis),
) -> None:
    identity = request.client.host if request.client else "unknown"
    result = await contact_limiter.hit(client, identity)
    if not result.allowed:
        logger.warning("contact rate limit exceeded for %s", identity)
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many submissions, please try again later",
            headers={"Retry-After": str(result.retry_after)},
        )
