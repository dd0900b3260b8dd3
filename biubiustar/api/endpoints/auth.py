"""Auth endpoints: register, login, logout, me."""
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from biubiustar.api.deps import get_current_user, get_db
from biubiustar.core.security import JWTConfigError, create_access_token
from biubiustar.models.user import User
from biubiustar.schemas.common import ok
from biubiustar.schemas.user import LoginRequest, UserCreate
from biubiustar.services.auth_service import (
    authenticate_user,
    create_user,
    email_or_username_taken,
    user_to_response,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _issue_token(user: User) -> str:
    try:
        return create_access_token(user.id)
    except JWTConfigError:
        logger.error("JWT_SECRET is not configured")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Server configuration error",
        )


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    data: UserCreate,
    db: AsyncSession = Depends(get_db),
):
    if await email_or_username_taken(db, data.email, data.username):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email or username already in use")
    try:
        user = await create_user(db, data)
        token = _issue_token(user)
        response = user_to_response(user)
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email or username already in use")
    logger.info("registered user %s (%s)", response.id, response.username)
    return ok({"user": response, "token": token}, message="Registration successful")


@router.post("/login")
async def login(
    data: LoginRequest,
    db: AsyncSession = Depends(get_db),
):
    user = await authenticate_user(db, data.email, data.password)
    if not user:
        logger.warning("failed login for %s", data.email)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Email or password incorrect",
        )
    token = _issue_token(user)
    return ok({"user": user_to_response(user), "token": token}, message="Login successful")


@router.get("/me")
async def me(current_user: User = Depends(get_current_user)):
    return ok({"user": user_to_response(current_user)})


@router.post("/logout")
async def logout():
    # Tokens are stateless; the client discards its copy.
    return ok(message="Logout successful")
