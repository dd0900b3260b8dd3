"""Authentication business logic."""
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from biubiustar.core.security import get_password_hash, verify_password
from biubiustar.models.user import User
from biubiustar.schemas.user import UserCreate, UserResponse


def normalize_email(email: str) -> str:
    return email.strip().lower()


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    result = await db.execute(select(User).where(User.email == normalize_email(email)))
    return result.scalar_one_or_none()


async def get_user_by_username(db: AsyncSession, username: str) -> User | None:
    result = await db.execute(select(User).where(User.username == username))
    return result.scalar_one_or_none()


async def get_user_by_id(db: AsyncSession, user_id: UUID) -> User | None:
    return await db.get(User, user_id)


async def email_or_username_taken(db: AsyncSession, email: str, username: str) -> bool:
    result = await db.execute(
        select(func.count(User.id)).where(
            or_(User.email == normalize_email(email), User.username == username)
        )
    )
    return (result.scalar() or 0) > 0


async def create_user(db: AsyncSession, data: UserCreate, role: str = "user") -> User:
    user = User(
        email=normalize_email(data.email),
        username=data.username,
        password_hash=get_password_hash(data.password),
        display_name=data.display_name or data.username,
        role=role,
    )
    db.add(user)
    await db.flush()
    await db.refresh(user)
    return user


async def authenticate_user(db: AsyncSession, email: str, password: str) -> User | None:
    user = await get_user_by_email(db, email)
    if not user or not verify_password(password, user.password_hash):
        return None
    return user


def user_to_response(user: User) -> UserResponse:
    return UserResponse.model_validate(user)
