"""Profiles, follows and per-user aggregates."""
from uuid import UUID

from sqlalchemy import delete, desc, func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from biubiustar.models.engagement import Follow, Like
from biubiustar.models.event import Event
from biubiustar.models.post import Post
from biubiustar.models.user import User
from biubiustar.schemas.user import ProfileUpdate, UserStats


async def update_profile(db: AsyncSession, user: User, data: ProfileUpdate) -> User:
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(user, field, value)
    await db.flush()
    await db.refresh(user)
    return user


async def is_following(db: AsyncSession, follower_id: UUID, following_id: UUID) -> bool:
    result = await db.execute(
        select(Follow.id).where(Follow.follower_id == follower_id, Follow.following_id == following_id)
    )
    return result.scalar_one_or_none() is not None


async def follow_user(db: AsyncSession, follower_id: UUID, following_id: UUID) -> bool:
    """Create the follow row and bump both counters. False if it already exists."""
    if await is_following(db, follower_id, following_id):
        return False
    db.add(Follow(follower_id=follower_id, following_id=following_id))
    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        return False
    await db.execute(
        update(User).where(User.id == follower_id).values(following_count=User.following_count + 1)
    )
    await db.execute(
        update(User).where(User.id == following_id).values(follower_count=User.follower_count + 1)
    )
    return True


async def unfollow_user(db: AsyncSession, follower_id: UUID, following_id: UUID) -> bool:
    result = await db.execute(
        delete(Follow).where(Follow.follower_id == follower_id, Follow.following_id == following_id)
    )
    if result.rowcount == 0:
        return False
    await db.execute(
        update(User)
        .where(User.id == follower_id, User.following_count > 0)
        .values(following_count=User.following_count - 1)
    )
    await db.execute(
        update(User)
        .where(User.id == following_id, User.follower_count > 0)
        .values(follower_count=User.follower_count - 1)
    )
    return True


async def get_followers(db: AsyncSession, user_id: UUID, skip: int = 0, limit: int = 20) -> list[User]:
    result = await db.execute(
        select(User)
        .join(Follow, Follow.follower_id == User.id)
        .where(Follow.following_id == user_id)
        .order_by(desc(Follow.created_at))
        .offset(skip)
        .limit(limit)
    )
    return list(result.scalars().all())


async def get_following(db: AsyncSession, user_id: UUID, skip: int = 0, limit: int = 20) -> list[User]:
    result = await db.execute(
        select(User)
        .join(Follow, Follow.following_id == User.id)
        .where(Follow.follower_id == user_id)
        .order_by(desc(Follow.created_at))
        .offset(skip)
        .limit(limit)
    )
    return list(result.scalars().all())


async def _count(db: AsyncSession, stmt) -> int:
    result = await db.execute(stmt)
    return result.scalar() or 0


async def get_user_stats(db: AsyncSession, user_id: UUID) -> UserStats:
    # one AsyncSession cannot run statements concurrently, so these run in turn
    return UserStats(
        posts=await _count(db, select(func.count(Post.id)).where(Post.user_id == user_id)),
        events=await _count(db, select(func.count(Event.id)).where(Event.organizer_id == user_id)),
        followers=await _count(db, select(func.count(Follow.id)).where(Follow.following_id == user_id)),
        following=await _count(db, select(func.count(Follow.id)).where(Follow.follower_id == user_id)),
        likes=await _count(
            db,
            select(func.count(Like.id)).join(Post, Post.id == Like.post_id).where(Post.user_id == user_id),
        ),
    )


async def search_users(db: AsyncSession, q: str, limit: int = 20) -> list[User]:
    pattern = f"%{q}%"
    result = await db.execute(
        select(User)
        .where(or_(User.username.ilike(pattern), User.display_name.ilike(pattern)))
        .order_by(User.follower_count.desc(), User.username)
        .limit(limit)
    )
    return list(result.scalars().all())
