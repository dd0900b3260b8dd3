"""User profiles, follow graph, stats and search."""
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from biubiustar.api.deps import get_current_user, get_current_user_optional, get_db
from biubiustar.models.user import User
from biubiustar.schemas.common import Pagination, ok
from biubiustar.schemas.user import ProfileUpdate, UserBrief, user_to_profile
from biubiustar.services.auth_service import get_user_by_username, user_to_response
from biubiustar.services.event_service import events_to_response, get_organized_events
from biubiustar.services.feed_service import get_user_posts, posts_to_response
from biubiustar.services.user_service import (
    follow_user,
    get_followers,
    get_following,
    get_user_stats,
    is_following,
    search_users,
    unfollow_user,
    update_profile,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


async def _require_user(db: AsyncSession, username: str) -> User:
    user = await get_user_by_username(db, username)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


@router.get("/search/users")
async def search_users_endpoint(
    q: str = Query(..., min_length=1, max_length=100),
    limit: int = Query(20, ge=1, le=50),
    db: AsyncSession = Depends(get_db),
):
    users = await search_users(db, q.strip(), limit=limit)
    return ok({"users": [UserBrief.model_validate(u) for u in users]})


@router.put("/profile")
async def update_my_profile(
    data: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    user = await update_profile(db, current_user, data)
    response = user_to_response(user)
    await db.commit()
    return ok({"user": response}, message="Profile updated")


@router.get("/{username}")
async def get_profile(
    username: str,
    current_user: User | None = Depends(get_current_user_optional),
    db: AsyncSession = Depends(get_db),
):
    user = await _require_user(db, username)
    following = False
    if current_user and current_user.id != user.id:
        following = await is_following(db, current_user.id, user.id)
    return ok({"user": user_to_profile(user, is_following=following)})


@router.put("/{username}")
async def update_profile_by_username(
    username: str,
    data: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    if username != current_user.username:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Cannot edit another user's profile")
    user = await update_profile(db, current_user, data)
    response = user_to_response(user)
    await db.commit()
    return ok({"user": response}, message="Profile updated")


@router.post("/{username}/follow")
async def follow(
    username: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    follower_id = current_user.id
    target = await _require_user(db, username)
    target_id = target.id
    if target_id == follower_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot follow yourself")
    if not await follow_user(db, follower_id, target_id):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Already following")
    await db.commit()
    return ok(message="Followed")


@router.delete("/{username}/follow")
async def unfollow(
    username: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    target = await _require_user(db, username)
    await unfollow_user(db, current_user.id, target.id)
    await db.commit()
    return ok(message="Unfollowed")


@router.get("/{username}/followers")
async def list_followers(
    username: str,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=50),
    db: AsyncSession = Depends(get_db),
):
    user = await _require_user(db, username)
    users = await get_followers(db, user.id, skip=(page - 1) * limit, limit=limit)
    items = [UserBrief.model_validate(u) for u in users]
    return ok({"followers": items, "pagination": Pagination.for_page(page, limit, len(items))})


@router.get("/{username}/following")
async def list_following(
    username: str,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=50),
    db: AsyncSession = Depends(get_db),
):
    user = await _require_user(db, username)
    users = await get_following(db, user.id, skip=(page - 1) * limit, limit=limit)
    items = [UserBrief.model_validate(u) for u in users]
    return ok({"following": items, "pagination": Pagination.for_page(page, limit, len(items))})


@router.get("/{username}/stats")
async def user_stats(
    username: str,
    db: AsyncSession = Depends(get_db),
):
    user = await _require_user(db, username)
    return ok({"stats": await get_user_stats(db, user.id)})


@router.get("/{username}/posts")
async def list_posts_of_user(
    username: str,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=50),
    current_user: User | None = Depends(get_current_user_optional),
    db: AsyncSession = Depends(get_db),
):
    user = await _require_user(db, username)
    viewer_id = current_user.id if current_user else None
    posts = await get_user_posts(
        db, user.id, include_unpublished=viewer_id == user.id, skip=(page - 1) * limit, limit=limit
    )
    items = await posts_to_response(db, posts, viewer_id)
    return ok({"posts": items, "pagination": Pagination.for_page(page, limit, len(items))})


@router.get("/{username}/events")
async def list_events_of_user(
    username: str,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=50),
    current_user: User | None = Depends(get_current_user_optional),
    db: AsyncSession = Depends(get_db),
):
    user = await _require_user(db, username)
    events = await get_organized_events(db, user.id, skip=(page - 1) * limit, limit=limit)
    items = await events_to_response(db, events, current_user.id if current_user else None)
    return ok({"events": items, "pagination": Pagination.for_page(page, limit, len(items))})
