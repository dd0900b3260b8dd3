"""Posts CRUD, timeline, likes and comments."""
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from biubiustar.api.deps import get_current_user, get_current_user_optional, get_db
from biubiustar.models.user import User
from biubiustar.schemas.comment import CommentCreate
from biubiustar.schemas.common import Pagination, ok
from biubiustar.schemas.post import LikeState, PostCreate, PostListType
from biubiustar.services.auth_service import get_user_by_username
from biubiustar.services.feed_service import (
    comment_to_response,
    count_likes,
    create_comment,
    create_post,
    delete_post,
    get_feed_posts,
    get_post,
    get_post_comments,
    get_user_posts,
    like_post,
    post_to_response,
    posts_to_response,
    unlike_post,
)

router = APIRouter(prefix="/posts", tags=["posts"])


async def _require_post(db: AsyncSession, post_id: UUID):
    post = await get_post(db, post_id)
    if not post:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not found")
    return post


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_post_endpoint(
    data: PostCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    post = await create_post(db, current_user.id, data)
    response = post_to_response(post)
    await db.commit()
    return ok({"post": response}, message="Post published")


@router.get("")
async def list_posts(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=50),
    feed_type: PostListType = Query("timeline", alias="type"),
    current_user: User | None = Depends(get_current_user_optional),
    db: AsyncSession = Depends(get_db),
):
    if feed_type == "user" and current_user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="No authentication token provided")
    viewer_id = current_user.id if current_user else None
    posts = await get_feed_posts(db, viewer_id, feed_type=feed_type, skip=(page - 1) * limit, limit=limit)
    items = await posts_to_response(db, posts, viewer_id)
    return ok({"posts": items, "pagination": Pagination.for_page(page, limit, len(items))})


@router.get("/user/{username}")
async def list_user_posts(
    username: str,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=50),
    current_user: User | None = Depends(get_current_user_optional),
    db: AsyncSession = Depends(get_db),
):
    author = await get_user_by_username(db, username)
    if not author:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    viewer_id = current_user.id if current_user else None
    posts = await get_user_posts(
        db,
        author.id,
        include_unpublished=viewer_id == author.id,
        skip=(page - 1) * limit,
        limit=limit,
    )
    items = await posts_to_response(db, posts, viewer_id)
    return ok({"posts": items, "pagination": Pagination.for_page(page, limit, len(items))})


@router.get("/{post_id}")
async def get_post_endpoint(
    post_id: UUID,
    current_user: User | None = Depends(get_current_user_optional),
    db: AsyncSession = Depends(get_db),
):
    post = await _require_post(db, post_id)
    [response] = await posts_to_response(db, [post], current_user.id if current_user else None)
    return ok({"post": response})


@router.delete("/{post_id}")
async def delete_post_endpoint(
    post_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    deleted = await delete_post(db, post_id, current_user.id)
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not found or no permission")
    await db.commit()
    return ok(message="Post deleted")


@router.post("/{post_id}/like")
async def like_post_endpoint(
    post_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    user_id = current_user.id
    await _require_post(db, post_id)
    if not await like_post(db, post_id, user_id):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Already liked")
    await db.commit()
    counts = await count_likes(db, [post_id])
    return ok(LikeState(like_count=counts.get(post_id, 0), is_liked=True), message="Liked")


@router.delete("/{post_id}/like")
async def unlike_post_endpoint(
    post_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await unlike_post(db, post_id, current_user.id)
    await db.commit()
    counts = await count_likes(db, [post_id])
    return ok(LikeState(like_count=counts.get(post_id, 0), is_liked=False), message="Unliked")


@router.get("/{post_id}/comments")
async def list_post_comments(
    post_id: UUID,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=50),
    db: AsyncSession = Depends(get_db),
):
    comments = await get_post_comments(db, post_id, skip=(page - 1) * limit, limit=limit)
    items = [comment_to_response(c) for c in comments]
    return ok({"comments": items, "pagination": Pagination.for_page(page, limit, len(items))})


@router.post("/{post_id}/comments", status_code=status.HTTP_201_CREATED)
async def create_post_comment(
    post_id: UUID,
    data: CommentCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await _require_post(db, post_id)
    comment = await create_comment(db, post_id, current_user.id, data.content)
    response = comment_to_response(comment)
    await db.commit()
    return ok({"comment": response}, message="Comment added")
