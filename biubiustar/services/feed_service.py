"""Post, timeline and like/comment business logic."""
from uuid import UUID

from sqlalchemy import delete, desc, func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from biubiustar.core.config import settings
from biubiustar.models.comment import Comment
from biubiustar.models.engagement import Follow, Like
from biubiustar.models.post import Post
from biubiustar.models.user import User
from biubiustar.schemas.comment import CommentResponse
from biubiustar.schemas.post import PostCreate, PostResponse
from biubiustar.schemas.user import UserBrief


async def create_post(db: AsyncSession, user_id: UUID, data: PostCreate) -> Post:
    status = data.status
    if status == "published" and settings.POST_REVIEW_REQUIRED:
        status = "pending"
    post = Post(
        user_id=user_id,
        title=data.title,
        content=data.content,
        category=data.category,
        tags=data.tags,
        image_urls=data.image_urls,
        location=data.location,
        status=status,
    )
    db.add(post)
    await db.execute(
        update(User).where(User.id == user_id).values(post_count=User.post_count + 1)
    )
    await db.flush()
    await db.refresh(post, ["user"])
    return post


async def get_post(db: AsyncSession, post_id: UUID) -> Post | None:
    result = await db.execute(
        select(Post).where(Post.id == post_id).options(selectinload(Post.user))
    )
    return result.scalar_one_or_none()


async def delete_post(db: AsyncSession, post_id: UUID, owner_id: UUID) -> bool:
    result = await db.execute(
        delete(Post).where(Post.id == post_id, Post.user_id == owner_id)
    )
    if result.rowcount == 0:
        return False
    await db.execute(
        update(User)
        .where(User.id == owner_id, User.post_count > 0)
        .values(post_count=User.post_count - 1)
    )
    return True


async def get_feed_posts(
    db: AsyncSession,
    viewer_id: UUID | None,
    feed_type: str = "timeline",
    skip: int = 0,
    limit: int = 20,
) -> list[Post]:
    """timeline: everyone's published posts. following: published posts of
    followed users and the viewer. user: all of the viewer's own posts."""
    q = select(Post).order_by(desc(Post.created_at)).options(selectinload(Post.user))
    if feed_type == "user" and viewer_id is not None:
        q = q.where(Post.user_id == viewer_id)
    elif feed_type == "following" and viewer_id is not None:
        subq_following = select(Follow.following_id).where(Follow.follower_id == viewer_id)
        q = q.where(
            Post.status == "published",
            or_(Post.user_id == viewer_id, Post.user_id.in_(subq_following)),
        )
    else:
        q = q.where(Post.status == "published")
    result = await db.execute(q.offset(skip).limit(limit))
    return list(result.scalars().all())


async def get_user_posts(
    db: AsyncSession,
    author_id: UUID,
    include_unpublished: bool = False,
    skip: int = 0,
    limit: int = 20,
) -> list[Post]:
    q = (
        select(Post)
        .where(Post.user_id == author_id)
        .order_by(desc(Post.created_at))
        .offset(skip)
        .limit(limit)
        .options(selectinload(Post.user))
    )
    if not include_unpublished:
        q = q.where(Post.status == "published")
    result = await db.execute(q)
    return list(result.scalars().all())


async def count_likes(db: AsyncSession, post_ids: list[UUID]) -> dict[UUID, int]:
    if not post_ids:
        return {}
    result = await db.execute(
        select(Like.post_id, func.count(Like.id))
        .where(Like.post_id.in_(post_ids))
        .group_by(Like.post_id)
    )
    return {row[0]: row[1] for row in result.all()}


async def count_comments(db: AsyncSession, post_ids: list[UUID]) -> dict[UUID, int]:
    if not post_ids:
        return {}
    result = await db.execute(
        select(Comment.post_id, func.count(Comment.id))
        .where(Comment.post_id.in_(post_ids))
        .group_by(Comment.post_id)
    )
    return {row[0]: row[1] for row in result.all()}


async def get_user_liked_post_ids(
    db: AsyncSession,
    user_id: UUID,
    post_ids: list[UUID],
) -> set[UUID]:
    """Return set of post IDs that the user has liked."""
    if not post_ids:
        return set()
    result = await db.execute(
        select(Like.post_id).where(
            Like.user_id == user_id,
            Like.post_id.in_(post_ids),
        )
    )
    return set(row[0] for row in result.all() if row[0])


def post_to_response(post: Post, like_count: int = 0, comment_count: int = 0, is_liked: bool = False) -> PostResponse:
    response = PostResponse.model_validate(post)
    response.author = UserBrief.model_validate(post.user) if post.user else None
    response.like_count = like_count
    response.comment_count = comment_count
    response.is_liked = is_liked
    return response


async def posts_to_response(db: AsyncSession, posts: list[Post], viewer_id: UUID | None) -> list[PostResponse]:
    """Attach like/comment counts and the viewer's like state with batch queries."""
    post_ids = [p.id for p in posts]
    likes = await count_likes(db, post_ids)
    comments = await count_comments(db, post_ids)
    liked_ids = await get_user_liked_post_ids(db, viewer_id, post_ids) if viewer_id else set()
    return [
        post_to_response(
            p,
            like_count=likes.get(p.id, 0),
            comment_count=comments.get(p.id, 0),
            is_liked=p.id in liked_ids,
        )
        for p in posts
    ]


async def like_post(db: AsyncSession, post_id: UUID, user_id: UUID) -> bool:
    """Insert a like. False when the user already liked the post."""
    existing = await db.execute(
        select(Like.id).where(Like.post_id == post_id, Like.user_id == user_id)
    )
    if existing.scalar_one_or_none():
        return False
    db.add(Like(user_id=user_id, post_id=post_id))
    try:
        await db.flush()
    except IntegrityError:
        # lost the race against a concurrent like from the same user
        await db.rollback()
        return False
    return True


async def unlike_post(db: AsyncSession, post_id: UUID, user_id: UUID) -> bool:
    result = await db.execute(
        delete(Like).where(Like.post_id == post_id, Like.user_id == user_id)
    )
    return result.rowcount > 0


async def get_post_comments(db: AsyncSession, post_id: UUID, skip: int = 0, limit: int = 20) -> list[Comment]:
    result = await db.execute(
        select(Comment)
        .where(Comment.post_id == post_id)
        .order_by(Comment.created_at)
        .offset(skip)
        .limit(limit)
        .options(selectinload(Comment.user))
    )
    return list(result.scalars().all())


async def create_comment(db: AsyncSession, post_id: UUID, user_id: UUID, content: str) -> Comment:
    comment = Comment(post_id=post_id, user_id=user_id, content=content)
    db.add(comment)
    await db.flush()
    await db.refresh(comment, ["user"])
    return comment


def comment_to_response(comment: Comment) -> CommentResponse:
    response = CommentResponse.model_validate(comment)
    response.author = UserBrief.model_validate(comment.user) if comment.user else None
    return response
