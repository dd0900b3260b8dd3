"""Post moderation: guarded status transitions and their audit log."""
import logging
from datetime import datetime, time
from uuid import UUID

from sqlalchemy import desc, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from biubiustar.db.session import utcnow
from biubiustar.models.post import Post, PostModerationHistory
from biubiustar.schemas.admin import ModerationStats

logger = logging.getLogger(__name__)

# action -> (history action, new post status)
TRANSITIONS = {
    "approve": ("approved", "published"),
    "reject": ("rejected", "rejected"),
}


def _pending_update(admin_id: UUID, action: str, reason: str | None, now: datetime):
    _, new_status = TRANSITIONS[action]
    return (
        update(Post)
        .where(Post.status == "pending")
        .values(
            status=new_status,
            reviewed_at=now,
            reviewed_by=admin_id,
            rejection_reason=reason if action == "reject" else None,
            updated_at=now,
        )
        .execution_options(synchronize_session=False)
    )


def _history(post_id: UUID, admin_id: UUID, action: str, reason: str | None, now: datetime) -> PostModerationHistory:
    history_action, new_status = TRANSITIONS[action]
    return PostModerationHistory(
        post_id=post_id,
        admin_id=admin_id,
        action=history_action,
        previous_status="pending",
        new_status=new_status,
        reason=reason,
        created_at=now,
    )


async def moderate_post(
    db: AsyncSession,
    post_id: UUID,
    admin_id: UUID,
    action: str,
    reason: str | None = None,
) -> bool:
    """Apply approve/reject to a pending post. False when the post does not
    exist or has already left the pending state."""
    now = utcnow()
    result = await db.execute(_pending_update(admin_id, action, reason, now).where(Post.id == post_id))
    if result.rowcount == 0:
        return False
    db.add(_history(post_id, admin_id, action, reason, now))
    await db.flush()
    logger.info("post %s %s by admin %s", post_id, TRANSITIONS[action][0], admin_id)
    return True


async def batch_moderate(
    db: AsyncSession,
    post_ids: list[UUID],
    admin_id: UUID,
    action: str,
    reason: str | None = None,
) -> list[UUID]:
    """Moderate every still-pending post among post_ids in one statement;
    returns the ids that were actually transitioned."""
    now = utcnow()
    unique_ids = list(dict.fromkeys(post_ids))
    result = await db.execute(
        _pending_update(admin_id, action, reason, now)
        .where(Post.id.in_(unique_ids))
        .returning(Post.id)
    )
    updated = list(result.scalars().all())
    for post_id in updated:
        db.add(_history(post_id, admin_id, action, reason, now))
    await db.flush()
    logger.info("batch %s by admin %s: %d of %d posts", action, admin_id, len(updated), len(unique_ids))
    return updated


async def get_pending_posts(db: AsyncSession, skip: int = 0, limit: int = 20) -> list[Post]:
    result = await db.execute(
        select(Post)
        .where(Post.status == "pending")
        .order_by(Post.created_at)
        .offset(skip)
        .limit(limit)
        .options(selectinload(Post.user))
    )
    return list(result.scalars().all())


async def count_pending_posts(db: AsyncSession) -> int:
    result = await db.execute(select(func.count(Post.id)).where(Post.status == "pending"))
    return result.scalar() or 0


async def get_moderation_history(db: AsyncSession, post_id: UUID) -> list[PostModerationHistory]:
    result = await db.execute(
        select(PostModerationHistory)
        .where(PostModerationHistory.post_id == post_id)
        .order_by(desc(PostModerationHistory.created_at))
        .options(selectinload(PostModerationHistory.admin))
    )
    return list(result.scalars().all())


async def get_moderation_stats(db: AsyncSession) -> ModerationStats:
    status_rows = await db.execute(select(Post.status, func.count(Post.id)).group_by(Post.status))
    by_status = {status: count for status, count in status_rows.all()}

    today_start = datetime.combine(utcnow().date(), time.min)
    history_rows = await db.execute(
        select(PostModerationHistory.action, func.count(PostModerationHistory.id))
        .where(PostModerationHistory.created_at >= today_start)
        .group_by(PostModerationHistory.action)
    )
    today = {action: count for action, count in history_rows.all()}

    approved_rows = await db.execute(
        select(func.count(PostModerationHistory.id)).where(PostModerationHistory.action == "approved")
    )
    today_approved = today.get("approved", 0)
    today_rejected = today.get("rejected", 0)
    return ModerationStats(
        pending=by_status.get("pending", 0),
        published=by_status.get("published", 0),
        approved=approved_rows.scalar() or 0,
        rejected=by_status.get("rejected", 0),
        today_approved=today_approved,
        today_rejected=today_rejected,
        today_reviewed=today_approved + today_rejected,
    )
