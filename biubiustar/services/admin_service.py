"""Admin dashboard aggregates and listings."""
from datetime import datetime, timedelta
from uuid import UUID

from sqlalchemy import desc, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from biubiustar.db.session import utcnow
from biubiustar.models.comment import Comment
from biubiustar.models.contact import ContactForm
from biubiustar.models.engagement import Like
from biubiustar.models.event import Event
from biubiustar.models.post import Post
from biubiustar.models.user import User
from biubiustar.schemas.admin import DashboardStats, TrendPoint

DASHBOARD_STATS_KEY = "admin:dashboard:stats"
TREND_DAYS = 7


async def _count(db: AsyncSession, stmt) -> int:
    result = await db.execute(stmt)
    return result.scalar() or 0


def bucket_by_day(timestamps: list[datetime], today: datetime, days: int = TREND_DAYS) -> list[TrendPoint]:
    """Daily counts for the `days` days ending at `today`, oldest first."""
    counts: dict[str, int] = {}
    for ts in timestamps:
        key = ts.date().isoformat()
        counts[key] = counts.get(key, 0) + 1
    points = []
    for offset in range(days - 1, -1, -1):
        day = (today - timedelta(days=offset)).date().isoformat()
        points.append(TrendPoint(date=day, count=counts.get(day, 0)))
    return points


async def _created_since(db: AsyncSession, column, since: datetime) -> list[datetime]:
    result = await db.execute(select(column).where(column >= since))
    return [row[0] for row in result.all() if row[0] is not None]


async def compute_dashboard_stats(db: AsyncSession) -> DashboardStats:
    now = utcnow()
    since = datetime.combine((now - timedelta(days=TREND_DAYS - 1)).date(), datetime.min.time())
    return DashboardStats(
        total_users=await _count(db, select(func.count(User.id))),
        total_posts=await _count(db, select(func.count(Post.id))),
        total_events=await _count(db, select(func.count(Event.id))),
        total_comments=await _count(db, select(func.count(Comment.id))),
        total_likes=await _count(db, select(func.count(Like.id))),
        pending_posts=await _count(db, select(func.count(Post.id)).where(Post.status == "pending")),
        total_contacts=await _count(db, select(func.count(ContactForm.id))),
        user_trend=bucket_by_day(await _created_since(db, User.created_at, since), now),
        post_trend=bucket_by_day(await _created_since(db, Post.created_at, since), now),
    )


async def list_users(
    db: AsyncSession,
    search: str | None = None,
    role: str | None = None,
    skip: int = 0,
    limit: int = 20,
) -> tuple[list[User], int]:
    filters = []
    if search:
        pattern = f"%{search}%"
        filters.append(
            or_(User.username.ilike(pattern), User.email.ilike(pattern), User.display_name.ilike(pattern))
        )
    if role:
        filters.append(User.role == role)
    total = await _count(db, select(func.count(User.id)).where(*filters))
    result = await db.execute(
        select(User).where(*filters).order_by(desc(User.created_at)).offset(skip).limit(limit)
    )
    return list(result.scalars().all()), total


async def list_posts(
    db: AsyncSession,
    search: str | None = None,
    status: str | None = None,
    skip: int = 0,
    limit: int = 20,
) -> tuple[list[Post], int]:
    filters = []
    if search:
        pattern = f"%{search}%"
        filters.append(or_(Post.title.ilike(pattern), Post.content.ilike(pattern)))
    if status:
        filters.append(Post.status == status)
    total = await _count(db, select(func.count(Post.id)).where(*filters))
    result = await db.execute(
        select(Post)
        .where(*filters)
        .order_by(desc(Post.created_at))
        .offset(skip)
        .limit(limit)
        .options(selectinload(Post.user))
    )
    return list(result.scalars().all()), total


async def list_comments(
    db: AsyncSession,
    search: str | None = None,
    skip: int = 0,
    limit: int = 20,
) -> tuple[list[Comment], int]:
    filters = [Comment.content.ilike(f"%{search}%")] if search else []
    total = await _count(db, select(func.count(Comment.id)).where(*filters))
    result = await db.execute(
        select(Comment)
        .where(*filters)
        .order_by(desc(Comment.created_at))
        .offset(skip)
        .limit(limit)
        .options(selectinload(Comment.user), selectinload(Comment.post))
    )
    return list(result.scalars().all()), total


async def list_events(
    db: AsyncSession,
    search: str | None = None,
    status: str | None = None,
    skip: int = 0,
    limit: int = 20,
) -> tuple[list[Event], int]:
    filters = []
    if search:
        pattern = f"%{search}%"
        filters.append(or_(Event.title.ilike(pattern), Event.description.ilike(pattern)))
    if status:
        filters.append(Event.status == status)
    total = await _count(db, select(func.count(Event.id)).where(*filters))
    result = await db.execute(
        select(Event)
        .where(*filters)
        .order_by(desc(Event.created_at))
        .offset(skip)
        .limit(limit)
        .options(selectinload(Event.organizer))
    )
    return list(result.scalars().all()), total


async def list_contacts(
    db: AsyncSession,
    status: str | None = None,
    skip: int = 0,
    limit: int = 20,
) -> tuple[list[ContactForm], int]:
    filters = [ContactForm.status == status] if status else []
    total = await _count(db, select(func.count(ContactForm.id)).where(*filters))
    result = await db.execute(
        select(ContactForm).where(*filters).order_by(desc(ContactForm.created_at)).offset(skip).limit(limit)
    )
    return list(result.scalars().all()), total


async def delete_row(db: AsyncSession, model, row_id: UUID) -> bool:
    row = await db.get(model, row_id)
    if row is None:
        return False
    await db.delete(row)
    await db.flush()
    return True
