"""Admin dashboard, user management, moderation and content cleanup."""
import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from biubiustar.api.deps import get_cache, get_db, require_admin
from biubiustar.core.cache import Cache
from biubiustar.core.config import settings
from biubiustar.models.comment import Comment
from biubiustar.models.event import Event
from biubiustar.models.user import ADMIN_ROLES, User
from biubiustar.schemas.admin import (
    AdminEventUpdate,
    AdminUserUpdate,
    BatchModerateRequest,
    BatchModerateResult,
    ModerationHistoryResponse,
    RejectRequest,
)
from biubiustar.schemas.comment import AdminCommentResponse
from biubiustar.schemas.common import AdminPagination, ok
from biubiustar.schemas.contact import ContactResponse, ContactStatus, ContactUpdate
from biubiustar.schemas.user import UserBrief
from biubiustar.services import admin_service, moderation_service
from biubiustar.services.auth_service import get_user_by_id, user_to_response
from biubiustar.services.contact_service import update_submission
from biubiustar.services.event_service import event_to_response, events_to_response
from biubiustar.services.feed_service import delete_post, get_post, post_to_response, posts_to_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])


async def _invalidate_stats(cache: Cache) -> None:
    await cache.delete(admin_service.DASHBOARD_STATS_KEY)


# --- Dashboard ---

@router.get("/dashboard/stats")
@router.get("/stats")
async def dashboard_stats(
    db: AsyncSession = Depends(get_db),
    cache: Cache = Depends(get_cache),
):
    cached = await cache.get(admin_service.DASHBOARD_STATS_KEY)
    if cached is not None:
        return ok(cached)
    stats = await admin_service.compute_dashboard_stats(db)
    payload = stats.model_dump(mode="json", by_alias=True)
    await cache.set(admin_service.DASHBOARD_STATS_KEY, payload, ttl=settings.STATS_CACHE_TTL_SECONDS)
    return ok(payload)


# --- Users ---

@router.get("/users")
async def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: str | None = Query(None, max_length=100),
    role: str | None = Query(None, pattern="^(user|admin|super_admin)$"),
    db: AsyncSession = Depends(get_db),
):
    users, total = await admin_service.list_users(db, search=search, role=role, skip=(page - 1) * limit, limit=limit)
    return ok({
        "users": [user_to_response(u) for u in users],
        "pagination": AdminPagination.for_total(page, limit, total),
    })


@router.put("/users/{user_id}")
async def update_user(
    user_id: UUID,
    data: AdminUserUpdate,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    if data.role in ADMIN_ROLES and current_user.role != "super_admin":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only super admins can grant admin roles",
        )
    user = await get_user_by_id(db, user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    if data.role is not None and user.role in ADMIN_ROLES and current_user.role != "super_admin":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only super admins can change admin roles",
        )
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(user, field, value)
    await db.flush()
    await db.refresh(user)
    response = user_to_response(user)
    await db.commit()
    if data.role is not None:
        logger.warning("admin %s set role of %s to %s", current_user.id, user_id, data.role)
    return ok({"user": response}, message="User updated")


# --- Posts ---

@router.get("/posts")
async def list_posts(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: str | None = Query(None, max_length=100),
    post_status: str | None = Query(None, alias="status", pattern="^(draft|published|pending|rejected|archived)$"),
    db: AsyncSession = Depends(get_db),
):
    posts, total = await admin_service.list_posts(
        db, search=search, status=post_status, skip=(page - 1) * limit, limit=limit
    )
    return ok({
        "posts": await posts_to_response(db, posts, None),
        "pagination": AdminPagination.for_total(page, limit, total),
    })


@router.get("/posts/pending")
async def list_pending_posts(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    posts = await moderation_service.get_pending_posts(db, skip=(page - 1) * limit, limit=limit)
    total = await moderation_service.count_pending_posts(db)
    return ok({
        "posts": [post_to_response(p) for p in posts],
        "pagination": AdminPagination.for_total(page, limit, total),
    })


@router.get("/posts/moderation-stats")
async def moderation_stats(db: AsyncSession = Depends(get_db)):
    return ok(await moderation_service.get_moderation_stats(db))


@router.post("/posts/batch-moderate")
async def batch_moderate(
    data: BatchModerateRequest,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    cache: Cache = Depends(get_cache),
):
    requested = len(set(data.post_ids))
    updated = await moderation_service.batch_moderate(db, data.post_ids, current_user.id, data.action, data.reason)
    await db.commit()
    await _invalidate_stats(cache)
    result = BatchModerateResult(processed=len(updated), skipped=requested - len(updated), post_ids=updated)
    return ok(result, message=f"Processed {len(updated)} posts")


@router.post("/posts/{post_id}/approve")
async def approve_post(
    post_id: UUID,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    cache: Cache = Depends(get_cache),
):
    if not await moderation_service.moderate_post(db, post_id, current_user.id, "approve"):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not found or already reviewed")
    await db.commit()
    await _invalidate_stats(cache)
    return ok(message="Post approved")


@router.post("/posts/{post_id}/reject")
async def reject_post(
    post_id: UUID,
    data: RejectRequest | None = None,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    cache: Cache = Depends(get_cache),
):
    reason = data.reason if data else None
    if not await moderation_service.moderate_post(db, post_id, current_user.id, "reject", reason):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not found or already reviewed")
    await db.commit()
    await _invalidate_stats(cache)
    return ok(message="Post rejected")


@router.get("/posts/{post_id}/moderation-history")
async def moderation_history(
    post_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    if not await get_post(db, post_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not found")
    rows = await moderation_service.get_moderation_history(db, post_id)
    history = []
    for row in rows:
        item = ModerationHistoryResponse.model_validate(row)
        item.admin = UserBrief.model_validate(row.admin) if row.admin else None
        history.append(item)
    return ok({"history": history})


@router.delete("/posts/{post_id}")
async def delete_any_post(
    post_id: UUID,
    db: AsyncSession = Depends(get_db),
    cache: Cache = Depends(get_cache),
):
    post = await get_post(db, post_id)
    if not post:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not found")
    await delete_post(db, post.id, post.user_id)
    await db.commit()
    await _invalidate_stats(cache)
    return ok(message="Post deleted")


# --- Comments ---

@router.get("/comments")
async def list_comments(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: str | None = Query(None, max_length=100),
    db: AsyncSession = Depends(get_db),
):
    comments, total = await admin_service.list_comments(db, search=search, skip=(page - 1) * limit, limit=limit)
    items = []
    for comment in comments:
        item = AdminCommentResponse.model_validate(comment)
        item.author = UserBrief.model_validate(comment.user) if comment.user else None
        if comment.post:
            item.post_title = comment.post.title
            item.post_content = comment.post.content
        items.append(item)
    return ok({"comments": items, "pagination": AdminPagination.for_total(page, limit, total)})


@router.delete("/comments/{comment_id}")
async def delete_comment(
    comment_id: UUID,
    db: AsyncSession = Depends(get_db),
    cache: Cache = Depends(get_cache),
):
    if not await admin_service.delete_row(db, Comment, comment_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Comment not found")
    await db.commit()
    await _invalidate_stats(cache)
    return ok(message="Comment deleted")


# --- Events ---

@router.get("/events")
async def list_events(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: str | None = Query(None, max_length=100),
    event_status: str | None = Query(None, alias="status", pattern="^(upcoming|ongoing|completed|cancelled)$"),
    db: AsyncSession = Depends(get_db),
):
    events, total = await admin_service.list_events(
        db, search=search, status=event_status, skip=(page - 1) * limit, limit=limit
    )
    return ok({
        "events": await events_to_response(db, events, None),
        "pagination": AdminPagination.for_total(page, limit, total),
    })


@router.put("/events/{event_id}")
async def update_event(
    event_id: UUID,
    data: AdminEventUpdate,
    db: AsyncSession = Depends(get_db),
):
    event = await db.get(Event, event_id)
    if not event:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(event, field, value)
    await db.flush()
    await db.refresh(event, ["updated_at", "organizer"])
    response = event_to_response(event)
    await db.commit()
    return ok({"event": response}, message="Event updated")


@router.delete("/events/{event_id}")
async def delete_event(
    event_id: UUID,
    db: AsyncSession = Depends(get_db),
    cache: Cache = Depends(get_cache),
):
    if not await admin_service.delete_row(db, Event, event_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")
    await db.commit()
    await _invalidate_stats(cache)
    return ok(message="Event deleted")


# --- Contact submissions ---

@router.get("/contact")
async def list_contact_submissions(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    contact_status: ContactStatus | None = Query(None, alias="status"),
    db: AsyncSession = Depends(get_db),
):
    forms, total = await admin_service.list_contacts(db, status=contact_status, skip=(page - 1) * limit, limit=limit)
    return ok({
        "submissions": [ContactResponse.model_validate(f) for f in forms],
        "pagination": AdminPagination.for_total(page, limit, total),
    })


@router.put("/contact/{form_id}")
async def update_contact_submission(
    form_id: UUID,
    data: ContactUpdate,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    form = await update_submission(db, form_id, current_user.id, data)
    if not form:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Submission not found")
    response = ContactResponse.model_validate(form)
    await db.commit()
    return ok({"submission": response}, message="Submission updated")
