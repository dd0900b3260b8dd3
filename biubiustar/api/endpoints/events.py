"""Events CRUD, participation and per-user event lists."""
import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.exceptions import RequestValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from biubiustar.api.deps import get_current_user, get_current_user_optional, get_db
from biubiustar.db.session import utcnow
from biubiustar.models.user import User
from biubiustar.schemas.common import Pagination, ok
from biubiustar.schemas.event import EventCreate, EventStatusFilter, EventUpdate
from biubiustar.services.auth_service import get_user_by_username
from biubiustar.services.event_service import (
    JoinError,
    apply_event_update,
    create_event,
    delete_event,
    event_to_response,
    events_to_response,
    get_event,
    get_joined_events,
    get_organized_events,
    get_owned_event,
    get_participants,
    join_event,
    leave_event,
    list_events,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/events", tags=["events"])


def _parse_tags(tags: str | None) -> list[str]:
    if not tags:
        return []
    return [t.strip() for t in tags.split(",") if t.strip()]


async def _require_event(db: AsyncSession, event_id: UUID):
    event = await get_event(db, event_id)
    if not event:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")
    return event


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_event_endpoint(
    data: EventCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    event = await create_event(db, current_user.id, data)
    response = event_to_response(event)
    await db.commit()
    return ok({"event": response}, message="Event created")


@router.get("")
async def list_events_endpoint(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=50),
    event_status: EventStatusFilter = Query("upcoming", alias="status"),
    location: str | None = Query(None, max_length=200),
    tags: str | None = Query(None),
    current_user: User | None = Depends(get_current_user_optional),
    db: AsyncSession = Depends(get_db),
):
    events = await list_events(
        db,
        status=event_status,
        location=location,
        tags=_parse_tags(tags),
        skip=(page - 1) * limit,
        limit=limit,
    )
    items = await events_to_response(db, events, current_user.id if current_user else None)
    return ok({"events": items, "pagination": Pagination.for_page(page, limit, len(items))})


@router.get("/user/{username}/created")
async def list_created_events(
    username: str,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=50),
    current_user: User | None = Depends(get_current_user_optional),
    db: AsyncSession = Depends(get_db),
):
    organizer = await get_user_by_username(db, username)
    if not organizer:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    events = await get_organized_events(db, organizer.id, skip=(page - 1) * limit, limit=limit)
    items = await events_to_response(db, events, current_user.id if current_user else None)
    return ok({"events": items, "pagination": Pagination.for_page(page, limit, len(items))})


@router.get("/user/{username}/joined")
async def list_joined_events(
    username: str,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=50),
    current_user: User | None = Depends(get_current_user_optional),
    db: AsyncSession = Depends(get_db),
):
    user = await get_user_by_username(db, username)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    if current_user is None or user.id != current_user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Cannot view events joined by other users")
    items = await get_joined_events(db, user.id, skip=(page - 1) * limit, limit=limit)
    return ok({"events": items, "pagination": Pagination.for_page(page, limit, len(items))})


@router.get("/{event_id}")
async def get_event_endpoint(
    event_id: UUID,
    current_user: User | None = Depends(get_current_user_optional),
    db: AsyncSession = Depends(get_db),
):
    event = await _require_event(db, event_id)
    [response] = await events_to_response(db, [event], current_user.id if current_user else None)
    return ok({"event": response})


@router.put("/{event_id}")
async def update_event_endpoint(
    event_id: UUID,
    data: EventUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    event = await get_owned_event(db, event_id, current_user.id)
    if not event:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found or no permission")
    try:
        apply_event_update(event, data)
    except ValueError as exc:
        raise RequestValidationError(
            [{"loc": ("body", "endTime"), "msg": str(exc), "type": "value_error"}]
        )
    await db.flush()
    await db.refresh(event, ["updated_at"])
    [response] = await events_to_response(db, [event], current_user.id)
    await db.commit()
    return ok({"event": response}, message="Event updated")


@router.delete("/{event_id}")
async def delete_event_endpoint(
    event_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    if not await delete_event(db, event_id, current_user.id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found or no permission")
    await db.commit()
    return ok(message="Event deleted")


@router.post("/{event_id}/join")
async def join_event_endpoint(
    event_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    user_id = current_user.id
    try:
        await join_event(db, event_id, user_id)
    except LookupError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")
    except JoinError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    await db.commit()
    logger.info("user %s joined event %s", user_id, event_id)
    return ok(message="Joined event")


@router.delete("/{event_id}/join")
async def leave_event_endpoint(
    event_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    event = await _require_event(db, event_id)
    if event.start_date <= utcnow():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Event has already started")
    await leave_event(db, event_id, current_user.id)
    await db.commit()
    return ok(message="Left event")


@router.get("/{event_id}/participants")
async def list_event_participants(
    event_id: UUID,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=50),
    db: AsyncSession = Depends(get_db),
):
    await _require_event(db, event_id)
    participants = await get_participants(db, event_id, skip=(page - 1) * limit, limit=limit)
    return ok({"participants": participants, "pagination": Pagination.for_page(page, limit, len(participants))})
