"""Events and participation business logic."""
import uuid
from uuid import UUID

from sqlalchemy import DateTime, Uuid, cast, delete, desc, func, insert, literal, select
from sqlalchemy.dialects.postgresql import JSONB, array
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from biubiustar.db.session import utcnow
from biubiustar.models.event import Event, EventParticipant
from biubiustar.models.user import User
from biubiustar.schemas.event import EventCreate, EventResponse, EventUpdate, JoinedEventResponse, ParticipantResponse
from biubiustar.schemas.user import UserBrief

_UPDATE_FIELDS = {
    "title": "title",
    "description": "description",
    "start_time": "start_date",
    "end_time": "end_date",
    "location": "location",
    "max_participants": "max_participants",
    "image_url": "image_url",
    "tags": "tags",
}


class JoinError(Exception):
    """Join refused; the message is user-facing."""


async def create_event(db: AsyncSession, organizer_id: UUID, data: EventCreate) -> Event:
    event = Event(
        organizer_id=organizer_id,
        title=data.title,
        description=data.description,
        start_date=data.start_time,
        end_date=data.end_time,
        location=data.location,
        max_participants=data.max_participants,
        image_url=data.image_url,
        tags=data.tags,
    )
    db.add(event)
    await db.flush()
    await db.refresh(event, ["organizer"])
    return event


async def get_event(db: AsyncSession, event_id: UUID) -> Event | None:
    result = await db.execute(
        select(Event).where(Event.id == event_id).options(selectinload(Event.organizer))
    )
    return result.scalar_one_or_none()


async def get_owned_event(db: AsyncSession, event_id: UUID, organizer_id: UUID) -> Event | None:
    result = await db.execute(
        select(Event)
        .where(Event.id == event_id, Event.organizer_id == organizer_id)
        .options(selectinload(Event.organizer))
    )
    return result.scalar_one_or_none()


def apply_event_update(event: Event, data: EventUpdate) -> None:
    """Copy the provided fields onto the event; raises ValueError if the
    resulting time range is empty."""
    values = data.model_dump(exclude_unset=True)
    start = values.get("start_time", event.start_date)
    end = values.get("end_time", event.end_date)
    if start is not None and end is not None and end <= start:
        raise ValueError("End time must be after start time")
    for field, column in _UPDATE_FIELDS.items():
        if field in values:
            setattr(event, column, values[field])


async def delete_event(db: AsyncSession, event_id: UUID, organizer_id: UUID) -> bool:
    result = await db.execute(
        delete(Event).where(Event.id == event_id, Event.organizer_id == organizer_id)
    )
    return result.rowcount > 0


def filter_by_tags(events: list[Event], tags: list[str]) -> list[Event]:
    """Keep events sharing at least one tag with `tags`."""
    wanted = set(tags)
    return [e for e in events if wanted.intersection(e.tags or [])]


def tags_overlap(tags: list[str]):
    """JSONB `?|` test: the event has any of `tags`. PostgreSQL only."""
    return cast(Event.tags, JSONB).has_any(array(tags))


async def list_events(
    db: AsyncSession,
    status: str = "upcoming",
    location: str | None = None,
    tags: list[str] | None = None,
    skip: int = 0,
    limit: int = 20,
) -> list[Event]:
    now = utcnow()
    q = select(Event).options(selectinload(Event.organizer))
    if status == "upcoming":
        q = q.where(Event.start_date > now)
    elif status == "ongoing":
        q = q.where(Event.start_date <= now, Event.end_date >= now)
    elif status == "past":
        q = q.where(Event.end_date < now)
    if location:
        q = q.where(Event.location.ilike(f"%{location}%"))
    q = q.order_by(desc(Event.start_date) if status == "past" else Event.start_date)
    if tags and db.get_bind().dialect.name == "postgresql":
        q = q.where(tags_overlap(tags))
    elif tags:
        # plain JSON has no overlap operator; match in Python
        result = await db.execute(q)
        return filter_by_tags(list(result.scalars().all()), tags)[skip:skip + limit]
    result = await db.execute(q.offset(skip).limit(limit))
    return list(result.scalars().all())


async def count_participants(db: AsyncSession, event_ids: list[UUID]) -> dict[UUID, int]:
    if not event_ids:
        return {}
    result = await db.execute(
        select(EventParticipant.event_id, func.count(EventParticipant.id))
        .where(EventParticipant.event_id.in_(event_ids))
        .group_by(EventParticipant.event_id)
    )
    return {row[0]: row[1] for row in result.all()}


async def get_participating_event_ids(db: AsyncSession, user_id: UUID, event_ids: list[UUID]) -> set[UUID]:
    if not event_ids:
        return set()
    result = await db.execute(
        select(EventParticipant.event_id).where(
            EventParticipant.user_id == user_id,
            EventParticipant.event_id.in_(event_ids),
        )
    )
    return {row[0] for row in result.all()}


def event_to_response(event: Event, participant_count: int = 0, is_participating: bool = False) -> EventResponse:
    response = EventResponse.model_validate(event)
    response.organizer = UserBrief.model_validate(event.organizer) if event.organizer else None
    response.participant_count = participant_count
    response.is_participating = is_participating
    return response


async def events_to_response(db: AsyncSession, events: list[Event], viewer_id: UUID | None) -> list[EventResponse]:
    event_ids = [e.id for e in events]
    counts = await count_participants(db, event_ids)
    joined = await get_participating_event_ids(db, viewer_id, event_ids) if viewer_id else set()
    return [event_to_response(e, counts.get(e.id, 0), e.id in joined) for e in events]


async def join_event(db: AsyncSession, event_id: UUID, user_id: UUID) -> None:
    """Add the user to the event or raise JoinError."""
    result = await db.execute(
        select(Event.start_date, Event.max_participants)
        .where(Event.id == event_id)
        .with_for_update()
    )
    row = result.first()
    if row is None:
        raise LookupError("Event not found")
    start_date, max_participants = row
    if start_date <= utcnow():
        raise JoinError("Event has already started")
    existing = await db.execute(
        select(EventParticipant.id).where(
            EventParticipant.event_id == event_id, EventParticipant.user_id == user_id
        )
    )
    if existing.scalar_one_or_none():
        raise JoinError("Already joined")

    row_source = select(
        literal(uuid.uuid4(), Uuid),
        literal(event_id, Uuid),
        literal(user_id, Uuid),
        literal(utcnow(), DateTime),
    )
    if max_participants is not None:
        taken = (
            select(func.count(EventParticipant.id))
            .where(EventParticipant.event_id == event_id)
            .correlate(None)
            .scalar_subquery()
        )
        row_source = row_source.where(taken < max_participants)
    stmt = insert(EventParticipant.__table__).from_select(
        ["id", "event_id", "user_id", "joined_at"], row_source
    )
    try:
        inserted = await db.execute(stmt)
    except IntegrityError:
        await db.rollback()
        raise JoinError("Already joined")
    if inserted.rowcount == 0:
        raise JoinError("Event is full")


async def leave_event(db: AsyncSession, event_id: UUID, user_id: UUID) -> bool:
    result = await db.execute(
        delete(EventParticipant).where(
            EventParticipant.event_id == event_id, EventParticipant.user_id == user_id
        )
    )
    return result.rowcount > 0


async def get_participants(db: AsyncSession, event_id: UUID, skip: int = 0, limit: int = 20) -> list[ParticipantResponse]:
    result = await db.execute(
        select(User, EventParticipant.joined_at)
        .join(EventParticipant, EventParticipant.user_id == User.id)
        .where(EventParticipant.event_id == event_id)
        .order_by(EventParticipant.joined_at)
        .offset(skip)
        .limit(limit)
    )
    participants = []
    for user, joined_at in result.all():
        brief = UserBrief.model_validate(user)
        participants.append(ParticipantResponse(**brief.model_dump(), joined_at=joined_at))
    return participants


async def get_organized_events(db: AsyncSession, organizer_id: UUID, skip: int = 0, limit: int = 20) -> list[Event]:
    result = await db.execute(
        select(Event)
        .where(Event.organizer_id == organizer_id)
        .order_by(desc(Event.created_at))
        .offset(skip)
        .limit(limit)
        .options(selectinload(Event.organizer))
    )
    return list(result.scalars().all())


async def get_joined_events(db: AsyncSession, user_id: UUID, skip: int = 0, limit: int = 20) -> list[JoinedEventResponse]:
    result = await db.execute(
        select(Event, EventParticipant.joined_at)
        .join(EventParticipant, EventParticipant.event_id == Event.id)
        .where(EventParticipant.user_id == user_id)
        .order_by(desc(EventParticipant.joined_at))
        .offset(skip)
        .limit(limit)
        .options(selectinload(Event.organizer))
    )
    rows = result.all()
    events = await events_to_response(db, [event for event, _ in rows], user_id)
    return [
        JoinedEventResponse(**event.model_dump(), joined_at=joined_at)
        for event, (_, joined_at) in zip(events, rows)
    ]
