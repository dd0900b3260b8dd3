"""Event model and participation rows."""
import uuid

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship

from biubiustar.db.session import Base, utcnow
from biubiustar.db.types import JSONList


class Event(Base):
    __tablename__ = "events"
    __table_args__ = (CheckConstraint("end_date > start_date", name="ck_events_time_range"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    organizer_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)
    start_date = Column(DateTime, nullable=False, index=True)
    end_date = Column(DateTime, nullable=False)
    location = Column(String(200), nullable=True)
    max_participants = Column(Integer, nullable=True)
    image_url = Column(Text, nullable=True)
    tags = Column(JSONList, nullable=False, default=list)
    status = Column(String(20), nullable=False, default="upcoming")
    is_featured = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    organizer = relationship("User", back_populates="events")
    participants = relationship(
        "EventParticipant",
        back_populates="event",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class EventParticipant(Base):
    __tablename__ = "event_participants"
    __table_args__ = (UniqueConstraint("event_id", "user_id", name="uq_event_participants_event_user"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    event_id = Column(Uuid, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    joined_at = Column(DateTime, default=utcnow)

    event = relationship("Event", back_populates="participants")
    user = relationship("User")
