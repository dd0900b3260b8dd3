"""SQLAlchemy declarative base and model imports for Alembic."""
from biubiustar.db.session import Base  # noqa: F401
from biubiustar.models.user import User  # noqa: F401
from biubiustar.models.post import Post, PostModerationHistory  # noqa: F401
from biubiustar.models.comment import Comment  # noqa: F401
from biubiustar.models.engagement import Follow, Like  # noqa: F401
from biubiustar.models.event import Event, EventParticipant  # noqa: F401
from biubiustar.models.contact import ContactForm  # noqa: F401

__all__ = [
    "Base",
    "User",
    "Post",
    "PostModerationHistory",
    "Comment",
    "Follow",
    "Like",
    "Event",
    "EventParticipant",
    "ContactForm",
]
