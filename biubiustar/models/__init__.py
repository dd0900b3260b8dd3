from biubiustar.models.user import User
from biubiustar.models.post import Post, PostModerationHistory
from biubiustar.models.comment import Comment
from biubiustar.models.engagement import Follow, Like
from biubiustar.models.event import Event, EventParticipant
from biubiustar.models.contact import ContactForm

__all__ = [
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
