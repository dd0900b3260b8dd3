from biubiustar.schemas.user import (
    UserCreate,
    LoginRequest,
    ProfileUpdate,
    UserBrief,
    UserPublic,
    UserResponse,
    UserProfile,
    UserStats,
)
from biubiustar.schemas.post import PostCreate, PostResponse, LikeState
from biubiustar.schemas.comment import CommentCreate, CommentResponse
from biubiustar.schemas.event import EventCreate, EventUpdate, EventResponse, ParticipantResponse
from biubiustar.schemas.contact import ContactCreate, ContactResponse, ContactUpdate
