"""Post model and its moderation audit log."""
import uuid

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import relationship

from biubiustar.db.session import Base, utcnow
from biubiustar.db.types import JSONList


class Post(Base):
    __tablename__ = "posts"
    __table_args__ = (
        CheckConstraint(
            "status IN ('draft', 'published', 'pending', 'rejected', 'archived')",
            name="ck_posts_status",
        ),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(200), nullable=True)
    content = Column(Text, nullable=False)
    category = Column(String(50), nullable=True)
    tags = Column(JSONList, nullable=False, default=list)
    image_urls = Column(JSONList, nullable=False, default=list)
    location = Column(String(100), nullable=True)
    status = Column(String(20), nullable=False, default="published", index=True)
    rejection_reason = Column(Text, nullable=True)
    reviewed_at = Column(DateTime, nullable=True)
    reviewed_by = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=utcnow, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    user = relationship("User", back_populates="posts", foreign_keys=[user_id])
    reviewer = relationship("User", foreign_keys=[reviewed_by])
    comments = relationship("Comment", back_populates="post", cascade="all, delete-orphan", passive_deletes=True)
    likes = relationship("Like", back_populates="post", cascade="all, delete-orphan", passive_deletes=True)
    moderation_history = relationship(
        "PostModerationHistory",
        back_populates="post",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class PostModerationHistory(Base):
    """Append-only record of every approve/reject transition."""
    __tablename__ = "post_moderation_history"
    __table_args__ = (CheckConstraint("action IN ('approved', 'rejected')", name="ck_moderation_action"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    post_id = Column(Uuid, ForeignKey("posts.id", ondelete="CASCADE"), nullable=False, index=True)
    admin_id = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    action = Column(String(20), nullable=False)  # approved | rejected
    previous_status = Column(String(20), nullable=False)
    new_status = Column(String(20), nullable=False)
    reason = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow, index=True)

    post = relationship("Post", back_populates="moderation_history")
    admin = relationship("User")
