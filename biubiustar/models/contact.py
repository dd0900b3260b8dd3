"""Contact (cooperation request) form submissions."""
import uuid

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import relationship

from biubiustar.db.session import Base, utcnow


class ContactForm(Base):
    __tablename__ = "contact_forms"
    __table_args__ = (
        CheckConstraint(
            "cooperation_type IN ('technical', 'business', 'investment', 'other')",
            name="ck_contact_forms_type",
        ),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False, index=True)
    company = Column(String(200), nullable=True)
    phone = Column(String(50), nullable=True)
    cooperation_type = Column(String(20), nullable=False)
    description = Column(Text, nullable=False)
    status = Column(String(20), nullable=False, default="pending")
    is_suspicious = Column(Boolean, nullable=False, default=False)
    admin_notes = Column(Text, nullable=True)
    processed_by = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    processed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    processor = relationship("User")
