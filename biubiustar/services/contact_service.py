"""Contact form submissions."""
import logging
from datetime import timedelta
from uuid import UUID

from sqlalchemy import desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from biubiustar.core.config import settings
from biubiustar.db.session import utcnow
from biubiustar.models.contact import ContactForm
from biubiustar.schemas.contact import ContactCreate, ContactUpdate

logger = logging.getLogger(__name__)

SPAM_KEYWORDS = ("spam", "test", "fake", "测试", "垃圾")


def looks_suspicious(data: ContactCreate) -> bool:
    """Substring heuristic over name, company and description. Flags, never blocks."""
    text = " ".join(filter(None, [data.name, data.company, data.description])).lower()
    return any(keyword in text for keyword in SPAM_KEYWORDS)


async def recently_submitted(db: AsyncSession, email: str) -> bool:
    since = utcnow() - timedelta(hours=settings.CONTACT_DEDUP_HOURS)
    result = await db.execute(
        select(ContactForm.id)
        .where(ContactForm.email == email.lower(), ContactForm.created_at >= since)
        .limit(1)
    )
    return result.scalar_one_or_none() is not None


async def create_submission(db: AsyncSession, data: ContactCreate, client_ip: str | None = None) -> ContactForm:
    suspicious = looks_suspicious(data)
    if suspicious:
        logger.warning("suspicious contact submission from %s (%s)", data.email, client_ip or "unknown")
    form = ContactForm(
        name=data.name,
        email=data.email.lower(),
        company=data.company or None,
        phone=data.phone or None,
        cooperation_type=data.cooperation_type,
        description=data.description,
        status="pending",
        is_suspicious=suspicious,
    )
    db.add(form)
    await db.flush()
    return form


async def update_submission(db: AsyncSession, form_id: UUID, admin_id: UUID, data: ContactUpdate) -> ContactForm | None:
    form = await db.get(ContactForm, form_id)
    if form is None:
        return None
    form.status = data.status
    if data.admin_notes is not None:
        form.admin_notes = data.admin_notes
    form.processed_by = admin_id
    form.processed_at = utcnow()
    await db.flush()
    await db.refresh(form)
    return form


async def get_contact_stats(db: AsyncSession) -> dict:
    total = await db.execute(select(func.count(ContactForm.id)))
    by_status = await db.execute(
        select(ContactForm.status, func.count(ContactForm.id)).group_by(ContactForm.status)
    )
    by_type = await db.execute(
        select(ContactForm.cooperation_type, func.count(ContactForm.id)).group_by(ContactForm.cooperation_type)
    )
    recent = await db.execute(
        select(ContactForm.id, ContactForm.name, ContactForm.cooperation_type, ContactForm.status, ContactForm.created_at)
        .order_by(desc(ContactForm.created_at))
        .limit(5)
    )
    return {
        "total": total.scalar() or 0,
        "statusCounts": {status: count for status, count in by_status.all()},
        "typeCounts": {kind: count for kind, count in by_type.all()},
        "recent": [
            {
                "id": row.id,
                "name": row.name,
                "cooperation_type": row.cooperation_type,
                "status": row.status,
                "created_at": row.created_at,
            }
            for row in recent.all()
        ],
    }
