"""Public contact (cooperation request) form."""
from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from biubiustar.api.deps import get_db, limit_contact_submissions, require_admin
from biubiustar.schemas.common import ok
from biubiustar.schemas.contact import ContactCreate
from biubiustar.services.contact_service import create_submission, get_contact_stats, recently_submitted

router = APIRouter(prefix="/contact", tags=["contact"])


@router.post("", status_code=status.HTTP_201_CREATED, dependencies=[Depends(limit_contact_submissions)])
async def submit_contact_form(
    data: ContactCreate,
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    if await recently_submitted(db, data.email):
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="You have already submitted a request in the last 24 hours",
        )
    form = await create_submission(db, data, request.client.host if request.client else None)
    await db.commit()
    return ok(
        {"id": form.id, "submitted_at": form.created_at},
        message="Your request has been submitted, we will contact you soon",
    )


@router.get("/stats", dependencies=[Depends(require_admin)])
async def contact_stats(db: AsyncSession = Depends(get_db)):
    return ok(await get_contact_stats(db))
