"""Public inquiry form."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from portfolio.core.dependencies import get_db
from portfolio.schemas.common import envelope
from portfolio.schemas.enums import EntityKind
from portfolio.schemas.inquiry import InquiryCreate
from portfolio.services.mutation_service import create_record
from portfolio.services.record_store import as_utc
from portfolio.utils.rate_limit import enforce_contact_rate_limit

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/contact", status_code=201, dependencies=[Depends(enforce_contact_rate_limit)])
def submit_inquiry(payload: InquiryCreate, db: Session = Depends(get_db)):
    inquiry = create_record(db, EntityKind.INQUIRY, payload.model_dump(exclude_none=True), actor=None)
    # No PII in logs: lengths and ids only.
    logger.info(
        "contact_submitted id=%s project_type=%s message_len=%d",
        inquiry.id,
        inquiry.project_type,
        len(inquiry.message),
    )
    return envelope(
        data={"id": str(inquiry.id), "status": inquiry.status, "created_at": as_utc(inquiry.created_at)},
        message="Thank you for your inquiry! We will get back to you soon.",
    )
