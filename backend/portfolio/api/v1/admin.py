"""Admin reporting and record management.

Thin router: numbers come from the aggregation/dashboard services, writes go
through the mutation service with the authenticated principal as actor.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session, sessionmaker

from portfolio.api.v1.paging import page_to_dict, paging_args, serialize_page
from portfolio.core.auth import CurrentUser, require_roles
from portfolio.core.config import get_settings
from portfolio.core.dependencies import get_db, get_session_factory
from portfolio.core.errors import NotFound
from portfolio.schemas.case_study import CaseStudyCreate, CaseStudyUpdate
from portfolio.schemas.common import envelope
from portfolio.schemas.enums import EntityKind
from portfolio.schemas.inquiry import InquiryUpdate
from portfolio.schemas.testimonial import TestimonialCreate, TestimonialUpdate
from portfolio.services.aggregation_service import compute_entity_stats, compute_system_stats, stats_to_dict
from portfolio.services.dashboard_service import build_dashboard
from portfolio.services.listing_service import list_records
from portfolio.services.mutation_service import create_record, delete_record, get_record, update_record
from portfolio.services.serializers import case_study_to_out, inquiry_to_out, testimonials_to_out

router = APIRouter()

require_admin = require_roles("ADMIN")


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _listing(db: Session, kind: EntityKind, request: Request):
    settings = get_settings()
    params = request.query_params
    return list_records(
        db,
        kind,
        params,
        search=params.get("search"),
        default_page_size=settings.listing_default_page_size,
        max_page_size=settings.listing_max_page_size,
        **paging_args(request),
    )


def _changes(payload) -> dict[str, Any]:
    return payload.model_dump(exclude_unset=True)


# ---------------------------------------------------------------------------
# Reporting
# ---------------------------------------------------------------------------


@router.get("/admin/dashboard")
async def get_dashboard(
    current_user: CurrentUser = Depends(require_admin),
    session_factory: sessionmaker = Depends(get_session_factory),
):
    settings = get_settings()
    data = await build_dashboard(
        session_factory,
        now=_now(),
        tz=settings.reporting_tz,
        recent_limit=settings.dashboard_recent_limit,
        timeout_seconds=settings.dashboard_timeout_seconds,
    )
    return envelope(data)


@router.get("/admin/stats")
def get_system_stats(
    current_user: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return envelope(compute_system_stats(db, now=_now()))


@router.get("/admin/stats/{kind}")
def get_entity_stats(
    kind: str,
    current_user: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    try:
        entity_kind = EntityKind(kind)
    except ValueError as exc:
        raise NotFound(f"Unknown statistics kind: {kind}") from exc
    stats = compute_entity_stats(db, entity_kind, now=_now(), tz=get_settings().reporting_tz)
    return envelope(stats_to_dict(stats))


# ---------------------------------------------------------------------------
# Inquiries
# ---------------------------------------------------------------------------


@router.get("/admin/inquiries")
def list_inquiries(
    request: Request,
    current_user: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return envelope(serialize_page(_listing(db, EntityKind.INQUIRY, request), inquiry_to_out))


@router.get("/admin/inquiries/{inquiry_id}")
def get_inquiry(
    inquiry_id: str,
    current_user: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return envelope(inquiry_to_out(get_record(db, EntityKind.INQUIRY, inquiry_id)))


@router.put("/admin/inquiries/{inquiry_id}")
def update_inquiry(
    inquiry_id: str,
    payload: InquiryUpdate,
    current_user: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    inquiry = update_record(db, EntityKind.INQUIRY, inquiry_id, _changes(payload), actor=current_user)
    return envelope(inquiry_to_out(inquiry), message="Inquiry updated")


@router.delete("/admin/inquiries/{inquiry_id}")
def delete_inquiry(
    inquiry_id: str,
    current_user: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    delete_record(db, EntityKind.INQUIRY, inquiry_id, actor=current_user)
    return envelope(message="Inquiry deleted")


# ---------------------------------------------------------------------------
# Case studies
# ---------------------------------------------------------------------------


@router.get("/admin/case-studies")
def list_case_studies(
    request: Request,
    current_user: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return envelope(serialize_page(_listing(db, EntityKind.CASE_STUDY, request), case_study_to_out))


@router.post("/admin/case-studies", status_code=201)
def create_case_study(
    payload: CaseStudyCreate,
    current_user: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    case_study = create_record(db, EntityKind.CASE_STUDY, payload.model_dump(exclude_none=True), actor=current_user)
    return envelope(case_study_to_out(case_study), message="Case study created")


@router.get("/admin/case-studies/{case_study_id}")
def get_case_study(
    case_study_id: str,
    current_user: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return envelope(case_study_to_out(get_record(db, EntityKind.CASE_STUDY, case_study_id)))


@router.put("/admin/case-studies/{case_study_id}")
def update_case_study(
    case_study_id: str,
    payload: CaseStudyUpdate,
    current_user: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    case_study = update_record(db, EntityKind.CASE_STUDY, case_study_id, _changes(payload), actor=current_user)
    return envelope(case_study_to_out(case_study), message="Case study updated")


@router.delete("/admin/case-studies/{case_study_id}")
def delete_case_study(
    case_study_id: str,
    current_user: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    delete_record(db, EntityKind.CASE_STUDY, case_study_id, actor=current_user)
    return envelope(message="Case study deleted")


# ---------------------------------------------------------------------------
# Testimonials
# ---------------------------------------------------------------------------


@router.get("/admin/testimonials")
def list_admin_testimonials(
    request: Request,
    current_user: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    result = _listing(db, EntityKind.TESTIMONIAL, request)
    return envelope(page_to_dict(result, testimonials_to_out(db, result.items)))


@router.post("/admin/testimonials", status_code=201)
def create_testimonial(
    payload: TestimonialCreate,
    current_user: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    testimonial = create_record(db, EntityKind.TESTIMONIAL, payload.model_dump(exclude_none=True), actor=current_user)
    return envelope(testimonials_to_out(db, [testimonial])[0], message="Testimonial created")


@router.get("/admin/testimonials/{testimonial_id}")
def get_admin_testimonial(
    testimonial_id: str,
    current_user: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    testimonial = get_record(db, EntityKind.TESTIMONIAL, testimonial_id)
    return envelope(testimonials_to_out(db, [testimonial])[0])


@router.put("/admin/testimonials/{testimonial_id}")
def update_testimonial(
    testimonial_id: str,
    payload: TestimonialUpdate,
    current_user: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    testimonial = update_record(db, EntityKind.TESTIMONIAL, testimonial_id, _changes(payload), actor=current_user)
    return envelope(testimonials_to_out(db, [testimonial])[0], message="Testimonial updated")


@router.delete("/admin/testimonials/{testimonial_id}")
def delete_testimonial(
    testimonial_id: str,
    current_user: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    delete_record(db, EntityKind.TESTIMONIAL, testimonial_id, actor=current_user)
    return envelope(message="Testimonial deleted")
