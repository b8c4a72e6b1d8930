"""ORM record -> response model conversion shared by routers and the dashboard."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from portfolio.models.portfolio import CaseStudy, Inquiry, Testimonial
from portfolio.schemas.case_study import CaseStudyOut, CaseStudySummary
from portfolio.schemas.inquiry import InquiryOut, InquirySummary
from portfolio.schemas.testimonial import CaseStudyRef, TestimonialOut, TestimonialSummary
from portfolio.services.record_store import as_utc


def inquiry_to_out(inquiry: Inquiry) -> InquiryOut:
    return InquiryOut(
        id=str(inquiry.id),
        name=inquiry.name,
        email=inquiry.email,
        phone=inquiry.phone,
        company=inquiry.company,
        project_type=inquiry.project_type,
        budget=inquiry.budget,
        timeline=inquiry.timeline,
        message=inquiry.message,
        status=inquiry.status,
        priority=inquiry.priority,
        source=inquiry.source,
        assigned_to=inquiry.assigned_to,
        notes=inquiry.notes,
        follow_up_date=as_utc(inquiry.follow_up_date),
        created_at=as_utc(inquiry.created_at),
        updated_at=as_utc(inquiry.updated_at),
    )


def inquiry_to_summary(inquiry: Inquiry) -> InquirySummary:
    return InquirySummary(
        id=str(inquiry.id),
        name=inquiry.name,
        email=inquiry.email,
        project_type=inquiry.project_type,
        status=inquiry.status,
        created_at=as_utc(inquiry.created_at),
    )


def case_study_to_out(case_study: CaseStudy) -> CaseStudyOut:
    return CaseStudyOut(
        id=str(case_study.id),
        title=case_study.title,
        description=case_study.description,
        category=case_study.category,
        type=case_study.type,
        tech_stack=list(case_study.tech_stack or []),
        images=list(case_study.images or []),
        links=case_study.links,
        client_name=case_study.client_name,
        client_company=case_study.client_company,
        client_industry=case_study.client_industry,
        status=case_study.status,
        featured=bool(case_study.featured),
        is_public=bool(case_study.is_public),
        start_date=case_study.start_date,
        end_date=case_study.end_date,
        duration_days=case_study.duration_days,
        budget=case_study.budget,
        results=case_study.results,
        tags=list(case_study.tags or []),
        created_at=as_utc(case_study.created_at),
        updated_at=as_utc(case_study.updated_at),
    )


def case_study_to_summary(case_study: CaseStudy) -> CaseStudySummary:
    return CaseStudySummary(
        id=str(case_study.id),
        title=case_study.title,
        category=case_study.category,
        status=case_study.status,
        created_at=as_utc(case_study.created_at),
    )


def case_study_ref(case_study: CaseStudy | None) -> CaseStudyRef | None:
    if case_study is None:
        return None
    return CaseStudyRef(id=str(case_study.id), title=case_study.title, category=case_study.category)


def testimonial_to_out(testimonial: Testimonial, case_study: CaseStudy | None = None) -> TestimonialOut:
    return TestimonialOut(
        id=str(testimonial.id),
        author_name=testimonial.author_name,
        author_title=testimonial.author_title,
        company=testimonial.company,
        review=testimonial.review,
        rating=testimonial.rating,
        featured=bool(testimonial.featured),
        is_public=bool(testimonial.is_public),
        verified=bool(testimonial.verified),
        avatar_url=testimonial.avatar_url,
        industry=testimonial.industry,
        case_study_id=str(testimonial.case_study_id) if testimonial.case_study_id else None,
        case_study=case_study_ref(case_study),
        created_at=as_utc(testimonial.created_at),
        updated_at=as_utc(testimonial.updated_at),
    )


def testimonial_to_summary(testimonial: Testimonial) -> TestimonialSummary:
    return TestimonialSummary(
        id=str(testimonial.id),
        author_name=testimonial.author_name,
        company=testimonial.company,
        rating=testimonial.rating,
        verified=bool(testimonial.verified),
        created_at=as_utc(testimonial.created_at),
    )


def prefetch_case_studies(db: Session, testimonials: list[Testimonial]) -> dict:
    """Batch-load case studies referenced by ``testimonials`` (one query)."""
    ids = {t.case_study_id for t in testimonials if t.case_study_id}
    if not ids:
        return {}
    rows = db.execute(select(CaseStudy).where(CaseStudy.id.in_(ids))).scalars().all()
    return {row.id: row for row in rows}


def testimonials_to_out(db: Session, testimonials: list[Testimonial]) -> list[TestimonialOut]:
    case_studies = prefetch_case_studies(db, testimonials)
    return [testimonial_to_out(t, case_studies.get(t.case_study_id)) for t in testimonials]
