"""Public testimonials."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from portfolio.api.v1.paging import page_to_dict, paging_args
from portfolio.core.dependencies import get_db
from portfolio.core.errors import NotFound
from portfolio.schemas.common import envelope
from portfolio.schemas.enums import EntityKind
from portfolio.services.aggregation_service import compute_rating_summary
from portfolio.services.listing_service import list_records
from portfolio.services.mutation_service import get_record
from portfolio.services.serializers import testimonials_to_out

router = APIRouter()

PUBLIC_PAGE_SIZE = 10
FEATURED_LIMIT = 6

_PUBLIC = {"is_public": True}


@router.get("/testimonials")
def list_testimonials(request: Request, db: Session = Depends(get_db)):
    result = list_records(
        db,
        EntityKind.TESTIMONIAL,
        request.query_params,
        base_filters=_PUBLIC,
        default_page_size=PUBLIC_PAGE_SIZE,
        **paging_args(request),
    )
    return envelope(page_to_dict(result, testimonials_to_out(db, result.items)))


@router.get("/testimonials/featured")
def featured_testimonials(db: Session = Depends(get_db)):
    result = list_records(
        db,
        EntityKind.TESTIMONIAL,
        base_filters={**_PUBLIC, "featured": True},
        page_size=FEATURED_LIMIT,
    )
    return envelope(testimonials_to_out(db, result.items))


@router.get("/testimonials/stats/ratings")
def rating_statistics(db: Session = Depends(get_db)):
    return envelope(compute_rating_summary(db))


@router.get("/testimonials/{testimonial_id}")
def get_testimonial(testimonial_id: str, db: Session = Depends(get_db)):
    testimonial = get_record(db, EntityKind.TESTIMONIAL, testimonial_id)
    if not testimonial.is_public:
        raise NotFound("Testimonial not found")
    return envelope(testimonials_to_out(db, [testimonial])[0])
