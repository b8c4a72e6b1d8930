"""Public case study showcase. Only ``is_public`` records are visible here."""

from __future__ import annotations

from collections import Counter

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from portfolio.api.v1.paging import paging_args, serialize_page
from portfolio.core.dependencies import get_db
from portfolio.core.errors import NotFound
from portfolio.schemas.common import envelope
from portfolio.schemas.enums import EntityKind
from portfolio.services.listing_service import list_records
from portfolio.services.mutation_service import get_record
from portfolio.services.record_store import ALL, RecordStore
from portfolio.services.serializers import case_study_to_out

router = APIRouter()

PUBLIC_PAGE_SIZE = 12
FEATURED_LIMIT = 6
TAG_LIMIT = 20

_PUBLIC = {"is_public": True}


@router.get("/projects")
def list_projects(request: Request, db: Session = Depends(get_db)):
    args = paging_args(request)
    result = list_records(
        db,
        EntityKind.CASE_STUDY,
        request.query_params,
        search=request.query_params.get("search"),
        base_filters=_PUBLIC,
        default_page_size=PUBLIC_PAGE_SIZE,
        **args,
    )
    return envelope(serialize_page(result, case_study_to_out))


@router.get("/projects/featured")
def featured_projects(db: Session = Depends(get_db)):
    result = list_records(
        db,
        EntityKind.CASE_STUDY,
        base_filters={**_PUBLIC, "featured": True},
        page_size=FEATURED_LIMIT,
    )
    return envelope([case_study_to_out(item) for item in result.items])


@router.get("/projects/search")
def search_projects(
    request: Request,
    q: str = Query(..., min_length=1, max_length=128),
    db: Session = Depends(get_db),
):
    result = list_records(
        db,
        EntityKind.CASE_STUDY,
        request.query_params,
        search=q,
        base_filters=_PUBLIC,
        default_page_size=PUBLIC_PAGE_SIZE,
        **paging_args(request),
    )
    return envelope(serialize_page(result, case_study_to_out))


@router.get("/projects/categories")
def project_categories(db: Session = Depends(get_db)):
    store = RecordStore(db, EntityKind.CASE_STUDY)
    public = ALL.narrowed(**_PUBLIC)
    categories = sorted({value for value in store.column_values("category", public) if value})
    types = sorted({value for value in store.column_values("type", public) if value})

    tag_counts: Counter[str] = Counter()
    for tags in store.column_values("tags", public):
        tag_counts.update(tag for tag in (tags or []) if tag)
    tags = [tag for tag, _ in sorted(tag_counts.items(), key=lambda row: (-row[1], row[0]))[:TAG_LIMIT]]

    return envelope({"categories": categories, "types": types, "tags": tags})


@router.get("/projects/{project_id}")
def get_project(project_id: str, db: Session = Depends(get_db)):
    case_study = get_record(db, EntityKind.CASE_STUDY, project_id)
    if not case_study.is_public:
        raise NotFound("Project not found")
    return envelope(case_study_to_out(case_study))
