"""Filtered, searchable, offset-paginated listings for admin and public pages.

``list_records`` always counts and fetches with the same ``RecordFilter`` so the
``total_count`` it reports agrees with a direct ``RecordStore.count`` call and
with the aggregation figures on the dashboard.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any, Optional

from sqlalchemy.orm import Session

from portfolio.core.errors import InvalidQuery
from portfolio.schemas.enums import (
    CaseStudyCategory,
    CaseStudyStatus,
    CaseStudyType,
    EntityKind,
    InquiryPriority,
    InquiryProjectType,
    InquiryStatus,
)
from portfolio.services.record_store import RecordFilter, RecordStore

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100
# Offsets are bound as signed 64-bit integers by every supported store.
MAX_OFFSET = 2**63 - 1

_TRUE_VALUES = {"true", "1", "yes", "on"}
_FALSE_VALUES = {"false", "0", "no", "off"}


def parse_bool(name: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        raw = value.strip().lower()
        if raw in _TRUE_VALUES:
            return True
        if raw in _FALSE_VALUES:
            return False
    raise InvalidQuery(f"'{name}' must be a boolean")


def _enum_parser(enum_cls) -> Callable[[str, Any], str]:
    allowed = {member.value for member in enum_cls}

    def _parse(name: str, value: Any) -> str:
        raw = value.value if isinstance(value, enum_cls) else str(value).strip()
        if raw not in allowed:
            raise InvalidQuery(f"'{name}' must be one of: {', '.join(sorted(allowed))}")
        return raw

    return _parse


def _parse_rating(name: str, value: Any) -> int:
    if isinstance(value, bool):
        raise InvalidQuery(f"'{name}' must be an integer between 1 and 5")
    try:
        rating = int(str(value).strip())
    except ValueError as exc:
        raise InvalidQuery(f"'{name}' must be an integer between 1 and 5") from exc
    if not 1 <= rating <= 5:
        raise InvalidQuery(f"'{name}' must be an integer between 1 and 5")
    return rating


@dataclass(frozen=True)
class FilterField:
    name: str
    parse: Callable[[str, Any], Any]


def _fields(*fields: FilterField) -> dict[str, FilterField]:
    return {f.name: f for f in fields}


LISTING_FILTERS: dict[EntityKind, dict[str, FilterField]] = {
    EntityKind.INQUIRY: _fields(
        FilterField("status", _enum_parser(InquiryStatus)),
        FilterField("priority", _enum_parser(InquiryPriority)),
        FilterField("project_type", _enum_parser(InquiryProjectType)),
    ),
    EntityKind.CASE_STUDY: _fields(
        FilterField("status", _enum_parser(CaseStudyStatus)),
        FilterField("featured", parse_bool),
        FilterField("category", _enum_parser(CaseStudyCategory)),
        FilterField("type", _enum_parser(CaseStudyType)),
    ),
    EntityKind.TESTIMONIAL: _fields(
        FilterField("featured", parse_bool),
        FilterField("verified", parse_bool),
        FilterField("rating", _parse_rating),
    ),
}


@dataclass
class PagedResult:
    items: list
    total_count: int
    page_count: int
    current_page: int
    page_size: int


def parse_filters(kind: EntityKind, params: Optional[Mapping[str, Any]]) -> dict[str, Any]:
    """Turn raw query parameters into typed exact-match filters.

    Keys outside the entity's filter table are ignored; empty values count as
    "not supplied".
    """
    table = LISTING_FILTERS[kind]
    parsed: dict[str, Any] = {}
    for key, value in (params or {}).items():
        field = table.get(key)
        if field is None or value is None:
            continue
        if isinstance(value, str) and value.strip() == "":
            continue
        parsed[key] = field.parse(key, value)
    return parsed


def _as_int(name: str, value: Any) -> Optional[int]:
    if value is None or (isinstance(value, str) and value.strip() == ""):
        return None
    if isinstance(value, bool):
        raise InvalidQuery(f"'{name}' must be an integer")
    try:
        return int(str(value).strip())
    except ValueError as exc:
        raise InvalidQuery(f"'{name}' must be an integer") from exc


def normalize_paging(
    page: Any,
    page_size: Any,
    *,
    default_size: int = DEFAULT_PAGE_SIZE,
    max_size: int = MAX_PAGE_SIZE,
) -> tuple[int, int]:
    page_num = _as_int("page", page)
    size = _as_int("page_size", page_size)
    if page_num is None or page_num < 1:
        page_num = 1
    if size is None:
        size = default_size
    if size < 1:
        raise InvalidQuery("'page_size' must be at least 1")
    size = min(size, max_size)
    if (page_num - 1) * size > MAX_OFFSET:
        raise InvalidQuery("'page' is out of range")
    return page_num, size


def list_records(
    db: Session,
    kind: EntityKind,
    params: Optional[Mapping[str, Any]] = None,
    *,
    search: Optional[str] = None,
    page: Any = 1,
    page_size: Any = None,
    base_filters: Optional[Mapping[str, Any]] = None,
    default_page_size: int = DEFAULT_PAGE_SIZE,
    max_page_size: int = MAX_PAGE_SIZE,
) -> PagedResult:
    """Newest-first page of ``kind`` records matching filters AND search."""
    page_num, size = normalize_paging(page, page_size, default_size=default_page_size, max_size=max_page_size)
    equals = parse_filters(kind, params)
    if base_filters:
        equals.update(base_filters)
    flt = RecordFilter(equals=equals, search=(search or "").strip() or None)

    store = RecordStore(db, kind)
    total = store.count(flt)
    items = store.find_many(flt, offset=(page_num - 1) * size, limit=size) if total else []
    return PagedResult(
        items=items,
        total_count=total,
        page_count=math.ceil(total / size) if total else 0,
        current_page=page_num,
        page_size=size,
    )
