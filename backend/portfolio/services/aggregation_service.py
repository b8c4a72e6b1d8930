"""Totals, breakdowns, trailing windows and monthly series per entity kind.

Conventions shared by every figure produced here:

* ``now`` and the reporting timezone are explicit arguments. Nothing reads the
  wall clock, so a given dataset and ``now`` always yield the same numbers.
* Breakdowns list observed values only (no zero rows), ordered by count desc
  then value asc. The unset bucket (None, e.g. no budget given) sorts last
  among equal counts.
* Monthly series cover the last ``MONTHS_IN_SERIES`` calendar months including
  the current one, ascending by (year, month). Months without records are
  **omitted**; chart consumers must zero-fill the gaps themselves.
* "This month" starts at 00:00 on the first day of the current month in the
  reporting timezone. "Recent" is a sliding window of ``RECENT_WINDOW_DAYS``
  ending at ``now``.

Each call issues several independent statements on one session. Without
snapshot isolation a concurrent write may land between them, so a breakdown can
briefly disagree with its total. That read skew is accepted; the next call
converges.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone, tzinfo
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Optional

from sqlalchemy.orm import Session

from portfolio.schemas.enums import EntityKind
from portfolio.services.record_store import ALL, RecordStore, as_utc

logger = logging.getLogger(__name__)

MONTHS_IN_SERIES = 6
RECENT_WINDOW_DAYS = 30

BREAKDOWN_FIELD = {
    EntityKind.INQUIRY: "status",
    EntityKind.CASE_STUDY: "status",
    EntityKind.TESTIMONIAL: "rating",
}


@dataclass
class EntityStats:
    kind: EntityKind
    total: int
    breakdown: list[tuple[Any, int]]
    this_month: int
    recent: int
    monthly: list[tuple[int, int, int]]
    extras: dict[str, Any] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Calendar helpers
# ---------------------------------------------------------------------------


def _aware(now: datetime) -> datetime:
    return now if now.tzinfo is not None else now.replace(tzinfo=timezone.utc)


def _shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def month_start(now: datetime, tz: tzinfo, *, months_back: int = 0) -> datetime:
    """First instant of the local calendar month ``months_back`` before ``now``."""
    local = _aware(now).astimezone(tz)
    year, month = _shift_month(local.year, local.month, -months_back)
    return datetime(year, month, 1, tzinfo=tz)


def monthly_window(now: datetime, tz: tzinfo, months: int = MONTHS_IN_SERIES) -> tuple[datetime, datetime]:
    start = month_start(now, tz, months_back=months - 1)
    local = _aware(now).astimezone(tz)
    next_year, next_month = _shift_month(local.year, local.month, 1)
    return start, datetime(next_year, next_month, 1, tzinfo=tz)


def bucket_by_month(values: list[datetime], tz: tzinfo) -> list[tuple[int, int, int]]:
    counts: Counter[tuple[int, int]] = Counter()
    for value in values:
        local = as_utc(value).astimezone(tz)
        counts[(local.year, local.month)] += 1
    return [(year, month, counts[(year, month)]) for year, month in sorted(counts)]


def sort_breakdown(rows: list[tuple[Any, int]]) -> list[tuple[Any, int]]:
    """Count desc, then value asc; the unset (None) bucket sorts last among equal counts."""
    return sorted(
        ((value, count) for value, count in rows if count > 0),
        key=lambda row: (-row[1], row[0] is None, row[0]),
    )


def round_rating(value: Optional[float]) -> float:
    if value is None:
        return 0.0
    return float(Decimal(str(value)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


# ---------------------------------------------------------------------------
# Per-entity statistics
# ---------------------------------------------------------------------------


def monthly_series(store: RecordStore, *, now: datetime, tz: tzinfo, months: int = MONTHS_IN_SERIES):
    start, end = monthly_window(now, tz, months)
    return bucket_by_month(store.created_at_values(ALL.since(start, end)), tz)


def _inquiry_extras(store: RecordStore) -> dict[str, Any]:
    return {
        "new": store.count(ALL.narrowed(status="new")),
        "in_progress": store.count(ALL.narrowed(status="in-progress")),
        "by_project_type": sort_breakdown(store.group_count("project_type")),
        "by_budget": sort_breakdown(store.group_count("budget")),
    }


def _case_study_extras(store: RecordStore) -> dict[str, Any]:
    return {
        "featured": store.count(ALL.narrowed(featured=True)),
        "public": store.count(ALL.narrowed(is_public=True)),
        "by_category": sort_breakdown(store.group_count("category")),
    }


def _testimonial_extras(store: RecordStore) -> dict[str, Any]:
    return {
        "verified": store.count(ALL.narrowed(verified=True)),
        "featured": store.count(ALL.narrowed(featured=True)),
        "public": store.count(ALL.narrowed(is_public=True)),
        "average_rating": round_rating(store.average("rating")),
    }


_EXTRAS = {
    EntityKind.INQUIRY: _inquiry_extras,
    EntityKind.CASE_STUDY: _case_study_extras,
    EntityKind.TESTIMONIAL: _testimonial_extras,
}


def compute_entity_stats(
    db: Session,
    kind: EntityKind,
    *,
    now: datetime,
    tz: tzinfo = timezone.utc,
) -> EntityStats:
    store = RecordStore(db, kind)
    now = _aware(now)

    total = store.count()
    breakdown = sort_breakdown(store.group_count(BREAKDOWN_FIELD[kind]))
    this_month = store.count(ALL.since(month_start(now, tz)))
    recent = store.count(ALL.since(now - timedelta(days=RECENT_WINDOW_DAYS)))
    monthly = monthly_series(store, now=now, tz=tz)
    extras = _EXTRAS[kind](store)

    logger.debug(
        "entity_stats kind=%s total=%d this_month=%d recent=%d months=%d",
        kind.value,
        total,
        this_month,
        recent,
        len(monthly),
    )
    return EntityStats(
        kind=kind,
        total=total,
        breakdown=breakdown,
        this_month=this_month,
        recent=recent,
        monthly=monthly,
        extras=extras,
    )


def compute_rating_summary(db: Session) -> dict[str, Any]:
    """Rating distribution over published, verified testimonials, ascending by rating."""
    store = RecordStore(db, EntityKind.TESTIMONIAL)
    shown = ALL.narrowed(is_public=True, verified=True)
    distribution = sorted(store.group_count("rating", shown))
    return {
        "total": store.count(shown),
        "average": round_rating(store.average("rating", shown)),
        "distribution": breakdown_rows(distribution),
    }


def compute_system_stats(db: Session, *, now: datetime) -> dict[str, Any]:
    """Cross-entity totals, breakdowns and trailing-30-day counts."""
    now = _aware(now)
    since = ALL.since(now - timedelta(days=RECENT_WINDOW_DAYS))
    inquiries = RecordStore(db, EntityKind.INQUIRY)
    case_studies = RecordStore(db, EntityKind.CASE_STUDY)
    testimonials = RecordStore(db, EntityKind.TESTIMONIAL)

    return {
        "totals": {
            "inquiries": inquiries.count(),
            "case_studies": case_studies.count(),
            "testimonials": testimonials.count(),
        },
        "breakdowns": {
            "inquiry_status": breakdown_rows(sort_breakdown(inquiries.group_count("status"))),
            "case_study_status": breakdown_rows(sort_breakdown(case_studies.group_count("status"))),
            "case_study_category": breakdown_rows(sort_breakdown(case_studies.group_count("category"))),
        },
        "recent": {
            "inquiries": inquiries.count(since),
            "case_studies": case_studies.count(since),
            "testimonials": testimonials.count(since),
        },
    }


# ---------------------------------------------------------------------------
# Serialisation
# ---------------------------------------------------------------------------


def breakdown_rows(rows: list[tuple[Any, int]]) -> list[dict[str, Any]]:
    return [{"value": value, "count": count} for value, count in rows]


def series_rows(rows: list[tuple[int, int, int]]) -> list[dict[str, int]]:
    return [{"year": year, "month": month, "count": count} for year, month, count in rows]


def stats_to_dict(stats: EntityStats) -> dict[str, Any]:
    data: dict[str, Any] = {
        "total": stats.total,
        "this_month": stats.this_month,
        "recent": stats.recent,
        f"by_{BREAKDOWN_FIELD[stats.kind]}": breakdown_rows(stats.breakdown),
        "monthly": series_rows(stats.monthly),
    }
    for key, value in stats.extras.items():
        data[key] = breakdown_rows(value) if key.startswith("by_") else value
    return data
