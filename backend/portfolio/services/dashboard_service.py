"""Admin dashboard composer.

Fans out one aggregation and one "recent records" listing per entity kind.
Every sub-call runs in a worker thread on its own session, so they never share
a connection. The first failure wins and no partial dashboard is returned.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime, timezone, tzinfo
from typing import Any

from sqlalchemy.orm import Session

from portfolio.core.errors import StoreUnavailable
from portfolio.schemas.enums import EntityKind
from portfolio.services.aggregation_service import compute_entity_stats, series_rows, stats_to_dict
from portfolio.services.listing_service import list_records
from portfolio.services.serializers import case_study_to_summary, inquiry_to_summary, testimonial_to_summary

logger = logging.getLogger(__name__)

DEFAULT_RECENT_LIMIT = 5
DEFAULT_TIMEOUT_SECONDS = 10.0

_SUMMARY = {
    EntityKind.INQUIRY: inquiry_to_summary,
    EntityKind.CASE_STUDY: case_study_to_summary,
    EntityKind.TESTIMONIAL: testimonial_to_summary,
}

_SECTION = {
    EntityKind.INQUIRY: "inquiries",
    EntityKind.CASE_STUDY: "case_studies",
    EntityKind.TESTIMONIAL: "testimonials",
}


def _with_session(session_factory: Callable[[], Session], work: Callable[[Session], Any]) -> Any:
    db = session_factory()
    try:
        return work(db)
    finally:
        db.close()


def _stats_job(session_factory, kind: EntityKind, now: datetime, tz: tzinfo):
    return _with_session(session_factory, lambda db: compute_entity_stats(db, kind, now=now, tz=tz))


def _recent_job(session_factory, kind: EntityKind, limit: int) -> list[dict[str, Any]]:
    def _work(db: Session) -> list[dict[str, Any]]:
        page = list_records(db, kind, page=1, page_size=limit, max_page_size=max(limit, 1))
        return [_SUMMARY[kind](record).model_dump(mode="json") for record in page.items]

    return _with_session(session_factory, _work)


async def build_dashboard(
    session_factory: Callable[[], Session],
    *,
    now: datetime,
    tz: tzinfo = timezone.utc,
    recent_limit: int = DEFAULT_RECENT_LIMIT,
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
) -> dict[str, Any]:
    kinds = list(EntityKind)
    jobs = [asyncio.to_thread(_stats_job, session_factory, kind, now, tz) for kind in kinds]
    jobs += [asyncio.to_thread(_recent_job, session_factory, kind, recent_limit) for kind in kinds]

    try:
        results = await asyncio.wait_for(asyncio.gather(*jobs), timeout=timeout_seconds)
    except asyncio.TimeoutError as exc:
        logger.warning("dashboard_timeout seconds=%s", timeout_seconds)
        raise StoreUnavailable("Dashboard timed out") from exc

    stats = dict(zip(kinds, results[: len(kinds)]))
    recent = dict(zip(kinds, results[len(kinds):]))

    sections = {_SECTION[kind]: stats_to_dict(stats[kind]) for kind in kinds}
    # Testimonial trend is not charted.
    sections["testimonials"].pop("monthly", None)

    return {
        "generated_at": now.astimezone(timezone.utc).isoformat() if now.tzinfo else now.isoformat(),
        **sections,
        "recent": {_SECTION[kind]: recent[kind] for kind in kinds},
        "analytics": {
            "monthly_inquiries": series_rows(stats[EntityKind.INQUIRY].monthly),
            "monthly_case_studies": series_rows(stats[EntityKind.CASE_STUDY].monthly),
        },
    }
