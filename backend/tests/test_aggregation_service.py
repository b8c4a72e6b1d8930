from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from portfolio.schemas.enums import EntityKind
from portfolio.services.aggregation_service import (
    compute_entity_stats,
    compute_rating_summary,
    compute_system_stats,
    month_start,
    round_rating,
    stats_to_dict,
)


def _at(year, month, day, hour=12, minute=0):
    return datetime(year, month, day, hour, minute, tzinfo=timezone.utc)


def test_breakdown_sums_to_total(db, add_inquiry, now):
    for _ in range(3):
        add_inquiry(status="new")
    for _ in range(2):
        add_inquiry(status="in-progress")

    stats = compute_entity_stats(db, EntityKind.INQUIRY, now=now)

    assert stats.total == 5
    assert stats.breakdown == [("new", 3), ("in-progress", 2)]
    assert sum(count for _, count in stats.breakdown) == stats.total


def test_three_inquiries_over_two_months(db, add_inquiry, now):
    add_inquiry(status="new", created_at=_at(2024, 5, 10))
    add_inquiry(status="new", created_at=_at(2024, 6, 2))
    add_inquiry(status="completed", created_at=_at(2024, 6, 10))

    stats = compute_entity_stats(db, EntityKind.INQUIRY, now=now)

    assert stats.total == 3
    assert stats.breakdown == [("new", 2), ("completed", 1)]
    assert stats.monthly == [(2024, 5, 1), (2024, 6, 2)]
    assert sum(count for _, _, count in stats.monthly) == 3


def test_monthly_series_is_ascending_and_bounded(db, add_inquiry, now):
    add_inquiry(created_at=_at(2023, 12, 31, 23, 59))  # outside the 6-month window
    add_inquiry(created_at=_at(2024, 1, 1, 0, 0))
    add_inquiry(created_at=_at(2024, 3, 15))
    add_inquiry(created_at=_at(2024, 3, 20))
    add_inquiry(created_at=_at(2024, 6, 15, 11, 0))

    stats = compute_entity_stats(db, EntityKind.INQUIRY, now=now)
    keys = [(year, month) for year, month, _ in stats.monthly]

    assert stats.monthly == [(2024, 1, 1), (2024, 3, 2), (2024, 6, 1)]
    assert keys == sorted(set(keys))
    assert all(count > 0 for _, _, count in stats.monthly)


def test_this_month_and_recent_windows(db, add_inquiry, now):
    add_inquiry(created_at=_at(2024, 6, 1, 0, 0))  # this month, recent
    add_inquiry(created_at=_at(2024, 5, 20))  # recent only
    add_inquiry(created_at=_at(2024, 5, 1))  # neither

    stats = compute_entity_stats(db, EntityKind.INQUIRY, now=now)

    assert stats.this_month == 1
    assert stats.recent == 2


def test_reporting_timezone_moves_month_boundary(db, add_inquiry, now):
    # 22:30 UTC on May 31st is already June 1st in Vilnius (UTC+3 in summer).
    add_inquiry(created_at=_at(2024, 5, 31, 22, 30))

    utc_stats = compute_entity_stats(db, EntityKind.INQUIRY, now=now)
    local_stats = compute_entity_stats(db, EntityKind.INQUIRY, now=now, tz=ZoneInfo("Europe/Vilnius"))

    assert utc_stats.this_month == 0
    assert utc_stats.monthly == [(2024, 5, 1)]
    assert local_stats.this_month == 1
    assert local_stats.monthly == [(2024, 6, 1)]


def test_month_start_handles_year_rollover():
    jan = datetime(2024, 1, 15, tzinfo=timezone.utc)
    assert month_start(jan, timezone.utc, months_back=5) == datetime(2023, 8, 1, tzinfo=timezone.utc)


def test_empty_collections_yield_zeros(db, now):
    for kind in EntityKind:
        stats = compute_entity_stats(db, kind, now=now)
        assert stats.total == 0
        assert stats.breakdown == []
        assert stats.monthly == []
        assert stats.this_month == 0
        assert stats.recent == 0

    testimonials = compute_entity_stats(db, EntityKind.TESTIMONIAL, now=now)
    assert testimonials.extras["average_rating"] == 0.0


def test_testimonial_figures(db, add_testimonial, now):
    add_testimonial(rating=4, verified=True, featured=True)
    add_testimonial(rating=5, verified=True)
    add_testimonial(rating=5, is_public=False)

    stats = compute_entity_stats(db, EntityKind.TESTIMONIAL, now=now)

    assert stats.breakdown == [(5, 2), (4, 1)]
    assert stats.extras["average_rating"] == 4.7
    assert stats.extras["verified"] == 2
    assert stats.extras["featured"] == 1
    assert stats.extras["public"] == 2


def test_breakdown_ties_are_ordered_by_value(db, add_testimonial, now):
    add_testimonial(rating=3)
    add_testimonial(rating=1)

    stats = compute_entity_stats(db, EntityKind.TESTIMONIAL, now=now)

    assert stats.breakdown == [(1, 1), (3, 1)]


def test_round_rating_is_half_up():
    assert round_rating(4.25) == 4.3
    assert round_rating(4.35) == 4.4
    assert round_rating(None) == 0.0


def test_case_study_extras_and_serialisation(db, add_case_study, now):
    add_case_study(category="web", status="completed", featured=True)
    add_case_study(category="web", status="development", is_public=False)
    add_case_study(category="mobile", status="completed")

    data = stats_to_dict(compute_entity_stats(db, EntityKind.CASE_STUDY, now=now))

    assert data["total"] == 3
    assert data["featured"] == 1
    assert data["public"] == 2
    assert data["by_status"] == [{"value": "completed", "count": 2}, {"value": "development", "count": 1}]
    assert data["by_category"] == [{"value": "web", "count": 2}, {"value": "mobile", "count": 1}]
    assert data["monthly"] == [{"year": 2024, "month": 6, "count": 3}]


def test_system_stats(db, add_inquiry, add_case_study, add_testimonial, now):
    add_inquiry(status="new")
    add_inquiry(status="closed", days_ago=60)
    add_case_study(category="web")
    add_testimonial()

    data = compute_system_stats(db, now=now)

    assert data["totals"] == {"inquiries": 2, "case_studies": 1, "testimonials": 1}
    assert data["recent"] == {"inquiries": 1, "case_studies": 1, "testimonials": 1}
    assert data["breakdowns"]["inquiry_status"] == [{"value": "closed", "count": 1}, {"value": "new", "count": 1}]
    assert data["breakdowns"]["case_study_category"] == [{"value": "web", "count": 1}]


def test_inquiry_progress_and_budget_figures(db, add_inquiry, now):
    add_inquiry(status="in-progress", budget="10k-50k")
    add_inquiry(status="in-progress", budget="10k-50k")
    add_inquiry(status="new", budget="under-10k")
    add_inquiry(status="new")

    data = stats_to_dict(compute_entity_stats(db, EntityKind.INQUIRY, now=now))

    assert data["new"] == 2
    assert data["in_progress"] == 2
    assert data["by_budget"] == [
        {"value": "10k-50k", "count": 2},
        {"value": "under-10k", "count": 1},
        {"value": None, "count": 1},
    ]


def test_rating_summary_counts_only_public_verified(db, add_testimonial):
    add_testimonial(rating=5, verified=True)
    add_testimonial(rating=4, verified=True)
    add_testimonial(rating=4, verified=True)
    add_testimonial(rating=1, verified=False)
    add_testimonial(rating=2, verified=True, is_public=False)

    data = compute_rating_summary(db)

    assert data["total"] == 3
    assert data["average"] == 4.3
    assert data["distribution"] == [{"value": 4, "count": 2}, {"value": 5, "count": 1}]


def test_rating_summary_when_empty(db):
    assert compute_rating_summary(db) == {"total": 0, "average": 0.0, "distribution": []}
