import time

import pytest

import portfolio.services.dashboard_service as dashboard_module
from portfolio.core.errors import StoreUnavailable
from portfolio.services.dashboard_service import build_dashboard


@pytest.mark.asyncio
async def test_dashboard_layout(session_factory, add_inquiry, add_case_study, add_testimonial, now):
    add_inquiry(status="new", project_type="mobile", budget="under-10k")
    add_inquiry(status="closed", project_type="web", days_ago=40)
    add_case_study(featured=True)
    add_testimonial(rating=4, verified=True)

    data = await build_dashboard(session_factory, now=now)

    assert set(data) == {"generated_at", "inquiries", "case_studies", "testimonials", "recent", "analytics"}
    assert data["inquiries"]["total"] == 2
    assert data["inquiries"]["new"] == 1
    assert data["inquiries"]["in_progress"] == 0
    assert data["inquiries"]["by_budget"] == [{"value": "under-10k", "count": 1}, {"value": None, "count": 1}]
    assert data["inquiries"]["recent"] == 1
    assert data["inquiries"]["by_project_type"] == [{"value": "mobile", "count": 1}, {"value": "web", "count": 1}]
    assert data["case_studies"]["featured"] == 1
    assert data["testimonials"]["average_rating"] == 4.0
    assert data["testimonials"]["by_rating"] == [{"value": 4, "count": 1}]
    assert "monthly" not in data["testimonials"]
    assert data["analytics"]["monthly_inquiries"] == [
        {"year": 2024, "month": 5, "count": 1},
        {"year": 2024, "month": 6, "count": 1},
    ]
    assert [item["status"] for item in data["recent"]["inquiries"]] == ["new", "closed"]
    assert data["generated_at"].startswith("2024-06-15T12:00:00")


@pytest.mark.asyncio
async def test_dashboard_on_empty_store(session_factory, now):
    data = await build_dashboard(session_factory, now=now)

    assert data["inquiries"]["total"] == 0
    assert data["inquiries"]["by_status"] == []
    assert data["testimonials"]["average_rating"] == 0.0
    assert data["recent"] == {"inquiries": [], "case_studies": [], "testimonials": []}
    assert data["analytics"] == {"monthly_inquiries": [], "monthly_case_studies": []}


@pytest.mark.asyncio
async def test_recent_lists_respect_limit(session_factory, add_case_study, now):
    for i in range(4):
        add_case_study(title=f"Project {i}", days_ago=10 - i)

    data = await build_dashboard(session_factory, now=now, recent_limit=2)

    assert [item["title"] for item in data["recent"]["case_studies"]] == ["Project 3", "Project 2"]


@pytest.mark.asyncio
async def test_failing_sub_call_fails_whole_dashboard(session_factory, now, monkeypatch):
    original = dashboard_module.compute_entity_stats

    def _flaky(db, kind, **kwargs):
        if kind.value == "testimonials":
            raise StoreUnavailable("testimonials offline")
        return original(db, kind, **kwargs)

    monkeypatch.setattr(dashboard_module, "compute_entity_stats", _flaky)

    with pytest.raises(StoreUnavailable) as exc:
        await build_dashboard(session_factory, now=now)
    assert exc.value.message == "testimonials offline"


@pytest.mark.asyncio
async def test_deadline_exceeded_is_store_unavailable(session_factory, now, monkeypatch):
    original = dashboard_module.list_records

    def _slow(*args, **kwargs):
        time.sleep(0.3)
        return original(*args, **kwargs)

    monkeypatch.setattr(dashboard_module, "list_records", _slow)

    with pytest.raises(StoreUnavailable):
        await build_dashboard(session_factory, now=now, timeout_seconds=0.05)
