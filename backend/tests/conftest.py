from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

from portfolio.core.config import get_settings
from portfolio.models.portfolio import Base, CaseStudy, Inquiry, Testimonial

NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def _reset_settings_cache():
    # Tests mutate env vars; never leak a cached Settings across tests.
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def make_engine(path):
    """File-backed SQLite so worker threads each get their own connection."""
    engine = create_engine(f"sqlite:///{path}", connect_args={"check_same_thread": False})

    @event.listens_for(engine, "connect")
    def _fk_on(dbapi_connection, _record):  # type: ignore[no-untyped-def]
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(engine)
    return engine


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def session_factory(tmp_path):
    engine = make_engine(tmp_path / "portfolio.db")
    yield sessionmaker(bind=engine, autocommit=False, autoflush=False)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


def _saver(db, model, defaults):
    def _add(*, days_ago: float = 1, created_at=None, **fields):
        values = {**defaults, **fields}
        values["created_at"] = created_at or NOW - timedelta(days=days_ago)
        record = model(**values)
        db.add(record)
        db.commit()
        db.refresh(record)
        return record

    return _add


@pytest.fixture
def add_inquiry(db):
    return _saver(
        db,
        Inquiry,
        {"name": "Jane Doe", "email": "jane@example.com", "project_type": "web", "message": "Need a web app"},
    )


@pytest.fixture
def add_case_study(db):
    return _saver(
        db,
        CaseStudy,
        {"title": "Shop app", "description": "E-commerce rebuild", "category": "mobile", "type": "ios"},
    )


@pytest.fixture
def add_testimonial(db):
    return _saver(db, Testimonial, {"author_name": "Sam Lee", "review": "Great work", "rating": 5})
