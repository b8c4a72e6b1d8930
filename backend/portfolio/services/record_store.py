"""Typed access to the three entity collections.

Every read the reporting engine performs goes through :class:`RecordStore`:
exact-match filters, case-insensitive substring search, counting,
group-with-count and bounded+offset retrieval in a fixed newest-first order.
The filterable, searchable, groupable and listable fields of each entity are a closed
table (``ENTITY_TABLES``); asking for a field outside it is a programming
error and raises ``ValueError`` when the statement is built.

Store connectivity failures surface as ``StoreUnavailable``.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import desc, func, or_, select
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.orm import Session

from portfolio.core.errors import StoreUnavailable
from portfolio.models.portfolio import CaseStudy, Inquiry, Testimonial
from portfolio.schemas.enums import EntityKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EntityTable:
    kind: EntityKind
    model: type
    filterable: frozenset[str]
    searchable: tuple[str, ...]
    groupable: frozenset[str]
    listable: frozenset[str] = frozenset()


ENTITY_TABLES: dict[EntityKind, EntityTable] = {
    EntityKind.INQUIRY: EntityTable(
        kind=EntityKind.INQUIRY,
        model=Inquiry,
        filterable=frozenset({"status", "priority", "project_type", "source"}),
        searchable=("name", "email", "company"),
        groupable=frozenset({"status", "priority", "project_type", "source", "budget"}),
    ),
    EntityKind.CASE_STUDY: EntityTable(
        kind=EntityKind.CASE_STUDY,
        model=CaseStudy,
        filterable=frozenset({"status", "featured", "category", "type", "is_public"}),
        searchable=("title", "description", "client_name", "client_company"),
        groupable=frozenset({"status", "category", "type"}),
        listable=frozenset({"category", "type", "tags"}),
    ),
    EntityKind.TESTIMONIAL: EntityTable(
        kind=EntityKind.TESTIMONIAL,
        model=Testimonial,
        filterable=frozenset({"featured", "verified", "is_public", "rating", "case_study_id"}),
        searchable=("author_name", "company", "review"),
        groupable=frozenset({"rating"}),
    ),
}


@dataclass(frozen=True)
class RecordFilter:
    """Conjunction of exact matches, an optional search term and a creation window.

    ``created_from`` is inclusive, ``created_before`` exclusive.
    """

    equals: Mapping[str, Any] = field(default_factory=dict)
    search: Optional[str] = None
    created_from: Optional[datetime] = None
    created_before: Optional[datetime] = None

    def narrowed(self, **equals: Any) -> "RecordFilter":
        return RecordFilter(
            equals={**self.equals, **equals},
            search=self.search,
            created_from=self.created_from,
            created_before=self.created_before,
        )

    def since(self, created_from: datetime, created_before: Optional[datetime] = None) -> "RecordFilter":
        return RecordFilter(
            equals=self.equals,
            search=self.search,
            created_from=created_from,
            created_before=created_before,
        )


ALL = RecordFilter()


def parse_record_id(value: Any) -> Optional[uuid.UUID]:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError):
        return None


def as_utc(dt: datetime | None) -> datetime | None:
    """Stored timestamps come back naive from SQLite; they are UTC."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


@contextmanager
def _store_call(op: str, kind: EntityKind) -> Iterator[None]:
    try:
        yield
    except (OperationalError, InterfaceError, PoolTimeoutError) as exc:
        logger.warning("record_store_unavailable op=%s kind=%s error=%s", op, kind.value, type(exc).__name__)
        raise StoreUnavailable(detail=str(exc)) from exc


class RecordStore:
    """Queryable view of one entity collection bound to a session."""

    def __init__(self, db: Session, kind: EntityKind) -> None:
        self.db = db
        self.kind = kind
        self.table = ENTITY_TABLES[kind]
        self.model = self.table.model

    # -- statement building -------------------------------------------------

    def _dialect_name(self) -> str:
        dialect = getattr(getattr(self.db, "bind", None), "dialect", None)
        return (getattr(dialect, "name", "") or "").lower()

    def _as_db_dt(self, dt: datetime) -> datetime:
        dt_utc = as_utc(dt)
        if self._dialect_name() == "sqlite":
            return dt_utc.replace(tzinfo=None)
        return dt_utc

    def _column(self, name: str, allowed: frozenset[str] | tuple[str, ...], purpose: str):
        if name not in allowed:
            raise ValueError(f"{self.kind.value}: '{name}' is not a {purpose} field")
        return getattr(self.model, name)

    def _apply(self, stmt, flt: RecordFilter):
        for name, value in flt.equals.items():
            column = self._column(name, self.table.filterable, "filterable")
            if value is None:
                stmt = stmt.where(column.is_(None))
            else:
                stmt = stmt.where(column == value)

        term = (flt.search or "").strip()
        if term:
            pattern = f"%{_escape_like(term)}%"
            stmt = stmt.where(
                or_(*(getattr(self.model, name).ilike(pattern, escape="\\") for name in self.table.searchable))
            )

        if flt.created_from is not None:
            stmt = stmt.where(self.model.created_at >= self._as_db_dt(flt.created_from))
        if flt.created_before is not None:
            stmt = stmt.where(self.model.created_at < self._as_db_dt(flt.created_before))
        return stmt

    # -- reads --------------------------------------------------------------

    def count(self, flt: RecordFilter = ALL) -> int:
        stmt = self._apply(select(func.count()).select_from(self.model), flt)
        with _store_call("count", self.kind):
            return int(self.db.execute(stmt).scalar_one() or 0)

    def find_many(self, flt: RecordFilter = ALL, *, offset: int = 0, limit: Optional[int] = None) -> list:
        stmt = self._apply(select(self.model), flt)
        stmt = stmt.order_by(desc(self.model.created_at), desc(self.model.id)).offset(max(offset, 0))
        if limit is not None:
            stmt = stmt.limit(limit)
        with _store_call("find_many", self.kind):
            return list(self.db.execute(stmt).scalars().all())

    def group_count(self, field_name: str, flt: RecordFilter = ALL) -> list[tuple[Any, int]]:
        column = self._column(field_name, self.table.groupable, "groupable")
        stmt = self._apply(select(column, func.count()).select_from(self.model), flt).group_by(column)
        with _store_call("group_count", self.kind):
            rows = self.db.execute(stmt).all()
        return [(value, int(count)) for value, count in rows]

    def created_at_values(self, flt: RecordFilter = ALL) -> list[datetime]:
        stmt = self._apply(select(self.model.created_at), flt)
        with _store_call("created_at_values", self.kind):
            rows = self.db.execute(stmt).scalars().all()
        return [as_utc(value) for value in rows if value is not None]

    def column_values(self, field_name: str, flt: RecordFilter = ALL) -> list[Any]:
        column = self._column(field_name, self.table.listable, "listable")
        stmt = self._apply(select(column), flt)
        with _store_call("column_values", self.kind):
            return list(self.db.execute(stmt).scalars().all())

    def average(self, field_name: str, flt: RecordFilter = ALL) -> Optional[float]:
        column = self._column(field_name, self.table.groupable, "groupable")
        stmt = self._apply(select(func.avg(column)).select_from(self.model), flt).where(column.is_not(None))
        with _store_call("average", self.kind):
            value = self.db.execute(stmt).scalar_one_or_none()
        return None if value is None else float(value)

    def find_by_id(self, record_id: Any, *, for_update: bool = False):
        parsed = parse_record_id(record_id)
        if parsed is None:
            return None
        stmt = select(self.model).where(self.model.id == parsed)
        # SQLite has no SELECT ... FOR UPDATE; it serializes writers instead.
        if for_update and self._dialect_name() != "sqlite":
            stmt = stmt.with_for_update()
        with _store_call("find_by_id", self.kind):
            return self.db.execute(stmt).scalars().first()

    # -- writes (flush only; the caller owns the transaction) -----------------

    def create(self, fields: Mapping[str, Any]):
        record = self.model(**fields)
        with _store_call("create", self.kind):
            self.db.add(record)
            self.db.flush()
        return record

    def update(self, record_id: Any, fields: Mapping[str, Any]):
        record = self.find_by_id(record_id, for_update=True)
        if record is None:
            return None
        for name, value in fields.items():
            setattr(record, name, value)
        with _store_call("update", self.kind):
            self.db.flush()
        return record

    def delete(self, record_id: Any) -> bool:
        record = self.find_by_id(record_id, for_update=True)
        if record is None:
            return False
        with _store_call("delete", self.kind):
            self.db.delete(record)
            self.db.flush()
        return True
