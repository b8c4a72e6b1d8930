"""Admin write paths: create, partial update and delete of a single record.

Every write validates all supplied fields before touching the record, so a
rejected request leaves the stored row exactly as it was. Each kind has a
closed table of writable fields; anything outside it is an ``InvalidValue``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from datetime import date, datetime, timezone
from typing import Any, Optional

from sqlalchemy import update as sa_update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from portfolio.core.auth import CurrentUser
from portfolio.core.errors import InvalidValue, NotFound, PortfolioError
from portfolio.models.portfolio import Testimonial
from portfolio.schemas.enums import (
    CaseStudyBudget,
    CaseStudyCategory,
    CaseStudyStatus,
    CaseStudyType,
    EntityKind,
    InquiryBudget,
    InquiryPriority,
    InquiryProjectType,
    InquirySource,
    InquiryStatus,
    InquiryTimeline,
)
from portfolio.services.record_store import RecordStore, parse_record_id

logger = logging.getLogger(__name__)

Check = Callable[[str, Any], Any]


# ---------------------------------------------------------------------------
# Field checks. Each returns the value to store or raises InvalidValue.
# ---------------------------------------------------------------------------


def _enum(enum_cls, *, nullable: bool = False) -> Check:
    allowed = [member.value for member in enum_cls]

    def _check(name: str, value: Any) -> Any:
        if value is None:
            if nullable:
                return None
            raise InvalidValue(f"'{name}' is required")
        raw = value.value if isinstance(value, enum_cls) else value
        if raw not in allowed:
            raise InvalidValue(f"'{name}' must be one of: {', '.join(allowed)}")
        return raw

    return _check


def _text(max_length: Optional[int] = None, *, nullable: bool = True) -> Check:
    def _check(name: str, value: Any) -> Any:
        if isinstance(value, str):
            value = value.strip() or None
        if value is None:
            if nullable:
                return None
            raise InvalidValue(f"'{name}' is required")
        if not isinstance(value, str):
            raise InvalidValue(f"'{name}' must be a string")
        if max_length is not None and len(value) > max_length:
            raise InvalidValue(f"'{name}' must be at most {max_length} characters")
        return value

    return _check


def _flag(name: str, value: Any) -> bool:
    if not isinstance(value, bool):
        raise InvalidValue(f"'{name}' must be a boolean")
    return value


def _rating(name: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidValue(f"'{name}' must be an integer between 1 and 5")
    if not 1 <= value <= 5:
        raise InvalidValue(f"'{name}' must be an integer between 1 and 5")
    return value


def _date(name: str, value: Any) -> Optional[date]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip())
        except ValueError as exc:
            raise InvalidValue(f"'{name}' must be an ISO date") from exc
    raise InvalidValue(f"'{name}' must be an ISO date")


def _timestamp(name: str, value: Any) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError as exc:
            raise InvalidValue(f"'{name}' must be an ISO timestamp") from exc
    if not isinstance(value, datetime):
        raise InvalidValue(f"'{name}' must be an ISO timestamp")
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _string_list(name: str, value: Any) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, (list, tuple)) or not all(isinstance(item, str) for item in value):
        raise InvalidValue(f"'{name}' must be a list of strings")
    return [item.strip() for item in value if item.strip()]


def _mapping_list(name: str, value: Any) -> list[dict]:
    if value is None:
        return []
    if not isinstance(value, (list, tuple)) or not all(isinstance(item, Mapping) for item in value):
        raise InvalidValue(f"'{name}' must be a list of objects")
    return [dict(item) for item in value]


def _mapping(name: str, value: Any) -> Optional[dict]:
    if value is None:
        return None
    if not isinstance(value, Mapping):
        raise InvalidValue(f"'{name}' must be an object")
    return dict(value)


# Placeholder check; the reference is resolved against the store in _validate.
def _record_ref(name: str, value: Any) -> Any:
    if value is None:
        return None
    parsed = parse_record_id(value)
    if parsed is None:
        raise InvalidValue(f"'{name}' is not a valid id")
    return parsed


# ---------------------------------------------------------------------------
# Writable field tables
# ---------------------------------------------------------------------------

INQUIRY_CREATE_FIELDS: dict[str, Check] = {
    "name": _text(50, nullable=False),
    "email": _text(255, nullable=False),
    "phone": _text(20),
    "company": _text(100),
    "project_type": _enum(InquiryProjectType),
    "budget": _enum(InquiryBudget, nullable=True),
    "timeline": _enum(InquiryTimeline, nullable=True),
    "message": _text(1000, nullable=False),
    "source": _enum(InquirySource),
}

INQUIRY_UPDATE_FIELDS: dict[str, Check] = {
    "status": _enum(InquiryStatus),
    "priority": _enum(InquiryPriority),
    "notes": _text(),
    "follow_up_date": _timestamp,
    "assigned_to": _text(255),
}

CASE_STUDY_FIELDS: dict[str, Check] = {
    "title": _text(100, nullable=False),
    "description": _text(2000, nullable=False),
    "category": _enum(CaseStudyCategory),
    "type": _enum(CaseStudyType),
    "tech_stack": _string_list,
    "images": _mapping_list,
    "links": _mapping,
    "client_name": _text(100),
    "client_company": _text(100),
    "client_industry": _text(100),
    "status": _enum(CaseStudyStatus),
    "featured": _flag,
    "is_public": _flag,
    "start_date": _date,
    "end_date": _date,
    "budget": _enum(CaseStudyBudget, nullable=True),
    "results": _mapping,
    "tags": _string_list,
}

TESTIMONIAL_FIELDS: dict[str, Check] = {
    "author_name": _text(50, nullable=False),
    "author_title": _text(100),
    "company": _text(100),
    "review": _text(1000, nullable=False),
    "rating": _rating,
    "featured": _flag,
    "is_public": _flag,
    "verified": _flag,
    "avatar_url": _text(),
    "industry": _text(50),
    "case_study_id": _record_ref,
}

UPDATE_FIELDS: dict[EntityKind, dict[str, Check]] = {
    EntityKind.INQUIRY: INQUIRY_UPDATE_FIELDS,
    EntityKind.CASE_STUDY: CASE_STUDY_FIELDS,
    EntityKind.TESTIMONIAL: TESTIMONIAL_FIELDS,
}

CREATE_FIELDS: dict[EntityKind, dict[str, Check]] = {
    EntityKind.INQUIRY: INQUIRY_CREATE_FIELDS,
    EntityKind.CASE_STUDY: CASE_STUDY_FIELDS,
    EntityKind.TESTIMONIAL: TESTIMONIAL_FIELDS,
}

REQUIRED_ON_CREATE: dict[EntityKind, tuple[str, ...]] = {
    EntityKind.INQUIRY: ("name", "email", "project_type", "message"),
    EntityKind.CASE_STUDY: ("title", "description", "category", "type"),
    EntityKind.TESTIMONIAL: ("author_name", "review", "rating"),
}


def _validate(db: Session, kind: EntityKind, table: dict[str, Check], fields: Mapping[str, Any]) -> dict[str, Any]:
    unknown = sorted(name for name in fields if name not in table)
    if unknown:
        raise InvalidValue(f"Unsupported field(s) for {kind.value}: {', '.join(unknown)}")

    clean = {name: table[name](name, value) for name, value in fields.items()}

    ref = clean.get("case_study_id")
    if ref is not None and RecordStore(db, EntityKind.CASE_STUDY).find_by_id(ref) is None:
        raise InvalidValue("'case_study_id' does not reference an existing case study")
    return clean


def _commit(db: Session, op: str, kind: EntityKind) -> None:
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        logger.warning("mutation_rejected op=%s kind=%s error=%s", op, kind.value, type(exc).__name__)
        raise InvalidValue("Record violates a store constraint", detail=str(exc.orig)) from exc
    except Exception:
        db.rollback()
        raise


def get_record(db: Session, kind: EntityKind, record_id: Any):
    record = RecordStore(db, kind).find_by_id(record_id)
    if record is None:
        raise NotFound(f"{kind.value} record not found")
    return record


def create_record(db: Session, kind: EntityKind, fields: Mapping[str, Any], *, actor: Optional[CurrentUser]):
    """Insert one record; nothing is persisted when any field is rejected.

    ``actor`` is None for anonymous public submissions (contact form).
    """
    missing = [name for name in REQUIRED_ON_CREATE[kind] if fields.get(name) is None]
    if missing:
        raise InvalidValue(f"Missing required field(s): {', '.join(missing)}")

    supplied = {name: value for name, value in fields.items() if value is not None}
    clean = _validate(db, kind, CREATE_FIELDS[kind], supplied)

    try:
        record = RecordStore(db, kind).create(clean)
    except PortfolioError:
        db.rollback()
        raise
    _commit(db, "create", kind)
    db.refresh(record)

    logger.info(
        "record_created kind=%s id=%s actor=%s",
        kind.value,
        record.id,
        actor.id if actor else "public",
    )
    return record


def update_record(
    db: Session,
    kind: EntityKind,
    record_id: Any,
    fields: Mapping[str, Any],
    *,
    actor: CurrentUser,
):
    """Apply a partial update. Only supplied keys are written."""
    store = RecordStore(db, kind)
    if store.find_by_id(record_id, for_update=True) is None:
        raise NotFound(f"{kind.value} record not found")

    try:
        clean = _validate(db, kind, UPDATE_FIELDS[kind], fields)
    except PortfolioError:
        db.rollback()
        raise

    if not clean:
        db.rollback()
        return get_record(db, kind, record_id)

    record = store.update(record_id, clean)
    _commit(db, "update", kind)
    db.refresh(record)

    logger.info(
        "record_updated kind=%s id=%s fields=%s actor=%s",
        kind.value,
        record.id,
        ",".join(sorted(clean)),
        actor.id,
    )
    return record


def delete_record(db: Session, kind: EntityKind, record_id: Any, *, actor: CurrentUser) -> None:
    store = RecordStore(db, kind)
    record = store.find_by_id(record_id, for_update=True)
    if record is None:
        raise NotFound(f"{kind.value} record not found")

    if kind == EntityKind.CASE_STUDY:
        # Not every dialect enforces ON DELETE SET NULL, so clear references here.
        db.execute(
            sa_update(Testimonial)
            .where(Testimonial.case_study_id == record.id)
            .values(case_study_id=None)
            .execution_options(synchronize_session="fetch")
        )

    store.delete(record.id)
    _commit(db, "delete", kind)

    logger.info("record_deleted kind=%s id=%s actor=%s", kind.value, record.id, actor.id)
