import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    SmallInteger,
    String,
    Text,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.dialects.postgresql import UUID as PGUUID
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func
from sqlalchemy.types import CHAR, TypeDecorator

from portfolio.schemas.enums import (
    CaseStudyCategory,
    CaseStudyStatus,
    CaseStudyType,
    InquiryPriority,
    InquiryProjectType,
    InquirySource,
    InquiryStatus,
)

Base = declarative_base()


class GUID(TypeDecorator):
    impl = CHAR
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            return dialect.type_descriptor(PGUUID(as_uuid=True))
        return dialect.type_descriptor(CHAR(36))

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if isinstance(value, str):
            value = uuid.UUID(value)
        return value if dialect.name == "postgresql" else str(value)

    def process_result_value(self, value, dialect):
        if value is None or isinstance(value, uuid.UUID):
            return value
        return uuid.UUID(value)


UUID_TYPE = GUID()
JSON_TYPE = JSON().with_variant(JSONB, "postgresql")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _in_domain(column: str, enum_cls) -> str:
    values = ",".join(f"'{member.value}'" for member in enum_cls)
    return f"{column} IN ({values})"


class Inquiry(Base):
    __tablename__ = "inquiries"
    __table_args__ = (
        CheckConstraint(_in_domain("status", InquiryStatus), name="chk_inquiry_status"),
        CheckConstraint(_in_domain("priority", InquiryPriority), name="chk_inquiry_priority"),
        CheckConstraint(_in_domain("project_type", InquiryProjectType), name="chk_inquiry_project_type"),
        CheckConstraint(_in_domain("source", InquirySource), name="chk_inquiry_source"),
        Index("idx_inquiries_status_priority_created", "status", "priority", "created_at"),
        Index("idx_inquiries_project_type", "project_type"),
    )

    id = Column(UUID_TYPE, primary_key=True, default=uuid.uuid4)
    name = Column(String(50), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(20))
    company = Column(String(100))
    project_type = Column(String(32), nullable=False)
    budget = Column(String(32))
    timeline = Column(String(32))
    message = Column(Text, nullable=False)
    status = Column(String(32), nullable=False, default="new", server_default=text("'new'"))
    priority = Column(String(16), nullable=False, default="medium", server_default=text("'medium'"))
    source = Column(String(16), nullable=False, default="website", server_default=text("'website'"))
    assigned_to = Column(String(255))
    notes = Column(Text)
    follow_up_date = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        default=_utcnow,
        server_default=func.now(),
        onupdate=_utcnow,
        nullable=False,
    )


class CaseStudy(Base):
    __tablename__ = "case_studies"
    __table_args__ = (
        CheckConstraint(_in_domain("status", CaseStudyStatus), name="chk_case_study_status"),
        CheckConstraint(_in_domain("category", CaseStudyCategory), name="chk_case_study_category"),
        CheckConstraint(_in_domain("type", CaseStudyType), name="chk_case_study_type"),
        Index("idx_case_studies_public_featured", "is_public", "featured"),
        Index("idx_case_studies_created", "created_at"),
    )

    id = Column(UUID_TYPE, primary_key=True, default=uuid.uuid4)
    title = Column(String(100), nullable=False)
    description = Column(Text, nullable=False)
    category = Column(String(32), nullable=False)
    type = Column(String(32), nullable=False)
    tech_stack = Column(JSON_TYPE, nullable=False, default=list)
    images = Column(JSON_TYPE, nullable=False, default=list)
    links = Column(JSON_TYPE)
    client_name = Column(String(100))
    client_company = Column(String(100))
    client_industry = Column(String(100))
    status = Column(String(32), nullable=False, default="planning", server_default=text("'planning'"))
    featured = Column(Boolean, nullable=False, default=False, server_default=text("false"))
    is_public = Column(Boolean, nullable=False, default=True, server_default=text("true"))
    start_date = Column(Date)
    end_date = Column(Date)
    budget = Column(String(32))
    results = Column(JSON_TYPE)
    tags = Column(JSON_TYPE, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        default=_utcnow,
        server_default=func.now(),
        onupdate=_utcnow,
        nullable=False,
    )

    @property
    def duration_days(self):
        if self.start_date and self.end_date:
            return abs((self.end_date - self.start_date).days)
        return None


class Testimonial(Base):
    __tablename__ = "testimonials"
    __table_args__ = (
        CheckConstraint("rating BETWEEN 1 AND 5", name="chk_testimonial_rating"),
        Index("idx_testimonials_flags", "featured", "verified", "is_public"),
        Index("idx_testimonials_case_study", "case_study_id"),
    )

    id = Column(UUID_TYPE, primary_key=True, default=uuid.uuid4)
    author_name = Column(String(50), nullable=False)
    author_title = Column(String(100))
    company = Column(String(100))
    review = Column(Text, nullable=False)
    rating = Column(SmallInteger, nullable=False)
    featured = Column(Boolean, nullable=False, default=False, server_default=text("false"))
    is_public = Column(Boolean, nullable=False, default=True, server_default=text("true"))
    verified = Column(Boolean, nullable=False, default=False, server_default=text("false"))
    avatar_url = Column(Text)
    industry = Column(String(50))
    case_study_id = Column(UUID_TYPE, ForeignKey("case_studies.id", ondelete="SET NULL"))
    created_at = Column(DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        default=_utcnow,
        server_default=func.now(),
        onupdate=_utcnow,
        nullable=False,
    )
