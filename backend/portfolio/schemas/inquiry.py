from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from portfolio.schemas.common import blank_to_none

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[A-Za-z]{2,}$"


class InquiryCreate(BaseModel):
    name: str = Field(min_length=1, max_length=50)
    email: str = Field(max_length=255, pattern=EMAIL_PATTERN)
    phone: Optional[str] = Field(default=None, max_length=20)
    company: Optional[str] = Field(default=None, max_length=100)
    project_type: str
    budget: Optional[str] = None
    timeline: Optional[str] = None
    message: str = Field(min_length=1, max_length=1000)
    source: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _strip_blank(cls, values):
        return blank_to_none(values)


class InquiryUpdate(BaseModel):
    status: Optional[str] = None
    priority: Optional[str] = None
    notes: Optional[str] = None
    follow_up_date: Optional[datetime] = None
    assigned_to: Optional[str] = Field(default=None, max_length=255)

    @model_validator(mode="before")
    @classmethod
    def _strip_blank(cls, values):
        return blank_to_none(values)


class InquirySummary(BaseModel):
    id: str
    name: str
    email: str
    project_type: str
    status: str
    created_at: Optional[datetime] = None


class InquiryOut(BaseModel):
    id: str
    name: str
    email: str
    phone: Optional[str] = None
    company: Optional[str] = None
    project_type: str
    budget: Optional[str] = None
    timeline: Optional[str] = None
    message: str
    status: str
    priority: str
    source: str
    assigned_to: Optional[str] = None
    notes: Optional[str] = None
    follow_up_date: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
