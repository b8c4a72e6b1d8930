from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from portfolio.schemas.common import blank_to_none


class TestimonialCreate(BaseModel):
    author_name: str = Field(min_length=1, max_length=50)
    author_title: Optional[str] = Field(default=None, max_length=100)
    company: Optional[str] = Field(default=None, max_length=100)
    review: str = Field(min_length=1, max_length=1000)
    # Range is checked by the mutation service so a bad rating is an InvalidValue.
    rating: int
    featured: Optional[bool] = None
    is_public: Optional[bool] = None
    verified: Optional[bool] = None
    avatar_url: Optional[str] = None
    industry: Optional[str] = Field(default=None, max_length=50)
    case_study_id: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _strip_blank(cls, values):
        return blank_to_none(values)


class TestimonialUpdate(BaseModel):
    author_name: Optional[str] = Field(default=None, min_length=1, max_length=50)
    author_title: Optional[str] = Field(default=None, max_length=100)
    company: Optional[str] = Field(default=None, max_length=100)
    review: Optional[str] = Field(default=None, min_length=1, max_length=1000)
    rating: Optional[int] = None
    featured: Optional[bool] = None
    is_public: Optional[bool] = None
    verified: Optional[bool] = None
    avatar_url: Optional[str] = None
    industry: Optional[str] = Field(default=None, max_length=50)
    case_study_id: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _strip_blank(cls, values):
        return blank_to_none(values)


class CaseStudyRef(BaseModel):
    id: str
    title: str
    category: str


class TestimonialSummary(BaseModel):
    id: str
    author_name: str
    company: Optional[str] = None
    rating: int
    verified: bool
    created_at: Optional[datetime] = None


class TestimonialOut(BaseModel):
    id: str
    author_name: str
    author_title: Optional[str] = None
    company: Optional[str] = None
    review: str
    rating: int
    featured: bool
    is_public: bool
    verified: bool
    avatar_url: Optional[str] = None
    industry: Optional[str] = None
    case_study_id: Optional[str] = None
    case_study: Optional[CaseStudyRef] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
