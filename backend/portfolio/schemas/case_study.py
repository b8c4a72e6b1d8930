from datetime import date, datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, model_validator

from portfolio.schemas.common import blank_to_none


class CaseStudyImage(BaseModel):
    url: str = Field(min_length=1)
    alt: Optional[str] = None
    is_main: bool = False


class CaseStudyLinks(BaseModel):
    live_demo: Optional[str] = None
    play_store: Optional[str] = None
    app_store: Optional[str] = None
    github: Optional[str] = None
    figma: Optional[str] = None


class CaseStudyMetric(BaseModel):
    label: str
    value: str
    improvement: Optional[str] = None


class CaseStudyResults(BaseModel):
    description: Optional[str] = None
    metrics: List[CaseStudyMetric] = Field(default_factory=list)


class CaseStudyCreate(BaseModel):
    title: str = Field(min_length=1, max_length=100)
    description: str = Field(min_length=1, max_length=2000)
    category: str
    type: str
    tech_stack: List[str] = Field(default_factory=list)
    images: List[CaseStudyImage] = Field(default_factory=list)
    links: Optional[CaseStudyLinks] = None
    client_name: Optional[str] = Field(default=None, max_length=100)
    client_company: Optional[str] = Field(default=None, max_length=100)
    client_industry: Optional[str] = Field(default=None, max_length=100)
    status: Optional[str] = None
    featured: Optional[bool] = None
    is_public: Optional[bool] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    budget: Optional[str] = None
    results: Optional[CaseStudyResults] = None
    tags: List[str] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _strip_blank(cls, values):
        return blank_to_none(values)


class CaseStudyUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, min_length=1, max_length=2000)
    category: Optional[str] = None
    type: Optional[str] = None
    tech_stack: Optional[List[str]] = None
    images: Optional[List[CaseStudyImage]] = None
    links: Optional[CaseStudyLinks] = None
    client_name: Optional[str] = Field(default=None, max_length=100)
    client_company: Optional[str] = Field(default=None, max_length=100)
    client_industry: Optional[str] = Field(default=None, max_length=100)
    status: Optional[str] = None
    featured: Optional[bool] = None
    is_public: Optional[bool] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    budget: Optional[str] = None
    results: Optional[CaseStudyResults] = None
    tags: Optional[List[str]] = None

    @model_validator(mode="before")
    @classmethod
    def _strip_blank(cls, values):
        return blank_to_none(values)


class CaseStudySummary(BaseModel):
    id: str
    title: str
    category: str
    status: str
    created_at: Optional[datetime] = None


class CaseStudyOut(BaseModel):
    id: str
    title: str
    description: str
    category: str
    type: str
    tech_stack: List[str]
    images: List[Dict[str, Any]]
    links: Optional[Dict[str, Any]] = None
    client_name: Optional[str] = None
    client_company: Optional[str] = None
    client_industry: Optional[str] = None
    status: str
    featured: bool
    is_public: bool
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    duration_days: Optional[int] = None
    budget: Optional[str] = None
    results: Optional[Dict[str, Any]] = None
    tags: List[str]
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
