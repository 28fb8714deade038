from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from sqlmodel import Field, SQLModel

from sociallearn.models import InstitutionBase
from sociallearn.schemas.common import PaginationRead


class InstitutionCreate(InstitutionBase):
    name: str = Field(min_length=1, max_length=500)
    is_verified: bool = False
    is_published: bool = True


class InstitutionUpdate(SQLModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=500)
    short_name: Optional[str] = None
    country_id: Optional[int] = None
    type_id: Optional[int] = None
    website: Optional[str] = None
    logo_url: Optional[str] = None
    description: Optional[str] = None
    founded_year: Optional[int] = None
    student_count: Optional[int] = Field(default=None, ge=0)
    staff_count: Optional[int] = Field(default=None, ge=0)
    is_verified: Optional[bool] = None
    is_published: Optional[bool] = None


class InstitutionSummaryRead(SQLModel):
    id: int
    name: str
    short_name: Optional[str] = None
    website: Optional[str] = None
    logo_url: Optional[str] = None
    founded_year: Optional[int] = None
    student_count: Optional[int] = None
    country: Optional[str] = None
    country_code: Optional[str] = None
    institution_type: Optional[str] = None


class InstitutionListRead(SQLModel):
    institutions: list[InstitutionSummaryRead] = Field(default_factory=list)
    pagination: PaginationRead


class InstitutionWriteRead(SQLModel):
    id: int
    name: str
    created_at: datetime
    updated_at: datetime


class SocialAccountCreate(SQLModel):
    platform_id: int
    handle: str = Field(min_length=1)
    url: str
    is_verified: bool = False


class SocialAccountRead(SQLModel):
    id: int
    handle: str
    url: Optional[str] = None
    is_verified: bool
    platform_name: str
    display_name: str
    color_hex: Optional[str] = None
    icon_name: Optional[str] = None


class LatestMetricRead(SQLModel):
    platform_id: int
    platform_name: str
    followers_count: int
    engagement_rate: float
    total_engagement: int
    monthly_growth: float
    data_date: date


class InstitutionDetailRead(InstitutionSummaryRead):
    description: Optional[str] = None
    staff_count: Optional[int] = None
    is_verified: bool = False
    created_at: datetime
    updated_at: datetime
    social_accounts: list[SocialAccountRead] = Field(default_factory=list)
    latest_metrics: list[LatestMetricRead] = Field(default_factory=list)


class CountryRead(SQLModel):
    id: int
    name: str
    code: Optional[str] = None


class InstitutionTypeRead(SQLModel):
    id: int
    name: str
    description: Optional[str] = None
