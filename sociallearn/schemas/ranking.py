from __future__ import annotations

from datetime import date
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict
from pydantic import Field as PydanticField
from sqlmodel import Field, SQLModel

from sociallearn.schemas.common import PaginationRead


class RecalculateRequest(BaseModel):
    # Admin clients send calculationDate; any other key is a 422.
    model_config = ConfigDict(extra="forbid")

    publish: bool = False
    calculation_date: Optional[date] = PydanticField(
        default=None,
        validation_alias=AliasChoices("calculation_date", "calculationDate"),
    )


class RecalculationResultRead(SQLModel):
    calculation_date: date
    platform_row_count: int
    combined_row_count: int
    published: bool


class PublishRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    calculation_date: date = PydanticField(validation_alias=AliasChoices("calculation_date", "calculationDate"))
    publish: bool = True


class PublishResultRead(SQLModel):
    calculation_date: date
    published: bool
    updated_rows: int


class SnapshotRead(SQLModel):
    calculation_date: date
    platform_row_count: int
    combined_row_count: int
    is_published: bool


class CombinedRankingRowRead(SQLModel):
    rank_position: int
    score: float
    follower_score: float
    engagement_score: float
    growth_score: float
    id: int
    name: str
    short_name: Optional[str] = None
    logo_url: Optional[str] = None
    website: Optional[str] = None
    country: Optional[str] = None
    country_code: Optional[str] = None
    institution_type: Optional[str] = None
    calculation_date: date


class CombinedRankingListRead(SQLModel):
    rankings: list[CombinedRankingRowRead] = Field(default_factory=list)
    latest_update: Optional[date] = None
    pagination: PaginationRead


class PlatformRankingRowRead(SQLModel):
    rank_position: int
    score: float
    follower_score: float
    engagement_score: float
    growth_score: float
    id: int
    name: str
    short_name: Optional[str] = None
    logo_url: Optional[str] = None
    country: Optional[str] = None
    followers_count: Optional[int] = None
    engagement_rate: Optional[float] = None
    total_engagement: Optional[int] = None
    handle: Optional[str] = None
    url: Optional[str] = None


class PlatformRankingListRead(SQLModel):
    platform: str
    rankings: list[PlatformRankingRowRead] = Field(default_factory=list)
    latest_update: Optional[date] = None
    pagination: PaginationRead


class HomepageRankingRead(SQLModel):
    rank_position: int
    score: float
    id: int
    name: str
    logo_url: Optional[str] = None
    website: Optional[str] = None
    country: Optional[str] = None
    platform_count: int


class TrendingInstitutionRead(SQLModel):
    id: int
    name: str
    logo_url: Optional[str] = None
    country: Optional[str] = None
    avg_growth: float
    total_followers: int


class PreviewRowRead(SQLModel):
    rank_position: int
    score: float
    id: int
    name: str
    short_name: Optional[str] = None
    logo_url: Optional[str] = None
    website: Optional[str] = None
    country: Optional[str] = None
    country_code: Optional[str] = None
    institution_type: Optional[str] = None


class PreviewRead(SQLModel):
    rankings: list[PreviewRowRead] = Field(default_factory=list)
    calculation_preview_date: date
