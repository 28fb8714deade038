from __future__ import annotations

from datetime import date, datetime
from typing import Any, Optional

from sqlmodel import Field, SQLModel

from sociallearn.models import SocialMetricBase


class MetricCreate(SocialMetricBase):
    pass


class MetricRead(SQLModel):
    id: int
    account_id: int
    data_date: date
    created_at: datetime


class MetricPointRead(SQLModel):
    followers_count: int
    engagement_rate: float
    total_engagement: int
    monthly_growth: float
    data_date: date


class PlatformInfoRead(SQLModel):
    name: str
    display_name: str
    color: Optional[str] = None
    handle: Optional[str] = None
    url: Optional[str] = None


class PlatformMetricsRead(SQLModel):
    platform_info: PlatformInfoRead
    metrics: list[MetricPointRead] = Field(default_factory=list)


class BulkUploadErrorRead(SQLModel):
    row_number: int
    row: dict[str, Any] = Field(default_factory=dict)
    error: str


class BulkUploadResultRead(SQLModel):
    total_rows: int
    success_count: int
    skipped_count: int
    error_count: int
    errors: list[BulkUploadErrorRead] = Field(default_factory=list)


class PlatformStatsRead(SQLModel):
    platform: str
    account_count: int
    avg_followers: int
    avg_engagement_rate: float
    total_engagement: int


class MetricExportRowRead(SQLModel):
    institution_name: str
    platform: str
    handle: str
    followers_count: int
    engagement_rate: float
    total_engagement: int
    monthly_growth: float
    data_date: date


class MetricExportInfoRead(SQLModel):
    total_records: int
    generated_at: datetime


class MetricExportRead(SQLModel):
    data: list[MetricExportRowRead] = Field(default_factory=list)
    export_info: MetricExportInfoRead
