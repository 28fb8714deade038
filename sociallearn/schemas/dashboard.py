from __future__ import annotations

from datetime import datetime

from sqlmodel import Field, SQLModel


class DashboardOverviewRead(SQLModel):
    total_institutions: int
    total_accounts: int
    recent_metrics: int
    total_users: int
    published_posts: int


class DashboardPlatformRead(SQLModel):
    platform: str
    account_count: int
    avg_followers: int


class DashboardActivityRead(SQLModel):
    type: str
    institution_name: str
    platform: str
    timestamp: datetime


class AdminDashboardRead(SQLModel):
    generated_at: datetime
    overview: DashboardOverviewRead
    platforms: list[DashboardPlatformRead] = Field(default_factory=list)
    recent_activity: list[DashboardActivityRead] = Field(default_factory=list)
