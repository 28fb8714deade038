from datetime import date, datetime
from typing import Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

from sociallearn.core.timeutils import utc_now


class SocialMetricBase(SQLModel):
    account_id: int = Field(foreign_key="social_accounts.id", index=True)
    data_date: date = Field(index=True)
    followers_count: int = Field(default=0, ge=0)
    following_count: int = Field(default=0, ge=0)
    posts_count: int = Field(default=0, ge=0)
    engagement_rate: float = Field(default=0.0, ge=0, le=100)
    avg_likes: float = Field(default=0.0, ge=0)
    avg_comments: float = Field(default=0.0, ge=0)
    avg_shares: float = Field(default=0.0, ge=0)
    monthly_growth: float = Field(default=0.0)
    total_engagement: int = Field(default=0, ge=0)


class SocialMetric(SocialMetricBase, table=True):
    __tablename__ = "social_metrics"
    __table_args__ = (UniqueConstraint("account_id", "data_date", name="uq_social_metrics_account_date"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    created_by: Optional[int] = Field(default=None, foreign_key="users.id")
    created_at: datetime = Field(default_factory=utc_now)

    account: "SocialAccount" = Relationship(back_populates="metrics")
