from datetime import date, datetime
from enum import Enum
from typing import Any, Optional

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel

from sociallearn.core.timeutils import utc_now


class RankingType(str, Enum):
    platform_specific = "platform_specific"
    combined = "combined"


class Ranking(SQLModel, table=True):
    __tablename__ = "rankings"

    id: Optional[int] = Field(default=None, primary_key=True)
    institution_id: int = Field(foreign_key="institutions.id", index=True)
    platform_id: Optional[int] = Field(default=None, foreign_key="social_platforms.id", index=True)
    ranking_type: RankingType = Field(index=True)
    rank_position: int = Field(ge=1)
    score: float = Field(default=0.0)
    follower_score: float = Field(default=0.0)
    engagement_score: float = Field(default=0.0)
    growth_score: float = Field(default=0.0)
    calculation_date: date = Field(index=True)
    is_published: bool = Field(default=False, index=True)
    # "metadata" is reserved on declarative classes, so the attribute name differs from the column.
    details: dict[str, Any] = Field(default_factory=dict, sa_column=Column("metadata", JSON, nullable=False))
    created_at: datetime = Field(default_factory=utc_now)
