from datetime import datetime
from typing import List, Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

from sociallearn.core.timeutils import utc_now


class SocialPlatform(SQLModel, table=True):
    __tablename__ = "social_platforms"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True, sa_column_kwargs={"unique": True})
    display_name: str
    color_hex: Optional[str] = None
    icon_name: Optional[str] = None
    weight: float = Field(default=1.0, ge=0)
    is_active: bool = Field(default=True, index=True)

    accounts: List["SocialAccount"] = Relationship(back_populates="platform")


class SocialAccount(SQLModel, table=True):
    __tablename__ = "social_accounts"
    __table_args__ = (UniqueConstraint("institution_id", "platform_id", name="uq_social_accounts_institution_platform"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    institution_id: int = Field(foreign_key="institutions.id", index=True)
    platform_id: int = Field(foreign_key="social_platforms.id", index=True)
    handle: str
    url: Optional[str] = None
    is_verified: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utc_now)

    institution: "Institution" = Relationship(back_populates="social_accounts")
    platform: SocialPlatform = Relationship(back_populates="accounts")
    metrics: List["SocialMetric"] = Relationship(back_populates="account")
