from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from sqlmodel import Field, SQLModel

from sociallearn.core.timeutils import utc_now


class SettingType(str, Enum):
    text = "text"
    json = "json"
    boolean = "boolean"
    number = "number"


class SiteSetting(SQLModel, table=True):
    __tablename__ = "site_settings"

    id: Optional[int] = Field(default=None, primary_key=True)
    setting_key: str = Field(index=True, max_length=255, sa_column_kwargs={"unique": True})
    setting_value: Optional[str] = None
    setting_type: SettingType = Field(default=SettingType.text)
    description: Optional[str] = None
    is_public: bool = Field(default=False, index=True)
    updated_by: Optional[int] = Field(default=None, foreign_key="users.id")
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
