from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from sqlmodel import Field, SQLModel

from sociallearn.models import SettingType


class SettingCreate(SQLModel):
    key: str = Field(min_length=1, max_length=255)
    value: Any
    type: SettingType
    description: Optional[str] = None
    is_public: bool = False


class SettingUpdate(SQLModel):
    value: Any
    type: Optional[SettingType] = None


class SettingRead(SQLModel):
    id: int
    setting_key: str
    setting_value: Optional[str] = None
    setting_type: SettingType
    description: Optional[str] = None
    is_public: bool
    updated_at: datetime
