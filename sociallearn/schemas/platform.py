from typing import Optional

from sqlmodel import Field, SQLModel


class PlatformUpdate(SQLModel):
    weight: Optional[float] = Field(default=None, ge=0, le=5)
    is_active: Optional[bool] = None


class PlatformRead(SQLModel):
    id: int
    name: str
    display_name: str
    color_hex: Optional[str] = None
    icon_name: Optional[str] = None
    weight: float
    is_active: bool


class PlatformAdminRead(PlatformRead):
    account_count: int


class MethodologyPlatformRead(SQLModel):
    name: str
    display_name: str
    weight: float


class MethodologyRead(SQLModel):
    score_scale: float
    platform_score_components: list[str]
    growth_weighted: bool
    tie_breaker: str
    formulas: list[str] = Field(default_factory=list)
    platforms: list[MethodologyPlatformRead] = Field(default_factory=list)
