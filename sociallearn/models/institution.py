from datetime import datetime
from typing import List, Optional

from sqlmodel import Field, Relationship, SQLModel

from sociallearn.core.timeutils import utc_now


class Country(SQLModel, table=True):
    __tablename__ = "countries"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True, sa_column_kwargs={"unique": True})
    code: Optional[str] = Field(default=None, max_length=3)

    institutions: List["Institution"] = Relationship(back_populates="country")


class InstitutionType(SQLModel, table=True):
    __tablename__ = "institution_types"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True, sa_column_kwargs={"unique": True})
    description: Optional[str] = None

    institutions: List["Institution"] = Relationship(back_populates="institution_type")


class InstitutionBase(SQLModel):
    name: str = Field(index=True, max_length=500)
    short_name: Optional[str] = None
    country_id: Optional[int] = Field(default=None, foreign_key="countries.id", index=True)
    type_id: Optional[int] = Field(default=None, foreign_key="institution_types.id", index=True)
    website: Optional[str] = None
    logo_url: Optional[str] = None
    description: Optional[str] = None
    founded_year: Optional[int] = None
    student_count: Optional[int] = Field(default=None, ge=0)
    staff_count: Optional[int] = Field(default=None, ge=0)


class Institution(InstitutionBase, table=True):
    __tablename__ = "institutions"

    id: Optional[int] = Field(default=None, primary_key=True)
    is_verified: bool = Field(default=False)
    is_published: bool = Field(default=True, index=True)
    created_by: Optional[int] = Field(default=None, foreign_key="users.id")
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    country: Optional[Country] = Relationship(back_populates="institutions")
    institution_type: Optional[InstitutionType] = Relationship(back_populates="institutions")
    social_accounts: List["SocialAccount"] = Relationship(back_populates="institution")
