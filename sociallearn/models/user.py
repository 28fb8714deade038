from datetime import datetime
from typing import List, Optional

from sqlmodel import Field, Relationship, SQLModel

from sociallearn.core.permissions import Permission, Role, permissions_for
from sociallearn.core.timeutils import utc_now


class UserBase(SQLModel):
    email: str = Field(index=True, sa_column_kwargs={"unique": True})
    name: str


class User(UserBase, table=True):
    __tablename__ = "users"

    id: Optional[int] = Field(default=None, primary_key=True)
    hashed_password: str
    role: Role = Field(default=Role.editor, index=True)
    is_active: bool = Field(default=True, index=True)
    last_login: Optional[datetime] = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    blog_posts: List["BlogPost"] = Relationship(back_populates="author")

    @property
    def permissions(self) -> frozenset[Permission]:
        return permissions_for(self.role)

    def can(self, permission: Permission) -> bool:
        return permission in self.permissions
