from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import JSON, Column
from sqlmodel import Field, Relationship, SQLModel

from sociallearn.core.timeutils import utc_now


class BlogStatus(str, Enum):
    draft = "draft"
    published = "published"
    archived = "archived"


class BlogPost(SQLModel, table=True):
    __tablename__ = "blog_posts"

    id: Optional[int] = Field(default=None, primary_key=True)
    title: str = Field(max_length=500)
    slug: str = Field(index=True, max_length=500, sa_column_kwargs={"unique": True})
    content: str
    excerpt: Optional[str] = None
    featured_image: Optional[str] = None
    author_id: Optional[int] = Field(default=None, foreign_key="users.id", index=True)
    status: BlogStatus = Field(default=BlogStatus.draft, index=True)
    tags: list[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None
    published_at: Optional[datetime] = Field(default=None, index=True)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    author: Optional["User"] = Relationship(back_populates="blog_posts")
