from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlmodel import Field, SQLModel

from sociallearn.models import BlogStatus
from sociallearn.schemas.common import PaginationRead


class BlogPostCreate(SQLModel):
    title: str = Field(min_length=1, max_length=500)
    slug: str = Field(min_length=1, max_length=500)
    content: str = Field(min_length=1)
    excerpt: Optional[str] = None
    featured_image: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None
    status: BlogStatus


class BlogPostUpdate(SQLModel):
    title: Optional[str] = Field(default=None, max_length=500)
    slug: Optional[str] = Field(default=None, max_length=500)
    content: Optional[str] = None
    excerpt: Optional[str] = None
    featured_image: Optional[str] = None
    tags: Optional[list[str]] = None
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None
    status: Optional[BlogStatus] = None


class BlogPostSummaryRead(SQLModel):
    id: int
    title: str
    slug: str
    excerpt: Optional[str] = None
    featured_image: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    published_at: Optional[datetime] = None
    created_at: datetime
    author_name: Optional[str] = None


class BlogPostRead(BlogPostSummaryRead):
    content: str
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None
    updated_at: datetime


class BlogPostAdminRead(SQLModel):
    id: int
    title: str
    slug: str
    status: BlogStatus
    tags: list[str] = Field(default_factory=list)
    published_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    author_name: Optional[str] = None


class BlogPostListRead(SQLModel):
    posts: list[BlogPostSummaryRead] = Field(default_factory=list)
    pagination: PaginationRead
