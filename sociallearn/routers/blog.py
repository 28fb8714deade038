from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import String, cast, func, or_
from sqlmodel import Session, select

from sociallearn.core.timeutils import utc_now
from sociallearn.dependencies import get_db, require_permission
from sociallearn.models import BlogPost, BlogStatus, Permission, User
from sociallearn.schemas.blog import (
    BlogPostAdminRead,
    BlogPostCreate,
    BlogPostListRead,
    BlogPostRead,
    BlogPostSummaryRead,
    BlogPostUpdate,
)
from sociallearn.schemas.common import MessageRead, build_pagination
from sociallearn.services.pagination import count_rows, page_offset

router = APIRouter(prefix="/blog", tags=["blog"])
logger = logging.getLogger(__name__)


def _author_name(post: BlogPost) -> Optional[str]:
    return post.author.name if post.author else None


def _to_summary(post: BlogPost) -> BlogPostSummaryRead:
    return BlogPostSummaryRead(
        id=post.id or 0,
        title=post.title,
        slug=post.slug,
        excerpt=post.excerpt,
        featured_image=post.featured_image,
        tags=list(post.tags or []),
        published_at=post.published_at,
        created_at=post.created_at,
        author_name=_author_name(post),
    )


def _to_admin_read(post: BlogPost) -> BlogPostAdminRead:
    return BlogPostAdminRead(
        id=post.id or 0,
        title=post.title,
        slug=post.slug,
        status=post.status,
        tags=list(post.tags or []),
        published_at=post.published_at,
        created_at=post.created_at,
        updated_at=post.updated_at,
        author_name=_author_name(post),
    )


def _slug_taken(db: Session, slug: str, *, exclude_id: Optional[int] = None) -> bool:
    statement = select(BlogPost.id).where(BlogPost.slug == slug)
    if exclude_id is not None:
        statement = statement.where(BlogPost.id != exclude_id)
    return db.exec(statement).first() is not None


@router.get("", response_model=BlogPostListRead)
def list_posts(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=50),
    tag: Optional[str] = Query(default=None),
    search: Optional[str] = Query(default=None),
    db: Session = Depends(get_db),
) -> BlogPostListRead:
    statement = select(BlogPost).where(BlogPost.status == BlogStatus.published)
    if tag:
        # Tags are stored as a JSON array of strings.
        statement = statement.where(cast(BlogPost.tags, String).contains(f'"{tag.strip()}"'))
    if search:
        needle = search.strip().lower()
        statement = statement.where(
            or_(
                func.lower(BlogPost.title).contains(needle),
                func.lower(BlogPost.excerpt).contains(needle),
            )
        )

    total_count = count_rows(db, statement)
    posts = db.exec(
        statement.order_by(BlogPost.published_at.desc(), BlogPost.id.desc())
        .offset(page_offset(page, limit))
        .limit(limit)
    ).all()
    return BlogPostListRead(
        posts=[_to_summary(post) for post in posts],
        pagination=build_pagination(page=page, limit=limit, total_count=total_count),
    )


@router.get("/admin/all", response_model=list[BlogPostAdminRead])
def list_all_posts(
    status_filter: Optional[BlogStatus] = Query(default=None, alias="status"),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.manage_blog)),
) -> list[BlogPostAdminRead]:
    del current_user
    statement = select(BlogPost)
    if status_filter is not None:
        statement = statement.where(BlogPost.status == status_filter)
    posts = db.exec(statement.order_by(BlogPost.created_at.desc(), BlogPost.id.desc())).all()
    return [_to_admin_read(post) for post in posts]


@router.get("/{slug}", response_model=BlogPostRead)
def get_post(slug: str, db: Session = Depends(get_db)) -> BlogPostRead:
    post = db.exec(
        select(BlogPost).where(BlogPost.slug == slug).where(BlogPost.status == BlogStatus.published)
    ).first()
    if not post:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Blog post not found")

    return BlogPostRead(
        **_to_summary(post).model_dump(),
        content=post.content,
        meta_title=post.meta_title,
        meta_description=post.meta_description,
        updated_at=post.updated_at,
    )


@router.post("", response_model=BlogPostAdminRead, status_code=status.HTTP_201_CREATED)
def create_post(
    payload: BlogPostCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.manage_blog)),
) -> BlogPostAdminRead:
    slug = payload.slug.strip()
    if _slug_taken(db, slug):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Slug already exists")

    post = BlogPost(**payload.model_dump(exclude={"slug"}), slug=slug, author_id=current_user.id)
    if post.status == BlogStatus.published:
        post.published_at = utc_now()

    db.add(post)
    db.commit()
    db.refresh(post)
    logger.info("Blog post %s created by %s", post.id, current_user.id)
    return _to_admin_read(post)


@router.put("/{post_id}", response_model=BlogPostAdminRead)
def update_post(
    post_id: int,
    payload: BlogPostUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.manage_blog)),
) -> BlogPostAdminRead:
    del current_user
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    if not changes:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No valid fields to update")

    post = db.get(BlogPost, post_id)
    if not post:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Blog post not found")

    if "slug" in changes:
        changes["slug"] = changes["slug"].strip()
        if _slug_taken(db, changes["slug"], exclude_id=post_id):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Slug already exists")

    was_published = post.status == BlogStatus.published
    for key, value in changes.items():
        setattr(post, key, value)
    if post.status == BlogStatus.published and not was_published:
        post.published_at = utc_now()
    post.updated_at = utc_now()

    db.add(post)
    db.commit()
    db.refresh(post)
    return _to_admin_read(post)


@router.delete("/{post_id}", response_model=MessageRead)
def delete_post(
    post_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.delete_content)),
) -> MessageRead:
    post = db.get(BlogPost, post_id)
    if not post:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Blog post not found")

    db.delete(post)
    db.commit()
    logger.info("Blog post %s deleted by %s", post_id, current_user.id)
    return MessageRead(message="Blog post deleted successfully")
