from __future__ import annotations

import logging
from datetime import date, timedelta

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func
from sqlmodel import Session, select

from sociallearn.core.security import get_password_hash
from sociallearn.core.timeutils import utc_now
from sociallearn.dependencies import get_db, require_permission
from sociallearn.models import (
    BlogPost,
    BlogStatus,
    Institution,
    Permission,
    SocialAccount,
    SocialMetric,
    SocialPlatform,
    User,
)
from sociallearn.routers.auth import to_user_read
from sociallearn.schemas.dashboard import (
    AdminDashboardRead,
    DashboardActivityRead,
    DashboardOverviewRead,
    DashboardPlatformRead,
)
from sociallearn.schemas.platform import PlatformAdminRead, PlatformRead, PlatformUpdate
from sociallearn.schemas.user import UserCreate, UserRead, UserUpdate
from sociallearn.services.metrics import platform_statistics, recent_metric_activity

router = APIRouter(prefix="/admin", tags=["admin"])
logger = logging.getLogger(__name__)


def _count(db: Session, statement) -> int:
    return int(db.exec(statement).one() or 0)


@router.get("/dashboard/stats", response_model=AdminDashboardRead)
def get_dashboard_stats(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.view_analytics)),
) -> AdminDashboardRead:
    del current_user

    overview = DashboardOverviewRead(
        total_institutions=_count(
            db, select(func.count(Institution.id)).where(Institution.is_published.is_(True))
        ),
        total_accounts=_count(db, select(func.count(SocialAccount.id))),
        recent_metrics=_count(
            db,
            select(func.count(SocialMetric.id)).where(SocialMetric.data_date >= date.today() - timedelta(days=30)),
        ),
        total_users=_count(db, select(func.count(User.id)).where(User.is_active.is_(True))),
        published_posts=_count(
            db, select(func.count(BlogPost.id)).where(BlogPost.status == BlogStatus.published)
        ),
    )

    platforms = [
        DashboardPlatformRead(
            platform=item.platform,
            account_count=item.account_count,
            avg_followers=round(item.avg_followers),
        )
        for item in platform_statistics(db)
    ]
    recent_activity = [
        DashboardActivityRead(
            type="metric_added",
            institution_name=institution_name,
            platform=platform_name,
            timestamp=created_at,
        )
        for institution_name, platform_name, created_at in recent_metric_activity(db)
    ]

    return AdminDashboardRead(
        generated_at=utc_now(),
        overview=overview,
        platforms=platforms,
        recent_activity=recent_activity,
    )


@router.get("/users", response_model=list[UserRead])
def list_users(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.manage_users)),
) -> list[UserRead]:
    del current_user
    users = db.exec(select(User).order_by(User.created_at.desc())).all()
    return [to_user_read(user) for user in users]


@router.post("/users", response_model=UserRead, status_code=status.HTTP_201_CREATED)
def create_user(
    payload: UserCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.manage_users)),
) -> UserRead:
    existing = db.exec(select(User).where(User.email == payload.email)).first()
    if existing:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="User already exists with this email")

    user = User(
        email=payload.email,
        name=payload.name,
        role=payload.role,
        hashed_password=get_password_hash(payload.password),
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("User %s created by %s with role %s", user.id, current_user.id, user.role.value)
    return to_user_read(user)


@router.put("/users/{user_id}", response_model=UserRead)
def update_user(
    user_id: int,
    payload: UserUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.manage_users)),
) -> UserRead:
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    if not changes:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No valid fields to update")

    if changes.get("is_active") is False and user_id == current_user.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot deactivate your own account")

    user = db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    if "name" in changes:
        changes["name"] = changes["name"].strip()
    for key, value in changes.items():
        setattr(user, key, value)
    user.updated_at = utc_now()

    db.add(user)
    db.commit()
    db.refresh(user)
    return to_user_read(user)


@router.get("/platforms", response_model=list[PlatformAdminRead])
def list_platforms(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.manage_platforms)),
) -> list[PlatformAdminRead]:
    del current_user

    counts = dict(
        db.exec(
            select(SocialAccount.platform_id, func.count(SocialAccount.id)).group_by(SocialAccount.platform_id)
        ).all()
    )
    platforms = db.exec(select(SocialPlatform).order_by(SocialPlatform.name)).all()
    return [
        PlatformAdminRead(
            **PlatformRead.model_validate(platform).model_dump(),
            account_count=int(counts.get(platform.id, 0)),
        )
        for platform in platforms
    ]


@router.put("/platforms/{platform_id}", response_model=PlatformRead)
def update_platform(
    platform_id: int,
    payload: PlatformUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.manage_platforms)),
) -> SocialPlatform:
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    if not changes:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No valid fields to update")

    platform = db.get(SocialPlatform, platform_id)
    if not platform:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Platform not found")

    for key, value in changes.items():
        setattr(platform, key, value)
    db.add(platform)
    db.commit()
    db.refresh(platform)
    logger.info(
        "Platform %s updated by %s: weight=%s is_active=%s",
        platform.name,
        current_user.id,
        platform.weight,
        platform.is_active,
    )
    return platform
