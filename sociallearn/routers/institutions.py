from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, or_
from sqlmodel import Session, select

from sociallearn.core.timeutils import utc_now
from sociallearn.dependencies import get_db, require_permission
from sociallearn.models import (
    Country,
    Institution,
    InstitutionType,
    Permission,
    SocialAccount,
    SocialPlatform,
    User,
)
from sociallearn.schemas.common import build_pagination
from sociallearn.schemas.institution import (
    CountryRead,
    InstitutionCreate,
    InstitutionDetailRead,
    InstitutionListRead,
    InstitutionSummaryRead,
    InstitutionTypeRead,
    InstitutionUpdate,
    InstitutionWriteRead,
    LatestMetricRead,
    SocialAccountCreate,
    SocialAccountRead,
)
from sociallearn.services.metrics import latest_metrics_by_account
from sociallearn.services.pagination import count_rows, page_offset

router = APIRouter(prefix="/institutions", tags=["institutions"])
logger = logging.getLogger(__name__)


def to_institution_summary(institution: Institution) -> InstitutionSummaryRead:
    country = institution.country
    institution_type = institution.institution_type
    return InstitutionSummaryRead(
        id=institution.id or 0,
        name=institution.name,
        short_name=institution.short_name,
        website=institution.website,
        logo_url=institution.logo_url,
        founded_year=institution.founded_year,
        student_count=institution.student_count,
        country=country.name if country else None,
        country_code=country.code if country else None,
        institution_type=institution_type.name if institution_type else None,
    )


def _to_write_read(institution: Institution) -> InstitutionWriteRead:
    return InstitutionWriteRead(
        id=institution.id or 0,
        name=institution.name,
        created_at=institution.created_at,
        updated_at=institution.updated_at,
    )


def _to_account_read(account: SocialAccount) -> SocialAccountRead:
    platform = account.platform
    return SocialAccountRead(
        id=account.id or 0,
        handle=account.handle,
        url=account.url,
        is_verified=account.is_verified,
        platform_name=platform.name,
        display_name=platform.display_name,
        color_hex=platform.color_hex,
        icon_name=platform.icon_name,
    )


def _ensure_reference(db: Session, model: type, reference_id: Optional[int], label: str) -> None:
    if reference_id is not None and db.get(model, reference_id) is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"{label} not found")


@router.get("/data/countries", response_model=list[CountryRead])
def list_countries(db: Session = Depends(get_db)) -> list[Country]:
    return list(db.exec(select(Country).order_by(Country.name)).all())


@router.get("/data/types", response_model=list[InstitutionTypeRead])
def list_institution_types(db: Session = Depends(get_db)) -> list[InstitutionType]:
    return list(db.exec(select(InstitutionType).order_by(InstitutionType.name)).all())


@router.get("", response_model=InstitutionListRead)
def list_institutions(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    country: Optional[str] = Query(default=None),
    type: Optional[str] = Query(default=None),
    search: Optional[str] = Query(default=None),
    db: Session = Depends(get_db),
) -> InstitutionListRead:
    statement = (
        select(Institution)
        .outerjoin(Country, Country.id == Institution.country_id)
        .outerjoin(InstitutionType, InstitutionType.id == Institution.type_id)
        .where(Institution.is_published.is_(True))
    )
    if country:
        statement = statement.where(func.lower(Country.name).contains(country.strip().lower()))
    if type:
        statement = statement.where(func.lower(InstitutionType.name).contains(type.strip().lower()))
    if search:
        needle = search.strip().lower()
        statement = statement.where(
            or_(
                func.lower(Institution.name).contains(needle),
                func.lower(Institution.short_name).contains(needle),
            )
        )

    total_count = count_rows(db, statement)
    institutions = db.exec(
        statement.order_by(Institution.name).offset(page_offset(page, limit)).limit(limit)
    ).all()
    return InstitutionListRead(
        institutions=[to_institution_summary(item) for item in institutions],
        pagination=build_pagination(page=page, limit=limit, total_count=total_count),
    )


@router.get("/{institution_id}", response_model=InstitutionDetailRead)
def get_institution(institution_id: int, db: Session = Depends(get_db)) -> InstitutionDetailRead:
    institution = db.get(Institution, institution_id)
    if not institution or not institution.is_published:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Institution not found")

    accounts = db.exec(
        select(SocialAccount)
        .join(SocialPlatform, SocialPlatform.id == SocialAccount.platform_id)
        .where(SocialAccount.institution_id == institution_id)
        .where(SocialPlatform.is_active.is_(True))
        .order_by(SocialPlatform.name)
    ).all()
    latest = latest_metrics_by_account(db, [account.id for account in accounts])

    latest_metrics = []
    for account in accounts:
        metric = latest.get(account.id or 0)
        if metric is None:
            continue
        latest_metrics.append(
            LatestMetricRead(
                platform_id=account.platform_id,
                platform_name=account.platform.name,
                followers_count=metric.followers_count,
                engagement_rate=metric.engagement_rate,
                total_engagement=metric.total_engagement,
                monthly_growth=metric.monthly_growth,
                data_date=metric.data_date,
            )
        )

    summary = to_institution_summary(institution)
    return InstitutionDetailRead(
        **summary.model_dump(),
        description=institution.description,
        staff_count=institution.staff_count,
        is_verified=institution.is_verified,
        created_at=institution.created_at,
        updated_at=institution.updated_at,
        social_accounts=[_to_account_read(account) for account in accounts],
        latest_metrics=latest_metrics,
    )


@router.post("", response_model=InstitutionWriteRead, status_code=status.HTTP_201_CREATED)
def create_institution(
    payload: InstitutionCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.manage_institutions)),
) -> InstitutionWriteRead:
    _ensure_reference(db, Country, payload.country_id, "Country")
    _ensure_reference(db, InstitutionType, payload.type_id, "Institution type")

    institution = Institution(**payload.model_dump(), created_by=current_user.id)
    institution.name = institution.name.strip()
    db.add(institution)
    db.commit()
    db.refresh(institution)
    logger.info("Institution %s created by %s", institution.id, current_user.id)
    return _to_write_read(institution)


@router.put("/{institution_id}", response_model=InstitutionWriteRead)
def update_institution(
    institution_id: int,
    payload: InstitutionUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.manage_institutions)),
) -> InstitutionWriteRead:
    del current_user
    changes = payload.model_dump(exclude_unset=True)
    if not changes:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No valid fields to update")

    institution = db.get(Institution, institution_id)
    if not institution:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Institution not found")

    _ensure_reference(db, Country, changes.get("country_id"), "Country")
    _ensure_reference(db, InstitutionType, changes.get("type_id"), "Institution type")

    for key, value in changes.items():
        setattr(institution, key, value)
    institution.updated_at = utc_now()

    db.add(institution)
    db.commit()
    db.refresh(institution)
    return _to_write_read(institution)


@router.post(
    "/{institution_id}/social-accounts",
    response_model=SocialAccountRead,
    status_code=status.HTTP_201_CREATED,
)
def add_social_account(
    institution_id: int,
    payload: SocialAccountCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.manage_institutions)),
) -> SocialAccountRead:
    institution = db.get(Institution, institution_id)
    if not institution:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Institution not found")

    platform = db.get(SocialPlatform, payload.platform_id)
    if not platform:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Platform not found")

    existing = db.exec(
        select(SocialAccount)
        .where(SocialAccount.institution_id == institution_id)
        .where(SocialAccount.platform_id == payload.platform_id)
    ).first()
    if existing:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Social account already exists for this platform",
        )

    account = SocialAccount(
        institution_id=institution_id,
        platform_id=payload.platform_id,
        handle=payload.handle.strip(),
        url=payload.url,
        is_verified=payload.is_verified,
    )
    db.add(account)
    db.commit()
    db.refresh(account)
    logger.info(
        "Social account %s (%s) added to institution %s by %s",
        account.id,
        platform.name,
        institution_id,
        current_user.id,
    )
    return _to_account_read(account)
