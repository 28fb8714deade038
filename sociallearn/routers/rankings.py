from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func
from sqlmodel import Session, select

from sociallearn.core.config import settings
from sociallearn.dependencies import get_db, require_permission
from sociallearn.models import (
    Country,
    Institution,
    InstitutionType,
    Permission,
    Ranking,
    RankingType,
    SocialAccount,
    SocialMetric,
    SocialPlatform,
    User,
)
from sociallearn.schemas.common import build_pagination
from sociallearn.schemas.ranking import (
    CombinedRankingListRead,
    CombinedRankingRowRead,
    HomepageRankingRead,
    PlatformRankingListRead,
    PlatformRankingRowRead,
    PreviewRead,
    PreviewRowRead,
    PublishRequest,
    PublishResultRead,
    RecalculateRequest,
    RecalculationResultRead,
    SnapshotRead,
    TrendingInstitutionRead,
)
from sociallearn.services.metrics import latest_metrics_by_account
from sociallearn.services.pagination import count_rows, page_offset
from sociallearn.services.ranking import (
    RankingRecalculationError,
    latest_published_date,
    list_snapshots,
    preview_rankings,
    recalculate_rankings,
    set_snapshot_published,
)
from sociallearn.services.site_settings import get_setting_value

router = APIRouter(prefix="/rankings", tags=["rankings"])
logger = logging.getLogger(__name__)


def _published_rankings(ranking_type: RankingType, calculation_date: date):
    return (
        select(Ranking, Institution)
        .join(Institution, Institution.id == Ranking.institution_id)
        .where(Ranking.ranking_type == ranking_type)
        .where(Ranking.calculation_date == calculation_date)
        .where(Ranking.is_published.is_(True))
    )


@router.get("/combined", response_model=CombinedRankingListRead)
def get_combined_rankings(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=50, ge=1, le=100),
    country: Optional[str] = Query(default=None),
    type: Optional[str] = Query(default=None),
    db: Session = Depends(get_db),
) -> CombinedRankingListRead:
    latest_date = latest_published_date(db, RankingType.combined)
    if latest_date is None:
        return CombinedRankingListRead(pagination=build_pagination(page=1, limit=limit, total_count=0))

    statement = (
        _published_rankings(RankingType.combined, latest_date)
        .outerjoin(Country, Country.id == Institution.country_id)
        .outerjoin(InstitutionType, InstitutionType.id == Institution.type_id)
    )
    if country:
        statement = statement.where(func.lower(Country.name).contains(country.strip().lower()))
    if type:
        statement = statement.where(func.lower(InstitutionType.name).contains(type.strip().lower()))

    total_count = count_rows(db, statement)
    rows = db.exec(statement.order_by(Ranking.rank_position).offset(page_offset(page, limit)).limit(limit)).all()

    rankings = []
    for ranking, institution in rows:
        institution_country = institution.country
        institution_type = institution.institution_type
        rankings.append(
            CombinedRankingRowRead(
                rank_position=ranking.rank_position,
                score=ranking.score,
                follower_score=ranking.follower_score,
                engagement_score=ranking.engagement_score,
                growth_score=ranking.growth_score,
                id=institution.id or 0,
                name=institution.name,
                short_name=institution.short_name,
                logo_url=institution.logo_url,
                website=institution.website,
                country=institution_country.name if institution_country else None,
                country_code=institution_country.code if institution_country else None,
                institution_type=institution_type.name if institution_type else None,
                calculation_date=ranking.calculation_date,
            )
        )

    return CombinedRankingListRead(
        rankings=rankings,
        latest_update=latest_date,
        pagination=build_pagination(page=page, limit=limit, total_count=total_count),
    )


@router.get("/platform/{platform_name}", response_model=PlatformRankingListRead)
def get_platform_rankings(
    platform_name: str,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=50, ge=1, le=100),
    db: Session = Depends(get_db),
) -> PlatformRankingListRead:
    platform = db.exec(
        select(SocialPlatform)
        .where(SocialPlatform.name == platform_name)
        .where(SocialPlatform.is_active.is_(True))
    ).first()
    if not platform:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Platform not found")

    latest_date = latest_published_date(db, RankingType.platform_specific, platform_id=platform.id)
    if latest_date is None:
        return PlatformRankingListRead(
            platform=platform.display_name,
            pagination=build_pagination(page=1, limit=limit, total_count=0),
        )

    statement = _published_rankings(RankingType.platform_specific, latest_date).where(
        Ranking.platform_id == platform.id
    )
    total_count = count_rows(db, statement)
    rows = db.exec(statement.order_by(Ranking.rank_position).offset(page_offset(page, limit)).limit(limit)).all()

    institution_ids = [institution.id for _, institution in rows]
    accounts = {
        account.institution_id: account
        for account in db.exec(
            select(SocialAccount)
            .where(SocialAccount.platform_id == platform.id)
            .where(SocialAccount.institution_id.in_(institution_ids))
        ).all()
    }
    latest = latest_metrics_by_account(
        db,
        [account.id for account in accounts.values()],
        on_or_before=latest_date,
    )

    rankings = []
    for ranking, institution in rows:
        account = accounts.get(institution.id)
        metric = latest.get(account.id) if account else None
        rankings.append(
            PlatformRankingRowRead(
                rank_position=ranking.rank_position,
                score=ranking.score,
                follower_score=ranking.follower_score,
                engagement_score=ranking.engagement_score,
                growth_score=ranking.growth_score,
                id=institution.id or 0,
                name=institution.name,
                short_name=institution.short_name,
                logo_url=institution.logo_url,
                country=institution.country.name if institution.country else None,
                followers_count=metric.followers_count if metric else None,
                engagement_rate=metric.engagement_rate if metric else None,
                total_engagement=metric.total_engagement if metric else None,
                handle=account.handle if account else None,
                url=account.url if account else None,
            )
        )

    return PlatformRankingListRead(
        platform=platform.display_name,
        rankings=rankings,
        latest_update=latest_date,
        pagination=build_pagination(page=page, limit=limit, total_count=total_count),
    )


@router.get("/top/homepage", response_model=list[HomepageRankingRead])
def get_homepage_top(
    limit: Optional[int] = Query(default=None, ge=1, le=20),
    db: Session = Depends(get_db),
) -> list[HomepageRankingRead]:
    if limit is None:
        configured = get_setting_value(db, "homepage_top_n", settings.homepage_top_n)
        try:
            limit = min(max(int(configured), 1), 20)
        except (TypeError, ValueError):
            limit = settings.homepage_top_n

    latest_date = latest_published_date(db, RankingType.combined)
    if latest_date is None:
        return []

    rows = db.exec(
        _published_rankings(RankingType.combined, latest_date).order_by(Ranking.rank_position).limit(limit)
    ).all()
    institution_ids = [institution.id for _, institution in rows]
    platform_counts = dict(
        db.exec(
            select(SocialAccount.institution_id, func.count(SocialAccount.id))
            .where(SocialAccount.institution_id.in_(institution_ids))
            .group_by(SocialAccount.institution_id)
        ).all()
    )

    return [
        HomepageRankingRead(
            rank_position=ranking.rank_position,
            score=ranking.score,
            id=institution.id or 0,
            name=institution.name,
            logo_url=institution.logo_url,
            website=institution.website,
            country=institution.country.name if institution.country else None,
            platform_count=int(platform_counts.get(institution.id, 0)),
        )
        for ranking, institution in rows
    ]


@router.get("/trending", response_model=list[TrendingInstitutionRead])
def get_trending_institutions(
    limit: int = Query(default=10, ge=1, le=50),
    db: Session = Depends(get_db),
) -> list[TrendingInstitutionRead]:
    avg_growth = func.avg(SocialMetric.monthly_growth)
    rows = db.exec(
        select(
            Institution,
            avg_growth.label("avg_growth"),
            func.sum(SocialMetric.followers_count).label("total_followers"),
        )
        .join(SocialAccount, SocialAccount.institution_id == Institution.id)
        .join(SocialMetric, SocialMetric.account_id == SocialAccount.id)
        .where(Institution.is_published.is_(True))
        .where(SocialMetric.data_date >= date.today() - timedelta(days=30))
        .where(SocialMetric.monthly_growth > 0)
        .group_by(Institution.id)
        .having(func.count(func.distinct(SocialAccount.platform_id)) >= 2)
        .order_by(avg_growth.desc(), Institution.id)
        .limit(limit)
    ).all()

    return [
        TrendingInstitutionRead(
            id=institution.id or 0,
            name=institution.name,
            logo_url=institution.logo_url,
            country=institution.country.name if institution.country else None,
            avg_growth=round(float(growth or 0.0), 2),
            total_followers=int(total_followers or 0),
        )
        for institution, growth, total_followers in rows
    ]


@router.post("/recalculate", response_model=RecalculationResultRead)
def recalculate(
    payload: Optional[RecalculateRequest] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.manage_rankings)),
) -> RecalculationResultRead:
    request = payload or RecalculateRequest()
    logger.info(
        "Ranking recalculation requested by %s (date=%s publish=%s)",
        current_user.id,
        request.calculation_date,
        request.publish,
    )
    try:
        result = recalculate_rankings(
            db,
            publish=request.publish,
            calculation_date=request.calculation_date,
        )
    except RankingRecalculationError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Ranking recalculation failed",
        )

    return RecalculationResultRead(
        calculation_date=result.calculation_date,
        platform_row_count=result.platform_row_count,
        combined_row_count=result.combined_row_count,
        published=result.published,
    )


@router.get("/preview", response_model=PreviewRead)
def preview(
    limit: int = Query(default=100, ge=1, le=200),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.manage_rankings)),
) -> PreviewRead:
    del current_user
    combined = preview_rankings(db, limit=limit)
    institutions = {
        institution.id: institution
        for institution in db.exec(
            select(Institution).where(Institution.id.in_([item.institution_id for item in combined]))
        ).all()
    }

    rankings = []
    for item in combined:
        institution = institutions.get(item.institution_id)
        if institution is None:
            continue
        institution_country = institution.country
        institution_type = institution.institution_type
        rankings.append(
            PreviewRowRead(
                rank_position=item.rank_position,
                score=round(item.total_score, 2),
                id=institution.id or 0,
                name=institution.name,
                short_name=institution.short_name,
                logo_url=institution.logo_url,
                website=institution.website,
                country=institution_country.name if institution_country else None,
                country_code=institution_country.code if institution_country else None,
                institution_type=institution_type.name if institution_type else None,
            )
        )
    return PreviewRead(rankings=rankings, calculation_preview_date=date.today())


@router.post("/publish", response_model=PublishResultRead)
def publish_snapshot(
    payload: PublishRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.manage_rankings)),
) -> PublishResultRead:
    updated = set_snapshot_published(db, payload.calculation_date, payload.publish)
    if updated == 0:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No rankings for this date")

    logger.info("Snapshot %s publish=%s by %s", payload.calculation_date, payload.publish, current_user.id)
    return PublishResultRead(
        calculation_date=payload.calculation_date,
        published=payload.publish,
        updated_rows=updated,
    )


@router.get("/history", response_model=list[SnapshotRead])
def get_history(
    limit: int = Query(default=30, ge=1, le=365),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.manage_rankings)),
) -> list[SnapshotRead]:
    del current_user
    return [
        SnapshotRead(
            calculation_date=item.calculation_date,
            platform_row_count=item.platform_row_count,
            combined_row_count=item.combined_row_count,
            is_published=item.is_published,
        )
        for item in list_snapshots(db, limit=limit)
    ]
