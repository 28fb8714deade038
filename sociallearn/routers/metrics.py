from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Literal, Optional

import pandas as pd
from fastapi import APIRouter, Depends, File, HTTPException, Query, Response, UploadFile, status
from sqlmodel import Session, select

from sociallearn.core.config import settings
from sociallearn.core.timeutils import utc_now
from sociallearn.dependencies import get_db, require_permission
from sociallearn.models import Institution, Permission, SocialAccount, SocialMetric, SocialPlatform, User
from sociallearn.schemas.metric import (
    BulkUploadErrorRead,
    BulkUploadResultRead,
    MetricCreate,
    MetricExportInfoRead,
    MetricExportRead,
    MetricExportRowRead,
    MetricPointRead,
    MetricRead,
    PlatformInfoRead,
    PlatformMetricsRead,
    PlatformStatsRead,
)
from sociallearn.services.metrics import MetricExportFilters, export_metric_rows, platform_statistics
from sociallearn.services.metrics_import import MetricImportError, import_metric_rows, read_metric_rows

router = APIRouter(prefix="/metrics", tags=["metrics"])
logger = logging.getLogger(__name__)


@router.get("/institution/{institution_id}", response_model=dict[str, PlatformMetricsRead])
def get_institution_metrics(
    institution_id: int,
    platform: Optional[str] = Query(default=None),
    days: int = Query(default=180, ge=30, le=365),
    db: Session = Depends(get_db),
) -> dict[str, PlatformMetricsRead]:
    institution = db.get(Institution, institution_id)
    if not institution or not institution.is_published:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Institution not found")

    statement = (
        select(SocialMetric, SocialAccount, SocialPlatform)
        .join(SocialAccount, SocialAccount.id == SocialMetric.account_id)
        .join(SocialPlatform, SocialPlatform.id == SocialAccount.platform_id)
        .where(SocialAccount.institution_id == institution_id)
        .where(SocialPlatform.is_active.is_(True))
        .where(SocialMetric.data_date >= date.today() - timedelta(days=days))
    )
    if platform:
        statement = statement.where(SocialPlatform.name == platform)

    grouped: dict[str, PlatformMetricsRead] = {}
    rows = db.exec(statement.order_by(SocialPlatform.name, SocialMetric.data_date)).all()
    for metric, account, social_platform in rows:
        entry = grouped.get(social_platform.name)
        if entry is None:
            entry = PlatformMetricsRead(
                platform_info=PlatformInfoRead(
                    name=social_platform.name,
                    display_name=social_platform.display_name,
                    color=social_platform.color_hex,
                    handle=account.handle,
                    url=account.url,
                )
            )
            grouped[social_platform.name] = entry
        entry.metrics.append(
            MetricPointRead(
                followers_count=metric.followers_count,
                engagement_rate=metric.engagement_rate,
                total_engagement=metric.total_engagement,
                monthly_growth=metric.monthly_growth,
                data_date=metric.data_date,
            )
        )
    return grouped


@router.post("", response_model=MetricRead, status_code=status.HTTP_201_CREATED)
def add_metric(
    payload: MetricCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.manage_metrics)),
) -> SocialMetric:
    account = db.get(SocialAccount, payload.account_id)
    if not account:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Social account not found")

    existing = db.exec(
        select(SocialMetric)
        .where(SocialMetric.account_id == payload.account_id)
        .where(SocialMetric.data_date == payload.data_date)
    ).first()
    if existing:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Metrics for this date already exist",
        )

    metric = SocialMetric(**payload.model_dump(), created_by=current_user.id)
    db.add(metric)
    db.commit()
    db.refresh(metric)
    logger.info("Metric %s added for account %s by %s", metric.id, metric.account_id, current_user.id)
    return metric


@router.post("/bulk-upload", response_model=BulkUploadResultRead)
async def bulk_upload_metrics(
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.manage_metrics)),
) -> BulkUploadResultRead:
    payload = await file.read(settings.bulk_upload_max_bytes + 1)
    if len(payload) > settings.bulk_upload_max_bytes:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Uploaded file is too large")

    try:
        rows = read_metric_rows(payload, filename=file.filename, content_type=file.content_type)
    except MetricImportError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))

    result = import_metric_rows(
        db,
        rows,
        created_by=current_user.id,
        error_limit=settings.bulk_upload_error_limit,
    )
    return BulkUploadResultRead(
        total_rows=result.total_rows,
        success_count=result.success_count,
        skipped_count=result.skipped_count,
        error_count=result.error_count,
        errors=[
            BulkUploadErrorRead(row_number=item.row_number, row=item.row, error=item.error)
            for item in result.errors
        ],
    )


@router.get("/stats/platforms", response_model=list[PlatformStatsRead])
def get_platform_stats(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.view_analytics)),
) -> list[PlatformStatsRead]:
    del current_user
    return [
        PlatformStatsRead(
            platform=item.platform,
            account_count=item.account_count,
            avg_followers=round(item.avg_followers),
            avg_engagement_rate=round(item.avg_engagement_rate, 2),
            total_engagement=item.total_engagement,
        )
        for item in platform_statistics(db)
    ]


@router.get("/export", response_model=MetricExportRead)
def export_metrics(
    format: Literal["csv", "json"] = Query(default="csv"),
    institution_id: Optional[int] = Query(default=None),
    platform: Optional[str] = Query(default=None),
    start_date: Optional[date] = Query(default=None),
    end_date: Optional[date] = Query(default=None),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.export_data)),
):
    filters = MetricExportFilters(
        institution_id=institution_id,
        platform=platform,
        start_date=start_date,
        end_date=end_date,
    )
    rows = export_metric_rows(db, filters)
    logger.info("User %s exported %d metric rows as %s", current_user.id, len(rows), format)

    if format == "csv":
        frame = pd.DataFrame(rows, columns=list(MetricExportRowRead.model_fields))
        filename = f"social_metrics_{date.today().isoformat()}.csv"
        return Response(
            content=frame.to_csv(index=False),
            media_type="text/csv",
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )

    return MetricExportRead(
        data=[MetricExportRowRead(**row) for row in rows],
        export_info=MetricExportInfoRead(total_records=len(rows), generated_at=utc_now()),
    )
