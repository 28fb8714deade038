from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Iterable, Optional

from sqlalchemy import and_, func
from sqlmodel import Session, select

from sociallearn.core.timeutils import utc_now
from sociallearn.models import Institution, SocialAccount, SocialMetric, SocialPlatform


@dataclass(frozen=True)
class PlatformStat:
    platform: str
    account_count: int
    avg_followers: float
    avg_engagement_rate: float
    total_engagement: int


@dataclass(frozen=True)
class MetricExportFilters:
    institution_id: Optional[int] = None
    platform: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None


def latest_sample_dates(*, on_or_before: Optional[date] = None) -> Any:
    statement = select(
        SocialMetric.account_id.label("account_id"),
        func.max(SocialMetric.data_date).label("latest_date"),
    )
    if on_or_before is not None:
        statement = statement.where(SocialMetric.data_date <= on_or_before)
    return statement.group_by(SocialMetric.account_id).subquery()


def latest_metrics_by_account(
    session: Session,
    account_ids: Iterable[int],
    *,
    on_or_before: Optional[date] = None,
) -> dict[int, SocialMetric]:
    ids = [account_id for account_id in account_ids if account_id is not None]
    if not ids:
        return {}

    latest = latest_sample_dates(on_or_before=on_or_before)
    metrics = session.exec(
        select(SocialMetric)
        .join(
            latest,
            and_(
                SocialMetric.account_id == latest.c.account_id,
                SocialMetric.data_date == latest.c.latest_date,
            ),
        )
        .where(SocialMetric.account_id.in_(ids))
    ).all()
    return {metric.account_id: metric for metric in metrics}


def platform_statistics(session: Session) -> list[PlatformStat]:
    platforms = session.exec(
        select(SocialPlatform).where(SocialPlatform.is_active.is_(True)).order_by(SocialPlatform.name)
    ).all()
    accounts = session.exec(select(SocialAccount)).all()
    latest = latest_metrics_by_account(session, [account.id for account in accounts])

    stats: list[PlatformStat] = []
    for platform in platforms:
        platform_accounts = [account for account in accounts if account.platform_id == platform.id]
        samples = [latest[account.id] for account in platform_accounts if account.id in latest]
        sample_count = len(samples)
        stats.append(
            PlatformStat(
                platform=platform.display_name,
                account_count=len(platform_accounts),
                avg_followers=(sum(item.followers_count for item in samples) / sample_count) if sample_count else 0.0,
                avg_engagement_rate=(
                    sum(item.engagement_rate for item in samples) / sample_count if sample_count else 0.0
                ),
                total_engagement=sum(item.total_engagement for item in samples),
            )
        )

    stats.sort(key=lambda item: (-item.account_count, item.platform))
    return stats


def recent_metric_activity(session: Session, *, days: int = 7, limit: int = 10) -> list[tuple[str, str, datetime]]:
    since = utc_now() - timedelta(days=days)
    rows = session.exec(
        select(Institution.name, SocialPlatform.display_name, SocialMetric.created_at)
        .join(SocialAccount, SocialAccount.id == SocialMetric.account_id)
        .join(Institution, Institution.id == SocialAccount.institution_id)
        .join(SocialPlatform, SocialPlatform.id == SocialAccount.platform_id)
        .where(SocialMetric.created_at >= since)
        .order_by(SocialMetric.created_at.desc())
        .limit(limit)
    ).all()
    return [(institution_name, platform_name, created_at) for institution_name, platform_name, created_at in rows]


def export_metric_rows(session: Session, filters: MetricExportFilters) -> list[dict[str, Any]]:
    statement = (
        select(
            Institution.name,
            SocialPlatform.display_name,
            SocialAccount.handle,
            SocialMetric,
        )
        .join(SocialAccount, SocialAccount.id == SocialMetric.account_id)
        .join(Institution, Institution.id == SocialAccount.institution_id)
        .join(SocialPlatform, SocialPlatform.id == SocialAccount.platform_id)
    )
    if filters.institution_id is not None:
        statement = statement.where(SocialAccount.institution_id == filters.institution_id)
    if filters.platform:
        statement = statement.where(SocialPlatform.name == filters.platform)
    if filters.start_date is not None:
        statement = statement.where(SocialMetric.data_date >= filters.start_date)
    if filters.end_date is not None:
        statement = statement.where(SocialMetric.data_date <= filters.end_date)

    rows = session.exec(
        statement.order_by(Institution.name, SocialPlatform.display_name, SocialMetric.data_date.desc())
    ).all()
    return [
        {
            "institution_name": institution_name,
            "platform": platform_name,
            "handle": handle,
            "followers_count": metric.followers_count,
            "engagement_rate": metric.engagement_rate,
            "total_engagement": metric.total_engagement,
            "monthly_growth": metric.monthly_growth,
            "data_date": metric.data_date,
        }
        for institution_name, platform_name, handle, metric in rows
    ]
