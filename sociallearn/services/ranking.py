from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional

from sqlalchemy import and_, case, func, text
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from sociallearn.models import Ranking, RankingType, SocialAccount, SocialMetric, SocialPlatform
from sociallearn.services.metrics import latest_sample_dates
from sociallearn.services.scoring import (
    CombinedScore,
    LatestSample,
    PlatformScoreInput,
    combine_platform_scores,
    preview_combined_scores,
    round_score,
    score_platforms,
)

logger = logging.getLogger(__name__)

SNAPSHOT_LOCK_NAMESPACE = 0x534C0000


class RankingRecalculationError(RuntimeError):
    pass


@dataclass(frozen=True)
class RecalculationResult:
    calculation_date: date
    platform_row_count: int
    combined_row_count: int
    published: bool


@dataclass(frozen=True)
class SnapshotSummary:
    calculation_date: date
    platform_row_count: int
    combined_row_count: int
    is_published: bool


def load_latest_samples(session: Session) -> list[LatestSample]:
    latest = latest_sample_dates()
    rows = session.exec(
        select(SocialMetric, SocialAccount.institution_id, SocialAccount.platform_id)
        .join(
            latest,
            and_(
                SocialMetric.account_id == latest.c.account_id,
                SocialMetric.data_date == latest.c.latest_date,
            ),
        )
        .join(SocialAccount, SocialAccount.id == SocialMetric.account_id)
        .join(SocialPlatform, SocialPlatform.id == SocialAccount.platform_id)
        .where(SocialPlatform.is_active.is_(True))
        .order_by(SocialMetric.account_id)
    ).all()

    return [
        LatestSample(
            account_id=metric.account_id,
            institution_id=institution_id,
            platform_id=platform_id,
            followers_count=metric.followers_count,
            engagement_rate=metric.engagement_rate,
            monthly_growth=metric.monthly_growth,
            total_engagement=metric.total_engagement,
            data_date=metric.data_date,
        )
        for metric, institution_id, platform_id in rows
    ]


def load_active_weights(session: Session) -> dict[int, float]:
    rows = session.exec(
        select(SocialPlatform.id, SocialPlatform.weight).where(SocialPlatform.is_active.is_(True))
    ).all()
    return {int(platform_id): float(weight if weight is not None else 1.0) for platform_id, weight in rows}


def _insert_platform_rows(session: Session, calculation_date: date, publish: bool) -> int:
    platform_scores = score_platforms(load_latest_samples(session))
    for item in platform_scores:
        session.add(
            Ranking(
                institution_id=item.institution_id,
                platform_id=item.platform_id,
                ranking_type=RankingType.platform_specific,
                rank_position=item.rank_position,
                score=round_score(item.platform_score),
                follower_score=round_score(item.follower_score),
                engagement_score=round_score(item.engagement_score),
                growth_score=round_score(item.growth_score),
                calculation_date=calculation_date,
                is_published=publish,
                details={
                    "account_id": item.account_id,
                    "data_date": item.data_date.isoformat() if item.data_date else None,
                },
            )
        )
    session.flush()
    return len(platform_scores)


def _insert_combined_rows(session: Session, calculation_date: date, publish: bool) -> int:
    persisted = session.exec(
        select(
            Ranking.institution_id,
            Ranking.platform_id,
            Ranking.follower_score,
            Ranking.engagement_score,
        )
        .where(Ranking.calculation_date == calculation_date)
        .where(Ranking.ranking_type == RankingType.platform_specific)
    ).all()

    combined = combine_platform_scores(
        (
            PlatformScoreInput(
                institution_id=institution_id,
                platform_id=platform_id,
                follower_score=follower_score,
                engagement_score=engagement_score,
            )
            for institution_id, platform_id, follower_score, engagement_score in persisted
        ),
        load_active_weights(session),
    )
    for item in combined:
        session.add(
            Ranking(
                institution_id=item.institution_id,
                platform_id=None,
                ranking_type=RankingType.combined,
                rank_position=item.rank_position,
                score=round_score(item.total_score),
                follower_score=0.0,
                engagement_score=0.0,
                growth_score=0.0,
                calculation_date=calculation_date,
                is_published=publish,
                details={"platform_ids": list(item.platform_ids)},
            )
        )
    session.flush()
    return len(combined)


def lock_snapshot_date(session: Session, calculation_date: date) -> bool:
    """Serialize writers of one calculation date on PostgreSQL.

    The advisory lock is released with the transaction. SQLite already
    serializes writers on its database lock, so nothing is taken there.
    """
    if session.get_bind().dialect.name != "postgresql":
        return False
    session.connection().execute(
        text("SELECT pg_advisory_xact_lock(:key)"),
        {"key": SNAPSHOT_LOCK_NAMESPACE + calculation_date.toordinal()},
    )
    return True


def recalculate_rankings(
    session: Session,
    *,
    publish: bool = False,
    calculation_date: Optional[date] = None,
) -> RecalculationResult:
    """Replace the ranking snapshot for one calculation date.

    The delete and both inserts share the session's transaction, so readers
    see either the previous snapshot or the new one. Any storage error rolls
    everything back and surfaces as ``RankingRecalculationError``.
    """
    effective_date = calculation_date or date.today()

    try:
        lock_snapshot_date(session, effective_date)
        for stale in session.exec(select(Ranking).where(Ranking.calculation_date == effective_date)).all():
            session.delete(stale)
        session.flush()
        platform_row_count = _insert_platform_rows(session, effective_date, publish)
        combined_row_count = _insert_combined_rows(session, effective_date, publish)
        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        logger.exception("Ranking recalculation failed for %s", effective_date)
        raise RankingRecalculationError(f"Ranking recalculation failed for {effective_date}") from exc

    logger.info(
        "Rankings recalculated for %s: platform_rows=%d combined_rows=%d published=%s",
        effective_date,
        platform_row_count,
        combined_row_count,
        publish,
    )
    return RecalculationResult(
        calculation_date=effective_date,
        platform_row_count=platform_row_count,
        combined_row_count=combined_row_count,
        published=bool(publish),
    )


def preview_rankings(session: Session, *, limit: int = 100) -> list[CombinedScore]:
    combined = preview_combined_scores(load_latest_samples(session), load_active_weights(session))
    return combined[:limit]


def set_snapshot_published(session: Session, calculation_date: date, publish: bool) -> int:
    rows = session.exec(select(Ranking).where(Ranking.calculation_date == calculation_date)).all()
    for row in rows:
        row.is_published = publish
        session.add(row)
    session.commit()
    logger.info("Snapshot %s published=%s (%d rows)", calculation_date, publish, len(rows))
    return len(rows)


def list_snapshots(session: Session, *, limit: int = 30) -> list[SnapshotSummary]:
    rows = session.exec(
        select(
            Ranking.calculation_date,
            Ranking.ranking_type,
            func.count(Ranking.id),
            func.sum(case((Ranking.is_published.is_(True), 1), else_=0)),
        )
        .group_by(Ranking.calculation_date, Ranking.ranking_type)
        .order_by(Ranking.calculation_date.desc())
    ).all()

    grouped: dict[date, dict[str, int | bool]] = {}
    for calculation_date, ranking_type, count, published_count in rows:
        entry = grouped.setdefault(calculation_date, {"platform": 0, "combined": 0, "published": True})
        if ranking_type == RankingType.combined:
            entry["combined"] = int(count)
        else:
            entry["platform"] = int(count)
        entry["published"] = bool(entry["published"]) and int(published_count or 0) == int(count)

    summaries = [
        SnapshotSummary(
            calculation_date=calculation_date,
            platform_row_count=int(entry["platform"]),
            combined_row_count=int(entry["combined"]),
            is_published=bool(entry["published"]),
        )
        for calculation_date, entry in grouped.items()
    ]
    summaries.sort(key=lambda item: item.calculation_date, reverse=True)
    return summaries[:limit]


def latest_published_date(
    session: Session,
    ranking_type: RankingType,
    *,
    platform_id: Optional[int] = None,
) -> Optional[date]:
    statement = (
        select(func.max(Ranking.calculation_date))
        .where(Ranking.ranking_type == ranking_type)
        .where(Ranking.is_published.is_(True))
    )
    if platform_id is not None:
        statement = statement.where(Ranking.platform_id == platform_id)
    return session.exec(statement).one()
