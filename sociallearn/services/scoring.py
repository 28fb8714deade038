"""Normalization, platform scoring and weighted combination of social metrics.

Everything here is pure and works on plain values so that the same pipeline
feeds both the persisted recalculation and the admin preview.

Growth is normalized and reported alongside the other sub-scores, but it is
not part of ``platform_score`` nor of the combined total. Only followers and
engagement are ranked on.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Mapping, Optional

SCORE_SCALE = 50.0
SCORE_PRECISION = 2


@dataclass(frozen=True)
class LatestSample:
    account_id: int
    institution_id: int
    platform_id: int
    followers_count: float
    engagement_rate: float
    monthly_growth: float
    total_engagement: float = 0.0
    data_date: Optional[date] = None


@dataclass(frozen=True)
class PlatformMaxima:
    max_followers: float = 0.0
    max_engagement: float = 0.0
    max_growth: float = 0.0


@dataclass(frozen=True)
class PlatformScore:
    institution_id: int
    platform_id: int
    follower_score: float
    engagement_score: float
    growth_score: float
    rank_position: int = 0
    account_id: Optional[int] = None
    data_date: Optional[date] = None

    @property
    def platform_score(self) -> float:
        return self.follower_score + self.engagement_score


@dataclass(frozen=True)
class PlatformScoreInput:
    institution_id: int
    platform_id: int
    follower_score: float
    engagement_score: float


@dataclass(frozen=True)
class CombinedScore:
    institution_id: int
    total_score: float
    rank_position: int = 0
    platform_ids: tuple[int, ...] = field(default_factory=tuple)


def scale_to_max(value: float, maximum: float) -> float:
    if maximum is None or maximum <= 0:
        return 0.0
    return (float(value or 0.0) / float(maximum)) * SCORE_SCALE


def round_score(value: float) -> float:
    return round(float(value), SCORE_PRECISION)


def compute_platform_maxima(samples: Iterable[LatestSample]) -> dict[int, PlatformMaxima]:
    followers: dict[int, float] = defaultdict(float)
    engagement: dict[int, float] = defaultdict(float)
    growth: dict[int, float] = defaultdict(float)
    seen: set[int] = set()

    for sample in samples:
        platform_id = sample.platform_id
        if platform_id not in seen:
            seen.add(platform_id)
            followers[platform_id] = float(sample.followers_count or 0)
            engagement[platform_id] = float(sample.engagement_rate or 0)
            growth[platform_id] = float(sample.monthly_growth or 0)
            continue
        followers[platform_id] = max(followers[platform_id], float(sample.followers_count or 0))
        engagement[platform_id] = max(engagement[platform_id], float(sample.engagement_rate or 0))
        growth[platform_id] = max(growth[platform_id], float(sample.monthly_growth or 0))

    return {
        platform_id: PlatformMaxima(
            max_followers=followers[platform_id],
            max_engagement=engagement[platform_id],
            max_growth=growth[platform_id],
        )
        for platform_id in seen
    }


def normalize_samples(samples: Iterable[LatestSample]) -> list[PlatformScore]:
    materialized = list(samples)
    maxima = compute_platform_maxima(materialized)

    scores: list[PlatformScore] = []
    for sample in materialized:
        platform_max = maxima.get(sample.platform_id, PlatformMaxima())
        scores.append(
            PlatformScore(
                institution_id=sample.institution_id,
                platform_id=sample.platform_id,
                follower_score=scale_to_max(sample.followers_count, platform_max.max_followers),
                engagement_score=scale_to_max(sample.engagement_rate, platform_max.max_engagement),
                growth_score=scale_to_max(sample.monthly_growth, platform_max.max_growth),
                account_id=sample.account_id,
                data_date=sample.data_date,
            )
        )
    return scores


def rank_platform_scores(scores: Iterable[PlatformScore]) -> list[PlatformScore]:
    by_platform: dict[int, list[PlatformScore]] = defaultdict(list)
    for score in scores:
        by_platform[score.platform_id].append(score)

    ranked: list[PlatformScore] = []
    for platform_id in sorted(by_platform):
        ordered = sorted(
            by_platform[platform_id],
            key=lambda item: (-item.platform_score, item.institution_id),
        )
        for position, item in enumerate(ordered, start=1):
            ranked.append(
                PlatformScore(
                    institution_id=item.institution_id,
                    platform_id=item.platform_id,
                    follower_score=item.follower_score,
                    engagement_score=item.engagement_score,
                    growth_score=item.growth_score,
                    rank_position=position,
                    account_id=item.account_id,
                    data_date=item.data_date,
                )
            )
    return ranked


def score_platforms(samples: Iterable[LatestSample]) -> list[PlatformScore]:
    return rank_platform_scores(normalize_samples(samples))


def combine_platform_scores(
    rows: Iterable[PlatformScoreInput],
    weights: Mapping[int, float],
) -> list[CombinedScore]:
    """Weight each institution's platform scores and rank the totals.

    ``weights`` holds only active platforms; rows on any other platform are
    ignored, and an institution left with no rows gets no combined score.
    """
    totals: dict[int, float] = {}
    platforms: dict[int, list[int]] = defaultdict(list)

    for row in rows:
        weight = weights.get(row.platform_id)
        if weight is None:
            continue
        platform_score = float(row.follower_score) + float(row.engagement_score)
        totals[row.institution_id] = totals.get(row.institution_id, 0.0) + platform_score * float(weight)
        platforms[row.institution_id].append(row.platform_id)

    ordered = sorted(totals.items(), key=lambda item: (-item[1], item[0]))
    return [
        CombinedScore(
            institution_id=institution_id,
            total_score=total_score,
            rank_position=position,
            platform_ids=tuple(sorted(platforms[institution_id])),
        )
        for position, (institution_id, total_score) in enumerate(ordered, start=1)
    ]


def preview_combined_scores(
    samples: Iterable[LatestSample],
    weights: Mapping[int, float],
) -> list[CombinedScore]:
    platform_scores = score_platforms(samples)
    return combine_platform_scores(
        (
            PlatformScoreInput(
                institution_id=item.institution_id,
                platform_id=item.platform_id,
                follower_score=item.follower_score,
                engagement_score=item.engagement_score,
            )
            for item in platform_scores
        ),
        weights,
    )
