from fastapi import APIRouter, Depends
from sqlmodel import Session, select

from sociallearn.dependencies import get_db
from sociallearn.models import SocialPlatform
from sociallearn.schemas.platform import MethodologyPlatformRead, MethodologyRead
from sociallearn.services.scoring import SCORE_SCALE

router = APIRouter(prefix="/public", tags=["public"])


@router.get("/methodology", response_model=MethodologyRead)
def get_methodology(db: Session = Depends(get_db)) -> MethodologyRead:
    platforms = db.exec(
        select(SocialPlatform).where(SocialPlatform.is_active.is_(True)).order_by(SocialPlatform.name)
    ).all()
    scale = f"{SCORE_SCALE:g}"
    return MethodologyRead(
        score_scale=SCORE_SCALE,
        platform_score_components=["follower_score", "engagement_score"],
        growth_weighted=False,
        tie_breaker="institution_id ascending",
        formulas=[
            f"follower_score = followers_count / max_followers_on_platform * {scale}",
            f"engagement_score = engagement_rate / max_engagement_rate_on_platform * {scale}",
            f"growth_score = monthly_growth / max_monthly_growth_on_platform * {scale} (informational)",
            "platform_score = follower_score + engagement_score",
            "combined_score = sum(platform_score * platform_weight) over active platforms",
        ],
        platforms=[
            MethodologyPlatformRead(name=item.name, display_name=item.display_name, weight=item.weight)
            for item in platforms
        ],
    )
