import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from sqlmodel import Session, select

from sociallearn.core.config import settings
from sociallearn.core.security import get_password_hash
from sociallearn.db.database import Database
from sociallearn.models import Role, SettingType, SiteSetting, SocialPlatform, User
from sociallearn.routers import admin, auth, blog, institutions, metrics, public, rankings
from sociallearn.routers import settings as settings_router

logger = logging.getLogger(__name__)

DEFAULT_PLATFORMS = (
    ("facebook", "Facebook", "#1877F2", "facebook"),
    ("twitter", "Twitter", "#1DA1F2", "twitter"),
    ("instagram", "Instagram", "#E4405F", "instagram"),
    ("linkedin", "LinkedIn", "#0A66C2", "linkedin"),
    ("youtube", "YouTube", "#FF0000", "youtube"),
    ("tiktok", "TikTok", "#000000", "tiktok"),
)

DEFAULT_PUBLIC_SETTINGS = (
    ("site_name", settings.app_name, SettingType.text, "Site name shown in the header"),
    ("homepage_top_n", str(settings.homepage_top_n), SettingType.number, "Institutions shown on the homepage"),
    (
        "methodology_content",
        "Institutions are ranked by followers and engagement on each platform, "
        "normalized against the platform leader and combined with platform weights.",
        SettingType.text,
        "Methodology summary",
    ),
)


def configure_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _seed_default_platforms(session: Session) -> None:
    for name, display_name, color_hex, icon_name in DEFAULT_PLATFORMS:
        existing = session.exec(select(SocialPlatform).where(SocialPlatform.name == name)).first()
        if existing is None:
            session.add(
                SocialPlatform(
                    name=name,
                    display_name=display_name,
                    color_hex=color_hex,
                    icon_name=icon_name,
                    weight=1.0,
                    is_active=True,
                )
            )
    session.commit()


def _seed_default_admin(session: Session) -> None:
    existing = session.exec(select(User)).first()
    if existing is not None:
        return

    session.add(
        User(
            email=settings.default_admin_email.strip().lower(),
            name=settings.default_admin_name,
            hashed_password=get_password_hash(settings.default_admin_password),
            role=Role.super_admin,
            is_active=True,
        )
    )
    session.commit()
    logger.info("Seeded default super admin %s", settings.default_admin_email)


def _seed_default_settings(session: Session) -> None:
    for key, value, setting_type, description in DEFAULT_PUBLIC_SETTINGS:
        existing = session.exec(select(SiteSetting).where(SiteSetting.setting_key == key)).first()
        if existing is None:
            session.add(
                SiteSetting(
                    setting_key=key,
                    setting_value=value,
                    setting_type=setting_type,
                    description=description,
                    is_public=True,
                )
            )
    session.commit()


def create_app(database: Optional[Database] = None) -> FastAPI:
    configure_logging()
    db = database or Database.from_settings(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        db.create_db_and_tables()
        with db.session() as session:
            _seed_default_platforms(session)
            _seed_default_admin(session)
            _seed_default_settings(session)

        try:
            yield
        finally:
            if database is None:
                db.dispose()

    app = FastAPI(title=settings.app_name, debug=settings.debug, lifespan=lifespan)
    app.state.database = db

    for router in (
        auth.router,
        institutions.router,
        metrics.router,
        rankings.router,
        blog.router,
        settings_router.router,
        admin.router,
        public.router,
    ):
        app.include_router(router, prefix=settings.api_v1_prefix)

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    return app


app = create_app()
