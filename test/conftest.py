"""Shared fixtures: an in-memory database, a running app and role-scoped tokens."""

from __future__ import annotations

from datetime import date
from typing import Callable, Iterator, Optional

import pytest
from fastapi.testclient import TestClient
from sqlmodel import select

from sociallearn.core.config import settings
from sociallearn.core.security import create_access_token, get_password_hash
from sociallearn.db.database import Database
from sociallearn.main import create_app
from sociallearn.models import Institution, Role, SocialAccount, SocialMetric, SocialPlatform, User

API = settings.api_v1_prefix
PASSWORD = "Password123"


@pytest.fixture()
def database() -> Iterator[Database]:
    db = Database("sqlite://")
    db.create_db_and_tables()
    yield db
    db.dispose()


@pytest.fixture()
def client(database: Database) -> Iterator[TestClient]:
    app = create_app(database)
    with TestClient(app) as test_client:
        yield test_client


def _make_user(database: Database, role: Role, *, is_active: bool = True) -> int:
    with database.session() as session:
        user = User(
            email=f"{role.value}@example.com",
            name=role.value.replace("_", " ").title(),
            role=role,
            hashed_password=get_password_hash(PASSWORD),
            is_active=is_active,
        )
        session.add(user)
        session.commit()
        return user.id


def _headers_for(user_id: int, role: Role) -> dict[str, str]:
    token = create_access_token(user_id, role)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def make_headers(client: TestClient, database: Database) -> Callable[..., dict[str, str]]:
    del client

    def _factory(role: Role, *, is_active: bool = True) -> dict[str, str]:
        return _headers_for(_make_user(database, role, is_active=is_active), role)

    return _factory


@pytest.fixture()
def admin_headers(make_headers) -> dict[str, str]:
    return make_headers(Role.admin)


@pytest.fixture()
def editor_headers(make_headers) -> dict[str, str]:
    return make_headers(Role.editor)


@pytest.fixture()
def analyst_headers(make_headers) -> dict[str, str]:
    return make_headers(Role.analyst)


@pytest.fixture()
def super_admin_headers(database: Database, client: TestClient) -> dict[str, str]:
    del client
    with database.session() as session:
        user = session.exec(select(User).where(User.role == Role.super_admin)).first()
        return _headers_for(user.id, Role.super_admin)


@pytest.fixture()
def platform_ids(database: Database, client: TestClient) -> dict[str, int]:
    del client
    with database.session() as session:
        return {platform.name: platform.id for platform in session.exec(select(SocialPlatform)).all()}


@pytest.fixture()
def add_institution(database: Database) -> Callable[..., int]:
    def _factory(name: str, *, is_published: bool = True, **fields) -> int:
        with database.session() as session:
            institution = Institution(name=name, is_published=is_published, **fields)
            session.add(institution)
            session.commit()
            return institution.id

    return _factory


@pytest.fixture()
def add_account(database: Database) -> Callable[..., int]:
    def _factory(institution_id: int, platform_id: int, handle: Optional[str] = None) -> int:
        with database.session() as session:
            account = SocialAccount(
                institution_id=institution_id,
                platform_id=platform_id,
                handle=handle or f"@inst{institution_id}_{platform_id}",
                url=f"https://example.com/{institution_id}/{platform_id}",
            )
            session.add(account)
            session.commit()
            return account.id

    return _factory


@pytest.fixture()
def add_metric(database: Database) -> Callable[..., int]:
    def _factory(
        account_id: int,
        *,
        followers: int,
        engagement: float = 0.0,
        growth: float = 0.0,
        data_date: Optional[date] = None,
        total_engagement: int = 0,
    ) -> int:
        with database.session() as session:
            metric = SocialMetric(
                account_id=account_id,
                data_date=data_date or date.today(),
                followers_count=followers,
                engagement_rate=engagement,
                monthly_growth=growth,
                total_engagement=total_engagement,
            )
            session.add(metric)
            session.commit()
            return metric.id

    return _factory
