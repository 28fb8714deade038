from __future__ import annotations

from typing import Any

from sqlalchemy import func
from sqlmodel import Session, select


def count_rows(session: Session, statement: Any) -> int:
    total = session.exec(select(func.count()).select_from(statement.order_by(None).subquery())).one()
    return int(total or 0)


def page_offset(page: int, limit: int) -> int:
    return (max(page, 1) - 1) * limit
