from math import ceil

from sqlmodel import SQLModel


class PaginationRead(SQLModel):
    current_page: int
    total_pages: int
    total_count: int
    per_page: int


def build_pagination(*, page: int, limit: int, total_count: int) -> PaginationRead:
    return PaginationRead(
        current_page=page,
        total_pages=ceil(total_count / limit) if limit > 0 else 0,
        total_count=total_count,
        per_page=limit,
    )


class MessageRead(SQLModel):
    message: str
