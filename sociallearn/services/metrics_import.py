from __future__ import annotations

import io
import logging
import zipfile
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Optional

import pandas as pd
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from sociallearn.models import SocialAccount, SocialMetric, SocialMetricBase

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("account_id", "followers_count", "engagement_rate", "data_date")
INTEGER_COLUMNS = ("followers_count", "following_count", "posts_count", "total_engagement")
FLOAT_COLUMNS = ("engagement_rate", "avg_likes", "avg_comments", "avg_shares", "monthly_growth")

CSV_CONTENT_TYPES = {"text/csv", "application/csv", "text/plain"}
EXCEL_CONTENT_TYPES = {
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "application/vnd.ms-excel",
}


class MetricImportError(ValueError):
    pass


@dataclass
class ImportRowError:
    row_number: int
    row: dict[str, Any]
    error: str


@dataclass
class ImportResult:
    total_rows: int
    success_count: int = 0
    skipped_count: int = 0
    error_count: int = 0
    errors: list[ImportRowError] = field(default_factory=list)


def detect_file_kind(filename: Optional[str], content_type: Optional[str]) -> str:
    name = (filename or "").lower()
    if name.endswith(".csv"):
        return "csv"
    if name.endswith((".xlsx", ".xls")):
        return "excel"
    if content_type in CSV_CONTENT_TYPES:
        return "csv"
    if content_type in EXCEL_CONTENT_TYPES:
        return "excel"
    raise MetricImportError("Only CSV and Excel files are allowed")


def read_metric_rows(payload: bytes, *, filename: Optional[str], content_type: Optional[str]) -> list[dict[str, Any]]:
    kind = detect_file_kind(filename, content_type)
    buffer = io.BytesIO(payload)
    try:
        if kind == "csv":
            frame = pd.read_csv(buffer, dtype=str, skipinitialspace=True)
        else:
            frame = pd.read_excel(buffer, dtype=object)
    except pd.errors.EmptyDataError as exc:
        raise MetricImportError("No valid data found in file") from exc
    except (ValueError, zipfile.BadZipFile) as exc:
        raise MetricImportError(f"Could not parse uploaded file: {exc}") from exc

    frame.columns = [str(column).strip() for column in frame.columns]
    frame = frame.dropna(how="all")
    if frame.empty:
        raise MetricImportError("No valid data found in file")

    missing = [column for column in REQUIRED_COLUMNS if column not in frame.columns]
    if missing:
        raise MetricImportError(f"Missing required columns: {', '.join(missing)}")

    frame = frame.astype(object).where(pd.notna(frame), None)
    return frame.to_dict(orient="records")


def _clean(value: Any) -> Any:
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


def _to_int(value: Any) -> int:
    value = _clean(value)
    if value is None:
        return 0
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return 0


def _to_float(value: Any) -> float:
    value = _clean(value)
    if value is None:
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _to_date(value: Any) -> date:
    value = _clean(value)
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if value is None:
        raise ValueError("data_date is required")
    return date.fromisoformat(str(value)[:10])


def _to_account_id(value: Any) -> int:
    value = _clean(value)
    if value is None:
        raise ValueError("account_id is required")
    try:
        return int(float(value))
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid account_id: {value}") from exc


def build_metric(row: dict[str, Any], *, created_by: Optional[int] = None) -> SocialMetric:
    payload: dict[str, Any] = {
        "account_id": _to_account_id(row.get("account_id")),
        "data_date": _to_date(row.get("data_date")),
    }
    for column in INTEGER_COLUMNS:
        payload[column] = _to_int(row.get(column))
    for column in FLOAT_COLUMNS:
        payload[column] = _to_float(row.get(column))

    validated = SocialMetricBase.model_validate(payload)
    return SocialMetric(**validated.model_dump(), created_by=created_by)


def _jsonable_row(row: dict[str, Any]) -> dict[str, Any]:
    return {
        str(key): value.isoformat() if isinstance(value, (date, datetime)) else value
        for key, value in row.items()
    }


def import_metric_rows(
    session: Session,
    rows: list[dict[str, Any]],
    *,
    created_by: Optional[int] = None,
    error_limit: int = 10,
) -> ImportResult:
    """Insert metric samples row by row inside one transaction.

    Each row runs in its own savepoint: a bad row is rolled back and counted
    without aborting its siblings. Rows whose ``(account_id, data_date)``
    already exists are skipped.
    """
    result = ImportResult(total_rows=len(rows))
    known_accounts = set(session.exec(select(SocialAccount.id)).all())

    # Row 1 of the source file is the header.
    for row_number, row in enumerate(rows, start=2):
        try:
            with session.begin_nested():
                metric = build_metric(row, created_by=created_by)
                if metric.account_id not in known_accounts:
                    raise ValueError(f"Unknown account_id: {metric.account_id}")

                existing = session.exec(
                    select(SocialMetric.id)
                    .where(SocialMetric.account_id == metric.account_id)
                    .where(SocialMetric.data_date == metric.data_date)
                ).first()
                if existing is not None:
                    result.skipped_count += 1
                    continue

                session.add(metric)
                session.flush()
            result.success_count += 1
        except (ValueError, SQLAlchemyError) as exc:
            result.error_count += 1
            if len(result.errors) < error_limit:
                result.errors.append(ImportRowError(row_number=row_number, row=_jsonable_row(row), error=str(exc)))

    session.commit()
    logger.info(
        "Metric import finished: total=%d success=%d skipped=%d errors=%d",
        result.total_rows,
        result.success_count,
        result.skipped_count,
        result.error_count,
    )
    return result
