"""Metric ingestion, statistics and export."""

import io
from datetime import date, timedelta

import pandas as pd
import pytest

from sociallearn.services.metrics_import import (
    MetricImportError,
    build_metric,
    detect_file_kind,
    import_metric_rows,
    read_metric_rows,
)

from conftest import API


@pytest.fixture()
def account_id(platform_ids, add_institution, add_account):
    institution_id = add_institution("Delta University")
    return add_account(institution_id, platform_ids["instagram"], handle="@delta")


def _csv(*lines: str) -> bytes:
    return ("\n".join(lines) + "\n").encode("utf-8")


class TestMetricFileParsing:
    """Reading CSV and Excel uploads with pandas."""

    def test_detects_kind_by_extension_then_content_type(self):
        assert detect_file_kind("data.CSV", None) == "csv"
        assert detect_file_kind("data.xlsx", "application/octet-stream") == "excel"
        assert detect_file_kind("upload", "text/csv") == "csv"
        with pytest.raises(MetricImportError):
            detect_file_kind("data.pdf", "application/pdf")

    def test_missing_columns_are_reported(self):
        payload = _csv("account_id,followers_count", "1,100")
        with pytest.raises(MetricImportError, match="engagement_rate, data_date"):
            read_metric_rows(payload, filename="m.csv", content_type="text/csv")

    def test_empty_file_is_rejected(self):
        with pytest.raises(MetricImportError):
            read_metric_rows(b"", filename="m.csv", content_type="text/csv")
        with pytest.raises(MetricImportError):
            read_metric_rows(
                _csv("account_id,followers_count,engagement_rate,data_date"),
                filename="m.csv",
                content_type="text/csv",
            )

    def test_reads_excel_workbook(self):
        buffer = io.BytesIO()
        pd.DataFrame(
            [{"account_id": 1, "followers_count": 10, "engagement_rate": 1.5, "data_date": "2026-01-01"}]
        ).to_excel(buffer, index=False)

        rows = read_metric_rows(buffer.getvalue(), filename="m.xlsx", content_type=None)

        assert len(rows) == 1
        assert build_metric(rows[0]).followers_count == 10

    def test_build_metric_defaults_optional_columns(self):
        metric = build_metric(
            {"account_id": "7", "followers_count": "1200", "engagement_rate": "3.2", "data_date": "2026-02-01"}
        )

        assert metric.account_id == 7
        assert metric.data_date == date(2026, 2, 1)
        assert metric.total_engagement == 0
        assert metric.monthly_growth == 0.0

    def test_build_metric_rejects_out_of_range_engagement(self):
        with pytest.raises(ValueError):
            build_metric({"account_id": 1, "followers_count": 1, "engagement_rate": 250, "data_date": "2026-01-01"})


def test_import_rows_skips_duplicates_and_counts_errors(database, platform_ids, add_institution, add_account):
    institution_id = add_institution("Epsilon")
    account = add_account(institution_id, platform_ids["facebook"])
    rows = [
        {"account_id": account, "followers_count": 10, "engagement_rate": 1, "data_date": "2026-01-01"},
        {"account_id": account, "followers_count": 11, "engagement_rate": 1, "data_date": "2026-01-01"},
        {"account_id": 9999, "followers_count": 1, "engagement_rate": 1, "data_date": "2026-01-02"},
        {"account_id": account, "followers_count": 12, "engagement_rate": 1, "data_date": "not-a-date"},
        {"account_id": account, "followers_count": 13, "engagement_rate": 1, "data_date": "2026-01-03"},
    ]

    with database.session() as session:
        result = import_metric_rows(session, rows, error_limit=1)

    assert result.total_rows == 5
    assert result.success_count == 2
    assert result.skipped_count == 1
    assert result.error_count == 2
    assert len(result.errors) == 1
    assert result.errors[0].row_number == 4


class TestMetricEndpoints:
    """HTTP surface of the metrics router."""

    def test_add_metric(self, client, editor_headers, account_id):
        payload = {"account_id": account_id, "data_date": date.today().isoformat(), "followers_count": 900}

        response = client.post(f"{API}/metrics", json=payload, headers=editor_headers)
        assert response.status_code == 201
        assert response.json()["account_id"] == account_id

        duplicate = client.post(f"{API}/metrics", json=payload, headers=editor_headers)
        assert duplicate.status_code == 400

    def test_add_metric_unknown_account(self, client, editor_headers):
        payload = {"account_id": 4242, "data_date": "2026-01-01", "followers_count": 1}
        assert client.post(f"{API}/metrics", json=payload, headers=editor_headers).status_code == 404

    def test_analyst_cannot_add_metric(self, client, analyst_headers, account_id):
        payload = {"account_id": account_id, "data_date": "2026-01-01", "followers_count": 1}
        assert client.post(f"{API}/metrics", json=payload, headers=analyst_headers).status_code == 403

    def test_bulk_upload_csv(self, client, editor_headers, account_id, add_metric):
        add_metric(account_id, followers=1, data_date=date(2026, 1, 1))
        payload = _csv(
            "account_id,followers_count,engagement_rate,data_date,monthly_growth",
            f"{account_id},100,2.5,2026-01-01,",
            f"{account_id},120,2.7,2026-01-02,1.5",
            f"{account_id},abc,2.7,bad-date,",
        )

        response = client.post(
            f"{API}/metrics/bulk-upload",
            files={"file": ("metrics.csv", payload, "text/csv")},
            headers=editor_headers,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["total_rows"] == 3
        assert body["success_count"] == 1
        assert body["skipped_count"] == 1
        assert body["error_count"] == 1
        assert body["errors"][0]["row_number"] == 4

    def test_bulk_upload_rejects_unsupported_file(self, client, editor_headers):
        response = client.post(
            f"{API}/metrics/bulk-upload",
            files={"file": ("notes.txt", b"hello", "application/pdf")},
            headers=editor_headers,
        )
        assert response.status_code == 400

    def test_bulk_upload_rejects_missing_columns(self, client, editor_headers):
        response = client.post(
            f"{API}/metrics/bulk-upload",
            files={"file": ("m.csv", _csv("account_id,followers_count", "1,2"), "text/csv")},
            headers=editor_headers,
        )
        assert response.status_code == 400
        assert "Missing required columns" in response.json()["detail"]

    def test_institution_metrics_grouped_by_platform(
        self, client, platform_ids, add_institution, add_account, add_metric
    ):
        institution_id = add_institution("Zeta")
        facebook = add_account(institution_id, platform_ids["facebook"])
        youtube = add_account(institution_id, platform_ids["youtube"])
        add_metric(facebook, followers=10, data_date=date.today() - timedelta(days=10))
        add_metric(facebook, followers=20, data_date=date.today())
        add_metric(youtube, followers=5, data_date=date.today() - timedelta(days=300))

        body = client.get(f"{API}/metrics/institution/{institution_id}").json()
        assert list(body) == ["facebook"]
        assert [point["followers_count"] for point in body["facebook"]["metrics"]] == [10, 20]

        body = client.get(f"{API}/metrics/institution/{institution_id}", params={"days": 365}).json()
        assert sorted(body) == ["facebook", "youtube"]

        assert client.get(f"{API}/metrics/institution/{institution_id}", params={"days": 10}).status_code == 422

    def test_platform_stats(self, client, analyst_headers, account_id, add_metric):
        add_metric(account_id, followers=100, engagement=2.0, total_engagement=50, data_date=date(2026, 1, 1))
        add_metric(account_id, followers=300, engagement=4.0, total_engagement=70, data_date=date(2026, 2, 1))

        stats = client.get(f"{API}/metrics/stats/platforms", headers=analyst_headers).json()
        instagram = next(item for item in stats if item["platform"] == "Instagram")

        assert instagram["account_count"] == 1
        assert instagram["avg_followers"] == 300
        assert instagram["avg_engagement_rate"] == 4.0
        assert instagram["total_engagement"] == 70

    def test_export_csv_and_json(self, client, analyst_headers, account_id, add_metric):
        add_metric(account_id, followers=100, data_date=date(2026, 1, 1))
        add_metric(account_id, followers=150, data_date=date(2026, 1, 15))

        response = client.get(f"{API}/metrics/export", headers=analyst_headers)
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert "attachment" in response.headers["content-disposition"]
        frame = pd.read_csv(io.StringIO(response.text))
        assert list(frame["followers_count"]) == [150, 100]

        response = client.get(
            f"{API}/metrics/export",
            params={"format": "json", "start_date": "2026-01-10"},
            headers=analyst_headers,
        )
        body = response.json()
        assert body["export_info"]["total_records"] == 1
        assert body["data"][0]["handle"] == "@delta"

    def test_editor_cannot_export(self, client, editor_headers):
        assert client.get(f"{API}/metrics/export", headers=editor_headers).status_code == 403
