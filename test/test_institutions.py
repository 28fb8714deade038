"""Institution directory and social account management."""

from datetime import date

import pytest

from sociallearn.models import Country, InstitutionType

from conftest import API


@pytest.fixture()
def reference_data(database, client):
    del client
    with database.session() as session:
        kenya = Country(name="Kenya", code="KEN")
        ghana = Country(name="Ghana", code="GHA")
        public = InstitutionType(name="Public University")
        private = InstitutionType(name="Private College")
        session.add_all([kenya, ghana, public, private])
        session.commit()
        return {"kenya": kenya.id, "ghana": ghana.id, "public": public.id, "private": private.id}


class TestDirectory:
    """Public listing and detail."""

    def test_list_filters_and_orders_by_name(self, client, add_institution, reference_data):
        add_institution("Nairobi University", country_id=reference_data["kenya"], type_id=reference_data["public"])
        add_institution("Accra College", country_id=reference_data["ghana"], type_id=reference_data["private"])
        add_institution("Kenyatta Institute", country_id=reference_data["kenya"], type_id=reference_data["private"])
        add_institution("Hidden School", is_published=False)

        body = client.get(f"{API}/institutions").json()
        assert [item["name"] for item in body["institutions"]] == [
            "Accra College",
            "Kenyatta Institute",
            "Nairobi University",
        ]
        assert body["pagination"]["total_count"] == 3

        body = client.get(f"{API}/institutions", params={"country": "KENYA"}).json()
        assert [item["name"] for item in body["institutions"]] == ["Kenyatta Institute", "Nairobi University"]

        body = client.get(f"{API}/institutions", params={"country": "kenya", "type": "private"}).json()
        assert [item["name"] for item in body["institutions"]] == ["Kenyatta Institute"]
        assert body["institutions"][0]["country_code"] == "KEN"

        body = client.get(f"{API}/institutions", params={"search": "accra"}).json()
        assert [item["name"] for item in body["institutions"]] == ["Accra College"]

    def test_limit_is_bounded(self, client):
        assert client.get(f"{API}/institutions", params={"limit": 101}).status_code == 422

    def test_detail_shows_active_accounts_and_latest_metrics(
        self, client, admin_headers, platform_ids, add_institution, add_account, add_metric
    ):
        institution_id = add_institution("Omega University", description="Research university")
        facebook = add_account(institution_id, platform_ids["facebook"])
        tiktok = add_account(institution_id, platform_ids["tiktok"])
        add_metric(facebook, followers=100, data_date=date(2026, 1, 1))
        add_metric(facebook, followers=180, data_date=date(2026, 2, 1))
        add_metric(tiktok, followers=50, data_date=date(2026, 2, 1))
        client.put(f"{API}/admin/platforms/{platform_ids['tiktok']}", json={"is_active": False}, headers=admin_headers)

        body = client.get(f"{API}/institutions/{institution_id}").json()

        assert body["description"] == "Research university"
        assert [account["platform_name"] for account in body["social_accounts"]] == ["facebook"]
        assert body["latest_metrics"] == [
            {
                "platform_id": platform_ids["facebook"],
                "platform_name": "facebook",
                "followers_count": 180,
                "engagement_rate": 0.0,
                "total_engagement": 0,
                "monthly_growth": 0.0,
                "data_date": "2026-02-01",
            }
        ]

    def test_unpublished_detail_is_404(self, client, add_institution):
        institution_id = add_institution("Draft University", is_published=False)
        assert client.get(f"{API}/institutions/{institution_id}").status_code == 404
        assert client.get(f"{API}/institutions/9999").status_code == 404

    def test_reference_lists(self, client, reference_data):
        del reference_data
        countries = client.get(f"{API}/institutions/data/countries").json()
        types = client.get(f"{API}/institutions/data/types").json()

        assert [item["name"] for item in countries] == ["Ghana", "Kenya"]
        assert [item["name"] for item in types] == ["Private College", "Public University"]


class TestInstitutionWrites:
    """Creating and editing institutions."""

    def test_create_and_update(self, client, editor_headers, reference_data):
        response = client.post(
            f"{API}/institutions",
            json={"name": "  New Institute ", "country_id": reference_data["kenya"], "student_count": 1200},
            headers=editor_headers,
        )
        assert response.status_code == 201
        institution_id = response.json()["id"]
        assert response.json()["name"] == "New Institute"

        response = client.put(
            f"{API}/institutions/{institution_id}",
            json={"short_name": "NI", "type_id": reference_data["public"]},
            headers=editor_headers,
        )
        assert response.status_code == 200

        detail = client.get(f"{API}/institutions/{institution_id}").json()
        assert detail["short_name"] == "NI"
        assert detail["institution_type"] == "Public University"
        assert detail["student_count"] == 1200

    def test_update_with_empty_body(self, client, editor_headers, add_institution):
        institution_id = add_institution("Static University")
        response = client.put(f"{API}/institutions/{institution_id}", json={}, headers=editor_headers)
        assert response.status_code == 400

    def test_unknown_country_is_rejected(self, client, editor_headers):
        response = client.post(f"{API}/institutions", json={"name": "X", "country_id": 77}, headers=editor_headers)
        assert response.status_code == 400

    def test_analyst_cannot_create(self, client, analyst_headers):
        response = client.post(f"{API}/institutions", json={"name": "X"}, headers=analyst_headers)
        assert response.status_code == 403

    def test_one_account_per_platform(self, client, editor_headers, platform_ids, add_institution):
        institution_id = add_institution("Social University")
        payload = {"platform_id": platform_ids["linkedin"], "handle": "social-u", "url": "https://linkedin.com/social-u"}

        response = client.post(
            f"{API}/institutions/{institution_id}/social-accounts", json=payload, headers=editor_headers
        )
        assert response.status_code == 201
        assert response.json()["display_name"] == "LinkedIn"

        duplicate = client.post(
            f"{API}/institutions/{institution_id}/social-accounts", json=payload, headers=editor_headers
        )
        assert duplicate.status_code == 400

    def test_account_for_missing_institution(self, client, editor_headers, platform_ids):
        payload = {"platform_id": platform_ids["linkedin"], "handle": "ghost", "url": "https://example.com"}
        response = client.post(f"{API}/institutions/9999/social-accounts", json=payload, headers=editor_headers)
        assert response.status_code == 404
