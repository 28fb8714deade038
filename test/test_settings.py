"""Site settings storage and typed public view."""

import pytest

from sociallearn.models import SettingType, SiteSetting
from sociallearn.services.site_settings import (
    InvalidSettingValueError,
    coerce_setting_value,
    serialize_setting_value,
)

from conftest import API


class TestSettingValues:
    """Serialization and coercion of stored values."""

    def test_serialize(self):
        assert serialize_setting_value({"a": 1}, SettingType.json) == '{"a": 1}'
        assert serialize_setting_value(True, SettingType.boolean) == "true"
        assert serialize_setting_value(3, SettingType.number) == "3"
        assert serialize_setting_value('["x"]', SettingType.json) == '["x"]'
        with pytest.raises(InvalidSettingValueError):
            serialize_setting_value("{broken", SettingType.json)

    @pytest.mark.parametrize(
        ("value", "setting_type", "expected"),
        [
            ('{"k": [1, 2]}', SettingType.json, {"k": [1, 2]}),
            ("{broken", SettingType.json, "{broken"),
            ("true", SettingType.boolean, True),
            ("yes", SettingType.boolean, False),
            ("2.5", SettingType.number, 2.5),
            ("n/a", SettingType.number, 0.0),
            ("plain", SettingType.text, "plain"),
        ],
    )
    def test_coerce(self, value, setting_type, expected):
        setting = SiteSetting(setting_key="k", setting_value=value, setting_type=setting_type)
        assert coerce_setting_value(setting) == expected


class TestSettingEndpoints:
    """Routes under /settings."""

    def test_public_defaults_are_seeded(self, client):
        body = client.get(f"{API}/settings/public").json()

        assert body["site_name"] == "SocialLearn Index"
        assert body["homepage_top_n"] == 5.0
        assert "methodology_content" in body

    def test_create_and_update(self, client, admin_headers):
        response = client.post(
            f"{API}/settings",
            json={"key": "hero_stats", "value": {"countries": 12}, "type": "json", "is_public": True},
            headers=admin_headers,
        )
        assert response.status_code == 201
        assert client.get(f"{API}/settings/public").json()["hero_stats"] == {"countries": 12}

        response = client.put(f"{API}/settings/hero_stats", json={"value": "{not json"}, headers=admin_headers)
        assert response.status_code == 400

        response = client.put(f"{API}/settings/hero_stats", json={"value": [1, 2]}, headers=admin_headers)
        assert response.status_code == 200
        assert client.get(f"{API}/settings/public").json()["hero_stats"] == [1, 2]

    def test_private_settings_stay_private(self, client, admin_headers):
        client.post(
            f"{API}/settings",
            json={"key": "smtp_host", "value": "mail.local", "type": "text"},
            headers=admin_headers,
        )

        assert "smtp_host" not in client.get(f"{API}/settings/public").json()
        keys = [item["setting_key"] for item in client.get(f"{API}/settings/all", headers=admin_headers).json()]
        assert "smtp_host" in keys

    def test_duplicate_key(self, client, admin_headers):
        payload = {"key": "site_name", "value": "Other", "type": "text"}
        assert client.post(f"{API}/settings", json=payload, headers=admin_headers).status_code == 400

    def test_unknown_key(self, client, admin_headers):
        response = client.put(f"{API}/settings/missing", json={"value": "x"}, headers=admin_headers)
        assert response.status_code == 404

    def test_editor_cannot_manage(self, client, editor_headers):
        assert client.get(f"{API}/settings/all", headers=editor_headers).status_code == 403
