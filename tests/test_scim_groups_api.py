"""
Tests for the SCIM 2.0 Groups read API served over a legacy (id-less) user store
"""
from unittest.mock import MagicMock

import pytest

from scim_compat.config import CompatConfig
from scim_compat.core.exceptions import SCIM_ERROR_SCHEMA, GroupMetadataError, KeycloakAPIError
from scim_compat.core.gateway import GroupMetadataGateway
from scim_compat.core.user_store import InMemoryUserStore
from scim_compat.flask_app import create_app

BASE_URL = "https://scim.example/scim/v2"


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.data == b"ok"


def test_ready_reports_user_store(client):
    resp = client.get("/ready")
    assert resp.status_code == 200
    assert resp.get_json() == {
        "status": "ready",
        "tenant": "demo",
        "domain": "PRIMARY",
        "legacyGroupIds": True,
        "listeners": ["ScimGroupOperationListener"],
    }


class TestGetGroup:
    def test_returns_legacy_group(self, client):
        resp = client.get("/scim/v2/Groups/g-eng")
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["id"] == "g-eng"
        assert body["displayName"] == "engineering"
        assert body["meta"]["created"] == "2021-01-01T00:00:00Z"
        assert body["meta"]["lastModified"] == "2021-06-01T00:00:00Z"
        assert body["meta"]["location"] == f"{BASE_URL}/Groups/g-eng"

    def test_secondary_group_keeps_domain(self, client):
        body = client.get("/scim/v2/Groups/g-ops").get_json()
        assert body["displayName"] == "SECONDARY/ops"

    def test_unknown_group(self, client):
        resp = client.get("/scim/v2/Groups/missing")
        assert resp.status_code == 404
        body = resp.get_json()
        assert body["schemas"] == [SCIM_ERROR_SCHEMA]
        assert body["status"] == "404"


class TestListGroups:
    def test_default_lists_primary_domain(self, client):
        body = client.get("/scim/v2/Groups").get_json()
        assert body["totalResults"] == 1
        assert [r["id"] for r in body["Resources"]] == ["g-eng"]

    def test_display_name_filter(self, client):
        resp = client.get("/scim/v2/Groups", query_string={"filter": 'displayName eq "engineering"'})
        assert resp.status_code == 200
        assert [r["displayName"] for r in resp.get_json()["Resources"]] == ["engineering"]

    def test_qualified_filter_selects_domain(self, client):
        resp = client.get("/scim/v2/Groups", query_string={"filter": 'displayName co "SECONDARY/op"'})
        assert [r["id"] for r in resp.get_json()["Resources"]] == ["g-ops"]

    def test_no_match(self, client):
        body = client.get("/scim/v2/Groups", query_string={"filter": 'displayName eq "nobody"'}).get_json()
        assert body["totalResults"] == 0
        assert body["Resources"] == []

    @pytest.mark.parametrize(
        "filter_string",
        [
            'displayName sw "a" and displayName ew "z"',
            'members eq "u1"',
            'displayName gt "a"',
        ],
    )
    def test_rejected_filters(self, client, filter_string):
        resp = client.get("/scim/v2/Groups", query_string={"filter": filter_string})
        assert resp.status_code == 400
        assert resp.get_json()["scimType"] == "invalidFilter"

    def test_invalid_count(self, client):
        resp = client.get("/scim/v2/Groups", query_string={"count": "many"})
        assert resp.status_code == 400
        assert resp.get_json()["scimType"] == "invalidValue"

    def test_start_index_is_echoed(self, client):
        body = client.get("/scim/v2/Groups", query_string={"startIndex": "2"}).get_json()
        assert body["startIndex"] == 2


def test_user_groups(client):
    body = client.get("/scim/v2/Users/u1/Groups").get_json()
    assert {(r["id"], r["displayName"]) for r in body["Resources"]} == {
        ("g-eng", "engineering"),
        ("g-ops", "SECONDARY/ops"),
    }


# ─────────────────────────────────────────────────────────────────────────────
# Failures
# ─────────────────────────────────────────────────────────────────────────────

def _app_with_gateway(gateway, store=None):
    store = store or InMemoryUserStore("demo")
    store.add_group("engineering")
    app = create_app(user_store=store, config=CompatConfig(scim_base_url=BASE_URL), gateway=gateway)
    app.config.update(TESTING=True)
    return app.test_client()


def test_legacy_store_failure_is_500():
    gateway = MagicMock(spec=GroupMetadataGateway)
    gateway.get_group_name_by_id.side_effect = GroupMetadataError("db down")
    resp = _app_with_gateway(gateway).get("/scim/v2/Groups/g-eng")
    assert resp.status_code == 500
    assert resp.get_json()["detail"] == "Failed to resolve group metadata"


def test_directory_failure_is_502(legacy_gateway):
    store = InMemoryUserStore("demo")
    store._do_get_groups_of_user = MagicMock(side_effect=KeycloakAPIError(503, "unavailable", "/users/u1/groups"))
    resp = _app_with_gateway(legacy_gateway, store).get("/scim/v2/Users/u1/Groups")
    assert resp.status_code == 502


def test_unmapped_group_error_is_scim_shaped(legacy_gateway):
    store = InMemoryUserStore("demo")
    store._do_get_group_by_id = MagicMock(side_effect=GroupMetadataError("metadata table locked"))
    resp = _app_with_gateway(legacy_gateway, store).get("/scim/v2/Groups/g-eng")
    assert resp.status_code == 500
    body = resp.get_json()
    assert body["schemas"] == [SCIM_ERROR_SCHEMA]
    assert body["detail"] == "Group compatibility layer failed"


class TestStaticToken:
    @pytest.fixture
    def secured_client(self, legacy_store, legacy_gateway):
        cfg = CompatConfig(scim_base_url=BASE_URL, scim_static_token="s3cret")
        app = create_app(user_store=legacy_store, config=cfg, gateway=legacy_gateway)
        app.config.update(TESTING=True)
        return app.test_client()

    def test_missing_token(self, secured_client):
        resp = secured_client.get("/scim/v2/Groups/g-eng")
        assert resp.status_code == 401

    def test_wrong_token(self, secured_client):
        resp = secured_client.get("/scim/v2/Groups/g-eng", headers={"Authorization": "Bearer nope"})
        assert resp.status_code == 401
        assert resp.get_json()["detail"] == "Invalid bearer token"

    def test_valid_token(self, secured_client):
        resp = secured_client.get("/scim/v2/Groups/g-eng", headers={"Authorization": "Bearer s3cret"})
        assert resp.status_code == 200

    def test_health_stays_open(self, secured_client):
        assert secured_client.get("/health").status_code == 200
