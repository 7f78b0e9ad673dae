"""Pytest shared fixtures for the SCIM group compatibility layer."""
import pathlib
import sys
from unittest.mock import MagicMock

# Add project root to Python path
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest
import requests

from scim_compat.config import CompatConfig
from scim_compat.core.gateway import GroupMetadataGateway, InMemoryGroupMetadataGateway
from scim_compat.core.listener import ScimGroupOperationListener
from scim_compat.core.user_store import InMemoryUserStore

TENANT = "demo"


# ─────────────────────────────────────────────────────────────────────────────
# Network Guard Rails
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture(autouse=True)
def _block_network(monkeypatch):
    """Prevent unit tests from hitting a live Keycloak."""

    def _unexpected(method):
        def _stub(url, *args, **kwargs):
            raise RuntimeError(f"Unexpected HTTP {method} in unit test: {url}")
        return _stub

    monkeypatch.setattr(requests, "get", _unexpected("GET"))
    monkeypatch.setattr(requests, "post", _unexpected("POST"))


# ─────────────────────────────────────────────────────────────────────────────
# Legacy store / user store
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture
def legacy_gateway():
    """Legacy metadata store seeded with one primary and one secondary group."""
    gateway = InMemoryGroupMetadataGateway()
    gateway.add_group(
        TENANT, "engineering", "g-eng",
        created="2021-01-01T00:00:00Z", last_modified="2021-06-01T00:00:00Z",
    )
    gateway.add_group(
        TENANT, "SECONDARY/ops", "g-ops",
        created="2022-02-02T00:00:00Z", last_modified="2022-03-03T00:00:00Z",
    )
    return gateway


@pytest.fixture
def mock_gateway():
    """Gateway whose every call is recorded (and fails the test if unexpected)."""
    return MagicMock(spec=GroupMetadataGateway)


@pytest.fixture
def legacy_store():
    """User store without native group ids."""
    store = InMemoryUserStore(TENANT, unique_group_id_enabled=False)
    store.add_group("engineering")
    store.add_group("SECONDARY/ops")
    store.add_member("u1", "engineering")
    store.add_member("u1", "SECONDARY/ops")
    return store


@pytest.fixture
def native_store():
    """User store with native group ids."""
    store = InMemoryUserStore(TENANT, unique_group_id_enabled=True)
    store.add_group("engineering", "kc-eng")
    store.add_member("u1", "engineering")
    return store


@pytest.fixture
def listener(legacy_gateway):
    return ScimGroupOperationListener(legacy_gateway, scim_base_url="https://scim.example/scim/v2")


@pytest.fixture
def config():
    return CompatConfig(scim_base_url="https://scim.example/scim/v2")


# ─────────────────────────────────────────────────────────────────────────────
# Flask Test Client
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture()
def client(legacy_store, legacy_gateway, config):
    """Flask test client serving the legacy user store."""
    from scim_compat.flask_app import create_app

    flask_app = create_app(user_store=legacy_store, config=config, gateway=legacy_gateway)
    flask_app.config.update(TESTING=True)
    return flask_app.test_client()
