from unittest.mock import MagicMock

import pytest

from scim_compat import flask_app
from scim_compat.config import CompatConfig
from scim_compat.core.gateway import InMemoryGroupMetadataGateway
from scim_compat.core.keycloak import KeycloakUserStore
from scim_compat.core.listener import ScimGroupOperationListener


def test_create_app_registers_listener(legacy_store, legacy_gateway):
    cfg = CompatConfig(scim_base_url="https://scim.example/scim/v2", listener_order_id=4)
    app = flask_app.create_app(user_store=legacy_store, config=cfg, gateway=legacy_gateway)

    assert app.config["USER_STORE"] is legacy_store
    assert app.config["APP_CONFIG"] is cfg
    [listener] = legacy_store.listeners
    assert isinstance(listener, ScimGroupOperationListener)
    assert listener.gateway is legacy_gateway
    assert listener.execution_order_id == 4


def test_create_app_loads_settings(monkeypatch, legacy_store):
    monkeypatch.setattr(flask_app, "load_settings", lambda: CompatConfig(scim_base_url="https://env/scim/v2"))
    app = flask_app.create_app(user_store=legacy_store)
    assert app.config["APP_CONFIG"].scim_base_url == "https://env/scim/v2"
    assert isinstance(legacy_store.listeners[0].gateway, InMemoryGroupMetadataGateway)


def test_build_gateway_reads_yaml(tmp_path):
    source = tmp_path / "groups.yaml"
    source.write_text("tenants:\n  demo:\n    - name: engineering\n      id: g-eng\n")
    gateway = flask_app.build_gateway(CompatConfig(legacy_metadata_file=str(source)))
    assert gateway.get_group_id_by_name("demo", "engineering") == "g-eng"


def test_build_user_store_requires_secret():
    with pytest.raises(RuntimeError, match="KEYCLOAK_SERVICE_CLIENT_SECRET"):
        flask_app.build_user_store(CompatConfig())


def test_build_user_store_authenticates(monkeypatch):
    kc_client = MagicMock()
    monkeypatch.setattr(flask_app, "KeycloakClient", MagicMock(return_value=kc_client))
    cfg = CompatConfig(
        keycloak_realm="acme",
        keycloak_service_realm="master",
        keycloak_service_client_secret="s3cret",
        user_store_domain="SECONDARY",
        unique_group_id_enabled=False,
    )

    store = flask_app.build_user_store(cfg)

    kc_client.authenticate_service_account.assert_called_once_with("master", "automation-cli", "s3cret")
    assert isinstance(store, KeycloakUserStore)
    assert store.tenant_id == "acme"
    assert store.domain_name == "SECONDARY"
    assert store.is_unique_group_id_enabled() is False
