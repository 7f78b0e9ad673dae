"""Flask application factory and bootstrap.

This module provides the create_app() factory function wiring the user
store, the SCIM group compatibility listener, and the SCIM Groups API.
"""
from __future__ import annotations
import logging
from typing import Optional

from flask import Flask

from scim_compat.config import CompatConfig, load_settings
from scim_compat.core.gateway import GroupMetadataGateway, InMemoryGroupMetadataGateway, load_gateway_from_yaml
from scim_compat.core.keycloak import KeycloakClient, KeycloakUserStore
from scim_compat.core.listener import ScimGroupOperationListener
from scim_compat.core.user_store import UserStore

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# Wiring
# ─────────────────────────────────────────────────────────────────────────────
def build_gateway(cfg: CompatConfig) -> GroupMetadataGateway:
    """Create the legacy group metadata store from configuration."""
    if cfg.legacy_metadata_file:
        return load_gateway_from_yaml(cfg.legacy_metadata_file)
    return InMemoryGroupMetadataGateway()


def build_listener(cfg: CompatConfig, gateway: GroupMetadataGateway) -> ScimGroupOperationListener:
    """Create the SCIM group compatibility listener from configuration."""
    return ScimGroupOperationListener(
        gateway,
        schema_map=cfg.group_attribute_schema_map,
        order_id=cfg.listener_order_id,
        scim_base_url=cfg.scim_base_url,
    )


def build_user_store(cfg: CompatConfig) -> KeycloakUserStore:
    """Create the Keycloak user store, authenticated with the service account."""
    if not cfg.keycloak_service_client_secret:
        raise RuntimeError(
            "KEYCLOAK_SERVICE_CLIENT_SECRET not found. "
            "Provide it via Docker secrets or environment variable."
        )
    client = KeycloakClient(cfg.keycloak_url)
    client.authenticate_service_account(
        cfg.keycloak_service_realm,
        cfg.keycloak_service_client_id,
        cfg.keycloak_service_client_secret,
    )
    return KeycloakUserStore(
        client,
        cfg.keycloak_realm,
        domain_name=cfg.user_store_domain,
        unique_group_id_enabled=cfg.unique_group_id_enabled,
    )


# ─────────────────────────────────────────────────────────────────────────────
# Application Factory
# ─────────────────────────────────────────────────────────────────────────────
def create_app(
    user_store: Optional[UserStore] = None,
    config: Optional[CompatConfig] = None,
    gateway: Optional[GroupMetadataGateway] = None,
) -> Flask:
    """Create and configure Flask application.

    Args:
        user_store: User store to serve (defaults to the configured Keycloak realm)
        config: Configuration (defaults to load_settings())
        gateway: Legacy group metadata store (defaults to build_gateway(config))
    """
    cfg = config or load_settings()

    if user_store is None:
        user_store = build_user_store(cfg)
    user_store.add_listener(build_listener(cfg, gateway if gateway is not None else build_gateway(cfg)))

    app = Flask(__name__)
    app.config["APP_CONFIG"] = cfg
    app.config["USER_STORE"] = user_store

    from scim_compat.api import errors, groups, health

    app.register_blueprint(health.bp)
    app.register_blueprint(groups.bp, url_prefix="/scim/v2")
    errors.register_error_handlers(app)

    logger.info(
        "[flask_app] SCIM Groups API registered at /scim/v2 | tenant=%s | domain=%s | unique_group_id_enabled=%s",
        user_store.tenant_id,
        user_store.domain_name,
        user_store.is_unique_group_id_enabled(),
    )
    return app
