"""Keycloak Admin API client and Keycloak-backed user store.

Usage:
    from scim_compat.core.keycloak import KeycloakClient, KeycloakUserStore

    client = KeycloakClient("http://keycloak:8080")
    client.authenticate_service_account("demo", "automation-cli", "secret")
    store = KeycloakUserStore(client, realm="demo")
    group = store.get_group_by_id("5f1c...")
"""
from .client import KeycloakClient, REQUEST_TIMEOUT
from .groups import KeycloakUserStore

__all__ = [
    "KeycloakClient",
    "REQUEST_TIMEOUT",
    "KeycloakUserStore",
]
