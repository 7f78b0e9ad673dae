"""Settings loader with environment variable and Docker secrets integration."""
from __future__ import annotations
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

import yaml

from scim_compat.core.schema import DEFAULT_GROUP_ATTRIBUTE_SCHEMA_MAP

logger = logging.getLogger(__name__)


def _load_secret_from_file(secret_name: str, env_var: str | None = None) -> str | None:
    """
    Load secret from /run/secrets (Docker secrets pattern).

    Priority:
    1. /run/secrets/{secret_name} (Docker secrets mount)
    2. Environment variable (fallback)

    Args:
        secret_name: Name of the secret file in /run/secrets
        env_var: Optional environment variable name to check as fallback

    Returns:
        Secret value or None if not found
    """
    secret_file = Path("/run/secrets") / secret_name

    if secret_file.exists() and secret_file.is_file():
        try:
            secret_value = secret_file.read_text().strip()
            if secret_value:
                logger.info("[settings] Loaded %s from /run/secrets", secret_name)
                return secret_value
        except OSError as e:
            logger.warning("[settings] Failed to read /run/secrets/%s: %s", secret_name, e)

    if env_var:
        secret_value = os.getenv(env_var)
        if secret_value:
            return secret_value

    return None


def _env_bool(var_name: str, default: bool) -> bool:
    return os.environ.get(var_name, str(default)).strip().lower() == "true"


def _env_int(var_name: str, default: int) -> int:
    raw = os.environ.get(var_name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"Environment variable {var_name} must be an integer, got '{raw}'")


def load_attribute_schema_map(path: str | Path) -> Dict[str, str]:
    """Load a schema URI -> attribute name mapping overlaying the defaults.

    Raises:
        RuntimeError: If the file cannot be read or is not a mapping
    """
    source = Path(path)
    try:
        with source.open("r", encoding="utf-8") as handle:
            overrides = yaml.safe_load(handle) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise RuntimeError(f"Unable to load group attribute map from {source}: {exc}") from exc
    if not isinstance(overrides, dict):
        raise RuntimeError(f"Group attribute map {source} must be a mapping of schema URI to attribute name")

    schema_map = dict(DEFAULT_GROUP_ATTRIBUTE_SCHEMA_MAP)
    schema_map.update({str(key): str(value) for key, value in overrides.items()})
    return schema_map


@dataclass
class CompatConfig:
    """Application configuration container."""
    # SCIM
    scim_base_url: str = "https://localhost/scim/v2"
    scim_static_token: str = ""
    listener_order_id: int = -1
    group_attribute_schema_map: dict[str, str] = field(
        default_factory=lambda: dict(DEFAULT_GROUP_ATTRIBUTE_SCHEMA_MAP)
    )

    # Legacy metadata store
    legacy_metadata_file: str = ""

    # Keycloak directory
    keycloak_url: str = "http://127.0.0.1:8080"
    keycloak_realm: str = "demo"
    keycloak_service_realm: str = "demo"
    keycloak_service_client_id: str = "automation-cli"
    keycloak_service_client_secret: str = ""
    user_store_domain: str = "PRIMARY"
    unique_group_id_enabled: bool = True


def load_settings() -> CompatConfig:
    """Load application settings from environment and /run/secrets."""
    keycloak_realm = os.environ.get("KEYCLOAK_REALM", "demo")

    schema_map_file = os.environ.get("SCIM_GROUP_ATTRIBUTE_MAP_FILE", "").strip()
    if schema_map_file:
        group_attribute_schema_map = load_attribute_schema_map(schema_map_file)
    else:
        group_attribute_schema_map = dict(DEFAULT_GROUP_ATTRIBUTE_SCHEMA_MAP)

    cfg = CompatConfig(
        scim_base_url=os.environ.get("SCIM_BASE_URL", "https://localhost/scim/v2").rstrip("/"),
        scim_static_token=_load_secret_from_file("scim_static_token", "SCIM_STATIC_TOKEN") or "",
        listener_order_id=_env_int("SCIM_GROUP_LISTENER_ORDER_ID", -1),
        group_attribute_schema_map=group_attribute_schema_map,
        legacy_metadata_file=os.environ.get("LEGACY_GROUP_METADATA_FILE", "").strip(),
        keycloak_url=os.environ.get("KEYCLOAK_URL", "http://127.0.0.1:8080").rstrip("/"),
        keycloak_realm=keycloak_realm,
        keycloak_service_realm=os.environ.get("KEYCLOAK_SERVICE_REALM", keycloak_realm),
        keycloak_service_client_id=os.environ.get("KEYCLOAK_SERVICE_CLIENT_ID", "automation-cli"),
        keycloak_service_client_secret=_load_secret_from_file(
            "keycloak_service_client_secret",
            "KEYCLOAK_SERVICE_CLIENT_SECRET",
        ) or "",
        user_store_domain=os.environ.get("USER_STORE_DOMAIN", "PRIMARY").strip().upper() or "PRIMARY",
        unique_group_id_enabled=_env_bool("UNIQUE_GROUP_ID_ENABLED", True),
    )

    logger.info(
        "[settings] realm=%s; domain=%s; unique_group_id_enabled=%s; legacy_metadata_file=%s",
        cfg.keycloak_realm,
        cfg.user_store_domain,
        cfg.unique_group_id_enabled,
        cfg.legacy_metadata_file or "<none>",
    )
    return cfg
