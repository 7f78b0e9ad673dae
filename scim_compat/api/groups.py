"""SCIM 2.0 Groups read endpoints (RFC 7644).

Architecture:
    SCIM API (/scim/v2/Groups) -> UserStore (native read) -> listener chain
                                                         └─> ScimGroupOperationListener -> legacy metadata store

Security:
    - Optional static Bearer token (SCIM_STATIC_TOKEN), compared in constant time
    - When no token is configured the endpoints are open (local/demo use)
"""
from __future__ import annotations
import hashlib
import hmac
import logging

from flask import Blueprint, current_app, jsonify, request, Response

from scim_compat.core.exceptions import (
    DirectoryError,
    InvalidAttributeError,
    LookupFailedError,
    NoSchemaMappingError,
    ScimError,
    UnsupportedFilterError,
)
from scim_compat.core.filters import parse_scim_filter
from scim_compat.core.models import ExpressionCondition
from scim_compat.core.names import DOMAIN_SEPARATOR, extract_domain_from_name
from scim_compat.core.scim_transformer import ScimTransformer
from scim_compat.core.user_store import UserStore

bp = Blueprint("scim_groups", __name__)

logger = logging.getLogger(__name__)

DEFAULT_COUNT = 100
MAX_COUNT = 200


def _user_store() -> UserStore:
    return current_app.config["USER_STORE"]


def _base_url() -> str:
    cfg = current_app.config.get("APP_CONFIG")
    return cfg.scim_base_url if cfg else "/scim/v2"


def scim_error_response(status: int, detail: str, scim_type: str = None) -> Response:
    """Create SCIM error Response object."""
    error = ScimError(status, detail, scim_type)
    response = jsonify(error.to_dict())
    response.status_code = status
    return response


# ─────────────────────────────────────────────────────────────────────────────
# Error Handlers
# ─────────────────────────────────────────────────────────────────────────────

@bp.errorhandler(ScimError)
def handle_scim_error(error: ScimError):
    return jsonify(error.to_dict()), error.status


@bp.errorhandler(InvalidAttributeError)
@bp.errorhandler(NoSchemaMappingError)
@bp.errorhandler(UnsupportedFilterError)
def handle_filter_error(error):
    return scim_error_response(400, str(error), "invalidFilter")


@bp.errorhandler(LookupFailedError)
def handle_lookup_failed(error: LookupFailedError):
    logger.error("Legacy group lookup failed: %s", error, exc_info=True)
    return scim_error_response(500, "Failed to resolve group metadata")


@bp.errorhandler(DirectoryError)
def handle_directory_error(error: DirectoryError):
    logger.error("User store read failed: %s", error, exc_info=True)
    return scim_error_response(502, "User store is unavailable")


# ─────────────────────────────────────────────────────────────────────────────
# Authentication
# ─────────────────────────────────────────────────────────────────────────────

@bp.before_request
def validate_request():
    """Enforce the static Bearer token when one is configured."""
    cfg = current_app.config.get("APP_CONFIG")
    if not cfg or not cfg.scim_static_token:
        return None

    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith("Bearer "):
        logger.warning("SCIM request missing Authorization header | path=%s", request.path)
        return scim_error_response(401, "Authorization header missing or invalid")

    token = auth_header[len("Bearer "):].strip()
    if not hmac.compare_digest(token, cfg.scim_static_token):
        token_hash = hashlib.sha256(token.encode()).hexdigest()[:12]
        logger.warning("SCIM auth failed | token_hash=%s | path=%s", token_hash, request.path)
        return scim_error_response(401, "Invalid bearer token")
    return None


# ─────────────────────────────────────────────────────────────────────────────
# Routes
# ─────────────────────────────────────────────────────────────────────────────

def _int_param(name: str, default: int) -> int:
    raw = request.args.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ScimError(400, f"{name} must be an integer", "invalidValue")


@bp.route("/Groups/<group_id>", methods=["GET"])
def get_group(group_id: str):
    group = _user_store().get_group_by_id(group_id)
    if group is None:
        raise ScimError(404, f"Group with id '{group_id}' not found")
    return jsonify(ScimTransformer.group_to_scim(group, _base_url())), 200


@bp.route("/Groups", methods=["GET"])
def list_groups():
    """List groups matching a SCIM filter.

    Query parameters:
        filter: e.g. ``displayName eq "engineering"`` (default: all groups)
        startIndex: 1-based index of the first result
        count: page size (max 200)
    """
    store = _user_store()
    try:
        condition = parse_scim_filter(request.args.get("filter"))
    except ValueError as exc:
        raise ScimError(400, str(exc), "invalidFilter")
    if condition is None:
        condition = ExpressionCondition("displayName", "sw", "")

    start_index = max(1, _int_param("startIndex", 1))
    count = min(MAX_COUNT, max(1, _int_param("count", DEFAULT_COUNT)))

    domain = store.domain_name
    if isinstance(condition, ExpressionCondition) and DOMAIN_SEPARATOR in condition.attribute_value:
        domain = extract_domain_from_name(condition.attribute_value)

    groups = store.list_groups(condition, limit=count, offset=start_index - 1, domain=domain)
    resources = [ScimTransformer.group_to_scim(group, _base_url()) for group in groups]
    return jsonify(ScimTransformer.list_response(resources, start_index=start_index)), 200


@bp.route("/Users/<user_id>/Groups", methods=["GET"])
def list_user_groups(user_id: str):
    groups = _user_store().get_groups_of_user(user_id)
    resources = [ScimTransformer.group_to_scim(group, _base_url()) for group in groups]
    return jsonify(ScimTransformer.list_response(resources)), 200
