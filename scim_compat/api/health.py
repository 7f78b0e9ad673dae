"""Liveness and readiness endpoints."""
from flask import Blueprint, current_app, jsonify

bp = Blueprint("health", __name__)


@bp.route("/health")
def health_check():
    return ("ok", 200, {"Content-Type": "text/plain"})


@bp.route("/ready")
def readiness_check():
    """Report which user store is served and whether group ids come from the legacy store."""
    store = current_app.config.get("USER_STORE")
    if store is None:
        return jsonify({"status": "unavailable"}), 503
    return jsonify({
        "status": "ready",
        "tenant": str(store.tenant_id),
        "domain": store.domain_name,
        "legacyGroupIds": not store.is_unique_group_id_enabled(),
        "listeners": [type(listener).__name__ for listener in store.listeners],
    }), 200
