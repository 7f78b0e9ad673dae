"""Application-wide JSON error handlers."""
from flask import jsonify
from werkzeug.exceptions import HTTPException

from scim_compat.core.exceptions import GroupCompatError, ScimError


def register_error_handlers(app):
    """Register error handlers with the Flask app.

    Every error is answered with a SCIM error body (RFC 7644 §3.12).
    """

    @app.errorhandler(HTTPException)
    def handle_http_error(error: HTTPException):
        """Render werkzeug HTTP errors (404, 405, ...) as SCIM errors."""
        body = ScimError(error.code or 500, error.description or error.name).to_dict()
        return jsonify(body), error.code or 500

    @app.errorhandler(GroupCompatError)
    def handle_group_compat_error(error: GroupCompatError):
        """Group errors not mapped by the SCIM blueprint."""
        app.logger.error("Group compatibility error (%s): %s", type(error).__name__, error, exc_info=True)
        body = ScimError(500, "Group compatibility layer failed").to_dict()
        return jsonify(body), 500

    @app.errorhandler(Exception)
    def handle_exception(error):
        """Handle uncaught exceptions."""
        if isinstance(error, HTTPException):
            return handle_http_error(error)

        app.logger.error(f"Unhandled exception: {error}", exc_info=True)
        body = ScimError(500, "An unexpected error occurred").to_dict()
        return jsonify(body), 500
