"""HTTP layer: SCIM Groups read API, health checks, error handlers."""
