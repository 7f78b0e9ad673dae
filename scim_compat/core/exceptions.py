"""Typed exceptions for the SCIM group compatibility layer."""
from __future__ import annotations

from typing import Optional


class GroupCompatError(Exception):
    """Base exception for all group compatibility operations."""
    pass


class GroupMetadataError(GroupCompatError):
    """Legacy group metadata store failed to answer a query."""
    pass


class LookupFailedError(GroupCompatError):
    """Retrieving a legacy group id, name or attribute set failed.

    Attributes:
        tenant_id: Tenant the lookup was scoped to
        subject: Group name or id being resolved
    """

    def __init__(self, message: str, tenant_id=None, subject: Optional[str] = None):
        self.tenant_id = tenant_id
        self.subject = subject
        super().__init__(message)


class InvalidAttributeError(GroupCompatError):
    """Filter attribute name is missing or blank."""
    pass


class NoSchemaMappingError(GroupCompatError):
    """Filter attribute has no legacy schema equivalent.

    Attributes:
        attribute_name: Logical attribute name from the filter
        tenant_id: Tenant the filter was evaluated for
    """

    def __init__(self, attribute_name: str, tenant_id=None):
        self.attribute_name = attribute_name
        self.tenant_id = tenant_id
        super().__init__(
            f"No scim schema to attribute mapping for attribute: {attribute_name} for tenant: {tenant_id}"
        )


class UnsupportedFilterError(GroupCompatError):
    """Filter cannot be translated to a legacy store search (compound or unknown operator)."""
    pass


class DirectoryError(GroupCompatError):
    """User store backend failed while answering a native read."""
    pass


class KeycloakAPIError(DirectoryError):
    """HTTP error from Keycloak Admin API.

    Attributes:
        status_code: HTTP status code
        message: Error message from response
        endpoint: API endpoint that failed
    """

    def __init__(self, status_code: int, message: str, endpoint: str):
        self.status_code = status_code
        self.message = message
        self.endpoint = endpoint
        super().__init__(f"[{status_code}] {endpoint}: {message}")


SCIM_ERROR_SCHEMA = "urn:ietf:params:scim:api:messages:2.0:Error"


class ScimError(Exception):
    """SCIM protocol error with HTTP status and optional scimType."""

    def __init__(self, status: int, detail: str, scim_type: Optional[str] = None):
        self.status = status
        self.detail = detail
        self.scim_type = scim_type
        super().__init__(detail)

    def to_dict(self) -> dict:
        """Convert to SCIM error response format."""
        error_dict = {
            "schemas": [SCIM_ERROR_SCHEMA],
            "status": str(self.status),
            "detail": self.detail,
        }
        if self.scim_type:
            error_dict["scimType"] = self.scim_type
        return error_dict
