"""SCIM schema constants and filter attribute translation for the legacy group store.

The legacy store keeps group attributes keyed by SCIM schema URI. Filters
arrive with logical attribute names ("displayName", "createdDate", ...), so a
filtered listing first resolves the logical name to its schema URI and then
turns the filter operator into a store search pattern.
"""
from __future__ import annotations
from typing import Dict, Mapping, Optional

from .exceptions import InvalidAttributeError, NoSchemaMappingError, UnsupportedFilterError
from .names import DOMAIN_SEPARATOR

# Common schema URIs
ID_URI = "urn:ietf:params:scim:schemas:core:2.0:id"
CREATED_URI = "urn:ietf:params:scim:schemas:core:2.0:meta.created"
LAST_MODIFIED_URI = "urn:ietf:params:scim:schemas:core:2.0:meta.lastModified"
LOCATION_URI = "urn:ietf:params:scim:schemas:core:2.0:meta.location"
DISPLAY_NAME_URI = "urn:ietf:params:scim:schemas:core:2.0:Group:displayName"

SCIM_GROUP_SCHEMA = "urn:ietf:params:scim:schemas:core:2.0:Group"

# Filter operators
EQ = "eq"
SW = "sw"
EW = "ew"
CO = "co"

SQL_FILTERING_DELIMITER = "%"

# schema URI -> logical group attribute name
DEFAULT_GROUP_ATTRIBUTE_SCHEMA_MAP: Dict[str, str] = {
    ID_URI: "id",
    DISPLAY_NAME_URI: "displayName",
    CREATED_URI: "createdDate",
    LAST_MODIFIED_URI: "lastModifiedDate",
    LOCATION_URI: "location",
}


class AttributeSchemaResolver:
    """Resolve logical group attribute names to legacy schema keys."""

    def __init__(self, schema_map: Optional[Mapping[str, str]] = None):
        """Initialize resolver.

        Args:
            schema_map: Mapping of schema URI to logical attribute name
                (defaults to DEFAULT_GROUP_ATTRIBUTE_SCHEMA_MAP)
        """
        self.schema_map = dict(schema_map if schema_map is not None else DEFAULT_GROUP_ATTRIBUTE_SCHEMA_MAP)

    def resolve(self, attribute_name: Optional[str], tenant_id=None) -> str:
        """Get the schema key associated with a logical group attribute.

        The comparison is case-insensitive. When several schema keys map to the
        same logical name the last one in iteration order is returned.

        Args:
            attribute_name: Logical attribute name from the filter
            tenant_id: Tenant id, used for error context only

        Returns:
            Schema URI

        Raises:
            InvalidAttributeError: If attribute_name is blank
            NoSchemaMappingError: If no schema key maps to attribute_name
        """
        if not attribute_name or not attribute_name.strip():
            raise InvalidAttributeError("Group attribute cannot be empty")

        schema = None
        wanted = attribute_name.lower()
        for key, logical_name in self.schema_map.items():
            if logical_name is not None and logical_name.lower() == wanted:
                schema = key
        if schema is None:
            raise NoSchemaMappingError(attribute_name, tenant_id)
        return schema


def build_search_attribute_value(
    attribute_name: str,
    operation: str,
    attribute_value: str,
    delimiter: str = SQL_FILTERING_DELIMITER,
) -> str:
    """Translate a filter operator and value into a legacy store search pattern.

    Display-name values may embed a domain ("SECONDARY/eng"); the wildcard is
    then placed after the qualifier so the domain still matches exactly.

    Examples:
        >>> build_search_attribute_value(DISPLAY_NAME_URI, "sw", "eng")
        'eng%'
        >>> build_search_attribute_value(DISPLAY_NAME_URI, "co", "SECONDARY/eng")
        'SECONDARY/%eng%'

    Raises:
        UnsupportedFilterError: If the operator has no search equivalent
    """
    op = (operation or "").lower()
    if op == EQ:
        return attribute_value
    if op == SW:
        return attribute_value + delimiter
    if op in (CO, EW):
        suffix = delimiter if op == CO else ""
        if attribute_name == DISPLAY_NAME_URI and DOMAIN_SEPARATOR in attribute_value:
            domain, name = attribute_value.split(DOMAIN_SEPARATOR, 1)
            return f"{domain}{DOMAIN_SEPARATOR}{delimiter}{name}{suffix}"
        return f"{delimiter}{attribute_value}{suffix}"
    raise UnsupportedFilterError(f"Filter operation '{operation}' is not supported for group search")
