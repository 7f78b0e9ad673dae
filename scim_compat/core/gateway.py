"""Legacy SCIM group metadata store.

The legacy store keeps one attribute set per (tenant, domain-qualified group
name), keyed by SCIM schema URI. This module defines the lookup contract the
compat listener depends on and an in-memory implementation that can be seeded
from a YAML export of the legacy table.

YAML layout:

    tenants:
      demo:
        - name: engineering
          id: 5f1c...
          created: "2021-01-01T00:00:00Z"
          lastModified: "2021-06-01T00:00:00Z"
        - name: SECONDARY/ops
          id: 9a2e...
"""
from __future__ import annotations
import re
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import yaml

from .exceptions import GroupMetadataError
from .names import extract_domain_from_name, is_primary_domain, remove_domain_from_name, resolve_group_name
from .schema import (
    CREATED_URI,
    DISPLAY_NAME_URI,
    ID_URI,
    LAST_MODIFIED_URI,
    LOCATION_URI,
    SQL_FILTERING_DELIMITER,
)


class GroupMetadataGateway:
    """Lookup contract of the legacy group metadata store.

    All calls are scoped by tenant id. Implementations raise
    GroupMetadataError when the store itself fails; "not found" is reported
    as None / empty results.
    """

    def get_group_id_by_name(self, tenant_id, group_name: str) -> Optional[str]:
        raise NotImplementedError

    def get_group_name_by_id(self, tenant_id, group_id: str) -> Optional[str]:
        raise NotImplementedError

    def get_group_attributes(self, tenant_id, group_name: str) -> Dict[str, str]:
        raise NotImplementedError

    def get_group_name_list(self, attribute_name: str, search_value: str, tenant_id, domain: Optional[str]) -> List[str]:
        raise NotImplementedError


def _like_to_regex(pattern: str) -> re.Pattern:
    """Compile a ``%``-wildcard search pattern into a case-insensitive regex."""
    parts = [re.escape(part) for part in pattern.split(SQL_FILTERING_DELIMITER)]
    return re.compile(".*".join(parts), re.IGNORECASE | re.DOTALL)


def _in_domain(group_name: str, domain: Optional[str]) -> bool:
    if not domain:
        return True
    group_domain = extract_domain_from_name(group_name)
    if is_primary_domain(domain):
        return is_primary_domain(group_domain)
    return group_domain == domain.upper()


def _group_key(tenant_id, group_name: str) -> Tuple[str, str]:
    # "PRIMARY/alice" and "alice" name the same group
    return str(tenant_id), resolve_group_name(group_name, extract_domain_from_name(group_name))


class InMemoryGroupMetadataGateway(GroupMetadataGateway):
    """Dictionary-backed legacy group metadata store.

    Names are keyed in canonical form: the primary domain qualifier is
    dropped on write and on lookup.
    """

    def __init__(self):
        self._groups: Dict[Tuple[str, str], Dict[str, str]] = {}

    def add_group(
        self,
        tenant_id,
        group_name: str,
        group_id: str,
        created: Optional[str] = None,
        last_modified: Optional[str] = None,
        location: Optional[str] = "",
    ) -> None:
        """Store the attribute set of one group.

        Args:
            tenant_id: Tenant id
            group_name: Domain-qualified group name as stored by the directory
            group_id: Stable SCIM group id
            created: Creation timestamp (stored verbatim)
            last_modified: Last modification timestamp (stored verbatim)
            location: Location value; None omits the attribute
        """
        attributes = {ID_URI: group_id}
        if created is not None:
            attributes[CREATED_URI] = created
        if last_modified is not None:
            attributes[LAST_MODIFIED_URI] = last_modified
        if location is not None:
            attributes[LOCATION_URI] = location
        self._groups[_group_key(tenant_id, group_name)] = attributes

    def get_group_id_by_name(self, tenant_id, group_name: str) -> Optional[str]:
        attributes = self._groups.get(_group_key(tenant_id, group_name))
        if not attributes:
            return None
        return attributes.get(ID_URI)

    def get_group_name_by_id(self, tenant_id, group_id: str) -> Optional[str]:
        for (tenant, name), attributes in self._groups.items():
            if tenant == str(tenant_id) and attributes.get(ID_URI) == group_id:
                return name
        return None

    def get_group_attributes(self, tenant_id, group_name: str) -> Dict[str, str]:
        return dict(self._groups.get(_group_key(tenant_id, group_name), {}))

    def get_group_name_list(self, attribute_name: str, search_value: str, tenant_id, domain: Optional[str]) -> List[str]:
        matcher = _like_to_regex(search_value)
        names = []
        for (tenant, name), attributes in self._groups.items():
            if tenant != str(tenant_id) or not _in_domain(name, domain):
                continue
            if attribute_name == DISPLAY_NAME_URI:
                candidates = [name, remove_domain_from_name(name)]
            else:
                candidates = [attributes.get(attribute_name)]
            if any(value is not None and matcher.fullmatch(value) for value in candidates):
                names.append(name)
        return names


def _as_text(value) -> Optional[str]:
    # unquoted YAML timestamps load as date objects
    return None if value is None else str(value)


def load_gateway_from_yaml(path) -> InMemoryGroupMetadataGateway:
    """Build an in-memory gateway from a YAML export of the legacy table.

    Raises:
        RuntimeError: If the file cannot be read or is malformed
    """
    source = Path(path)
    try:
        with source.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise RuntimeError(f"Unable to load legacy group metadata from {source}: {exc}") from exc

    tenants = data.get("tenants") if isinstance(data, dict) else None
    if not isinstance(tenants, dict):
        raise RuntimeError(f"Legacy group metadata file {source} must define a 'tenants' mapping")

    gateway = InMemoryGroupMetadataGateway()
    for tenant_id, groups in tenants.items():
        for entry in groups or []:
            if not isinstance(entry, dict) or not entry.get("name") or not entry.get("id"):
                raise RuntimeError(f"Invalid group entry for tenant '{tenant_id}' in {source}: {entry!r}")
            gateway.add_group(
                tenant_id,
                str(entry["name"]),
                str(entry["id"]),
                created=_as_text(entry.get("created")),
                last_modified=_as_text(entry.get("lastModified")),
                location=entry.get("location", ""),
            )
    return gateway


__all__ = [
    "GroupMetadataError",
    "GroupMetadataGateway",
    "InMemoryGroupMetadataGateway",
    "load_gateway_from_yaml",
]
