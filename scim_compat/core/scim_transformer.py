"""Group ↔ SCIM 2.0 resource transformations.

Usage:
    scim_group = ScimTransformer.group_to_scim(group, base_url="/scim/v2")
    response = ScimTransformer.list_response(groups, start_index=1)
"""
from __future__ import annotations
from typing import Any, Dict, List, Optional

from .models import Group
from .schema import SCIM_GROUP_SCHEMA

SCIM_LIST_RESPONSE_SCHEMA = "urn:ietf:params:scim:api:messages:2.0:ListResponse"


class ScimTransformer:
    """Shape Group records as SCIM 2.0 Group resources."""

    @staticmethod
    def group_to_scim(group: Group, base_url: str = "/scim/v2") -> Dict[str, Any]:
        """Convert a Group to a SCIM 2.0 Group resource.

        The resource ``displayName`` is the canonical group name, so groups of
        secondary user stores keep their domain qualifier on the wire.

        Args:
            group: Group record
            base_url: SCIM API base URL, used when the group has no location

        Returns:
            SCIM 2.0 Group resource

        Example:
            >>> group = Group(group_id="g1", group_name="SECONDARY/ops", display_name="ops")
            >>> ScimTransformer.group_to_scim(group)["displayName"]
            'SECONDARY/ops'
        """
        group_id = group.group_id or ""
        scim_resource = {
            "schemas": [SCIM_GROUP_SCHEMA],
            "id": group_id,
            "displayName": group.group_name or group.display_name,
            "meta": {
                "resourceType": "Group",
                "location": group.location or f"{base_url.rstrip('/')}/Groups/{group_id}",
            },
        }
        if group.created_date:
            scim_resource["meta"]["created"] = group.created_date
        if group.last_modified_date:
            scim_resource["meta"]["lastModified"] = group.last_modified_date
        return scim_resource

    @staticmethod
    def list_response(
        resources: List[Dict[str, Any]],
        start_index: int = 1,
        total_results: Optional[int] = None,
    ) -> Dict[str, Any]:
        """Wrap resources in a SCIM ListResponse."""
        return {
            "schemas": [SCIM_LIST_RESPONSE_SCHEMA],
            "totalResults": len(resources) if total_results is None else total_results,
            "startIndex": start_index,
            "itemsPerPage": len(resources),
            "Resources": resources,
        }
