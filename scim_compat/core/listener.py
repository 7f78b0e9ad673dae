"""SCIM group compatibility listener.

User stores without stable group ids cannot answer id-based group reads. For
those stores the SCIM group ids (and created/lastModified metadata) live in
the legacy group metadata store, keyed by tenant and domain-qualified group
name. This listener runs after the user store's own read and fills in (or
builds) the group records from that legacy store.

Stores that support unique group ids natively are left alone: every hook
checks the capability first and returns its input untouched, without
touching the legacy store.
"""
from __future__ import annotations
import logging
from functools import partial
from typing import Callable, Dict, List, Mapping, Optional

from .exceptions import GroupMetadataError, LookupFailedError, UnsupportedFilterError
from .gateway import GroupMetadataGateway
from .models import Condition, Group, OperationalCondition
from .names import extract_domain_from_name, remove_domain_from_name, resolve_group_name
from .schema import (
    CREATED_URI,
    ID_URI,
    LAST_MODIFIED_URI,
    LOCATION_URI,
    SQL_FILTERING_DELIMITER,
    AttributeSchemaResolver,
    build_search_attribute_value,
)
from .user_store import GroupOperationListener, UserStore

logger = logging.getLogger(__name__)

# Order id value meaning "not configured"
EVENT_LISTENER_ORDER_ID = -1
DEFAULT_EXECUTION_ORDER_ID = 1


def build_group_location(base_url: str, group_id: Optional[str]) -> str:
    """Return the SCIM location URL of a group."""
    return f"{base_url.rstrip('/')}/Groups/{group_id}"


def is_native_group_id_supported(user_store: UserStore) -> bool:
    """Return True if the user store already provides stable group ids."""
    supported = user_store.is_unique_group_id_enabled()
    if supported:
        logger.debug(
            "SCIM group listener skipped for userstore: %s in tenant %s since group id support "
            "is available in the userstore",
            user_store.domain_name,
            user_store.tenant_id,
        )
    return supported


class ScimGroupOperationListener(GroupOperationListener):
    """Resolve group ids and metadata from the legacy store for id-less user stores."""

    def __init__(
        self,
        gateway: GroupMetadataGateway,
        schema_map: Optional[Mapping[str, str]] = None,
        location_builder: Optional[Callable[[str], str]] = None,
        order_id: int = EVENT_LISTENER_ORDER_ID,
        scim_base_url: str = "/scim/v2",
    ):
        """Initialize listener.

        Args:
            gateway: Legacy group metadata store
            schema_map: Schema URI -> logical attribute name used for filtering
            location_builder: Group id -> location URL (defaults to build_group_location)
            order_id: Configured execution order id (-1 when unset)
            scim_base_url: SCIM base URL for the default location builder
        """
        self.gateway = gateway
        self.schema_resolver = AttributeSchemaResolver(schema_map)
        self.location_builder = location_builder or partial(build_group_location, scim_base_url)
        self._order_id = order_id

    @property
    def execution_order_id(self) -> int:
        if self._order_id != EVENT_LISTENER_ORDER_ID:
            return self._order_id
        return DEFAULT_EXECUTION_ORDER_ID

    # ─────────────────────────────────────────────────────────────────────────
    # Post hooks
    # ─────────────────────────────────────────────────────────────────────────

    def post_get_groups_of_user(self, user_id: str, groups: List[Group], user_store: UserStore) -> List[Group]:
        if is_native_group_id_supported(user_store):
            return groups
        # Legacy lookups need group names; nothing to do for an empty list
        if not groups:
            return groups

        tenant_id = user_store.tenant_id
        for group in groups:
            try:
                group_id = self.gateway.get_group_id_by_name(tenant_id, group.group_name)
            except GroupMetadataError as exc:
                raise LookupFailedError(
                    f"Error occurred while getting the group id of group: {group.group_name} in tenant: {tenant_id}",
                    tenant_id=tenant_id,
                    subject=group.group_name,
                ) from exc
            if group_id:
                group.group_id = group_id
        return groups

    def post_get_group_id_by_name(self, group_name: str, group: Optional[Group],
                                  user_store: UserStore) -> Optional[Group]:
        if is_native_group_id_supported(user_store):
            return group

        tenant_id = user_store.tenant_id
        logger.debug("Retrieving group with name: %s from tenant: %s", group_name, tenant_id)
        try:
            group_id = self.gateway.get_group_id_by_name(tenant_id, group_name)
        except GroupMetadataError as exc:
            raise LookupFailedError(
                f"Error occurred while getting the group id of group: {group_name} in tenant: {tenant_id}",
                tenant_id=tenant_id,
                subject=group_name,
            ) from exc
        if not group_id or not group_id.strip():
            logger.debug("No group found with the group name: %s in tenant: %s", group_name, tenant_id)
            return group

        if group is None:
            group = Group()
        group.group_id = group_id
        self._set_names(group, group_name)
        return group

    def post_get_group_name_by_id(self, group_id: str, group: Optional[Group],
                                  user_store: UserStore) -> Optional[Group]:
        if is_native_group_id_supported(user_store):
            return group

        tenant_id = user_store.tenant_id
        group_name = self._lookup_name_by_id(
            tenant_id, group_id, "Error occurred while getting the group name of group"
        )
        if group_name is None:
            return group

        if group is None:
            group = Group()
        group.group_id = group_id
        self._set_names(group, group_name)
        return group

    def post_get_group_by_id(self, group_id: str, requested_claims: Optional[List[str]], group: Optional[Group],
                             user_store: UserStore) -> Optional[Group]:
        if is_native_group_id_supported(user_store):
            return group

        tenant_id = user_store.tenant_id
        logger.debug("Retrieving group with id: %s from tenant: %s", group_id, tenant_id)
        error_message = "Error occurred while getting the group attributes of group"
        group_name = self._lookup_name_by_id(tenant_id, group_id, error_message)
        if group_name is None:
            return group
        attributes = self._lookup_attributes(tenant_id, group_name, f"{error_message}: {group_id}", group_id)

        if group is None:
            group = Group()
        group.group_id = group_id
        self._set_names(group, group_name)
        self._merge_attributes(group, attributes, group_id)
        return group

    def post_get_group_by_name(self, group_name: str, requested_claims: Optional[List[str]], group: Optional[Group],
                               user_store: UserStore) -> Optional[Group]:
        if is_native_group_id_supported(user_store):
            return group

        tenant_id = user_store.tenant_id
        logger.debug("Retrieving group with name: %s from tenant: %s", group_name, tenant_id)
        attributes = self._lookup_attributes(
            tenant_id,
            group_name,
            f"Error occurred while getting the group attributes of group: {group_name}",
            group_name,
        )
        if not attributes:
            logger.debug("No group found with name: %s in tenant: %s", group_name, tenant_id)
            return group

        group_id = attributes.get(ID_URI)
        if group is None:
            group = Group(group_id=group_id)
        self._set_names(group, group_name)
        self._merge_attributes(group, attributes, group_id)
        return group

    def post_list_groups(self, condition: Condition, limit: int, offset: int, domain: Optional[str],
                         sort_by: Optional[str], sort_order: Optional[str], groups: List[Group],
                         user_store: UserStore) -> List[Group]:
        if is_native_group_id_supported(user_store):
            return groups
        # Legacy user stores never had multi-attribute filtering
        if isinstance(condition, OperationalCondition):
            raise UnsupportedFilterError(
                f"OperationalCondition filtering is not supported by userstore: {type(user_store).__name__}"
            )

        tenant_id = user_store.tenant_id
        attribute_name = self.schema_resolver.resolve(condition.attribute_name, tenant_id)
        search_value = build_search_attribute_value(
            attribute_name, condition.operation, condition.attribute_value, SQL_FILTERING_DELIMITER
        )
        # limit, offset, sort_by and sort_order are not applied to legacy results
        try:
            group_names = self.gateway.get_group_name_list(attribute_name, search_value, tenant_id, domain)
            if not group_names:
                logger.debug("No groups found for the filter in userstore: %s in tenant: %s", domain, tenant_id)
                return groups
            for group_name in group_names:
                attributes = self.gateway.get_group_attributes(tenant_id, group_name)
                group_id = attributes.get(ID_URI)
                group = Group(group_id=group_id)
                self._set_names(group, group_name)
                self._merge_attributes(group, attributes, group_id)
                groups.append(group)
        except GroupMetadataError as exc:
            raise LookupFailedError(
                f"Error occurred while getting the group list in userstore: {domain} in tenant: {tenant_id}",
                tenant_id=tenant_id,
                subject=domain,
            ) from exc
        return groups

    # ─────────────────────────────────────────────────────────────────────────
    # Helpers
    # ─────────────────────────────────────────────────────────────────────────

    def _lookup_name_by_id(self, tenant_id, group_id: str, error_message: str) -> Optional[str]:
        """Return the legacy group name for an id, or None when there is no match."""
        try:
            group_name = self.gateway.get_group_name_by_id(tenant_id, group_id)
        except GroupMetadataError as exc:
            raise LookupFailedError(
                f"{error_message}: {group_id} in tenant: {tenant_id}",
                tenant_id=tenant_id,
                subject=group_id,
            ) from exc
        if not group_name or not group_name.strip():
            logger.error("No group found with id: %s in tenant: %s", group_id, tenant_id)
            return None
        return group_name

    def _lookup_attributes(self, tenant_id, group_name: str, error_message: str, subject: str) -> Dict[str, str]:
        try:
            return self.gateway.get_group_attributes(tenant_id, group_name) or {}
        except GroupMetadataError as exc:
            raise LookupFailedError(
                f"{error_message} in tenant: {tenant_id}",
                tenant_id=tenant_id,
                subject=subject,
            ) from exc

    @staticmethod
    def _set_names(group: Group, group_name: str) -> None:
        domain_name = extract_domain_from_name(group_name)
        group.group_name = resolve_group_name(group_name, domain_name)
        group.user_store_domain = domain_name
        group.display_name = remove_domain_from_name(group_name)

    def _merge_attributes(self, group: Group, attributes: Mapping[str, str], location_id: Optional[str]) -> None:
        """Copy legacy attributes onto the group; location is rebuilt from ``location_id``."""
        for key, value in attributes.items():
            if key == ID_URI:
                group.group_id = value
            elif key == CREATED_URI:
                group.created_date = value
            elif key == LAST_MODIFIED_URI:
                group.last_modified_date = value
            elif key == LOCATION_URI:
                group.location = self.location_builder(location_id)
