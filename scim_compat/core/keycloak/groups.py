"""Keycloak-backed user store for group reads.

A realm is one tenant. Group names are qualified with the store's domain
(nothing is added for the primary domain).

When ``unique_group_id_enabled`` is off (realms federated from a directory
whose group ids are regenerated on every sync) Keycloak ids are not exposed:
native reads return name-only groups, id-based reads return nothing, and the
SCIM group listener supplies ids from the legacy metadata store.
"""
from __future__ import annotations
import logging
from typing import List, Optional

from ..exceptions import KeycloakAPIError, UnsupportedFilterError
from ..models import Condition, ExpressionCondition, Group, OperationalCondition
from ..names import (
    PRIMARY_DEFAULT_DOMAIN_NAME,
    add_domain_to_name,
    extract_domain_from_name,
    remove_domain_from_name,
)
from ..user_store import UserStore, matches_display_name
from .client import KeycloakClient

logger = logging.getLogger(__name__)

# Keycloak group attributes carrying SCIM metadata (written at group creation)
CREATED_ATTRIBUTE = "created_at"
LAST_MODIFIED_ATTRIBUTE = "last_modified_at"


def _first_attribute(kc_group: dict, name: str) -> Optional[str]:
    values = (kc_group.get("attributes") or {}).get(name) or []
    return values[0] if values else None


class KeycloakUserStore(UserStore):
    """User store reading groups from the Keycloak Admin API."""

    def __init__(
        self,
        client: KeycloakClient,
        realm: str,
        domain_name: str = PRIMARY_DEFAULT_DOMAIN_NAME,
        unique_group_id_enabled: bool = True,
    ):
        """Initialize Keycloak user store.

        Args:
            client: Authenticated Keycloak client
            realm: Realm name (also used as tenant id)
            domain_name: User store domain the realm's groups belong to
            unique_group_id_enabled: Expose Keycloak group ids as stable ids
        """
        super().__init__(realm, domain_name, unique_group_id_enabled)
        self.client = client
        self.realm = realm

    def _to_group(self, kc_group: dict) -> Group:
        group_name = add_domain_to_name(kc_group.get("name", ""), self.domain_name)
        group = Group(
            group_name=group_name,
            display_name=remove_domain_from_name(group_name),
            user_store_domain=extract_domain_from_name(group_name),
        )
        if self.is_unique_group_id_enabled():
            group.group_id = kc_group.get("id")
            group.created_date = _first_attribute(kc_group, CREATED_ATTRIBUTE)
            group.last_modified_date = _first_attribute(kc_group, LAST_MODIFIED_ATTRIBUTE)
        return group

    def _do_get_groups_of_user(self, user_id: str) -> List[Group]:
        try:
            kc_groups = self.client.get_user_groups(self.realm, user_id)
        except KeycloakAPIError as exc:
            if exc.status_code == 404:
                return []
            raise
        return [self._to_group(kc_group) for kc_group in kc_groups]

    def _do_get_group_by_id(self, group_id: str, requested_claims: Optional[List[str]]) -> Optional[Group]:
        if not self.is_unique_group_id_enabled():
            return None
        try:
            kc_group = self.client.get_group(self.realm, group_id)
        except KeycloakAPIError as exc:
            if exc.status_code == 404:
                return None
            raise
        return self._to_group(kc_group)

    def _do_get_group_by_name(self, group_name: str, requested_claims: Optional[List[str]]) -> Optional[Group]:
        if extract_domain_from_name(group_name) != self.domain_name.upper():
            logger.debug("Group %s does not belong to userstore %s", group_name, self.domain_name)
            return None
        name = remove_domain_from_name(group_name)
        for kc_group in self.client.search_groups(self.realm, name, exact=True):
            if kc_group.get("name") == name:
                return self._to_group(kc_group)
        return None

    def _do_list_groups(self, condition: Condition, limit: int, offset: int, domain: Optional[str],
                        sort_by: Optional[str], sort_order: Optional[str]) -> List[Group]:
        if isinstance(condition, OperationalCondition):
            raise UnsupportedFilterError(
                f"OperationalCondition filtering is not supported by userstore: {type(self).__name__}"
            )
        if not self.is_unique_group_id_enabled():
            return []
        expression: ExpressionCondition = condition
        name_filter = remove_domain_from_name(expression.attribute_value)
        kc_groups = self.client.search_groups(self.realm, name_filter, first=offset, max_results=limit)
        return [
            self._to_group(kc_group)
            for kc_group in kc_groups
            if matches_display_name(kc_group.get("name", ""), expression.operation, name_filter)
        ]
