"""Directory (user store) abstraction with post-operation group listeners.

A user store answers group reads natively and then hands the result to every
registered GroupOperationListener, in execution order. Listeners may replace
the result (e.g. construct a group the native store could not return).

Architecture:
    caller ──> UserStore.get_group_by_id() ──> _do_get_group_by_id()   (native)
                                           └─> listener.post_get_group_by_id() ...
"""
from __future__ import annotations
import logging
from typing import Dict, List, Optional, Set

from .models import Condition, ExpressionCondition, Group, OperationalCondition
from .names import PRIMARY_DEFAULT_DOMAIN_NAME, extract_domain_from_name, remove_domain_from_name
from .exceptions import UnsupportedFilterError

logger = logging.getLogger(__name__)


class GroupOperationListener:
    """Base listener: every post hook returns its input unchanged."""

    execution_order_id = 0

    def post_get_groups_of_user(self, user_id: str, groups: List[Group], user_store: "UserStore") -> List[Group]:
        return groups

    def post_get_group_id_by_name(self, group_name: str, group: Optional[Group], user_store: "UserStore") -> Optional[Group]:
        return group

    def post_get_group_name_by_id(self, group_id: str, group: Optional[Group], user_store: "UserStore") -> Optional[Group]:
        return group

    def post_get_group_by_id(self, group_id: str, requested_claims: Optional[List[str]], group: Optional[Group],
                             user_store: "UserStore") -> Optional[Group]:
        return group

    def post_get_group_by_name(self, group_name: str, requested_claims: Optional[List[str]], group: Optional[Group],
                               user_store: "UserStore") -> Optional[Group]:
        return group

    def post_list_groups(self, condition: Condition, limit: int, offset: int, domain: Optional[str],
                         sort_by: Optional[str], sort_order: Optional[str], groups: List[Group],
                         user_store: "UserStore") -> List[Group]:
        return groups


class UserStore:
    """Base directory backend.

    Subclasses implement the ``_do_*`` native reads. Public methods run the
    native read followed by the listener chain.
    """

    def __init__(self, tenant_id, domain_name: str = PRIMARY_DEFAULT_DOMAIN_NAME,
                 unique_group_id_enabled: bool = False):
        """Initialize user store.

        Args:
            tenant_id: Tenant the store belongs to
            domain_name: User store domain (PRIMARY for the default store)
            unique_group_id_enabled: Whether the backend has stable group ids
        """
        self.tenant_id = tenant_id
        self.domain_name = domain_name
        self._unique_group_id_enabled = unique_group_id_enabled
        self._listeners: List[GroupOperationListener] = []

    def is_unique_group_id_enabled(self) -> bool:
        return self._unique_group_id_enabled

    @property
    def listeners(self) -> List[GroupOperationListener]:
        return list(self._listeners)

    def add_listener(self, listener: GroupOperationListener) -> None:
        """Register a listener; the chain stays sorted by execution order id."""
        self._listeners.append(listener)
        self._listeners.sort(key=lambda item: item.execution_order_id)

    # ─────────────────────────────────────────────────────────────────────────
    # Public reads
    # ─────────────────────────────────────────────────────────────────────────

    def get_groups_of_user(self, user_id: str) -> List[Group]:
        groups = self._do_get_groups_of_user(user_id)
        for listener in self._listeners:
            groups = listener.post_get_groups_of_user(user_id, groups, self)
        return groups

    def get_group_id_by_name(self, group_name: str) -> Optional[str]:
        group = self._do_get_group_by_name(group_name, None)
        for listener in self._listeners:
            group = listener.post_get_group_id_by_name(group_name, group, self)
        return group.group_id if group else None

    def get_group_name_by_id(self, group_id: str) -> Optional[str]:
        group = self._do_get_group_by_id(group_id, None)
        for listener in self._listeners:
            group = listener.post_get_group_name_by_id(group_id, group, self)
        return group.group_name if group else None

    def get_group_by_id(self, group_id: str, requested_claims: Optional[List[str]] = None) -> Optional[Group]:
        group = self._do_get_group_by_id(group_id, requested_claims)
        for listener in self._listeners:
            group = listener.post_get_group_by_id(group_id, requested_claims, group, self)
        return group

    def get_group_by_name(self, group_name: str, requested_claims: Optional[List[str]] = None) -> Optional[Group]:
        group = self._do_get_group_by_name(group_name, requested_claims)
        for listener in self._listeners:
            group = listener.post_get_group_by_name(group_name, requested_claims, group, self)
        return group

    def list_groups(self, condition: Condition, limit: int = 100, offset: int = 0, domain: Optional[str] = None,
                    sort_by: Optional[str] = None, sort_order: Optional[str] = None) -> List[Group]:
        groups = self._do_list_groups(condition, limit, offset, domain, sort_by, sort_order)
        for listener in self._listeners:
            groups = listener.post_list_groups(condition, limit, offset, domain, sort_by, sort_order, groups, self)
        return groups

    # ─────────────────────────────────────────────────────────────────────────
    # Native reads
    # ─────────────────────────────────────────────────────────────────────────

    def _do_get_groups_of_user(self, user_id: str) -> List[Group]:
        raise NotImplementedError

    def _do_get_group_by_id(self, group_id: str, requested_claims: Optional[List[str]]) -> Optional[Group]:
        raise NotImplementedError

    def _do_get_group_by_name(self, group_name: str, requested_claims: Optional[List[str]]) -> Optional[Group]:
        raise NotImplementedError

    def _do_list_groups(self, condition: Condition, limit: int, offset: int, domain: Optional[str],
                        sort_by: Optional[str], sort_order: Optional[str]) -> List[Group]:
        raise NotImplementedError


def matches_display_name(name: str, operation: str, value: str) -> bool:
    """Evaluate a display-name expression (eq/sw/ew/co, case-insensitive)."""
    name = name.lower()
    value = value.lower()
    op = operation.lower()
    if op == "eq":
        return name == value
    if op == "sw":
        return name.startswith(value)
    if op == "ew":
        return name.endswith(value)
    if op == "co":
        return value in name
    raise UnsupportedFilterError(f"Filter operation '{operation}' is not supported")


class InMemoryUserStore(UserStore):
    """Name-only directory kept in memory.

    Groups are identified by their domain-qualified name. Ids are only
    returned when ``unique_group_id_enabled`` is set; otherwise callers rely
    on listeners to resolve them.
    """

    def __init__(self, tenant_id, domain_name: str = PRIMARY_DEFAULT_DOMAIN_NAME,
                 unique_group_id_enabled: bool = False):
        super().__init__(tenant_id, domain_name, unique_group_id_enabled)
        self._group_ids: Dict[str, Optional[str]] = {}
        self._memberships: Dict[str, Set[str]] = {}

    def add_group(self, group_name: str, group_id: Optional[str] = None) -> None:
        self._group_ids[group_name] = group_id

    def add_member(self, user_id: str, group_name: str) -> None:
        self._memberships.setdefault(user_id, set()).add(group_name)

    def _to_group(self, group_name: str) -> Group:
        group = Group(
            group_name=group_name,
            display_name=remove_domain_from_name(group_name),
            user_store_domain=extract_domain_from_name(group_name),
        )
        if self._unique_group_id_enabled:
            group.group_id = self._group_ids.get(group_name)
        return group

    def _do_get_groups_of_user(self, user_id: str) -> List[Group]:
        return [self._to_group(name) for name in sorted(self._memberships.get(user_id, set()))]

    def _do_get_group_by_id(self, group_id: str, requested_claims: Optional[List[str]]) -> Optional[Group]:
        if not self._unique_group_id_enabled:
            return None
        for name, known_id in self._group_ids.items():
            if known_id == group_id:
                return self._to_group(name)
        return None

    def _do_get_group_by_name(self, group_name: str, requested_claims: Optional[List[str]]) -> Optional[Group]:
        if group_name not in self._group_ids:
            return None
        return self._to_group(group_name)

    def _do_list_groups(self, condition: Condition, limit: int, offset: int, domain: Optional[str],
                        sort_by: Optional[str], sort_order: Optional[str]) -> List[Group]:
        # Without stable ids the listing is left to listeners
        if not self._unique_group_id_enabled:
            return []
        if isinstance(condition, OperationalCondition):
            raise UnsupportedFilterError("OperationalCondition filtering is not supported by the in-memory store")
        expression: ExpressionCondition = condition
        names = sorted(
            name for name in self._group_ids
            if matches_display_name(remove_domain_from_name(name), expression.operation, expression.attribute_value)
        )
        return [self._to_group(name) for name in names[offset:offset + limit]]
