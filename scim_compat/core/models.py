"""Group records and filter conditions exchanged with the user store."""
from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Union


@dataclass
class Group:
    """A directory group as seen by callers.

    ``group_name`` is the canonical name (domain-qualified unless the group
    lives in the primary user store), ``display_name`` the name without its
    domain. ``location`` is always derived from the id, never stored.
    """
    group_id: Optional[str] = None
    group_name: Optional[str] = None
    display_name: Optional[str] = None
    user_store_domain: Optional[str] = None
    created_date: Optional[str] = None
    last_modified_date: Optional[str] = None
    location: Optional[str] = None


@dataclass(frozen=True)
class ExpressionCondition:
    """Single ``attribute operation value`` filter term."""
    attribute_name: str
    operation: str
    attribute_value: str


@dataclass(frozen=True)
class OperationalCondition:
    """Boolean combination (``and``/``or``) of two conditions."""
    operation: str
    left: "Condition"
    right: "Condition"


Condition = Union[ExpressionCondition, OperationalCondition]
