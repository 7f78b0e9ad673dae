"""SCIM filter expression parser (RFC 7644 §3.4.2.2) for group listing.

Parses the subset identity providers send for groups:

    attribute SP operator SP "value"

optionally joined by ``and`` / ``or``. Joined filters become an
OperationalCondition; whether one can be evaluated is up to the user store
(legacy stores reject them).
"""
from __future__ import annotations
import re
from typing import Optional

from .models import Condition, ExpressionCondition, OperationalCondition

SUPPORTED_OPERATORS = ("eq", "sw", "ew", "co")

_EXPRESSION_RE = re.compile(
    rf"^\s*(\S+)\s+({'|'.join(SUPPORTED_OPERATORS)})\s+"  # attribute + operator
    r'(?:"([^"]*)"'  # quoted value
    r"|'([^']*)')\s*$",  # or single-quoted value
    re.IGNORECASE,
)
# Split on the first top-level logical operator outside quotes
_LOGICAL_RE = re.compile(r'\s+(and|or)\s+(?=(?:[^"]*"[^"]*")*[^"]*$)', re.IGNORECASE)


def parse_scim_filter(filter_string: Optional[str]) -> Optional[Condition]:
    """Parse a SCIM filter into a condition.

    Args:
        filter_string: Raw ``filter`` query parameter, e.g. ``'displayName eq "eng"'``

    Returns:
        ExpressionCondition or OperationalCondition, or None for an empty filter

    Raises:
        ValueError: If the filter is malformed or uses an unsupported operator
    """
    if not filter_string or not filter_string.strip():
        return None
    return _parse(filter_string.strip())


def _parse(text: str) -> Condition:
    match = _LOGICAL_RE.search(text)
    if match:
        left = text[:match.start()]
        right = text[match.end():]
        return OperationalCondition(match.group(1).lower(), _parse(left), _parse(right))

    expression = _EXPRESSION_RE.match(text)
    if not expression:
        raise ValueError(f"Unsupported or malformed SCIM filter: {text}")
    value = expression.group(3) if expression.group(3) is not None else expression.group(4)
    return ExpressionCondition(expression.group(1), expression.group(2).lower(), value)
