"""Domain-qualified group name helpers.

Group names are stored as ``DOMAIN/name``. Groups of the primary user store
carry no qualifier in their outbound representation.
"""
from __future__ import annotations

DOMAIN_SEPARATOR = "/"
PRIMARY_DEFAULT_DOMAIN_NAME = "PRIMARY"
INTERNAL_DOMAIN = "Internal"
APPLICATION_DOMAIN = "Application"
WORKFLOW_DOMAIN = "Workflow"

# Domains whose qualifier keeps its capitalised spelling (e.g. "Internal/everyone")
_SYSTEM_DOMAINS = {d.upper(): d for d in (INTERNAL_DOMAIN, APPLICATION_DOMAIN, WORKFLOW_DOMAIN)}


def is_primary_domain(domain: str | None) -> bool:
    """Return True if ``domain`` names the primary user store (case-insensitive)."""
    return bool(domain) and domain.upper() == PRIMARY_DEFAULT_DOMAIN_NAME


def remove_domain_from_name(name: str) -> str:
    """Strip the leading ``DOMAIN/`` qualifier, if any.

    Examples:
        >>> remove_domain_from_name("SECONDARY/engineering")
        'engineering'
        >>> remove_domain_from_name("engineering")
        'engineering'
    """
    index = name.find(DOMAIN_SEPARATOR)
    if index >= 0:
        return name[index + 1:]
    return name


def extract_domain_from_name(name: str) -> str:
    """Return the upper-cased domain qualifier of ``name``.

    Unqualified names belong to the primary domain.

    Examples:
        >>> extract_domain_from_name("secondary/engineering")
        'SECONDARY'
        >>> extract_domain_from_name("engineering")
        'PRIMARY'
    """
    index = name.find(DOMAIN_SEPARATOR)
    if index > 0:
        return name[:index].upper()
    return PRIMARY_DEFAULT_DOMAIN_NAME


def add_domain_to_name(name: str, domain: str | None) -> str:
    """Prefix ``name`` with ``domain`` unless it is already qualified.

    The primary domain is never added.
    """
    if not domain or name is None or DOMAIN_SEPARATOR in name:
        return name
    if is_primary_domain(domain):
        return name
    qualifier = _SYSTEM_DOMAINS.get(domain.upper(), domain.upper())
    return f"{qualifier}{DOMAIN_SEPARATOR}{name}"


def resolve_group_name(name: str, domain: str | None) -> str:
    """Return the canonical outbound name of a group.

    Groups in the primary domain lose their qualifier; every other group is
    domain-qualified. Only a primary qualifier is stripped, so a name whose
    own prefix is not primary ("team/a") is left as is and resolving twice
    gives the same result.
    """
    if is_primary_domain(domain):
        if is_primary_domain(extract_domain_from_name(name)):
            return remove_domain_from_name(name)
        return name
    return add_domain_to_name(name, domain)
