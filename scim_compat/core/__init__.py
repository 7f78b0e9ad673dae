"""Core Business Logic Module

Group identity reconciliation between user stores and the legacy SCIM group
metadata store, independent of HTTP frameworks.

Module Structure:
    - keycloak/           : Keycloak Admin API client and Keycloak-backed user store
    - names.py            : Domain-qualified group name helpers
    - schema.py           : SCIM schema URIs, attribute resolution, search patterns
    - models.py           : Group record and filter conditions
    - gateway.py          : Legacy group metadata store contract + in-memory store
    - user_store.py       : User store abstraction and listener chain
    - listener.py         : SCIM group compatibility listener
    - filters.py          : SCIM filter parsing
    - scim_transformer.py : Group -> SCIM 2.0 resource
    - exceptions.py       : Error taxonomy

Usage Pattern:
    Import explicitly when needed:
        from scim_compat.core.listener import ScimGroupOperationListener
        from scim_compat.core.names import resolve_group_name
"""
