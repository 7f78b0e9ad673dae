"""SCIM group compatibility layer.

To use the Flask app:
    from scim_compat.flask_app import create_app

To wire the compat listener into a user store:
    from scim_compat.core.listener import ScimGroupOperationListener
    from scim_compat.core.gateway import InMemoryGroupMetadataGateway
"""
# Note: flask_app is not imported here so the core can be used without Flask
