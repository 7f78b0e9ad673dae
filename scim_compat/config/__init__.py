"""Configuration module for the SCIM group compatibility service."""
from .settings import CompatConfig, load_settings

__all__ = ["CompatConfig", "load_settings"]
