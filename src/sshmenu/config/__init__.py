"""Configuration management for sshmenu.

Loads and validates YAML-based configuration with Pydantic models.
Supports environment variable overrides (``SSHMENU_*``) for deployment
values such as the listen port and host key location.
"""

from sshmenu.config.settings import Settings, load_settings

__all__ = ["Settings", "load_settings"]
