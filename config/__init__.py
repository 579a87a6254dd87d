"""
Configuration for the Reobote lead agent.
"""

from .settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
