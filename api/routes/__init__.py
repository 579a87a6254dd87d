"""
API Routes for the Reobote lead agent.
"""

from . import chat, attendances

__all__ = ["chat", "attendances"]
