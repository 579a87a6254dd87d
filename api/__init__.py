"""
API Module for the Reobote lead agent.

FastAPI application with routes for:
- Guided qualification chat
- Attendance listing and storage
"""

from .main import create_app, app

__all__ = ["create_app", "app"]
