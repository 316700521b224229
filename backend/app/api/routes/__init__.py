"""
API route modules.

Import all route modules here for easy access.
"""

from app.api.routes import auth, collections, content, events, insights, thumbnails

__all__ = ["auth", "content", "collections", "insights", "thumbnails", "events"]
