"""
API routes initialization.

This module aggregates all API routers and provides a single router
to include in the main application.
"""

from fastapi import APIRouter

from app.api.routes import auth, collections, content, events, insights, thumbnails

# Create main API router
api_router = APIRouter()

# Include authentication routes
api_router.include_router(auth.router)

# Include content library and enrichment routes
api_router.include_router(content.router)

# Include collection routes
api_router.include_router(collections.router)

# Include insights routes
api_router.include_router(insights.router)

# Include thumbnail extraction routes
api_router.include_router(thumbnails.router)

# Include change-notification stream
api_router.include_router(events.router)
