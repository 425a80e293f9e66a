# app/routers/__init__.py
"""
API routers for v1 endpoints.
"""

from app.routers.reddit import API_PREFIX, LEGACY_PREFIX
from app.routers.reddit import router as reddit_router

__all__ = [
    "API_PREFIX",
    "LEGACY_PREFIX",
    "reddit_router",
]
