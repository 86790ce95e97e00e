"""Version 1 API endpoints."""

from .endpoints import waitlist_router

__all__ = ["waitlist_router"]
