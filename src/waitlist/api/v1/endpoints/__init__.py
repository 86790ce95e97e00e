"""API endpoint modules for version 1."""

from .waitlist import router as waitlist_router

__all__ = ["waitlist_router"]
