# src/waitlist/models/__init__.py
"""SQLAlchemy models for the waitlist service."""

from .participant import Participant

__all__ = ["Participant"]
