# src/waitlist/schemas/__init__.py
"""Pydantic schemas for the waitlist API."""

from .participant import (
    ParticipantList,
    ParticipantRecord,
    PresenceResponse,
    RegisterRequest,
    RegisterResponse,
    validate_claims,
)

__all__ = [
    "ParticipantList",
    "ParticipantRecord",
    "PresenceResponse",
    "RegisterRequest",
    "RegisterResponse",
    "validate_claims",
]
