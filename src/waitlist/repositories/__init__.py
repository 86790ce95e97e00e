"""Durable storage for waitlist participants."""

from .participant_repo import ParticipantRepository, ParticipantStore

__all__ = ["ParticipantRepository", "ParticipantStore"]
