# src/waitlist/services/__init__.py
"""Business logic services for the waitlist."""

from .background import TaskTracker
from .cipher import ContactCipher
from .limiter import AdmissionLimiter, LimiterSweeper, UnlimitedLimiter
from .notifier import LogNotifier, SMTPNotifier
from .presence import PresenceCache
from .tokens import (
    CandidateClaims,
    ECDSATokenService,
    HMACTokenService,
    InvalidTokenError,
    TokenService,
    build_token_service,
)

__all__ = [
    "AdmissionLimiter",
    "CandidateClaims",
    "ContactCipher",
    "ECDSATokenService",
    "HMACTokenService",
    "InvalidTokenError",
    "LimiterSweeper",
    "LogNotifier",
    "PresenceCache",
    "SMTPNotifier",
    "TaskTracker",
    "TokenService",
    "UnlimitedLimiter",
    "build_token_service",
]
