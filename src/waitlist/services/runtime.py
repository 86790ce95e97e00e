"""Process-wide collaborators, assembled once at startup."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta

from sqlalchemy.orm import Session

from waitlist.core.settings import Settings
from waitlist.repositories.participant_repo import ParticipantRepository
from waitlist.services.background import TaskTracker
from waitlist.services.cipher import ContactCipher
from waitlist.services.limiter import AdmissionLimiter, Limiter, LimiterSweeper, UnlimitedLimiter
from waitlist.services.notifier import LogNotifier, Notifier, SMTPNotifier
from waitlist.services.presence import PresenceCache
from waitlist.services.registration import RegistrationService
from waitlist.services.tokens import TokenService, build_token_service

logger = logging.getLogger(__name__)


@dataclass
class Runtime:
    """Shared state for the lifetime of the application."""

    tokens: TokenService
    limiter: Limiter
    presence: PresenceCache
    notifier: Notifier
    tasks: TaskTracker
    cipher: ContactCipher
    activation_base_url: str
    sweeper: LimiterSweeper | None = None

    def repository(self, session: Session) -> ParticipantRepository:
        return ParticipantRepository(session, self.cipher)

    def registration(self, session: Session) -> RegistrationService:
        """Return an orchestrator bound to a request-scoped session."""
        return RegistrationService(
            tokens=self.tokens,
            store=self.repository(session),
            presence=self.presence,
            notifier=self.notifier,
            tasks=self.tasks,
            link_base_url=self.activation_base_url,
        )

    def warm_presence(self, session: Session) -> int:
        """Load every stored identity into the presence cache."""
        index = self.repository(session).presence_index()
        count = len(index)
        self.presence.replace_all(index)
        return count


def build_notifier(config: Settings) -> Notifier:
    if config.mail_enabled:
        return SMTPNotifier(
            config.smtp_host or "",
            config.smtp_port,
            config.mail_sender,
            username=config.smtp_user,
            password=config.smtp_password,
        )
    return LogNotifier()


def build_runtime(config: Settings) -> Runtime:
    """Assemble collaborators from settings.

    Signing keys absent from the configuration are generated here, so tokens
    issued before a restart stop verifying after it.
    """
    if not (config.jwt_secret or config.jwt_private_key):
        logger.warning("No %s key configured; using an ephemeral key", config.jwt_algorithm)
    tokens = build_token_service(
        config.jwt_algorithm,
        secret=config.jwt_secret,
        private_key_pem=config.jwt_private_key,
        issuer=config.token_issuer,
        ttl=timedelta(seconds=config.token_ttl_seconds),
    )

    limiter: Limiter
    sweeper: LimiterSweeper | None = None
    if config.rate_limit_enabled:
        admission = AdmissionLimiter(config.rate_limit_per_second, config.rate_limit_burst)
        sweeper = LimiterSweeper(
            admission,
            interval=config.rate_limit_sweep_interval_seconds,
            idle_seconds=config.rate_limit_idle_seconds,
        )
        limiter = admission
    else:
        limiter = UnlimitedLimiter()

    runtime = Runtime(
        tokens=tokens,
        limiter=limiter,
        presence=PresenceCache(),
        notifier=build_notifier(config),
        tasks=TaskTracker(),
        cipher=ContactCipher(config.encryption_key),
        activation_base_url=config.activation_base_url,
        sweeper=sweeper,
    )
    logger.info(
        "Runtime ready: %s tokens, limiter %s, notifier %s",
        tokens.algorithm,
        "on" if config.rate_limit_enabled else "off",
        type(runtime.notifier).__name__,
    )
    return runtime
