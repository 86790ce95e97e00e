"""Two-step waitlist registration.

`register` mints a signed token for the candidate claims and mails an
activation link carrying the token and its fingerprint. `activate` checks the
pair, verifies the token, applies the duplicate and referrer rules and records
the participant. Nothing is written durably before activation.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import UTC, datetime

from waitlist.core import security
from waitlist.core.errors import ConflictError, PreconditionFailedError, UnauthorizedError
from waitlist.core.clock import epoch_ms
from waitlist.repositories.participant_repo import ParticipantStore
from waitlist.schemas.participant import ParticipantRecord
from waitlist.services.background import TaskTracker
from waitlist.services.notifier import Notifier
from waitlist.services.presence import PresenceCache
from waitlist.services.tokens import CandidateClaims, InvalidTokenError, TokenService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RegistrationTicket:
    """Result of a registration: the fingerprint, and the token for debugging."""

    fingerprint: str
    token: str


def activation_link(base_url: str, token: str, fingerprint: str) -> str:
    """Return the URL a candidate opens to activate."""
    return f"{base_url.rstrip('/')}/activate/{token}/{fingerprint}"


class RegistrationService:
    """Orchestrates registration and activation against injected collaborators."""

    def __init__(
        self,
        tokens: TokenService,
        store: ParticipantStore,
        presence: PresenceCache,
        notifier: Notifier,
        tasks: TaskTracker,
        link_base_url: str,
    ) -> None:
        self.tokens = tokens
        self.store = store
        self.presence = presence
        self.notifier = notifier
        self.tasks = tasks
        self.link_base_url = link_base_url

    async def register(self, claims: CandidateClaims, now: datetime | None = None) -> RegistrationTicket:
        """Issue an activation token for already validated claims.

        Every call yields a new, independent token; earlier tokens for the same
        identity stay valid until they expire.
        """
        token = self.tokens.create(claims, now or datetime.now(UTC))
        fingerprint = self.tokens.fingerprint(token)
        link = activation_link(self.link_base_url, token, fingerprint)
        self.tasks.spawn(
            self.notifier.send_activation_link(claims.contact, link, fingerprint),
            name="activation-link",
        )
        return RegistrationTicket(fingerprint=fingerprint, token=token)

    async def activate(
        self,
        token: str,
        fingerprint: str,
        now: datetime | None = None,
    ) -> ParticipantRecord:
        """Turn a pending registration into a participant.

        Raises:
            UnauthorizedError: fingerprint mismatch or invalid token.
            ConflictError: the identity is already a participant.
            PreconditionFailedError: the referrer is not a participant.
            UnavailableError: the store failed.
        """
        # The fingerprint is checked before any signature work.
        if not (security.is_token_shaped(token) and security.fingerprints_match(token, fingerprint)):
            raise UnauthorizedError()

        moment = now or datetime.now(UTC)
        try:
            claims = self.tokens.extract(token, moment)
        except InvalidTokenError as err:
            raise UnauthorizedError() from err

        if self._is_known(claims.identity):
            raise ConflictError()
        if not self._is_known(claims.referrer):
            raise PreconditionFailedError()

        record = ParticipantRecord(
            identity=claims.identity,
            contact=claims.contact,
            referrer=claims.referrer,
            uuid=str(uuid.uuid4()),
            timestamp=epoch_ms(moment),
        )
        self.store.persist(record)
        self.presence.add(record.identity, record.timestamp)
        logger.info("Participant %s activated (referrer %s)", record.identity, record.referrer)

        self.tasks.spawn(self.notifier.send_confirmation(record.contact), name="confirmation")
        return record

    def check_presence(self, identity: str) -> bool:
        return self.presence.is_present(identity)

    def _is_known(self, identity: str) -> bool:
        # A cache miss is not authoritative.
        return self.presence.is_present(identity) or self.store.exists(identity)
