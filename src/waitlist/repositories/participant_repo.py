"""Data access helpers for accepted participants."""
from __future__ import annotations

import logging
from typing import Protocol

from sqlalchemy import func, insert, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from waitlist.core.errors import ConflictError, OutOfRangeError, UnavailableError
from waitlist.models.participant import Participant
from waitlist.schemas.participant import ParticipantRecord
from waitlist.services.cipher import ContactCipher

__all__ = ["ParticipantRepository", "ParticipantStore"]

logger = logging.getLogger(__name__)


class ParticipantStore(Protocol):
    """Durable participant storage as seen by the orchestrator."""

    def exists(self, identity: str) -> bool: ...

    def persist(self, record: ParticipantRecord) -> ParticipantRecord: ...

    def list(self, offset: int | None = None, limit: int | None = None) -> list[ParticipantRecord]: ...

    def presence_index(self) -> dict[str, int]: ...


class ParticipantRepository:
    """SQLAlchemy-backed participant store with contacts encrypted at rest."""

    def __init__(self, session: Session, cipher: ContactCipher) -> None:
        self.session = session
        self.cipher = cipher

    def exists(self, identity: str) -> bool:
        """Return True when `identity` has been activated."""
        try:
            found = self.session.scalar(
                select(Participant.identity).where(Participant.identity == identity)
            )
        except SQLAlchemyError as err:
            logger.error("Participant lookup failed: %s", err)
            raise UnavailableError("participant lookup failed") from err
        return found is not None

    def persist(self, record: ParticipantRecord) -> ParticipantRecord:
        """Insert a participant.

        Raises:
            ConflictError: if the identity (or record uuid) is already stored.
            UnavailableError: on any other storage fault.
        """
        stmt = insert(Participant).values(
            identity=record.identity,
            contact_encrypted=self.cipher.encrypt(record.contact),
            referrer=record.referrer,
            uuid=record.uuid,
            timestamp=record.timestamp,
        )
        try:
            self.session.execute(stmt)
            self.session.commit()
        except IntegrityError as err:
            self.session.rollback()
            raise ConflictError() from err
        except SQLAlchemyError as err:
            self.session.rollback()
            logger.error("Participant insert failed: %s", err)
            raise UnavailableError("participant insert failed") from err
        return record

    def count(self) -> int:
        try:
            return int(self.session.scalar(select(func.count()).select_from(Participant)) or 0)
        except SQLAlchemyError as err:
            logger.error("Participant count failed: %s", err)
            raise UnavailableError("participant count failed") from err

    def list(self, offset: int | None = None, limit: int | None = None) -> list[ParticipantRecord]:
        """Return participants in activation order.

        Args:
            offset: Index of the first participant; must fall inside a
                non-empty table.
            limit: Maximum number of participants; a window running past the
                end is clipped.

        Raises:
            OutOfRangeError: for a negative offset or limit, or an offset at
                or past the end of the table.
        """
        start = offset or 0
        if start < 0 or (limit is not None and limit < 0):
            raise OutOfRangeError()
        if start > 0 and start >= self.count():
            raise OutOfRangeError()

        stmt = select(Participant).order_by(Participant.timestamp, Participant.identity).offset(start)
        if limit is not None:
            stmt = stmt.limit(limit)
        try:
            rows = list(self.session.scalars(stmt))
        except SQLAlchemyError as err:
            logger.error("Participant listing failed: %s", err)
            raise UnavailableError("participant listing failed") from err
        return [self._to_record(row) for row in rows]

    def presence_index(self) -> dict[str, int]:
        """Return identity -> activation timestamp for every participant."""
        try:
            rows = self.session.execute(select(Participant.identity, Participant.timestamp))
            return {identity: timestamp for identity, timestamp in rows}
        except SQLAlchemyError as err:
            logger.error("Presence index load failed: %s", err)
            raise UnavailableError("presence index load failed") from err

    def _to_record(self, row: Participant) -> ParticipantRecord:
        return ParticipantRecord(
            identity=row.identity,
            contact=self.cipher.decrypt(row.contact_encrypted),
            referrer=row.referrer,
            uuid=row.uuid,
            timestamp=row.timestamp,
        )
