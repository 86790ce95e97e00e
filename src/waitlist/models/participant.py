# src/waitlist/models/participant.py
"""SQLAlchemy model for accepted waitlist participants."""

from __future__ import annotations

from sqlalchemy import BigInteger, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from waitlist.db.session import Base


class Participant(Base):
    """A participant whose activation succeeded.

    `identity` is unique; the store relies on that constraint to settle
    concurrent activations of the same identity. The contact is kept encrypted.
    """

    __tablename__ = "participant"

    identity: Mapped[str] = mapped_column(String(128), primary_key=True)
    contact_encrypted: Mapped[str] = mapped_column(Text, nullable=False)
    referrer: Mapped[str] = mapped_column(String(128), nullable=False)
    uuid: Mapped[str] = mapped_column(String(36), unique=True, nullable=False)
    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
