# src/waitlist/scripts/seed.py
"""Insert a founding participant.

Activation requires a referrer that is already a participant, so a fresh
deployment needs at least one participant inserted out of band.
"""
from __future__ import annotations

import argparse
import sys
import uuid

from waitlist.core.errors import ClaimsValidationError, ConflictError, UnavailableError
from waitlist.core.settings import settings
from waitlist.db.session import SessionLocal, create_tables
from waitlist.core.clock import epoch_ms, utcnow
from waitlist.repositories.participant_repo import ParticipantRepository
from waitlist.schemas.participant import ParticipantRecord, validate_claims
from waitlist.services.cipher import ContactCipher


def seed_participant(repo: ParticipantRepository, identity: str, contact: str, referrer: str | None = None) -> ParticipantRecord:
    """Validate and store a participant without the referrer check.

    The founding participant refers itself unless `referrer` is given.
    """
    request = validate_claims(
        {"identity": identity, "contact": contact, "referrer": referrer or identity}
    )
    record = ParticipantRecord(
        identity=request.identity,
        contact=str(request.contact),
        referrer=request.referrer,
        uuid=str(uuid.uuid4()),
        timestamp=epoch_ms(utcnow()),
    )
    return repo.persist(record)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Insert a founding waitlist participant")
    parser.add_argument("identity", help="Identity of the founding participant")
    parser.add_argument("contact", help="E-mail address of the founding participant")
    parser.add_argument("--referrer", default=None, help="Referrer identity (defaults to itself)")
    args = parser.parse_args(argv)

    create_tables()
    cipher = ContactCipher(settings.encryption_key)
    with SessionLocal() as db:
        repo = ParticipantRepository(db, cipher)
        try:
            record = seed_participant(repo, args.identity, args.contact, args.referrer)
        except ClaimsValidationError as exc:
            for field, message in exc.violations.items():
                print(f"[seed] {field}: {message}", file=sys.stderr)
            sys.exit(2)
        except ConflictError:
            print(f"[seed] {args.identity} is already a participant")
            return
        except UnavailableError as exc:
            print(f"[seed] ERROR: {exc}", file=sys.stderr)
            sys.exit(1)
    print(f"[seed] inserted {record.identity} ({record.uuid})")


if __name__ == "__main__":
    main()
