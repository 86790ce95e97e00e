"""Shared API dependencies: runtime access, API key and admission control."""

import hmac
from typing import Annotated

from fastapi import Depends, Header, Request
from sqlalchemy.orm import Session

from waitlist.core.errors import ThrottledError, UnauthorizedError
from waitlist.core.settings import settings
from waitlist.db.session import get_db
from waitlist.repositories.participant_repo import ParticipantRepository
from waitlist.services.registration import RegistrationService
from waitlist.services.runtime import Runtime

API_KEY_HEADER = "X-API-Key"
UNKNOWN_CLIENT = "unknown"

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def get_runtime(request: Request) -> Runtime:
    """Return the collaborators built at application startup."""
    runtime: Runtime = request.app.state.runtime
    return runtime


RuntimeDep = Annotated[Runtime, Depends(get_runtime)]


def client_key(request: Request) -> str:
    """Return the admission key for a request: the client IP."""
    if request.client is None or not request.client.host:
        return UNKNOWN_CLIENT
    return request.client.host


def enforce_admission(request: Request, runtime: RuntimeDep) -> None:
    """Reject the request when the client's bucket is empty.

    Raises:
        ThrottledError: if the limiter refuses the client key.
    """
    key = client_key(request)
    if not runtime.limiter.allow(key):
        raise ThrottledError(runtime.limiter.retry_after(key))


def require_api_key(
    api_key: Annotated[str | None, Header(alias=API_KEY_HEADER)] = None,
) -> None:
    """Require the shared API key header.

    Raises:
        UnauthorizedError: if the header is missing or wrong.
    """
    if api_key is None or not hmac.compare_digest(
        api_key.encode("utf-8"),
        settings.api_key.encode("utf-8"),
    ):
        raise UnauthorizedError()


def get_registration_service(runtime: RuntimeDep, db: SessionDep) -> RegistrationService:
    return runtime.registration(db)


def get_participant_repository(runtime: RuntimeDep, db: SessionDep) -> ParticipantRepository:
    return runtime.repository(db)


RegistrationServiceDep = Annotated[RegistrationService, Depends(get_registration_service)]
ParticipantRepositoryDep = Annotated[ParticipantRepository, Depends(get_participant_repository)]
