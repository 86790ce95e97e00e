"""Registration, activation, presence and operator listing endpoints."""

from __future__ import annotations

import csv
import hmac
import io
from datetime import UTC, datetime
from typing import Annotated, Literal
from zoneinfo import ZoneInfo

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from fastapi.responses import JSONResponse

from waitlist.api.v1.dependencies import (
    ParticipantRepositoryDep,
    RegistrationServiceDep,
    enforce_admission,
    require_api_key,
)
from waitlist.core.errors import ClaimsValidationError
from waitlist.core.settings import settings
from waitlist.schemas.participant import (
    ParticipantList,
    ParticipantRecord,
    PresenceResponse,
    RegisterRequest,
    RegisterResponse,
)

CSV_COLUMNS = ("identity", "contact", "uuid", "timestamp", "referrer")

router = APIRouter(
    tags=["waitlist"],
    dependencies=[Depends(enforce_admission), Depends(require_api_key)],
)


@router.post(
    "/register",
    response_model=RegisterResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_202_ACCEPTED,
)
async def register(payload: RegisterRequest, service: RegistrationServiceDep) -> RegisterResponse:
    """Issue an activation token and mail the activation link.

    Only the fingerprint is returned; the token itself travels by mail. In
    debug mode the token is echoed back to ease manual testing.
    """
    ticket = await service.register(payload.to_claims())
    return RegisterResponse(
        fingerprint=ticket.fingerprint,
        token=ticket.token if settings.debug else None,
    )


@router.post(
    "/activate/{token}/{fingerprint}",
    response_model=ParticipantRecord,
    response_model_exclude={"contact"},
    status_code=status.HTTP_201_CREATED,
)
async def activate(token: str, fingerprint: str, service: RegistrationServiceDep) -> ParticipantRecord:
    """Activate a pending registration from its mailed link.

    The contact is left out: the response goes to whoever holds the link.
    """
    return await service.activate(token, fingerprint)


@router.get(
    "/check-wallet/{identity}",
    response_model=PresenceResponse,
    responses={status.HTTP_404_NOT_FOUND: {"model": PresenceResponse}},
)
async def check_wallet(identity: str, service: RegistrationServiceDep) -> JSONResponse:
    """Report whether an identity is already a participant."""
    registered = service.check_presence(identity)
    return JSONResponse(
        status_code=status.HTTP_200_OK if registered else status.HTTP_404_NOT_FOUND,
        content=PresenceResponse(registered=registered).model_dump(),
    )


@router.get("/{path1}/{path2}/list", response_model=ParticipantList)
async def list_participants(
    path1: str,
    path2: str,
    repo: ParticipantRepositoryDep,
    offset: Annotated[int | None, Query()] = None,
    limit: Annotated[int | None, Query(alias="max")] = None,
    mime: Annotated[Literal["json", "csv"], Query()] = "json",
) -> Response:
    """Operator listing, reachable only under the two configured secret paths."""
    if not (_same(path1, settings.secure_path_1) and _same(path2, settings.secure_path_2)):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not Found")
    if limit is not None and offset is None:
        raise ClaimsValidationError({"offset": "offset is required when max is given"})

    participants = repo.list(offset, limit)
    if mime == "csv":
        return _csv_response(participants)
    body = ParticipantList(participants=participants, count=len(participants))
    return JSONResponse(content=body.model_dump())


def _same(supplied: str, expected: str) -> bool:
    return hmac.compare_digest(supplied.encode("utf-8"), expected.encode("utf-8"))


def format_timestamp(timestamp_ms: int, zone: ZoneInfo) -> str:
    """Render epoch milliseconds as an ISO 8601 time in `zone`."""
    return datetime.fromtimestamp(timestamp_ms / 1000, zone).isoformat(timespec="milliseconds")


def render_csv(participants: list[ParticipantRecord], zone: ZoneInfo) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(CSV_COLUMNS)
    for participant in participants:
        writer.writerow(
            (
                participant.identity,
                participant.contact,
                participant.uuid,
                format_timestamp(participant.timestamp, zone),
                participant.referrer,
            )
        )
    return buffer.getvalue()


def _csv_response(participants: list[ParticipantRecord]) -> Response:
    content = render_csv(participants, ZoneInfo(settings.list_timezone))
    stamp = int(datetime.now(UTC).timestamp())
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="participants_{stamp}.csv"'},
    )
