"""Participant-related Pydantic schemas."""

from collections.abc import Mapping
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, EmailStr, Field, StringConstraints, ValidationError

from waitlist.core.errors import ClaimsValidationError
from waitlist.services.tokens import CandidateClaims

IDENTITY_MAX_LENGTH = 128

Identity = Annotated[
    str,
    StringConstraints(strip_whitespace=True, min_length=1, max_length=IDENTITY_MAX_LENGTH),
]


class RegisterRequest(BaseModel):
    """Candidate claims submitted at registration."""

    identity: Identity = Field(..., description="Opaque identifier, e.g. a wallet address")
    contact: EmailStr = Field(..., description="E-mail address receiving the activation link")
    referrer: Identity = Field(..., description="Identity of an existing participant")

    def to_claims(self) -> CandidateClaims:
        """Return the token claims for this request."""
        return CandidateClaims(
            identity=self.identity,
            contact=str(self.contact),
            referrer=self.referrer,
        )


class RegisterResponse(BaseModel):
    """Registration acknowledgement."""

    fingerprint: str = Field(..., description="Fingerprint of the mailed activation token")
    token: str | None = Field(None, description="Raw token, only returned in debug mode")


class ParticipantRecord(BaseModel):
    """A durable participant as returned by the store and the API."""

    identity: str = Field(..., description="Participant identifier")
    contact: str = Field(..., description="Decrypted contact address")
    referrer: str = Field(..., description="Identity of the sponsoring participant")
    uuid: str = Field(..., description="Record identifier")
    timestamp: int = Field(..., gt=0, description="Activation time in epoch milliseconds")

    model_config = ConfigDict(from_attributes=True)


class PresenceResponse(BaseModel):
    """Answer to an identity presence check."""

    registered: bool


class ParticipantList(BaseModel):
    """Operator listing of participants."""

    participants: list[ParticipantRecord]
    count: int


def validate_claims(raw: Mapping[str, Any]) -> RegisterRequest:
    """Validate raw claims outside of a request body.

    Raises:
        ClaimsValidationError: with one message per offending field.
    """
    try:
        return RegisterRequest.model_validate(dict(raw))
    except ValidationError as err:
        violations = {
            ".".join(str(part) for part in error["loc"]) or "__root__": error["msg"]
            for error in err.errors()
        }
        raise ClaimsValidationError(violations) from err
