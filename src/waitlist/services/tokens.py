"""Signed activation tokens.

A token carries the candidate claims from registration to activation. Each
service instance is bound to one key and one algorithm at construction:
HMAC (HS256/HS512) or ECDSA (ES256 on P-256, ES512 on P-521). Tokens signed by
any other instance, key or algorithm family fail verification exactly like
forgeries.
"""

from __future__ import annotations

import secrets
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any, ClassVar, Final

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec
from jose import jwt
from jose.exceptions import JOSEError

from waitlist.core import security
from waitlist.core.clock import as_utc, epoch_seconds, utcnow

DEFAULT_ISSUER: Final[str] = "waitlist"
DEFAULT_TTL: Final[timedelta] = timedelta(minutes=10)
HMAC_SECRET_BYTES: Final[int] = 32
REQUIRED_CLAIMS: Final[tuple[str, ...]] = ("identity", "contact", "referrer")


class InvalidTokenError(ValueError):
    """Raised for every verification failure.

    Expired, not yet valid, forged, malformed and incomplete tokens are
    deliberately indistinguishable.
    """

    def __init__(self) -> None:
        super().__init__("invalid token")


class TokenCreationError(RuntimeError):
    """Raised when claims cannot be serialized or signed."""


@dataclass(frozen=True)
class CandidateClaims:
    """Claims carried inside an activation token."""

    identity: str
    contact: str
    referrer: str
    issued_at: datetime | None = None
    not_before: datetime | None = None
    expires_at: datetime | None = None

    def is_complete(self) -> bool:
        """Return True when every required claim is a non-empty string."""
        return all(
            isinstance(value, str) and value
            for value in (self.identity, self.contact, self.referrer)
        )


class TokenService(ABC):
    """Create, verify and fingerprint activation tokens."""

    algorithm: str

    def __init__(self, *, issuer: str = DEFAULT_ISSUER, ttl: timedelta = DEFAULT_TTL) -> None:
        if ttl <= timedelta(0):
            raise ValueError("token ttl must be positive")
        self.issuer = issuer
        self.ttl = ttl

    @property
    @abstractmethod
    def _signing_key(self) -> str:
        """Key material handed to the JOSE encoder."""

    @property
    @abstractmethod
    def _verifying_key(self) -> str:
        """Key material handed to the JOSE decoder."""

    def create(self, claims: CandidateClaims, now: datetime) -> str:
        """Sign the claims into a token valid from `now` for the configured window.

        Claim completeness is not checked here; `extract` enforces it. Time
        claims have whole-second precision, so the window starts at `now`
        truncated to the second.
        """
        issued = epoch_seconds(now)
        payload: dict[str, Any] = {
            "identity": claims.identity,
            "contact": claims.contact,
            "referrer": claims.referrer,
            "iss": self.issuer,
            "exp": issued + int(self.ttl.total_seconds()),
            "nbf": issued,
            "iat": issued,
        }
        try:
            token: str = jwt.encode(payload, self._signing_key, algorithm=self.algorithm)
        except (JOSEError, TypeError, ValueError) as err:
            raise TokenCreationError(f"unable to sign {self.algorithm} token") from err
        return token

    def extract(self, token: str, now: datetime | None = None) -> CandidateClaims:
        """Verify a token and return its claims.

        Raises:
            InvalidTokenError: on any signature, algorithm, issuer, validity
                window, payload or required-claim failure.
        """
        try:
            payload = jwt.decode(
                token,
                self._verifying_key,
                algorithms=[self.algorithm],
                issuer=self.issuer,
                options={
                    # The validity window is checked below against `now`.
                    "verify_exp": False,
                    "verify_nbf": False,
                    "verify_iat": False,
                    # jose re-enables verify_* for required time claims, so their
                    # presence is checked below instead.
                    "require_iss": True,
                },
            )
        except (JOSEError, TypeError, ValueError) as err:
            raise InvalidTokenError() from err

        try:
            not_before = int(payload["nbf"])
            expires_at = int(payload["exp"])
            issued_at = int(payload["iat"])
        except (KeyError, TypeError, ValueError) as err:
            raise InvalidTokenError() from err

        current = as_utc(now or utcnow()).timestamp()
        if not not_before <= current < expires_at:
            raise InvalidTokenError()

        claims = CandidateClaims(
            identity=payload.get("identity"),  # type: ignore[arg-type]
            contact=payload.get("contact"),  # type: ignore[arg-type]
            referrer=payload.get("referrer"),  # type: ignore[arg-type]
            issued_at=datetime.fromtimestamp(issued_at, UTC),
            not_before=datetime.fromtimestamp(not_before, UTC),
            expires_at=datetime.fromtimestamp(expires_at, UTC),
        )
        if not claims.is_complete():
            raise InvalidTokenError()
        return claims

    @staticmethod
    def fingerprint(token: str) -> str:
        """Return the tamper-evident digest of the raw token string."""
        return security.fingerprint(token)


class HMACTokenService(TokenService):
    """Shared-secret tokens (HS256, HS512)."""

    ALGORITHMS: ClassVar[frozenset[str]] = frozenset({"HS256", "HS512"})

    def __init__(self, secret: str, algorithm: str = "HS256", **kwargs: Any) -> None:
        if algorithm not in self.ALGORITHMS:
            raise ValueError(f"unsupported HMAC algorithm: {algorithm}")
        if not secret:
            raise ValueError("HMAC secret must not be empty")
        super().__init__(**kwargs)
        self.algorithm = algorithm
        self._secret = secret

    @classmethod
    def hs256(cls, secret: str | None = None, **kwargs: Any) -> HMACTokenService:
        return cls(secret or secrets.token_urlsafe(HMAC_SECRET_BYTES), "HS256", **kwargs)

    @classmethod
    def hs512(cls, secret: str | None = None, **kwargs: Any) -> HMACTokenService:
        return cls(secret or secrets.token_urlsafe(HMAC_SECRET_BYTES * 2), "HS512", **kwargs)

    @property
    def _signing_key(self) -> str:
        return self._secret

    @property
    def _verifying_key(self) -> str:
        return self._secret


class ECDSATokenService(TokenService):
    """Elliptic-curve signed tokens (ES256 on P-256, ES512 on P-521)."""

    CURVES: ClassVar[dict[str, type[ec.EllipticCurve]]] = {
        "ES256": ec.SECP256R1,
        "ES512": ec.SECP521R1,
    }

    def __init__(
        self,
        private_key: ec.EllipticCurvePrivateKey,
        algorithm: str = "ES256",
        **kwargs: Any,
    ) -> None:
        curve = self.CURVES.get(algorithm)
        if curve is None:
            raise ValueError(f"unsupported ECDSA algorithm: {algorithm}")
        if not isinstance(private_key.curve, curve):
            raise ValueError(f"{algorithm} requires a {curve.name} key")
        super().__init__(**kwargs)
        self.algorithm = algorithm
        self._private_key = private_key
        self._private_pem = private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        ).decode("ascii")
        self._public_pem = private_key.public_key().public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        ).decode("ascii")

    @classmethod
    def from_pem(cls, pem: str, algorithm: str = "ES256", **kwargs: Any) -> ECDSATokenService:
        """Build a service from a PEM-encoded EC private key."""
        key = serialization.load_pem_private_key(pem.encode("ascii"), password=None)
        if not isinstance(key, ec.EllipticCurvePrivateKey):
            raise ValueError("PEM does not contain an EC private key")
        return cls(key, algorithm, **kwargs)

    @classmethod
    def generate(cls, algorithm: str = "ES256", **kwargs: Any) -> ECDSATokenService:
        """Build a service around a freshly generated key."""
        curve = cls.CURVES.get(algorithm)
        if curve is None:
            raise ValueError(f"unsupported ECDSA algorithm: {algorithm}")
        return cls(ec.generate_private_key(curve()), algorithm, **kwargs)

    @classmethod
    def es256(cls, **kwargs: Any) -> ECDSATokenService:
        return cls.generate("ES256", **kwargs)

    @classmethod
    def es512(cls, **kwargs: Any) -> ECDSATokenService:
        return cls.generate("ES512", **kwargs)

    @property
    def private_key_pem(self) -> str:
        return self._private_pem

    @property
    def _signing_key(self) -> str:
        return self._private_pem

    @property
    def _verifying_key(self) -> str:
        return self._public_pem


def build_token_service(
    algorithm: str,
    *,
    secret: str | None = None,
    private_key_pem: str | None = None,
    issuer: str = DEFAULT_ISSUER,
    ttl: timedelta = DEFAULT_TTL,
) -> TokenService:
    """Return a token service bound to `algorithm`.

    HMAC variants use `secret`, ECDSA variants use `private_key_pem`; either is
    generated when absent.
    """
    if algorithm in HMACTokenService.ALGORITHMS:
        if secret:
            return HMACTokenService(secret, algorithm, issuer=issuer, ttl=ttl)
        if algorithm == "HS512":
            return HMACTokenService.hs512(issuer=issuer, ttl=ttl)
        return HMACTokenService.hs256(issuer=issuer, ttl=ttl)
    if algorithm in ECDSATokenService.CURVES:
        if private_key_pem:
            return ECDSATokenService.from_pem(private_key_pem, algorithm, issuer=issuer, ttl=ttl)
        return ECDSATokenService.generate(algorithm, issuer=issuer, ttl=ttl)
    raise ValueError(f"unsupported token algorithm: {algorithm}")
