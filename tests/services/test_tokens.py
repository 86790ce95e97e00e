"""Tests for activation token creation, verification and fingerprints."""

from datetime import UTC, datetime, timedelta

import pytest

from waitlist.core.security import FINGERPRINT_PATTERN, TOKEN_PATTERN
from waitlist.services.tokens import (
    CandidateClaims,
    ECDSATokenService,
    HMACTokenService,
    InvalidTokenError,
    TokenCreationError,
    TokenService,
    build_token_service,
)

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)

CLAIMS = CandidateClaims(
    identity="3VfHtsBKQkKr7H2jB6CMvrnKekyJjpMZJA5kaPhQwjHh",
    contact="john.doe@mailservice.com",
    referrer="Akp1oyjY1VZGpsd8gwHBCkADe577eVhA4f8dASxVTm3s",
)

TOKEN_HS256 = (
    "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9.eyJhZGRyZXNzIjoiM1ZmSHRzQktRa0tyN0gyakI2Q012cm5LZWt5SmpwTVpKQTVrYVBoUXdqSGgiLCJlbWFpbCI6ImpvaG4uZG9lQG1haWxzZXJ2aWNlLmNvbSIsInNwb25zb3IiOiJBa3Axb3lqWTFWWkdwc2Q4Z3dIQkNrQURlNTc3ZVZoQTRmOGRBU3hWVG0zcyIsImlzcyI6InVubGVhay50cmFkZSIsImV4cCI6MTY0ODU1MiwibmJmIjoxNjQ3OTUyLCJpYXQiOjE2NDc5NTJ9"
    ".CBZniUCXzdWlgQaO5cwdNQguiNiEcLQYtJZm98b3X5Q"
)
TOKEN_HS512 = (
    "eyJhbGciOiJIUzUxMiIsInR5cCI6IkpXVCJ9.eyJhZGRyZXNzIjoiM1ZmSHRzQktRa0tyN0gyakI2Q012cm5LZWt5SmpwTVpKQTVrYVBoUXdqSGgiLCJlbWFpbCI6ImpvaG4uZG9lQG1haWxzZXJ2aWNlLmNvbSIsInNwb25zb3IiOiJBa3Axb3lqWTFWWkdwc2Q4Z3dIQkNrQURlNTc3ZVZoQTRmOGRBU3hWVG0zcyIsImlzcyI6InVubGVhay50cmFkZSIsImV4cCI6MTY0ODU1MiwibmJmIjoxNjQ3OTUyLCJpYXQiOjE2NDc5NTJ9"
    ".VNOkxIGabIts99scWdsQeszMSq7YAQSkzz-T5l1ikg9WXIBuyO9ZWyCwoUmtAGIPl-B5MQSKzxNKascvbxH4ow"
)


@pytest.fixture(params=["HS256", "HS512", "ES256", "ES512"])
def service(request) -> TokenService:
    return build_token_service(request.param)


def test_round_trip_inside_window(service: TokenService) -> None:
    token = service.create(CLAIMS, NOW)
    assert TOKEN_PATTERN.fullmatch(token)

    claims = service.extract(token, NOW + timedelta(minutes=5))

    assert (claims.identity, claims.contact, claims.referrer) == (
        CLAIMS.identity,
        CLAIMS.contact,
        CLAIMS.referrer,
    )
    assert claims.issued_at == NOW
    assert claims.not_before == NOW
    assert claims.expires_at == NOW + timedelta(minutes=10)


def test_extract_rejects_outside_window(service: TokenService) -> None:
    token = service.create(CLAIMS, NOW)

    with pytest.raises(InvalidTokenError):
        service.extract(token, NOW - timedelta(seconds=1))
    with pytest.raises(InvalidTokenError):
        service.extract(token, NOW + timedelta(minutes=10))
    with pytest.raises(InvalidTokenError):
        service.extract(token, NOW + timedelta(hours=1))

    assert service.extract(token, NOW).identity == CLAIMS.identity
    assert service.extract(token, NOW + timedelta(minutes=10) - timedelta(seconds=1))


def test_custom_ttl_and_issuer() -> None:
    service = HMACTokenService.hs256("secret", issuer="gate.example", ttl=timedelta(seconds=30))
    token = service.create(CLAIMS, NOW)

    assert service.extract(token, NOW + timedelta(seconds=29)).expires_at == NOW + timedelta(seconds=30)
    with pytest.raises(InvalidTokenError):
        service.extract(token, NOW + timedelta(seconds=30))

    other_issuer = HMACTokenService.hs256("secret", issuer="someone.else")
    with pytest.raises(InvalidTokenError):
        other_issuer.extract(token, NOW)


def test_rejects_token_from_another_key() -> None:
    first = HMACTokenService.hs256()
    second = HMACTokenService.hs256()

    with pytest.raises(InvalidTokenError):
        second.extract(first.create(CLAIMS, NOW), NOW)

    ec_first = ECDSATokenService.es256()
    ec_second = ECDSATokenService.es256()
    with pytest.raises(InvalidTokenError):
        ec_second.extract(ec_first.create(CLAIMS, NOW), NOW)


@pytest.mark.parametrize(
    ("issuer_algorithm", "verifier_algorithm"),
    [("HS256", "ES256"), ("ES256", "HS256"), ("HS512", "ES512"), ("HS256", "HS512"), ("ES256", "ES512")],
)
def test_rejects_token_from_another_algorithm(issuer_algorithm: str, verifier_algorithm: str) -> None:
    issuer = build_token_service(issuer_algorithm)
    verifier = build_token_service(verifier_algorithm)

    with pytest.raises(InvalidTokenError):
        verifier.extract(issuer.create(CLAIMS, NOW), NOW)


def test_same_secret_different_hmac_algorithm_is_rejected() -> None:
    hs256 = HMACTokenService("shared", "HS256")
    hs512 = HMACTokenService("shared", "HS512")

    with pytest.raises(InvalidTokenError):
        hs512.extract(hs256.create(CLAIMS, NOW), NOW)


@pytest.mark.parametrize("missing", ["identity", "contact", "referrer"])
def test_rejects_missing_required_claim(service: TokenService, missing: str) -> None:
    values = {"identity": CLAIMS.identity, "contact": CLAIMS.contact, "referrer": CLAIMS.referrer}
    values[missing] = ""
    token = service.create(CandidateClaims(**values), NOW)

    with pytest.raises(InvalidTokenError):
        service.extract(token, NOW)


def test_rejects_tampered_and_malformed_tokens() -> None:
    service = HMACTokenService.hs256()
    token = service.create(CLAIMS, NOW)
    header, payload, signature = token.split(".")
    forged = ".".join([header, payload, signature[::-1]])

    for bad in (forged, "", "not-a-token", f"{header}.{payload}.", TOKEN_HS256):
        with pytest.raises(InvalidTokenError):
            service.extract(bad, NOW)


def test_invalid_token_error_carries_no_detail() -> None:
    service = HMACTokenService.hs256()
    expired = service.create(CLAIMS, NOW)

    with pytest.raises(InvalidTokenError) as expired_info:
        service.extract(expired, NOW + timedelta(days=1))
    with pytest.raises(InvalidTokenError) as forged_info:
        service.extract("a.b.c", NOW)

    assert str(expired_info.value) == str(forged_info.value) == "invalid token"


def test_fingerprint_known_vectors() -> None:
    assert TokenService.fingerprint("DATA") == (
        "084E310EDCFBD2591B9997B55870D1AE49BCF1AEE7C74EFB4236CE8A9F28A6CE"
        "5FBF3394742969DFE578031822975EA44DE0C2AE68163368C8AA0185263FC874"
    )
    assert TokenService.fingerprint(TOKEN_HS256) == (
        "5719B140ABEFF9FD44DD610C4C0673A10FCEDCEB3A14F09FC69D90C93D63EAAF"
        "37A36E735290679C1E531FA3C5C08B8924FF738DA0D5F384493899CDDD1CF597"
    )
    assert TokenService.fingerprint(TOKEN_HS512) == (
        "AF0529BDE462FE6E0666BE6B26F6487F5E6C01A3C7907FCA82A7914879038506"
        "609035FE8589E651F2F9EC2B231F6A6344DB15514C248D0ABA6CC3E390CE98BB"
    )


def test_fingerprint_is_deterministic_and_sensitive(service: TokenService) -> None:
    token = service.create(CLAIMS, NOW)

    assert service.fingerprint(token) == service.fingerprint(token)
    assert FINGERPRINT_PATTERN.fullmatch(service.fingerprint(token))
    assert service.fingerprint(token) != service.fingerprint(token + "x")


def test_distinct_claims_yield_distinct_tokens() -> None:
    service = ECDSATokenService.es256()
    tokens = {
        service.create(
            CandidateClaims(identity=f"id-{i}", contact=f"user{i}@example.com", referrer="Founder"),
            NOW,
        )
        for i in range(50)
    }

    assert len(tokens) == 50
    assert len({service.fingerprint(token) for token in tokens}) == 50


def test_ecdsa_from_pem_round_trip() -> None:
    original = ECDSATokenService.es512()
    restored = ECDSATokenService.from_pem(original.private_key_pem, "ES512")

    assert restored.extract(original.create(CLAIMS, NOW), NOW).identity == CLAIMS.identity


def test_ecdsa_rejects_mismatched_curve() -> None:
    p256_pem = ECDSATokenService.es256().private_key_pem

    with pytest.raises(ValueError):
        ECDSATokenService.from_pem(p256_pem, "ES512")


def test_construction_rejects_unknown_algorithm() -> None:
    with pytest.raises(ValueError):
        build_token_service("RS256")
    with pytest.raises(ValueError):
        HMACTokenService("secret", "ES256")
    with pytest.raises(ValueError):
        HMACTokenService("", "HS256")


def test_create_wraps_signing_faults(mocker) -> None:
    service = HMACTokenService.hs256()
    mocker.patch("waitlist.services.tokens.jwt.encode", side_effect=TypeError("boom"))

    with pytest.raises(TokenCreationError):
        service.create(CLAIMS, NOW)


@pytest.mark.parametrize("offset", [timedelta(days=-400), timedelta(hours=-1), timedelta(hours=1), timedelta(days=400)])
def test_window_follows_supplied_time_not_wall_clock(service: TokenService, offset: timedelta) -> None:
    issued = datetime.now(UTC) + offset
    token = service.create(CLAIMS, issued)

    assert service.extract(token, issued + timedelta(minutes=1)).identity == CLAIMS.identity
    with pytest.raises(InvalidTokenError):
        service.extract(token, issued + timedelta(minutes=11))


def test_naive_times_are_read_as_utc() -> None:
    service = HMACTokenService.hs256()
    naive = datetime(2026, 3, 1, 12, 0)
    token = service.create(CLAIMS, naive)

    claims = service.extract(token, naive + timedelta(minutes=9))

    assert claims.issued_at == NOW
    assert service.extract(token, NOW).identity == CLAIMS.identity
    with pytest.raises(InvalidTokenError):
        service.extract(token, naive + timedelta(minutes=10))


def test_time_claims_are_truncated_to_the_second() -> None:
    service = HMACTokenService.hs256()
    token = service.create(CLAIMS, NOW + timedelta(milliseconds=750))

    claims = service.extract(token, NOW + timedelta(milliseconds=750))

    assert claims.not_before == NOW
    assert claims.expires_at == NOW + timedelta(minutes=10)
