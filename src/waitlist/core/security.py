"""Digest and shape helpers shared by the token service and the API layer."""
from __future__ import annotations

import hashlib
import hmac
import re

TOKEN_PATTERN = re.compile(r"^[A-Za-z0-9\-_]+\.[A-Za-z0-9\-_]+\.[A-Za-z0-9\-_]*$")
FINGERPRINT_PATTERN = re.compile(r"^[0-9A-F]{128}$")


def fingerprint(token: str) -> str:
    """Return the SHA3-512 digest of a raw token as uppercase hex."""
    return hashlib.sha3_512(token.encode("utf-8")).hexdigest().upper()


def is_token_shaped(token: str) -> bool:
    """Return True if the string looks like a compact three-segment token."""
    return TOKEN_PATTERN.fullmatch(token) is not None


def fingerprints_match(token: str, supplied: str) -> bool:
    """Compare a supplied fingerprint against the token's own in constant time.

    Anything that is not a well-formed fingerprint is rejected before the
    comparison, so `hmac.compare_digest` only ever sees ASCII input.
    """
    if FINGERPRINT_PATTERN.fullmatch(supplied) is None:
        return False
    return hmac.compare_digest(fingerprint(token), supplied)
