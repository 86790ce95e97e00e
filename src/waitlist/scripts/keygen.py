# src/waitlist/scripts/keygen.py
"""Print fresh key material for the waitlist configuration."""
from __future__ import annotations

import argparse
import secrets

from waitlist.services.cipher import ContactCipher
from waitlist.services.tokens import HMAC_SECRET_BYTES, ECDSATokenService

KINDS = ("ES256", "ES512", "HS256", "HS512", "fernet")


def generate(kind: str) -> str:
    """Return key material for `kind`.

    ECDSA kinds yield a PKCS#8 PEM private key for `JWT_PRIVATE_KEY`, HMAC
    kinds a urlsafe secret for `JWT_SECRET`, and `fernet` an `ENCRYPTION_KEY`.
    """
    if kind in ECDSATokenService.CURVES:
        return ECDSATokenService.generate(kind).private_key_pem
    if kind == "HS256":
        return secrets.token_urlsafe(HMAC_SECRET_BYTES)
    if kind == "HS512":
        return secrets.token_urlsafe(HMAC_SECRET_BYTES * 2)
    if kind == "fernet":
        return ContactCipher.generate_key()
    raise ValueError(f"unknown key kind: {kind}")


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Generate waitlist key material")
    parser.add_argument("kind", choices=KINDS, help="Kind of key to generate")
    args = parser.parse_args(argv)
    print(generate(args.kind).rstrip("\n"))


if __name__ == "__main__":
    main()
