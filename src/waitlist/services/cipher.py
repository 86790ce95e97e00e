"""Symmetric encryption of participant contacts at rest."""

from __future__ import annotations

from cryptography.fernet import Fernet, InvalidToken


class ContactCipher:
    """Encrypt and decrypt contact strings with a Fernet key."""

    def __init__(self, key: str | bytes) -> None:
        try:
            self._fernet = Fernet(key)
        except (TypeError, ValueError) as err:
            raise ValueError("ENCRYPTION_KEY must be a urlsafe base64 32-byte Fernet key") from err

    @staticmethod
    def generate_key() -> str:
        """Return a fresh key suitable for `ENCRYPTION_KEY`."""
        return Fernet.generate_key().decode("ascii")

    def encrypt(self, contact: str) -> str:
        return self._fernet.encrypt(contact.encode("utf-8")).decode("ascii")

    def decrypt(self, ciphertext: str) -> str:
        """Return the plaintext contact.

        Raises:
            ValueError: if the ciphertext was not produced with this key.
        """
        try:
            return self._fernet.decrypt(ciphertext.encode("ascii")).decode("utf-8")
        except InvalidToken as err:
            raise ValueError("contact ciphertext does not match the encryption key") from err
