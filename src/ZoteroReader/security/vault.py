"""Credential encryption at rest.

Secrets are sealed with AES-256-GCM. The key is derived from the operator
secret with scrypt and a fixed salt, lazily on first use, and only ever held
in memory. Blobs are stored as ``nonce:tag:ciphertext`` in lowercase hex.
"""

from __future__ import annotations

import os
from functools import cached_property
from typing import Final

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.scrypt import Scrypt

from ZoteroReader.core.errors import IntegrityError
from ZoteroReader.utils.log import log

MASK: Final[str] = "****"

DEFAULT_SALT: Final[str] = "zotero-reader-salt"
DEV_SECRET: Final[str] = "default-dev-secret-change-in-production"

_KEY_BYTES: Final[int] = 32
_NONCE_BYTES: Final[int] = 12
_TAG_BYTES: Final[int] = 16

# scrypt cost parameters (N, r, p)
_SCRYPT_N: Final[int] = 2**14
_SCRYPT_R: Final[int] = 8
_SCRYPT_P: Final[int] = 1


class CredentialVault:
    """Authenticated symmetric encryption for stored credentials."""

    def __init__(self, secret: str, salt: str = DEFAULT_SALT) -> None:
        """Create a vault bound to an operator secret.

        Args:
            secret: Operator-supplied process secret. Falls back to a
                development secret (with a warning) when empty.
            salt: Fixed KDF salt.
        """
        if not secret:
            log.warning("No application secret configured; using the development secret")
            secret = DEV_SECRET
        self._secret = secret.encode("utf-8")
        self._salt = salt.encode("utf-8")

    @cached_property
    def _cipher(self) -> AESGCM:
        kdf = Scrypt(salt=self._salt, length=_KEY_BYTES, n=_SCRYPT_N, r=_SCRYPT_R, p=_SCRYPT_P)
        key = kdf.derive(self._secret)
        log.debug("Credential vault key derived")
        return AESGCM(key)

    def encrypt(self, plaintext: str) -> str:
        """Encrypt ``plaintext`` with a fresh random nonce.

        Returns:
            Blob in ``nonce:tag:ciphertext`` hex form.
        """
        nonce = os.urandom(_NONCE_BYTES)
        sealed = self._cipher.encrypt(nonce, plaintext.encode("utf-8"), None)
        ciphertext, tag = sealed[:-_TAG_BYTES], sealed[-_TAG_BYTES:]
        return f"{nonce.hex()}:{tag.hex()}:{ciphertext.hex()}"

    def decrypt(self, blob: str) -> str:
        """Decrypt a blob produced by :meth:`encrypt`.

        Raises:
            IntegrityError: If the blob is malformed or fails authentication.
        """
        parts = (blob or "").split(":")
        if len(parts) != 3 or not all(parts[:2]):
            raise IntegrityError("Invalid encrypted data format")
        try:
            nonce, tag, ciphertext = (bytes.fromhex(part) for part in parts)
        except ValueError as e:
            raise IntegrityError("Invalid encrypted data format") from e
        if len(nonce) != _NONCE_BYTES or len(tag) != _TAG_BYTES:
            raise IntegrityError("Invalid encrypted data format")
        try:
            plain = self._cipher.decrypt(nonce, ciphertext + tag, None)
        except InvalidTag as e:
            raise IntegrityError("Encrypted data failed authentication") from e
        return plain.decode("utf-8")


def mask_secret(value: str | None) -> str:
    """Mask a secret for display.

    Reveals the first and last four characters, or nothing when the secret
    is eight characters or shorter.
    """
    if not value:
        return ""
    if len(value) <= 8:
        return MASK
    return value[:4] + MASK + value[-4:]


def is_masked(value: str | None) -> bool:
    """Return True when ``value`` carries the display mask marker."""
    return bool(value) and MASK in value
