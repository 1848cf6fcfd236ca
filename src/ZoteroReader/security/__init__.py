"""Secret handling for stored credentials."""

from __future__ import annotations

from ZoteroReader.security.vault import MASK, CredentialVault, is_masked, mask_secret

__all__ = ["MASK", "CredentialVault", "is_masked", "mask_secret"]
