"""Tests for credential encryption and masking."""

import sys
import unittest
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "src"))

from ZoteroReader.core.errors import IntegrityError
from ZoteroReader.security.vault import CredentialVault, is_masked, mask_secret


class TestCredentialVault(unittest.TestCase):
    @classmethod
    def setUpClass(cls) -> None:
        cls.vault = CredentialVault("unit-test-secret")

    def test_round_trip(self) -> None:
        for plaintext in ("sk-abc123", "", "密钥 with ünïcode"):
            with self.subTest(plaintext=plaintext):
                self.assertEqual(self.vault.decrypt(self.vault.encrypt(plaintext)), plaintext)

    def test_blob_format_and_fresh_nonce(self) -> None:
        first = self.vault.encrypt("same")
        second = self.vault.encrypt("same")

        nonce, tag, _ = first.split(":")
        self.assertEqual(len(bytes.fromhex(nonce)), 12)
        self.assertEqual(len(bytes.fromhex(tag)), 16)
        self.assertNotEqual(first, second)

    def test_tampered_ciphertext_fails_authentication(self) -> None:
        nonce, tag, ciphertext = self.vault.encrypt("secret-value").split(":")
        flipped = format(int(ciphertext[:2], 16) ^ 0x01, "02x") + ciphertext[2:]

        with self.assertRaises(IntegrityError):
            self.vault.decrypt(f"{nonce}:{tag}:{flipped}")

    def test_malformed_blobs_rejected(self) -> None:
        for blob in ("", "abc", "a:b", "zz:zz:zz", "00:11:22:33"):
            with self.subTest(blob=blob):
                with self.assertRaises(IntegrityError):
                    self.vault.decrypt(blob)

    def test_other_secret_cannot_decrypt(self) -> None:
        blob = self.vault.encrypt("token")
        with self.assertRaises(IntegrityError):
            CredentialVault("another-secret").decrypt(blob)

    def test_empty_secret_uses_dev_default(self) -> None:
        blob = CredentialVault("").encrypt("x")
        self.assertEqual(CredentialVault("").decrypt(blob), "x")


class TestMasking(unittest.TestCase):
    def test_long_secret_shows_edges(self) -> None:
        self.assertEqual(mask_secret("abc123xyz"), "abc1****3xyz")

    def test_short_secret_fully_masked(self) -> None:
        self.assertEqual(mask_secret("12345678"), "****")
        self.assertEqual(mask_secret("abc"), "****")

    def test_empty_secret(self) -> None:
        self.assertEqual(mask_secret(""), "")
        self.assertEqual(mask_secret(None), "")

    def test_is_masked(self) -> None:
        self.assertTrue(is_masked("abc1****3xyz"))
        self.assertTrue(is_masked("****"))
        self.assertFalse(is_masked("plain-token"))
        self.assertFalse(is_masked(""))


if __name__ == "__main__":
    unittest.main()
