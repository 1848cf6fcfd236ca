"""Tests for logger configuration and secret redaction."""

import logging
import sys
import tempfile
import unittest
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "src"))

from ZoteroReader.utils.log import configure_logging, log, redact


class TestRedact(unittest.TestCase):
    def test_bearer_token(self) -> None:
        self.assertEqual(redact("Authorization: Bearer sk-abc.123"), "Authorization: Bearer [redacted]")

    def test_zotero_key_header(self) -> None:
        self.assertEqual(
            redact("headers={'Zotero-API-Key': 'zkey123', 'Accept': 'x'}"),
            "headers={'Zotero-API-Key': '[redacted]', 'Accept': 'x'}",
        )

    def test_deeplx_path_token(self) -> None:
        self.assertEqual(
            redact("POST https://api.deeplx.org/tok-987/translate"),
            "POST https://api.deeplx.org/[redacted]/translate",
        )

    def test_plain_text_untouched(self) -> None:
        self.assertEqual(redact("Translated 12 chars with provider=DL"), "Translated 12 chars with provider=DL")


class TestConfigureLogging(unittest.TestCase):
    def tearDown(self) -> None:
        for handler in log.handlers[:]:
            log.removeHandler(handler)
            handler.close()

    def test_console_only(self) -> None:
        self.assertIsNone(configure_logging(level="warning", action="serve", log_to_file=False))
        self.assertEqual(len(log.handlers), 1)
        self.assertEqual(log.handlers[0].level, logging.WARNING)

    def test_file_handler_redacts(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            path = configure_logging(level="INFO", action="translate", log_to_file=True, log_dir=tmpdir)
            log.debug("calling with %s", "Bearer sk-secret-value")
            for handler in log.handlers:
                handler.flush()

            self.assertEqual(path.parent, Path(tmpdir) / "translate")
            content = path.read_text(encoding="utf-8")
            self.assertIn("[DEBG] calling with Bearer [redacted]", content)
            self.assertNotIn("sk-secret-value", content)

            for handler in log.handlers[:]:
                log.removeHandler(handler)
                handler.close()


if __name__ == "__main__":
    unittest.main()
