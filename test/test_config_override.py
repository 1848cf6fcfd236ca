"""Tests for config override behavior with defaults."""

import sys
import tempfile
import unittest
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "src"))

from ZoteroReader.config import load_config_with_defaults


_BASE_YAML = """
log:
  level: INFO
  to_file: true
  dir: log

storage:
  db_path: database/zotero_reader.db

zotero:
  base_url: https://api.zotero.org
  timeout: 30

chat:
  timeout: 120
  history_window: 20
  target_lang: zh
"""


class TestConfigOverride(unittest.TestCase):
    def setUp(self) -> None:
        self._tmpdir = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmpdir.name)
        self.defaults = self.tmp / "default.yml"
        self.defaults.write_text(_BASE_YAML, encoding="utf-8")

    def tearDown(self) -> None:
        self._tmpdir.cleanup()

    def test_override_merges_with_defaults(self) -> None:
        override_yaml = """
log:
  level: DEBUG

chat:
  history_window: 8
  target_lang: en
"""
        override_path = self.tmp / "override.yml"
        override_path.write_text(override_yaml, encoding="utf-8")

        cfg = load_config_with_defaults(override_path, self.defaults)

        self.assertEqual(cfg.runtime.level, "DEBUG")
        self.assertTrue(cfg.runtime.to_file)
        self.assertEqual(cfg.chat.history_window, 8)
        self.assertEqual(cfg.chat.target_lang, "en")
        self.assertEqual(cfg.chat.timeout, 120.0)
        self.assertEqual(cfg.storage.db_path, "database/zotero_reader.db")

    def test_empty_override_uses_defaults(self) -> None:
        override_path = self.tmp / "override.yml"
        override_path.write_text("{}", encoding="utf-8")

        cfg = load_config_with_defaults(override_path, self.defaults)

        self.assertEqual(cfg.runtime.level, "INFO")
        self.assertEqual(cfg.chat.history_window, 20)

    def test_no_override_path(self) -> None:
        cfg = load_config_with_defaults(None, self.defaults)
        self.assertEqual(cfg.zotero.timeout, 30.0)

    def test_non_mapping_root_rejected(self) -> None:
        override_path = self.tmp / "override.yml"
        override_path.write_text("- just\n- a list\n", encoding="utf-8")

        with self.assertRaisesRegex(ValueError, "mapping"):
            load_config_with_defaults(override_path, self.defaults)

    def test_shipped_defaults_parse(self) -> None:
        cfg = load_config_with_defaults(None, REPO_ROOT / "config" / "default.yml")

        self.assertEqual(cfg.server.host, "127.0.0.1")
        self.assertEqual(cfg.translation.deeplx_endpoint, "https://api.deeplx.org/{token}/translate")
        self.assertEqual(cfg.chat.quote_max_chars, 500)


if __name__ == "__main__":
    unittest.main()
