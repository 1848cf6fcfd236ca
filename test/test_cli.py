"""Tests for the click command-line interface."""

from __future__ import annotations

import os
import sys
import tempfile
import unittest
import uuid
from pathlib import Path
from unittest.mock import patch

from click.testing import CliRunner

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "src"))

from fakes import SSE_DONE, FakeResponse, FakeSession, sse_chunk
from ZoteroReader.chat.context import ContextBuilder
from ZoteroReader.cli import cli
from ZoteroReader.config import parse_config_dict
from ZoteroReader.services import create_services
from ZoteroReader.storage.db import DatabaseManager
from ZoteroReader.storage.settings import ZOTERO_USER_ID


class StubZotero:
    def get_item(self, item_key):
        return {"key": item_key, "data": {"title": "CLI Paper"}}

    def get_fulltext(self, item_key):
        return {"content": "Body text."}


class TestCli(unittest.TestCase):
    def setUp(self) -> None:
        env_patch = patch.dict(os.environ, {"ZOTERO_READER_SECRET": "cli-test-secret"})
        env_patch.start()
        self.addCleanup(env_patch.stop)
        self._tmpdir = tempfile.TemporaryDirectory()
        self.db_path = Path(self._tmpdir.name) / "reader.db"
        self.config = parse_config_dict(
            {
                "log": {"level": "WARNING", "to_file": False},
                "storage": {"db_path": str(self.db_path)},
            }
        )
        self.session = FakeSession()
        self.runner = CliRunner()

        config_patch = patch("ZoteroReader.cli.ui.load_config_with_defaults", return_value=self.config)
        services_patch = patch("ZoteroReader.cli.runner.create_services", side_effect=self._create_services)
        config_patch.start()
        services_patch.start()
        self.addCleanup(config_patch.stop)
        self.addCleanup(services_patch.stop)

    def tearDown(self) -> None:
        self._tmpdir.cleanup()

    def _create_services(self, config):
        services = create_services(config, session=self.session)
        services.chat.contexts = ContextBuilder(StubZotero())
        return services

    def _invoke(self, *args: str):
        return self.runner.invoke(cli, list(args))

    def _add_deeplx(self) -> str:
        result = self._invoke("provider", "add", "--name", "DL", "--type", "deeplx", "--token", "abc123xyz")
        self.assertEqual(result.exit_code, 0, result.output)
        return result.stdout.strip()

    def test_provider_add_and_list_masks_token(self) -> None:
        provider_id = self._add_deeplx()

        result = self._invoke("provider", "list")

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn(provider_id, result.output)
        self.assertIn("abc1****3xyz", result.output)
        self.assertNotIn("abc123xyz", result.output)

    def test_provider_add_prints_only_the_id(self) -> None:
        provider_id = self._add_deeplx()
        self.assertEqual(str(uuid.UUID(provider_id)), provider_id)

    def test_provider_list_empty(self) -> None:
        result = self._invoke("provider", "list")
        self.assertIn("No providers configured.", result.output)

    def test_provider_update_and_remove(self) -> None:
        provider_id = self._add_deeplx()

        updated = self._invoke("provider", "update", provider_id, "--disable", "--name", "Renamed")
        removed = self._invoke("provider", "remove", provider_id)
        missing = self._invoke("provider", "update", provider_id, "--name", "x")

        self.assertEqual(updated.exit_code, 0, updated.output)
        self.assertEqual(removed.exit_code, 0, removed.output)
        self.assertEqual(missing.exit_code, 1)

    def test_translate_then_cached(self) -> None:
        provider_id = self._add_deeplx()
        self.session.queue_response(FakeResponse(json_data={"code": 200, "data": "你好", "alternatives": ["您好"]}))

        first = self._invoke("translate", "Hello", "--provider", provider_id, "--from", "en")
        second = self._invoke("translate", "Hello", "--provider", provider_id, "--from", "en")

        self.assertEqual(first.exit_code, 0, first.output)
        self.assertIn("你好", first.output)
        self.assertIn("~ 您好", first.output)
        self.assertIn("(cached)", second.output)
        self.assertEqual(len(self.session.calls), 1)

    def test_translate_unknown_provider_fails(self) -> None:
        result = self._invoke("translate", "Hello", "--provider", "missing")

        self.assertEqual(result.exit_code, 1)
        self.assertIn("does not exist", result.output)

    def test_provider_test_reports_failure(self) -> None:
        provider_id = self._add_deeplx()
        self.session.queue_response(FakeResponse(429))

        result = self._invoke("provider", "test", provider_id)

        self.assertEqual(result.exit_code, 1)
        self.assertIn("Probe failed", result.output)

    def test_history_and_clear(self) -> None:
        provider_id = self._add_deeplx()
        self.session.queue_response(FakeResponse(json_data={"code": 200, "data": "世界"}))
        self._invoke("translate", "World", "--provider", provider_id)

        listed = self._invoke("history", "--search", "world")
        cleared = self._invoke("clear-history", "--all")
        empty = self._invoke("history")

        self.assertIn("World -> 世界", listed.output)
        self.assertEqual(cleared.exit_code, 0, cleared.output)
        self.assertIn("0 of 0 records", empty.output)

    def test_clear_history_requires_target(self) -> None:
        result = self._invoke("clear-history")
        self.assertEqual(result.exit_code, 2)

    def test_chat_streams_reply(self) -> None:
        added = self._invoke(
            "provider", "add", "--name", "LLM", "--type", "openai",
            "--base-url", "https://llm.example.com", "--api-key", "sk-cli-000000", "--model", "m-1",
        )
        self.assertEqual(added.exit_code, 0, added.output)
        provider_id = added.stdout.strip()
        self.session.queue_response(FakeResponse(chunks=[sse_chunk("Short"), sse_chunk(" answer."), SSE_DONE]))

        result = self._invoke("chat", "DOC1", "What is it about?", "--provider", provider_id)

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Short answer.", result.output)
        self.assertIn("CLI Paper", self.session.calls[0]["json"]["messages"][0]["content"])

    def test_zotero_configure_without_check(self) -> None:
        result = self._invoke("zotero", "configure", "--user-id", "12345", "--api-key", "zkey-abcdef", "--no-test")

        self.assertEqual(result.exit_code, 0, result.output)
        with DatabaseManager(self.db_path) as manager:
            row = manager.get_connection().execute(
                "SELECT value FROM settings WHERE key = ?", (ZOTERO_USER_ID,)
            ).fetchone()
        self.assertEqual(row[0], "12345")

    def test_zotero_configure_rejected(self) -> None:
        self.session.queue_response(FakeResponse(403, text="Invalid key"))

        result = self._invoke("zotero", "configure", "--user-id", "12345", "--api-key", "bad-key")

        self.assertEqual(result.exit_code, 1)
        self.assertIn("rejected", result.output)


if __name__ == "__main__":
    unittest.main()
