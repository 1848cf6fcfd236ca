"""Tests for the Flask HTTP surface."""

from __future__ import annotations

import json
import sys
import tempfile
import unittest
from pathlib import Path

import requests

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "src"))

from fakes import SSE_DONE, FakeResponse, FakeSession, sse_chunk
from ZoteroReader.api import create_app
from ZoteroReader.chat.context import ContextBuilder
from ZoteroReader.config import parse_config_dict
from ZoteroReader.services import create_services
from ZoteroReader.storage.settings import ZOTERO_API_KEY, ZOTERO_USER_ID


class StubZotero:
    def get_item(self, item_key):
        return {"key": item_key, "data": {"title": "Stub Paper"}}

    def get_fulltext(self, item_key):
        return None


def _deeplx_ok(text: str = "你好") -> FakeResponse:
    return FakeResponse(json_data={"code": 200, "data": text, "alternatives": []})


class ApiTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self._tmpdir = tempfile.TemporaryDirectory()
        config = parse_config_dict(
            {
                "log": {"level": "WARNING", "to_file": False},
                "storage": {"db_path": str(Path(self._tmpdir.name) / "reader.db")},
            }
        )
        self.session = FakeSession()
        self.services = create_services(config, session=self.session)
        self.app = create_app(self.services)
        self.client = self.app.test_client()

    def tearDown(self) -> None:
        self.services.close()
        self._tmpdir.cleanup()

    def _add_deeplx(self, name: str = "DL", token: str = "abc123xyz") -> str:
        response = self.client.post("/api/engines", json={"name": name, "type": "deeplx", "deeplxToken": token})
        self.assertEqual(response.status_code, 200)
        return response.get_json()["id"]

    def _add_chat(self) -> str:
        response = self.client.post(
            "/api/engines",
            json={
                "name": "LLM",
                "type": "openai",
                "apiBaseUrl": "https://llm.example.com",
                "apiKey": "sk-route-test-0000",
                "model": "m-1",
            },
        )
        return response.get_json()["id"]

    def _configure_zotero(self) -> None:
        self.services.settings.set(ZOTERO_USER_ID, "12345")
        self.services.settings.set(ZOTERO_API_KEY, "zkey-abcdef")


class TestEngineRoutes(ApiTestCase):
    def test_add_and_list_masked(self) -> None:
        provider_id = self._add_deeplx()

        engines = self.client.get("/api/engines").get_json()["engines"]

        self.assertEqual(len(engines), 1)
        self.assertEqual(engines[0]["id"], provider_id)
        self.assertEqual(engines[0]["deeplxToken"], "abc1****3xyz")
        self.assertEqual(engines[0]["priority"], 0)

    def test_add_requires_name_and_type(self) -> None:
        response = self.client.post("/api/engines", json={"name": "x"})
        self.assertEqual(response.status_code, 400)
        self.assertIn("error", response.get_json())

    def test_add_rejects_unknown_type(self) -> None:
        response = self.client.post("/api/engines", json={"name": "x", "type": "google"})
        self.assertEqual(response.status_code, 400)

    def test_update_with_masked_secret_keeps_it(self) -> None:
        provider_id = self._add_deeplx()

        response = self.client.put(
            "/api/engines", json={"id": provider_id, "name": "Renamed", "deeplxToken": "abc1****3xyz"}
        )

        self.assertEqual(response.status_code, 200)
        provider = self.services.providers.get(provider_id)
        self.assertEqual(provider.name, "Renamed")
        self.assertEqual(provider.access_token, "abc123xyz")

    def test_update_unknown_is_404(self) -> None:
        response = self.client.put("/api/engines", json={"id": "missing", "name": "x"})
        self.assertEqual(response.status_code, 404)

    def test_delete(self) -> None:
        provider_id = self._add_deeplx()
        response = self.client.delete("/api/engines", json={"id": provider_id})
        self.assertEqual(response.get_json(), {"success": True})
        self.assertEqual(self.client.get("/api/engines").get_json()["engines"], [])

    def test_probe_stored_provider(self) -> None:
        provider_id = self._add_deeplx()
        self.session.queue_response(_deeplx_ok())

        result = self.client.post("/api/engines/test", json={"id": provider_id}).get_json()

        self.assertTrue(result["success"])
        self.assertEqual(result["translation"], "你好")
        self.assertIn("latency", result)
        self.assertEqual(self.session.calls[0]["timeout"], 10.0)

    def test_probe_inline_chat_provider(self) -> None:
        self.session.queue_response(
            FakeResponse(json_data={"choices": [{"message": {"content": "Hello"}}]})
        )

        result = self.client.post(
            "/api/engines/test",
            json={"type": "openai", "apiBaseUrl": "https://llm.example.com", "apiKey": "sk-inline", "model": "m"},
        ).get_json()

        self.assertTrue(result["success"])
        call = self.session.calls[0]
        self.assertEqual(call["json"]["max_tokens"], 10)
        self.assertEqual(call["json"]["messages"], [{"role": "user", "content": "Say hello in one word."}])
        self.assertEqual(call["timeout"], 15.0)

    def test_probe_failure_reported_in_body(self) -> None:
        provider_id = self._add_deeplx()
        self.session.queue_response(FakeResponse(500, text="down"))

        response = self.client.post("/api/engines/test", json={"id": provider_id})

        self.assertEqual(response.status_code, 200)
        self.assertFalse(response.get_json()["success"])
        self.assertIn("500", response.get_json()["error"])


class TestTranslateRoutes(ApiTestCase):
    def test_translate_then_cached(self) -> None:
        provider_id = self._add_deeplx()
        self.session.queue_response(_deeplx_ok())
        body = {"text": "Hello", "sourceLang": "en", "targetLang": "zh", "providerId": provider_id}

        first = self.client.post("/api/translate", json=body).get_json()
        second = self.client.post("/api/translate", json=body).get_json()

        self.assertEqual(first["translation"], "你好")
        self.assertFalse(first["fromCache"])
        self.assertTrue(second["fromCache"])
        self.assertEqual(len(self.session.calls), 1)

    def test_translate_error_statuses(self) -> None:
        provider_id = self._add_deeplx()
        cases = [
            ({"targetLang": "zh", "providerId": provider_id}, 400),
            ({"text": "Hi", "targetLang": "zh", "providerId": "missing"}, 404),
        ]
        for body, status in cases:
            with self.subTest(body=body):
                response = self.client.post("/api/translate", json=body)
                self.assertEqual(response.status_code, status)
                self.assertIn("error", response.get_json())

    def test_translate_rate_limited(self) -> None:
        provider_id = self._add_deeplx()
        self.session.queue_response(FakeResponse(429))

        response = self.client.post(
            "/api/translate", json={"text": "Hi", "targetLang": "zh", "providerId": provider_id}
        )

        self.assertEqual(response.status_code, 429)

    def test_translate_upstream_failure_is_502(self) -> None:
        provider_id = self._add_deeplx()
        self.session.queue_response(requests.ConnectionError("down"))

        response = self.client.post(
            "/api/translate", json={"text": "Hi", "targetLang": "zh", "providerId": provider_id}
        )

        self.assertEqual(response.status_code, 502)

    def test_non_string_fields_rejected(self) -> None:
        provider_id = self._add_deeplx()
        cases = [
            {"text": 42, "targetLang": "zh", "providerId": provider_id},
            {"text": "Hi", "targetLang": ["zh"], "providerId": provider_id},
            {"text": "Hi", "targetLang": "zh", "providerId": provider_id, "context": {"title": 5}},
        ]
        for body in cases:
            with self.subTest(body=body):
                response = self.client.post("/api/translate", json=body)
                self.assertEqual(response.status_code, 400)
                self.assertIn("error", response.get_json())
        self.assertEqual(self.session.calls, [])

    def test_engines_listing_hides_secrets_and_disabled(self) -> None:
        first = self._add_deeplx("A")
        second = self._add_deeplx("B")
        self.client.put("/api/engines", json={"id": second, "enabled": False})

        data = self.client.get("/api/translate/engines").get_json()

        self.assertEqual(data, {"engines": [{"id": first, "name": "A", "type": "deeplx"}], "defaultEngine": first})

    def test_history_listing_and_deletion(self) -> None:
        provider_id = self._add_deeplx()
        for text in ("alpha", "beta", "gamma"):
            self.session.queue_response(_deeplx_ok(f"{text}-zh"))
            self.client.post("/api/translate", json={"text": text, "targetLang": "zh", "providerId": provider_id})

        page = self.client.get("/api/translate/history?limit=2&offset=0").get_json()
        self.assertEqual(page["total"], 3)
        self.assertEqual([r["sourceText"] for r in page["records"]], ["gamma", "beta"])

        searched = self.client.get("/api/translate/history?search=ALP").get_json()
        self.assertEqual(searched["total"], 1)

        record_id = page["records"][0]["id"]
        self.client.delete("/api/translate/history", json={"id": record_id})
        self.assertEqual(self.client.get("/api/translate/history").get_json()["total"], 2)

        self.client.delete("/api/translate/history", json={"clearAll": True})
        self.assertEqual(self.client.get("/api/translate/history").get_json()["total"], 0)

    def test_history_delete_requires_target(self) -> None:
        response = self.client.delete("/api/translate/history", json={})
        self.assertEqual(response.status_code, 400)


class TestSettingsRoutes(ApiTestCase):
    def test_secret_setting_masked_and_masked_write_ignored(self) -> None:
        put = self.client.put("/api/settings", json={"key": ZOTERO_API_KEY, "value": "zkey-1234567890"})
        self.assertEqual(put.get_json(), {"success": True, "updated": True})

        shown = self.client.get(f"/api/settings?key={ZOTERO_API_KEY}").get_json()
        self.assertEqual(shown, "zkey****7890")

        again = self.client.put("/api/settings", json={"key": ZOTERO_API_KEY, "value": shown}).get_json()
        self.assertFalse(again["updated"])
        self.assertEqual(self.services.settings.get_secret(ZOTERO_API_KEY), "zkey-1234567890")

    def test_plain_values_round_trip_as_json(self) -> None:
        self.client.put("/api/settings", json={"key": "reader_prefs", "value": {"fontSize": 14}})
        self.client.put("/api/settings", json={"key": ZOTERO_USER_ID, "value": "12345"})

        self.assertEqual(self.client.get("/api/settings?key=reader_prefs").get_json(), {"fontSize": 14})
        self.assertEqual(self.client.get(f"/api/settings?key={ZOTERO_USER_ID}").get_json(), 12345)
        self.assertIsNone(self.client.get("/api/settings?key=unset").get_json())

    def test_missing_key(self) -> None:
        self.assertEqual(self.client.get("/api/settings").status_code, 400)
        self.assertEqual(self.client.put("/api/settings", json={"value": 1}).status_code, 400)


class TestChatRoutes(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.services.chat.contexts = ContextBuilder(StubZotero())
        self.provider_id = self._add_chat()

    def test_stream_and_history(self) -> None:
        chunks = [sse_chunk("Hi"), sse_chunk(" there"), SSE_DONE]
        self.session.queue_response(FakeResponse(chunks=chunks))

        response = self.client.post(
            "/api/chat", json={"documentId": "DOC1", "providerId": self.provider_id, "message": "Hello?"}
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.mimetype, "text/event-stream")
        self.assertEqual(response.get_data(), b"".join(chunks))
        response.close()

        messages = self.client.get("/api/chat?documentId=DOC1").get_json()["messages"]
        self.assertEqual([(m["role"], m["content"]) for m in messages], [("user", "Hello?"), ("assistant", "Hi there")])

        cleared = self.client.delete("/api/chat?documentId=DOC1").get_json()
        self.assertEqual(cleared, {"success": True, "removed": 2})

    def test_mid_stream_failure_becomes_error_event(self) -> None:
        self.session.queue_response(
            FakeResponse(chunks=[sse_chunk("Part")], error=requests.ConnectionError("reset"))
        )

        response = self.client.post(
            "/api/chat", json={"documentId": "DOC1", "providerId": self.provider_id, "message": "Go"}
        )
        body = response.get_data()
        response.close()

        last_event = body.decode("utf-8").strip().split("\n\n")[-1]
        self.assertTrue(last_event.startswith("data: "))
        self.assertIn("error", json.loads(last_event[len("data: "):]))
        self.assertEqual(self.services.chat.history("DOC1")[-1].content, "Part")

    def test_errors_before_streaming_are_json(self) -> None:
        self.session.queue_response(FakeResponse(429))
        limited = self.client.post(
            "/api/chat", json={"documentId": "DOC1", "providerId": self.provider_id, "message": "Go"}
        )
        self.assertEqual(limited.status_code, 429)

        invalid = self.client.post("/api/chat", json={"providerId": self.provider_id, "message": "Go"})
        self.assertEqual(invalid.status_code, 400)

        deeplx = self._add_deeplx()
        unsupported = self.client.post(
            "/api/chat", json={"documentId": "DOC1", "providerId": deeplx, "message": "Go"}
        )
        self.assertEqual(unsupported.status_code, 400)

    def test_non_string_fields_rejected(self) -> None:
        base = {"documentId": "DOC1", "providerId": self.provider_id, "message": "Go"}
        for extra in ({"selectedText": 123}, {"targetLang": {"code": "zh"}}, {"message": ["Go"]}):
            with self.subTest(extra=extra):
                response = self.client.post("/api/chat", json={**base, **extra})
                self.assertEqual(response.status_code, 400)
                self.assertIn("error", response.get_json())
        self.assertEqual(self.services.chat.history("DOC1"), [])

    def test_history_limit_keeps_newest(self) -> None:
        self.session.queue_response(FakeResponse(chunks=[sse_chunk("Answer"), SSE_DONE]))
        response = self.client.post(
            "/api/chat", json={"documentId": "DOC1", "providerId": self.provider_id, "message": "Question"}
        )
        response.get_data()
        response.close()

        limited = self.client.get("/api/chat?documentId=DOC1&limit=1").get_json()["messages"]
        everything = self.client.get("/api/chat?documentId=DOC1&limit=0").get_json()["messages"]

        self.assertEqual([m["content"] for m in limited], ["Answer"])
        self.assertEqual([m["content"] for m in everything], ["Question", "Answer"])

    def test_history_requires_document(self) -> None:
        self.assertEqual(self.client.get("/api/chat").status_code, 400)


class TestZoteroRoutes(ApiTestCase):
    def test_not_configured(self) -> None:
        response = self.client.get("/api/zotero/collections")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(self.session.calls, [])

    def test_items_with_total(self) -> None:
        self._configure_zotero()
        self.session.queue_response(FakeResponse(json_data=[{"key": "A"}], headers={"Total-Results": "9"}))

        data = self.client.get("/api/zotero/items?collectionKey=COL&limit=500").get_json()

        self.assertEqual(data, {"items": [{"key": "A"}], "totalResults": 9})
        self.assertEqual(self.session.calls[0]["params"]["limit"], "100")

    def test_item_children(self) -> None:
        self._configure_zotero()
        self.session.queue_response(FakeResponse(json_data=[{"key": "ATT"}]))

        data = self.client.get("/api/zotero/items?itemKey=PARENT").get_json()

        self.assertEqual(data, [{"key": "ATT"}])
        self.assertTrue(self.session.calls[0]["url"].endswith("/items/PARENT/children"))

    def test_file_streamed(self) -> None:
        self._configure_zotero()
        upstream = FakeResponse(chunks=[b"%PDF-", b"1.7"], headers={"Content-Type": "application/pdf"})
        self.session.queue_response(upstream)

        response = self.client.get("/api/zotero/file/ATT1")

        self.assertEqual(response.get_data(), b"%PDF-1.7")
        self.assertEqual(response.mimetype, "application/pdf")
        response.close()
        self.assertTrue(upstream.closed)

    def test_rate_limit_exhausted_sets_retry_after(self) -> None:
        self._configure_zotero()
        self.session.queue_response(*[FakeResponse(429, headers={"Retry-After": "0"}) for _ in range(3)])

        response = self.client.get("/api/zotero/collections")

        self.assertEqual(response.status_code, 429)
        self.assertEqual(response.headers["Retry-After"], "0")

    def test_upstream_error_is_502(self) -> None:
        self._configure_zotero()
        self.session.queue_response(FakeResponse(403, text="Forbidden"))

        response = self.client.get("/api/zotero/collections?parentKey=P1")

        self.assertEqual(response.status_code, 502)


class TestHealth(ApiTestCase):
    def test_health(self) -> None:
        self.assertEqual(self.client.get("/health").get_json(), {"status": "ok"})


if __name__ == "__main__":
    unittest.main()
