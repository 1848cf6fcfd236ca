"""Tests for the OpenAI-compatible HTTP client."""

import sys
import unittest
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "src"))

from fakes import FakeResponse, FakeSession
from ZoteroReader.core.errors import RateLimited, UpstreamError
from ZoteroReader.llm.client import LLMApiClient, normalize_endpoint


class TestNormalizeEndpoint(unittest.TestCase):
    def test_forms(self) -> None:
        cases = {
            "https://api.example.com": "https://api.example.com/v1/chat/completions",
            "https://api.example.com/": "https://api.example.com/v1/chat/completions",
            "https://api.example.com/v1": "https://api.example.com/v1/chat/completions",
            "https://api.example.com/v1/chat/completions": "https://api.example.com/v1/chat/completions",
        }
        for base_url, expected in cases.items():
            with self.subTest(base_url=base_url):
                self.assertEqual(normalize_endpoint(base_url), expected)

    def test_empty_rejected(self) -> None:
        with self.assertRaises(ValueError):
            normalize_endpoint("")


class TestLLMApiClient(unittest.TestCase):
    def test_completion_payload(self) -> None:
        session = FakeSession(FakeResponse(json_data={"choices": [{"message": {"content": "ok"}}]}))
        client = LLMApiClient("https://api.example.com", "sk-x", timeout=12, session=session)

        content = client.chat_completion([{"role": "user", "content": "hi"}], model="m", max_tokens=5)

        call = session.calls[0]
        self.assertEqual(content, "ok")
        self.assertEqual(call["timeout"], 12)
        self.assertFalse(call["stream"])
        self.assertEqual(call["json"]["max_tokens"], 5)

    def test_max_tokens_omitted_by_default(self) -> None:
        session = FakeSession(FakeResponse(json_data={"choices": [{"message": {"content": None}}]}))
        client = LLMApiClient("https://api.example.com", "sk-x", session=session)

        self.assertEqual(client.chat_completion([], model="m"), "")
        self.assertNotIn("max_tokens", session.calls[0]["json"])

    def test_unexpected_choice_shapes(self) -> None:
        cases = [
            ({"choices": [{"text": "legacy"}]}, "legacy"),
            ({"choices": ["oops"]}, ""),
            ({"choices": []}, ""),
            ({"choices": None}, ""),
            (["not", "an", "object"], ""),
        ]
        for payload, expected in cases:
            with self.subTest(payload=payload):
                session = FakeSession(FakeResponse(json_data=payload))
                client = LLMApiClient("https://api.example.com", "sk-x", session=session)
                self.assertEqual(client.chat_completion([], model="m"), expected)

    def test_stream_request_headers(self) -> None:
        response = FakeResponse(chunks=[b"data: [DONE]\n\n"])
        session = FakeSession(response)
        client = LLMApiClient("https://api.example.com/v1", "sk-x", session=session)

        opened = client.open_stream([{"role": "user", "content": "hi"}], model="m", timeout=60)

        call = session.calls[0]
        self.assertIs(opened, response)
        self.assertTrue(call["stream"])
        self.assertEqual(call["headers"]["Accept"], "text/event-stream")
        self.assertEqual(call["timeout"], 60)
        self.assertEqual(call["json"]["temperature"], 0.7)

    def test_error_statuses(self) -> None:
        session = FakeSession(FakeResponse(429), FakeResponse(401, text="bad key"))
        client = LLMApiClient("https://api.example.com", "sk-x", session=session)

        with self.assertRaises(RateLimited):
            client.chat_completion([], model="m")
        with self.assertRaises(UpstreamError) as ctx:
            client.chat_completion([], model="m")
        self.assertEqual(ctx.exception.upstream_status, 401)
        self.assertEqual(ctx.exception.body, "bad key")

    def test_invalid_json(self) -> None:
        session = FakeSession(FakeResponse(text="<html>"))
        client = LLMApiClient("https://api.example.com", "sk-x", session=session)

        with self.assertRaises(UpstreamError):
            client.chat_completion([], model="m")


if __name__ == "__main__":
    unittest.main()
