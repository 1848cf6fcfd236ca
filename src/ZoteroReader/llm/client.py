"""HTTP client for OpenAI-compatible chat completion APIs."""

from __future__ import annotations

from typing import Any, Final

import requests

from ZoteroReader.core.errors import RateLimited, UpstreamError, snippet
from ZoteroReader.utils.log import log

TOO_MANY_REQUESTS: Final[int] = 429


def normalize_endpoint(base_url: str) -> str:
    """Normalize base URL to full chat completions endpoint.

    Supports three input formats:
    1. https://api.xxx.com → https://api.xxx.com/v1/chat/completions
    2. https://api.xxx.com/v1 → https://api.xxx.com/v1/chat/completions
    3. https://api.xxx.com/v1/chat/completions → (unchanged)

    Args:
        base_url: Base URL or partial endpoint.

    Returns:
        Full chat completions endpoint URL.

    Raises:
        ValueError: If base_url is empty.
    """
    if not base_url:
        raise ValueError("base_url cannot be empty")

    url = base_url.rstrip("/")

    if url.endswith("/chat/completions"):
        return url
    if url.endswith("/v1"):
        return url + "/chat/completions"
    return url + "/v1/chat/completions"


class LLMApiClient:
    """HTTP client for OpenAI-compatible chat completion APIs.

    Requests are sent once; rate limiting is reported to the caller as
    :class:`RateLimited` instead of being retried here.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: float = 30,
        session: requests.Session | None = None,
    ) -> None:
        """Initialize API client.

        Args:
            base_url: Base URL (will be normalized to full endpoint).
            api_key: API authentication key.
            timeout: Default request timeout in seconds.
            session: Reusable HTTP session.
        """
        self.endpoint = normalize_endpoint(base_url)
        self.api_key = api_key
        self.timeout = timeout
        self._session = session or requests.Session()

        log.debug("LLMApiClient initialized: endpoint=%s timeout=%s", self.endpoint, timeout)

    def chat_completion(
        self,
        messages: list[dict[str, str]],
        model: str,
        temperature: float = 0.0,
        max_tokens: int | None = None,
        timeout: float | None = None,
    ) -> str:
        """Send a non-streaming chat completion request.

        Args:
            messages: List of message dicts with 'role' and 'content' keys.
            model: Model identifier (e.g., 'gpt-4o-mini', 'deepseek-chat').
            temperature: Sampling temperature (0.0-2.0).
            max_tokens: Maximum tokens in response; omitted when None.
            timeout: Per-call timeout override in seconds.

        Returns:
            Response text from the model, possibly empty.

        Raises:
            RateLimited: On HTTP 429.
            UpstreamError: On any other failure.
        """
        payload = self._payload(messages, model, temperature, max_tokens, stream=False)
        response = self._post(payload, timeout=timeout, stream=False)

        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamError(
                "LLM API returned invalid JSON",
                upstream_status=response.status_code,
                body=snippet(response.text),
            ) from e

        try:
            return data["choices"][0]["message"]["content"] or ""
        except (KeyError, IndexError, TypeError) as e:
            log.warning("Unexpected API response format: %s", e)

        # legacy completions put the text directly on the choice
        choices = data.get("choices") if isinstance(data, dict) else None
        first = choices[0] if isinstance(choices, list) and choices else None
        text = first.get("text") if isinstance(first, dict) else None
        return text if isinstance(text, str) else ""

    def open_stream(
        self,
        messages: list[dict[str, str]],
        model: str,
        temperature: float = 0.7,
        timeout: float | None = None,
    ) -> requests.Response:
        """Open a streaming chat completion.

        The caller owns the returned response and must close it.

        Raises:
            RateLimited: On HTTP 429.
            UpstreamError: On any other failure before streaming starts.
        """
        payload = self._payload(messages, model, temperature, None, stream=True)
        return self._post(payload, timeout=timeout, stream=True)

    def close(self) -> None:
        self._session.close()

    @staticmethod
    def _payload(
        messages: list[dict[str, str]],
        model: str,
        temperature: float,
        max_tokens: int | None,
        *,
        stream: bool,
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "model": model,
            "messages": messages,
            "temperature": temperature,
            "stream": stream,
        }
        if max_tokens is not None:
            payload["max_tokens"] = max_tokens
        return payload

    def _post(self, payload: dict[str, Any], *, timeout: float | None, stream: bool) -> requests.Response:
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        if stream:
            headers["Accept"] = "text/event-stream"

        try:
            response = self._session.post(
                self.endpoint,
                json=payload,
                headers=headers,
                timeout=timeout if timeout is not None else self.timeout,
                stream=stream,
            )
        except requests.RequestException as e:
            log.debug("LLM request failed (network): %s", type(e).__name__)
            raise UpstreamError(f"LLM request failed: {type(e).__name__}") from e

        status = response.status_code
        if 200 <= status < 300:
            return response

        body = snippet(response.text)
        response.close()
        if status == TOO_MANY_REQUESTS:
            log.warning("LLM API rate limited: HTTP 429")
            raise RateLimited("LLM API rate limited, please retry later")
        log.error("LLM request failed: HTTP %s", status)
        raise UpstreamError(f"LLM API error {status}: {body}", upstream_status=status, body=body)
