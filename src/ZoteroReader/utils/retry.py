"""Bounded retry policy for rate-limited upstream APIs."""

from __future__ import annotations

import random
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Final, Protocol

from dateutil import parser as dt_parser

from ZoteroReader.core.errors import RateLimited
from ZoteroReader.utils.log import log

TOO_MANY_REQUESTS: Final[int] = 429


class _Response(Protocol):
    status_code: int
    headers: object

    def close(self) -> None: ...


@dataclass(slots=True)
class RetryPolicy:
    """Retry HTTP 429 answers, honoring the server's ``Retry-After`` hint.

    Attributes:
        max_attempts: Total attempts including the first one.
        default_delay: Base delay when the response carries no usable hint.
        max_delay: Upper bound for any single sleep.
        sleep: Sleep function, injectable for tests.
        clock: Current UTC time, used to resolve HTTP-date hints.
    """

    max_attempts: int = 3
    default_delay: float = 5.0
    max_delay: float = 120.0
    sleep: Callable[[float], None] = field(default=time.sleep)
    clock: Callable[[], datetime] = field(default=lambda: datetime.now(timezone.utc))

    def execute(self, send: Callable[[], _Response], *, label: str = "request") -> _Response:
        """Call ``send`` until it returns a non-429 response.

        Args:
            send: Issues one attempt and returns its response.
            label: Short description used in logs and errors.

        Returns:
            The first response whose status is not 429.

        Raises:
            RateLimited: If every attempt was answered with 429.
        """
        for attempt in range(1, self.max_attempts + 1):
            response = send()
            if response.status_code != TOO_MANY_REQUESTS:
                return response

            delay = self.delay_for(attempt, _header(response, "Retry-After"))
            response.close()
            if attempt >= self.max_attempts:
                log.warning("%s rate limited after %d attempts", label, self.max_attempts)
                raise RateLimited(
                    f"{label}: rate limited after {self.max_attempts} attempts",
                    retry_after=delay,
                )

            log.info("%s rate limited, retry %d/%d after %.1fs", label, attempt, self.max_attempts - 1, delay)
            self.sleep(delay)

        raise RateLimited(f"{label}: no attempts allowed")

    def delay_for(self, attempt: int, retry_after: str | None) -> float:
        """Compute the sleep before the next attempt.

        Args:
            attempt: Attempt that was just rate limited (1-based).
            retry_after: Raw ``Retry-After`` header value, if any.

        Returns:
            Delay in seconds, capped at ``max_delay``.
        """
        hinted = self._parse_hint(retry_after)
        if hinted is not None:
            return min(hinted, self.max_delay)

        # Exponential backoff with jitter when the server gives no hint
        exponential_delay = self.default_delay * (2 ** (attempt - 1))
        return min(exponential_delay, self.max_delay) * random.uniform(0.75, 1.25)

    def _parse_hint(self, value: str | None) -> float | None:
        text = (value or "").strip()
        if not text:
            return None
        try:
            return max(0.0, float(text))
        except ValueError:
            pass
        try:
            when = dt_parser.parse(text)
        except (ValueError, OverflowError):
            log.debug("Ignoring unparseable Retry-After header: %r", text)
            return None
        if when.tzinfo is None:
            when = when.replace(tzinfo=timezone.utc)
        return max(0.0, (when - self.clock()).total_seconds())


def _header(response: _Response, name: str) -> str | None:
    getter = getattr(response.headers, "get", None)
    return getter(name) if getter else None
