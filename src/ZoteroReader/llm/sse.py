"""Incremental parser for ``text/event-stream`` bodies.

Chunks can split lines, events and multi-byte UTF-8 sequences anywhere, so
the parser keeps a decoder and a partial line between calls to ``feed``.
"""

from __future__ import annotations

import codecs
import json
import re
from dataclasses import dataclass
from typing import Iterator, Optional

from ZoteroReader.utils.log import log

DONE_SENTINEL = "[DONE]"
_LINE_BREAK = re.compile(r"\r\n|\r|\n")


@dataclass(frozen=True, slots=True)
class SSEEvent:
    """One dispatched event.

    Attributes:
        event: Event type, ``message`` unless the stream set one.
        data: Data lines joined by ``\\n``.
        id: Last event id seen, if any.
    """

    event: str
    data: str
    id: Optional[str] = None

    @property
    def done(self) -> bool:
        return self.data.strip() == DONE_SENTINEL


class SSEParser:
    """Finite state machine turning byte chunks into :class:`SSEEvent` values.

    One instance serves exactly one stream.
    """

    def __init__(self) -> None:
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._partial: list[str] = []
        self._pending_cr = False
        self._data: list[str] = []
        self._event = ""
        self._last_id: str | None = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def feed(self, chunk: bytes) -> list[SSEEvent]:
        """Consume a chunk and return the events it completed.

        Raises:
            RuntimeError: If the parser was closed.
        """
        if self._closed:
            raise RuntimeError("SSEParser is closed")
        return list(self._consume(self._decoder.decode(chunk)))

    def close(self) -> list[SSEEvent]:
        """Flush buffered input and return any final event.

        An unterminated trailing line is treated as complete, and a pending
        event is dispatched as if a blank line followed it.
        """
        if self._closed:
            return []
        events = list(self._consume(self._decoder.decode(b"", final=True)))
        if self._partial:
            line = "".join(self._partial)
            self._partial = []
            event = self._process_line(line)
            if event is not None:
                events.append(event)
        event = self._dispatch()
        if event is not None:
            events.append(event)
        self._closed = True
        return events

    def _consume(self, text: str) -> Iterator[SSEEvent]:
        if self._pending_cr and text:
            self._pending_cr = False
            if text[0] == "\n":
                text = text[1:]
        pos = 0
        for match in _LINE_BREAK.finditer(text):
            self._partial.append(text[pos : match.start()])
            line = "".join(self._partial)
            self._partial = []
            pos = match.end()
            # a CR closing the chunk may be the first half of a CRLF
            self._pending_cr = match.group() == "\r" and pos == len(text)
            event = self._process_line(line)
            if event is not None:
                yield event
        if pos < len(text):
            self._partial.append(text[pos:])

    def _process_line(self, line: str) -> SSEEvent | None:
        if not line:
            return self._dispatch()
        if line.startswith(":"):
            return None

        field, sep, value = line.partition(":")
        if sep and value.startswith(" "):
            value = value[1:]

        if field == "data":
            self._data.append(value)
        elif field == "event":
            self._event = value
        elif field == "id":
            if "\0" not in value:
                self._last_id = value
        # "retry" and unknown fields are ignored
        return None

    def _dispatch(self) -> SSEEvent | None:
        if not self._data:
            self._event = ""
            return None
        event = SSEEvent(event=self._event or "message", data="\n".join(self._data), id=self._last_id)
        self._data = []
        self._event = ""
        return event


def extract_delta_content(event: SSEEvent) -> str:
    """Return ``choices[0].delta.content`` of a chat completion chunk.

    Non-JSON payloads and chunks without content give an empty string.
    """
    if event.done:
        return ""
    try:
        payload = json.loads(event.data)
    except json.JSONDecodeError:
        log.debug("Skipping malformed SSE data: %r", event.data[:80])
        return ""
    try:
        content = payload["choices"][0]["delta"].get("content")
    except (KeyError, IndexError, TypeError, AttributeError):
        return ""
    return content if isinstance(content, str) else ""
