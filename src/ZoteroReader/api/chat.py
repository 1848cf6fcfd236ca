"""Conversation routes: streamed turns and per-document history."""

from __future__ import annotations

import json
from typing import Iterator

from flask import Blueprint, Response, jsonify

from ZoteroReader.api.helpers import get_services, int_arg, json_body, optional_str, require_arg
from ZoteroReader.chat.engine import ChatStream
from ZoteroReader.core.errors import ReaderError
from ZoteroReader.utils.log import log

chat_bp = Blueprint("chat", __name__, url_prefix="/api/chat")

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


class _SSERelay:
    """WSGI iterable that forwards a chat stream and reports mid-stream errors.

    The server calls ``close()`` when the client disconnects; that cancels the
    turn and persists the partial reply.
    """

    def __init__(self, stream: ChatStream) -> None:
        self._stream = stream

    def __iter__(self) -> Iterator[bytes]:
        try:
            yield from self._stream
        except ReaderError as e:
            log.warning("Chat stream ended with error: %s", e.message)
            yield f"data: {json.dumps({'error': e.message})}\n\n".encode("utf-8")

    def close(self) -> None:
        self._stream.close()


@chat_bp.route("", methods=["POST"])
def send_message():
    body = json_body()
    stream = get_services().chat.send(
        document_id=optional_str(body, "documentId") or "",
        provider_id=optional_str(body, "providerId") or "",
        user_text=optional_str(body, "message") or "",
        selected_quote=optional_str(body, "selectedText") or None,
        target_lang=optional_str(body, "targetLang") or None,
    )
    return Response(_SSERelay(stream), mimetype="text/event-stream", headers=SSE_HEADERS)


@chat_bp.route("", methods=["GET"])
def get_history():
    """Conversation of one document; ``limit`` keeps the newest messages, 0 keeps all."""
    document_id = require_arg("documentId")
    limit = int_arg("limit", 0) or None
    messages = get_services().chat.history(document_id, limit=limit)
    return jsonify({"messages": [message.to_dict() for message in messages]})


@chat_bp.route("", methods=["DELETE"])
def clear_history():
    removed = get_services().chat.clear(require_arg("documentId"))
    return jsonify({"success": True, "removed": removed})
