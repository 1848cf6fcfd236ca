"""Paper conversations: context building and streamed chat turns."""

from __future__ import annotations

from ZoteroReader.chat.context import ContextBuilder, fill_chat_system_prompt
from ZoteroReader.chat.engine import ChatStream, ConversationEngine

__all__ = ["ChatStream", "ContextBuilder", "ConversationEngine", "fill_chat_system_prompt"]
