"""Zotero Web API access."""

from __future__ import annotations

from ZoteroReader.zotero.client import ZoteroApiClient
from ZoteroReader.zotero.items import format_creators, item_data

__all__ = ["ZoteroApiClient", "format_creators", "item_data"]
