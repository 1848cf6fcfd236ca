"""Helpers for Zotero item payloads."""

from __future__ import annotations

from typing import Any, Mapping, Sequence


def item_data(item: Mapping[str, Any] | None) -> Mapping[str, Any]:
    """Return the ``data`` block of an item, or an empty mapping."""
    if not item:
        return {}
    data = item.get("data")
    return data if isinstance(data, Mapping) else {}


def format_creators(creators: Sequence[Mapping[str, Any]]) -> str:
    """Render creators as ``Last, First; Single Name``."""
    names: list[str] = []
    for creator in creators:
        if creator.get("name"):
            names.append(str(creator["name"]))
            continue
        parts = [str(creator[key]) for key in ("lastName", "firstName") if creator.get(key)]
        if parts:
            names.append(", ".join(parts))
    return "; ".join(names)
