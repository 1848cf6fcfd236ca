"""Request helpers shared by the API blueprints."""

from __future__ import annotations

from typing import Any, Mapping

from flask import current_app, request

from ZoteroReader.core.errors import ValidationError
from ZoteroReader.core.models import NewProvider, ProviderKind, ProviderPatch
from ZoteroReader.services import ReaderServices

EXTENSION_KEY = "zotero_reader"

# JSON field name -> model attribute
PROVIDER_FIELDS = {
    "deeplxToken": "access_token",
    "apiBaseUrl": "base_url",
    "apiKey": "api_key",
    "model": "model",
    "systemPrompt": "system_prompt",
    "userPrompt": "user_prompt",
}


def get_services() -> ReaderServices:
    return current_app.extensions[EXTENSION_KEY]


def json_body() -> dict[str, Any]:
    """Return the JSON object body, or raise ValidationError."""
    body = request.get_json(silent=True)
    if body is None:
        return {}
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")
    return body


def int_arg(name: str, default: int, *, minimum: int = 0, maximum: int | None = None) -> int:
    """Read an integer query parameter, clamped to ``[minimum, maximum]``."""
    raw = request.args.get(name)
    if raw in (None, ""):
        value = default
    else:
        try:
            value = int(raw)
        except ValueError as e:
            raise ValidationError(f"Query parameter {name!r} must be an integer") from e
    value = max(minimum, value)
    return min(value, maximum) if maximum is not None else value


def require_arg(name: str) -> str:
    value = (request.args.get(name) or "").strip()
    if not value:
        raise ValidationError(f"Missing query parameter {name!r}")
    return value


def parse_kind(value: Any) -> ProviderKind:
    try:
        return ProviderKind.parse(str(value or ""))
    except ValueError as e:
        raise ValidationError(str(e)) from e


def optional_str(body: Mapping[str, Any], key: str) -> str | None:
    """Return ``body[key]`` when it is a string, None when absent."""
    value = body.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"Field {key!r} must be a string")
    return value


def new_provider_from_body(body: Mapping[str, Any]) -> NewProvider:
    name = optional_str(body, "name")
    if not name or not body.get("type"):
        raise ValidationError("Fields 'name' and 'type' are required")
    fields = {attr: optional_str(body, key) for key, attr in PROVIDER_FIELDS.items()}
    return NewProvider(
        name=name,
        kind=parse_kind(body["type"]),
        enabled=bool(body.get("enabled", True)),
        **fields,
    )


def patch_from_body(body: Mapping[str, Any]) -> ProviderPatch:
    fields = {attr: optional_str(body, key) for key, attr in PROVIDER_FIELDS.items()}
    enabled = body.get("enabled")
    priority = body.get("priority")
    if priority is not None and (isinstance(priority, bool) or not isinstance(priority, int)):
        raise ValidationError("Field 'priority' must be an integer")
    return ProviderPatch(
        name=optional_str(body, "name"),
        enabled=None if enabled is None else bool(enabled),
        priority=priority,
        **fields,
    )
