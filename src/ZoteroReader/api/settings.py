"""Key-value settings routes.

Secret keys are encrypted on write and only returned masked.
"""

from __future__ import annotations

import json

from flask import Blueprint, jsonify

from ZoteroReader.api.helpers import get_services, json_body, require_arg
from ZoteroReader.core.errors import ValidationError
from ZoteroReader.storage.settings import ENCRYPTED_KEYS

settings_bp = Blueprint("settings", __name__, url_prefix="/api/settings")


@settings_bp.route("", methods=["GET"])
def get_setting():
    key = require_arg("key")
    value = get_services().settings.get_display(key)
    if value is None or key in ENCRYPTED_KEYS:
        return jsonify(value)
    try:
        return jsonify(json.loads(value))
    except ValueError:
        return jsonify(value)


@settings_bp.route("", methods=["PUT"])
def put_setting():
    body = json_body()
    key = body.get("key")
    if not key or not isinstance(key, str) or "value" not in body:
        raise ValidationError("Fields 'key' and 'value' are required")

    value = body["value"]
    serialized = value if isinstance(value, str) else json.dumps(value, ensure_ascii=False)
    written = get_services().settings.set(key, serialized)
    return jsonify({"success": True, "updated": written})
