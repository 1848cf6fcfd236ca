"""Translation routes: translate, engine listing and history."""

from __future__ import annotations

from flask import Blueprint, jsonify, request

from ZoteroReader.api.helpers import get_services, int_arg, json_body, optional_str
from ZoteroReader.core.errors import ValidationError
from ZoteroReader.core.models import TranslateRequest, TranslationContext

translate_bp = Blueprint("translate", __name__, url_prefix="/api/translate")

HISTORY_DEFAULT_LIMIT = 30
HISTORY_MAX_LIMIT = 100


def _context_from_body(raw) -> TranslationContext | None:
    if not raw:
        return None
    if not isinstance(raw, dict):
        raise ValidationError("Field 'context' must be an object")
    return TranslationContext(
        title=optional_str(raw, "title"),
        authors=optional_str(raw, "authors"),
        journal=optional_str(raw, "journal"),
        abstract=optional_str(raw, "abstract"),
        paragraph_context=optional_str(raw, "paragraphContext"),
    )


@translate_bp.route("", methods=["POST"])
def translate():
    body = json_body()
    result = get_services().translation.translate(
        TranslateRequest(
            text=(optional_str(body, "text") or "").strip(),
            source_lang=optional_str(body, "sourceLang") or "auto",
            target_lang=optional_str(body, "targetLang") or "",
            provider_id=optional_str(body, "providerId") or "",
            context=_context_from_body(body.get("context")),
        )
    )
    return jsonify(result.to_dict())


@translate_bp.route("/engines", methods=["GET"])
def list_engines():
    """Enabled providers without any credential fields."""
    engines = [
        {"id": view.id, "name": view.name, "type": view.kind.value}
        for view in get_services().providers.list()
        if view.enabled
    ]
    return jsonify({"engines": engines, "defaultEngine": engines[0]["id"] if engines else ""})


@translate_bp.route("/history", methods=["GET"])
def history():
    page = get_services().cache.list_history(
        offset=int_arg("offset", 0),
        limit=int_arg("limit", HISTORY_DEFAULT_LIMIT, minimum=1, maximum=HISTORY_MAX_LIMIT),
        search=request.args.get("search") or None,
    )
    return jsonify({"records": [record.to_dict() for record in page.records], "total": page.total})


@translate_bp.route("/history", methods=["DELETE"])
def delete_history():
    body = json_body()
    cache = get_services().cache
    if body.get("clearAll"):
        cache.clear()
        return jsonify({"success": True})
    record_id = body.get("id")
    if isinstance(record_id, bool) or not isinstance(record_id, int):
        raise ValidationError("Provide a numeric 'id' or 'clearAll': true")
    cache.delete_record(record_id)
    return jsonify({"success": True})
