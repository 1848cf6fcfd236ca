"""Provider management routes."""

from __future__ import annotations

from dataclasses import replace

from flask import Blueprint, jsonify

from ZoteroReader.api.helpers import (
    PROVIDER_FIELDS,
    get_services,
    json_body,
    new_provider_from_body,
    parse_kind,
    patch_from_body,
)
from ZoteroReader.core.errors import ProviderNotFound, ValidationError
from ZoteroReader.core.models import ProviderConfig
from ZoteroReader.security.vault import is_masked
from ZoteroReader.translate.probe import probe_provider

engines_bp = Blueprint("engines", __name__, url_prefix="/api/engines")


def _require_id(body: dict) -> str:
    provider_id = body.get("id")
    if not provider_id or not isinstance(provider_id, str):
        raise ValidationError("Field 'id' is required")
    return provider_id


@engines_bp.route("", methods=["GET"])
def list_providers():
    return jsonify({"engines": [view.to_dict() for view in get_services().providers.list()]})


@engines_bp.route("", methods=["POST"])
def add_provider():
    provider_id = get_services().providers.add(new_provider_from_body(json_body()))
    return jsonify({"id": provider_id, "success": True})


@engines_bp.route("", methods=["PUT"])
def update_provider():
    body = json_body()
    get_services().providers.update(_require_id(body), patch_from_body(body))
    return jsonify({"success": True})


@engines_bp.route("", methods=["DELETE"])
def remove_provider():
    get_services().providers.remove(_require_id(json_body()))
    return jsonify({"success": True})


@engines_bp.route("/test", methods=["POST"])
def test_provider():
    """Probe a stored provider, an inline one, or a stored one with inline edits.

    Inline secrets that are masked display values fall back to the stored ones.
    """
    body = json_body()
    services = get_services()

    provider_id = body.get("id")
    if provider_id:
        provider = services.providers.get(provider_id)
        if provider is None:
            raise ProviderNotFound(f"Provider {provider_id!r} does not exist")
    else:
        provider = ProviderConfig(id="", name=str(body.get("name") or "test"), kind=parse_kind(body.get("type")))

    overrides = {}
    for key, attr in PROVIDER_FIELDS.items():
        value = body.get(key)
        if isinstance(value, str) and value and not is_masked(value):
            overrides[attr] = value
    if body.get("type"):
        overrides["kind"] = parse_kind(body["type"])
    provider = replace(provider, **overrides)

    return jsonify(probe_provider(provider, services.translators).to_dict())
