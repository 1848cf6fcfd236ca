"""Zotero proxy routes."""

from __future__ import annotations

from flask import Blueprint, Response, jsonify, request

from ZoteroReader.api.helpers import get_services, int_arg

zotero_bp = Blueprint("zotero", __name__, url_prefix="/api/zotero")

DOWNLOAD_CHUNK_BYTES = 64 * 1024


@zotero_bp.route("/collections", methods=["GET"])
def list_collections():
    collections = get_services().zotero.list_collections(request.args.get("parentKey") or None)
    return jsonify(collections)


@zotero_bp.route("/items", methods=["GET"])
def list_items():
    client = get_services().zotero
    item_key = request.args.get("itemKey")
    if item_key:
        return jsonify(client.get_item_children(item_key))

    page = client.list_items(
        collection_key=request.args.get("collectionKey") or None,
        q=request.args.get("q") or None,
        sort=request.args.get("sort") or "dateModified",
        direction=request.args.get("direction") or "desc",
        limit=int_arg("limit", 25, minimum=1, maximum=100),
        start=int_arg("start", 0),
    )
    return jsonify({"items": list(page.items), "totalResults": page.total_results})


@zotero_bp.route("/file/<key>", methods=["GET"])
def download_file(key: str):
    upstream = get_services().zotero.download_attachment(key)
    content_type = upstream.headers.get("Content-Type") or "application/pdf"

    response = Response(upstream.iter_content(chunk_size=DOWNLOAD_CHUNK_BYTES), mimetype=content_type)
    response.headers["Cache-Control"] = "private, max-age=86400"
    response.call_on_close(upstream.close)
    return response
