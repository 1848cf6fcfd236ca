"""Flask HTTP surface for ZoteroReader.

``create_app`` registers the blueprints, stores the service container in
``app.extensions`` and maps :class:`ReaderError` to JSON error bodies.
"""

from __future__ import annotations

from flask import Flask, jsonify

from ZoteroReader.api.chat import chat_bp
from ZoteroReader.api.engines import engines_bp
from ZoteroReader.api.helpers import EXTENSION_KEY
from ZoteroReader.api.settings import settings_bp
from ZoteroReader.api.translate import translate_bp
from ZoteroReader.api.zotero import zotero_bp
from ZoteroReader.core.errors import RateLimited, ReaderError
from ZoteroReader.services import ReaderServices
from ZoteroReader.utils.log import log


def create_app(services: ReaderServices) -> Flask:
    """Create the Flask application around a service container.

    Args:
        services: Wired components; the caller owns and closes them.

    Returns:
        Configured Flask app.
    """
    app = Flask(__name__)
    app.json.ensure_ascii = False
    app.extensions[EXTENSION_KEY] = services

    for blueprint in (translate_bp, chat_bp, engines_bp, settings_bp, zotero_bp):
        app.register_blueprint(blueprint)

    @app.errorhandler(ReaderError)
    def handle_reader_error(error: ReaderError):
        if error.status >= 500:
            log.error("%s: %s", type(error).__name__, error.message)
        else:
            log.info("%s: %s", type(error).__name__, error.message)
        response = jsonify({"error": error.message})
        response.status_code = error.status
        if isinstance(error, RateLimited) and error.retry_after is not None:
            response.headers["Retry-After"] = str(int(round(error.retry_after)))
        return response

    @app.route("/health", methods=["GET"])
    def health():
        return {"status": "ok"}, 200

    return app


__all__ = ["create_app"]
