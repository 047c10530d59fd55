from __future__ import annotations

import logging
from pathlib import Path

from flask import Blueprint, Flask, abort, current_app, jsonify, request

from clientpack.settings import SETTINGS_PATH

logger = logging.getLogger(__name__)

preview_bp = Blueprint("preview", __name__)


@preview_bp.route("/")
def index():
    """Serve the built debug HTML."""
    dist_path: Path = current_app.extensions["dist_path"]
    if not dist_path.is_file():
        abort(404, description=f"{dist_path.name} has not been built yet")
    return current_app.response_class(
        dist_path.read_text(encoding="utf-8"), mimetype="text/html"
    )


@preview_bp.route(SETTINGS_PATH)
def change_settings():
    """Emulate the device endpoint: apply every query parameter as a setting."""
    if not request.args:
        abort(400, description="No settings given")
    settings: dict[str, str] = current_app.extensions["settings"]
    for key, value in request.args.items():
        settings[key] = value
        logger.info("Setting %s = %s", key, value)
    return "OK"


@preview_bp.route("/settings")
def list_settings():
    return jsonify(current_app.extensions["settings"])


def create_app(dist_path: str | Path, settings: dict[str, str] | None = None) -> Flask:
    """Create the preview app serving *dist_path* and a fake settings endpoint."""
    app = Flask(__name__)
    app.extensions["dist_path"] = Path(dist_path)
    app.extensions["settings"] = dict(settings or {})
    app.register_blueprint(preview_bp)
    return app
