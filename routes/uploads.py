"""Serve images stored on the local upload directory."""

import os

from flask import Blueprint, current_app, send_from_directory

uploads_bp = Blueprint("uploads", __name__)


@uploads_bp.route("/<path:filename>", methods=["GET"])
def serve_upload(filename: str):
    directory = os.path.abspath(current_app.config["UPLOAD_DIR"])
    return send_from_directory(directory, filename)
