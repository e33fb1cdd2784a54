"""Application factory."""

import json
import os
import uuid

from flask import Flask, g, jsonify, request
from flask_cors import CORS
from flask_jwt_extended import JWTManager
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate
from werkzeug.exceptions import HTTPException

from config import Config
from models import db
from models.user import User
from realtime import notifier, socketio
from routes.admin import admin_bp
from routes.auth import auth_bp
from routes.cities import cities_bp
from routes.classifieds import classifieds_bp
from routes.uploads import uploads_bp
from storage import build_storage

migrate = Migrate()
jwt = JWTManager()
limiter = Limiter(key_func=get_remote_address)


def create_app(config_class: type[Config] = Config) -> Flask:
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config.from_object(config_class)
    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))

    # Core subsystems
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)
    _register_jwt_callbacks()

    # CORS
    CORS(
        app,
        resources={r"/api/*": {"origins": app.config.get("CORS_ORIGINS", "*")}},
        supports_credentials=True,
    )

    # Rate limiting
    storage_uri = app.config.get("RATELIMIT_STORAGE_URI", "memory://")
    headers_enabled = app.config.get("RATELIMIT_HEADERS_ENABLED", True)
    key_prefix = app.config.get("RATELIMIT_KEY_PREFIX") or str(uuid.uuid4())

    global limiter
    limiter = Limiter(
        key_func=get_remote_address,
        default_limits=[lambda: app.config.get("RATE_LIMIT", "120 per minute")],
        storage_uri=storage_uri,
        headers_enabled=headers_enabled,
        key_prefix=key_prefix,
    )
    limiter.init_app(app)
    app.config["RATELIMIT_KEY_PREFIX"] = key_prefix

    # Image storage
    upload_dir = app.config.get("UPLOAD_DIR")
    if upload_dir:
        os.makedirs(upload_dir, exist_ok=True)
    app.extensions["image_storage"] = build_storage(app.config)

    # Realtime
    socketio.init_app(
        app,
        cors_allowed_origins=app.config.get("CORS_ORIGINS", "*"),
        ping_interval=app.config.get("SOCKETIO_PING_INTERVAL", 25),
        ping_timeout=app.config.get("SOCKETIO_PING_TIMEOUT", 60),
        path="socket.io",
    )
    notifier.init_app(app)

    # Blueprints
    app.register_blueprint(auth_bp, url_prefix="/api/auth")
    app.register_blueprint(classifieds_bp, url_prefix="/api/classifieds")
    app.register_blueprint(cities_bp, url_prefix="/api/cities")
    app.register_blueprint(admin_bp, url_prefix="/api/admin")
    app.register_blueprint(uploads_bp, url_prefix="/api/uploads")

    # Health
    @app.route("/api/health", methods=["GET"])
    def health_check():
        return jsonify({"status": "ok"})

    # Errors
    _register_error_handlers(app)

    return app


def _error_response(message: str, status_code: int):
    request_id = g.get("request_id") or str(uuid.uuid4())
    response = jsonify({"error": message, "request_id": request_id})
    response.status_code = status_code
    response.headers.setdefault("X-Request-ID", request_id)
    return response


def _register_jwt_callbacks() -> None:
    """Load the token's user and render token failures in the API error shape."""

    @jwt.user_lookup_loader
    def _load_user(_jwt_header, jwt_data):
        try:
            user_id = int(jwt_data["sub"])
        except (KeyError, TypeError, ValueError):
            return None
        return db.session.get(User, user_id)

    @jwt.user_lookup_error_loader
    def _user_not_found(_jwt_header, _jwt_data):
        return _error_response("User not found", 401)

    @jwt.unauthorized_loader
    def _missing_token(_reason):
        return _error_response("Authentication required", 401)

    @jwt.invalid_token_loader
    def _invalid_token(_reason):
        return _error_response("Invalid or expired token", 401)

    @jwt.expired_token_loader
    def _expired_token(_jwt_header, _jwt_data):
        return _error_response("Invalid or expired token", 401)


def _register_error_handlers(app: Flask) -> None:
    """Register JSON error handlers with request IDs."""

    @app.before_request
    def _assign_request_id():  # pragma: no cover
        g.request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())

    @app.after_request
    def _add_request_id_header(response):  # pragma: no cover
        request_id = g.get("request_id")
        if request_id:
            response.headers.setdefault("X-Request-ID", request_id)
        return response

    @app.errorhandler(HTTPException)
    def _handle_http_exception(error: HTTPException):
        request_id = g.get("request_id") or str(uuid.uuid4())
        response = error.get_response()
        errors = getattr(error, "errors", None)
        if errors:
            payload = {"errors": errors, "request_id": request_id}
        else:
            payload = {
                "error": error.description or getattr(error, "name", "Error"),
                "request_id": request_id,
            }
        response.data = json.dumps(payload)
        response.content_type = "application/json"
        response.headers.setdefault("X-Request-ID", request_id)
        return response

    @app.errorhandler(Exception)
    def _handle_unexpected(error: Exception):  # pragma: no cover
        db.session.rollback()
        app.logger.exception("Unhandled application error", exc_info=error)
        return _error_response("Something went wrong!", 500)


if __name__ == "__main__":
    application = create_app()
    try:
        socketio.run(application, host="0.0.0.0", port=int(os.environ.get("PORT", 3001)))
    finally:
        notifier.reset()
