"""Application factory."""

import logging
import os
import uuid
from datetime import timedelta
from http import HTTPStatus

from flask import Flask, jsonify, g, request
from flask_cors import CORS
from flask_jwt_extended import JWTManager
from flask_mail import Mail
from flask_migrate import Migrate
from werkzeug.exceptions import HTTPException

from config import Config
from models import db
from models.user import User
from routes import API_PREFIX
from routes.auth import auth_bp
from routes.docs import register_api_docs
from routes.users import users_bp
from services.auth_service import AuthService
from services.errors import AuthSystemError
from services.notifier import EmailNotifier
from services.user_service import UserService
from storage.sql_user_store import SQLUserStore
from utils.passwords import CredentialHasher
from utils.tokens import SessionTokenIssuer

migrate = Migrate()
jwt = JWTManager()
mail = Mail()


def create_app(config_class: type[Config] = Config) -> Flask:
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config.from_object(config_class)
    _configure_logging(app)

    # Core subsystems
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)
    mail.init_app(app)
    _register_jwt_callbacks()

    # CORS
    CORS(
        app,
        resources={r"/*": {"origins": app.config.get("CORS_ORIGINS", "*")}},
        supports_credentials=True,
    )

    # Services, built once and shared by every request
    store = SQLUserStore(db)
    app.extensions["auth_service"] = AuthService(
        store,
        CredentialHasher(),
        EmailNotifier(
            mail,
            app_url=app.config["APP_URL"],
            app_name=app.config["APP_NAME"],
            timeout=app.config.get("MAIL_SEND_TIMEOUT", 10.0),
        ),
        SessionTokenIssuer(),
        token_ttl=timedelta(hours=app.config.get("VERIFICATION_TOKEN_TTL_HOURS", 24)),
    )
    app.extensions["user_service"] = UserService(store)

    # Blueprints
    app.register_blueprint(auth_bp, url_prefix=f"{API_PREFIX}/auth")
    app.register_blueprint(users_bp, url_prefix=f"{API_PREFIX}/users")

    # API docs
    register_api_docs(app)

    # Health
    @app.route("/health", methods=["GET"])
    def health_check():
        return jsonify({"status": "ok"})

    # Errors
    _register_error_handlers(app)

    return app


def _configure_logging(app: Flask) -> None:
    level = app.config.get("LOG_LEVEL", "INFO")
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    app.logger.setLevel(level)


def _error_response(status: int, detail: str, **extra):
    request_id = g.get("request_id") or str(uuid.uuid4())
    payload = {
        "error": HTTPStatus(status).phrase,
        "detail": detail,
        "request_id": request_id,
        **extra,
    }
    response = jsonify(payload)
    response.status_code = status
    response.headers.setdefault("X-Request-ID", request_id)
    return response


def _register_jwt_callbacks() -> None:
    """Resolve bearer identities to users and render auth failures as JSON."""

    @jwt.user_lookup_loader
    def _load_user(_jwt_header, jwt_data):
        return db.session.get(User, jwt_data["sub"])

    @jwt.unauthorized_loader
    def _missing_token(reason: str):
        return _error_response(HTTPStatus.UNAUTHORIZED, reason)

    @jwt.invalid_token_loader
    def _invalid_token(reason: str):
        return _error_response(HTTPStatus.UNAUTHORIZED, reason)

    @jwt.expired_token_loader
    def _expired_token(_jwt_header, _jwt_data):
        return _error_response(HTTPStatus.UNAUTHORIZED, "Token has expired.")

    @jwt.user_lookup_error_loader
    def _unknown_user(_jwt_header, _jwt_data):
        return _error_response(HTTPStatus.UNAUTHORIZED, "Invalid or missing token.")


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
        extra = {}
        if getattr(error, "errors", None):
            extra["errors"] = error.errors
        return _error_response(error.code or 500, error.description, **extra)

    @app.errorhandler(AuthSystemError)
    def _handle_domain_error(error: AuthSystemError):
        if error.status_code >= 500:
            app.logger.error("Request failed: %s", error.message, exc_info=error)
        return _error_response(error.status_code, error.message)

    @app.errorhandler(Exception)
    def _handle_unexpected(error: Exception):  # pragma: no cover
        app.logger.exception("Unhandled application error", exc_info=error)
        return _error_response(
            HTTPStatus.INTERNAL_SERVER_ERROR, "An unexpected error occurred."
        )


if __name__ == "__main__":
    application = create_app()
    application.run(host="0.0.0.0", port=int(os.environ.get("PORT", 5000)))
