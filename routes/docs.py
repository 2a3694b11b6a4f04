"""OpenAPI document and Swagger UI for the versioned API.

Operations are described in YAML below a ``---`` line in each view's
docstring; :func:`build_openapi_spec` collects them from every rule under
``/api/v1``.
"""

from __future__ import annotations

from apispec import APISpec
from apispec_webframeworks.flask import FlaskPlugin
from flask import Blueprint, Flask, current_app, jsonify
from flask_swagger_ui import get_swaggerui_blueprint

from . import API_PREFIX

DOCS_URL = "/api/docs"
OPENAPI_URL = "/api/openapi.json"
OPENAPI_VERSION = "3.0.3"

BEARER_AUTH = {"type": "http", "scheme": "bearer", "bearerFormat": "JWT"}

SCHEMAS = {
    "User": {
        "type": "object",
        "properties": {
            "id": {"type": "string", "format": "uuid"},
            "firstname": {"type": "string"},
            "lastname": {"type": "string"},
            "email": {"type": "string", "format": "email"},
            "is_email_verified": {"type": "boolean"},
            "role": {"type": "string", "enum": ["USER", "ADMIN"]},
            "created_at": {"type": "string", "format": "date-time"},
            "updated_at": {"type": "string", "format": "date-time"},
        },
    },
    "Message": {
        "type": "object",
        "properties": {"message": {"type": "string"}},
    },
    "AccessToken": {
        "type": "object",
        "properties": {"access_token": {"type": "string"}},
    },
    "Error": {
        "type": "object",
        "properties": {
            "error": {"type": "string"},
            "detail": {"type": "string"},
            "request_id": {"type": "string"},
            "errors": {
                "type": "object",
                "additionalProperties": {"type": "string"},
            },
        },
    },
    "RegisterRequest": {
        "type": "object",
        "required": ["firstname", "lastname", "email", "password"],
        "properties": {
            "firstname": {"type": "string"},
            "lastname": {"type": "string"},
            "email": {"type": "string", "format": "email"},
            "password": {
                "type": "string",
                "format": "password",
                "minLength": 8,
                "description": "Upper and lower case letters, a digit and a special character.",
            },
        },
    },
    "LoginRequest": {
        "type": "object",
        "required": ["email", "password"],
        "properties": {
            "email": {"type": "string", "format": "email"},
            "password": {"type": "string", "format": "password"},
        },
    },
    "ProfileUpdate": {
        "type": "object",
        "properties": {
            "firstname": {"type": "string"},
            "lastname": {"type": "string"},
            "email": {"type": "string", "format": "email"},
        },
    },
}

docs_bp = Blueprint("openapi", __name__)


def build_openapi_spec(app: Flask) -> APISpec:
    spec = APISpec(
        title=f"{app.config.get('APP_NAME', 'Auth System')} API",
        version=app.config.get("API_VERSION", "1.0"),
        openapi_version=OPENAPI_VERSION,
        plugins=[FlaskPlugin()],
        info={"description": "Registration with email verification, JWT login and user profiles."},
    )
    spec.components.security_scheme("bearerAuth", BEARER_AUTH)
    for name, schema in SCHEMAS.items():
        spec.components.schema(name, schema)

    for rule in sorted(app.url_map.iter_rules(), key=lambda rule: rule.rule):
        if rule.rule.startswith(API_PREFIX):
            spec.path(view=app.view_functions[rule.endpoint], app=app)
    return spec


@docs_bp.route("/openapi.json", methods=["GET"])
def openapi_document():
    return jsonify(build_openapi_spec(current_app).to_dict())


def register_api_docs(app: Flask) -> None:
    """Serve the OpenAPI document and the Swagger UI that renders it."""
    app.register_blueprint(docs_bp, url_prefix="/api")
    app.register_blueprint(
        get_swaggerui_blueprint(
            DOCS_URL,
            OPENAPI_URL,
            config={"app_name": f"{app.config.get('APP_NAME', 'Auth System')} API"},
        )
    )
