"""Authentication blueprint providing register, login and email verification endpoints."""

from __future__ import annotations
from http import HTTPStatus

from flask import Blueprint, current_app, jsonify, request
from werkzeug.exceptions import BadRequest

from services.auth_service import AuthService
from services.errors import DuplicateEmailError
from utils.request_validation import (
    parse_json_request,
    validate_login,
    validate_registration,
)

auth_bp = Blueprint("auth", __name__)


def _auth_service() -> AuthService:
    return current_app.extensions["auth_service"]


@auth_bp.route("/register", methods=["POST"])
def register() -> tuple:
    """Register a new user and email them a verification link.

    ---
    post:
      tags: [Auth]
      summary: Register a new account
      requestBody:
        required: true
        content:
          application/json:
            schema: {$ref: "#/components/schemas/RegisterRequest"}
      responses:
        "201":
          description: Account created; a verification link was emailed.
          content:
            application/json:
              schema: {$ref: "#/components/schemas/Message"}
        "400":
          description: Invalid input or email already in use.
          content:
            application/json:
              schema: {$ref: "#/components/schemas/Error"}
        "503":
          description: The verification email could not be sent; nothing was stored.
          content:
            application/json:
              schema: {$ref: "#/components/schemas/Error"}
    """
    data = validate_registration(parse_json_request(request)).unwrap()

    try:
        result = _auth_service().register(
            data.firstname, data.lastname, data.email, data.password
        )
    except DuplicateEmailError as exc:
        raise BadRequest(exc.message) from exc

    return jsonify(result), HTTPStatus.CREATED


@auth_bp.route("/login", methods=["POST"])
def login() -> tuple:
    """Authenticate a verified user and return a JWT access token.

    ---
    post:
      tags: [Auth]
      summary: Log in
      requestBody:
        required: true
        content:
          application/json:
            schema: {$ref: "#/components/schemas/LoginRequest"}
      responses:
        "200":
          description: Signed access token.
          content:
            application/json:
              schema: {$ref: "#/components/schemas/AccessToken"}
        "400":
          description: Missing or malformed fields.
          content:
            application/json:
              schema: {$ref: "#/components/schemas/Error"}
        "401":
          description: Invalid credentials or email not verified.
          content:
            application/json:
              schema: {$ref: "#/components/schemas/Error"}
    """
    data = validate_login(parse_json_request(request)).unwrap()
    result = _auth_service().login(data.email, data.password)
    return jsonify(result), HTTPStatus.OK


@auth_bp.route("/verify-email", methods=["GET"])
def verify_email() -> tuple:
    """Consume the one-time token sent by email.

    ---
    get:
      tags: [Auth]
      summary: Verify an email address
      parameters:
        - in: query
          name: token
          required: true
          schema: {type: string}
      responses:
        "200":
          description: Email verified.
          content:
            application/json:
              schema: {$ref: "#/components/schemas/Message"}
        "400":
          description: Missing, unknown, used or expired token.
          content:
            application/json:
              schema: {$ref: "#/components/schemas/Error"}
    """
    token = (request.args.get("token") or "").strip()
    if not token:
        raise BadRequest("Query parameter 'token' is required.")

    result = _auth_service().verify_email(token)
    return jsonify(result), HTTPStatus.OK
