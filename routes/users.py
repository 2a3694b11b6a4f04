"""User profile blueprint."""

from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request
from flask_jwt_extended import current_user, jwt_required

from services.user_service import UserService
from utils.request_validation import parse_json_request, validate_profile_update

users_bp = Blueprint("users", __name__)


def _user_service() -> UserService:
    return current_app.extensions["user_service"]


@users_bp.route("/", methods=["GET"], strict_slashes=False)
def list_users():
    """Return every registered user.

    ---
    get:
      tags: [Users]
      summary: List users
      responses:
        "200":
          description: All users, oldest first.
          content:
            application/json:
              schema:
                type: array
                items: {$ref: "#/components/schemas/User"}
    """

    return jsonify([user.to_dict() for user in _user_service().list_users()])


@users_bp.route("/profile", methods=["GET"])
@jwt_required()
def get_profile():
    """Return the profile of the authenticated user.

    ---
    get:
      tags: [Users]
      summary: Current user's profile
      security:
        - bearerAuth: []
      responses:
        "200":
          description: The authenticated user.
          content:
            application/json:
              schema: {$ref: "#/components/schemas/User"}
        "401":
          description: Missing, invalid or expired bearer token.
          content:
            application/json:
              schema: {$ref: "#/components/schemas/Error"}
    """

    return jsonify(current_user.to_dict())


@users_bp.route("/<string:user_id>", methods=["GET"])
def get_user(user_id: str):
    """Return one user, or null when the id is unknown.

    ---
    get:
      tags: [Users]
      summary: Get a user by id
      parameters:
        - in: path
          name: user_id
          required: true
          schema: {type: string}
      responses:
        "200":
          description: The user, or null.
          content:
            application/json:
              schema:
                allOf:
                  - $ref: "#/components/schemas/User"
                nullable: true
    """
    user = _user_service().get_user(user_id)
    return jsonify(user.to_dict() if user else None)


@users_bp.route("/update", methods=["PATCH"])
@jwt_required()
def update_user():
    """Update the authenticated user's names and/or email.

    ---
    patch:
      tags: [Users]
      summary: Update the current user's profile
      security:
        - bearerAuth: []
      requestBody:
        required: true
        content:
          application/json:
            schema: {$ref: "#/components/schemas/ProfileUpdate"}
      responses:
        "200":
          description: The updated user.
          content:
            application/json:
              schema: {$ref: "#/components/schemas/User"}
        "400":
          description: Invalid field values.
          content:
            application/json:
              schema: {$ref: "#/components/schemas/Error"}
        "401":
          description: Missing, invalid or expired bearer token.
          content:
            application/json:
              schema: {$ref: "#/components/schemas/Error"}
        "409":
          description: Email already in use.
          content:
            application/json:
              schema: {$ref: "#/components/schemas/Error"}
    """

    changes = validate_profile_update(
        parse_json_request(request, allow_empty=True)
    ).unwrap()
    user = _user_service().update_user(current_user.id, changes)
    return jsonify(user.to_dict())


@users_bp.route("/<string:user_id>", methods=["DELETE"])
@jwt_required()
def delete_user(user_id: str):
    """Delete a user; only administrators may do this.

    ---
    delete:
      tags: [Users]
      summary: Delete a user
      security:
        - bearerAuth: []
      parameters:
        - in: path
          name: user_id
          required: true
          schema: {type: string}
      responses:
        "200":
          description: User deleted.
          content:
            application/json:
              schema: {$ref: "#/components/schemas/Message"}
        "401":
          description: Missing, invalid or expired bearer token.
          content:
            application/json:
              schema: {$ref: "#/components/schemas/Error"}
        "403":
          description: Requester is not an ADMIN.
          content:
            application/json:
              schema: {$ref: "#/components/schemas/Error"}
        "404":
          description: No such user.
          content:
            application/json:
              schema: {$ref: "#/components/schemas/Error"}
    """

    return jsonify(_user_service().delete_user(current_user, user_id))
