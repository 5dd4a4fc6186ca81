from __future__ import annotations

from flask import Blueprint, request, g

from channel_accounts.api.responses import api_response
from channel_accounts.models import storage
from channel_accounts.models.schemas.account import (
    AccountOutSchema,
    AccountUpdateSchema,
    AvatarSchema,
    ChangePasswordSchema,
    CoverImageSchema,
)
from channel_accounts.utils.decorators import jwt_required
from channel_accounts.utils.exceptions import AccountExists, InvalidToken
from channel_accounts.utils.sessions import SessionManager

bp = Blueprint("users", __name__)

account_out_schema = AccountOutSchema()
account_update_schema = AccountUpdateSchema()
change_password_schema = ChangePasswordSchema()
avatar_schema = AvatarSchema()
cover_image_schema = CoverImageSchema()


def _apply(patch: dict):
    account = storage.update(g.current_user.id, patch)
    if account is None:
        # Deleted after the token was checked
        raise InvalidToken("Invalid access token")
    return account


@bp.get("/me")
@jwt_required()
def me():
    """
    Current account, as resolved by the access-token gate.
    ---
    tags:
      - Users
    security:
      - Bearer: []
      - CookieAuth: []
    responses:
      200:
        description: OK
      401:
        description: Unauthorized
    """
    return api_response(account_out_schema.dump(g.current_user), "Current account fetched")


@bp.patch("/me")
@jwt_required()
def update_me():
    """
    Update display name and/or email.
    ---
    tags:
      - Users
    security:
      - Bearer: []
      - CookieAuth: []
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        schema:
          type: object
          properties:
            display_name: { type: string }
            email: { type: string }
    responses:
      200: { description: OK }
      400: { description: Validation error }
      401: { description: Unauthorized }
      409: { description: Email already registered }
    """
    payload = request.get_json(silent=True) or {}
    data = account_update_schema.load(payload)
    if "email" in data and storage.exists(email=data["email"], exclude_id=g.current_user.id):
        raise AccountExists("Email already registered")
    account = _apply(data)
    return api_response(account_out_schema.dump(account), "Account details updated")


@bp.post("/change-password")
@jwt_required()
def change_password():
    """
    Change the current account's password.
    ---
    tags:
      - Users
    security:
      - Bearer: []
      - CookieAuth: []
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        schema:
          type: object
          required: [old_password, new_password]
          properties:
            old_password: { type: string }
            new_password: { type: string }
    responses:
      200: { description: OK }
      400: { description: Validation error }
      401: { description: Unauthorized or invalid old password }
    """
    payload = request.get_json(silent=True) or {}
    data = change_password_schema.load(payload)
    SessionManager(storage).change_password(g.current_user, data["old_password"], data["new_password"])
    return api_response({}, "Password changed successfully")


@bp.patch("/me/avatar")
@jwt_required()
def update_avatar():
    """
    Point the avatar at an already-uploaded image URL.
    ---
    tags:
      - Users
    security:
      - Bearer: []
      - CookieAuth: []
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        schema:
          type: object
          required: [avatar]
          properties:
            avatar: { type: string, format: uri }
    responses:
      200: { description: OK }
      400: { description: Validation error }
      401: { description: Unauthorized }
    """
    payload = request.get_json(silent=True) or {}
    account = _apply(avatar_schema.load(payload))
    return api_response(account_out_schema.dump(account), "Avatar updated")


@bp.patch("/me/cover-image")
@jwt_required()
def update_cover_image():
    """
    Point the cover image at an already-uploaded image URL.
    ---
    tags:
      - Users
    security:
      - Bearer: []
      - CookieAuth: []
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        schema:
          type: object
          required: [cover_image]
          properties:
            cover_image: { type: string, format: uri }
    responses:
      200: { description: OK }
      400: { description: Validation error }
      401: { description: Unauthorized }
    """
    payload = request.get_json(silent=True) or {}
    account = _apply(cover_image_schema.load(payload))
    return api_response(account_out_schema.dump(account), "Cover image updated")
