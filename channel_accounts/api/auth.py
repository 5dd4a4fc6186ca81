"""
Authentication blueprint (mounted at /api/v1/users):
- POST /register
- POST /login
- POST /refresh-token
- POST /logout

Access and refresh tokens are returned in the body and set as httpOnly cookies.
Each account holds one live refresh token; refreshing rotates it and logging out clears it.
"""
from __future__ import annotations

from flask import Blueprint, request, g, current_app

from channel_accounts.api.responses import api_response
from channel_accounts.models import storage
from channel_accounts.models.account import Account
from channel_accounts.models.schemas.account import AccountCreateSchema, AccountOutSchema, LoginSchema, RefreshSchema
from channel_accounts.utils.decorators import jwt_required
from channel_accounts.utils.exceptions import AccountExists
from channel_accounts.utils.security import hash_password
from channel_accounts.utils.sessions import SessionManager
from channel_accounts.utils.tokens import TokenPair

bp = Blueprint("auth", __name__)

account_create_schema = AccountCreateSchema()
account_out_schema = AccountOutSchema()
login_schema = LoginSchema()
refresh_schema = RefreshSchema()


def _cookie_options(max_age=None) -> dict:
    cfg = current_app.config
    return {
        "httponly": True,
        "secure": cfg["COOKIE_SECURE"],
        "samesite": cfg["COOKIE_SAMESITE"],
        "max_age": max_age,
    }


def _set_session_cookies(resp, tokens: TokenPair):
    cfg = current_app.config
    resp.set_cookie(
        cfg["ACCESS_TOKEN_COOKIE"], tokens.access_token,
        **_cookie_options(int(cfg["ACCESS_TOKEN_EXPIRES"].total_seconds())),
    )
    resp.set_cookie(
        cfg["REFRESH_TOKEN_COOKIE"], tokens.refresh_token,
        **_cookie_options(int(cfg["REFRESH_TOKEN_EXPIRES"].total_seconds())),
    )
    return resp


def _clear_session_cookies(resp):
    cfg = current_app.config
    opts = _cookie_options()
    opts.pop("max_age")
    resp.delete_cookie(cfg["ACCESS_TOKEN_COOKIE"], **opts)
    resp.delete_cookie(cfg["REFRESH_TOKEN_COOKIE"], **opts)
    return resp


def _token_payload(tokens: TokenPair) -> dict:
    return {
        "access_token": tokens.access_token,
        "refresh_token": tokens.refresh_token,
        "token_type": "bearer",
        "expires_in": int(current_app.config["ACCESS_TOKEN_EXPIRES"].total_seconds()),
    }


@bp.post("/register")
def register():
    """
    Register a new account.
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        schema:
          type: object
          required: [username, email, display_name, password]
          properties:
            username: { type: string }
            email: { type: string }
            display_name: { type: string }
            password: { type: string }
            avatar: { type: string, format: uri }
            cover_image: { type: string, format: uri }
    responses:
      201:
        description: Created
      400:
        description: Validation error
      409:
        description: Username or email already registered
    """
    payload = request.get_json(silent=True) or {}
    data = account_create_schema.load(payload)

    if storage.exists(username=data["username"], email=data["email"]):
        raise AccountExists()

    account = Account(
        username=data["username"],
        email=data["email"],
        display_name=data["display_name"],
        avatar=data.get("avatar"),
        cover_image=data.get("cover_image"),
        password_hash=hash_password(data["password"]),
    )
    storage.create(account)

    return api_response(account_out_schema.dump(account), "Account registered successfully", 201)


@bp.post("/login")
def login():
    """
    Login: returns access_token and refresh_token and sets them as cookies
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        schema:
          type: object
          required: [password]
          properties:
            identifier: { type: string, description: username or email }
            username: { type: string }
            email: { type: string }
            password: { type: string }
    responses:
      200:
        description: OK (returns tokens)
      400:
        description: Validation error
      401:
        description: Invalid credentials
    """
    payload = request.get_json(silent=True) or {}
    data = login_schema.load(payload)
    identifier = data.get("identifier") or data.get("username") or data.get("email")

    result = SessionManager(storage).login(identifier, data["password"])

    body = {"user": account_out_schema.dump(result.account), **_token_payload(result.tokens)}
    resp, status = api_response(body, "Logged in successfully")
    return _set_session_cookies(resp, result.tokens), status


@bp.post("/refresh-token")
def refresh_token():
    """
    Exchange a refresh token for a new access/refresh pair (rotation).
    The token is read from the refresh-token cookie, else from the body.
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        required: false
        schema:
          type: object
          properties:
            refresh_token: { type: string }
    responses:
      200:
        description: OK (returns rotated tokens)
      401:
        description: Missing, invalid, expired or already-used refresh token
    """
    presented = request.cookies.get(current_app.config["REFRESH_TOKEN_COOKIE"])
    if not presented:
        payload = request.get_json(silent=True) or {}
        presented = refresh_schema.load(payload).get("refresh_token")

    result = SessionManager(storage).refresh(presented)

    resp, status = api_response(_token_payload(result.tokens), "Access token refreshed")
    return _set_session_cookies(resp, result.tokens), status


@bp.post("/logout")
@jwt_required()
def logout():
    """
    Logout: revokes the account's refresh token and clears the cookies
    ---
    tags:
      - Auth
    security:
      - Bearer: []
      - CookieAuth: []
    responses:
      200:
        description: OK
      401:
        description: Unauthorized
    """
    SessionManager(storage).logout(g.current_user.id)
    resp, status = api_response({}, "Logged out")
    return _clear_session_cookies(resp), status
