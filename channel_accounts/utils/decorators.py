from __future__ import annotations
from functools import wraps
from flask import request, g, current_app

from channel_accounts.models import storage
from channel_accounts.utils.exceptions import InvalidToken, Unauthenticated
from channel_accounts.utils.tokens import TokenFault, verify_access_token


def _presented_access_token() -> str | None:
    """Cookie first, then ``Authorization: Bearer <token>``."""
    token = request.cookies.get(current_app.config["ACCESS_TOKEN_COOKIE"])
    if token:
        return token
    auth = request.headers.get("Authorization", "")
    if auth.startswith("Bearer "):
        return auth.split(" ", 1)[1].strip() or None
    return None


def jwt_required():
    """
    Gate a view behind a valid access token.
    On success the account is on ``g.current_user`` and the claims on ``g.token_claims``;
    on failure the view is never called. Read-only with respect to account state.
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            result = verify_access_token(_presented_access_token())
            if result.fault is TokenFault.MISSING:
                raise Unauthenticated()
            if not result.ok:
                if result.fault is TokenFault.EXPIRED:
                    raise InvalidToken("Access token expired")
                raise InvalidToken("Invalid access token")

            user = storage.find_profile_by_id(result.claims["sub"])
            if user is None:
                raise InvalidToken("Invalid access token")
            g.current_user = user
            g.token_claims = result.claims
            return fn(*args, **kwargs)

        return wrapper

    return decorator
