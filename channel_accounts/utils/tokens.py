"""
Token helpers:
- access / refresh JWT creation via PyJWT, each signed with its own secret
- verification returning a typed Verification instead of raising
- SHA-256 digests of refresh tokens for storage
"""
from __future__ import annotations

import hashlib
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

import jwt
from flask import current_app
from marshmallow import ValidationError

from channel_accounts.models.schemas.tokens import (
    CLAIMS_VERSION,
    AccessClaimsSchema,
    RefreshClaimsSchema,
)

_access_claims = AccessClaimsSchema()
_refresh_claims = RefreshClaimsSchema()


class TokenFault(str, Enum):
    MISSING = "missing"
    EXPIRED = "expired"
    BAD_SIGNATURE = "bad_signature"
    MALFORMED = "malformed"
    WRONG_TYPE = "wrong_type"
    BAD_CLAIMS = "bad_claims"


@dataclass(frozen=True)
class Verification:
    claims: Optional[Dict[str, Any]] = None
    fault: Optional[TokenFault] = None

    @property
    def ok(self) -> bool:
        return self.fault is None


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str


def generate_jti() -> str:
    """Generate a unique JTI (JWT ID).
    """
    return uuid.uuid4().hex


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _encode(payload: dict, secret: str, ttl) -> str:
    now = _now()
    payload = {
        "ver": CLAIMS_VERSION,
        "iss": current_app.config["JWT_ISSUER"],
        **payload,
        "iat": int(now.timestamp()),
        "exp": int((now + ttl).timestamp()),
    }
    return jwt.encode(payload, secret, algorithm=current_app.config["JWT_ALGORITHM"])


def issue_access_token(account) -> str:
    cfg = current_app.config
    return _encode(
        {
            "type": "access",
            "sub": str(account.id),
            "username": account.username,
            "display_name": account.display_name,
        },
        cfg["ACCESS_TOKEN_SECRET"],
        cfg["ACCESS_TOKEN_EXPIRES"],
    )


def issue_refresh_token(account) -> str:
    cfg = current_app.config
    return _encode(
        {"type": "refresh", "sub": str(account.id), "jti": generate_jti()},
        cfg["REFRESH_TOKEN_SECRET"],
        cfg["REFRESH_TOKEN_EXPIRES"],
    )


def issue_token_pair(account) -> TokenPair:
    return TokenPair(issue_access_token(account), issue_refresh_token(account))


def _verify(token: Optional[str], secret: str, expected_type: str, schema) -> Verification:
    if not token:
        return Verification(fault=TokenFault.MISSING)
    try:
        decoded = jwt.decode(
            token,
            secret,
            algorithms=[current_app.config["JWT_ALGORITHM"]],
            issuer=current_app.config["JWT_ISSUER"],
            options={"require": ["exp", "iat", "sub"]},
        )
    except jwt.ExpiredSignatureError:
        return Verification(fault=TokenFault.EXPIRED)
    except jwt.InvalidSignatureError:
        return Verification(fault=TokenFault.BAD_SIGNATURE)
    except jwt.InvalidTokenError:
        return Verification(fault=TokenFault.MALFORMED)

    if decoded.get("type") != expected_type:
        return Verification(fault=TokenFault.WRONG_TYPE)
    try:
        claims = schema.load(decoded)
    except ValidationError:
        return Verification(fault=TokenFault.BAD_CLAIMS)
    return Verification(claims=claims)


def verify_access_token(token: Optional[str]) -> Verification:
    return _verify(token, current_app.config["ACCESS_TOKEN_SECRET"], "access", _access_claims)


def verify_refresh_token(token: Optional[str]) -> Verification:
    return _verify(token, current_app.config["REFRESH_TOKEN_SECRET"], "refresh", _refresh_claims)
