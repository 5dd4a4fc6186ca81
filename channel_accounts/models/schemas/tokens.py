"""
Claim schemas for the two token kinds.
Decoded payloads are loaded through these before anything trusts them;
``ver`` is bumped whenever the claim set changes.
"""
from marshmallow import Schema, fields, validate

CLAIMS_VERSION = 1


class _ClaimsBase(Schema):
    ver = fields.Integer(required=True, strict=True, validate=validate.Equal(CLAIMS_VERSION))
    iss = fields.String(required=True)
    sub = fields.String(required=True, validate=validate.Length(min=1))
    iat = fields.Integer(required=True, strict=True)
    exp = fields.Integer(required=True, strict=True)


class AccessClaimsSchema(_ClaimsBase):
    type = fields.String(required=True, validate=validate.Equal("access"))
    username = fields.String(required=True)
    display_name = fields.String(required=True)


class RefreshClaimsSchema(_ClaimsBase):
    type = fields.String(required=True, validate=validate.Equal("refresh"))
    jti = fields.String(required=True, validate=validate.Length(min=1))
