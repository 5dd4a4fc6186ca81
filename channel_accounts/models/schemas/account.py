from marshmallow import (
    EXCLUDE, Schema, ValidationError, fields, pre_load, validate, validates, validates_schema,
)

USERNAME_RE = r"^[a-z0-9_.-]{3,30}$"


def _norm(v):
    return v.strip().lower() if isinstance(v, str) else v


def _strip(v):
    return v.strip() if isinstance(v, str) else v


def _check_password(value):
    if len(value) < 8:
        raise ValidationError("Password must be at least 8 characters long.")


class AccountCreateSchema(Schema):
    username = fields.String(
        required=True,
        validate=validate.Regexp(USERNAME_RE, error="Username must be 3-30 characters of a-z, 0-9, '_', '.', '-'."),
    )
    email = fields.Email(required=True)
    display_name = fields.String(required=True, validate=validate.Length(min=1, max=255))
    password = fields.String(required=True, load_only=True)
    avatar = fields.Url(allow_none=True)
    cover_image = fields.Url(allow_none=True)

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict):
            data = dict(data)
            for key in ("username", "email"):
                if key in data:
                    data[key] = _norm(data[key])
            if "display_name" in data:
                data["display_name"] = _strip(data["display_name"])
        return data

    @validates("password")
    def validate_password(self, value, **kwargs):
        _check_password(value)


class LoginSchema(Schema):
    """Accepts ``identifier`` or, as older clients send, ``username`` / ``email``."""

    class Meta:
        unknown = EXCLUDE

    identifier = fields.String()
    username = fields.String()
    email = fields.String()
    password = fields.String(required=True, validate=validate.Length(min=1))

    @validates_schema
    def require_identifier(self, data, **kwargs):
        if not any((data.get(k) or "").strip() for k in ("identifier", "username", "email")):
            raise ValidationError("username or email is required", "identifier")


class RefreshSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    refresh_token = fields.String(allow_none=True)


class AccountUpdateSchema(Schema):
    display_name = fields.String(validate=validate.Length(min=1, max=255))
    email = fields.Email()

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict):
            data = dict(data)
            if "email" in data:
                data["email"] = _norm(data["email"])
            if "display_name" in data:
                data["display_name"] = _strip(data["display_name"])
        return data

    @validates_schema
    def not_empty(self, data, **kwargs):
        if not data:
            raise ValidationError("display_name or email is required")


class ChangePasswordSchema(Schema):
    old_password = fields.String(required=True, load_only=True)
    new_password = fields.String(required=True, load_only=True)

    @validates("new_password")
    def validate_new_password(self, value, **kwargs):
        _check_password(value)


class AvatarSchema(Schema):
    avatar = fields.Url(required=True)


class CoverImageSchema(Schema):
    cover_image = fields.Url(required=True)


class AccountOutSchema(Schema):
    """Public projection: never carries the password hash or refresh-token digest."""
    id = fields.String()
    username = fields.String()
    email = fields.String()
    display_name = fields.String()
    avatar = fields.String(allow_none=True)
    cover_image = fields.String(allow_none=True)
    created_at = fields.DateTime()
    updated_at = fields.DateTime()
