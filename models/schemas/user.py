from marshmallow import Schema, fields, pre_load, validate, validates, ValidationError


def _norm_email(v):
    return v.strip().lower() if isinstance(v, str) else v


def _validate_password(value):
    if len(value) < 8:
        raise ValidationError("Password must be at least 8 characters long.")


class UserRegisterSchema(Schema):
    username = fields.String(required=True, validate=validate.Length(min=3, max=50))
    email = fields.Email(required=True)
    full_name = fields.String(required=True, validate=validate.Length(min=2, max=100))
    password = fields.String(required=True, load_only=True)

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict):
            data = dict(data)
            if "email" in data:
                data["email"] = _norm_email(data["email"])
            for key in ("username", "full_name"):
                if isinstance(data.get(key), str):
                    data[key] = data[key].strip()
        return data

    @validates("password")
    def validate_password(self, value, **kwargs):
        _validate_password(value)


class UserLoginSchema(Schema):
    username = fields.String(required=True)
    password = fields.String(required=True, load_only=True)

    @pre_load
    def strip_username(self, data, **kwargs):
        if isinstance(data, dict) and isinstance(data.get("username"), str):
            data = dict(data, username=data["username"].strip())
        return data


class RefreshTokenSchema(Schema):
    refresh_token = fields.String(required=True)


class PasswordChangeSchema(Schema):
    current_password = fields.String(required=True, load_only=True)
    new_password = fields.String(required=True, load_only=True)

    @validates("new_password")
    def validate_new_password(self, value, **kwargs):
        _validate_password(value)


class UserOutSchema(Schema):
    """Public view of a user: no password hash, no sessions."""
    id = fields.String()
    username = fields.String()
    email = fields.String()
    full_name = fields.String()
    created_at = fields.DateTime()
