"""
Authentication blueprint (mounted at /api/v1/users):
- POST   /register
- POST   /login
- POST   /refresh
- POST   /logout
- POST   /logout-all
- GET    /me
- PUT    /me/password
- DELETE /me

Access tokens are checked by utils.decorators.jwt_required; everything else
is delegated to the AuthService built in create_app().
"""
from __future__ import annotations

from flask import Blueprint, request, g

from . import get_auth_service
from .errors import success_response, message_response
from models.schemas.user import (
    UserRegisterSchema,
    UserLoginSchema,
    RefreshTokenSchema,
    PasswordChangeSchema,
    UserOutSchema,
)
from utils.decorators import jwt_required

bp = Blueprint("auth", __name__)

register_schema = UserRegisterSchema()
login_schema = UserLoginSchema()
refresh_schema = RefreshTokenSchema()
password_change_schema = PasswordChangeSchema()
user_out_schema = UserOutSchema()


def _session_payload(result: dict) -> dict:
    return {
        "user": user_out_schema.dump(result["user"]),
        "access_token": result["access_token"],
        "refresh_token": result["refresh_token"],
        "token_type": "bearer",
    }


@bp.post("/register")
def register():
    """Register a new user and start a session: 201 with user and token pair."""
    data = register_schema.load(request.get_json(silent=True) or {})
    result = get_auth_service().register(
        username=data["username"],
        email=data["email"],
        full_name=data["full_name"],
        password=data["password"],
    )
    return success_response(_session_payload(result), 201)


@bp.post("/login")
def login():
    data = login_schema.load(request.get_json(silent=True) or {})
    result = get_auth_service().login(data["username"], data["password"])
    return success_response(_session_payload(result))


@bp.post("/refresh")
def refresh():
    """
    Exchange a live refresh token for a new pair; the presented token is
    rotated out and cannot be used again.
    """
    data = refresh_schema.load(request.get_json(silent=True) or {})
    tokens = get_auth_service().refresh(data["refresh_token"])
    return success_response({**tokens, "token_type": "bearer"})


@bp.post("/logout")
@jwt_required()
def logout():
    data = refresh_schema.load(request.get_json(silent=True) or {})
    get_auth_service().logout(g.current_user_id, data["refresh_token"])
    return message_response("Logged out successfully")


@bp.post("/logout-all")
@jwt_required()
def logout_all():
    get_auth_service().logout_all(g.current_user_id)
    return message_response("Logged out from all devices")


@bp.get("/me")
@jwt_required()
def me():
    user = get_auth_service().get_user(g.current_user_id)
    return success_response(user_out_schema.dump(user))


@bp.put("/me/password")
@jwt_required()
def change_password():
    """Change the password; every session of the user ends."""
    data = password_change_schema.load(request.get_json(silent=True) or {})
    get_auth_service().change_password(
        g.current_user_id, data["current_password"], data["new_password"]
    )
    return message_response("Password changed, please log in again")


@bp.delete("/me")
@jwt_required()
def delete_me():
    get_auth_service().delete_account(g.current_user_id)
    return message_response("Account deleted")
