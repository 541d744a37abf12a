"""
Authentication orchestration: register, login, refresh (with rotation),
logout, logout-all, plus password change and account deletion.

Every credential or token failure surfaces as UnauthorizedError with a fixed
message; the precise reason is only logged.
"""
from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError

from models.db_storage import ClearTokens, SetFields
from models.user import User
from utils.exceptions import ConflictError, NotFoundError, TokenError, UnauthorizedError

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid username or password"
INVALID_REFRESH_TOKEN = "Invalid or expired refresh token"


class AuthService:
    def __init__(self, storage, vault, issuer, sessions):
        self._storage = storage
        self._vault = vault
        self._issuer = issuer
        self._sessions = sessions

    def _check_available(self, username: str, email: str) -> None:
        existing = self._storage.find_user_by_username_or_email(username, email)
        if any(u.username == username for u in existing):
            raise ConflictError("Username already exists")
        if any(u.email == email for u in existing):
            raise ConflictError("Email already exists")

    def _start_session(self, user: User) -> dict:
        access_token, refresh_token = self._issuer.mint_pair(user.identity())
        self._sessions.append(user.id, refresh_token)
        return {"user": user, "access_token": access_token, "refresh_token": refresh_token}

    def register(self, username: str, email: str, full_name: str, password: str) -> dict:
        self._check_available(username, email)

        user = User(
            username=username,
            email=email,
            full_name=full_name,
            password=password,
            vault=self._vault,
        )
        try:
            self._storage.create_user(user)
        except IntegrityError:
            # lost a race against a concurrent registration
            self._check_available(username, email)
            raise ConflictError("Username or email already exists")

        logger.info("registered user %s", user.id)
        return self._start_session(user)

    def login(self, username: str, password: str) -> dict:
        user = self._storage.find_user_by_username(username)
        if user is None:
            self._vault.verify_dummy(password)
            raise UnauthorizedError(INVALID_CREDENTIALS)
        if not self._vault.verify(password, user.password_hash):
            logger.info("failed login for user %s", user.id)
            raise UnauthorizedError(INVALID_CREDENTIALS)

        if self._vault.needs_rehash(user.password_hash):
            user.set_password(password, self._vault)
            self._storage.atomic_update_user(user.id, SetFields(password_hash=user.password_hash))

        logger.info("user %s logged in", user.id)
        return self._start_session(user)

    def refresh(self, refresh_token: str) -> dict:
        try:
            claims = self._issuer.verify_refresh(refresh_token)
        except TokenError as exc:
            logger.warning("refresh rejected: %s", exc)
            raise UnauthorizedError(INVALID_REFRESH_TOKEN)

        user = self._storage.find_user_by_id(claims["sub"])
        if user is None:
            logger.warning("refresh rejected: user %s no longer exists", claims["sub"])
            raise UnauthorizedError(INVALID_REFRESH_TOKEN)
        if not self._sessions.is_live(user.id, refresh_token):
            logger.warning("refresh rejected: token of user %s is not live", user.id)
            raise UnauthorizedError(INVALID_REFRESH_TOKEN)

        access_token, new_refresh_token = self._issuer.mint_pair(user.identity())
        if not self._sessions.rotate(user.id, refresh_token, new_refresh_token):
            logger.warning("refresh rejected: token of user %s was rotated concurrently", user.id)
            raise UnauthorizedError(INVALID_REFRESH_TOKEN)

        return {"access_token": access_token, "refresh_token": new_refresh_token}

    def logout(self, user_id: str, refresh_token: str) -> None:
        self._sessions.revoke(user_id, refresh_token)
        logger.info("user %s logged out", user_id)

    def logout_all(self, user_id: str) -> None:
        self._sessions.revoke_all(user_id)
        logger.info("user %s logged out of all sessions", user_id)

    def get_user(self, user_id: str) -> User:
        user = self._storage.find_user_by_id(user_id)
        if user is None:
            raise NotFoundError(f"User with id {user_id} not found")
        return user

    def change_password(self, user_id: str, current_password: str, new_password: str) -> None:
        """Set a new password and end every session of the user."""
        user = self.get_user(user_id)
        if not self._vault.verify(current_password, user.password_hash):
            raise UnauthorizedError("Current password is incorrect")
        user.set_password(new_password, self._vault)
        self._storage.atomic_update_user(
            user.id, SetFields(password_hash=user.password_hash), ClearTokens()
        )
        logger.info("user %s changed password", user.id)

    def delete_account(self, user_id: str) -> None:
        user = self.get_user(user_id)
        self._storage.delete_user(user)
        logger.info("deleted user %s", user_id)
