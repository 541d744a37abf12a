"""
Per-user set of live refresh tokens.

A refresh token is live while a row for it exists; every mutation is a
single DBStorage.atomic_update_user() call so concurrent logins, refreshes
and logouts for the same user cannot overwrite each other.
"""
from __future__ import annotations

from models.db_storage import AppendToken, ClearTokens, RemoveToken, RotateToken


class SessionStore:
    def __init__(self, storage):
        self._storage = storage

    def append(self, user_id: str, refresh_token: str) -> None:
        self._storage.atomic_update_user(user_id, AppendToken(refresh_token))

    def rotate(self, user_id: str, old_token: str, new_token: str) -> bool:
        """
        Swap old_token for new_token. Returns False, writing nothing, when
        old_token was no longer live (already rotated out or revoked).
        """
        return self._storage.atomic_update_user(user_id, RotateToken(old_token, new_token))

    def revoke(self, user_id: str, refresh_token: str) -> None:
        self._storage.atomic_update_user(user_id, RemoveToken(refresh_token))

    def revoke_all(self, user_id: str) -> None:
        self._storage.atomic_update_user(user_id, ClearTokens())

    def is_live(self, user_id: str, refresh_token: str) -> bool:
        return self._storage.has_token(user_id, refresh_token)
