from __future__ import annotations

import logging
from functools import wraps

from flask import g, request

from api import get_storage, get_token_issuer
from utils.exceptions import ForbiddenError, TokenError, UnauthorizedError

logger = logging.getLogger(__name__)


def jwt_required():
    """
    Require a valid access token in the Authorization header.
    The account named by the token must still exist. The verified claims
    are exposed as g.current_user and the subject as g.current_user_id.
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            auth = request.headers.get("Authorization", "")
            if not auth.startswith("Bearer "):
                raise UnauthorizedError("No token provided")
            token = auth.split(" ", 1)[1].strip()
            try:
                claims = get_token_issuer().verify_access(token)
            except TokenError as exc:
                logger.info("access token rejected: %s", exc)
                raise UnauthorizedError("Invalid or expired token")

            if get_storage().find_user_by_id(claims["sub"]) is None:
                logger.info("access token rejected: user %s no longer exists", claims["sub"])
                raise UnauthorizedError("Invalid or expired token")

            g.current_user = claims
            g.current_user_id = claims["sub"]
            return fn(*args, **kwargs)

        return wrapper

    return decorator


def ensure_owner(obj, user_id: str) -> None:
    """Raise ForbiddenError unless obj.owner_id matches user_id."""
    if obj.owner_id != user_id:
        raise ForbiddenError("You can only modify your own resources")
