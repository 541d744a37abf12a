"""
DBStorage: the persistence collaborator for the Blog API.

Besides the generic new/save/delete/get helpers used by the post and comment
resources, it exposes the user lookups the auth core needs and
atomic_update_user(), which applies a list of operations to one user inside a
single transaction.
"""
from __future__ import annotations

import logging

from sqlalchemy import create_engine, event, delete, insert, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import scoped_session, sessionmaker
from sqlalchemy.pool import StaticPool

from models.base_model import Base
from models.comment import Comment
from models.post import Post
from models.user import User
from models.user_session import UserSession, token_digest

logger = logging.getLogger(__name__)

# Map model names for easy querying
classes = {
    "User": User,
    "UserSession": UserSession,
    "Post": Post,
    "Comment": Comment,
}


class AppendToken:
    """Add one live refresh token."""

    def __init__(self, token: str):
        self.digest = token_digest(token)

    def apply(self, session, user_id: str) -> bool:
        session.execute(
            insert(UserSession).values(
                user_id=user_id,
                token_digest=self.digest,
            )
        )
        return True


class RemoveToken:
    """Remove one refresh token; a token that is not present is not an error."""

    def __init__(self, token: str):
        self.digest = token_digest(token)

    def apply(self, session, user_id: str) -> bool:
        session.execute(
            delete(UserSession)
            .where(UserSession.user_id == user_id, UserSession.token_digest == self.digest)
            .execution_options(synchronize_session=False)
        )
        return True


class RotateToken:
    """
    Conditional swap: delete the old token and insert the new one only when
    the old one was still present. Fails the whole update otherwise.
    """

    def __init__(self, old_token: str, new_token: str):
        self.old_digest = token_digest(old_token)
        self.new = AppendToken(new_token)

    def apply(self, session, user_id: str) -> bool:
        result = session.execute(
            delete(UserSession)
            .where(UserSession.user_id == user_id, UserSession.token_digest == self.old_digest)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            return False
        return self.new.apply(session, user_id)


class ClearTokens:
    """Remove every refresh token of the user."""

    def apply(self, session, user_id: str) -> bool:
        session.execute(
            delete(UserSession)
            .where(UserSession.user_id == user_id)
            .execution_options(synchronize_session=False)
        )
        return True


class ReplaceTokens:
    """Replace the whole token set with the given tokens."""

    def __init__(self, tokens):
        self.appends = [AppendToken(t) for t in tokens]

    def apply(self, session, user_id: str) -> bool:
        ClearTokens().apply(session, user_id)
        for op in self.appends:
            op.apply(session, user_id)
        return True


class SetFields:
    """
    Update plain columns of the user row. The password hash is not a plain
    column: build it with User.set_password and pass the result as
    password_hash only from there.
    """

    def __init__(self, **fields):
        self.fields = fields

    def apply(self, session, user_id: str) -> bool:
        result = session.execute(
            update(User)
            .where(User.id == user_id)
            .values(**self.fields)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount > 0


class DBStorage:
    def __init__(self, database_url: str, echo: bool = False):
        """Initialize engine for the given database URL"""
        options = {"echo": echo}
        if database_url.startswith("sqlite"):
            options["connect_args"] = {"check_same_thread": False}
            if ":memory:" in database_url or database_url == "sqlite://":
                # one shared connection, otherwise every thread sees an empty DB
                options["poolclass"] = StaticPool
        else:
            options["pool_pre_ping"] = True
        self.__engine = create_engine(database_url, **options)
        self.__session = None

        if self.__engine.url.get_backend_name() == "sqlite":
            # Enable SQLite foreign keys (needed for ON DELETE CASCADE)
            @event.listens_for(self.__engine, "connect")
            def _set_sqlite_pragma(dbapi_connection, connection_record):
                cursor = dbapi_connection.cursor()
                cursor.execute("PRAGMA foreign_keys=ON")
                cursor.close()

    def reload(self):
        """Create tables and start session"""
        Base.metadata.create_all(self.__engine)
        session_factory = sessionmaker(bind=self.__engine, expire_on_commit=False)
        self.__session = scoped_session(session_factory)

    def drop_all(self):
        """Drop every table (tests only)"""
        self.__session.remove()
        Base.metadata.drop_all(self.__engine)

    def new(self, obj):
        """Add object to session"""
        self.__session.add(obj)

    def save(self):
        """Commit session"""
        try:
            self.__session.commit()
        except SQLAlchemyError:
            self.__session.rollback()
            raise

    def delete(self, obj=None):
        """Delete object if exists (hard delete)"""
        if obj:
            self.__session.delete(obj)

    def get(self, cls, id):
        """Fetch one object by class and ID"""
        if cls in classes.values():
            return self.__session.get(cls, id)
        return None

    def close(self):
        """Remove session (for API teardown)"""
        self.__session.remove()

    # expose the SQLAlchemy session for advanced querying (joins, filters, etc.)
    def get_session(self):
        return self.__session

    # -- user access used by the auth core --

    def find_user_by_id(self, user_id: str) -> User | None:
        return self.__session.get(User, user_id)

    def find_user_by_username(self, username: str) -> User | None:
        return self.__session.execute(
            select(User).where(User.username == username)
        ).scalars().first()

    def find_user_by_username_or_email(self, username: str, email: str) -> list[User]:
        """All users colliding on either field (at most two)."""
        return list(
            self.__session.execute(
                select(User).where(or_(User.username == username, User.email == email))
            ).scalars()
        )

    def create_user(self, user: User) -> User:
        self.new(user)
        self.save()
        return user

    def delete_user(self, user: User) -> None:
        self.delete(user)
        self.save()

    def has_token(self, user_id: str, token: str) -> bool:
        digest = token_digest(token)
        row = self.__session.execute(
            select(UserSession.id).where(
                UserSession.user_id == user_id, UserSession.token_digest == digest
            ).limit(1)
        ).first()
        return row is not None

    def atomic_update_user(self, user_id: str, *operations) -> bool:
        """
        Apply every operation in one transaction. If any operation reports
        that its condition did not hold, nothing is written and False is
        returned.
        """
        session = self.__session
        try:
            for op in operations:
                if not op.apply(session, user_id):
                    session.rollback()
                    logger.debug("update of user %s skipped: %s did not apply", user_id, type(op).__name__)
                    return False
            session.commit()
        except SQLAlchemyError:
            session.rollback()
            raise
        # cached instances may hold stale columns or collections
        session.expire_all()
        return True
