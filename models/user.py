from __future__ import annotations

from sqlalchemy import Column, String
from sqlalchemy.orm import relationship

from models.base_model import Base, BaseModel


class User(BaseModel, Base):
    """
    Registered account.

    A User can only be built from a plaintext password and a PasswordVault;
    the hash is computed in the constructor and the raw password is never
    kept. Use set_password() to change it later.
    """

    __tablename__ = "users"
    username = Column(String(50), nullable=False, unique=True, index=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    full_name = Column(String(100), nullable=False)
    password_hash = Column(String(255), nullable=False)

    sessions = relationship(
        "UserSession",
        back_populates="user",
        cascade="all, delete-orphan",
    )
    posts = relationship(
        "Post",
        back_populates="owner",
        cascade="all, delete-orphan",
    )
    comments = relationship(
        "Comment",
        back_populates="owner",
        cascade="all, delete-orphan",
    )

    def __init__(self, *, password: str, vault, **kwargs):
        if "password_hash" in kwargs:
            raise TypeError("password_hash cannot be assigned directly; pass password=")
        super().__init__(**kwargs)
        self.set_password(password, vault)

    @property
    def password(self):
        raise AttributeError("Password: Write-only field")

    def set_password(self, password: str, vault) -> None:
        self.password_hash = vault.hash(password)

    def identity(self) -> dict:
        """Claims that identify this user inside a token."""
        return {"sub": self.id, "username": self.username, "email": self.email}
