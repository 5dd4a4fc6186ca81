from sqlalchemy import Column, String
from sqlalchemy.orm import validates

from channel_accounts.models.base_model import Base, BaseModel


class Account(BaseModel, Base):
    """
    One row per account.

    ``refresh_token_hash`` holds the SHA-256 digest of the single live refresh
    token, or NULL when the account is signed out everywhere.
    """
    __tablename__ = "accounts"

    username = Column(String(64), nullable=False, unique=True, index=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    display_name = Column(String(255), nullable=False)
    avatar = Column(String(2048), nullable=True)
    cover_image = Column(String(2048), nullable=True)
    password_hash = Column(String(255), nullable=False)
    refresh_token_hash = Column(String(64), nullable=True)

    @property
    def password(self):
        raise AttributeError("Password: Write-only field")

    @validates("username", "email")
    def _lower(self, key, value):
        return value.strip().lower() if isinstance(value, str) else value

    @validates("password_hash")
    def _only_hashes(self, key, value):
        # Anything but an argon2 encoded hash here is a plaintext password leaking into the store
        if not isinstance(value, str) or not value.startswith("$argon2"):
            raise ValueError("password_hash must be an argon2 encoded hash")
        return value
