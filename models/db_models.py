"""
SQLAlchemy ORM models.

Purpose:
- Define User, UserProfile and UserAddress tables
- Use SQLAlchemy async-compatible models
- Support migrations via Alembic (see alembic/versions)

Notes:
- Relationships load eagerly (selectin) since lazy loads are not allowed
  under AsyncSession.
- Deleting a User removes its profile and addresses (ORM cascade plus
  ON DELETE CASCADE in the schema).
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, DateTime, ForeignKey, Uuid
from sqlalchemy.orm import relationship
from core.db import Base


STATUS_ACTIVE = "ACTIVE"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    """
    Account record.

    Columns:
    - id: generated UUID
    - username/email: unique business keys, cannot be changed after creation
    - password_hash: salted PBKDF2 hash (see core.security)
    - status: account state, upper-case ("ACTIVE" on creation)
    - created_at/updated_at: audit timestamps
    """
    __tablename__ = "users"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    username = Column(String(255), unique=True, index=True, nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    status = Column(String(20), nullable=False, default=STATUS_ACTIVE, server_default=STATUS_ACTIVE)
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)

    # --- relationships ---
    profile = relationship(
        "UserProfile",
        back_populates="user",
        uselist=False,
        lazy="selectin",
        cascade="all, delete-orphan",
    )
    addresses = relationship(
        "UserAddress",
        back_populates="user",
        lazy="selectin",
        cascade="all, delete-orphan",
        order_by="UserAddress.created_at",
    )


class UserProfile(Base):
    """
    Personal details of a user; shares its primary key with users.id.
    """
    __tablename__ = "user_profiles"

    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    first_name = Column(String(255), nullable=False)
    last_name = Column(String(255), nullable=False)
    phone_number = Column(String(50), nullable=False)
    profile_image_url = Column(String(2048), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)

    user = relationship("User", back_populates="profile")


class UserAddress(Base):
    """
    Postal address owned by a user (a user may have many).
    """
    __tablename__ = "user_addresses"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    address_type = Column(String(50), nullable=True)  # Home, Work, ...
    address_line1 = Column(String(255), nullable=False)
    address_line2 = Column(String(255), nullable=True)
    city = Column(String(255), nullable=False)
    state = Column(String(255), nullable=False)
    zip_code = Column(String(20), nullable=False)
    country = Column(String(100), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)

    user = relationship("User", back_populates="addresses")
