# printhub/models/user.py
from sqlalchemy import (
    String,
    DateTime,
    Enum,
    func,
)
from printhub.db.base import Base
from printhub.db.enums import UserRole
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime
from typing import Optional

class User(Base):
    """
    Student or print shop administrator.
    """

    __tablename__ = "users"

    id :Mapped[str] = mapped_column(String(36), primary_key=True, comment="User UUID")

    name :Mapped[str] = mapped_column(String(100), nullable=False, comment="Display name")

    email :Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        comment="Login email, unique",
    )

    password_hash :Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Hashed password for authentication",
    )

    role :Mapped[UserRole] = mapped_column(
        Enum(UserRole, name="user_role"),
        nullable=False,
        default=UserRole.student,
        comment="student | admin",
    )

    created_at :Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        comment="Account creation timestamp",
    )

    last_login :Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        comment="Last successful login",
    )

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.admin

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email} role={self.role.value}>"
