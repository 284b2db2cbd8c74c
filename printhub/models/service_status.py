# printhub/models/service_status.py
from sqlalchemy import (
    String,
    Boolean,
    DateTime,
    func,
)
from printhub.db.base import Base
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime
from typing import Optional

class ServiceStatus(Base):
    """
    Append-only open/closed flag of the print shop. Newest row wins.
    """

    __tablename__ = "service_statuses"

    id :Mapped[str] = mapped_column(String(36), primary_key=True, comment="ServiceStatus UUID")

    is_open :Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    reason :Mapped[str] = mapped_column(String(500), nullable=False, default="", comment="Why the shop is closed")

    updated_by :Mapped[Optional[str]] = mapped_column(String(36), nullable=True, comment="Admin user id")

    created_at :Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<ServiceStatus open={self.is_open} reason={self.reason!r}>"
