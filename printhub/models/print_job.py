# printhub/models/print_job.py
from sqlalchemy import (
    String,
    Numeric,
    DateTime,
    Integer,
    ForeignKey,
    func,
)
from printhub.db.base import Base
from sqlalchemy.orm import Mapped, mapped_column, relationship
from datetime import datetime
from decimal import Decimal
from typing import Optional

class PrintJobRecord(Base):
    """
    A persisted print job. It may exist before any order (cart) and is
    linked to an order during checkout reconciliation.

    Invariants:
    - many records may share the same file_ref
    - once linked, order_ref is only ever moved to another order, never cleared
    """

    __tablename__ = "print_jobs"

    # =========
    # 🔒 Identity & source
    # =========
    id :Mapped[str] = mapped_column(String(36), primary_key=True, comment="Internal UUID")

    print_id :Mapped[str] = mapped_column(String(36), unique=True, nullable=False, comment="External print job id")

    file_ref :Mapped[str] = mapped_column(String(1000), nullable=False, index=True, comment="File store reference (URL)")

    original_filename :Mapped[str] = mapped_column(String(255), nullable=False, comment="Filename as uploaded")

    # =========
    # 🖨 Print options
    # =========
    copies :Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    size :Mapped[str] = mapped_column(String(20), nullable=False, default="A4")
    color :Mapped[str] = mapped_column(String(30), nullable=False, default="Black & White")
    sides :Mapped[str] = mapped_column(String(30), nullable=False, default="Single-sided")
    pages :Mapped[str] = mapped_column(String(255), nullable=False, default="1", comment="Page selection expression")
    schedule :Mapped[str] = mapped_column(String(100), nullable=False, default="Not specified", comment="Pickup schedule label")
    estimated_price :Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))

    # =========
    # 🔗 Order link
    # =========
    order_ref :Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("orders.id"),
        nullable=True,
        index=True,
        comment="Internal id of the linked order",
    )

    created_at :Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    updated_at :Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    order = relationship("Order", back_populates="print_jobs")

    def __repr__(self) -> str:
        return (
            f"<PrintJobRecord print_id={self.print_id} "
            f"file={self.original_filename} "
            f"order={self.order_ref}>"
        )
