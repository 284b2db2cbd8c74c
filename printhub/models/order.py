# printhub/models/order.py
from sqlalchemy import (
    String,
    Numeric,
    DateTime,
    Integer,
    Enum,
    JSON,
    ForeignKey,
    Index,
    func,
)
from printhub.db.base import Base
from printhub.db.enums import OrderStatus
from sqlalchemy.orm import Mapped, mapped_column, relationship
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

class Order(Base):
    """
    Checkout transaction.
    items keeps the normalized print job specs, in submission order,
    each with the price it was sold at. total_amount is frozen at checkout.
    """

    __tablename__ = "orders"
    __table_args__ = (
        Index("ix_orders_user_created", "user_id", "created_at"),
    )

    # =========
    # 🔒 Identity & ownership
    # =========
    id :Mapped[str] = mapped_column(String(36), primary_key=True, comment="Internal order UUID")

    order_id :Mapped[str] = mapped_column(
        String(32),
        unique=True,
        nullable=False,
        comment="External order identifier shown to users",
    )

    user_id :Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id"),
        nullable=False,
        comment="Owning user",
    )

    # =========
    # 🧾 Snapshot
    # =========
    items :Mapped[List[Dict[str, Any]]] = mapped_column(JSON, nullable=False, comment="Normalized print job specs")

    total_amount :Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, comment="Frozen order total")

    rate_table_version :Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
        comment="RateTable version current at checkout",
    )

    # =========
    # 📌 Status & payment
    # =========
    status :Mapped[OrderStatus] = mapped_column(
        Enum(OrderStatus, name="order_status"),
        nullable=False,
        default=OrderStatus.queued,
        index=True,
        comment="queued | done | cancelled",
    )

    payment_id :Mapped[Optional[str]] = mapped_column(String(255), nullable=True, comment="Payment confirmation token")

    # =========
    # ⏱ Timestamps
    # =========
    created_at :Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        comment="Order date",
    )

    updated_at :Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
        comment="Last update timestamp",
    )

    print_jobs = relationship("PrintJobRecord", back_populates="order")
    user = relationship("User")

    def __repr__(self) -> str:
        return (
            f"<Order order_id={self.order_id} "
            f"user={self.user_id} "
            f"status={self.status.value} "
            f"total={self.total_amount}>"
        )
