# printhub/models/rate_table.py
from sqlalchemy import (
    String,
    Numeric,
    DateTime,
    Integer,
    JSON,
    func,
)
from printhub.db.base import Base
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime
from decimal import Decimal
from typing import Dict, Optional

from printhub.services.pricing_engine import RateCard

class RateTable(Base):
    """
    Immutable pricing snapshot.
    Every admin update appends a new row with version + 1;
    the row with the highest version is the current one.
    """

    __tablename__ = "rate_tables"

    # =========
    # 🔒 Identity & version
    # =========
    id :Mapped[str] = mapped_column(String(36), primary_key=True, comment="RateTable UUID")

    version :Mapped[int] = mapped_column(
        Integer,
        unique=True,
        nullable=False,
        comment="Incremental version of the rate table",
    )

    # =========
    # 💰 Rates
    # =========
    black_white :Mapped[Decimal] = mapped_column(Numeric(10, 4), nullable=False, comment="Price per monochrome page")
    color :Mapped[Decimal] = mapped_column(Numeric(10, 4), nullable=False, comment="Price per color page")
    double_sided :Mapped[Decimal] = mapped_column(Numeric(10, 4), nullable=False, comment="Per-page duplex surcharge")
    paper_size_multipliers :Mapped[Dict[str, float]] = mapped_column(
        JSON,
        nullable=False,
        comment="Paper size -> price multiplier",
    )
    tax_percentage :Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False, comment="Tax (GST) percentage")

    # =========
    # 📌 Audit
    # =========
    updated_by :Mapped[Optional[str]] = mapped_column(
        String(36),
        nullable=True,
        comment="Admin who created this version; NULL for the bootstrap default",
    )

    created_at :Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        comment="Creation timestamp",
    )

    def rate_card(self) -> RateCard:
        '''Value object consumed by the pricing engine'''
        return RateCard(
            black_white=Decimal(str(self.black_white)),
            color=Decimal(str(self.color)),
            double_sided=Decimal(str(self.double_sided)),
            paper_size_multipliers={
                size: Decimal(str(multiplier))
                for size, multiplier in (self.paper_size_multipliers or {}).items()
            },
            tax_percentage=Decimal(str(self.tax_percentage)),
        )

    def __repr__(self) -> str:
        return (
            f"<RateTable id={self.id} "
            f"version={self.version} "
            f"bw={self.black_white} color={self.color}>"
        )
