from decimal import Decimal
from datetime import datetime
from typing import Dict, Optional

from pydantic import BaseModel, Field, AliasChoices, field_validator

from printhub.models.rate_table import RateTable
from printhub.services.pricing_engine import RateCard, DEFAULT_PAPER_SIZE_MULTIPLIERS, DEFAULT_RATE_CARD


class RateTableUpdateRequest(BaseModel):
    '''
    Body of PUT /api/pricing. Both snake_case and the camelCase names used by
    the web client are accepted.

    black_white: 0.1 - 10.0
    color: 0.1 - 20.0
    double_sided: 0 - 5.0, omitted -> default surcharge
    paper_size_multipliers: merged over the defaults so A4/A3/Letter/Legal always exist
    tax_percentage: 0 - 30
    '''
    black_white: Decimal = Field(
        ge=Decimal("0.1"), le=Decimal("10.0"),
        validation_alias=AliasChoices("black_white", "blackWhite"),
    )
    color: Decimal = Field(ge=Decimal("0.1"), le=Decimal("20.0"))
    double_sided: Optional[Decimal] = Field(
        default=None, ge=Decimal("0"), le=Decimal("5.0"),
        validation_alias=AliasChoices("double_sided", "doubleSided"),
    )
    paper_size_multipliers: Optional[Dict[str, Decimal]] = Field(
        default=None,
        validation_alias=AliasChoices("paper_size_multipliers", "paperSizeMultipliers"),
    )
    tax_percentage: Decimal = Field(
        ge=Decimal("0"), le=Decimal("30"),
        validation_alias=AliasChoices("tax_percentage", "taxPercentage", "gstPercentage"),
    )

    @field_validator("paper_size_multipliers")
    @classmethod
    def _multipliers_positive(cls, value):
        if value is None:
            return value
        for size, multiplier in value.items():
            if not str(size).strip():
                raise ValueError("paper size name must not be blank")
            if multiplier <= 0:
                raise ValueError(f"multiplier for {size} must be greater than 0")
        return value

    def to_rate_card(self) -> RateCard:
        multipliers = dict(DEFAULT_PAPER_SIZE_MULTIPLIERS)
        for size, multiplier in (self.paper_size_multipliers or {}).items():
            multipliers[str(size).strip()] = multiplier
        return RateCard(
            black_white=self.black_white,
            color=self.color,
            double_sided=self.double_sided if self.double_sided is not None else DEFAULT_RATE_CARD.double_sided,
            paper_size_multipliers=multipliers,
            tax_percentage=self.tax_percentage,
        )


class RateTablePublicDTO(BaseModel):
    '''Rates shown to students; no audit fields'''
    black_white: float
    color: float
    double_sided: float
    paper_size_multipliers: Dict[str, float]
    tax_percentage: float

    @classmethod
    def from_orm_model(cls, rate_table: RateTable) -> "RateTablePublicDTO":
        return cls(
            black_white=float(rate_table.black_white),
            color=float(rate_table.color),
            double_sided=float(rate_table.double_sided),
            paper_size_multipliers={
                size: float(multiplier)
                for size, multiplier in (rate_table.paper_size_multipliers or {}).items()
            },
            tax_percentage=float(rate_table.tax_percentage),
        )


class RateTableAdminDTO(RateTablePublicDTO):
    id: str
    version: int
    updated_by: Optional[str] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_orm_model(cls, rate_table: RateTable) -> "RateTableAdminDTO":
        public = RateTablePublicDTO.from_orm_model(rate_table)
        return cls(
            **public.model_dump(),
            id=rate_table.id,
            version=rate_table.version,
            updated_by=rate_table.updated_by,
            created_at=rate_table.created_at,
        )
