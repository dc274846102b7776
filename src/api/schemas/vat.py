"""Request and response schemas for the VAT calculator."""

from decimal import Decimal

from pydantic import BaseModel, Field

from src.domain.vat import VatBreakdown, VatMode

DEFAULT_VAT_RATE = Decimal(20)


class VatCalculationRequest(BaseModel):
    """Calculator input. Range checks happen in the calculation itself."""

    amount: Decimal = Field(
        description="Net price (add) or total price (remove)", examples=["100"]
    )
    rate: Decimal = Field(
        default=DEFAULT_VAT_RATE, description="VAT rate in percent", examples=["20"]
    )
    mode: VatMode = Field(default=VatMode.ADD, description="Calculation direction")


class VatCalculationResponse(BaseModel):
    """Calculator output, amounts rounded to two decimal places."""

    net_price: Decimal = Field(examples=["100.00"])
    vat_amount: Decimal = Field(examples=["20.00"])
    total_price: Decimal = Field(examples=["120.00"])
    vat_rate: Decimal = Field(examples=["20"])
    mode: VatMode

    @classmethod
    def from_breakdown(cls, breakdown: VatBreakdown) -> "VatCalculationResponse":
        """Build the response from a computed breakdown."""
        return cls(
            net_price=breakdown.net,
            vat_amount=breakdown.vat,
            total_price=breakdown.total,
            vat_rate=breakdown.rate,
            mode=breakdown.mode,
        )
