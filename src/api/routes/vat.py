"""Public VAT calculator endpoint."""

from fastapi import APIRouter

from src.api.constants import VAT_PREFIX
from src.api.schemas.vat import VatCalculationRequest, VatCalculationResponse
from src.domain.vat import calculate_vat

router = APIRouter(prefix=VAT_PREFIX, tags=["vat"])


@router.post("/calculate", response_model=VatCalculationResponse)
async def calculate(request: VatCalculationRequest) -> VatCalculationResponse:
    """Add VAT to a net price or extract it from a total price."""
    breakdown = calculate_vat(request.amount, request.rate, request.mode)
    return VatCalculationResponse.from_breakdown(breakdown)
