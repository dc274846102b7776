"""VAT arithmetic for the public calculator.

All arithmetic is done in :class:`~decimal.Decimal` and every output is
quantized to two places with half-up rounding, so 0.125 is shown as 0.13.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import StrEnum
from typing import Final

from src.core.exceptions import ValidationError

HUNDRED: Final = Decimal(100)
CENTS: Final = Decimal("0.01")

INVALID_RATE_MESSAGE: Final = "Please enter a valid VAT rate (0-100%)"
INVALID_NET_MESSAGE: Final = "Please enter a valid net price"
INVALID_TOTAL_MESSAGE: Final = "Please enter a valid total price"


class VatMode(StrEnum):
    """Which side of the calculation the amount is on."""

    ADD = "add"
    """The amount is net; VAT is added to it."""

    REMOVE = "remove"
    """The amount is gross; VAT is extracted from it."""


@dataclass(frozen=True, slots=True)
class VatBreakdown:
    """A computed VAT split."""

    net: Decimal
    vat: Decimal
    total: Decimal
    rate: Decimal
    mode: VatMode


def _money(value: Decimal) -> Decimal:
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def _to_decimal(value: Decimal | int | str) -> Decimal:
    try:
        return Decimal(value)
    except InvalidOperation:
        return Decimal("NaN")


def calculate_vat(
    amount: Decimal | int | str, rate_percent: Decimal | int | str, mode: VatMode
) -> VatBreakdown:
    """Derive net, VAT and total from one amount and a rate.

    Args:
        amount: Net price (``ADD``) or total price (``REMOVE``).
        rate_percent: VAT rate in percent, within (0, 100].
        mode: Calculation direction.

    Returns:
        VatBreakdown: Amounts rounded to two decimal places.

    Raises:
        ValidationError: If the rate is out of range or the amount is not
            positive. The message is meant for end users.

    Examples:
        >>> calculate_vat(100, 20, VatMode.ADD).total
        Decimal('120.00')
        >>> calculate_vat(120, 20, VatMode.REMOVE).net
        Decimal('100.00')
    """
    rate = _to_decimal(rate_percent)
    if not rate.is_finite() or rate <= 0 or rate > HUNDRED:
        raise ValidationError(
            INVALID_RATE_MESSAGE, context={"field": "rate", "value": str(rate_percent)}
        )

    value = _to_decimal(amount)
    if not value.is_finite() or value <= 0:
        message = INVALID_NET_MESSAGE if mode is VatMode.ADD else INVALID_TOTAL_MESSAGE
        raise ValidationError(
            message, context={"field": "amount", "value": str(amount)}
        )

    factor = rate / HUNDRED
    if mode is VatMode.ADD:
        net = value
        vat = net * factor
        total = net + vat
    else:
        total = value
        net = total / (1 + factor)
        vat = total - net

    return VatBreakdown(
        net=_money(net), vat=_money(vat), total=_money(total), rate=rate, mode=mode
    )
