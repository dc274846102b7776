"""Unit tests for the VAT calculator arithmetic."""

from decimal import Decimal

import pytest
import pytest_check

from src.core.exceptions import ValidationError
from src.domain.vat import (
    INVALID_NET_MESSAGE,
    INVALID_RATE_MESSAGE,
    INVALID_TOTAL_MESSAGE,
    VatMode,
    calculate_vat,
)


@pytest.mark.unit
class TestCalculateVat:
    """Adding and removing VAT."""

    def test_add_vat(self) -> None:
        """100 net at 20% is 20 VAT and 120 total."""
        breakdown = calculate_vat(100, 20, VatMode.ADD)

        with pytest_check.check:
            assert breakdown.net == Decimal("100.00")
        with pytest_check.check:
            assert breakdown.vat == Decimal("20.00")
        with pytest_check.check:
            assert breakdown.total == Decimal("120.00")
        with pytest_check.check:
            assert breakdown.mode is VatMode.ADD

    def test_remove_vat(self) -> None:
        """120 total at 20% is 100 net and 20 VAT."""
        breakdown = calculate_vat(120, 20, VatMode.REMOVE)

        with pytest_check.check:
            assert breakdown.net == Decimal("100.00")
        with pytest_check.check:
            assert breakdown.vat == Decimal("20.00")
        with pytest_check.check:
            assert breakdown.total == Decimal("120.00")

    @pytest.mark.parametrize(
        ("amount", "rate", "mode", "net", "vat", "total"),
        [
            ("100", "17.5", VatMode.ADD, "100.00", "17.50", "117.50"),
            ("0.25", "10", VatMode.ADD, "0.25", "0.03", "0.28"),
            ("100", "20", VatMode.REMOVE, "83.33", "16.67", "100.00"),
            ("50", "100", VatMode.ADD, "50.00", "50.00", "100.00"),
            ("9.99", "5", VatMode.REMOVE, "9.51", "0.48", "9.99"),
        ],
    )
    def test_rounding_half_up(
        self,
        amount: str,
        rate: str,
        mode: VatMode,
        net: str,
        vat: str,
        total: str,
    ) -> None:
        """Every amount is rounded to cents, halves away from zero."""
        breakdown = calculate_vat(amount, rate, mode)

        assert (breakdown.net, breakdown.vat, breakdown.total) == (
            Decimal(net),
            Decimal(vat),
            Decimal(total),
        )

    @pytest.mark.parametrize("rate", ["0", "-5", "100.01", "abc", "NaN", "Infinity"])
    def test_invalid_rate(self, rate: str) -> None:
        """Rates outside (0, 100] are rejected."""
        with pytest.raises(ValidationError, match=r"valid VAT rate \(0-100%\)"):
            calculate_vat(100, rate, VatMode.ADD)

    @pytest.mark.parametrize(
        ("mode", "message"),
        [(VatMode.ADD, INVALID_NET_MESSAGE), (VatMode.REMOVE, INVALID_TOTAL_MESSAGE)],
    )
    @pytest.mark.parametrize("amount", ["0", "-1", "", "ten"])
    def test_invalid_amount(self, amount: str, mode: VatMode, message: str) -> None:
        """Non-positive or non-numeric amounts name the side being entered."""
        with pytest.raises(ValidationError) as exc_info:
            calculate_vat(amount, 20, mode)

        assert exc_info.value.message == message
        assert exc_info.value.context["field"] == "amount"

    def test_rate_is_checked_first(self) -> None:
        """With both inputs invalid the rate error is reported."""
        with pytest.raises(ValidationError) as exc_info:
            calculate_vat(-1, 0, VatMode.ADD)

        assert exc_info.value.message == INVALID_RATE_MESSAGE
