"""VAT add/remove calculator and the known-tax cost breakdown."""

import logging
from decimal import Decimal

from src.calculators.errors import InvalidInput
from src.calculators.models import ZERO, CostBreakdown, VatBreakdown, to_decimal

logger = logging.getLogger(__name__)


def _non_negative(name: str, value: Decimal) -> Decimal:
    if value < 0:
        raise InvalidInput(f"{name} must be non-negative, got {value}")
    return value


def add_vat(amount: Decimal | int | float | str, rate: Decimal | int | float | str) -> VatBreakdown:
    """Add VAT to a VAT-exclusive amount."""
    amount = _non_negative("Amount", to_decimal(amount))
    rate = _non_negative("VAT rate", to_decimal(rate))
    vat = amount * rate
    return VatBreakdown(base=amount, vat=vat, total=amount + vat)


def remove_vat(amount: Decimal | int | float | str, rate: Decimal | int | float | str) -> VatBreakdown:
    """Extract the VAT contained in a VAT-inclusive amount."""
    amount = _non_negative("Amount", to_decimal(amount))
    rate = _non_negative("VAT rate", to_decimal(rate))
    base = amount / (1 + rate)
    return VatBreakdown(base=base, vat=amount - base, total=amount)


def breakdown_known_taxes(
    total_price: Decimal | int | float | str,
    tariff: Decimal | int | float | str = 0,
    vat: Decimal | int | float | str = 0,
) -> CostBreakdown:
    """Split a total price when the tariff and VAT amounts are already known.

    The shop fee is whatever remains; it is reported as 0 when the stated
    taxes exceed the total.
    """
    total_price = _non_negative("Total price", to_decimal(total_price))
    tariff = _non_negative("Tariff", to_decimal(tariff))
    vat = _non_negative("VAT", to_decimal(vat))

    shop_fee = total_price - tariff - vat
    if shop_fee < 0:
        logger.warning(
            "Tariff %s and VAT %s exceed total price %s; reporting shop fee as 0",
            tariff, vat, total_price,
        )
        shop_fee = ZERO

    return CostBreakdown(total_price=total_price, tariff=tariff, vat=vat, shop_fee=shop_fee)
