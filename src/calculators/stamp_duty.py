"""Stamp duty on lease and hire agreements."""

from decimal import Decimal

from src.calculators.errors import InvalidInput
from src.calculators.models import to_decimal


def compute_stamp_duty(
    lease_value: Decimal | int | float | str,
    rate: Decimal | int | float | str,
) -> Decimal | None:
    """Flat-rate stamp duty on a lease or hire value.

    Returns None when the value is zero or negative; no duty is calculated.
    """
    lease_value = to_decimal(lease_value)
    if lease_value <= 0:
        return None
    rate = to_decimal(rate)
    if rate < 0:
        raise InvalidInput(f"Stamp duty rate must be non-negative, got {rate}")
    return lease_value * rate
