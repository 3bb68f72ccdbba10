"""Fuel cost estimate from the rule set's auxiliary constants."""

from decimal import Decimal

from src.calculators.errors import InvalidInput
from src.calculators.models import FuelCostEstimate, to_decimal
from src.calculators.rule_set import TaxRuleSet


def estimate_fuel_cost(
    distance_km: Decimal | int | float | str,
    rule_set: TaxRuleSet,
    price_per_liter: Decimal | int | float | str | None = None,
) -> FuelCostEstimate:
    """Estimate fuel used over a distance, its cost and the excise inside it.

    Uses the average consumption and, unless a price is given, the default
    fuel price from ``rule_set.constants``.
    """
    distance = to_decimal(distance_km)
    if distance < 0:
        raise InvalidInput(f"Distance must be non-negative, got {distance}")

    constants = rule_set.constants
    price = to_decimal(price_per_liter) if price_per_liter is not None else constants.default_fuel_price_per_liter
    if price < 0:
        raise InvalidInput(f"Fuel price must be non-negative, got {price}")

    liters = distance * constants.avg_fuel_consumption_per_km
    return FuelCostEstimate(
        distance_km=distance,
        liters=liters,
        price_per_liter=price,
        cost=liters * price,
        excise_duty=liters * rule_set.excise_duties.fuel_per_liter,
    )
