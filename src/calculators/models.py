"""Immutable result types returned by the calculators.

All amounts are unrounded ``Decimal`` values; rounding belongs to the
presentation layer (see ``round_money``).
"""

from collections.abc import Mapping
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from src.calculators.errors import InvalidInput
from src.calculators.rule_set import Category, Origin, Powertrain, frozen_mapping

ZERO = Decimal("0")
CENT = Decimal("0.01")


def to_decimal(value: Decimal | int | float | str) -> Decimal:
    """Coerce caller input to Decimal; floats go through str() to avoid binary noise.

    Raises:
        InvalidInput: the value is not a number, or is NaN or infinite.
    """
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except InvalidOperation as exc:
        raise InvalidInput(f"Not a number: {value!r}") from exc
    if not amount.is_finite():
        raise InvalidInput(f"Amount must be finite, got {value!r}")
    return amount


def round_money(amount: Decimal) -> Decimal:
    """Round to cents for display. Never used between calculation stages."""
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


class _Result(BaseModel):
    model_config = ConfigDict(frozen=True)


class BracketSlice(_Result):
    """The portion of income taxed inside one bracket."""

    lower: Decimal
    upper: Decimal | None  # None = no cap
    rate: Decimal
    taxable_amount: Decimal
    tax: Decimal


class IncomeTaxResult(_Result):
    gross_income: Decimal
    total_tax: Decimal
    net_income: Decimal
    effective_rate: Decimal  # fraction of gross income
    breakdown: tuple[BracketSlice, ...] = ()


class TaxDetails(_Result):
    """Itemized indirect taxes on one purchase.

    ``price`` is the tax-inclusive amount. ``base_price + total_tax == price``
    holds unless ``clamped`` is set, in which case the taxes exceeded the price
    and ``base_price`` was reported as 0.
    """

    origin: Origin
    category: Category | None = None
    tariff: Decimal = ZERO
    excise_duty: Decimal = ZERO
    other_levies: Decimal = ZERO
    levies: Mapping[str, Decimal] = Field(default_factory=dict, validate_default=True)
    vat: Decimal = ZERO
    total_tax: Decimal = ZERO
    base_price: Decimal = ZERO
    price: Decimal = ZERO
    clamped: bool = False

    @field_validator("levies")
    @classmethod
    def _read_only_levies(cls, value: Mapping[str, Decimal]) -> Mapping[str, Decimal]:
        return frozen_mapping(value)

    @field_serializer("levies", mode="wrap")
    def _dump_levies(self, value, handler):
        return handler(dict(value))


class VehicleImportTaxDetails(TaxDetails):
    """Import taxes on a vehicle; ``tariff`` carries the customs import duty."""

    powertrain: Powertrain
    customs_duty: Decimal
    luxury_tax: Decimal
    landed_cost: Decimal


class VatBreakdown(_Result):
    base: Decimal
    vat: Decimal
    total: Decimal


class CostBreakdown(_Result):
    total_price: Decimal
    tariff: Decimal
    vat: Decimal
    shop_fee: Decimal


class FuelCostEstimate(_Result):
    distance_km: Decimal
    liters: Decimal
    price_per_liter: Decimal
    cost: Decimal
    excise_duty: Decimal


class TaxSummary(_Result):
    """Totals over several analyzed purchases.

    ``total_base`` is the combined shop fee; ``total_other_tax`` is every tax
    except VAT (tariff, excise and levies).
    """

    item_count: int = 0
    total_base: Decimal = ZERO
    total_vat: Decimal = ZERO
    total_other_tax: Decimal = ZERO
    total_tax: Decimal = ZERO
    total_price: Decimal = ZERO
