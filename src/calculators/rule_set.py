"""Typed, validated tax rule set for one jurisdiction.

A ``TaxRuleSet`` is an immutable value passed explicitly into every
calculation. Rates are decimal fractions (0.18 = 18%); excise duties are flat
per-unit amounts.
"""

from collections.abc import Mapping, Sequence
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    ValidationError,
    field_serializer,
    field_validator,
    model_validator,
)

from src.calculators.errors import InvalidCategory, InvalidRuleSet


def frozen_mapping(value: Mapping) -> Mapping:
    """Read-only view over a private copy of ``value``."""
    return MappingProxyType(dict(value))


def _require_non_negative(value: Decimal, what: str) -> Decimal:
    if value < 0:
        raise ValueError(f"{what} must be non-negative, got {value}")
    return value


class Category(str, Enum):
    """Item categories with their own tariff rate."""

    FOOD = "food"
    FUEL = "fuel"
    VEHICLES = "vehicles"
    CLOTHING = "clothing"
    ELECTRONICS = "electronics"
    MEDICAL = "medical"
    OTHER = "other"

    @classmethod
    def parse(cls, value: "Category | str | None") -> "Category":
        """Resolve a category, falling back to ``other`` for unknown names."""
        if isinstance(value, Category):
            return value
        if value is None:
            return cls.OTHER
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.OTHER


class Origin(str, Enum):
    LOCAL = "Local"
    IMPORTED = "Imported"


class Powertrain(str, Enum):
    PETROL = "petrol"
    HYBRID = "hybrid"
    ELECTRIC = "electric"


class ExciseItem(str, Enum):
    """Goods carrying a flat per-unit excise duty."""

    FUEL = "fuel"  # per liter
    ALCOHOL = "alcohol"  # per liter
    TOBACCO = "tobacco"  # per stick


class _FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class TaxBracket(_FrozenModel):
    """A single marginal income tax bracket."""

    limit: Decimal | None  # upper bound; None = no cap
    rate: Decimal

    @field_validator("rate")
    @classmethod
    def _non_negative_rate(cls, value: Decimal) -> Decimal:
        return _require_non_negative(value, "Bracket rate")


def validate_brackets(brackets: Sequence[TaxBracket]) -> None:
    """Check that brackets partition [0, inf) with no gaps or overlaps.

    Raises:
        InvalidRuleSet: empty schedule, non-increasing limits, or a cap
            anywhere other than the final bracket.
    """
    if not brackets:
        raise InvalidRuleSet("Income tax schedule has no brackets")

    previous = Decimal("0")
    for index, bracket in enumerate(brackets):
        is_last = index == len(brackets) - 1
        if bracket.limit is None:
            if not is_last:
                raise InvalidRuleSet(f"Bracket {index} has no cap but is not the final bracket")
            continue
        if is_last:
            raise InvalidRuleSet("Final bracket must have no cap (limit = None)")
        if bracket.limit <= previous:
            raise InvalidRuleSet(
                f"Bracket limits must be strictly increasing: {bracket.limit} <= {previous}"
            )
        previous = bracket.limit


class ExciseDuties(_FrozenModel):
    fuel_per_liter: Decimal
    alcohol_per_liter: Decimal
    tobacco_per_stick: Decimal

    @field_validator("*")
    @classmethod
    def _non_negative(cls, value: Decimal) -> Decimal:
        return _require_non_negative(value, "Excise duty")

    def per_unit(self, item: ExciseItem) -> Decimal:
        if item is ExciseItem.FUEL:
            return self.fuel_per_liter
        if item is ExciseItem.ALCOHOL:
            return self.alcohol_per_liter
        return self.tobacco_per_stick


class LuxuryTaxBand(_FrozenModel):
    """Luxury tax charged on the CIF value above ``threshold``."""

    threshold: Decimal
    rate: Decimal

    @field_validator("threshold", "rate")
    @classmethod
    def _non_negative(cls, value: Decimal) -> Decimal:
        return _require_non_negative(value, "Luxury tax threshold and rate")


class VehicleImportRules(_FrozenModel):
    cid_rate: Decimal
    excise_per_cc: Decimal = Decimal("0")
    luxury_tax: Mapping[Powertrain, LuxuryTaxBand]

    @field_validator("cid_rate", "excise_per_cc")
    @classmethod
    def _non_negative(cls, value: Decimal) -> Decimal:
        return _require_non_negative(value, "Vehicle import rate")

    @field_validator("luxury_tax")
    @classmethod
    def _every_powertrain(cls, value: Mapping[Powertrain, LuxuryTaxBand]) -> Mapping[Powertrain, LuxuryTaxBand]:
        missing = [p.value for p in Powertrain if p not in value]
        if missing:
            raise ValueError(f"Luxury tax bands missing for: {', '.join(missing)}")
        return frozen_mapping(value)

    @field_serializer("luxury_tax", mode="wrap")
    def _dump_luxury_tax(self, value, handler):
        return handler(dict(value))


class RuleConstants(_FrozenModel):
    """Figures used by derived estimations, never by the core tax math."""

    avg_fuel_consumption_per_km: Decimal
    default_fuel_price_per_liter: Decimal

    @field_validator("*")
    @classmethod
    def _non_negative(cls, value: Decimal) -> Decimal:
        return _require_non_negative(value, "Rule constant")


class TaxRuleSet(_FrozenModel):
    """All rates, brackets and thresholds for one country."""

    country_code: str
    vat_rate: Decimal
    pal_rate: Decimal
    ssl_rate: Decimal
    stamp_duty_rate: Decimal
    tariffs: Mapping[Category, Decimal]
    excise_duties: ExciseDuties
    vehicle_import: VehicleImportRules
    income_tax_brackets: tuple[TaxBracket, ...]
    constants: RuleConstants

    @field_validator("vat_rate", "pal_rate", "ssl_rate", "stamp_duty_rate")
    @classmethod
    def _non_negative(cls, value: Decimal) -> Decimal:
        return _require_non_negative(value, "Rate")

    @field_validator("tariffs")
    @classmethod
    def _one_rate_per_category(cls, value: Mapping[Category, Decimal]) -> Mapping[Category, Decimal]:
        missing = [c.value for c in Category if c not in value]
        if missing:
            raise ValueError(f"Tariff rates missing for: {', '.join(missing)}")
        for category, rate in value.items():
            _require_non_negative(rate, f"Tariff for {category.value}")
        return frozen_mapping(value)

    @field_serializer("tariffs", mode="wrap")
    def _dump_tariffs(self, value, handler):
        return handler(dict(value))

    @model_validator(mode="after")
    def _brackets_partition(self) -> "TaxRuleSet":
        validate_brackets(self.income_tax_brackets)
        return self

    def tariff_for(self, category: Category | str | None) -> Decimal:
        """Tariff rate for a category, falling back to ``other``."""
        tariffs = self.tariffs or {}
        resolved = Category.parse(category)
        if resolved in tariffs:
            return tariffs[resolved]
        if Category.OTHER in tariffs:
            return tariffs[Category.OTHER]
        raise InvalidCategory(f"No tariff for {resolved.value!r} and no 'other' fallback")

    @classmethod
    def from_config(cls, data: Mapping[str, Any]) -> "TaxRuleSet":
        """Build a rule set from plain config data.

        Raises:
            InvalidRuleSet: the data is incomplete or malformed.
        """
        try:
            return cls.model_validate(dict(data))
        except ValidationError as exc:
            code = data.get("country_code", "?")
            raise InvalidRuleSet(f"Invalid tax rule set for {code}: {exc}") from exc
