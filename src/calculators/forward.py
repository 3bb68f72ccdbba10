"""Forward tax composer: tariff -> excise -> levies -> VAT.

The steps run in a fixed order because each base includes the taxes added
before it. Local goods skip the customs steps (tariff and excise).
"""

import logging
from decimal import Decimal
from typing import NamedTuple

from src.calculators.errors import InvalidInput, InvalidRuleSet
from src.calculators.models import ZERO, TaxDetails, to_decimal
from src.calculators.rule_set import Category, ExciseItem, Origin, TaxRuleSet

logger = logging.getLogger(__name__)


class TaxComponents(NamedTuple):
    """Taxes computed on one base amount, before any shop-fee logic."""

    tariff: Decimal
    excise_duty: Decimal
    levies: dict[str, Decimal]
    vat: Decimal

    @property
    def other_levies(self) -> Decimal:
        return sum(self.levies.values(), ZERO)

    @property
    def total(self) -> Decimal:
        return self.tariff + self.excise_duty + self.other_levies + self.vat


def require_rate(rule_set: TaxRuleSet, name: str) -> Decimal:
    """Fetch a rate, failing loudly for rule sets built without validation."""
    value = getattr(rule_set, name, None)
    if value is None:
        raise InvalidRuleSet(f"Rule set {getattr(rule_set, 'country_code', '?')} has no {name}")
    return value


def resolve_excise_item(category: Category, excise_item: ExciseItem | None) -> ExciseItem | None:
    if excise_item is not None:
        return excise_item
    if category is Category.FUEL:
        return ExciseItem.FUEL
    return None


def compute_components(
    price: Decimal,
    category: Category,
    rule_set: TaxRuleSet,
    is_imported: bool,
    quantity: Decimal = ZERO,
    excise_item: ExciseItem | None = None,
) -> TaxComponents:
    """Apply every tax step to ``price`` treated as the taxable base."""
    vat_rate = require_rate(rule_set, "vat_rate")
    ssl_rate = require_rate(rule_set, "ssl_rate")

    tariff = ZERO
    excise = ZERO
    levies: dict[str, Decimal] = {}

    if is_imported:
        tariff = price * rule_set.tariff_for(category)

        item = resolve_excise_item(category, excise_item)
        if item is not None and quantity > 0:
            duties = rule_set.excise_duties
            if duties is None:
                raise InvalidRuleSet(f"Rule set {rule_set.country_code} has no excise duties")
            excise = quantity * duties.per_unit(item)

        # PAL is a port levy, so it only exists for imported goods
        levies["pal"] = (price + tariff) * require_rate(rule_set, "pal_rate")

    levies["ssl"] = (price + tariff) * ssl_rate

    vat_base = price + tariff + sum(levies.values(), ZERO)
    vat = vat_base * vat_rate

    return TaxComponents(tariff=tariff, excise_duty=excise, levies=levies, vat=vat)


def compose_forward_tax(
    price: Decimal | int | float | str,
    category: Category | str | None,
    rule_set: TaxRuleSet,
    is_imported: bool,
    quantity: Decimal | int | float | str = 0,
    excise_item: ExciseItem | None = None,
    price_includes_tax: bool = True,
) -> TaxDetails:
    """Compose the full tax breakdown for one item.

    Args:
        price: The amount taxes are computed on. By default this is the shelf
            price and the base (shop fee) is what remains after taxes.
        category: Item category; unknown names fall back to ``other``.
        rule_set: Rates for the jurisdiction.
        is_imported: Origin as decided by the caller or a classifier.
        quantity: Units for flat excise (liters, sticks).
        excise_item: Excise rule to apply; fuel purchases default to fuel.
        price_includes_tax: When False, ``price`` is the pre-tax base and the
            result's ``price`` is the base plus all taxes.

    Raises:
        InvalidInput: negative price or quantity.
        InvalidRuleSet: a required rate is missing.
    """
    price = to_decimal(price)
    quantity = to_decimal(quantity)
    if price < 0:
        raise InvalidInput(f"Price must be non-negative, got {price}")
    if quantity < 0:
        raise InvalidInput(f"Quantity must be non-negative, got {quantity}")

    resolved = Category.parse(category)
    components = compute_components(price, resolved, rule_set, is_imported, quantity, excise_item)
    total_tax = components.total

    clamped = False
    if price_includes_tax:
        gross = price
        base_price = price - total_tax
        if base_price < 0:
            logger.warning(
                "Taxes %s exceed price %s for %s item; reporting shop fee as 0",
                total_tax, price, resolved.value,
            )
            base_price = ZERO
            clamped = True
    else:
        base_price = price
        gross = price + total_tax

    return TaxDetails(
        origin=Origin.IMPORTED if is_imported else Origin.LOCAL,
        category=resolved,
        tariff=components.tariff,
        excise_duty=components.excise_duty,
        other_levies=components.other_levies,
        levies=components.levies,
        vat=components.vat,
        total_tax=total_tax,
        base_price=base_price,
        price=gross,
        clamped=clamped,
    )
