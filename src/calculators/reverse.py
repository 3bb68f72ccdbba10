"""Reverse tax decomposer: recover the pre-tax base from a final price.

Two distinct operations live here and must not be merged:

* ``decompose_vat_and_levy``: the simple shelf-price split where a flat levy
  (SSL) is charged on the VAT-inclusive amount, i.e. *after* VAT.
* the category-aware inverse of ``compose_forward_tax``, where levies are
  charged *before* VAT. For a fixed category, origin and quantity the gross
  price is affine in the base (flat excise is the intercept), so the base is
  solved directly; bounded bisection is kept as a fallback for results that
  miss the tolerance.
"""

import logging
from decimal import Decimal

from config.settings import settings
from src.calculators.errors import InvalidInput, ReverseSolveDidNotConverge
from src.calculators.forward import TaxComponents, compute_components, require_rate
from src.calculators.models import ZERO, TaxDetails, to_decimal
from src.calculators.rule_set import Category, ExciseItem, Origin, TaxRuleSet

logger = logging.getLogger(__name__)

_TWO = Decimal("2")


def decompose_vat_and_levy(
    final_price: Decimal | int | float | str,
    rule_set: TaxRuleSet,
) -> TaxDetails:
    """Split a final price into base, VAT and SSL.

    Solves ``final = base * (1 + vat_rate) * (1 + ssl_rate)``; the levy is
    then charged on ``base + vat``.
    """
    final_price = to_decimal(final_price)
    if final_price < 0:
        raise InvalidInput(f"Final price must be non-negative, got {final_price}")

    vat_rate = require_rate(rule_set, "vat_rate")
    levy_rate = require_rate(rule_set, "ssl_rate")

    base = final_price / ((1 + vat_rate) * (1 + levy_rate))
    vat = base * vat_rate
    levy = (base + vat) * levy_rate

    return TaxDetails(
        origin=Origin.LOCAL,
        other_levies=levy,
        levies={"ssl": levy},
        vat=vat,
        total_tax=vat + levy,
        base_price=base,
        price=final_price,
    )


def _details(
    base: Decimal,
    components: TaxComponents,
    category: Category,
    is_imported: bool,
    final_price: Decimal,
    clamped: bool = False,
) -> TaxDetails:
    return TaxDetails(
        origin=Origin.IMPORTED if is_imported else Origin.LOCAL,
        category=category,
        tariff=components.tariff,
        excise_duty=components.excise_duty,
        other_levies=components.other_levies,
        levies=components.levies,
        vat=components.vat,
        total_tax=components.total,
        base_price=base,
        price=final_price,
        clamped=clamped,
    )


def solve_base_price(
    final_price: Decimal,
    category: Category,
    rule_set: TaxRuleSet,
    is_imported: bool,
    quantity: Decimal = ZERO,
    excise_item: ExciseItem | None = None,
    tolerance: Decimal | None = None,
    max_iterations: int | None = None,
) -> TaxDetails:
    """Find the base whose forward-composed gross equals ``final_price``.

    The gross price is ``floor + (1 + slope) * base``, where ``floor`` is the
    tax on a zero base (flat excise) and ``slope`` the tax per unit of base.

    Raises:
        ReverseSolveDidNotConverge: the direct solve missed the tolerance and
            bisection reached its iteration cap.
    """
    tol = to_decimal(tolerance if tolerance is not None else settings.reverse_tolerance)

    def components_at(base: Decimal) -> TaxComponents:
        return compute_components(base, category, rule_set, is_imported, quantity, excise_item)

    floor = components_at(ZERO)
    residual = floor.total - final_price
    if residual > tol:
        logger.warning(
            "Flat duties %s exceed final price %s for %s item; base clamped to 0",
            floor.total, final_price, category.value,
        )
        return _details(ZERO, floor, category, is_imported, final_price, clamped=True)
    if abs(residual) <= tol:
        return _details(ZERO, floor, category, is_imported, final_price)

    slope = components_at(Decimal("1")).total - floor.total
    base = (final_price - floor.total) / (1 + slope)
    components = components_at(base)
    residual = base + components.total - final_price
    if abs(residual) <= tol:
        return _details(base, components, category, is_imported, final_price)

    logger.debug("Direct solve for %s missed by %s; falling back to bisection", final_price, residual)
    return bisect_base_price(
        final_price, category, rule_set, is_imported,
        quantity=quantity, excise_item=excise_item,
        tolerance=tol, max_iterations=max_iterations,
    )


def bisect_base_price(
    final_price: Decimal,
    category: Category,
    rule_set: TaxRuleSet,
    is_imported: bool,
    quantity: Decimal = ZERO,
    excise_item: ExciseItem | None = None,
    tolerance: Decimal | None = None,
    max_iterations: int | None = None,
) -> TaxDetails:
    """Bisect on ``[0, final_price]`` for the base matching ``final_price``.

    Raises:
        ReverseSolveDidNotConverge: the iteration cap was reached first.
    """
    tol = to_decimal(tolerance if tolerance is not None else settings.reverse_tolerance)
    max_iter = max_iterations if max_iterations is not None else settings.reverse_max_iterations

    def components_at(base: Decimal) -> TaxComponents:
        return compute_components(base, category, rule_set, is_imported, quantity, excise_item)

    residual = components_at(ZERO).total - final_price
    low, high = ZERO, final_price
    for iteration in range(1, max_iter + 1):
        mid = (low + high) / _TWO
        components = components_at(mid)
        residual = mid + components.total - final_price
        if abs(residual) <= tol:
            logger.debug(
                "Reverse solve for %s converged in %d iterations: base=%s",
                final_price, iteration, mid,
            )
            return _details(mid, components, category, is_imported, final_price)
        if residual > 0:
            high = mid
        else:
            low = mid

    raise ReverseSolveDidNotConverge(final_price, max_iter, residual)


def decompose_reverse_tax(
    final_price: Decimal | int | float | str,
    rule_set: TaxRuleSet,
    category: Category | str | None = None,
    is_imported: bool = False,
    quantity: Decimal | int | float | str = 0,
    excise_item: ExciseItem | None = None,
    tolerance: Decimal | float | None = None,
    max_iterations: int | None = None,
) -> TaxDetails:
    """Recover the base price and each tax component from a final price.

    Without a category this is the simple VAT + SSL split. With a category it
    inverts ``compose_forward_tax(..., price_includes_tax=False)`` to within
    ``tolerance`` (default 0.01); ``max_iterations`` (default 50) caps the
    bisection fallback.

    Raises:
        InvalidInput: negative final price or quantity.
        ReverseSolveDidNotConverge: see ``solve_base_price``.
    """
    if category is None:
        return decompose_vat_and_levy(final_price, rule_set)

    final_price = to_decimal(final_price)
    quantity = to_decimal(quantity)
    if final_price < 0:
        raise InvalidInput(f"Final price must be non-negative, got {final_price}")
    if quantity < 0:
        raise InvalidInput(f"Quantity must be non-negative, got {quantity}")

    return solve_base_price(
        final_price,
        Category.parse(category),
        rule_set,
        is_imported,
        quantity=quantity,
        excise_item=excise_item,
        tolerance=to_decimal(tolerance) if tolerance is not None else None,
        max_iterations=max_iterations,
    )
