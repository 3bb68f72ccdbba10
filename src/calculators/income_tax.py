"""Progressive income tax: marginal bracket walk with per-bracket breakdown."""

import logging
from collections.abc import Sequence
from decimal import Decimal

from src.calculators.models import ZERO, BracketSlice, IncomeTaxResult, to_decimal
from src.calculators.rule_set import TaxBracket, validate_brackets

logger = logging.getLogger(__name__)


def compute_bracket_tax(
    income: Decimal | int | float | str,
    brackets: Sequence[TaxBracket],
) -> IncomeTaxResult:
    """Walk a marginal bracket schedule.

    Brackets are taken in order; each taxes the slice of income between the
    previous limit and its own. A negative slice (only possible with malformed
    rule data) contributes nothing and the walk moves on without advancing.

    Args:
        income: Gross income. Zero or negative income yields zero tax.
        brackets: Ordered brackets; the last one normally has no cap.

    Returns:
        IncomeTaxResult with totals and the slices that carried income.
    """
    income = to_decimal(income)
    if income <= 0:
        return IncomeTaxResult(
            gross_income=income,
            total_tax=ZERO,
            net_income=income,
            effective_rate=ZERO,
        )

    remaining = income
    previous_limit = ZERO
    total_tax = ZERO
    breakdown: list[BracketSlice] = []

    for bracket in brackets:
        if remaining <= 0:
            break

        if bracket.limit is None:
            taxable = remaining
        else:
            taxable = min(remaining, bracket.limit - previous_limit)
        if taxable < 0:
            logger.debug("Skipping bracket %s: negative slice %s", bracket.limit, taxable)
            continue

        tax = taxable * bracket.rate
        breakdown.append(BracketSlice(
            lower=previous_limit,
            upper=bracket.limit,
            rate=bracket.rate,
            taxable_amount=taxable,
            tax=tax,
        ))
        total_tax += tax
        remaining -= taxable
        if bracket.limit is not None:
            previous_limit = bracket.limit

    return IncomeTaxResult(
        gross_income=income,
        total_tax=total_tax,
        net_income=income - total_tax,
        effective_rate=total_tax / income,
        breakdown=tuple(breakdown),
    )


def compute_income_tax(
    gross_income: Decimal | int | float | str,
    brackets: Sequence[TaxBracket],
) -> IncomeTaxResult:
    """Calculate progressive income tax after validating the schedule.

    Raises:
        InvalidRuleSet: the brackets do not partition [0, inf).
    """
    validate_brackets(brackets)
    result = compute_bracket_tax(gross_income, brackets)
    logger.debug(
        "Income tax on %s: %s (effective %s)",
        result.gross_income, result.total_tax, result.effective_rate,
    )
    return result
