"""Totals across several itemized purchases."""

from collections.abc import Iterable

from src.calculators.models import ZERO, TaxDetails, TaxSummary


def summarize_tax_details(details: Iterable[TaxDetails]) -> TaxSummary:
    """Add up shop fees, VAT and the remaining taxes of analyzed items.

    An empty input yields an all-zero summary.
    """
    count = 0
    base = vat = other = price = ZERO
    for item in details:
        count += 1
        base += item.base_price
        vat += item.vat
        other += item.tariff + item.excise_duty + item.other_levies
        price += item.price

    return TaxSummary(
        item_count=count,
        total_base=base,
        total_vat=vat,
        total_other_tax=other,
        total_tax=vat + other,
        total_price=price,
    )
