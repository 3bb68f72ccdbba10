"""CLI for the tax calculators.

Usage:
    # Progressive income tax
    python scripts/calculate.py income 2500000

    # Taxes contained in a shelf price (forward composition)
    python scripts/calculate.py forward 15000 --category electronics --imported

    # Recover the pre-tax base from a final price
    python scripts/calculate.py reverse 11800 --category food

    # VAT add/remove, stamp duty, vehicle import, fuel estimate
    python scripts/calculate.py vat 10000 --remove
    python scripts/calculate.py stamp-duty 1200000
    python scripts/calculate.py vehicle 7000000 --powertrain hybrid --engine-cc 1500
    python scripts/calculate.py fuel 250

    # Classify a described item with the LLM, then break down its price
    python scripts/calculate.py item "Imported Samsung TV" 250000

Amounts are printed rounded to cents; calculations are never rounded.
"""

import argparse
import asyncio
import json
import logging
import sys
from decimal import Decimal
from pathlib import Path
from typing import Any

# Add project root to path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from pydantic import BaseModel

from config.settings import settings
from src.calculators.errors import InvalidInput, TaxEngineError
from src.calculators.forward import compose_forward_tax
from src.calculators.fuel import estimate_fuel_cost
from src.calculators.income_tax import compute_income_tax
from src.calculators.models import round_money, to_decimal
from src.calculators.reverse import decompose_reverse_tax
from src.calculators.rule_set import Category, ExciseItem, Powertrain
from src.calculators.stamp_duty import compute_stamp_duty
from src.calculators.tax_data import get_rule_set
from src.calculators.vat import add_vat, remove_vat
from src.calculators.vehicle_import import compute_vehicle_import_tax
from src.llm.classifier import ClassificationError, LLMItemClassifier
from src.llm.gateway import LLMGateway
from src.orchestrator import ItemTaxRequest, ItemTaxService

logger = logging.getLogger(__name__)


def _amount(text: str) -> Decimal:
    try:
        return to_decimal(text)
    except InvalidInput as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Tax calculators")
    parser.add_argument("--country", default=None, help="Rule set country code (default from settings)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose logging")
    sub = parser.add_subparsers(dest="command", required=True)

    income = sub.add_parser("income", help="Progressive income tax")
    income.add_argument("amount", type=_amount)

    for name, help_text in (
        ("forward", "Taxes contained in a shelf price"),
        ("reverse", "Pre-tax base from a final price"),
    ):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("amount", type=_amount)
        p.add_argument("--category", choices=[c.value for c in Category], default=None)
        p.add_argument("--imported", action="store_true", help="Item is imported")
        p.add_argument("--quantity", type=_amount, default=Decimal("0"), help="Units for excise")
        p.add_argument("--excise", choices=[e.value for e in ExciseItem], default=None)

    vat = sub.add_parser("vat", help="Add or remove VAT")
    vat.add_argument("amount", type=_amount)
    vat.add_argument("--remove", action="store_true", help="Amount already includes VAT")

    stamp = sub.add_parser("stamp-duty", help="Stamp duty on a lease or hire value")
    stamp.add_argument("amount", type=_amount)

    vehicle = sub.add_parser("vehicle", help="Vehicle import taxes")
    vehicle.add_argument("amount", type=_amount, help="CIF value")
    vehicle.add_argument("--powertrain", choices=[p.value for p in Powertrain], default="petrol")
    vehicle.add_argument("--engine-cc", type=_amount, default=Decimal("0"))
    vehicle.add_argument("--excise-override", type=_amount, default=None)

    fuel = sub.add_parser("fuel", help="Fuel cost over a distance")
    fuel.add_argument("distance", type=_amount, help="Distance in km")
    fuel.add_argument("--price-per-liter", type=_amount, default=None)

    item = sub.add_parser("item", help="Classify a described item, then break down its price")
    item.add_argument("description")
    item.add_argument("amount", type=_amount)
    item.add_argument("--quantity", type=_amount, default=Decimal("0"))
    item.add_argument("--shop-fee", action="store_true", help="Tax the shelf price instead of inverting it")

    return parser.parse_args(argv)


def present(value: Any) -> Any:
    """Convert results to JSON-ready data with amounts rounded to cents."""
    if isinstance(value, BaseModel):
        return present(value.model_dump())
    if isinstance(value, dict):
        return {str(getattr(k, "value", k)): present(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [present(v) for v in value]
    if isinstance(value, Decimal):
        return float(round_money(value))
    if hasattr(value, "value"):
        return value.value
    return value


async def run(args: argparse.Namespace) -> dict[str, Any]:
    rule_set = get_rule_set(args.country)

    if args.command == "income":
        result: Any = compute_income_tax(args.amount, rule_set.income_tax_brackets)
        payload = present(result)
        # effective rate reads better as a percentage
        payload["effective_rate"] = float(round(result.effective_rate * 100, 2))
        return payload

    if args.command == "forward":
        result = compose_forward_tax(
            args.amount, args.category, rule_set, args.imported,
            quantity=args.quantity,
            excise_item=ExciseItem(args.excise) if args.excise else None,
        )
    elif args.command == "reverse":
        result = decompose_reverse_tax(
            args.amount, rule_set, category=args.category, is_imported=args.imported,
            quantity=args.quantity,
            excise_item=ExciseItem(args.excise) if args.excise else None,
        )
    elif args.command == "vat":
        calc = remove_vat if args.remove else add_vat
        result = calc(args.amount, rule_set.vat_rate)
    elif args.command == "stamp-duty":
        duty = compute_stamp_duty(args.amount, rule_set.stamp_duty_rate)
        return {"lease_value": present(args.amount), "stamp_duty": present(duty)}
    elif args.command == "vehicle":
        result = compute_vehicle_import_tax(
            args.amount, args.powertrain, rule_set,
            engine_cc=args.engine_cc, excise_override=args.excise_override,
        )
    elif args.command == "fuel":
        result = estimate_fuel_cost(args.distance, rule_set, args.price_per_liter)
    else:
        service = ItemTaxService(LLMItemClassifier(LLMGateway(), rule_set.country_code), rule_set)
        result = await service.analyze_item(
            ItemTaxRequest(description=args.description, price=args.amount, quantity=args.quantity),
            exact_inverse=not args.shop_fee,
        )

    return present(result)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    log_level = logging.DEBUG if args.verbose else getattr(logging, settings.log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    try:
        payload = asyncio.run(run(args))
    except (TaxEngineError, ClassificationError) as exc:
        logger.error("Calculation failed: %s", exc)
        print(json.dumps({"error": str(exc)}, indent=2))
        return 1

    print(json.dumps(payload, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
