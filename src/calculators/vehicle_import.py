"""Vehicle import taxes: customs duty, PAL, excise, luxury tax and VAT."""

import logging
from decimal import Decimal

from src.calculators.errors import InvalidInput, InvalidRuleSet
from src.calculators.forward import require_rate
from src.calculators.models import ZERO, VehicleImportTaxDetails, to_decimal
from src.calculators.rule_set import Category, Origin, Powertrain, TaxRuleSet

logger = logging.getLogger(__name__)


def compute_vehicle_import_tax(
    cif_value: Decimal | int | float | str,
    powertrain: Powertrain | str,
    rule_set: TaxRuleSet,
    engine_cc: Decimal | int | float | str = 0,
    excise_override: Decimal | int | float | str | None = None,
) -> VehicleImportTaxDetails:
    """Calculate the taxes payable to land an imported vehicle.

    Customs import duty and PAL are charged on the CIF value. Excise is a flat
    amount per engine cc unless a positive override is supplied. Luxury tax
    applies only to the CIF value above the powertrain's threshold. VAT is
    charged on the CIF value plus every duty above.

    Args:
        cif_value: Cost-insurance-freight value of the vehicle.
        powertrain: petrol, hybrid or electric.
        rule_set: Rates for the jurisdiction.
        engine_cc: Engine capacity, used for the per-cc excise.
        excise_override: Known excise amount replacing the per-cc estimate.

    Raises:
        InvalidInput: negative CIF value or engine size, unknown powertrain.
        InvalidRuleSet: vehicle import rules are missing.
    """
    cif = to_decimal(cif_value)
    cc = to_decimal(engine_cc)
    if cif < 0:
        raise InvalidInput(f"CIF value must be non-negative, got {cif}")
    if cc < 0:
        raise InvalidInput(f"Engine capacity must be non-negative, got {cc}")
    try:
        powertrain = Powertrain(powertrain)
    except ValueError as exc:
        valid = ", ".join(p.value for p in Powertrain)
        raise InvalidInput(f"Unknown powertrain: {powertrain}. Must be one of: {valid}") from exc

    rules = rule_set.vehicle_import
    if rules is None or powertrain not in (rules.luxury_tax or {}):
        raise InvalidRuleSet(f"Rule set {rule_set.country_code} has no vehicle import rules for {powertrain.value}")

    customs_duty = cif * rules.cid_rate
    pal = cif * require_rate(rule_set, "pal_rate")

    override = to_decimal(excise_override) if excise_override is not None else ZERO
    excise = override if override > 0 else cc * rules.excise_per_cc

    band = rules.luxury_tax[powertrain]
    luxury = max(ZERO, cif - band.threshold) * band.rate

    vat_base = cif + customs_duty + pal + excise + luxury
    vat = vat_base * require_rate(rule_set, "vat_rate")

    other_levies = pal + luxury
    total_tax = customs_duty + excise + other_levies + vat
    landed_cost = cif + total_tax
    logger.debug("Vehicle import %s (%s): total tax %s", cif, powertrain.value, total_tax)

    return VehicleImportTaxDetails(
        origin=Origin.IMPORTED,
        category=Category.VEHICLES,
        tariff=customs_duty,
        excise_duty=excise,
        other_levies=other_levies,
        levies={"pal": pal, "luxury": luxury},
        vat=vat,
        total_tax=total_tax,
        base_price=cif,
        price=landed_cost,
        powertrain=powertrain,
        customs_duty=customs_duty,
        luxury_tax=luxury,
        landed_cost=landed_cost,
    )
