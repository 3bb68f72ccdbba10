"""Tax rule sets keyed by country code.

Rule data ships as static YAML (config/tax_rules.yaml) and is validated into
immutable ``TaxRuleSet`` values on first use. Callers may also build their own
rule sets with ``TaxRuleSet.from_config`` and pass them straight to the
calculators; nothing here is consulted implicitly.
"""

import logging
from collections.abc import Mapping
from functools import lru_cache
from pathlib import Path
from typing import Any

from config import load_yaml_config
from config.settings import settings
from src.calculators.errors import InvalidRuleSet
from src.calculators.rule_set import TaxRuleSet, frozen_mapping

logger = logging.getLogger(__name__)

RULES_FILE = "tax_rules.yaml"


def parse_rule_sets(raw: dict[str, Any]) -> dict[str, TaxRuleSet]:
    """Validate the ``rule_sets`` mapping of a rules document."""
    entries = raw.get("rule_sets")
    if not isinstance(entries, dict) or not entries:
        raise InvalidRuleSet("Rules document has no 'rule_sets' mapping")

    rule_sets: dict[str, TaxRuleSet] = {}
    for code, data in entries.items():
        country_code = str(code).upper()
        rule_sets[country_code] = TaxRuleSet.from_config({"country_code": country_code, **data})
    return rule_sets


def load_rule_sets(filename: str = RULES_FILE, config_dir: Path | None = None) -> dict[str, TaxRuleSet]:
    """Load and validate every rule set in a YAML rules file."""
    rule_sets = parse_rule_sets(load_yaml_config(filename, config_dir))
    logger.info("Loaded tax rule sets: %s", ", ".join(sorted(rule_sets)))
    return rule_sets


@lru_cache(maxsize=1)
def _shipped_rule_sets() -> Mapping[str, TaxRuleSet]:
    return frozen_mapping(load_rule_sets())


def available_countries() -> list[str]:
    return sorted(_shipped_rule_sets())


def get_rule_set(country_code: str | None = None) -> TaxRuleSet:
    """Return the shipped rule set for a country (default from settings).

    Raises:
        InvalidRuleSet: no rule set is shipped for the country.
    """
    code = (country_code or settings.default_country_code).upper()
    rule_sets = _shipped_rule_sets()
    if code not in rule_sets:
        raise InvalidRuleSet(
            f"Unknown country code: {code}. Available: {', '.join(sorted(rule_sets))}"
        )
    return rule_sets[code]
