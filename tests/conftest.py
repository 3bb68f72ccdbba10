"""Shared test fixtures."""

from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.calculators.rule_set import Category, TaxRuleSet
from src.calculators.tax_data import get_rule_set
from src.llm.classifier import Classification
from src.llm.gateway import CompletionResult


@pytest.fixture
def lk_rules() -> TaxRuleSet:
    """The shipped Sri Lanka rule set."""
    return get_rule_set("LK")


@pytest.fixture
def rule_data() -> dict[str, Any]:
    """Plain config data for a small, valid rule set."""
    return {
        "country_code": "TS",
        "vat_rate": "0.10",
        "pal_rate": "0.05",
        "ssl_rate": "0.02",
        "stamp_duty_rate": "0.01",
        "tariffs": {c.value: "0.10" for c in Category},
        "excise_duties": {
            "fuel_per_liter": "10",
            "alcohol_per_liter": "100",
            "tobacco_per_stick": "5",
        },
        "vehicle_import": {
            "cid_rate": "0.20",
            "excise_per_cc": "500",
            "luxury_tax": {
                "petrol": {"threshold": "1000000", "rate": "1.0"},
                "hybrid": {"threshold": "1500000", "rate": "0.5"},
                "electric": {"threshold": "2000000", "rate": "0.25"},
            },
        },
        "income_tax_brackets": [
            {"limit": "10000", "rate": "0"},
            {"limit": "50000", "rate": "0.10"},
            {"limit": None, "rate": "0.20"},
        ],
        "constants": {
            "avg_fuel_consumption_per_km": "0.08",
            "default_fuel_price_per_liter": "2.5",
        },
    }


@pytest.fixture(params=["LK", "TS"])
def any_rules(request: pytest.FixtureRequest) -> TaxRuleSet:
    """Each rule set in turn: the shipped one and the small test one."""
    if request.param == "LK":
        return get_rule_set("LK")
    return TaxRuleSet.from_config(request.getfixturevalue("rule_data"))


@pytest.fixture
def stub_classifier() -> AsyncMock:
    """Async classifier that always says: imported electronics."""
    classifier = AsyncMock()
    classifier.classify.return_value = Classification(
        category=Category.ELECTRONICS,
        is_imported=True,
    )
    return classifier


@pytest.fixture
def mock_llm() -> AsyncMock:
    """Async mock of LLMGateway returning a JSON classification."""
    llm = AsyncMock()
    llm.complete.return_value = CompletionResult(
        content='{"category": "food", "is_imported": false}',
        raw_message=MagicMock(),
        model="gemini/gemini-2.5-flash",
    )
    return llm
