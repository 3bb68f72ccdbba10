"""Tests for rule set validation and the shipped rule data."""

from decimal import Decimal

import pytest
from pydantic import ValidationError

from src.calculators.errors import InvalidCategory, InvalidRuleSet
from src.calculators.forward import compose_forward_tax
from src.calculators.rule_set import Category, Powertrain, TaxRuleSet
from src.calculators.tax_data import available_countries, get_rule_set, load_rule_sets


class TestShippedRules:
    def test_lk_rates(self, lk_rules) -> None:
        assert lk_rules.country_code == "LK"
        assert lk_rules.vat_rate == Decimal("0.18")
        assert lk_rules.pal_rate == Decimal("0.10")
        assert lk_rules.ssl_rate == Decimal("0.025")
        assert lk_rules.stamp_duty_rate == Decimal("0.01")

    def test_every_category_has_a_tariff(self, lk_rules) -> None:
        assert set(lk_rules.tariffs) == set(Category)
        assert lk_rules.tariff_for(Category.MEDICAL) == 0

    def test_luxury_bands(self, lk_rules) -> None:
        band = lk_rules.vehicle_import.luxury_tax[Powertrain.ELECTRIC]
        assert band.threshold == Decimal("6000000")
        assert band.rate == Decimal("0.60")

    def test_brackets_end_uncapped(self, lk_rules) -> None:
        assert lk_rules.income_tax_brackets[-1].limit is None
        assert len(lk_rules.income_tax_brackets) == 7

    def test_country_code_case_insensitive(self) -> None:
        assert get_rule_set("lk") is get_rule_set("LK")

    def test_default_country(self) -> None:
        assert get_rule_set().country_code == "LK"
        assert "LK" in available_countries()

    def test_unknown_country(self) -> None:
        with pytest.raises(InvalidRuleSet, match="Unknown country code"):
            get_rule_set("XX")

    def test_shared_rule_set_cannot_be_altered(self) -> None:
        with pytest.raises(TypeError):
            get_rule_set("LK").tariffs[Category.ELECTRONICS] = Decimal("0.99")
        result = compose_forward_tax(100, "electronics", get_rule_set("LK"), True)
        assert result.tariff == Decimal("10")


class TestRuleSetValidation:
    def test_valid(self, rule_data) -> None:
        rules = TaxRuleSet.from_config(rule_data)
        assert rules.vat_rate == Decimal("0.10")
        assert rules.tariff_for("food") == Decimal("0.10")

    def test_missing_rate(self, rule_data) -> None:
        del rule_data["vat_rate"]
        with pytest.raises(InvalidRuleSet):
            TaxRuleSet.from_config(rule_data)

    def test_missing_tariff_category(self, rule_data) -> None:
        del rule_data["tariffs"]["clothing"]
        with pytest.raises(InvalidRuleSet, match="clothing"):
            TaxRuleSet.from_config(rule_data)

    def test_missing_luxury_band(self, rule_data) -> None:
        del rule_data["vehicle_import"]["luxury_tax"]["hybrid"]
        with pytest.raises(InvalidRuleSet, match="hybrid"):
            TaxRuleSet.from_config(rule_data)

    def test_negative_rate(self, rule_data) -> None:
        rule_data["ssl_rate"] = "-0.01"
        with pytest.raises(InvalidRuleSet):
            TaxRuleSet.from_config(rule_data)

    def test_non_increasing_brackets(self, rule_data) -> None:
        rule_data["income_tax_brackets"] = [
            {"limit": "50000", "rate": "0"},
            {"limit": "10000", "rate": "0.10"},
            {"limit": None, "rate": "0.20"},
        ]
        with pytest.raises(InvalidRuleSet, match="strictly increasing"):
            TaxRuleSet.from_config(rule_data)

    def test_capped_final_bracket(self, rule_data) -> None:
        rule_data["income_tax_brackets"] = [{"limit": "10000", "rate": "0"}]
        with pytest.raises(InvalidRuleSet, match="no cap"):
            TaxRuleSet.from_config(rule_data)

    def test_uncapped_middle_bracket(self, rule_data) -> None:
        rule_data["income_tax_brackets"] = [
            {"limit": None, "rate": "0"},
            {"limit": None, "rate": "0.10"},
        ]
        with pytest.raises(InvalidRuleSet):
            TaxRuleSet.from_config(rule_data)

    def test_unknown_field_rejected(self, rule_data) -> None:
        rule_data["gst_rate"] = "0.15"
        with pytest.raises(InvalidRuleSet):
            TaxRuleSet.from_config(rule_data)

    def test_frozen(self, rule_data) -> None:
        rules = TaxRuleSet.from_config(rule_data)
        with pytest.raises(ValidationError):
            rules.vat_rate = Decimal("0.5")

    def test_nested_mappings_are_read_only(self, rule_data) -> None:
        rules = TaxRuleSet.from_config(rule_data)
        with pytest.raises(TypeError):
            rules.tariffs[Category.ELECTRONICS] = Decimal("0.99")
        with pytest.raises(TypeError):
            del rules.vehicle_import.luxury_tax[Powertrain.PETROL]
        assert rules.tariff_for(Category.ELECTRONICS) == Decimal("0.10")

    def test_config_data_is_copied(self, rule_data) -> None:
        rules = TaxRuleSet.from_config(rule_data)
        rule_data["tariffs"]["food"] = "0.99"
        assert rules.tariffs[Category.FOOD] == Decimal("0.10")

    def test_dump_round_trips(self, rule_data) -> None:
        rules = TaxRuleSet.from_config(rule_data)
        dumped = rules.model_dump()
        assert isinstance(dumped["tariffs"], dict)
        assert isinstance(dumped["vehicle_import"]["luxury_tax"], dict)
        assert TaxRuleSet.from_config(dumped) == rules

    @pytest.mark.parametrize(
        "path",
        [
            ("tariffs", "electronics"),
            ("excise_duties", "fuel_per_liter"),
            ("vehicle_import", "cid_rate"),
            ("vehicle_import", "excise_per_cc"),
            ("constants", "default_fuel_price_per_liter"),
        ],
    )
    def test_negative_nested_value(self, rule_data, path) -> None:
        section, key = path
        rule_data[section][key] = "-0.05"
        with pytest.raises(InvalidRuleSet):
            TaxRuleSet.from_config(rule_data)

    @pytest.mark.parametrize("key", ["threshold", "rate"])
    def test_negative_luxury_band(self, rule_data, key) -> None:
        rule_data["vehicle_import"]["luxury_tax"]["hybrid"][key] = "-1"
        with pytest.raises(InvalidRuleSet):
            TaxRuleSet.from_config(rule_data)

    def test_non_finite_rate(self, rule_data) -> None:
        rule_data["vat_rate"] = "NaN"
        with pytest.raises(InvalidRuleSet):
            TaxRuleSet.from_config(rule_data)


class TestTariffLookup:
    def test_unknown_category_uses_other(self, lk_rules) -> None:
        assert lk_rules.tariff_for("spaceships") == lk_rules.tariffs[Category.OTHER]
        assert lk_rules.tariff_for(None) == lk_rules.tariffs[Category.OTHER]

    def test_case_and_whitespace(self, lk_rules) -> None:
        assert lk_rules.tariff_for(" Clothing ") == Decimal("0.30")

    def test_no_fallback(self, lk_rules) -> None:
        broken = lk_rules.model_copy(update={"tariffs": {}})
        with pytest.raises(InvalidCategory):
            broken.tariff_for(Category.FOOD)


class TestLoadRuleSets:
    def test_load_from_directory(self, tmp_path) -> None:
        (tmp_path / "rules.yaml").write_text(
            """
rule_sets:
  ts:
    vat_rate: "0.15"
    pal_rate: "0"
    ssl_rate: "0"
    stamp_duty_rate: "0.005"
    tariffs: {food: "0", fuel: "0", vehicles: "0.1", clothing: "0.1",
              electronics: "0.1", medical: "0", other: "0.05"}
    excise_duties: {fuel_per_liter: "1", alcohol_per_liter: "2", tobacco_per_stick: "0.5"}
    vehicle_import:
      cid_rate: "0.1"
      luxury_tax:
        petrol: {threshold: "100000", rate: "0.5"}
        hybrid: {threshold: "100000", rate: "0.25"}
        electric: {threshold: "100000", rate: "0"}
    income_tax_brackets:
      - {limit: "20000", rate: "0"}
      - {limit: null, rate: "0.2"}
    constants: {avg_fuel_consumption_per_km: "0.07", default_fuel_price_per_liter: "2"}
"""
        )
        rule_sets = load_rule_sets("rules.yaml", config_dir=tmp_path)
        assert list(rule_sets) == ["TS"]
        rules = rule_sets["TS"]
        assert rules.country_code == "TS"
        assert rules.vehicle_import.excise_per_cc == 0

    def test_empty_document(self, tmp_path) -> None:
        (tmp_path / "empty.yaml").write_text("")
        with pytest.raises(InvalidRuleSet):
            load_rule_sets("empty.yaml", config_dir=tmp_path)
