"""Tests for the classification prompt builder."""

from src.calculators.rule_set import Category
from src.llm.prompts import build_classification_messages, format_system_prompt


def test_system_prompt_lists_every_category() -> None:
    prompt = format_system_prompt("LK")
    for category in Category:
        assert category.value in prompt


def test_system_prompt_names_country() -> None:
    prompt = format_system_prompt("LK")
    assert "imported into LK" in prompt


def test_system_prompt_forbids_calculation() -> None:
    assert "Do NOT calculate" in format_system_prompt("LK")


def test_system_prompt_shows_json_shape() -> None:
    prompt = format_system_prompt("LK")
    assert '{"category": "<category>", "is_imported": <true|false>}' in prompt


def test_messages_structure() -> None:
    messages = build_classification_messages("  Imported Samsung TV  ", "LK")
    assert [m["role"] for m in messages] == ["system", "user"]
    assert messages[1]["content"] == "<item>Imported Samsung TV</item>"
