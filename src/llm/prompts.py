"""Prompt and message builder for item classification."""

from typing import Any

from src.calculators.rule_set import Category

_SYSTEM_PROMPT_TEMPLATE = """\
You classify purchased items for a tax calculator in {country_code}.

<hard_rules>
1. Do NOT calculate any tax, price or rate. Only classify.

2. "category" must be exactly one of: {categories}. Use "other" when \
nothing else fits.

3. "is_imported" is true when the item is most likely manufactured abroad \
and imported into {country_code}, false when it is most likely produced \
locally. Decide from the description alone.

4. Reply with a single JSON object and nothing else:
{{"category": "<category>", "is_imported": <true|false>}}
</hard_rules>
"""


def format_system_prompt(country_code: str) -> str:
    categories = ", ".join(c.value for c in Category)
    return _SYSTEM_PROMPT_TEMPLATE.format(country_code=country_code, categories=categories)


def build_classification_messages(description: str, country_code: str) -> list[dict[str, Any]]:
    """Build the OpenAI-format message list for one item description."""
    return [
        {"role": "system", "content": format_system_prompt(country_code)},
        {"role": "user", "content": f"<item>{description.strip()}</item>"},
    ]
