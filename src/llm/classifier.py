"""Item classification: description -> (category, origin).

Classification sits outside the deterministic engine. The engine only ever
sees the typed ``Classification``; any object with an async ``classify``
method can stand in for the LLM-backed implementation.
"""

import json
import logging
import re
from typing import Protocol

from pydantic import BaseModel

from config.settings import settings
from src.calculators.rule_set import Category
from src.llm.gateway import LLMGateway
from src.llm.prompts import build_classification_messages

logger = logging.getLogger(__name__)

_CODE_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$")


class ClassificationError(Exception):
    """The classifier reply could not be turned into a Classification."""


class Classification(BaseModel):
    category: Category
    is_imported: bool


class ItemClassifier(Protocol):
    async def classify(self, description: str) -> Classification: ...


def parse_classification(content: str | None) -> Classification:
    """Parse a JSON classifier reply; unknown categories become ``other``.

    Raises:
        ClassificationError: empty reply, invalid JSON, or missing fields.
    """
    if not content or not content.strip():
        raise ClassificationError("Classifier returned an empty reply")

    text = _CODE_FENCE.sub("", content.strip())
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ClassificationError(f"Classifier reply is not JSON: {content[:80]!r}") from exc
    if not isinstance(data, dict):
        raise ClassificationError("Classifier reply is not a JSON object")

    imported = data.get("is_imported")
    if isinstance(imported, str) and imported.strip().lower() in ("true", "false"):
        imported = imported.strip().lower() == "true"
    if not isinstance(imported, bool):
        raise ClassificationError(f"Classifier reply has no boolean is_imported: {data!r}")

    return Classification(category=Category.parse(data.get("category")), is_imported=imported)


class LLMItemClassifier:
    """Classifies item descriptions by asking an LLM for a JSON verdict."""

    def __init__(self, llm: LLMGateway, country_code: str | None = None) -> None:
        self._llm = llm
        self._country_code = country_code or settings.default_country_code

    async def classify(self, description: str) -> Classification:
        messages = build_classification_messages(description, self._country_code)
        result = await self._llm.complete(messages, json_mode=True)
        classification = parse_classification(result.content)
        logger.info(
            "Classified %r as %s (imported=%s)",
            description[:40], classification.category.value, classification.is_imported,
        )
        return classification
