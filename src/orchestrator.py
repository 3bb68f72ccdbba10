"""Item tax service: classify a described purchase, then run the engine."""

import logging
from decimal import Decimal

from pydantic import BaseModel

from src.calculators.forward import compose_forward_tax
from src.calculators.models import TaxDetails, TaxSummary
from src.calculators.reverse import decompose_reverse_tax
from src.calculators.rule_set import TaxRuleSet
from src.calculators.summary import summarize_tax_details
from src.llm.classifier import Classification, ItemClassifier

logger = logging.getLogger(__name__)


class ItemTaxRequest(BaseModel):
    """One purchased item: free-text description and its shelf price."""

    description: str
    price: Decimal
    quantity: Decimal = Decimal("0")


class ItemTaxResult(BaseModel):
    description: str
    classification: Classification
    details: TaxDetails


class ItemTaxReport(BaseModel):
    """Per-item results plus totals across the whole purchase."""

    items: list[ItemTaxResult]
    summary: TaxSummary


class ItemTaxService:
    """Coordinates an injected classifier with the deterministic calculators."""

    def __init__(self, classifier: ItemClassifier, rule_set: TaxRuleSet) -> None:
        self._classifier = classifier
        self._rule_set = rule_set

    async def analyze_item(
        self,
        request: ItemTaxRequest,
        exact_inverse: bool = True,
    ) -> ItemTaxResult:
        """Break down the taxes contained in an item's shelf price.

        Args:
            request: The item to analyze.
            exact_inverse: Recover the pre-tax base with the reverse
                decomposer. When False, taxes are charged on the shelf price
                itself and the shop fee is what remains (quicker estimate).

        Raises:
            ClassificationError: the classifier reply was unusable.
            TaxEngineError: the calculation itself failed.
        """
        logger.info("Analyzing item: %s", request.description[:80])
        classification = await self._classifier.classify(request.description)

        if exact_inverse:
            details = decompose_reverse_tax(
                request.price,
                self._rule_set,
                category=classification.category,
                is_imported=classification.is_imported,
                quantity=request.quantity,
            )
        else:
            details = compose_forward_tax(
                request.price,
                classification.category,
                self._rule_set,
                classification.is_imported,
                quantity=request.quantity,
            )

        if details.clamped:
            logger.warning("Shop fee clamped to 0 for item: %s", request.description[:80])

        return ItemTaxResult(
            description=request.description,
            classification=classification,
            details=details,
        )

    async def analyze_items(
        self,
        requests: list[ItemTaxRequest],
        exact_inverse: bool = True,
    ) -> list[ItemTaxResult]:
        """Analyze items one after another, preserving input order."""
        results = [await self.analyze_item(r, exact_inverse) for r in requests]
        logger.info("Analyzed %d items", len(results))
        return results

    async def analyze_basket(
        self,
        requests: list[ItemTaxRequest],
        exact_inverse: bool = True,
    ) -> ItemTaxReport:
        """Analyze every item, then total shop fees, VAT and other taxes."""
        items = await self.analyze_items(requests, exact_inverse)
        summary = summarize_tax_details(item.details for item in items)
        logger.info("Basket of %d items carries %s in tax", summary.item_count, summary.total_tax)
        return ItemTaxReport(items=items, summary=summary)
