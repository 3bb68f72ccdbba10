"""Typed failures raised by the tax calculators."""


class TaxEngineError(Exception):
    """Base class for every calculator failure."""


class InvalidInput(TaxEngineError, ValueError):
    """A price, income or quantity is outside the permitted range."""


class InvalidRuleSet(TaxEngineError, ValueError):
    """Rule data is missing required rates or has a malformed bracket schedule."""


class InvalidCategory(TaxEngineError):
    """A category could not be resolved, not even to the ``other`` fallback."""


class ReverseSolveDidNotConverge(TaxEngineError):
    """The reverse solver ran out of iterations before reaching tolerance."""

    def __init__(self, final_price: object, iterations: int, residual: object) -> None:
        self.final_price = final_price
        self.iterations = iterations
        self.residual = residual
        super().__init__(
            f"Reverse solve for final price {final_price} did not converge "
            f"after {iterations} iterations (residual {residual})"
        )
