"""Exceptions raised by the pricing layer."""


class PricingError(Exception):
    """Base class for pricing errors."""


class ValidationError(PricingError, ValueError):
    """Input rejected before any write was made."""

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


class NotFoundError(PricingError, LookupError):
    """A referenced product, variant or buyer does not exist."""
