"""Engine subpackage - core pricing logic and resolution."""
from .pricing_engine import PricingEngine
from .models import (
    Product, Variant, StorewideDiscount, Buyer, Override, OverrideValues,
    CartLine, LineItem, Quote, BulkOutcome,
)
from .errors import PricingError, ValidationError, NotFoundError

__all__ = [
    'PricingEngine', 'Product', 'Variant', 'StorewideDiscount', 'Buyer',
    'Override', 'OverrideValues', 'CartLine', 'LineItem', 'Quote', 'BulkOutcome',
    'PricingError', 'ValidationError', 'NotFoundError',
]
