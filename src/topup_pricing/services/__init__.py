"""Services subpackage - catalog, buyer and bulk override operations."""
from .catalog_service import CatalogService, ValidationResult, window_bound
from .buyer_service import BuyerService
from .bulk_service import BulkRuleApplicator, BulkScope, validate_rule
from .edit_state import EditSession, DraftRow

__all__ = [
    'CatalogService', 'ValidationResult', 'window_bound', 'BuyerService',
    'BulkRuleApplicator', 'BulkScope', 'validate_rule',
    'EditSession', 'DraftRow',
]
