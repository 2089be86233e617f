"""
Data models for the pricing engine.

Uses dataclasses for structured, type-safe data representation.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


COHORT_TAGS = ('reseller', 'end_user')
BUYER_STATUSES = ('active', 'inactive')


def format_amount(value: float) -> str:
    """Whole amounts without decimals, everything else to the centavo."""
    if float(value).is_integer():
        return f"{int(value):,}"
    return f"{value:,.2f}"


@dataclass
class TraceStep:
    """A single step in the price resolution trace."""
    step: str
    description: str
    value: Optional[str] = None


@dataclass
class StorewideDiscount:
    """Storewide percentage markdown on every variant of one product."""
    percentage: Optional[float] = None  # 0-100, None = not set
    active: bool = False
    start: Optional[datetime] = None
    end: Optional[datetime] = None


@dataclass
class Variant:
    """A purchasable currency package of a product."""
    id: str
    name: str
    price: float
    description: Optional[str] = None
    sort_order: int = 0


@dataclass
class Product:
    """A game listing with its currency packages."""
    id: str
    name: str
    category: str = ""
    description: str = ""
    subtitle: Optional[str] = None
    image_url: Optional[str] = None
    popular: bool = False
    available: bool = True
    sort_order: int = 0

    # Informational only; stored as 0 once a product has variants
    base_price: float = 0.0

    discount: StorewideDiscount = field(default_factory=StorewideDiscount)

    # Old fixed-amount discount column, kept read-only for display
    legacy_discount_price: Optional[float] = None

    variants: list[Variant] = field(default_factory=list)

    def ordered_variants(self) -> list[Variant]:
        """Variants in display order."""
        return sorted(self.variants, key=lambda v: v.sort_order)

    def get_variant(self, variant_id: str) -> Optional[Variant]:
        for variant in self.variants:
            if variant.id == variant_id:
                return variant
        return None


@dataclass
class Buyer:
    """A storefront member."""
    id: str
    name: str
    cohort_tag: str = "end_user"  # "reseller" or "end_user"
    status: str = "active"  # "active" or "inactive"
    email: Optional[str] = None
    order_count: int = 0
    lifetime_spend: float = 0.0

    @property
    def is_active(self) -> bool:
        return self.status == "active"


@dataclass
class OverrideValues:
    """The three settable fields of an override, written together."""
    discount_percentage: float = 0.0
    capital_price: float = 0.0
    selling_price: float = 0.0


@dataclass
class Override:
    """A buyer-specific replacement price for one (buyer, product, variant)."""
    buyer_id: str
    product_id: str
    variant_id: str
    discount_percentage: float = 0.0
    capital_price: float = 0.0
    selling_price: float = 0.0
    id: Optional[str] = None
    updated_at: Optional[datetime] = None

    @property
    def key(self) -> tuple[str, str, str]:
        return (self.buyer_id, self.product_id, self.variant_id)

    @property
    def profit(self) -> float:
        return self.selling_price - self.capital_price


@dataclass
class CartLine:
    """A requested quantity of one variant."""
    product_id: str
    variant_id: str
    quantity: int = 1


@dataclass
class LineItem:
    """A single priced line in a quote."""
    product_id: str
    variant_id: str
    product_name: str
    variant_name: str
    quantity: int
    unit_price: float
    extended_price: float
    source: str  # "override", "promo" or "list"
    warnings: list[str] = field(default_factory=list)
    trace: list[TraceStep] = field(default_factory=list)

    def add_trace(self, step: str, description: str, value: str = None):
        """Add a step to the trace for this line item."""
        self.trace.append(TraceStep(step=step, description=description, value=value))

    def add_warning(self, warning: str):
        """Add a warning for this line item."""
        self.warnings.append(warning)

    def get_trace_text(self) -> str:
        """Get human-readable trace as formatted text."""
        lines = []
        for t in self.trace:
            if t.value:
                lines.append(f"→ {t.step}: {t.description} = {t.value}")
            else:
                lines.append(f"→ {t.step}: {t.description}")
        return "\n".join(lines)


@dataclass
class Quote:
    """Complete priced cart for one buyer."""
    buyer_id: Optional[str]
    total: float
    lines: list[LineItem]
    priced_at: Optional[datetime] = None
    warnings: list[str] = field(default_factory=list)

    def add_warning(self, warning: str):
        """Add a quote-level warning."""
        self.warnings.append(warning)

    def summary_text(self, currency: str = "₱") -> str:
        """Line-item summary and grand total for the order message."""
        rows = [
            f"• {line.product_name} ({line.variant_name}) x{line.quantity} - "
            f"{currency}{format_amount(line.extended_price)}"
            for line in self.lines
        ]
        rows.append("")
        rows.append(f"TOTAL: {currency}{format_amount(self.total)}")
        return "\n".join(rows)


@dataclass
class BulkOutcome:
    """Aggregate result of a bulk override mutation."""
    succeeded: int = 0
    attempted: int = 0

    @property
    def failed(self) -> int:
        return self.attempted - self.succeeded

    @property
    def is_partial_failure(self) -> bool:
        return self.succeeded < self.attempted

    def record(self, success: bool):
        """Count one attempted write."""
        self.attempted += 1
        if success:
            self.succeeded += 1

    def message(self) -> str:
        """Operator-facing outcome text."""
        if self.attempted == 0:
            return "Nothing to do (0/0 succeeded)"
        text = f"{self.succeeded}/{self.attempted} succeeded"
        if self.is_partial_failure:
            text += f" - partial failure: {self.failed} write(s) did not apply"
        return text
