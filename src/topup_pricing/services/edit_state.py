"""
Edit State - Draft values for the member pricing editor.

One EditSession holds the row currently being edited and the draft override
values keyed by package id. The UI keeps a session per admin and passes it
to the bulk applicator calls explicitly.
"""
from dataclasses import dataclass, field, replace
from typing import Optional

from ..engine.models import Override, OverrideValues, Product


@dataclass
class DraftRow:
    """Editor row for one package of the selected product."""
    variant_id: str
    variant_name: str
    values: OverrideValues
    existing: Optional[Override] = None

    @property
    def profit(self) -> float:
        return self.values.selling_price - self.values.capital_price


def _assign(draft: OverrideValues, values: dict):
    for key, value in values.items():
        if not hasattr(draft, key):
            raise AttributeError(f"Unknown override field '{key}'")
        setattr(draft, key, float(value))


@dataclass
class EditSession:
    product_id: Optional[str] = None
    editing_id: Optional[str] = None
    drafts: dict[str, OverrideValues] = field(default_factory=dict)
    bulk_draft: OverrideValues = field(default_factory=OverrideValues)

    def load_rows(self, product: Product, existing: list[Override]) -> list[DraftRow]:
        """
        Build one row per package, prefilled from existing overrides.

        Packages without an override start at capital 0 and the list price.
        """
        self.product_id = product.id
        by_variant = {o.variant_id: o for o in existing}
        rows = []
        for variant in product.ordered_variants():
            override = by_variant.get(variant.id)
            if override is not None:
                values = OverrideValues(
                    discount_percentage=override.discount_percentage,
                    capital_price=override.capital_price,
                    selling_price=override.selling_price,
                )
            else:
                values = OverrideValues(selling_price=variant.price)
            rows.append(DraftRow(variant.id, variant.name, values, override))
        return rows

    def begin_edit(self, row_id: str, initial: OverrideValues):
        """Start editing one row; only one row is edited at a time."""
        self.editing_id = row_id
        self.drafts[row_id] = replace(initial)

    def update_draft(self, row_id: str, **values):
        draft = self.drafts.setdefault(row_id, OverrideValues())
        _assign(draft, values)

    def update_bulk_draft(self, **values):
        """Record the "set for all packages" form values as they are typed."""
        _assign(self.bulk_draft, values)

    def take_bulk_draft(self) -> OverrideValues:
        """Hand back the bulk draft and start the next one from zero."""
        values, self.bulk_draft = self.bulk_draft, OverrideValues()
        return values

    def draft_for(self, row_id: str) -> Optional[OverrideValues]:
        return self.drafts.get(row_id)

    def finish_edit(self) -> Optional[OverrideValues]:
        """Close the edited row and hand back its draft values."""
        if self.editing_id is None:
            return None
        values = self.drafts.pop(self.editing_id, None)
        self.editing_id = None
        return values

    def cancel(self):
        if self.editing_id is not None:
            self.drafts.pop(self.editing_id, None)
        self.editing_id = None

    def reset(self):
        self.product_id = None
        self.editing_id = None
        self.drafts.clear()
        self.bulk_draft = OverrideValues()
