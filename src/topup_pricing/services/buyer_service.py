"""
Buyer Service - Cohort resolution, member ranking and cohort/status edits.
"""
import logging
from typing import Optional

import pandas as pd

from ..engine.errors import NotFoundError, ValidationError
from ..engine.models import BUYER_STATUSES, COHORT_TAGS, Buyer
from ..storage.base import BuyerStore

logger = logging.getLogger(__name__)


class BuyerService:

    def __init__(self, store: BuyerStore):
        self.store = store

    def list_buyers(self, status: Optional[str] = None) -> list[Buyer]:
        buyers = self.store.list_buyers()
        if status:
            buyers = [b for b in buyers if b.status == status]
        return buyers

    def get_buyer(self, buyer_id: str) -> Buyer:
        buyer = self.store.get_buyer(buyer_id)
        if buyer is None:
            raise NotFoundError(f"Buyer '{buyer_id}' not found")
        return buyer

    def cohort_members(self, cohort_tag: str) -> list[Buyer]:
        """
        Active buyers carrying the tag, read fresh from the store.

        Membership is a point-in-time snapshot; two calls may disagree if
        buyers were edited in between.
        """
        if cohort_tag not in COHORT_TAGS:
            raise ValidationError([f"Unknown cohort '{cohort_tag}' (expected one of {', '.join(COHORT_TAGS)})"])
        return [
            b for b in self.store.list_buyers()
            if b.status == "active" and b.cohort_tag == cohort_tag
        ]

    def set_cohort_tag(self, buyer_id: str, cohort_tag: str) -> bool:
        if cohort_tag not in COHORT_TAGS:
            raise ValidationError([f"Unknown cohort '{cohort_tag}'"])
        updated = self.store.update_buyer(buyer_id, cohort_tag=cohort_tag)
        if not updated:
            logger.warning(f"Buyer {buyer_id} not updated (cohort → {cohort_tag})")
        return updated

    def set_status(self, buyer_id: str, status: str) -> bool:
        if status not in BUYER_STATUSES:
            raise ValidationError([f"Unknown status '{status}'"])
        updated = self.store.update_buyer(buyer_id, status=status)
        if not updated:
            logger.warning(f"Buyer {buyer_id} not updated (status → {status})")
        return updated

    def top_buyers(self, limit: int = 10) -> pd.DataFrame:
        """Rank buyers by lifetime spend, then order count."""
        df = pd.DataFrame(
            [
                {
                    'id': b.id,
                    'name': b.name,
                    'cohort_tag': b.cohort_tag,
                    'status': b.status,
                    'order_count': b.order_count,
                    'lifetime_spend': b.lifetime_spend,
                }
                for b in self.store.list_buyers()
            ],
            columns=['id', 'name', 'cohort_tag', 'status', 'order_count', 'lifetime_spend'],
        )
        if df.empty:
            return df
        df = df.sort_values(['lifetime_spend', 'order_count'], ascending=False, kind='stable')
        df = df.head(limit).reset_index(drop=True)
        df.insert(0, 'rank', range(1, len(df) + 1))
        return df

    def cohort_counts(self) -> dict:
        """Headline member counts for the admin dashboard."""
        buyers = self.store.list_buyers()
        return {
            'total': len(buyers),
            'active': sum(1 for b in buyers if b.status == 'active'),
            'resellers': sum(1 for b in buyers if b.cohort_tag == 'reseller'),
            'active_resellers': sum(1 for b in buyers if b.cohort_tag == 'reseller' and b.status == 'active'),
            'active_end_users': sum(1 for b in buyers if b.cohort_tag == 'end_user' and b.status == 'active'),
        }
