"""
Overrides API - FastAPI router for per-buyer member pricing.
"""
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel, Field

from ..engine.models import BulkOutcome, Override, OverrideValues
from ..services.bulk_service import BulkScope
from .state import AppServices, get_services

router = APIRouter(prefix="/api/overrides", tags=["overrides"])


class OverrideValuesIn(BaseModel):
    """The three override fields, always written together."""
    discount_percentage: float = 0.0
    capital_price: float = 0.0
    selling_price: float = 0.0

    def to_values(self) -> OverrideValues:
        return OverrideValues(**self.model_dump())


class BulkApplyRequest(BaseModel):
    """Request model for applying one rule across a cohort."""
    cohort: Literal["reseller", "end_user"]
    scope: Literal["variant", "product", "all"]
    product_id: Optional[str] = None
    variant_id: Optional[str] = None
    rule: OverrideValuesIn


class BulkDeleteRequest(BaseModel):
    cohort: Literal["reseller", "end_user"]
    product_id: str
    variant_id: str


class OutcomeResponse(BaseModel):
    """Response model for any override mutation."""
    succeeded: int
    attempted: int
    partial_failure: bool
    message: str


def _outcome(outcome: BulkOutcome) -> OutcomeResponse:
    return OutcomeResponse(
        succeeded=outcome.succeeded,
        attempted=outcome.attempted,
        partial_failure=outcome.is_partial_failure,
        message=outcome.message(),
    )


def _serialize(override: Override) -> dict:
    payload = jsonable_encoder(override)
    payload["profit"] = override.profit
    return payload


# Endpoints

@router.get("")
async def list_overrides(buyer_id: Optional[str] = None, services: AppServices = Depends(get_services)):
    """List overrides, optionally for one buyer."""
    overrides = services.ledger.list_for_buyer(buyer_id) if buyer_id else services.ledger.list_all()
    return [_serialize(o) for o in overrides]


@router.get("/{buyer_id}/{product_id}")
async def get_overrides(
    buyer_id: str,
    product_id: str,
    variant_id: Optional[str] = None,
    services: AppServices = Depends(get_services)
):
    """Scoped lookup; one entry when variant_id is given, otherwise all for the product."""
    if variant_id is None:
        return [_serialize(o) for o in services.ledger.get(buyer_id, product_id)]

    override = services.ledger.get(buyer_id, product_id, variant_id)
    if override is None:
        raise HTTPException(status_code=404, detail="No override for this package")
    return _serialize(override)


@router.put("/{buyer_id}/{product_id}/{variant_id}", response_model=OutcomeResponse)
async def upsert_override(
    buyer_id: str,
    product_id: str,
    variant_id: str,
    values: OverrideValuesIn,
    services: AppServices = Depends(get_services)
):
    """Single-row edit."""
    outcome = services.bulk.upsert_one(buyer_id, product_id, variant_id, values.to_values())
    return _outcome(outcome)


@router.delete("/{buyer_id}/entry/{override_id}", response_model=OutcomeResponse)
async def delete_override(buyer_id: str, override_id: str, services: AppServices = Depends(get_services)):
    """Delete one override; a missing id is reported as 0/1, not an error."""
    outcome = BulkOutcome()
    outcome.record(services.ledger.delete(override_id, buyer_id))
    return _outcome(outcome)


@router.delete("/{buyer_id}/{product_id}", response_model=OutcomeResponse)
async def delete_all_for_buyer(buyer_id: str, product_id: str, services: AppServices = Depends(get_services)):
    """Delete every override this buyer holds on the product."""
    return _outcome(services.bulk.delete_all_for_buyer(buyer_id, product_id))


@router.post("/bulk", response_model=OutcomeResponse)
async def bulk_apply(request: BulkApplyRequest, services: AppServices = Depends(get_services)):
    """Apply one rule to every active member of a cohort across a scope."""
    if request.scope == "all":
        scope = BulkScope.all_products()
    elif not request.product_id:
        raise HTTPException(status_code=400, detail="product_id is required for this scope")
    elif request.scope == "product":
        scope = BulkScope.product(request.product_id)
    elif not request.variant_id:
        raise HTTPException(status_code=400, detail="variant_id is required for scope 'variant'")
    else:
        scope = BulkScope.single(request.product_id, request.variant_id)

    outcome = services.bulk.apply(request.cohort, scope, request.rule.to_values())
    return _outcome(outcome)


@router.post("/bulk-delete", response_model=OutcomeResponse)
async def bulk_delete(request: BulkDeleteRequest, services: AppServices = Depends(get_services)):
    """Remove one package's override from every active member of a cohort."""
    outcome = services.bulk.apply_delete(request.cohort, request.product_id, request.variant_id)
    return _outcome(outcome)
