"""
Buyers API - FastAPI router for member cohort management.
"""
import json
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel

from .state import AppServices, get_services

router = APIRouter(prefix="/api/buyers", tags=["buyers"])


class BuyerUpdate(BaseModel):
    """Request model for updating cohort tag and/or status."""
    cohort_tag: Optional[Literal["reseller", "end_user"]] = None
    status: Optional[Literal["active", "inactive"]] = None


@router.get("")
async def list_buyers(status: Optional[str] = None, services: AppServices = Depends(get_services)):
    return jsonable_encoder(services.buyers.list_buyers(status=status))


@router.get("/top")
async def top_buyers(limit: int = 10, services: AppServices = Depends(get_services)):
    """Members ranked by lifetime spend."""
    df = services.buyers.top_buyers(limit=limit)
    return json.loads(df.to_json(orient="records"))


@router.get("/cohorts/{cohort_tag}")
async def cohort_members(cohort_tag: str, services: AppServices = Depends(get_services)):
    """Active members a bulk operation on this cohort would target right now."""
    return jsonable_encoder(services.buyers.cohort_members(cohort_tag))


@router.get("/{buyer_id}")
async def get_buyer(buyer_id: str, services: AppServices = Depends(get_services)):
    return jsonable_encoder(services.buyers.get_buyer(buyer_id))


@router.patch("/{buyer_id}")
async def update_buyer(buyer_id: str, updates: BuyerUpdate, services: AppServices = Depends(get_services)):
    services.buyers.get_buyer(buyer_id)

    if updates.cohort_tag is not None and not services.buyers.set_cohort_tag(buyer_id, updates.cohort_tag):
        raise HTTPException(status_code=500, detail="Failed to update cohort")
    if updates.status is not None and not services.buyers.set_status(buyer_id, updates.status):
        raise HTTPException(status_code=500, detail="Failed to update status")

    return jsonable_encoder(services.buyers.get_buyer(buyer_id))
