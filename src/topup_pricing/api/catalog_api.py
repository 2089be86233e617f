"""
Catalog API - FastAPI router for products and storewide discounts.
"""
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel

from ..engine.models import Product, StorewideDiscount, Variant
from ..services.catalog_service import CatalogService
from .state import AppServices, get_services

router = APIRouter(prefix="/api/products", tags=["products"])


class PackageIn(BaseModel):
    id: Optional[str] = None
    name: str
    price: float
    description: Optional[str] = None
    sort_order: Optional[int] = None


class DiscountIn(BaseModel):
    """Request model for a storewide discount block."""
    percentage: Optional[float] = None
    active: bool = False
    start: Optional[datetime] = None
    end: Optional[datetime] = None


class ProductIn(BaseModel):
    """Request model for creating or replacing a product."""
    id: Optional[str] = None
    name: str
    category: str = ""
    description: str = ""
    subtitle: Optional[str] = None
    image_url: Optional[str] = None
    popular: bool = False
    available: bool = True
    sort_order: int = 0
    discount: DiscountIn = DiscountIn()
    packages: list[PackageIn] = []


class ValidationResponse(BaseModel):
    """Response model for validation."""
    valid: bool
    errors: list[str]
    warnings: list[str]


def _to_product(data: ProductIn, product_id: Optional[str] = None) -> Product:
    return Product(
        id=product_id or data.id or "",
        name=data.name,
        category=data.category,
        description=data.description,
        subtitle=data.subtitle,
        image_url=data.image_url,
        popular=data.popular,
        available=data.available,
        sort_order=data.sort_order,
        discount=StorewideDiscount(**data.discount.model_dump()),
        variants=[
            Variant(
                id=p.id or "",
                name=p.name,
                price=p.price,
                description=p.description,
                sort_order=i if p.sort_order is None else p.sort_order,
            )
            for i, p in enumerate(data.packages)
        ],
    )


def _catalog(services: AppServices = Depends(get_services)) -> CatalogService:
    return services.catalog


@router.get("")
async def list_products(catalog: CatalogService = Depends(_catalog)):
    """List every product, including unavailable ones."""
    return jsonable_encoder(catalog.list_products())


@router.get("/{product_id}")
async def get_product(product_id: str, catalog: CatalogService = Depends(_catalog)):
    return jsonable_encoder(catalog.get_product(product_id))


@router.post("")
async def create_product(data: ProductIn, catalog: CatalogService = Depends(_catalog)):
    """Create a product; ValidationError becomes HTTP 400."""
    return jsonable_encoder(catalog.save_product(_to_product(data)))


@router.put("/{product_id}")
async def replace_product(product_id: str, data: ProductIn, catalog: CatalogService = Depends(_catalog)):
    catalog.get_product(product_id)
    return jsonable_encoder(catalog.save_product(_to_product(data, product_id)))


@router.put("/{product_id}/discount")
async def set_discount(product_id: str, data: DiscountIn, catalog: CatalogService = Depends(_catalog)):
    product = catalog.set_storewide_discount(product_id, data.percentage, data.active, data.start, data.end)
    return jsonable_encoder(product)


@router.post("/validate", response_model=ValidationResponse)
async def validate_product(data: ProductIn, catalog: CatalogService = Depends(_catalog)):
    """Validate a product without saving."""
    result = catalog.validate_product(_to_product(data))
    return ValidationResponse(valid=result.valid, errors=result.errors, warnings=result.warnings)


@router.delete("/{product_id}")
async def delete_product(product_id: str, catalog: CatalogService = Depends(_catalog)):
    if not catalog.delete_product(product_id):
        raise HTTPException(status_code=404, detail=f"Product '{product_id}' not found")
    return {"success": True, "message": f"Product '{product_id}' deleted"}
