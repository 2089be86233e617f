from datetime import datetime
from typing import List, Optional

from fastapi import Depends, FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from topup_pricing import __version__
from topup_pricing.config.settings import configure_logging
from topup_pricing.engine import CartLine, NotFoundError, ValidationError
from topup_pricing.api.state import AppServices, get_services
from topup_pricing.api.catalog_api import router as catalog_router
from topup_pricing.api.overrides_api import router as overrides_router
from topup_pricing.api.buyers_api import router as buyers_router

configure_logging()

app = FastAPI(
    title="Top-up Pricing API",
    description="Storefront pricing and member discount management",
    version=__version__
)

# Enable CORS for frontend development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(catalog_router)
app.include_router(overrides_router)
app.include_router(buyers_router)


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=400, content={"detail": {"errors": exc.errors}})


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


class QuoteLine(BaseModel):
    product_id: str
    variant_id: str
    quantity: int = Field(default=1, ge=0)


class QuoteRequest(BaseModel):
    buyer_id: Optional[str] = None
    lines: List[QuoteLine]
    at: Optional[datetime] = None


@app.get("/")
async def root():
    return {"status": "online", "message": "Top-up Pricing API Active"}


@app.post("/quote")
async def calculate_quote(req: QuoteRequest, services: AppServices = Depends(get_services)):
    lines = [CartLine(l.product_id, l.variant_id, l.quantity) for l in req.lines]
    quote = services.engine.quote(req.buyer_id, lines, req.at)
    payload = jsonable_encoder(quote)
    payload["summary"] = quote.summary_text(services.settings.currency_symbol)
    return payload


@app.get("/catalog")
async def get_catalog(
    search: Optional[str] = None,
    buyer_id: Optional[str] = None,
    services: AppServices = Depends(get_services)
):
    listing = services.catalog.storefront_listing()
    if search:
        needle = search.lower()
        listing = [p for p in listing if needle in p['name'].lower() or needle in p['category'].lower()]

    # If buyer_id provided, resolve member prices with overrides
    if buyer_id:
        for product in listing:
            overrides = {o.variant_id: o for o in services.ledger.get(buyer_id, product['id'])}
            for package in product['packages']:
                override = overrides.get(package['id'])
                package['your_price'] = override.selling_price if override else package['effective_price']
                package['member_price'] = override is not None

    return listing


@app.get("/system/status")
async def get_status(services: AppServices = Depends(get_services)):
    products = services.catalog.list_products()
    return {
        "engine_active": True,
        "backend": services.backend,
        "product_count": len(products),
        "package_count": sum(len(p.variants) for p in products),
        "bulk_max_workers": services.bulk.max_workers,
        "members": services.buyers.cohort_counts(),
    }
