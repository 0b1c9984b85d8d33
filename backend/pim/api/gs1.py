"""
GS1 Brasil API Endpoints
Barcode check digit validation, registration and verification

Author: TM3
Date: 2026-03-02
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse

from pim.api.products import get_product_or_404
from pim.connectors.gs1 import GS1Client, get_gs1_client
from pim.core.exceptions import GS1Error, http_status_for
from pim.domain.gs1 import RegistrationRequest
from pim.domain.gtin import classify, validate
from pim.domain.product import Product
from pim.repositories.product_repository import get_product_repository

logger = logging.getLogger(__name__)

router = APIRouter()


async def gs1_error_handler(request: Request, exc: GS1Error) -> JSONResponse:
    """Render any GS1Error as {"error": {kind, message, ...}}"""
    status_code = http_status_for(exc)
    logger.warning(f"GS1 request {request.url.path} failed ({status_code}): {exc}")
    return JSONResponse(status_code=status_code, content={"error": exc.as_dict()})


def _parse_decimal(value: str) -> Optional[float]:
    """'1,5' / '1.5' -> 1.5; blank or unreadable -> None"""
    value = (value or "").strip().replace(",", ".")
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        return None


def registration_from_product(product: Product) -> RegistrationRequest:
    """Build a registration request out of a stored product record"""
    return RegistrationRequest(
        description=product.name,
        sku=product.sku or None,
        ncm=product.ncm or None,
        cest=product.cest or None,
        gtin=product.ean or None,
        gpc_code=product.gpc_code or None,
        image_url=product.thumbnail_url,
        gross_weight=_parse_decimal(product.gross_weight),
        net_weight=_parse_decimal(product.net_weight),
        net_content=_parse_decimal(product.net_content),
        origin=product.origin or "076",
    )


@router.get("/validate")
async def validate_code(code: str = Query(..., description="EAN/GTIN to check")):
    """
    Check digit validation (no registry call)
    """
    result = validate(code)
    return {
        "status": "success",
        "code": code,
        "symbology": classify(code),
        "data": result.model_dump()
    }


@router.post("/register")
async def register_product(
    payload: RegistrationRequest,
    client: GS1Client = Depends(get_gs1_client)
):
    """
    Register a product at GS1 Brasil

    Leave gtin empty to let the registry assign one (not every mode allows it).
    """
    outcome = await client.register(payload)
    return {"status": "success", "data": outcome.model_dump()}


@router.get("/verify")
async def verify_product(
    ean: str = Query(..., description="EAN/GTIN to look up"),
    client: GS1Client = Depends(get_gs1_client)
):
    """
    Look a barcode up at GS1 (own catalog first, then the public registry)
    """
    result = await client.verify(ean)
    return {"status": "success", "data": result.model_dump()}


@router.post("/products/{product_id}/register")
async def register_stored_product(
    product_id: str,
    client: GS1Client = Depends(get_gs1_client),
    repo=Depends(get_product_repository)
):
    """
    Register a stored product and write the GTIN back to its EAN
    """
    product = get_product_or_404(repo, product_id)

    outcome = await client.register(registration_from_product(product))

    if outcome.gtin and outcome.gtin != product.ean:
        product = repo.update(product_id, {"ean": outcome.gtin})
        logger.info(f"Product {product_id} EAN set to {outcome.gtin} after GS1 registration")

    return {
        "status": "success",
        "data": outcome.model_dump(),
        "product": product.to_dict()
    }
