"""
Products API Endpoints
Handles product record management, spreadsheet import/export and
automatic thumbnails

Author: TM3
Date: 2026-03-02
"""
from datetime import datetime
import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status
from fastapi.responses import StreamingResponse

from pim.connectors.google_drive_connector import GoogleDriveConnector
from pim.core.config import settings
from pim.domain.product import PRODUCT_FILTERS, ProductCreate, ProductUpdate
from pim.repositories.product_repository import get_product_repository
from pim.services.spreadsheet_service import SpreadsheetService

logger = logging.getLogger(__name__)

router = APIRouter()

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def get_drive_connector() -> GoogleDriveConnector:
    return GoogleDriveConnector(api_key=settings.GOOGLE_API_KEY)


def get_product_or_404(repo, product_id: str):
    """Load a product or answer 404; store failures become a 500 with a message"""
    try:
        product = repo.find_by_id(product_id)
    except Exception as e:
        logger.error(f"Error fetching product {product_id}: {e}")
        raise HTTPException(status_code=500, detail=f"Error fetching product: {str(e)}")

    if not product:
        raise HTTPException(status_code=404, detail=f"Product {product_id} not found")
    return product


def _xlsx_response(excel_file, filename: str) -> StreamingResponse:
    return StreamingResponse(
        excel_file,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f"attachment; filename={filename}"}
    )


@router.get("/")
async def get_products(
    filter: str = Query("all", description=f"Catalog filter: {', '.join(PRODUCT_FILTERS)}"),
    search: Optional[str] = Query(None, description="Search by name, SKU, EAN or NCM"),
    limit: Optional[int] = Query(None, ge=1, le=5000),
    offset: int = Query(0, ge=0),
    repo=Depends(get_product_repository)
):
    """
    List products, newest first
    """
    if filter not in PRODUCT_FILTERS:
        raise HTTPException(status_code=400, detail=f"Unknown filter '{filter}'")

    try:
        products, total = repo.find_all(filter_id=filter, search=search, limit=limit, offset=offset)

        return {
            "status": "success",
            "total": total,
            "count": len(products),
            "data": [product.to_dict() for product in products]
        }

    except Exception as e:
        logger.error(f"Error fetching products: {e}")
        raise HTTPException(status_code=500, detail=f"Error fetching products: {str(e)}")


@router.get("/export")
async def export_products(repo=Depends(get_product_repository)):
    """
    Download every product as an Excel file
    """
    try:
        products, _ = repo.find_all()
        excel_file = SpreadsheetService().export_products(products)
    except Exception as e:
        logger.error(f"Error exporting products: {e}")
        raise HTTPException(status_code=500, detail=f"Error exporting products: {str(e)}")

    return _xlsx_response(excel_file, f"produtos_{datetime.now().strftime('%Y-%m-%d')}.xlsx")


@router.get("/template")
async def download_import_template():
    """
    Download the import template (one example row)
    """
    excel_file = SpreadsheetService().generate_template()
    return _xlsx_response(excel_file, "modelo_importacao.xlsx")


@router.post("/import")
async def import_products(
    file: UploadFile = File(...),
    preview: bool = Query(False, description="Only parse and return the rows"),
    repo=Depends(get_product_repository)
):
    """
    Import products from .xlsx/.xls/.csv

    Rows whose SKU already exists (case-insensitive) update that product;
    the others are created.
    """
    contents = await file.read()

    try:
        rows = SpreadsheetService().parse_products_file(contents, file.filename or "")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if preview:
        return {"status": "success", "total_rows": len(rows), "rows": rows}

    try:
        imported = repo.bulk_upsert(rows)
    except Exception as e:
        logger.error(f"Error importing products: {e}")
        raise HTTPException(status_code=500, detail=f"Error importing products: {str(e)}")

    return {"status": "success", "imported": imported}


@router.get("/{product_id}")
async def get_product(product_id: str, repo=Depends(get_product_repository)):
    """
    Get a single product
    """
    product = get_product_or_404(repo, product_id)

    return {"status": "success", "data": product.to_dict()}


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_product(payload: ProductCreate, repo=Depends(get_product_repository)):
    """
    Create a product
    """
    try:
        product = repo.create(payload.model_dump())
    except Exception as e:
        logger.error(f"Error creating product: {e}")
        raise HTTPException(status_code=500, detail=f"Error creating product: {str(e)}")

    logger.info(f"Product created: {product.id} (sku={product.sku or '-'})")
    return {"status": "success", "data": product.to_dict()}


@router.put("/{product_id}")
async def update_product(product_id: str, payload: ProductUpdate, repo=Depends(get_product_repository)):
    """
    Update a product (only the fields sent)
    """
    try:
        product = repo.update(product_id, payload.model_dump(exclude_unset=True))
    except LookupError:
        raise HTTPException(status_code=404, detail=f"Product {product_id} not found")
    except Exception as e:
        logger.error(f"Error updating product {product_id}: {e}")
        raise HTTPException(status_code=500, detail=f"Error updating product: {str(e)}")

    return {"status": "success", "data": product.to_dict()}


@router.delete("/{product_id}")
async def delete_product(product_id: str, repo=Depends(get_product_repository)):
    """
    Delete a product
    """
    try:
        deleted = repo.delete(product_id)
    except Exception as e:
        logger.error(f"Error deleting product {product_id}: {e}")
        raise HTTPException(status_code=500, detail=f"Error deleting product: {str(e)}")

    if not deleted:
        raise HTTPException(status_code=404, detail=f"Product {product_id} not found")

    logger.info(f"Product deleted: {product_id}")
    return {"status": "success", "deleted": product_id}


@router.post("/{product_id}/thumbnail/auto")
async def auto_thumbnail(
    product_id: str,
    repo=Depends(get_product_repository),
    drive: GoogleDriveConnector = Depends(get_drive_connector)
):
    """
    Fill the thumbnail from the first image in the product's Drive folder
    """
    product = get_product_or_404(repo, product_id)

    if not drive.is_configured:
        raise HTTPException(status_code=503, detail="GOOGLE_API_KEY not configured")

    thumbnail = await drive.first_image_thumbnail(product.photos_url)
    if not thumbnail:
        return {"status": "not_found", "data": product.to_dict()}

    product = repo.update(product_id, {"thumbnail": thumbnail})
    return {"status": "success", "data": product.to_dict()}
