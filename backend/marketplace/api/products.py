"""
Products API Endpoints
Product ingestion and paginated listings

Author: TM3
Date: 2026-10-17
"""
from fastapi import APIRouter, Depends, Query, status

from marketplace.api.deps import get_catalog_reader, get_catalog_writer
from marketplace.core.auth import TokenUser, get_current_user
from marketplace.core.config import settings
from marketplace.domain.product import ProductCreate
from marketplace.services import CatalogReader, CatalogWriter

router = APIRouter()


def _page_response(page):
    return {
        "status": "success",
        "total": page.total,
        "page": page.page,
        "page_size": page.page_size,
        "pages": page.pages,
        "count": len(page.items),
        "data": page.items
    }


@router.post("/", status_code=status.HTTP_201_CREATED)
def create_product(
    product: ProductCreate,
    current_user: TokenUser = Depends(get_current_user),
    writer: CatalogWriter = Depends(get_catalog_writer)
):
    """Create a product with its images, variations and attribute values in one transaction"""
    product_id = writer.create_product(current_user.id, product)
    return {"status": "success", "data": {"id": product_id}}


# Bounds are checked by the reader so out-of-range values return 400
@router.get("/")
def list_products(
    status_id: int = Query(settings.NEW_PRODUCT_STATUS_ID, description="Product status"),
    page: int = Query(1, description="1-based page number"),
    page_size: int = Query(20, description="Items per page (1-100)"),
    reader: CatalogReader = Depends(get_catalog_reader)
):
    return _page_response(reader.list_by_status(status_id, page, page_size))


@router.get("/mine")
def list_my_products(
    status_id: int = Query(settings.NEW_PRODUCT_STATUS_ID, description="Product status"),
    page: int = Query(1),
    page_size: int = Query(20),
    current_user: TokenUser = Depends(get_current_user),
    reader: CatalogReader = Depends(get_catalog_reader)
):
    return _page_response(reader.list_for_supplier(current_user.id, status_id, page, page_size))


@router.get("/{product_id}")
def get_product(
    product_id: int,
    reader: CatalogReader = Depends(get_catalog_reader)
):
    return {"status": "success", "data": reader.get_product(product_id)}
