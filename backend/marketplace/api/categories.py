"""
Categories API Endpoints
Category listing, tree, lookup and admin maintenance

Author: TM3
Date: 2026-10-17
"""
from fastapi import APIRouter, Depends, File, Query, UploadFile, status

from marketplace.api.deps import get_catalog_reader, get_storage
from marketplace.api.uploads import read_upload
from marketplace.connectors.storage_connector import SupabaseStorageConnector
from marketplace.core.auth import TokenUser, require_admin
from marketplace.domain.category import CategoryAttributesCreate, CategoryCreate
from marketplace.services import CatalogReader

router = APIRouter()


@router.get("/")
def list_categories(reader: CatalogReader = Depends(get_catalog_reader)):
    categories = reader.list_categories()
    return {"status": "success", "count": len(categories), "data": categories}


@router.get("/tree")
def category_tree(reader: CatalogReader = Depends(get_catalog_reader)):
    """Nested category forest; categories with a missing parent are left out"""
    return {"status": "success", "data": reader.category_tree()}


@router.get("/roots")
def root_categories(reader: CatalogReader = Depends(get_catalog_reader)):
    return {"status": "success", "data": reader.root_categories()}


@router.get("/subcategories")
def subcategories(
    path: str = Query(..., description="Parent path, e.g. /clothes"),
    reader: CatalogReader = Depends(get_catalog_reader)
):
    return {"status": "success", "data": reader.subcategories(path)}


@router.get("/search")
def category_by_path(
    path: str = Query(..., description="Exact category path, e.g. /clothes/men"),
    reader: CatalogReader = Depends(get_catalog_reader)
):
    return {"status": "success", "data": reader.category_by_path(path)}


@router.get("/{category_id}")
def get_category(category_id: int, reader: CatalogReader = Depends(get_catalog_reader)):
    return {"status": "success", "data": reader.get_category(category_id)}


@router.get("/{category_id}/attributes")
def category_attributes(category_id: int, reader: CatalogReader = Depends(get_catalog_reader)):
    """Attribute names used by products in the category, with their known values"""
    return {"status": "success", "data": reader.category_attributes(category_id)}


@router.post("/", status_code=status.HTTP_201_CREATED)
def create_category(
    category: CategoryCreate,
    user: TokenUser = Depends(require_admin),
    reader: CatalogReader = Depends(get_catalog_reader)
):
    return {"status": "success", "data": reader.add_category(category)}


@router.post("/attributes", status_code=status.HTTP_201_CREATED)
def define_category_attributes(
    request: CategoryAttributesCreate,
    user: TokenUser = Depends(require_admin),
    reader: CatalogReader = Depends(get_catalog_reader)
):
    """
    Create or redefine typed attributes of a category

    type_of_option is one of dropdown, range, switcher, text, number; value
    must match it (list of strings, {"from", "to"}, bool, string, integer).
    """
    attributes = reader.define_category_attributes(request)
    return {"status": "success", "count": len(attributes), "data": attributes}


@router.post("/{category_id}/image")
def upload_category_image(
    category_id: int,
    file: UploadFile = File(...),
    user: TokenUser = Depends(require_admin),
    reader: CatalogReader = Depends(get_catalog_reader),
    storage: SupabaseStorageConnector = Depends(get_storage)
):
    reader.get_category(category_id)
    path = storage.build_path("categories", file.filename)
    url = storage.upload(read_upload(file), path, file.content_type or "application/octet-stream")
    return {"status": "success", "data": reader.set_category_image(category_id, url)}
