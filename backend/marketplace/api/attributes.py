"""
Attributes API Endpoints
Images attached to attribute values (e.g. the swatch photos for Color=Red)

Author: TM3
Date: 2026-10-17
"""
from fastapi import APIRouter, Depends, status

from marketplace.api.deps import get_catalog_reader
from marketplace.core.auth import TokenUser, get_current_user
from marketplace.domain.category import AttributeValueImagesCreate
from marketplace.services import CatalogReader

router = APIRouter()


@router.post("/values/images", status_code=status.HTTP_201_CREATED)
def set_attribute_value_images(
    request: AttributeValueImagesCreate,
    current_user: TokenUser = Depends(get_current_user),
    reader: CatalogReader = Depends(get_catalog_reader)
):
    """Store the image URLs of an attribute value, replacing earlier ones"""
    return {
        "status": "success",
        "message": "Attribute value images saved",
        "data": reader.set_attribute_value_images(request)
    }


@router.get("/values/{attribute_value_id}/images")
def get_attribute_value_images(
    attribute_value_id: int,
    reader: CatalogReader = Depends(get_catalog_reader)
):
    return {"status": "success", "data": reader.attribute_value_images(attribute_value_id)}
