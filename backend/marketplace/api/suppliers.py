"""
Suppliers API Endpoints
Supplier onboarding and profile

Author: TM3
Date: 2026-10-17
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from marketplace.api.deps import get_catalog_reader, get_identity_service
from marketplace.core.auth import TokenUser, get_current_user
from marketplace.services import CatalogReader, IdentityService

router = APIRouter()


# Request models
class SupplierRegistration(BaseModel):
    phone_number: str = Field(..., min_length=8, max_length=16)
    name: Optional[str] = Field(None, max_length=255)
    market_id: Optional[int] = Field(None, ge=1)
    place_name: Optional[str] = Field(None, max_length=255)
    row_name: Optional[str] = Field(None, max_length=255)
    category_ids: Optional[List[int]] = None


class SupplierDetailsUpdate(BaseModel):
    market_id: Optional[int] = Field(None, ge=1)
    place_name: Optional[str] = Field(None, max_length=255)
    row_name: Optional[str] = Field(None, max_length=255)
    category_ids: Optional[List[int]] = None


class SupplierProfileUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=255)
    market_name: Optional[str] = Field(None, max_length=255)
    places_rows: Optional[str] = Field(None, max_length=255)
    category: Optional[str] = Field(None, max_length=255)


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register_supplier(
    request: SupplierRegistration,
    identity: IdentityService = Depends(get_identity_service)
):
    """
    Create the supplier profile (or refresh an unverified one) and send a
    verification code. A verified profile is not changed here; use
    PUT /me/details and PATCH /me.
    """
    supplier = identity.register_supplier(
        request.phone_number,
        name=request.name,
        market_id=request.market_id,
        place_name=request.place_name,
        row_name=request.row_name,
        category_ids=request.category_ids
    )
    return {
        "status": "success",
        "message": "Verification code sent",
        "data": supplier
    }


@router.get("/markets")
def list_markets(identity: IdentityService = Depends(get_identity_service)):
    markets = identity.list_markets()
    return {"status": "success", "count": len(markets), "data": markets}


@router.get("/me")
def get_my_supplier(
    current_user: TokenUser = Depends(get_current_user),
    identity: IdentityService = Depends(get_identity_service)
):
    return {"status": "success", "data": identity.get_supplier_for_user(current_user.id)}


@router.patch("/me")
def update_my_profile(
    request: SupplierProfileUpdate,
    current_user: TokenUser = Depends(get_current_user),
    identity: IdentityService = Depends(get_identity_service)
):
    """Omitted fields keep their stored value"""
    supplier = identity.update_supplier_profile(
        current_user.id,
        name=request.name,
        market_name=request.market_name,
        places_rows=request.places_rows,
        category=request.category
    )
    return {"status": "success", "data": supplier}


@router.put("/me/details")
def update_my_details(
    request: SupplierDetailsUpdate,
    current_user: TokenUser = Depends(get_current_user),
    identity: IdentityService = Depends(get_identity_service)
):
    """
    Update market placement

    category_ids replaces the linked categories when present; omit it to
    keep them.
    """
    supplier = identity.update_supplier_details(
        current_user.id,
        market_id=request.market_id,
        place_name=request.place_name,
        row_name=request.row_name,
        category_ids=request.category_ids
    )
    return {"status": "success", "data": supplier}


@router.get("/me/categories")
def get_my_categories(
    current_user: TokenUser = Depends(get_current_user),
    reader: CatalogReader = Depends(get_catalog_reader)
):
    """Categories linked to the caller's supplier, as full category objects"""
    categories = reader.supplier_categories(current_user.id)
    return {"status": "success", "count": len(categories), "data": categories}
