"""
Product Domain Models

A product is ingested as an aggregate: the product row, one optional
image row (list of URLs), and an ordered list of variations, each with
its own optional image row and attribute values.

Author: TM3
Date: 2026-10-17
"""
from pydantic import BaseModel, Field, ConfigDict, computed_field, field_validator
from typing import Generic, List, Optional, TypeVar
from datetime import datetime
from decimal import Decimal

T = TypeVar("T")

MAX_PAGE_SIZE = 100


class AttributeInput(BaseModel):
    """Attribute pair as submitted by the supplier, e.g. Color=Red"""
    name: str = Field(..., min_length=1, max_length=255)
    value: str = Field(..., min_length=1, max_length=1024)

    @field_validator("name", "value")
    @classmethod
    def strip(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("must not be blank")
        return stripped


class VariationCreate(BaseModel):
    sku: str = Field(..., min_length=1, max_length=255)
    price: Decimal = Field(..., ge=0)
    stock: int = Field(0, ge=0)
    images: List[str] = []
    attributes: List[AttributeInput] = []


class ProductCreate(BaseModel):
    """Request body for creating a product"""
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    category_id: int = Field(..., ge=1)
    price: Decimal = Field(..., ge=0)
    stock: int = Field(0, ge=0)
    images: List[str] = []
    variations: List[VariationCreate] = []


class ProductAggregate(ProductCreate):
    """ProductCreate plus the server-side fields filled in by the writer"""
    supplier_id: int
    market_id: Optional[int] = None
    status_id: int


class VariationAttribute(BaseModel):
    attribute_id: int
    attribute_value_id: int
    name: str
    value: str


class ProductVariation(BaseModel):
    id: int
    product_id: int
    sku: str
    price: Decimal
    stock: int
    images: List[str] = []
    attributes: List[VariationAttribute] = []

    model_config = ConfigDict(json_encoders={Decimal: float})


class Product(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    category_id: int
    market_id: Optional[int] = None
    status_id: int
    supplier_id: int
    price: Optional[Decimal] = None
    stock: int = 0
    created_at: Optional[datetime] = None

    model_config = ConfigDict(
        from_attributes=True,
        json_encoders={
            Decimal: float,
            datetime: lambda v: v.isoformat()
        }
    )


class ProductDetail(Product):
    images: List[str] = []
    variations: List[ProductVariation] = []


class PageRequest(BaseModel):
    """1-based page number translated to LIMIT/OFFSET"""
    page: int = 1
    page_size: int = 20

    @property
    def limit(self) -> int:
        return self.page_size

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


class Page(BaseModel, Generic[T]):
    items: List[T]
    page: int
    page_size: int
    total: int

    @computed_field
    @property
    def pages(self) -> int:
        if self.total == 0:
            return 0
        return (self.total + self.page_size - 1) // self.page_size
